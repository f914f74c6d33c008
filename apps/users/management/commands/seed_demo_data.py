"""
Management command to seed demo data for Rally.

Creates a handful of users, one group with a trip, a planning board,
family members travelling along, shared expenses and a couple of polls so
the API returns meaningful data right after login.

Usage:
    python manage.py seed_demo_data
    python manage.py seed_demo_data --reset  # wipe existing demo data first
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.expenses.models import Expense, ExpenseGuest
from apps.expenses.services.expenses import create_expense
from apps.groups.models import Group, GroupMember
from apps.groups.services import create_group
from apps.polls.models import Poll
from apps.polls.services.polls import create_poll
from apps.trips.constants import AgeGroup, DependentType, TaskColumn, TaskLabel
from apps.trips.models import Trip, TripDependent
from apps.trips.services.tasks import create_task

User = get_user_model()

DEMO_PASSWORD = 'RallyDemo2025'

DEMO_USERS = [
    {'email': 'sam@rally.app', 'first': 'Sam', 'last': 'Okafor', 'display': 'Sam', 'is_staff': True},
    {'email': 'jordan@rally.app', 'first': 'Jordan', 'last': 'Lee', 'display': 'Jordan', 'is_staff': False},
    {'email': 'maya@rally.app', 'first': 'Maya', 'last': 'Patel', 'display': 'Maya', 'is_staff': False},
    {'email': 'luis@rally.app', 'first': 'Luis', 'last': 'Romero', 'display': 'Luis', 'is_staff': False},
]

GROUP_NAME = 'Lake House Crew'


class Command(BaseCommand):
    help = 'Seed demo data (users, group, trip, tasks, expenses, polls) for Rally'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete all existing demo data before seeding',
        )

    def handle(self, *args, **options):
        if options['reset']:
            self._reset()

        users = self._seed_users()
        group = self._seed_group(users)
        if group.trips.exists():
            self.stdout.write(self.style.WARNING('Demo group already has data; use --reset to reseed.'))
            return

        trip = self._seed_trip(group, users)
        self._seed_tasks(trip, users)
        self._seed_dependents(trip, users)
        self._seed_expenses(group, trip, users)
        self._seed_polls(group, trip, users)

        self.stdout.write(self.style.SUCCESS('\nDemo data seeded successfully!\n'))
        self.stdout.write('Demo login credentials:')
        for u in DEMO_USERS:
            self.stdout.write(f'  {u["email"]} / {DEMO_PASSWORD}')

    def _reset(self):
        self.stdout.write('Resetting demo data...')
        demo_users = User.objects.filter(email__in=[u['email'] for u in DEMO_USERS])
        Group.objects.filter(created_by__in=demo_users).delete()
        demo_users.delete()
        self.stdout.write('  Reset complete.')

    def _seed_users(self):
        self.stdout.write('\nSeeding users...')
        users = {}
        for data in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=data['email'],
                defaults={
                    'username': data['email'].split('@')[0],
                    'first_name': data['first'],
                    'last_name': data['last'],
                    'display_name': data['display'],
                    'is_staff': data['is_staff'],
                    'is_superuser': data['is_staff'],
                },
            )
            user.set_password(DEMO_PASSWORD)
            user.save()
            users[data['first'].lower()] = user
            self.stdout.write(f'  {"created" if created else "updated"}: {data["email"]}')
        return users

    def _seed_group(self, users):
        owner = users['sam']
        group = Group.objects.filter(name=GROUP_NAME, created_by=owner).first()
        created = group is None
        if created:
            group = create_group(owner, GROUP_NAME, 'Long weekend at the lake, kids included.')
        for user in users.values():
            GroupMember.objects.get_or_create(
                group=group,
                user=user,
                defaults={'role': GroupMember.Role.ADMIN if user == owner else GroupMember.Role.MEMBER},
            )
        self.stdout.write(f'\n{"created" if created else "exists"}: group {group.name}')
        return group

    def _seed_trip(self, group, users):
        start = timezone.localdate() + timedelta(days=30)
        return Trip.objects.create(
            group=group,
            name='Lake Tahoe Weekend',
            description='Cabin, kayaks and a lot of s\'mores.',
            location='South Lake Tahoe, CA',
            start_date=start,
            end_date=start + timedelta(days=3),
            created_by=users['sam'],
        )

    def _seed_tasks(self, trip, users):
        self.stdout.write('Seeding planning board...')
        board = [
            ('Book the cabin', TaskColumn.CONFIRMED, [TaskLabel.HOTEL], users['sam']),
            ('Rent kayaks', TaskColumn.BOOKED, [TaskLabel.ACTIVITIES], users['luis']),
            ('Plan Saturday dinner', TaskColumn.IN_PROGRESS, [TaskLabel.FOOD], users['maya']),
            ('Carpool sign-up', TaskColumn.TODO, [TaskLabel.TRANSPORT, TaskLabel.URGENT], users['jordan']),
            ('Check fire restrictions', TaskColumn.TODO, [TaskLabel.ADMIN], None),
        ]
        for title, column, labels, assignee in board:
            create_task(
                trip,
                users['sam'],
                title=title,
                column_id=column,
                labels=list(labels),
                assigned_to=assignee,
            )

    def _seed_dependents(self, trip, users):
        self.stdout.write('Seeding family members...')
        for name, dependent_type, age_group, age, member in [
            ('Ava', DependentType.CHILD, AgeGroup.CHILD, 7, users['maya']),
            ('Noah', DependentType.CHILD, AgeGroup.INFANT, 1, users['maya']),
            ('Priya', DependentType.SPOUSE, AgeGroup.ADULT, None, users['maya']),
            ('Theo', DependentType.FRIENDS_CHILD, AgeGroup.TEEN, 15, users['luis']),
        ]:
            TripDependent.objects.create(
                trip=trip,
                name=name,
                type=dependent_type,
                age_group=age_group,
                age=age,
                responsible_member=member,
                added_by=member,
            )

    def _seed_expenses(self, group, trip, users):
        self.stdout.write('Seeding expenses...')
        everyone = [{'user_id': user.pk} for user in users.values()]
        guest = ExpenseGuest.objects.create(group=group, name='Aunt Rosa', created_by=users['sam'])

        create_expense(group, users['sam'], {
            'trip': trip,
            'description': 'Cabin rental',
            'amount': Decimal('1200.00'),
            'paid_by': users['sam'],
            'split_type': Expense.SplitType.EQUAL,
            'category': Expense.Category.ACCOMMODATION,
            'expense_date': trip.start_date,
        }, everyone)

        create_expense(group, users['luis'], {
            'trip': trip,
            'description': 'Kayak rental',
            'amount': Decimal('100.00'),
            'paid_by': users['luis'],
            'split_type': Expense.SplitType.EQUAL,
            'category': Expense.Category.ACTIVITIES,
            'expense_date': trip.start_date + timedelta(days=1),
        }, everyone[1:] + [{'guest_id': guest.pk}])

        create_expense(group, users['maya'], {
            'trip': trip,
            'description': 'Groceries',
            'amount': Decimal('240.00'),
            'paid_by': users['maya'],
            'split_type': Expense.SplitType.PERCENTAGE,
            'category': Expense.Category.FOOD,
            'expense_date': trip.start_date,
        }, [
            {'user_id': users['maya'].pk, 'percentage': Decimal('40')},
            {'user_id': users['sam'].pk, 'percentage': Decimal('20')},
            {'user_id': users['jordan'].pk, 'percentage': Decimal('20')},
            {'user_id': users['luis'].pk, 'percentage': Decimal('20')},
        ])

    def _seed_polls(self, group, trip, users):
        self.stdout.write('Seeding polls...')
        create_poll(
            group,
            users['jordan'],
            [{'text': 'Thai'}, {'text': 'BBQ'}, {'text': 'Pizza night'}],
            trip=trip,
            title='Saturday dinner?',
            poll_type=Poll.Type.MULTIPLE_CHOICE,
        )
        first_weekend = trip.start_date
        create_poll(
            group,
            users['sam'],
            [
                {'text': 'First weekend', 'date': first_weekend},
                {'text': 'Second weekend', 'date': first_weekend + timedelta(days=7)},
            ],
            title='Which weekend works?',
            poll_type=Poll.Type.DATE_PICKER,
        )
        create_poll(
            group,
            users['maya'],
            [{'text': 'Hike to Eagle Falls'}, {'text': 'Paddleboarding'}],
            trip=trip,
            title='Sunday activity lottery',
            poll_type=Poll.Type.LOTTERY,
        )
        self.stdout.write('  3 polls created')
