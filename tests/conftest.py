"""
Shared fixtures: users, a three-person group and authenticated clients.
"""
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.expenses.models import Expense
from apps.expenses.services.expenses import create_expense
from apps.groups.models import GroupMember
from apps.groups.services import create_group
from apps.trips.models import Trip

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make_user(name, **extra):
        return User.objects.create_user(
            username=name.lower(),
            email=f'{name.lower()}@example.com',
            password='pass-1234-word',
            display_name=name,
            **extra,
        )
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user('Alice')


@pytest.fixture
def bob(make_user):
    return make_user('Bob')


@pytest.fixture
def carol(make_user):
    return make_user('Carol')


@pytest.fixture
def outsider(make_user):
    return make_user('Olly')


@pytest.fixture
def group(alice, bob, carol):
    group = create_group(alice, 'Weekend Crew')
    GroupMember.objects.create(group=group, user=bob)
    GroupMember.objects.create(group=group, user=carol)
    return group


@pytest.fixture
def trip(group, alice):
    return Trip.objects.create(group=group, name='Lake Weekend', created_by=alice)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def make_expense(group):
    """Create an expense through the service, equal split by default."""
    def _make_expense(payer, participants, amount='30.00', split_type=Expense.SplitType.EQUAL,
                      description='Dinner', splits=None):
        if splits is None:
            splits = [{'user_id': user.pk} for user in participants]
        return create_expense(group, payer, {
            'description': description,
            'amount': Decimal(amount),
            'paid_by': payer,
            'split_type': split_type,
            'category': Expense.Category.FOOD,
            'expense_date': '2025-06-01',
        }, splits)
    return _make_expense
