from datetime import date
from decimal import Decimal

import pytest

from apps.notifications.models import Notification
from apps.pools.models import ContributionPool, PoolContribution, PoolMember
from apps.pools.services import (
    add_contribution,
    confirm_contribution,
    create_pool,
    member_progress,
    recalculate_targets,
    refund_contribution,
    reject_contribution,
    update_member,
    update_pool,
)
from apps.pools.utils import deadline_info, percent_complete, pool_status_label
from common.exceptions import ActionFailed

POOLS_URL = '/api/v1/pools/'


@pytest.fixture
def pool(group, alice, bob, carol):
    return create_pool(
        group,
        alice,
        [bob.pk, carol.pk],
        title='Cabin Deposit',
        goal_amount=Decimal('300.00'),
        require_confirmation=True,
    )


def _member(pool, user):
    return PoolMember.objects.get(pool=pool, user=user)


@pytest.mark.parametrize('status, current, label', [
    ('completed', '0', 'Completed'),
    ('cancelled', '500', 'Cancelled'),
    ('paused', '10', 'Paused'),
    ('active', '100', 'Goal Reached!'),
    ('active', '80', 'Almost There!'),
    ('active', '79.99', 'Active'),
])
def test_pool_status_label(status, current, label):
    pool = ContributionPool(status=status, current_amount=Decimal(current), goal_amount=Decimal('100'))
    assert pool_status_label(pool) == label


@pytest.mark.parametrize('deadline, days, urgent, label', [
    (None, None, False, 'No deadline'),
    (date(2025, 5, 30), -2, True, 'Past deadline'),
    (date(2025, 6, 1), 0, True, 'Due today!'),
    (date(2025, 6, 2), 1, True, '1 day left'),
    (date(2025, 6, 8), 7, True, '7 days left'),
    (date(2025, 6, 21), 20, False, '20 days left'),
    (date(2025, 7, 11), 40, False, '1 month left'),
    (date(2025, 9, 1), 92, False, '3 months left'),
])
def test_deadline_info(deadline, days, urgent, label):
    assert deadline_info(deadline, today=date(2025, 6, 1)) == {
        'days_remaining': days,
        'is_urgent': urgent,
        'label': label,
    }


def test_percent_complete_handles_zero_goal():
    assert percent_complete(Decimal('80'), Decimal('100')) == 80.0
    assert percent_complete(Decimal('150'), Decimal('100')) == 150.0
    assert percent_complete(Decimal('5'), Decimal('0')) == 0.0


@pytest.mark.django_db
def test_create_pool_adds_creator_and_notifies_members(client_for, group, alice, bob, carol):
    response = client_for(alice).post(POOLS_URL, {
        'groupId': str(group.pk),
        'title': 'Cabin Deposit',
        'goalAmount': '300.00',
        'perPersonTarget': '100.00',
        'memberIds': [str(bob.pk)],
        'paymentMethods': [{'type': 'venmo', 'handle': '@alice'}],
    }, format='json')

    assert response.status_code == 201
    data = response.json()['data']
    assert data['goalAmount'] == '300.00'
    assert data['currentAmount'] == '0.00'
    assert data['statusLabel'] == 'Active'
    assert data['paymentMethods'] == [{'type': 'venmo', 'handle': '@alice', 'enabled': True}]
    assert {member['userId'] for member in data['members']} == {str(alice.pk), str(bob.pk)}
    assert {member['targetAmount'] for member in data['members']} == {'100.00'}

    notified = set(Notification.objects.filter(type='pool_created').values_list('user_id', flat=True))
    assert notified == {bob.pk}


@pytest.mark.django_db
@pytest.mark.parametrize('overrides, message', [
    ({'title': '  '}, 'Title is required'),
    ({'goalAmount': '0'}, 'Goal amount must be greater than 0'),
])
def test_create_pool_validation(client_for, group, alice, overrides, message):
    payload = {'groupId': str(group.pk), 'title': 'Deposit', 'goalAmount': '100.00', **overrides}
    response = client_for(alice).post(POOLS_URL, payload, format='json')

    assert response.status_code == 400
    assert response.json()['error']['message'] == message
    assert not ContributionPool.objects.exists()


@pytest.mark.django_db
def test_create_pool_rejects_members_outside_group(client_for, group, alice, outsider):
    response = client_for(alice).post(POOLS_URL, {
        'groupId': str(group.pk),
        'title': 'Deposit',
        'goalAmount': '100.00',
        'memberIds': [str(outsider.pk)],
    }, format='json')

    assert response.status_code == 400
    assert response.json()['error']['message'] == 'Pool members must belong to the group.'


@pytest.mark.django_db
def test_contribution_counts_immediately_without_confirmation(group, alice, bob):
    pool = create_pool(group, alice, [bob.pk], title='Snacks', goal_amount=Decimal('60.00'))

    contribution = add_contribution(pool, bob, Decimal('25.00'), payment_method='cash')

    assert contribution.status == PoolContribution.Status.CONFIRMED
    assert contribution.confirmed_by == bob
    pool.refresh_from_db()
    assert pool.current_amount == Decimal('25.00')
    assert _member(pool, bob).total_contributed == Decimal('25.00')
    assert _member(pool, alice).total_contributed == Decimal('0')


@pytest.mark.django_db
def test_pending_contribution_waits_for_creator(pool, alice, bob):
    contribution = add_contribution(pool, bob, Decimal('100.00'), payment_reference=' venmo-123 ')

    assert contribution.status == PoolContribution.Status.PENDING
    assert contribution.payment_reference == 'venmo-123'
    pool.refresh_from_db()
    assert pool.current_amount == Decimal('0')
    pending = Notification.objects.get(type='contribution_pending')
    assert pending.user == alice
    assert pending.message == 'Bob contributed USD 100.00 to "Cabin Deposit"'

    confirm_contribution(contribution, alice)

    pool.refresh_from_db()
    assert pool.current_amount == Decimal('100.00')
    assert _member(pool, bob).total_contributed == Decimal('100.00')
    assert Notification.objects.get(type='contribution_confirmed').user == bob

    with pytest.raises(ActionFailed) as excinfo:
        confirm_contribution(contribution, alice)
    assert excinfo.value.get_codes() == 'invalid_status'


@pytest.mark.django_db
def test_refund_removes_contribution_from_totals(pool, alice, bob, carol):
    first = add_contribution(pool, bob, Decimal('100.00'))
    second = add_contribution(pool, carol, Decimal('40.00'))
    confirm_contribution(first, alice)
    confirm_contribution(second, alice)

    refund_contribution(first)

    pool.refresh_from_db()
    assert pool.current_amount == Decimal('40.00')
    assert _member(pool, bob).total_contributed == Decimal('0')
    assert _member(pool, carol).total_contributed == Decimal('40.00')

    with pytest.raises(ActionFailed):
        refund_contribution(first)


@pytest.mark.django_db
def test_reject_records_reason_and_leaves_totals(pool, alice, bob):
    contribution = add_contribution(pool, bob, Decimal('100.00'))

    reject_contribution(contribution, alice, ' Never arrived ')

    contribution.refresh_from_db()
    assert contribution.status == PoolContribution.Status.REJECTED
    assert contribution.rejection_reason == 'Never arrived'
    note = Notification.objects.get(type='contribution_rejected')
    assert note.message == 'Alice rejected your USD 100.00 contribution: Never arrived'
    pool.refresh_from_db()
    assert pool.current_amount == Decimal('0')

    with pytest.raises(ActionFailed):
        confirm_contribution(contribution, alice)


@pytest.mark.django_db
def test_inactive_pool_refuses_contributions(pool, bob):
    update_pool(pool, status=ContributionPool.Status.PAUSED)

    with pytest.raises(ActionFailed) as excinfo:
        add_contribution(pool, bob, Decimal('10.00'))
    assert excinfo.value.get_codes() == 'pool_inactive'


@pytest.mark.django_db
def test_fixed_amount_pool_only_takes_the_target(group, alice, bob):
    pool = create_pool(
        group, alice, [bob.pk],
        title='Tickets', goal_amount=Decimal('200.00'),
        per_person_target=Decimal('100.00'), allow_custom_amounts=False,
    )

    with pytest.raises(ActionFailed):
        add_contribution(pool, bob, Decimal('50.00'))
    assert add_contribution(pool, bob, Decimal('100')).status == PoolContribution.Status.CONFIRMED


@pytest.mark.django_db
def test_contributor_outside_pool_joins_it(group, alice, carol):
    pool = create_pool(group, alice, title='Gas', goal_amount=Decimal('90.00'), per_person_target=Decimal('30.00'))

    add_contribution(pool, carol, Decimal('30.00'))

    member = _member(pool, carol)
    assert member.target_amount == Decimal('30.00')
    assert member.total_contributed == Decimal('30.00')


@pytest.mark.django_db
def test_recalculate_targets_skips_exempt_and_rounds_up(pool, carol, alice):
    assert recalculate_targets(pool) == Decimal('100.00')

    update_pool(pool, goal_amount=Decimal('100.00'))
    assert recalculate_targets(pool) == Decimal('33.34')

    update_member(_member(pool, carol), is_exempt=True, exempt_reason='Joining late')
    assert recalculate_targets(pool) == Decimal('50.00')

    pool.refresh_from_db()
    assert pool.per_person_target == Decimal('50.00')
    assert _member(pool, alice).target_amount == Decimal('50.00')
    assert _member(pool, carol).target_amount == Decimal('33.34')


@pytest.mark.django_db
def test_recalculate_needs_someone_to_pay(group, alice):
    pool = create_pool(group, alice, title='Gift', goal_amount=Decimal('50.00'))
    update_member(_member(pool, alice), is_exempt=True)

    with pytest.raises(ActionFailed) as excinfo:
        recalculate_targets(pool)
    assert str(excinfo.value.detail) == 'No members to split between'


@pytest.mark.django_db
def test_lifting_exemption_clears_reason(pool, carol):
    member = update_member(_member(pool, carol), is_exempt=True, exempt_reason='Covered the boat')
    assert member.exempt_reason == 'Covered the boat'

    member = update_member(member, is_exempt=False)
    assert member.exempt_reason == ''


@pytest.mark.django_db
def test_member_progress(group, alice, bob, outsider):
    pool = create_pool(group, alice, [bob.pk], title='Cabin', goal_amount=Decimal('200.00'),
                       per_person_target=Decimal('100.00'))
    add_contribution(pool, bob, Decimal('30.00'))

    assert member_progress(pool, bob) == {
        'target': Decimal('100.00'),
        'contributed': Decimal('30.00'),
        'remaining': Decimal('70.00'),
    }
    add_contribution(pool, bob, Decimal('90.00'))
    assert member_progress(pool, bob)['remaining'] == Decimal('0')
    assert member_progress(pool, outsider) is None


@pytest.mark.django_db
def test_review_endpoints_are_creator_only(client_for, pool, alice, bob):
    contribution = add_contribution(pool, bob, Decimal('100.00'))
    url = f'{POOLS_URL}{pool.pk}/contributions/{contribution.pk}/confirm/'

    assert client_for(bob).post(url).status_code == 403
    assert client_for(bob).patch(f'{POOLS_URL}{pool.pk}/', {'title': 'Mine'}, format='json').status_code == 403

    response = client_for(alice).post(url)
    assert response.status_code == 200
    assert response.json()['data']['status'] == 'confirmed'
    assert response.json()['data']['confirmer']['id'] == str(alice.pk)

    detail = client_for(bob).get(f'{POOLS_URL}{pool.pk}/').json()['data']
    assert detail['currentAmount'] == '100.00'
    assert detail['confirmedContributions'] == 1
    assert detail['amountRemaining'] == '200.00'


@pytest.mark.django_db
def test_contribution_endpoint(client_for, pool, bob):
    base = f'{POOLS_URL}{pool.pk}/contributions/'

    bad = client_for(bob).post(base, {'amount': '0'}, format='json')
    assert bad.json()['error']['message'] == 'Amount must be greater than 0'

    created = client_for(bob).post(base, {'amount': '45.50', 'paymentMethod': 'zelle'}, format='json')
    assert created.status_code == 201
    assert created.json()['data']['status'] == 'pending'

    rejected = client_for(bob).post(f"{base}{created.json()['data']['id']}/reject/", {}, format='json')
    assert rejected.status_code == 403


@pytest.mark.django_db
def test_member_endpoints(client_for, group, alice, bob, carol, outsider):
    pool = create_pool(group, alice, [bob.pk], title='Boat', goal_amount=Decimal('120.00'),
                       per_person_target=Decimal('60.00'))
    client = client_for(alice)
    base = f'{POOLS_URL}{pool.pk}/members/'

    added = client.post(base, {'userId': str(carol.pk)}, format='json')
    assert added.status_code == 201
    assert added.json()['data']['targetAmount'] == '60.00'

    again = client.post(base, {'userId': str(carol.pk)}, format='json')
    assert again.json()['error']['code'] == 'already_member'

    stranger = client.post(base, {'userId': str(outsider.pk)}, format='json')
    assert stranger.json()['error']['message'] == 'Pool members must belong to the group.'

    exempt = client.patch(f'{base}{carol.pk}/', {'isExempt': True, 'exemptReason': 'Driving'}, format='json')
    assert exempt.json()['data']['isExempt'] is True

    recalculated = client.post(f'{POOLS_URL}{pool.pk}/recalculate/')
    assert recalculated.json()['data'] == {'perPerson': '60.00'}

    progress = client_for(bob).get(f'{POOLS_URL}{pool.pk}/progress/').json()['data']
    assert progress == {'target': '60.00', 'contributed': '0.00', 'remaining': '60.00'}


@pytest.mark.django_db
def test_private_pools_are_hidden_from_non_members(client_for, group, alice, bob, carol):
    create_pool(group, alice, [bob.pk], title='Surprise for Carol', goal_amount=Decimal('80.00'), is_private=True)
    create_pool(group, alice, title='Groceries', goal_amount=Decimal('40.00'))
    url = f'{POOLS_URL}group/{group.pk}/'

    assert {pool['title'] for pool in client_for(bob).get(url).json()['data']} == {'Surprise for Carol', 'Groceries'}
    assert [pool['title'] for pool in client_for(carol).get(url).json()['data']] == ['Groceries']


@pytest.mark.django_db
def test_pools_are_group_members_only(client_for, pool, outsider):
    assert client_for(outsider).get(f'{POOLS_URL}group/{pool.group_id}/').status_code == 403
    assert client_for(outsider).get(f'{POOLS_URL}{pool.pk}/').status_code == 404


@pytest.mark.django_db
def test_creator_deletes_pool(client_for, pool, alice, bob):
    assert client_for(bob).delete(f'{POOLS_URL}{pool.pk}/').status_code == 403
    assert client_for(alice).delete(f'{POOLS_URL}{pool.pk}/').status_code == 200
    assert not ContributionPool.objects.exists()
    assert not PoolMember.objects.exists()
