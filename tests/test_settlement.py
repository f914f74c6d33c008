from decimal import Decimal

import pytest

from apps.expenses.models import ExpenseSplit
from apps.expenses.services.settlement import settle_split, settle_up, unsettle_split

pytestmark = pytest.mark.django_db


def test_settle_and_unsettle_stamp_and_clear(make_expense, alice, bob):
    expense = make_expense(alice, [alice, bob])
    split = ExpenseSplit.objects.get(expense=expense, user=bob)

    settle_split(split, bob)
    split.refresh_from_db()
    assert split.is_settled
    assert split.settled_by == bob
    assert split.settled_at is not None

    unsettle_split(split)
    split.refresh_from_db()
    assert not split.is_settled
    assert split.settled_by is None
    assert split.settled_at is None


def test_settle_endpoints(client_for, make_expense, alice, bob):
    expense = make_expense(alice, [alice, bob])
    split = ExpenseSplit.objects.get(expense=expense, user=bob)

    response = client_for(bob).post(f'/api/v1/expenses/splits/{split.pk}/settle/')
    assert response.status_code == 200
    assert response.json()['data']['isSettled'] is True
    assert response.json()['data']['settledBy'] == str(bob.pk)

    response = client_for(bob).post(f'/api/v1/expenses/splits/{split.pk}/unsettle/')
    assert response.json()['data']['isSettled'] is False
    assert response.json()['data']['settledAt'] is None


def test_settle_endpoint_is_members_only(client_for, make_expense, alice, bob, outsider):
    expense = make_expense(alice, [alice, bob])
    split = ExpenseSplit.objects.get(expense=expense, user=bob)

    response = client_for(outsider).post(f'/api/v1/expenses/splits/{split.pk}/settle/')

    assert response.status_code == 403
    split.refresh_from_db()
    assert not split.is_settled


def test_settle_up_covers_both_directions_only(make_expense, group, alice, bob, carol):
    alice_paid = make_expense(alice, [alice, bob, carol], amount='30.00')
    bob_paid = make_expense(bob, [alice, bob], amount='20.00')

    count = settle_up(group.pk, alice, bob.pk)

    assert count == 2
    assert ExpenseSplit.objects.get(expense=alice_paid, user=bob).is_settled
    assert ExpenseSplit.objects.get(expense=bob_paid, user=alice).settled_by == alice
    # Carol's debt to Alice is a different pair
    assert not ExpenseSplit.objects.get(expense=alice_paid, user=carol).is_settled


def test_settle_up_twice_settles_nothing_more(make_expense, group, alice, bob):
    make_expense(alice, [alice, bob])
    assert settle_up(group.pk, alice, bob.pk) == 1
    assert settle_up(group.pk, alice, bob.pk) == 0


def test_settle_up_endpoint(client_for, make_expense, group, alice, bob):
    make_expense(bob, [alice, bob], amount='12.00')

    response = client_for(alice).post(
        '/api/v1/expenses/settle-up/',
        {'groupId': str(group.pk), 'withUserId': str(bob.pk)},
        format='json',
    )

    assert response.status_code == 200
    assert response.json()['data'] == {'count': 1}


def test_settle_up_with_self_is_rejected(client_for, group, alice):
    response = client_for(alice).post(
        '/api/v1/expenses/settle-up/',
        {'groupId': str(group.pk), 'withUserId': str(alice.pk)},
        format='json',
    )
    assert response.status_code == 400
    assert response.json()['error']['message'] == 'You cannot settle up with yourself.'


def test_settled_amounts_stay_on_the_split(make_expense, group, alice, bob):
    expense = make_expense(alice, [alice, bob], amount='9.99')
    settle_up(group.pk, bob, alice.pk)
    split = ExpenseSplit.objects.get(expense=expense, user=bob)
    assert split.amount == Decimal('4.99')
