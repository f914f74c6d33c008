from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.expenses.models import Expense, ExpenseGuest, ExpenseReminder, ExpenseSplit
from apps.notifications.models import Notification

pytestmark = pytest.mark.django_db

EXPENSES_URL = '/api/v1/expenses/'


def _payload(group, users, **overrides):
    payload = {
        'groupId': str(group.pk),
        'description': 'Groceries',
        'amount': '10.00',
        'splitType': 'equal',
        'category': 'food',
        'splits': [{'userId': str(user.pk)} for user in users],
    }
    payload.update(overrides)
    return payload


def test_create_expense_splits_equally_and_settles_payer(client_for, group, alice, bob, carol):
    response = client_for(alice).post(EXPENSES_URL, _payload(group, [alice, bob, carol]), format='json')

    assert response.status_code == 201
    data = response.json()['data']
    assert data['paidBy'] == str(alice.pk)
    amounts = sorted(Decimal(split['amount']) for split in data['splits'])
    assert amounts == [Decimal('3.33'), Decimal('3.33'), Decimal('3.34')]

    payer_split = ExpenseSplit.objects.get(expense_id=data['id'], user=alice)
    assert payer_split.is_settled
    assert payer_split.settled_by == alice
    assert payer_split.settled_at is not None
    assert ExpenseSplit.objects.filter(expense_id=data['id'], is_settled=False).count() == 2


def test_create_expense_notifies_other_split_members(client_for, group, alice, bob, carol):
    client_for(alice).post(EXPENSES_URL, _payload(group, [alice, bob]), format='json')

    notified = set(Notification.objects.filter(type='expense_added').values_list('user_id', flat=True))
    assert notified == {bob.pk}


@pytest.mark.parametrize('overrides, message', [
    ({'description': '  '}, 'Description is required'),
    ({'amount': '0'}, 'Amount must be greater than 0'),
    ({'splits': []}, 'At least one split is required'),
])
def test_create_expense_validation_messages(client_for, group, alice, bob, overrides, message):
    response = client_for(alice).post(EXPENSES_URL, _payload(group, [alice, bob], **overrides), format='json')

    assert response.status_code == 400
    body = response.json()
    assert body['success'] is False
    assert body['error']['code'] == 'validation_error'
    assert body['error']['message'] == message
    assert not Expense.objects.exists()


def test_create_expense_requires_membership(client_for, group, outsider, alice):
    response = client_for(outsider).post(EXPENSES_URL, _payload(group, [alice]), format='json')
    assert response.status_code == 400
    assert not Expense.objects.exists()


def test_split_participants_must_be_group_members(client_for, group, alice, outsider):
    response = client_for(alice).post(EXPENSES_URL, _payload(group, [alice, outsider]), format='json')

    assert response.status_code == 400
    assert response.json()['error']['message'] == 'Participants must be members of this group.'
    assert not ExpenseSplit.objects.filter(user=outsider).exists()
    assert not Notification.objects.filter(user=outsider).exists()


@pytest.mark.parametrize('split_type, field', [('custom', 'amount'), ('percentage', 'percentage')])
def test_negative_shares_are_rejected(client_for, group, alice, bob, split_type, field):
    payload = _payload(group, [], amount='10.00', splitType=split_type, splits=[
        {'userId': str(alice.pk), field: '-5.00'},
        {'userId': str(bob.pk), field: '15.00'},
    ])
    response = client_for(alice).post(EXPENSES_URL, payload, format='json')

    assert response.status_code == 400
    assert not Expense.objects.exists()


def test_duplicate_participant_rolls_back_expense(client_for, group, alice, bob):
    response = client_for(alice).post(EXPENSES_URL, _payload(group, [alice, bob, bob]), format='json')

    assert response.status_code == 400
    assert response.json()['error']['code'] == 'store_error'
    assert not Expense.objects.exists()
    assert not ExpenseSplit.objects.exists()


def test_percentage_split_stores_percentages(client_for, group, alice, bob):
    payload = _payload(group, [], amount='80.00', splitType='percentage', splits=[
        {'userId': str(alice.pk), 'percentage': '25'},
        {'userId': str(bob.pk), 'percentage': '75'},
    ])
    response = client_for(alice).post(EXPENSES_URL, payload, format='json')

    assert response.status_code == 201
    split = ExpenseSplit.objects.get(user=bob)
    assert split.amount == Decimal('60.00')
    assert split.percentage == Decimal('75.00')


def test_custom_split_with_guest(client_for, group, alice, bob):
    guest = ExpenseGuest.objects.create(group=group, name='Gina', created_by=alice)
    payload = _payload(group, [], amount='50.00', splitType='custom', splits=[
        {'userId': str(bob.pk), 'amount': '20.00'},
        {'guestId': str(guest.pk), 'amount': '30.00'},
    ])
    response = client_for(alice).post(EXPENSES_URL, payload, format='json')

    assert response.status_code == 201
    assert ExpenseSplit.objects.get(guest=guest).amount == Decimal('30.00')


def test_only_creator_can_update_or_delete(client_for, make_expense, alice, bob):
    expense = make_expense(alice, [alice, bob])
    url = f'{EXPENSES_URL}{expense.pk}/'

    assert client_for(bob).patch(url, {'description': 'Hacked'}, format='json').status_code == 403
    assert client_for(bob).delete(url).status_code == 403

    response = client_for(alice).patch(url, {'description': 'Pizza', 'notes': 'extra cheese'}, format='json')
    assert response.status_code == 200
    expense.refresh_from_db()
    assert expense.description == 'Pizza'
    assert expense.notes == 'extra cheese'

    assert client_for(alice).delete(url).status_code == 200
    assert not ExpenseSplit.objects.filter(expense_id=expense.pk).exists()


def test_update_ignores_amount(client_for, make_expense, alice, bob):
    expense = make_expense(alice, [alice, bob], amount='30.00')
    client_for(alice).patch(f'{EXPENSES_URL}{expense.pk}/', {'amount': '999.00'}, format='json')
    expense.refresh_from_db()
    assert expense.amount == Decimal('30.00')


def test_outsider_cannot_read_expense(client_for, make_expense, alice, bob, outsider):
    expense = make_expense(alice, [alice, bob])
    response = client_for(outsider).get(f'{EXPENSES_URL}{expense.pk}/')
    assert response.status_code == 404


def test_group_listing_filters_by_settled_state(client_for, make_expense, group, alice, bob):
    make_expense(alice, [alice, bob], description='Dinner')
    make_expense(alice, [alice], description='Solo snack')

    url = f'{EXPENSES_URL}group/{group.pk}/'
    unsettled = client_for(alice).get(url, {'settled': 'unsettled'}).json()['data']
    assert [expense['description'] for expense in unsettled] == ['Dinner']
    assert [split['userId'] for split in unsettled[0]['splits']] == [str(bob.pk)]

    settled = client_for(alice).get(url, {'settled': 'settled'}).json()['data']
    assert {expense['description'] for expense in settled} == {'Dinner', 'Solo snack'}


def test_group_listing_search_and_category(client_for, make_expense, group, alice, bob):
    make_expense(alice, [alice, bob], description='Ferry tickets')
    make_expense(alice, [alice, bob], description='Dinner')

    url = f'{EXPENSES_URL}group/{group.pk}/'
    found = client_for(bob).get(url, {'search': 'ferry'}).json()['data']
    assert [expense['description'] for expense in found] == ['Ferry tickets']

    none = client_for(bob).get(url, {'category': 'transport'}).json()['data']
    assert none == []


def test_group_listing_is_members_only(client_for, group, outsider):
    response = client_for(outsider).get(f'{EXPENSES_URL}group/{group.pk}/')
    assert response.status_code == 403


def test_unauthenticated_request_is_rejected(api_client, group):
    response = api_client.get(f'{EXPENSES_URL}group/{group.pk}/')
    assert response.status_code == 401
    assert response.json()['error']['code'] == 'not_authenticated'


def test_receipt_upload_and_delete(client_for, make_expense, alice, bob, settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    expense = make_expense(alice, [alice, bob])
    url = f'{EXPENSES_URL}{expense.pk}/receipt/'
    upload = SimpleUploadedFile('receipt.png', b'\x89PNG fake', content_type='image/png')

    response = client_for(alice).post(url, {'file': upload}, format='multipart')

    assert response.status_code == 200
    receipt_url = response.json()['data']['receiptUrl']
    assert f'receipts/{expense.group_id}/{expense.pk}/' in receipt_url
    assert receipt_url.endswith('.png')
    stored = list((tmp_path / 'receipts').rglob('*.png'))
    assert len(stored) == 1

    assert client_for(alice).delete(url).status_code == 200
    expense.refresh_from_db()
    assert expense.receipt_url == ''
    assert not stored[0].exists()


def test_receipt_rejects_wrong_type(client_for, make_expense, alice, bob, settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    expense = make_expense(alice, [alice, bob])
    upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')

    response = client_for(alice).post(f'{EXPENSES_URL}{expense.pk}/receipt/', {'file': upload}, format='multipart')

    assert response.status_code == 400
    assert response.json()['error']['message'].startswith('Invalid file type')


def test_receipt_rejects_large_file(client_for, make_expense, alice, bob, settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    settings.RECEIPT_MAX_UPLOAD_SIZE = 1024 * 1024
    expense = make_expense(alice, [alice, bob])
    upload = SimpleUploadedFile('big.pdf', b'0' * (1024 * 1024 + 1), content_type='application/pdf')

    response = client_for(alice).post(f'{EXPENSES_URL}{expense.pk}/receipt/', {'file': upload}, format='multipart')

    assert response.status_code == 400
    assert response.json()['error']['message'] == 'File too large. Maximum size is 1MB.'


def test_guests_create_list_and_delete(client_for, group, alice, bob):
    guests_url = f'{EXPENSES_URL}guests/'

    blank = client_for(alice).post(guests_url, {'groupId': str(group.pk), 'name': ' '}, format='json')
    assert blank.json()['error']['message'] == 'Name is required'

    created = client_for(alice).post(guests_url, {'groupId': str(group.pk), 'name': 'Gina'}, format='json')
    assert created.status_code == 201
    guest_id = created.json()['data']['id']

    listed = client_for(bob).get(guests_url, {'group': str(group.pk)}).json()['data']
    assert [guest['name'] for guest in listed] == ['Gina']

    assert client_for(bob).delete(f'{guests_url}{guest_id}/').status_code == 403
    assert client_for(alice).delete(f'{guests_url}{guest_id}/').status_code == 200
    assert not ExpenseGuest.objects.exists()


def test_remind_records_and_notifies(client_for, make_expense, alice, bob):
    expense = make_expense(alice, [alice, bob])

    response = client_for(alice).post(
        f'{EXPENSES_URL}{expense.pk}/remind/',
        {'toUserId': str(bob.pk), 'message': 'Venmo me pls'},
        format='json',
    )

    assert response.status_code == 201
    assert ExpenseReminder.objects.get().to_user == bob
    reminder = Notification.objects.get(type='expense_reminder')
    assert reminder.user == bob
    assert reminder.title == 'Payment Reminder'
    assert 'Venmo me pls' in reminder.message


def test_split_preview_prices_family_units(client_for, trip, alice, bob, carol):
    from apps.trips.models import TripDependent

    kid = TripDependent.objects.create(
        trip=trip, name='Kid', type='child', age_group='child', responsible_member=alice, added_by=alice,
    )
    response = client_for(alice).post(f'{EXPENSES_URL}split-preview/', {
        'tripId': str(trip.pk),
        'basePrice': '100.00',
        'pricingMode': 'age',
        'selected': [f'member-{alice.pk}', f'dependent-{kid.pk}', f'member-{bob.pk}'],
    }, format='json')

    assert response.status_code == 200
    summary = response.json()['data']['summary']
    assert summary['totalPeople'] == 3
    totals = {row['memberId']: Decimal(str(row['totalAmount'])) for row in summary['byMember']}
    assert totals == {str(alice.pk): Decimal('150'), str(bob.pk): Decimal('100')}
