import pytest

from apps.notifications.models import Notification
from apps.trips.models import TripTask
from apps.trips.services.tasks import create_task, move_task, reorder_tasks, task_counts

pytestmark = pytest.mark.django_db


def _column(trip, column_id):
    return list(
        TripTask.objects.filter(trip=trip, column_id=column_id)
        .order_by('sort_order')
        .values_list('title', 'sort_order')
    )


@pytest.fixture
def board(trip, alice):
    return {
        title: create_task(trip, alice, title=title, column_id=column)
        for title, column in [
            ('Flights', 'todo'),
            ('Hotel', 'todo'),
            ('Car', 'todo'),
            ('Museum', 'booked'),
        ]
    }


def test_new_tasks_append_to_their_column(trip, board):
    assert _column(trip, 'todo') == [('Flights', 0), ('Hotel', 1), ('Car', 2)]
    assert _column(trip, 'booked') == [('Museum', 0)]


def test_move_across_columns_shifts_target_and_compacts_source(trip, board, alice):
    move_task(board['Hotel'], 'booked', 0, alice)

    assert _column(trip, 'booked') == [('Hotel', 0), ('Museum', 1)]
    assert _column(trip, 'todo') == [('Flights', 0), ('Car', 1)]


def test_move_within_column(trip, board, alice):
    moved = move_task(board['Car'], 'todo', 0, alice)

    assert moved.sort_order == 0
    assert [title for title, _ in _column(trip, 'todo')] == ['Car', 'Flights', 'Hotel']


def test_moving_into_confirmed_notifies_other_members(trip, board, alice, bob, carol):
    move_task(board['Museum'], 'confirmed', 0, alice)

    notified = set(Notification.objects.filter(type='task_confirmed').values_list('user_id', flat=True))
    assert notified == {bob.pk, carol.pk}
    assert Notification.objects.filter(type='task_confirmed').first().message == 'Alice marked "Museum" as confirmed'


def test_moving_within_confirmed_does_not_notify_again(trip, alice):
    task = create_task(trip, alice, title='Dinner', column_id='confirmed')
    move_task(task, 'confirmed', 0, alice)
    assert not Notification.objects.filter(type='task_confirmed').exists()


def test_reorder_follows_given_ids(trip, board):
    ids = [board['Car'].pk, board['Flights'].pk, board['Hotel'].pk]
    tasks = reorder_tasks(trip, 'todo', ids)
    assert [task.title for task in tasks] == ['Car', 'Flights', 'Hotel']


def test_task_counts_include_empty_columns(trip, board):
    assert task_counts(trip) == {
        'todo': 3, 'in-progress': 0, 'booked': 1, 'confirmed': 0, 'total': 4,
    }


def test_assigning_a_task_notifies_assignee(trip, alice, bob):
    create_task(trip, alice, title='Book ferry', assigned_to=bob)

    note = Notification.objects.get(type='task_assigned')
    assert note.user == bob
    assert note.message == 'Alice assigned you a task: "Book ferry"'
    assert note.link == f'/groups/{trip.group_id}/outings/{trip.pk}?tab=tasks'


def test_self_assignment_is_silent(trip, alice):
    create_task(trip, alice, title='Pack', assigned_to=alice)
    assert not Notification.objects.exists()


def test_task_endpoints(client_for, trip, alice, bob):
    base = f'/api/v1/trips/{trip.pk}/tasks/'
    client = client_for(bob)

    created = client.post(base, {'title': 'Snacks', 'labels': ['food'], 'assignedTo': str(alice.pk)}, format='json')
    assert created.status_code == 201
    task = created.json()['data']
    assert task['columnId'] == 'todo'
    assert task['assignedTo']['id'] == str(alice.pk)

    moved = client.post(f"{base}{task['id']}/move/", {'columnId': 'in-progress', 'sortOrder': 0}, format='json')
    assert moved.json()['data']['columnId'] == 'in-progress'

    counts = client.get(f'{base}counts/').json()['data']
    assert counts['in-progress'] == 1

    bad = client.post(f'{base}reorder/', {'columnId': 'todo', 'taskIds': [task['id']]}, format='json')
    assert bad.status_code == 400


def test_task_endpoints_are_members_only(client_for, trip, outsider):
    assert client_for(outsider).get(f'/api/v1/trips/{trip.pk}/tasks/').status_code == 403


def test_blank_title_is_rejected(client_for, trip, alice):
    response = client_for(alice).post(f'/api/v1/trips/{trip.pk}/tasks/', {'title': '   '}, format='json')
    assert response.status_code == 400
    assert response.json()['error']['message'] == 'Title is required'
