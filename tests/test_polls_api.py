from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.notifications.models import Notification
from apps.polls.models import LotteryResult, Poll, PollOption, PollVote
from apps.polls.services.lottery import draw_lottery
from apps.polls.services.polls import close_expired_polls, create_poll
from apps.polls.tasks import close_expired_polls as close_expired_polls_task
from common.exceptions import ActionFailed

pytestmark = pytest.mark.django_db

POLLS_URL = '/api/v1/polls/'


def _create(client, group, **overrides):
    payload = {
        'groupId': str(group.pk),
        'title': 'Where to eat?',
        'pollType': 'multiple_choice',
        'options': [{'text': 'Tacos'}, {'text': 'Ramen'}],
    }
    payload.update(overrides)
    return client.post(POLLS_URL, payload, format='json')


def test_create_poll_defaults_member_options_and_notifies(client_for, group, alice, bob, carol):
    response = _create(client_for(alice), group)

    assert response.status_code == 201
    data = response.json()['data']
    assert data['settings']['allow_member_options'] is True
    assert [option['optionText'] for option in data['options']] == ['Tacos', 'Ramen']
    notified = set(Notification.objects.filter(type='poll_created').values_list('user_id', flat=True))
    assert notified == {bob.pk, carol.pk}


@pytest.mark.parametrize('overrides, message', [
    ({'title': ' '}, 'Title is required'),
    ({'options': [{'text': 'Only one'}]}, 'At least 2 options are required'),
])
def test_create_poll_validation(client_for, group, alice, overrides, message):
    response = _create(client_for(alice), group, **overrides)
    assert response.status_code == 400
    assert response.json()['error']['message'] == message
    assert not Poll.objects.exists()


def test_vote_replaces_previous_ballot(client_for, group, alice, bob):
    poll_id = _create(client_for(alice), group).json()['data']['id']
    tacos, ramen = PollOption.objects.filter(poll_id=poll_id).order_by('sort_order')
    client = client_for(bob)

    client.post(f'{POLLS_URL}{poll_id}/vote/', {'votes': [{'optionId': str(tacos.pk)}]}, format='json')
    response = client.post(f'{POLLS_URL}{poll_id}/vote/', {'votes': [{'optionId': str(ramen.pk)}]}, format='json')

    assert response.status_code == 200
    assert list(PollVote.objects.filter(user=bob).values_list('option_id', flat=True)) == [ramen.pk]
    results = {row['option_text']: row['votes'] for row in response.json()['data']['results']}
    assert results == {'Tacos': 0, 'Ramen': 1}
    assert response.json()['data']['hasVoted'] is True


def test_vote_on_foreign_option_is_rejected(client_for, group, alice, bob):
    first = _create(client_for(alice), group).json()['data']['id']
    second = _create(client_for(alice), group).json()['data']['id']
    foreign = PollOption.objects.filter(poll_id=second).first()

    response = client_for(bob).post(
        f'{POLLS_URL}{first}/vote/', {'votes': [{'optionId': str(foreign.pk)}]}, format='json',
    )
    assert response.status_code == 400


def test_closed_poll_rejects_votes(client_for, group, alice, bob):
    poll_id = _create(client_for(alice), group).json()['data']['id']
    option = PollOption.objects.filter(poll_id=poll_id).first()

    assert client_for(bob).post(f'{POLLS_URL}{poll_id}/close/').status_code == 403
    assert client_for(alice).post(f'{POLLS_URL}{poll_id}/close/').status_code == 200

    response = client_for(bob).post(
        f'{POLLS_URL}{poll_id}/vote/', {'votes': [{'optionId': str(option.pk)}]}, format='json',
    )
    assert response.status_code == 400
    assert response.json()['error'] == {'code': 'action_failed', 'message': 'This poll is closed'}


def test_members_can_suggest_options_unless_disabled(client_for, group, alice, bob):
    open_poll = _create(client_for(alice), group).json()['data']['id']
    locked_poll = _create(client_for(alice), group, settings={'allow_member_options': False}).json()['data']['id']

    added = client_for(bob).post(f'{POLLS_URL}{open_poll}/options/', {'text': 'Pho'}, format='json')
    assert added.status_code == 201
    assert added.json()['data']['sortOrder'] == 2

    blocked = client_for(bob).post(f'{POLLS_URL}{locked_poll}/options/', {'text': 'Pho'}, format='json')
    assert blocked.status_code == 400
    assert blocked.json()['error']['message'] == 'Adding options is not allowed for this poll'

    own = client_for(alice).post(f'{POLLS_URL}{locked_poll}/options/', {'text': 'Pho'}, format='json')
    assert own.status_code == 201


def test_anonymous_poll_hides_voters(client_for, group, alice, bob):
    poll_id = _create(client_for(alice), group, settings={'anonymous': True}).json()['data']['id']
    option = PollOption.objects.filter(poll_id=poll_id).first()
    client_for(bob).post(f'{POLLS_URL}{poll_id}/vote/', {'votes': [{'optionId': str(option.pk)}]}, format='json')

    data = client_for(alice).get(f'{POLLS_URL}{poll_id}/').json()['data']
    votes = [vote for opt in data['options'] for vote in opt['votes']]
    assert len(votes) == 1
    assert votes[0]['user'] is None


def test_group_listing_counts_unique_voters(client_for, group, alice, bob):
    poll_id = _create(client_for(alice), group, pollType='ranking').json()['data']['id']
    tacos, ramen = PollOption.objects.filter(poll_id=poll_id).order_by('sort_order')
    client_for(bob).post(f'{POLLS_URL}{poll_id}/vote/', {'votes': [
        {'optionId': str(tacos.pk), 'rank': 1},
        {'optionId': str(ramen.pk), 'rank': 2},
    ]}, format='json')

    polls = client_for(alice).get(f'{POLLS_URL}group/{group.pk}/').json()['data']

    assert polls[0]['voteCount'] == 1
    assert polls[0]['hasVoted'] is False


def test_outsider_cannot_see_group_polls(client_for, group, outsider):
    assert client_for(outsider).get(f'{POLLS_URL}group/{group.pk}/').status_code == 403


@pytest.fixture
def lottery(group, alice, bob):
    poll = create_poll(group, alice, [{'text': 'Hike'}], title='Sunday?', poll_type=Poll.Type.LOTTERY)
    PollOption.objects.create(poll=poll, option_text='Kayak', sort_order=1, created_by=bob)
    return poll


def test_draw_lottery_records_winner_and_closes(lottery, alice, bob, carol):
    with mock.patch('apps.polls.services.lottery.random.randrange', return_value=1):
        result = draw_lottery(lottery, alice)

    lottery.refresh_from_db()
    assert lottery.is_closed
    assert result.winner_option.option_text == 'Kayak'
    assert result.suggested_by == bob
    assert Notification.objects.get(type='lottery_winner').user == bob
    drawn = set(Notification.objects.filter(type='lottery_drawn').values_list('user_id', flat=True))
    assert drawn == {carol.pk}


def test_lottery_can_only_be_drawn_once(lottery, alice):
    draw_lottery(lottery, alice)
    with pytest.raises(ActionFailed, match='Lottery has already been drawn'):
        draw_lottery(lottery, alice)
    assert LotteryResult.objects.count() == 1


def test_only_creator_draws(lottery, bob):
    with pytest.raises(ActionFailed, match='Only the poll creator can draw the lottery'):
        draw_lottery(lottery, bob)


def test_draw_requires_lottery_poll(group, alice):
    poll = create_poll(group, alice, [{'text': 'A'}, {'text': 'B'}], title='Plain', poll_type=Poll.Type.MULTIPLE_CHOICE)
    with pytest.raises(ActionFailed, match='This is not a lottery poll'):
        draw_lottery(poll, alice)


def test_draw_and_result_endpoints(client_for, lottery, alice, bob):
    url = f'{POLLS_URL}{lottery.pk}/'
    assert client_for(bob).get(f'{url}lottery-result/').json()['data'] is None

    drawn = client_for(alice).post(f'{url}draw/')
    assert drawn.status_code == 201

    again = client_for(alice).post(f'{url}draw/')
    assert again.status_code == 400
    assert again.json()['error']['message'] == 'Lottery has already been drawn'

    result = client_for(bob).get(f'{url}lottery-result/').json()['data']
    assert result['winnerOptionId'] == drawn.json()['data']['winnerOptionId']


def test_close_expired_polls(group, alice):
    now = timezone.now()
    expired = create_poll(group, alice, [{'text': 'A'}, {'text': 'B'}], title='Old', closes_at=now - timedelta(minutes=1))
    future = create_poll(group, alice, [{'text': 'A'}, {'text': 'B'}], title='New', closes_at=now + timedelta(days=1))
    open_ended = create_poll(group, alice, [{'text': 'A'}, {'text': 'B'}], title='Open')

    assert close_expired_polls(now) == 1
    assert Poll.objects.get(pk=expired.pk).is_closed
    assert not Poll.objects.get(pk=future.pk).is_closed
    assert not Poll.objects.get(pk=open_ended.pk).is_closed


def test_close_expired_polls_task_runs_inline(group, alice):
    create_poll(group, alice, [{'text': 'A'}, {'text': 'B'}], title='Old', closes_at=timezone.now() - timedelta(hours=1))
    assert close_expired_polls_task() == 1


def test_poll_creator_points_at_user_model_and_settings_stay_json(group, alice):
    from django.contrib.auth import get_user_model

    assert Poll._meta.get_field('created_by').related_model is get_user_model()
    poll = Poll.objects.create(group=group, title='Bring snacks?', created_by=alice)
    poll.refresh_from_db()
    assert poll.settings == {'allow_member_options': True}
    assert poll.created_by == alice
