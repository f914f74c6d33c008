import pytest

from apps.polls.models import Poll, PollOption, PollVote
from apps.polls.services.tally import tally_poll

pytestmark = pytest.mark.django_db


@pytest.fixture
def make_poll(group, alice):
    def _make_poll(poll_type, *texts):
        poll = Poll.objects.create(group=group, title='Q', poll_type=poll_type, created_by=alice)
        options = [
            PollOption.objects.create(poll=poll, option_text=text, sort_order=index, created_by=alice)
            for index, text in enumerate(texts)
        ]
        return poll, options
    return _make_poll


def _vote(option, user, **fields):
    return PollVote.objects.create(poll=option.poll, option=option, user=user, **fields)


def test_multiple_choice_percentages(make_poll, alice, bob, carol):
    poll, (a, b, c) = make_poll(Poll.Type.MULTIPLE_CHOICE, 'A', 'B', 'C')
    _vote(a, alice)
    _vote(a, bob)
    _vote(b, carol)

    results = tally_poll(poll)

    assert [row['votes'] for row in results] == [2, 1, 0]
    assert results[0]['percentage'] == pytest.approx(66.666, rel=1e-3)
    assert results[2]['percentage'] == 0


def test_multiple_choice_with_no_votes_has_zero_percentages(make_poll):
    poll, _ = make_poll(Poll.Type.MULTIPLE_CHOICE, 'A', 'B')
    assert [row['percentage'] for row in tally_poll(poll)] == [0, 0]


def test_ranking_orders_by_average_rank_with_unranked_last(make_poll, alice, bob):
    poll, (a, b, c) = make_poll(Poll.Type.RANKING, 'A', 'B', 'C')
    _vote(a, alice, rank=1)
    _vote(a, bob, rank=2)
    _vote(b, alice, rank=3)

    results = tally_poll(poll)

    assert [row['option_text'] for row in results] == ['A', 'B', 'C']
    assert [row['average_rank'] for row in results] == [1.5, 3.0, None]


def test_ranking_ties_keep_option_order(make_poll, alice):
    poll, (a, b) = make_poll(Poll.Type.RANKING, 'A', 'B')
    _vote(b, alice, rank=2)
    _vote(a, alice, rank=2)
    assert [row['option_text'] for row in tally_poll(poll)] == ['A', 'B']


def test_date_picker_counts_availability(make_poll, alice, bob, carol):
    poll, (first, second) = make_poll(Poll.Type.DATE_PICKER, 'Fri', 'Sat')
    _vote(first, alice, availability='available')
    _vote(first, bob, availability='maybe')
    _vote(first, carol, availability='available')
    _vote(second, alice, availability='unavailable')

    first_row, second_row = tally_poll(poll)

    assert (first_row['available'], first_row['maybe'], first_row['unavailable']) == (2, 1, 0)
    assert (second_row['available'], second_row['maybe'], second_row['unavailable']) == (0, 0, 1)


def test_lottery_lists_entries_with_suggesters(make_poll, alice):
    poll, _ = make_poll(Poll.Type.LOTTERY, 'Hike', 'Swim')
    entries = tally_poll(poll)
    assert [entry['option_text'] for entry in entries] == ['Hike', 'Swim']
    assert {entry['suggested_by'] for entry in entries} == {alice.pk}
