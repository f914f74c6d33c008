"""
Result computation for each poll type.

Every function takes options with their votes already loaded (via
``prefetch_related('votes')``) and returns plain dicts, one per option.
"""
from collections import Counter

from apps.polls.models import Poll, PollVote


def multiple_choice_results(options):
    """Vote count and share of all votes, in option order."""
    counts = [(option, len(option.votes.all())) for option in options]
    total = sum(count for _, count in counts)
    return [
        {
            'option_id': option.pk,
            'option_text': option.option_text,
            'votes': count,
            'percentage': (count / total * 100) if total else 0,
        }
        for option, count in counts
    ]


def ranking_results(options):
    """
    Average rank per option, best (lowest) first.

    Options nobody ranked get ``None`` and sort last; ties keep option
    order.
    """
    results = []
    for option in options:
        ranks = [vote.rank for vote in option.votes.all() if vote.rank is not None]
        results.append({
            'option_id': option.pk,
            'option_text': option.option_text,
            'votes': len(ranks),
            'average_rank': sum(ranks) / len(ranks) if ranks else None,
        })

    results.sort(key=lambda row: float('inf') if row['average_rank'] is None else row['average_rank'])
    return results


def date_picker_results(options):
    results = []
    for option in options:
        counts = Counter(vote.availability for vote in option.votes.all())
        results.append({
            'option_id': option.pk,
            'option_text': option.option_text,
            'option_date': option.option_date,
            'available': counts[PollVote.Availability.AVAILABLE],
            'maybe': counts[PollVote.Availability.MAYBE],
            'unavailable': counts[PollVote.Availability.UNAVAILABLE],
        })
    return results


def lottery_entries(options):
    return [
        {
            'option_id': option.pk,
            'option_text': option.option_text,
            'suggested_by': option.created_by_id,
        }
        for option in options
    ]


TALLIES = {
    Poll.Type.MULTIPLE_CHOICE: multiple_choice_results,
    Poll.Type.RANKING: ranking_results,
    Poll.Type.DATE_PICKER: date_picker_results,
    Poll.Type.LOTTERY: lottery_entries,
}


def tally_poll(poll, options=None):
    """Results for *poll* according to its type."""
    if options is None:
        options = poll.options.prefetch_related('votes')
    return TALLIES[poll.poll_type](list(options))
