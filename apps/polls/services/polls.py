"""
Creating polls, voting and suggesting options.
"""
import logging

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.polls.models import Poll, PollOption, PollVote
from common.exceptions import ActionFailed

logger = logging.getLogger(__name__)


def create_poll(group, user, options, **fields):
    """
    Create a poll with its initial options and tell the rest of the group.

    Parameters
    ----------
    group : Group
    user : User
    options : list[dict]
        ``{'text': str, 'date': date | None}`` in display order.
    **fields
        Poll model fields (``title``, ``poll_type``, ``settings``, ...).

    Returns
    -------
    Poll
    """
    fields['settings'] = {'allow_member_options': True, **(fields.get('settings') or {})}

    with transaction.atomic():
        poll = Poll.objects.create(group=group, created_by=user, **fields)
        PollOption.objects.bulk_create([
            PollOption(
                poll=poll,
                option_text=option['text'],
                option_date=option.get('date'),
                sort_order=index,
                created_by=user,
            )
            for index, option in enumerate(options)
        ])

    logger.info('Poll %s (%s) created in group %s', poll.pk, poll.poll_type, group.pk)

    notify(
        group.member_user_ids(exclude=user),
        Notification.Type.POLL_CREATED,
        title='New Poll',
        message=f'{user.name} created "{poll.title}"',
        link=f'/groups/{group.pk}/polls/{poll.pk}',
        group=group,
    )
    return poll


def ensure_open(poll):
    if poll.is_closed:
        raise ActionFailed('This poll is closed')


def cast_votes(poll, user, votes):
    """
    Replace *user*'s ballot on *poll* with *votes*.

    Parameters
    ----------
    votes : list[dict]
        ``{'option': PollOption, 'rank': int | None, 'availability': str | None}``.
    """
    ensure_open(poll)

    with transaction.atomic():
        PollVote.objects.filter(poll=poll, user=user).delete()
        created = PollVote.objects.bulk_create([
            PollVote(
                poll=poll,
                option=vote['option'],
                user=user,
                rank=vote.get('rank'),
                availability=vote.get('availability'),
            )
            for vote in votes
        ])

    logger.debug('User %s cast %d votes on poll %s', user.pk, len(created), poll.pk)
    return created


def add_option(poll, user, text, option_date=None):
    ensure_open(poll)

    if not poll.allow_member_options and poll.created_by_id != user.pk:
        raise ActionFailed('Adding options is not allowed for this poll')

    last = poll.options.aggregate(last=Max('sort_order'))['last']
    return PollOption.objects.create(
        poll=poll,
        option_text=text,
        option_date=option_date,
        sort_order=0 if last is None else last + 1,
        created_by=user,
    )


def close_poll(poll):
    poll.is_closed = True
    poll.save(update_fields=['is_closed', 'updated_at'])
    return poll


def close_expired_polls(now=None):
    """Close open polls whose deadline has passed. Returns the count."""
    now = now or timezone.now()
    return Poll.objects.filter(
        is_closed=False,
        closes_at__isnull=False,
        closes_at__lte=now,
    ).update(is_closed=True, updated_at=now)
