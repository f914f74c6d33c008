"""
Drawing the winner of a lottery poll.
"""
import logging
import random

from django.db import IntegrityError, transaction

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.polls.models import LotteryResult, Poll
from common.exceptions import ActionFailed

logger = logging.getLogger(__name__)


def draw_lottery(poll, user):
    """
    Pick one option at random, record it and close the poll.

    Only the creator may draw, and only once. The suggester of the
    winning option hears that they won; everyone else (except the person
    drawing) hears what was picked.

    Raises
    ------
    ActionFailed
        When the caller is not the creator, the poll is not a lottery,
        a result already exists or there is nothing to draw from.

    Returns
    -------
    LotteryResult
    """
    if poll.created_by_id != user.pk:
        raise ActionFailed('Only the poll creator can draw the lottery')

    if poll.poll_type != Poll.Type.LOTTERY:
        raise ActionFailed('This is not a lottery poll')

    if LotteryResult.objects.filter(poll=poll).exists():
        raise ActionFailed('Lottery has already been drawn')

    options = list(poll.options.all())
    if not options:
        raise ActionFailed('No options in this lottery')

    winner = options[random.randrange(len(options))]

    try:
        with transaction.atomic():
            result = LotteryResult.objects.create(
                poll=poll,
                winner_option=winner,
                suggested_by_id=winner.created_by_id,
            )
            Poll.objects.filter(pk=poll.pk).update(is_closed=True)
    except IntegrityError:
        # Lost a race with a concurrent draw
        raise ActionFailed('Lottery has already been drawn')

    poll.is_closed = True
    logger.info('Lottery %s drawn by %s: option %s', poll.pk, user.pk, winner.pk)

    link = f'/groups/{poll.group_id}/polls/{poll.pk}'
    if winner.created_by_id and winner.created_by_id != user.pk:
        notify(
            [winner.created_by_id],
            Notification.Type.LOTTERY_WINNER,
            title='Your Suggestion Won!',
            message=f'Your suggestion "{winner.option_text}" won the lottery "{poll.title}"!',
            link=link,
            group=poll.group,
        )

    notify(
        [
            uid for uid in poll.group.member_user_ids(exclude=user)
            if uid != winner.created_by_id
        ],
        Notification.Type.LOTTERY_DRAWN,
        title='Lottery Drawn',
        message=f'"{winner.option_text}" was selected in "{poll.title}"',
        link=link,
        group=poll.group,
    )
    return result
