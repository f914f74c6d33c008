"""
Celery tasks for poll housekeeping.
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    name='apps.polls.tasks.close_expired_polls',
    soft_time_limit=60,
    time_limit=90,
)
def close_expired_polls():
    """
    Close every open poll whose ``closes_at`` has passed.

    Returns
    -------
    int
        Number of polls closed.
    """
    from apps.polls.services.polls import close_expired_polls as close_expired

    closed = close_expired()
    if closed:
        logger.info('Closed %d expired polls.', closed)
    return closed
