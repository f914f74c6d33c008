"""
Fan-out of notification rows to other group members.

Notifications are a side channel: a failed insert is logged and never
turns a successful action into a failed one.
"""
import logging

from django.db import DatabaseError, transaction

from apps.notifications.models import Notification

logger = logging.getLogger(__name__)


def notify(recipients, type, title, message='', link='', group=None):
    """
    Insert one notification per recipient user id.

    Parameters
    ----------
    recipients : iterable
        User ids (or ``None`` entries, which are skipped). Duplicates are
        collapsed.
    type : str
        One of ``Notification.Type``.
    title, message, link : str
        Display fields copied onto every row.
    group : Group | None
        The group the event happened in.

    Returns
    -------
    int
        Number of rows written.
    """
    user_ids = list(dict.fromkeys(uid for uid in recipients if uid))
    if not user_ids:
        return 0

    rows = [
        Notification(
            user_id=uid,
            type=type,
            title=title,
            message=message,
            link=link,
            group=group,
        )
        for uid in user_ids
    ]

    try:
        with transaction.atomic():
            Notification.objects.bulk_create(rows)
    except DatabaseError as exc:
        logger.error('Failed to write %d %s notifications: %s', len(rows), type, exc)
        return 0

    logger.debug('Wrote %d %s notifications', len(rows), type)
    return len(rows)
