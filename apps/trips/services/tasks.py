"""
Planning board operations for trip tasks.

Moves shift the cards at or below the drop slot and compact the column
the card left.
"""
import logging

from django.db import transaction
from django.db.models import Count, F, Max

from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.trips.constants import TaskColumn
from apps.trips.models import TripTask

logger = logging.getLogger(__name__)


def _task_link(trip):
    return f'/groups/{trip.group_id}/outings/{trip.pk}?tab=tasks'


def next_sort_order(trip, column_id):
    """Slot after the last card in *column_id*."""
    current = TripTask.objects.filter(
        trip=trip, column_id=column_id,
    ).aggregate(last=Max('sort_order'))['last']
    return 0 if current is None else current + 1


def notify_assignment(task, user):
    """Tell the assignee about the task unless they assigned it themselves."""
    if not task.assigned_to_id or task.assigned_to_id == user.pk:
        return 0
    return notify(
        [task.assigned_to_id],
        Notification.Type.TASK_ASSIGNED,
        title='New task assigned',
        message=f'{user.name} assigned you a task: "{task.title}"',
        link=_task_link(task.trip),
        group=task.trip.group,
    )


def create_task(trip, user, **fields):
    """
    Append a task to the end of its column and notify the assignee.

    Returns
    -------
    TripTask
    """
    column_id = fields.pop('column_id', TaskColumn.TODO)
    assigned_to = fields.get('assigned_to')

    with transaction.atomic():
        task = TripTask.objects.create(
            trip=trip,
            column_id=column_id,
            sort_order=next_sort_order(trip, column_id),
            assigned_by=user if assigned_to else None,
            created_by=user,
            **fields,
        )

    logger.info('Task %s created in %s/%s', task.pk, trip.pk, column_id)
    notify_assignment(task, user)
    return task


def update_task(task, user, **fields):
    """
    Update task fields. Reassigning stamps ``assigned_by`` and notifies
    the new assignee.
    """
    previous_assignee = task.assigned_to_id
    for name, value in fields.items():
        setattr(task, name, value)

    reassigned = 'assigned_to' in fields and task.assigned_to_id != previous_assignee
    if reassigned:
        task.assigned_by = user if task.assigned_to_id else None

    task.save()
    if reassigned:
        notify_assignment(task, user)
    return task


def move_task(task, column_id, sort_order, user):
    """
    Move *task* to position *sort_order* in *column_id*.

    Parameters
    ----------
    task : TripTask
    column_id : str
        Target column; one of ``TaskColumn``.
    sort_order : int
        Zero-based slot in the target column.
    user : User
        The member doing the move, used for the confirmation notice.

    Returns
    -------
    TripTask
        The moved task, refreshed.
    """
    old_column = task.column_id
    sort_order = max(int(sort_order), 0)

    with transaction.atomic():
        TripTask.objects.filter(
            trip_id=task.trip_id,
            column_id=column_id,
            sort_order__gte=sort_order,
        ).exclude(pk=task.pk).update(sort_order=F('sort_order') + 1)

        TripTask.objects.filter(pk=task.pk).update(
            column_id=column_id,
            sort_order=sort_order,
        )

        if old_column != column_id:
            _compact_column(task.trip_id, old_column)

    task.refresh_from_db()
    logger.debug('Task %s moved %s -> %s #%d', task.pk, old_column, column_id, sort_order)

    if column_id == TaskColumn.CONFIRMED and old_column != TaskColumn.CONFIRMED:
        trip = task.trip
        notify(
            trip.group.member_user_ids(exclude=user),
            Notification.Type.TASK_CONFIRMED,
            title='Task confirmed',
            message=f'{user.name} marked "{task.title}" as confirmed',
            link=_task_link(trip),
            group=trip.group,
        )

    return task


def reorder_tasks(trip, column_id, task_ids):
    """Rewrite ``sort_order`` in *column_id* to follow *task_ids*."""
    with transaction.atomic():
        for index, task_id in enumerate(task_ids):
            TripTask.objects.filter(
                pk=task_id, trip=trip, column_id=column_id,
            ).update(sort_order=index)
    return TripTask.objects.filter(trip=trip, column_id=column_id).order_by('sort_order')


def _compact_column(trip_id, column_id):
    tasks = TripTask.objects.filter(
        trip_id=trip_id, column_id=column_id,
    ).order_by('sort_order', 'created_at')
    for index, task in enumerate(tasks):
        if task.sort_order != index:
            TripTask.objects.filter(pk=task.pk).update(sort_order=index)


def task_counts(trip):
    """``{column_id: count}`` for every column, zeros included."""
    counts = {column: 0 for column in TaskColumn.values}
    rows = TripTask.objects.filter(trip=trip).values('column_id').annotate(total=Count('id'))
    for row in rows:
        counts[row['column_id']] = row['total']
    counts['total'] = sum(counts.values())
    return counts
