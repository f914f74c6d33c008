"""
Contribution pools: creating pools, logging contributions and reviewing
them, and managing each member's target.

Contribution states::

    pending -> confirmed -> refunded
    pending -> rejected

Only confirmed contributions count towards ``current_amount`` and each
member's ``total_contributed``; every state change recomputes both.
"""
import logging
from decimal import ROUND_CEILING, Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.groups.models import GroupMember
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.pools.models import ContributionPool, PoolContribution, PoolMember
from common.exceptions import ActionFailed

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')


def _pool_link(pool):
    return f'/groups/{pool.group_id}/pool?pool={pool.pk}'


def create_pool(group, user, member_ids=(), **fields):
    """
    Create a pool; the creator always joins it, along with *member_ids*.

    Each member starts with the pool's ``per_person_target`` as their
    target. Added members are notified.
    """
    with transaction.atomic():
        pool = ContributionPool.objects.create(group=group, created_by=user, **fields)
        others = [user_id for user_id in dict.fromkeys(member_ids) if user_id != user.pk]
        PoolMember.objects.bulk_create([
            PoolMember(pool=pool, user_id=user_id, target_amount=pool.per_person_target)
            for user_id in [user.pk, *others]
        ])

    logger.info('Pool %s created in group %s with %d members', pool.pk, group.pk, len(others) + 1)

    notify(
        others,
        Notification.Type.POOL_CREATED,
        title='New Pool',
        message=f'{user.name} started "{pool.title}" ({pool.currency} {pool.goal_amount})',
        link=_pool_link(pool),
        group=group,
    )
    return pool


def update_pool(pool, **fields):
    for name, value in fields.items():
        setattr(pool, name, value)
    pool.save()
    logger.info('Pool %s updated: %s', pool.pk, ', '.join(sorted(fields)))
    return pool


def refresh_totals(pool):
    """Recompute the pool total and per-member totals from confirmed rows."""
    confirmed = PoolContribution.objects.filter(pool=pool, status=PoolContribution.Status.CONFIRMED)

    pool.current_amount = confirmed.aggregate(total=Sum('amount'))['total'] or ZERO
    pool.save(update_fields=['current_amount', 'updated_at'])

    by_user = dict(
        confirmed.order_by().values('user_id').annotate(total=Sum('amount')).values_list('user_id', 'total')
    )
    members = list(PoolMember.objects.filter(pool=pool))
    for member in members:
        member.total_contributed = by_user.get(member.user_id, ZERO)
    PoolMember.objects.bulk_update(members, ['total_contributed'])
    return pool


def add_contribution(pool, user, amount, payment_method='', payment_reference='', notes=''):
    """
    Log a contribution from *user*.

    Contributors who are not yet pool members join with the pool's
    per-person target. Without ``require_confirmation`` the contribution
    counts straight away; otherwise it waits for the creator.

    Raises
    ------
    ActionFailed
        When the pool is not active, or when it only takes the fixed
        per-person amount and *amount* differs.
    """
    if pool.status != ContributionPool.Status.ACTIVE:
        raise ActionFailed('This pool is not accepting contributions.', code='pool_inactive')
    if not pool.allow_custom_amounts and pool.per_person_target and amount != pool.per_person_target:
        raise ActionFailed(
            f'This pool only accepts {pool.currency} {pool.per_person_target} per contribution.',
        )

    pending = pool.require_confirmation
    with transaction.atomic():
        PoolMember.objects.get_or_create(
            pool=pool,
            user=user,
            defaults={'target_amount': pool.per_person_target},
        )
        contribution = PoolContribution.objects.create(
            pool=pool,
            user=user,
            amount=amount,
            payment_method=payment_method,
            payment_reference=payment_reference.strip(),
            notes=notes.strip(),
            status=PoolContribution.Status.PENDING if pending else PoolContribution.Status.CONFIRMED,
            confirmed_by=None if pending else user,
            confirmed_at=None if pending else timezone.now(),
        )
        if not pending:
            refresh_totals(pool)

    logger.info('Contribution %s of %s to pool %s (%s)', contribution.pk, amount, pool.pk, contribution.status)

    if pending and pool.created_by_id != user.pk:
        notify(
            [pool.created_by_id],
            Notification.Type.CONTRIBUTION_PENDING,
            title='Contribution to Review',
            message=f'{user.name} contributed {pool.currency} {amount} to "{pool.title}"',
            link=_pool_link(pool),
            group=pool.group,
        )
    return contribution


def _require_status(contribution, status, message):
    if contribution.status != status:
        raise ActionFailed(message, code='invalid_status')


def confirm_contribution(contribution, user):
    _require_status(contribution, PoolContribution.Status.PENDING, 'Only pending contributions can be confirmed.')

    with transaction.atomic():
        contribution.status = PoolContribution.Status.CONFIRMED
        contribution.confirmed_by = user
        contribution.confirmed_at = timezone.now()
        contribution.save(update_fields=['status', 'confirmed_by', 'confirmed_at', 'updated_at'])
        refresh_totals(contribution.pool)

    logger.info('Contribution %s confirmed by %s', contribution.pk, user.pk)
    _notify_contributor(
        contribution,
        user,
        Notification.Type.CONTRIBUTION_CONFIRMED,
        'Contribution Confirmed',
        f'{user.name} confirmed your {contribution.pool.currency} {contribution.amount} '
        f'to "{contribution.pool.title}"',
    )
    return contribution


def reject_contribution(contribution, user, reason=''):
    _require_status(contribution, PoolContribution.Status.PENDING, 'Only pending contributions can be rejected.')

    contribution.status = PoolContribution.Status.REJECTED
    contribution.rejection_reason = reason.strip()
    contribution.save(update_fields=['status', 'rejection_reason', 'updated_at'])

    logger.info('Contribution %s rejected by %s', contribution.pk, user.pk)
    message = f'{user.name} rejected your {contribution.pool.currency} {contribution.amount} contribution'
    if contribution.rejection_reason:
        message = f'{message}: {contribution.rejection_reason}'
    _notify_contributor(
        contribution, user, Notification.Type.CONTRIBUTION_REJECTED, 'Contribution Rejected', message,
    )
    return contribution


def refund_contribution(contribution):
    _require_status(contribution, PoolContribution.Status.CONFIRMED, 'Only confirmed contributions can be refunded.')

    with transaction.atomic():
        contribution.status = PoolContribution.Status.REFUNDED
        contribution.save(update_fields=['status', 'updated_at'])
        refresh_totals(contribution.pool)

    logger.info('Contribution %s refunded', contribution.pk)
    return contribution


def _notify_contributor(contribution, user, type, title, message):
    if contribution.user_id == user.pk:
        return
    pool = contribution.pool
    notify([contribution.user_id], type, title=title, message=message, link=_pool_link(pool), group=pool.group)


def add_member(pool, user_id, target_amount=None):
    if not GroupMember.objects.filter(group_id=pool.group_id, user_id=user_id).exists():
        raise ActionFailed('Pool members must belong to the group.')
    if PoolMember.objects.filter(pool=pool, user_id=user_id).exists():
        raise ActionFailed('Already a member of this pool.', code='already_member')

    member = PoolMember.objects.create(
        pool=pool,
        user_id=user_id,
        target_amount=pool.per_person_target if target_amount is None else target_amount,
    )
    logger.info('User %s added to pool %s', user_id, pool.pk)
    return member


def update_member(member, **fields):
    """
    Change a member's target or exemption.

    Lifting an exemption clears its reason.
    """
    if 'target_amount' in fields:
        member.target_amount = fields['target_amount']
    if 'is_exempt' in fields:
        member.is_exempt = fields['is_exempt']
    if 'exempt_reason' in fields:
        member.exempt_reason = fields['exempt_reason'].strip()
    if not member.is_exempt:
        member.exempt_reason = ''
    member.save(update_fields=['target_amount', 'is_exempt', 'exempt_reason', 'updated_at'])
    return member


def recalculate_targets(pool):
    """
    Spread the goal evenly over non-exempt members, rounding up to the cent.

    Returns
    -------
    Decimal
        The new per-person target, also stored on the pool.
    """
    members = PoolMember.objects.filter(pool=pool, is_exempt=False)
    count = members.count()
    if not count:
        raise ActionFailed('No members to split between')

    per_person = (pool.goal_amount / count).quantize(CENT, rounding=ROUND_CEILING)
    with transaction.atomic():
        pool.per_person_target = per_person
        pool.save(update_fields=['per_person_target', 'updated_at'])
        members.update(target_amount=per_person, updated_at=timezone.now())

    logger.info('Pool %s targets recalculated: %s across %d members', pool.pk, per_person, count)
    return per_person


def member_progress(pool, user):
    """The caller's target, confirmed total and what is left, or None."""
    member = PoolMember.objects.filter(pool=pool, user=user).first()
    if member is None:
        return None
    return {
        'target': member.target_amount or ZERO,
        'contributed': member.total_contributed,
        'remaining': member.remaining,
    }
