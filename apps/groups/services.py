"""
Membership rules for groups.

Views stay thin; everything that mutates a group or its roster lives
here and raises ``ActionFailed`` when a rule blocks the change.
"""
import logging

from django.db import transaction

from apps.groups.models import Group, GroupMember
from apps.groups.utils import generate_invite_code
from apps.notifications.models import Notification
from apps.notifications.services import notify
from common.exceptions import ActionFailed

logger = logging.getLogger(__name__)


def _admin_count(group_id):
    return GroupMember.objects.filter(group_id=group_id, role=GroupMember.Role.ADMIN).count()


def create_group(user, name, description='', photo=''):
    """Create a group with ``user`` as its first admin."""
    with transaction.atomic():
        group = Group.objects.create(
            name=name,
            description=description,
            photo=photo,
            created_by=user,
            invite_code=generate_invite_code(),
        )
        GroupMember.objects.create(group=group, user=user, role=GroupMember.Role.ADMIN)
    logger.info('Group %s created by %s', group.pk, user.pk)
    return group


def join_group(group, user):
    """
    Add ``user`` to ``group`` as a plain member and tell the rest of
    the roster.
    """
    membership = GroupMember.objects.create(group=group, user=user, role=GroupMember.Role.MEMBER)
    notify(
        group.member_user_ids(exclude=user),
        type=Notification.Type.MEMBER_JOINED,
        title='New Member',
        message=f'{user.name} joined {group.name}',
        link=f'/groups/{group.pk}',
        group=group,
    )
    return membership


def remove_member(membership, message='Cannot remove the last admin. Transfer admin role first.'):
    """Delete a membership unless it would leave the group without an admin."""
    if membership.role == GroupMember.Role.ADMIN and _admin_count(membership.group_id) <= 1:
        raise ActionFailed(message, code='last_admin')
    logger.info('User %s removed from group %s', membership.user_id, membership.group_id)
    membership.delete()


def leave_group(group_id, user):
    membership = GroupMember.objects.filter(group_id=group_id, user=user).first()
    if membership is None:
        raise ActionFailed('You are not a member of this group.', code='not_member')
    remove_member(membership, 'You are the last admin. Transfer admin role before leaving.')


def change_role(membership, role):
    """Demoting the only admin is blocked like removing them."""
    if (
        membership.role == GroupMember.Role.ADMIN
        and role != GroupMember.Role.ADMIN
        and _admin_count(membership.group_id) <= 1
    ):
        raise ActionFailed('A group needs at least one admin.', code='last_admin')
    membership.role = role
    membership.save(update_fields=['role', 'updated_at'])
    return membership


def rotate_invite_code(group):
    group.invite_code = generate_invite_code()
    group.save(update_fields=['invite_code', 'updated_at'])
    return group.invite_code


def deactivate_group(group):
    group.is_active = False
    group.save(update_fields=['is_active', 'updated_at'])
    logger.info('Group %s deactivated', group.pk)
