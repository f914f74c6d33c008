"""
Custom permissions for the Groups app.

Group-scoped objects (expenses, polls, pools, trips and their children) resolve
the owning group through ``_group_id_for`` so a single permission class
guards every app.
"""
from rest_framework.permissions import BasePermission

from apps.groups.models import Group, GroupMember


def _group_id_for(obj):
    """Walk from a group-scoped object up to its group id."""
    if isinstance(obj, Group):
        return obj.pk
    if getattr(obj, 'group_id', None):
        return obj.group_id
    for parent in ('trip', 'expense', 'poll', 'pool'):
        if hasattr(obj, f'{parent}_id'):
            return _group_id_for(getattr(obj, parent))
    return None


class IsGroupAdmin(BasePermission):
    """
    Allows access only to group admins.
    Checks the group from the object or from URL kwargs.
    """
    message = 'You must be a group admin to perform this action.'

    def has_object_permission(self, request, view, obj):
        group_id = _group_id_for(obj)
        if group_id is None:
            return False

        return GroupMember.objects.filter(
            group_id=group_id,
            user=request.user,
            role=GroupMember.Role.ADMIN,
        ).exists()

    def has_permission(self, request, view):
        group_pk = view.kwargs.get('group_pk') or view.kwargs.get('pk')
        if group_pk is None:
            return True  # Let object permission handle it

        return GroupMember.objects.filter(
            group_id=group_pk,
            user=request.user,
            role=GroupMember.Role.ADMIN,
        ).exists()


class IsGroupMember(BasePermission):
    """
    Allows access only to group members (any role).
    """
    message = 'You must be a group member to perform this action.'

    def has_object_permission(self, request, view, obj):
        group_id = _group_id_for(obj)
        if group_id is None:
            return False

        return GroupMember.objects.filter(
            group_id=group_id,
            user=request.user,
        ).exists()

    def has_permission(self, request, view):
        group_pk = view.kwargs.get('group_pk') or view.kwargs.get('group_id')
        if group_pk is None:
            return True

        return GroupMember.objects.filter(
            group_id=group_pk,
            user=request.user,
        ).exists()
