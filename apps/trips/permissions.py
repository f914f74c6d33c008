"""
Custom permissions for the Trips app.
"""
from rest_framework.permissions import BasePermission

from apps.groups.models import GroupMember
from apps.trips.models import Trip


class IsTripGroupMember(BasePermission):
    """
    Allows access only to members of the group that owns the trip.
    Works for trips themselves and for routes nested under ``trip_pk``.
    """
    message = 'You must be a member of the trip group.'

    def has_permission(self, request, view):
        trip_pk = view.kwargs.get('trip_pk')
        if trip_pk is None:
            return True

        return GroupMember.objects.filter(
            group__trips__pk=trip_pk,
            user=request.user,
        ).exists()

    def has_object_permission(self, request, view, obj):
        trip = obj if isinstance(obj, Trip) else obj.trip
        return GroupMember.objects.filter(
            group_id=trip.group_id,
            user=request.user,
        ).exists()
