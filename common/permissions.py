"""
Common permission classes for the Rally project.
"""
from rest_framework.permissions import SAFE_METHODS, BasePermission


class IsCreator(BasePermission):
    """
    Object-level permission: only the user who created the object can act on it.
    Assumes the model has a ``created_by`` field.
    """
    message = 'Only the creator can perform this action.'

    def has_object_permission(self, request, view, obj):
        return getattr(obj, 'created_by_id', None) == request.user.pk


class IsCreatorOrReadOnly(BasePermission):
    """
    Object-level permission: anyone can read, only the creator can modify.
    """
    message = 'Only the creator can modify this.'

    def has_object_permission(self, request, view, obj):
        # Read permissions are allowed to any request
        if request.method in SAFE_METHODS:
            return True
        return getattr(obj, 'created_by_id', None) == request.user.pk
