"""
Serializers for the Notifications app.
"""
from rest_framework import serializers

from apps.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True, allow_null=True)
    isRead = serializers.BooleanField(source='is_read', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'link', 'groupId', 'isRead', 'createdAt']
        read_only_fields = fields
