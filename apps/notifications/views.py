"""
Views for the Notifications app.
"""
from django.conf import settings
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.notifications.models import Notification
from apps.notifications.serializers import NotificationSerializer


class NotificationListView(APIView):
    """
    Latest notifications for the current user.

    GET /api/v1/notifications/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        notifications = Notification.objects.filter(
            user=request.user,
        ).order_by('-created_at')[:settings.NOTIFICATION_LIST_LIMIT]
        return Response({
            'success': True,
            'data': NotificationSerializer(notifications, many=True).data,
        })


class UnreadCountView(APIView):
    """
    GET /api/v1/notifications/unread-count/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        count = Notification.objects.filter(user=request.user, is_read=False).count()
        return Response({'success': True, 'data': {'count': count}})


class MarkReadView(APIView):
    """
    POST /api/v1/notifications/{id}/read/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        updated = Notification.objects.filter(id=pk, user=request.user).update(is_read=True)
        if not updated:
            return Response(
                {
                    'success': False,
                    'error': {
                        'code': 'not_found',
                        'message': 'Notification not found.',
                    },
                },
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({'success': True})


class MarkAllReadView(APIView):
    """
    POST /api/v1/notifications/read-all/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        count = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        return Response({'success': True, 'data': {'count': count}})
