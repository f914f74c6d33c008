"""
Views for the Groups app.

Group membership gates every expense, poll and outing endpoint, so
these views only manage the roster itself; the rules live in
``apps.groups.services``.
"""
import logging

from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.groups.models import Group, GroupMember
from apps.groups.permissions import IsGroupAdmin, IsGroupMember
from apps.groups.serializers import (
    GroupCreateSerializer,
    GroupMemberRoleSerializer,
    GroupMemberSerializer,
    GroupSerializer,
    GroupUpdateSerializer,
    JoinGroupSerializer,
)
from apps.groups.services import (
    change_role,
    create_group,
    deactivate_group,
    join_group,
    leave_group,
    remove_member,
    rotate_invite_code,
)

logger = logging.getLogger(__name__)


class GroupViewSet(viewsets.ModelViewSet):
    """
    list:   GET    /api/v1/groups/
    create: POST   /api/v1/groups/
    read:   GET    /api/v1/groups/{id}/
    update: PATCH  /api/v1/groups/{id}/
    delete: DELETE /api/v1/groups/{id}/  (soft delete)
    """
    serializer_class = GroupSerializer
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return Group.objects.filter(
            members__user=self.request.user,
            is_active=True,
        ).prefetch_related('members').distinct()

    def get_permissions(self):
        if self.action in ('partial_update', 'destroy', 'regenerate_invite_code'):
            return [IsAuthenticated(), IsGroupAdmin()]
        return [IsAuthenticated()]

    def list(self, request, *args, **kwargs):
        return Response({
            'success': True,
            'data': GroupSerializer(self.get_queryset(), many=True).data,
        })

    def create(self, request, *args, **kwargs):
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = create_group(request.user, **serializer.validated_data)
        return Response(
            {'success': True, 'data': GroupSerializer(group).data},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': GroupSerializer(self.get_object()).data})

    def partial_update(self, request, *args, **kwargs):
        group = self.get_object()
        serializer = GroupUpdateSerializer(group, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': GroupSerializer(group).data})

    def destroy(self, request, *args, **kwargs):
        deactivate_group(self.get_object())
        return Response({'success': True, 'message': 'Group deactivated.'})

    @action(detail=True, methods=['post'], url_path='regenerate-code')
    def regenerate_invite_code(self, request, pk=None):
        code = rotate_invite_code(self.get_object())
        return Response({'success': True, 'data': {'inviteCode': code}})


class GroupMemberViewSet(viewsets.GenericViewSet):
    """
    Roster of one group. The list doubles as the member picker for
    expense splits.

    list:    GET    /api/v1/groups/{group_pk}/members/
    update:  PATCH  /api/v1/groups/{group_pk}/members/{id}/
    destroy: DELETE /api/v1/groups/{group_pk}/members/{id}/
    """
    serializer_class = GroupMemberSerializer

    def get_queryset(self):
        return GroupMember.objects.filter(
            group_id=self.kwargs['group_pk'],
        ).select_related('user')

    def get_permissions(self):
        if self.action in ('partial_update', 'destroy'):
            return [IsAuthenticated(), IsGroupAdmin()]
        return [IsAuthenticated(), IsGroupMember()]

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})

    def partial_update(self, request, *args, **kwargs):
        membership = self.get_object()
        serializer = GroupMemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        change_role(membership, serializer.validated_data['role'])
        return Response({'success': True, 'data': self.get_serializer(membership).data})

    def destroy(self, request, *args, **kwargs):
        remove_member(self.get_object())
        return Response({'success': True, 'message': 'Member removed.'})


class JoinGroupView(generics.GenericAPIView):
    """
    POST /api/v1/groups/join/   {"inviteCode": "ABCD2345"}
    """
    serializer_class = JoinGroupSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = serializer.validated_data['inviteCode']
        join_group(group, request.user)
        return Response(
            {
                'success': True,
                'data': GroupSerializer(group).data,
                'message': f'Successfully joined {group.name}.',
            },
            status=status.HTTP_201_CREATED,
        )


class LeaveGroupView(APIView):
    """
    DELETE /api/v1/groups/{group_pk}/leave/
    """

    def delete(self, request, group_pk):
        leave_group(group_pk, request.user)
        logger.info('User %s left group %s', request.user.pk, group_pk)
        return Response({'success': True, 'message': 'Successfully left the group.'})
