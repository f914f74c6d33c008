"""
Views for the Pools app.
"""
import logging

from django.db.models import Prefetch, Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.groups.models import Group
from apps.groups.permissions import IsGroupMember
from apps.pools.models import ContributionPool, PoolContribution, PoolMember
from apps.pools.serializers import (
    ContributionInputSerializer,
    MemberProgressSerializer,
    PoolContributionSerializer,
    PoolCreateSerializer,
    PoolDetailSerializer,
    PoolMemberInputSerializer,
    PoolMemberSerializer,
    PoolMemberUpdateSerializer,
    PoolSerializer,
    PoolUpdateSerializer,
    RejectContributionSerializer,
)
from apps.pools.services import (
    add_contribution,
    add_member,
    confirm_contribution,
    create_pool,
    member_progress,
    recalculate_targets,
    refund_contribution,
    reject_contribution,
    update_member,
    update_pool,
)
from common.permissions import IsCreatorOrReadOnly

logger = logging.getLogger(__name__)

UUID_PATTERN = r'[0-9a-fA-F-]{36}'


def _pool_queryset():
    return ContributionPool.objects.select_related('created_by', 'group').prefetch_related(
        Prefetch('members', queryset=PoolMember.objects.select_related('user')),
        Prefetch('contributions', queryset=PoolContribution.objects.select_related('user', 'confirmed_by')),
    )


def _visible_pools(user):
    """Pools in the caller's groups; private ones only for their members."""
    return _pool_queryset().filter(group__members__user=user).filter(
        Q(is_private=False) | Q(created_by=user) | Q(members__user=user),
    ).distinct()


class ContributionPoolViewSet(viewsets.ModelViewSet):
    """
    ViewSet for contribution pools.

    create:       POST   /api/v1/pools/
    read:         GET    /api/v1/pools/{id}/
    update:       PATCH  /api/v1/pools/{id}/
    delete:       DELETE /api/v1/pools/{id}/
    contribute:   POST   /api/v1/pools/{id}/contributions/
    confirm:      POST   /api/v1/pools/{id}/contributions/{contribution_id}/confirm/
    reject:       POST   /api/v1/pools/{id}/contributions/{contribution_id}/reject/
    refund:       POST   /api/v1/pools/{id}/contributions/{contribution_id}/refund/
    add member:   POST   /api/v1/pools/{id}/members/
    edit member:  PATCH  /api/v1/pools/{id}/members/{user_id}/
    recalculate:  POST   /api/v1/pools/{id}/recalculate/
    progress:     GET    /api/v1/pools/{id}/progress/

    Everything that changes a pool, its members or the review state of a
    contribution is limited to the pool creator.
    """
    serializer_class = PoolSerializer
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return _visible_pools(self.request.user)

    def get_permissions(self):
        if self.action in ('create', 'contribute'):
            return [IsAuthenticated(), IsGroupMember()]
        return [IsAuthenticated(), IsGroupMember(), IsCreatorOrReadOnly()]

    def _detail(self, pool):
        return PoolDetailSerializer(_pool_queryset().get(pk=pool.pk)).data

    def _contribution(self, pool, contribution_pk):
        return get_object_or_404(
            PoolContribution.objects.select_related('pool', 'user'),
            pk=contribution_pk,
            pool=pool,
        )

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        group_id = request.query_params.get('group')
        if group_id:
            queryset = queryset.filter(group_id=group_id)
        return Response({'success': True, 'data': PoolSerializer(queryset, many=True).data})

    def create(self, request, *args, **kwargs):
        serializer = PoolCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        group = get_object_or_404(Group, pk=serializer.validated_data['groupId'])

        pool = create_pool(
            group,
            request.user,
            serializer.validated_data.get('memberIds') or [],
            **serializer.pool_fields(),
        )
        return Response(
            {'success': True, 'data': self._detail(pool)},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self._detail(self.get_object())})

    def partial_update(self, request, *args, **kwargs):
        pool = self.get_object()
        serializer = PoolUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_pool(pool, **serializer.pool_fields())
        return Response({'success': True, 'data': self._detail(pool)})

    def destroy(self, request, *args, **kwargs):
        pool = self.get_object()
        logger.info('Pool %s deleted by %s', pool.pk, request.user.pk)
        pool.delete()
        return Response({'success': True, 'message': 'Pool deleted.'})

    @action(detail=True, methods=['post'], url_path='contributions')
    def contribute(self, request, pk=None):
        pool = self.get_object()
        serializer = ContributionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        contribution = add_contribution(
            pool,
            request.user,
            data['amount'],
            payment_method=data['paymentMethod'],
            payment_reference=data['paymentReference'],
            notes=data['notes'],
        )
        return Response(
            {'success': True, 'data': PoolContributionSerializer(contribution).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path=rf'contributions/(?P<contribution_pk>{UUID_PATTERN})/confirm')
    def confirm(self, request, pk=None, contribution_pk=None):
        contribution = self._contribution(self.get_object(), contribution_pk)
        confirm_contribution(contribution, request.user)
        return Response({'success': True, 'data': PoolContributionSerializer(contribution).data})

    @action(detail=True, methods=['post'], url_path=rf'contributions/(?P<contribution_pk>{UUID_PATTERN})/reject')
    def reject(self, request, pk=None, contribution_pk=None):
        contribution = self._contribution(self.get_object(), contribution_pk)
        serializer = RejectContributionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reject_contribution(contribution, request.user, serializer.validated_data['reason'])
        return Response({'success': True, 'data': PoolContributionSerializer(contribution).data})

    @action(detail=True, methods=['post'], url_path=rf'contributions/(?P<contribution_pk>{UUID_PATTERN})/refund')
    def refund(self, request, pk=None, contribution_pk=None):
        contribution = self._contribution(self.get_object(), contribution_pk)
        refund_contribution(contribution)
        return Response({'success': True, 'data': PoolContributionSerializer(contribution).data})

    @action(detail=True, methods=['post'], url_path='members')
    def add_pool_member(self, request, pk=None):
        pool = self.get_object()
        serializer = PoolMemberInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = add_member(
            pool,
            serializer.validated_data['userId'],
            serializer.validated_data.get('targetAmount'),
        )
        member = PoolMember.objects.select_related('user').get(pk=member.pk)
        return Response(
            {'success': True, 'data': PoolMemberSerializer(member).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['patch'], url_path=rf'members/(?P<user_pk>{UUID_PATTERN})')
    def edit_pool_member(self, request, pk=None, user_pk=None):
        pool = self.get_object()
        member = get_object_or_404(PoolMember.objects.select_related('user'), pool=pool, user_id=user_pk)
        serializer = PoolMemberUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        update_member(member, **serializer.member_fields())
        return Response({'success': True, 'data': PoolMemberSerializer(member).data})

    @action(detail=True, methods=['post'])
    def recalculate(self, request, pk=None):
        per_person = recalculate_targets(self.get_object())
        return Response({
            'success': True,
            'data': {'perPerson': str(per_person)},
        })

    @action(detail=True, methods=['get'])
    def progress(self, request, pk=None):
        progress = member_progress(self.get_object(), request.user)
        data = MemberProgressSerializer(progress).data if progress else None
        return Response({'success': True, 'data': data})


class PoolsByGroupView(generics.ListAPIView):
    """
    List the pools of a group, newest first.

    GET /api/v1/pools/group/{group_id}/
    """
    serializer_class = PoolSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]

    def get_queryset(self):
        return _visible_pools(self.request.user).filter(group_id=self.kwargs['group_id'])

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})
