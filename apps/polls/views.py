"""
Views for the Polls app.
"""
import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.groups.models import Group
from apps.groups.permissions import IsGroupMember
from apps.polls.models import LotteryResult, Poll, PollOption
from apps.polls.serializers import (
    LotteryResultSerializer,
    OptionInputSerializer,
    PollCreateSerializer,
    PollDetailSerializer,
    PollOptionSerializer,
    PollSerializer,
    VoteSerializer,
)
from apps.polls.services.lottery import draw_lottery
from apps.polls.services.polls import add_option, cast_votes, close_poll, create_poll
from apps.polls.services.tally import tally_poll
from common.permissions import IsCreator

logger = logging.getLogger(__name__)


def _poll_queryset():
    return Poll.objects.select_related('created_by', 'group').prefetch_related(
        'votes',
        Prefetch(
            'options',
            queryset=PollOption.objects.select_related('created_by').prefetch_related('votes__user'),
        ),
    )


class PollViewSet(viewsets.ModelViewSet):
    """
    ViewSet for polls.

    create:         POST   /api/v1/polls/
    read:           GET    /api/v1/polls/{id}/
    delete:         DELETE /api/v1/polls/{id}/
    vote:           POST   /api/v1/polls/{id}/vote/
    close:          POST   /api/v1/polls/{id}/close/
    add option:     POST   /api/v1/polls/{id}/options/
    draw lottery:   POST   /api/v1/polls/{id}/draw/
    lottery result: GET    /api/v1/polls/{id}/lottery-result/
    """
    serializer_class = PollSerializer
    http_method_names = ['get', 'post', 'delete', 'head', 'options']

    def get_queryset(self):
        return _poll_queryset().filter(group__members__user=self.request.user).distinct()

    def get_permissions(self):
        if self.action in ('destroy', 'close'):
            return [IsAuthenticated(), IsGroupMember(), IsCreator()]
        return [IsAuthenticated(), IsGroupMember()]

    def _detail(self, poll):
        poll = _poll_queryset().get(pk=poll.pk)
        options = list(poll.options.all())
        serializer = PollDetailSerializer(
            poll,
            context={'request': self.request, 'results': tally_poll(poll, options)},
        )
        return serializer.data

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        group_id = request.query_params.get('group')
        if group_id:
            queryset = queryset.filter(group_id=group_id)
        return Response({
            'success': True,
            'data': PollSerializer(queryset, many=True, context={'request': request}).data,
        })

    def create(self, request, *args, **kwargs):
        serializer = PollCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        group = get_object_or_404(Group, pk=serializer.validated_data['groupId'])

        poll = create_poll(
            group,
            request.user,
            serializer.validated_data['options'],
            **serializer.poll_fields(),
        )
        return Response(
            {'success': True, 'data': self._detail(poll)},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self._detail(self.get_object())})

    def destroy(self, request, *args, **kwargs):
        poll = self.get_object()
        logger.info('Poll %s deleted by %s', poll.pk, request.user.pk)
        poll.delete()
        return Response({'success': True})

    @action(detail=True, methods=['post'])
    def vote(self, request, pk=None):
        """
        Replace the caller's votes.

        POST /api/v1/polls/{id}/vote/
        Body: {"votes": [{"optionId": "uuid", "rank": 1, "availability": "maybe"}]}
        """
        poll = self.get_object()
        serializer = VoteSerializer(data=request.data, context={'poll': poll})
        serializer.is_valid(raise_exception=True)
        cast_votes(poll, request.user, serializer.validated_data['votes'])
        return Response({'success': True, 'data': self._detail(poll)})

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        poll = close_poll(self.get_object())
        return Response({'success': True, 'data': self._detail(poll)})

    @action(detail=True, methods=['post'], url_path='options')
    def suggest_option(self, request, pk=None):
        poll = self.get_object()
        serializer = OptionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        option = add_option(
            poll,
            request.user,
            serializer.validated_data['text'],
            serializer.validated_data.get('date'),
        )
        return Response(
            {'success': True, 'data': PollOptionSerializer(option).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'])
    def draw(self, request, pk=None):
        result = draw_lottery(self.get_object(), request.user)
        return Response(
            {'success': True, 'data': LotteryResultSerializer(result).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['get'], url_path='lottery-result')
    def lottery_result(self, request, pk=None):
        poll = self.get_object()
        result = LotteryResult.objects.filter(poll=poll).select_related(
            'winner_option', 'suggested_by',
        ).first()
        data = LotteryResultSerializer(result).data if result else None
        return Response({'success': True, 'data': data})


class PollsByGroupView(generics.ListAPIView):
    """
    List polls for a group with voter counts.

    GET /api/v1/polls/group/{group_id}/
    """
    serializer_class = PollSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]

    def get_queryset(self):
        return _poll_queryset().filter(group_id=self.kwargs['group_id'])

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})
