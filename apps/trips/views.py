"""
Views for the Trips app.
"""
import logging

from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.trips.models import Trip, TripDependent, TripTask
from apps.trips.permissions import IsTripGroupMember
from apps.trips.serializers import (
    FamilyUnitSerializer,
    TaskMoveSerializer,
    TaskReorderSerializer,
    TripDependentSerializer,
    TripDependentWriteSerializer,
    TripSerializer,
    TripTaskSerializer,
    TripTaskWriteSerializer,
    TripWriteSerializer,
)
from apps.trips.services.family import build_family_units, count_by_age_group
from apps.trips.services.tasks import (
    create_task,
    move_task,
    reorder_tasks,
    task_counts,
    update_task,
)

logger = logging.getLogger(__name__)


class TripViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Trip CRUD operations.

    list:   GET    /api/v1/trips/?group=<group_id>
    create: POST   /api/v1/trips/
    read:   GET    /api/v1/trips/{id}/
    update: PATCH  /api/v1/trips/{id}/
    delete: DELETE /api/v1/trips/{id}/
    """
    permission_classes = [IsAuthenticated, IsTripGroupMember]
    serializer_class = TripSerializer

    def get_queryset(self):
        queryset = Trip.objects.filter(
            group__members__user=self.request.user,
        ).select_related('created_by', 'group').distinct()

        group_id = self.request.query_params.get('group')
        if group_id:
            queryset = queryset.filter(group_id=group_id)

        trip_status = self.request.query_params.get('status')
        if trip_status:
            queryset = queryset.filter(status=trip_status)

        return queryset

    def list(self, request, *args, **kwargs):
        serializer = TripSerializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = TripWriteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        trip = serializer.save()
        logger.info('Trip %s created in group %s', trip.pk, trip.group_id)
        return Response(
            {
                'success': True,
                'data': TripSerializer(trip).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return Response({'success': True, 'data': TripSerializer(instance).data})

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = TripWriteSerializer(
            instance, data=request.data, partial=True, context={'request': request},
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': TripSerializer(instance).data})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        instance.delete()
        return Response({'success': True})


class TripScopedMixin:
    """Resolves the parent trip from ``trip_pk`` for nested routes."""

    def get_trip(self):
        if not hasattr(self, '_trip'):
            self._trip = get_object_or_404(
                Trip.objects.select_related('group'), pk=self.kwargs['trip_pk'],
            )
        return self._trip


class TripTaskViewSet(TripScopedMixin, viewsets.ModelViewSet):
    """
    Planning board for a trip.

    list:    GET    /api/v1/trips/{trip_id}/tasks/
    create:  POST   /api/v1/trips/{trip_id}/tasks/
    read:    GET    /api/v1/trips/{trip_id}/tasks/{id}/
    update:  PATCH  /api/v1/trips/{trip_id}/tasks/{id}/
    delete:  DELETE /api/v1/trips/{trip_id}/tasks/{id}/
    move:    POST   /api/v1/trips/{trip_id}/tasks/{id}/move/
    reorder: POST   /api/v1/trips/{trip_id}/tasks/reorder/
    counts:  GET    /api/v1/trips/{trip_id}/tasks/counts/
    """
    permission_classes = [IsAuthenticated, IsTripGroupMember]
    serializer_class = TripTaskSerializer

    def get_queryset(self):
        return TripTask.objects.filter(
            trip_id=self.kwargs['trip_pk'],
        ).select_related('assigned_to', 'trip')

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        column_id = request.query_params.get('column')
        if column_id:
            queryset = queryset.filter(column_id=column_id)
        return Response({
            'success': True,
            'data': TripTaskSerializer(queryset, many=True).data,
        })

    def create(self, request, *args, **kwargs):
        trip = self.get_trip()
        serializer = TripTaskWriteSerializer(
            data=request.data,
            context={'request': request, 'trip': trip, 'creating': True},
        )
        serializer.is_valid(raise_exception=True)
        task = create_task(trip, request.user, **serializer.to_model_fields())
        return Response(
            {
                'success': True,
                'data': TripTaskSerializer(task).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': TripTaskSerializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        task = self.get_object()
        serializer = TripTaskWriteSerializer(
            data=request.data,
            context={'request': request, 'trip': task.trip},
        )
        serializer.is_valid(raise_exception=True)
        fields = serializer.to_model_fields()
        # Column changes go through move so the ordering stays consistent
        fields.pop('column_id', None)
        task = update_task(task, request.user, **fields)
        return Response({'success': True, 'data': TripTaskSerializer(task).data})

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({'success': True})

    @action(detail=True, methods=['post'])
    def move(self, request, trip_pk=None, pk=None):
        """
        POST /api/v1/trips/{trip_id}/tasks/{id}/move/
        Body: {"columnId": "booked", "sortOrder": 0}
        """
        task = self.get_object()
        serializer = TaskMoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = move_task(
            task,
            serializer.validated_data['columnId'],
            serializer.validated_data['sortOrder'],
            request.user,
        )
        return Response({'success': True, 'data': TripTaskSerializer(task).data})

    @action(detail=False, methods=['post'])
    def reorder(self, request, trip_pk=None):
        """
        POST /api/v1/trips/{trip_id}/tasks/reorder/
        Body: {"columnId": "todo", "taskIds": ["uuid1", "uuid2"]}
        """
        trip = self.get_trip()
        serializer = TaskReorderSerializer(data=request.data, context={'trip': trip})
        serializer.is_valid(raise_exception=True)
        tasks = reorder_tasks(
            trip,
            serializer.validated_data['columnId'],
            serializer.validated_data['taskIds'],
        )
        return Response({
            'success': True,
            'data': TripTaskSerializer(tasks, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def counts(self, request, trip_pk=None):
        return Response({'success': True, 'data': task_counts(self.get_trip())})


class TripDependentViewSet(TripScopedMixin, viewsets.ModelViewSet):
    """
    People travelling under a member's responsibility.

    list:         GET    /api/v1/trips/{trip_id}/dependents/
    create:       POST   /api/v1/trips/{trip_id}/dependents/
    update:       PATCH  /api/v1/trips/{trip_id}/dependents/{id}/
    delete:       DELETE /api/v1/trips/{trip_id}/dependents/{id}/
    family units: GET    /api/v1/trips/{trip_id}/dependents/family-units/
    """
    permission_classes = [IsAuthenticated, IsTripGroupMember]
    serializer_class = TripDependentSerializer

    def get_queryset(self):
        queryset = TripDependent.objects.filter(
            trip_id=self.kwargs['trip_pk'],
        ).select_related('trip', 'responsible_member')
        if self.request.query_params.get('mine'):
            queryset = queryset.filter(responsible_member=self.request.user)
        return queryset

    def list(self, request, *args, **kwargs):
        return Response({
            'success': True,
            'data': TripDependentSerializer(self.get_queryset(), many=True).data,
        })

    def create(self, request, *args, **kwargs):
        trip = self.get_trip()
        many = isinstance(request.data, list)
        serializer = TripDependentWriteSerializer(
            data=request.data,
            many=many,
            context={'request': request, 'trip': trip},
        )
        serializer.is_valid(raise_exception=True)
        created = serializer.save()
        return Response(
            {
                'success': True,
                'data': TripDependentSerializer(created, many=many).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': TripDependentSerializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        dependent = self.get_object()
        serializer = TripDependentWriteSerializer(
            dependent,
            data=request.data,
            partial=True,
            context={'request': request, 'trip': dependent.trip},
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': TripDependentSerializer(dependent).data})

    def destroy(self, request, *args, **kwargs):
        self.get_object().delete()
        return Response({'success': True})

    @action(detail=False, methods=['get'], url_path='family-units')
    def family_units(self, request, trip_pk=None):
        """
        GET /api/v1/trips/{trip_id}/dependents/family-units/
        """
        trip = self.get_trip()
        members = [
            membership.user
            for membership in trip.group.members.select_related('user')
        ]
        dependents = TripDependent.objects.filter(trip=trip)
        units = build_family_units(members, dependents, current_user_id=request.user.pk)

        counts = count_by_age_group(
            [dependent.age_group for dependent in dependents],
            include_responsible_member=False,
        )
        counts['adult'] += len(members)
        counts['total'] += len(members)

        return Response({
            'success': True,
            'data': {
                'units': FamilyUnitSerializer(units, many=True).data,
                'counts': counts,
            },
        })
