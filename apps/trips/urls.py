"""
URL configuration for the Trips app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.trips.views import TripDependentViewSet, TripTaskViewSet, TripViewSet

app_name = 'trips'

router = DefaultRouter()
router.register(r'trips', TripViewSet, basename='trip')

task_list = TripTaskViewSet.as_view({
    'get': 'list',
    'post': 'create',
})
task_detail = TripTaskViewSet.as_view({
    'get': 'retrieve',
    'patch': 'partial_update',
    'delete': 'destroy',
})
task_move = TripTaskViewSet.as_view({'post': 'move'})
task_reorder = TripTaskViewSet.as_view({'post': 'reorder'})
task_counts = TripTaskViewSet.as_view({'get': 'counts'})

dependent_list = TripDependentViewSet.as_view({
    'get': 'list',
    'post': 'create',
})
dependent_detail = TripDependentViewSet.as_view({
    'get': 'retrieve',
    'patch': 'partial_update',
    'delete': 'destroy',
})
family_units = TripDependentViewSet.as_view({'get': 'family_units'})

urlpatterns = [
    path('', include(router.urls)),
    path('trips/<uuid:trip_pk>/tasks/', task_list, name='trip-task-list'),
    path('trips/<uuid:trip_pk>/tasks/reorder/', task_reorder, name='trip-task-reorder'),
    path('trips/<uuid:trip_pk>/tasks/counts/', task_counts, name='trip-task-counts'),
    path('trips/<uuid:trip_pk>/tasks/<uuid:pk>/', task_detail, name='trip-task-detail'),
    path('trips/<uuid:trip_pk>/tasks/<uuid:pk>/move/', task_move, name='trip-task-move'),
    path('trips/<uuid:trip_pk>/dependents/', dependent_list, name='trip-dependent-list'),
    path(
        'trips/<uuid:trip_pk>/dependents/family-units/',
        family_units,
        name='trip-family-units',
    ),
    path(
        'trips/<uuid:trip_pk>/dependents/<uuid:pk>/',
        dependent_detail,
        name='trip-dependent-detail',
    ),
]
