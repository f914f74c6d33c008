"""
URL configuration for the Pools app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.pools.views import ContributionPoolViewSet, PoolsByGroupView

app_name = 'pools'

router = DefaultRouter()
router.register(r'', ContributionPoolViewSet, basename='pool')

urlpatterns = [
    path('group/<uuid:group_id>/', PoolsByGroupView.as_view(), name='pools-by-group'),
    path('', include(router.urls)),
]
