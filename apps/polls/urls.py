"""
URL configuration for the Polls app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.polls.views import PollsByGroupView, PollViewSet

app_name = 'polls'

router = DefaultRouter()
router.register(r'', PollViewSet, basename='poll')

urlpatterns = [
    path('group/<uuid:group_id>/', PollsByGroupView.as_view(), name='polls-by-group'),
    path('', include(router.urls)),
]
