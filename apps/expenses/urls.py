"""
URL configuration for the Expenses app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.expenses.views import (
    BalanceView,
    ExpenseGuestDetailView,
    ExpenseGuestListView,
    ExpensesByGroupView,
    ExpenseViewSet,
    MemberBalancesView,
    SettleUpView,
    SplitPreviewView,
    SplitSettleView,
)

app_name = 'expenses'

router = DefaultRouter()
router.register(r'', ExpenseViewSet, basename='expense')

urlpatterns = [
    # Explicit paths BEFORE router to avoid conflicts with router's {pk} patterns
    path('group/<uuid:group_id>/', ExpensesByGroupView.as_view(), name='expenses-by-group'),
    path('balance/', BalanceView.as_view(), name='expense-balance'),
    path('member-balances/', MemberBalancesView.as_view(), name='expense-member-balances'),
    path('settle-up/', SettleUpView.as_view(), name='expense-settle-up'),
    path('split-preview/', SplitPreviewView.as_view(), name='expense-split-preview'),
    path('splits/<uuid:pk>/settle/', SplitSettleView.as_view(settle=True), name='split-settle'),
    path('splits/<uuid:pk>/unsettle/', SplitSettleView.as_view(settle=False), name='split-unsettle'),
    path('guests/', ExpenseGuestListView.as_view(), name='expense-guest-list'),
    path('guests/<uuid:pk>/', ExpenseGuestDetailView.as_view(), name='expense-guest-detail'),
    path('', include(router.urls)),
]
