"""
Views for the Expenses app.
"""
import logging

from django.contrib.auth import get_user_model
from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.expenses.models import Expense, ExpenseGuest, ExpenseSplit
from apps.expenses.serializers import (
    BalanceSerializer,
    ExpenseCreateSerializer,
    ExpenseGuestCreateSerializer,
    ExpenseGuestSerializer,
    ExpenseSerializer,
    ExpenseSplitSerializer,
    ExpenseUpdateSerializer,
    MemberBalanceSerializer,
    ReminderSerializer,
    SettleUpSerializer,
    SplitPreviewSerializer,
)
from apps.expenses.services.balances import get_member_balances, get_user_balance
from apps.expenses.services.expenses import create_expense, send_reminder
from apps.expenses.services.receipts import remove_receipt, store_receipt
from apps.expenses.services.settlement import settle_split, settle_up, unsettle_split
from apps.expenses.services.split_calculator import calculate_age_based_split
from apps.groups.models import Group, is_group_member
from apps.groups.permissions import IsGroupMember
from apps.trips.models import Trip, TripDependent
from apps.trips.services.family import age_pricing, build_family_units
from common.permissions import IsCreator

logger = logging.getLogger(__name__)

User = get_user_model()


def _group_from_query(request):
    """Resolve ``?group=`` and check the caller belongs to it."""
    group_id = request.query_params.get('group')
    if not group_id:
        raise ValidationError({'group': 'group query parameter is required.'})
    if not is_group_member(group_id, request.user):
        raise PermissionDenied('You are not a member of this group.')
    return group_id


def _expense_queryset():
    return Expense.objects.select_related('paid_by', 'group', 'trip').prefetch_related(
        Prefetch('splits', queryset=ExpenseSplit.objects.select_related('user', 'guest')),
    )


class ExpenseViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Expense CRUD operations.

    list:    GET    /api/v1/expenses/?group=<group_id>
    create:  POST   /api/v1/expenses/
    read:   GET    /api/v1/expenses/{id}/
    update:  PATCH  /api/v1/expenses/{id}/
    delete:  DELETE /api/v1/expenses/{id}/
    receipt: POST   /api/v1/expenses/{id}/receipt/  (multipart ``file``)
             DELETE /api/v1/expenses/{id}/receipt/
    remind:  POST   /api/v1/expenses/{id}/remind/
    """
    serializer_class = ExpenseSerializer

    def get_queryset(self):
        return _expense_queryset().filter(group__members__user=self.request.user).distinct()

    def get_permissions(self):
        if self.action in ('update', 'partial_update', 'destroy', 'receipt'):
            return [IsAuthenticated(), IsGroupMember(), IsCreator()]
        return [IsAuthenticated(), IsGroupMember()]

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        group_id = request.query_params.get('group')
        if group_id:
            queryset = queryset.filter(group_id=group_id)
        return Response({
            'success': True,
            'data': ExpenseSerializer(queryset, many=True).data,
        })

    def create(self, request, *args, **kwargs):
        serializer = ExpenseCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        group = get_object_or_404(Group, pk=serializer.validated_data['groupId'])

        expense = create_expense(
            group,
            request.user,
            serializer.expense_fields(),
            serializer.split_rows(),
        )
        expense = _expense_queryset().get(pk=expense.pk)
        return Response(
            {
                'success': True,
                'data': ExpenseSerializer(expense).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return Response({'success': True, 'data': ExpenseSerializer(instance).data})

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = ExpenseUpdateSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'data': ExpenseSerializer(instance).data})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        logger.info('Expense %s deleted by %s', instance.pk, request.user.pk)
        instance.delete()
        return Response(
            {'success': True, 'message': 'Expense deleted.'},
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=['post', 'delete'], parser_classes=[MultiPartParser, FormParser])
    def receipt(self, request, pk=None):
        expense = self.get_object()
        if request.method == 'DELETE':
            remove_receipt(expense)
            return Response({'success': True})

        receipt_url = store_receipt(expense, request.FILES.get('file'))
        return Response({'success': True, 'data': {'receiptUrl': receipt_url}})

    @action(detail=True, methods=['post'])
    def remind(self, request, pk=None):
        expense = self.get_object()
        serializer = ReminderSerializer(data=request.data, context={'expense': expense})
        serializer.is_valid(raise_exception=True)
        send_reminder(
            expense,
            request.user,
            serializer.validated_data['toUserId'],
            serializer.validated_data['message'],
        )
        return Response({'success': True}, status=status.HTTP_201_CREATED)


class ExpensesByGroupView(generics.ListAPIView):
    """
    List expenses for a specific group, newest first.

    GET /api/v1/expenses/group/{group_id}/?category=&settled=&search=&trip=
    """
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, IsGroupMember]

    def get_queryset(self):
        queryset = _expense_queryset().filter(group_id=self.kwargs['group_id'])
        params = self.request.query_params

        category = params.get('category')
        if category and category != 'all':
            queryset = queryset.filter(category=category)

        search = params.get('search')
        if search:
            queryset = queryset.filter(description__icontains=search)

        trip_id = params.get('trip')
        if trip_id:
            queryset = queryset.filter(trip_id=trip_id)

        return queryset

    def list(self, request, *args, **kwargs):
        expenses = list(self.get_queryset())

        settled = request.query_params.get('settled')
        if settled in ('settled', 'unsettled'):
            want = settled == 'settled'
            for expense in expenses:
                expense.visible_splits = [s for s in expense.splits.all() if s.is_settled == want]
            expenses = [expense for expense in expenses if expense.visible_splits]

        return Response({
            'success': True,
            'data': ExpenseSerializer(expenses, many=True).data,
        })


class SplitSettleView(APIView):
    """
    POST /api/v1/expenses/splits/{id}/settle/
    POST /api/v1/expenses/splits/{id}/unsettle/
    """
    permission_classes = [IsAuthenticated, IsGroupMember]
    settle = True

    def post(self, request, pk):
        split = get_object_or_404(ExpenseSplit.objects.select_related('expense'), pk=pk)
        self.check_object_permissions(request, split)

        if self.settle:
            settle_split(split, request.user)
        else:
            unsettle_split(split)
        return Response({'success': True, 'data': ExpenseSplitSerializer(split).data})


class SettleUpView(APIView):
    """
    Settle every open split between the caller and one other member.

    POST /api/v1/expenses/settle-up/
    Body: {"groupId": "uuid", "withUserId": "uuid"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = SettleUpSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        count = settle_up(
            serializer.validated_data['groupId'],
            request.user,
            serializer.validated_data['withUserId'],
        )
        return Response({'success': True, 'data': {'count': count}})


class BalanceView(APIView):
    """
    GET /api/v1/expenses/balance/?group=<group_id>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        group_id = _group_from_query(request)
        balance = get_user_balance(group_id, request.user)
        return Response({'success': True, 'data': BalanceSerializer(balance).data})


class MemberBalancesView(APIView):
    """
    GET /api/v1/expenses/member-balances/?group=<group_id>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        group_id = _group_from_query(request)
        balances = get_member_balances(group_id, request.user)

        users = User.objects.in_bulk([balance['other_user_id'] for balance in balances])
        for balance in balances:
            balance['user'] = users.get(balance['other_user_id'])

        return Response({
            'success': True,
            'data': MemberBalanceSerializer(balances, many=True).data,
        })


class ExpenseGuestListView(APIView):
    """
    GET  /api/v1/expenses/guests/?group=<group_id>
    POST /api/v1/expenses/guests/   Body: {"groupId": "uuid", "name": "..."}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        group_id = _group_from_query(request)
        guests = ExpenseGuest.objects.filter(group_id=group_id).order_by('name')
        return Response({
            'success': True,
            'data': ExpenseGuestSerializer(guests, many=True).data,
        })

    def post(self, request):
        serializer = ExpenseGuestCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        if not is_group_member(serializer.validated_data['groupId'], request.user):
            raise PermissionDenied('You are not a member of this group.')
        guest = serializer.save()
        return Response(
            {'success': True, 'data': ExpenseGuestSerializer(guest).data},
            status=status.HTTP_201_CREATED,
        )


class ExpenseGuestDetailView(APIView):
    """
    DELETE /api/v1/expenses/guests/{id}/
    """
    permission_classes = [IsAuthenticated, IsCreator]

    def delete(self, request, pk):
        guest = get_object_or_404(ExpenseGuest, pk=pk)
        self.check_object_permissions(request, guest)
        guest.delete()
        return Response({'success': True})


class SplitPreviewView(APIView):
    """
    Price a shared cost per person across a trip's family units.

    POST /api/v1/expenses/split-preview/
    Body: {"tripId": "uuid", "basePrice": "100.00", "pricingMode": "age",
           "selected": ["member-<id>", "dependent-<id>"], "pricing": {"child": 0.5}}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = SplitPreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        trip = get_object_or_404(Trip.objects.select_related('group'), pk=data['tripId'])
        if not is_group_member(trip.group_id, request.user):
            raise PermissionDenied('You are not a member of this group.')

        members = [membership.user for membership in trip.group.members.select_related('user')]
        units = build_family_units(
            members,
            TripDependent.objects.filter(trip=trip),
            current_user_id=request.user.pk,
        )
        result = calculate_age_based_split(
            units,
            data['selected'],
            data['basePrice'],
            data['pricingMode'],
            age_pricing(data.get('pricing')),
        )
        return Response({'success': True, 'data': result})
