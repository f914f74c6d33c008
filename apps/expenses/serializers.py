"""
Serializers for the Expenses app.
All output uses camelCase to match the web client.
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

from apps.expenses.models import Expense, ExpenseGuest, ExpenseSplit
from apps.groups.models import GroupMember
from apps.trips.constants import AgeGroup
from apps.users.serializers import UserSummarySerializer

User = get_user_model()


class ExpenseGuestSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = ExpenseGuest
        fields = ['id', 'groupId', 'name', 'createdBy', 'createdAt']
        read_only_fields = fields


class ExpenseGuestCreateSerializer(serializers.Serializer):
    groupId = serializers.UUIDField()
    name = serializers.CharField(max_length=100, allow_blank=True)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()

    def create(self, validated_data):
        return ExpenseGuest.objects.create(
            group_id=validated_data['groupId'],
            name=validated_data['name'],
            created_by=self.context['request'].user,
        )


class ExpenseSplitSerializer(serializers.ModelSerializer):
    expenseId = serializers.CharField(source='expense_id', read_only=True)
    userId = serializers.CharField(source='user_id', read_only=True, allow_null=True)
    guestId = serializers.CharField(source='guest_id', read_only=True, allow_null=True)
    user = UserSummarySerializer(read_only=True)
    guest = ExpenseGuestSerializer(read_only=True)
    isSettled = serializers.BooleanField(source='is_settled', read_only=True)
    settledAt = serializers.DateTimeField(source='settled_at', read_only=True)
    settledBy = serializers.CharField(source='settled_by_id', read_only=True, allow_null=True)

    class Meta:
        model = ExpenseSplit
        fields = [
            'id', 'expenseId', 'userId', 'guestId', 'user', 'guest',
            'amount', 'percentage', 'isSettled', 'settledAt', 'settledBy',
        ]
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    tripId = serializers.CharField(source='trip_id', read_only=True, allow_null=True)
    paidBy = serializers.CharField(source='paid_by_id', read_only=True)
    payer = UserSummarySerializer(source='paid_by', read_only=True)
    splitType = serializers.CharField(source='split_type', read_only=True)
    receiptUrl = serializers.SerializerMethodField()
    expenseDate = serializers.DateField(source='expense_date', read_only=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    splits = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id', 'groupId', 'tripId', 'description', 'amount', 'currency',
            'category', 'paidBy', 'payer', 'splitType', 'receiptUrl',
            'expenseDate', 'notes', 'createdBy', 'createdAt', 'splits',
        ]
        read_only_fields = fields

    def get_receiptUrl(self, obj):
        return obj.receipt_url or None

    def get_splits(self, obj):
        # The list view attaches a filtered list when a settled filter is active
        splits = getattr(obj, 'visible_splits', None)
        if splits is None:
            splits = obj.splits.all()
        return ExpenseSplitSerializer(splits, many=True).data


class SplitInputSerializer(serializers.Serializer):
    userId = serializers.UUIDField(required=False, allow_null=True)
    guestId = serializers.UUIDField(required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=Decimal('0'))
    percentage = serializers.DecimalField(
        max_digits=6, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'),
    )

    def validate(self, attrs):
        if bool(attrs.get('userId')) == bool(attrs.get('guestId')):
            raise serializers.ValidationError('Each split needs exactly one of userId or guestId.')
        return attrs


class ExpenseCreateSerializer(serializers.Serializer):
    """Accepts camelCase from the client, maps to snake_case model fields."""
    groupId = serializers.UUIDField()
    tripId = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, allow_blank=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField(max_length=3, default='USD')
    paidBy = serializers.UUIDField(required=False)
    splitType = serializers.ChoiceField(choices=Expense.SplitType.choices, default=Expense.SplitType.EQUAL)
    category = serializers.ChoiceField(choices=Expense.Category.choices, default=Expense.Category.OTHER)
    receiptUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)
    expenseDate = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    splits = SplitInputSerializer(many=True, required=False)

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError('Description is required')
        return value.strip()

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return value

    def validate_splits(self, value):
        if not value:
            raise serializers.ValidationError('At least one split is required')
        return value

    def validate(self, attrs):
        if not attrs.get('splits'):
            raise serializers.ValidationError({'splits': 'At least one split is required'})

        user = self.context['request'].user
        group_id = attrs['groupId']
        if not GroupMember.objects.filter(group_id=group_id, user=user).exists():
            raise serializers.ValidationError({'groupId': 'You must be a member of this group.'})

        payer_id = attrs.get('paidBy') or user.pk
        if not GroupMember.objects.filter(group_id=group_id, user_id=payer_id).exists():
            raise serializers.ValidationError({'paidBy': 'The payer must be a member of this group.'})
        attrs['payer'] = User.objects.get(pk=payer_id)

        split_type = attrs['splitType']
        for split in attrs['splits']:
            if split_type == Expense.SplitType.CUSTOM and split.get('amount') is None:
                raise serializers.ValidationError({'splits': 'Each custom split needs an amount.'})
            if split_type == Expense.SplitType.PERCENTAGE and split.get('percentage') is None:
                raise serializers.ValidationError({'splits': 'Each percentage split needs a percentage.'})

        user_ids = [s['userId'] for s in attrs['splits'] if s.get('userId')]
        if user_ids and GroupMember.objects.filter(
            group_id=group_id, user_id__in=user_ids,
        ).count() != len(set(user_ids)):
            raise serializers.ValidationError({'splits': 'Participants must be members of this group.'})

        guest_ids = [s['guestId'] for s in attrs['splits'] if s.get('guestId')]
        if guest_ids and ExpenseGuest.objects.filter(
            pk__in=guest_ids, group_id=group_id,
        ).count() != len(set(guest_ids)):
            raise serializers.ValidationError({'splits': 'Guests must belong to this group.'})

        return attrs

    def expense_fields(self):
        data = self.validated_data
        return {
            'trip_id': data.get('tripId'),
            'description': data['description'],
            'amount': data['amount'],
            'currency': data.get('currency') or 'USD',
            'paid_by': data['payer'],
            'split_type': data['splitType'],
            'category': data['category'],
            'receipt_url': data.get('receiptUrl', '').strip(),
            'expense_date': data.get('expenseDate') or timezone.localdate(),
            'notes': data.get('notes', '').strip(),
        }

    def split_rows(self):
        return [
            {
                'user_id': split.get('userId'),
                'guest_id': split.get('guestId'),
                'amount': split.get('amount'),
                'percentage': split.get('percentage'),
            }
            for split in self.validated_data['splits']
        ]


class ExpenseUpdateSerializer(serializers.Serializer):
    """Descriptive fields only; money and participants are fixed."""
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    currency = serializers.CharField(max_length=3, required=False)
    category = serializers.ChoiceField(choices=Expense.Category.choices, required=False)
    receiptUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)
    expenseDate = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    field_map = {
        'description': 'description',
        'currency': 'currency',
        'category': 'category',
        'receiptUrl': 'receipt_url',
        'expenseDate': 'expense_date',
        'notes': 'notes',
    }

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError('Description is required')
        return value.strip()

    def update(self, instance, validated_data):
        for key, model_field in self.field_map.items():
            if key in validated_data:
                value = validated_data[key]
                setattr(instance, model_field, value.strip() if isinstance(value, str) else value)
        instance.save()
        return instance


class SettleUpSerializer(serializers.Serializer):
    groupId = serializers.UUIDField()
    withUserId = serializers.UUIDField()

    def validate(self, attrs):
        user = self.context['request'].user
        if attrs['withUserId'] == user.pk:
            raise serializers.ValidationError({'withUserId': 'You cannot settle up with yourself.'})
        if not GroupMember.objects.filter(group_id=attrs['groupId'], user=user).exists():
            raise serializers.ValidationError({'groupId': 'You must be a member of this group.'})
        return attrs


class ReminderSerializer(serializers.Serializer):
    toUserId = serializers.UUIDField()
    message = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_toUserId(self, value):
        expense = self.context['expense']
        if not GroupMember.objects.filter(group_id=expense.group_id, user_id=value).exists():
            raise serializers.ValidationError('Recipient must be a member of this group.')
        return User.objects.get(pk=value)


class BalanceSerializer(serializers.Serializer):
    you_owe = serializers.DecimalField(max_digits=12, decimal_places=2)
    you_are_owed = serializers.DecimalField(max_digits=12, decimal_places=2)
    net_balance = serializers.DecimalField(max_digits=12, decimal_places=2)


class MemberBalanceSerializer(serializers.Serializer):
    other_user_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    direction = serializers.CharField()
    user = UserSummarySerializer(allow_null=True)


class SplitPreviewSerializer(serializers.Serializer):
    """
    Inputs for pricing a shared cost per person, either evenly or by age
    group, across a trip's family units.
    """
    tripId = serializers.UUIDField()
    basePrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    pricingMode = serializers.ChoiceField(choices=['same', 'age'], default='same')
    selected = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    pricing = serializers.DictField(
        child=serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0')),
        required=False,
    )

    def validate_pricing(self, value):
        unknown = set(value) - set(AgeGroup.values)
        if unknown:
            raise serializers.ValidationError(f'Unknown age groups: {", ".join(sorted(unknown))}')
        return value
