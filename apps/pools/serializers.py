"""
Serializers for the Pools app.
All output uses camelCase to match the web client.
"""
from decimal import Decimal

from rest_framework import serializers

from apps.groups.models import GroupMember
from apps.pools.models import ContributionPool, PoolContribution, PoolMember
from apps.pools.utils import deadline_info, percent_complete, pool_status_label
from apps.users.serializers import UserSummarySerializer

MONEY = {'max_digits': 12, 'decimal_places': 2}


class PaymentMethodSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PoolContribution.PaymentMethod.choices)
    handle = serializers.CharField(max_length=100, required=False, allow_blank=True)
    enabled = serializers.BooleanField(default=True)


class PoolMemberSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user_id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    targetAmount = serializers.DecimalField(source='target_amount', read_only=True, allow_null=True, **MONEY)
    totalContributed = serializers.DecimalField(source='total_contributed', read_only=True, **MONEY)
    remaining = serializers.DecimalField(read_only=True, **MONEY)
    isExempt = serializers.BooleanField(source='is_exempt', read_only=True)
    exemptReason = serializers.CharField(source='exempt_reason', read_only=True)
    joinedAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = PoolMember
        fields = [
            'id', 'userId', 'user', 'targetAmount', 'totalContributed',
            'remaining', 'isExempt', 'exemptReason', 'joinedAt',
        ]
        read_only_fields = fields


class PoolContributionSerializer(serializers.ModelSerializer):
    poolId = serializers.CharField(source='pool_id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    paymentReference = serializers.CharField(source='payment_reference', read_only=True)
    confirmer = UserSummarySerializer(source='confirmed_by', read_only=True)
    confirmedAt = serializers.DateTimeField(source='confirmed_at', read_only=True)
    rejectionReason = serializers.CharField(source='rejection_reason', read_only=True)
    contributedAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = PoolContribution
        fields = [
            'id', 'poolId', 'user', 'amount', 'paymentMethod', 'paymentReference',
            'status', 'confirmer', 'confirmedAt', 'rejectionReason', 'notes',
            'contributedAt',
        ]
        read_only_fields = fields


class PoolSerializer(serializers.ModelSerializer):
    """Pool card: settings plus progress figures."""
    groupId = serializers.CharField(source='group_id', read_only=True)
    tripId = serializers.CharField(source='trip_id', read_only=True, allow_null=True)
    goalAmount = serializers.DecimalField(source='goal_amount', read_only=True, **MONEY)
    currentAmount = serializers.DecimalField(source='current_amount', read_only=True, **MONEY)
    perPersonTarget = serializers.DecimalField(
        source='per_person_target', read_only=True, allow_null=True, **MONEY,
    )
    allowCustomAmounts = serializers.BooleanField(source='allow_custom_amounts', read_only=True)
    requireConfirmation = serializers.BooleanField(source='require_confirmation', read_only=True)
    isPrivate = serializers.BooleanField(source='is_private', read_only=True)
    paymentMethods = serializers.JSONField(source='payment_methods', read_only=True)
    creator = UserSummarySerializer(source='created_by', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    memberCount = serializers.SerializerMethodField()
    confirmedContributions = serializers.SerializerMethodField()
    pendingContributions = serializers.SerializerMethodField()
    percentComplete = serializers.SerializerMethodField()
    amountRemaining = serializers.DecimalField(source='amount_remaining', read_only=True, **MONEY)
    statusLabel = serializers.SerializerMethodField()
    deadlineInfo = serializers.SerializerMethodField()

    class Meta:
        model = ContributionPool
        fields = [
            'id', 'groupId', 'tripId', 'title', 'description', 'goalAmount',
            'currentAmount', 'currency', 'deadline', 'status', 'perPersonTarget',
            'allowCustomAmounts', 'requireConfirmation', 'isPrivate',
            'paymentMethods', 'creator', 'createdAt', 'memberCount',
            'confirmedContributions', 'pendingContributions', 'percentComplete',
            'amountRemaining', 'statusLabel', 'deadlineInfo',
        ]
        read_only_fields = fields

    def _count(self, obj, status):
        return sum(1 for contribution in obj.contributions.all() if contribution.status == status)

    def get_memberCount(self, obj):
        return len(obj.members.all())

    def get_confirmedContributions(self, obj):
        return self._count(obj, PoolContribution.Status.CONFIRMED)

    def get_pendingContributions(self, obj):
        return self._count(obj, PoolContribution.Status.PENDING)

    def get_percentComplete(self, obj):
        return percent_complete(obj.current_amount, obj.goal_amount)

    def get_statusLabel(self, obj):
        return pool_status_label(obj)

    def get_deadlineInfo(self, obj):
        info = deadline_info(obj.deadline)
        return {
            'daysRemaining': info['days_remaining'],
            'isUrgent': info['is_urgent'],
            'label': info['label'],
        }


class PoolDetailSerializer(PoolSerializer):
    members = PoolMemberSerializer(many=True, read_only=True)
    contributions = PoolContributionSerializer(many=True, read_only=True)

    class Meta(PoolSerializer.Meta):
        fields = PoolSerializer.Meta.fields + ['members', 'contributions']
        read_only_fields = fields


class PoolCreateSerializer(serializers.Serializer):
    groupId = serializers.UUIDField()
    tripId = serializers.UUIDField(required=False, allow_null=True)
    title = serializers.CharField(max_length=200, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    goalAmount = serializers.DecimalField(**MONEY)
    currency = serializers.CharField(max_length=3, default='USD')
    deadline = serializers.DateField(required=False, allow_null=True)
    perPersonTarget = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)
    allowCustomAmounts = serializers.BooleanField(default=True)
    requireConfirmation = serializers.BooleanField(default=False)
    isPrivate = serializers.BooleanField(default=False)
    paymentMethods = PaymentMethodSerializer(many=True, required=False)
    memberIds = serializers.ListField(child=serializers.UUIDField(), required=False)

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_goalAmount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Goal amount must be greater than 0')
        return value

    def validate(self, attrs):
        user = self.context['request'].user
        group_id = attrs['groupId']
        if not GroupMember.objects.filter(group_id=group_id, user=user).exists():
            raise serializers.ValidationError({'groupId': 'You must be a member of this group.'})

        member_ids = set(attrs.get('memberIds') or [])
        if member_ids and GroupMember.objects.filter(
            group_id=group_id, user_id__in=member_ids,
        ).count() != len(member_ids):
            raise serializers.ValidationError({'memberIds': 'Pool members must belong to the group.'})
        return attrs

    def pool_fields(self):
        data = self.validated_data
        return {
            'trip_id': data.get('tripId'),
            'title': data['title'],
            'description': data.get('description', '').strip(),
            'goal_amount': data['goalAmount'],
            'currency': data.get('currency') or 'USD',
            'deadline': data.get('deadline'),
            'per_person_target': data.get('perPersonTarget'),
            'allow_custom_amounts': data['allowCustomAmounts'],
            'require_confirmation': data['requireConfirmation'],
            'is_private': data['isPrivate'],
            'payment_methods': [dict(method) for method in data.get('paymentMethods') or []],
        }


class PoolUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    goalAmount = serializers.DecimalField(required=False, **MONEY)
    deadline = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=ContributionPool.Status.choices, required=False)
    perPersonTarget = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)
    allowCustomAmounts = serializers.BooleanField(required=False)
    requireConfirmation = serializers.BooleanField(required=False)
    isPrivate = serializers.BooleanField(required=False)
    paymentMethods = PaymentMethodSerializer(many=True, required=False)

    field_map = {
        'title': 'title',
        'description': 'description',
        'goalAmount': 'goal_amount',
        'deadline': 'deadline',
        'status': 'status',
        'perPersonTarget': 'per_person_target',
        'allowCustomAmounts': 'allow_custom_amounts',
        'requireConfirmation': 'require_confirmation',
        'isPrivate': 'is_private',
        'paymentMethods': 'payment_methods',
    }

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_goalAmount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Goal amount must be greater than 0')
        return value

    def pool_fields(self):
        fields = {}
        for key, model_field in self.field_map.items():
            if key not in self.validated_data:
                continue
            value = self.validated_data[key]
            if key == 'paymentMethods':
                value = [dict(method) for method in value]
            elif isinstance(value, str):
                value = value.strip()
            fields[model_field] = value
        return fields


class ContributionInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(**MONEY)
    paymentMethod = serializers.ChoiceField(
        choices=PoolContribution.PaymentMethod.choices, required=False, allow_blank=True, default='',
    )
    paymentReference = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return value


class RejectContributionSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class PoolMemberInputSerializer(serializers.Serializer):
    userId = serializers.UUIDField()
    targetAmount = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)


class PoolMemberUpdateSerializer(serializers.Serializer):
    targetAmount = serializers.DecimalField(required=False, allow_null=True, min_value=Decimal('0'), **MONEY)
    isExempt = serializers.BooleanField(required=False)
    exemptReason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    field_map = {
        'targetAmount': 'target_amount',
        'isExempt': 'is_exempt',
        'exemptReason': 'exempt_reason',
    }

    def member_fields(self):
        return {
            model_field: self.validated_data[key]
            for key, model_field in self.field_map.items()
            if key in self.validated_data
        }


class MemberProgressSerializer(serializers.Serializer):
    target = serializers.DecimalField(**MONEY)
    contributed = serializers.DecimalField(**MONEY)
    remaining = serializers.DecimalField(**MONEY)
