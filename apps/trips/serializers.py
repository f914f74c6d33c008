"""
Serializers for the Trips app.
All output uses camelCase to match the web client.
"""
from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.groups.models import GroupMember
from apps.trips.constants import AgeGroup, DependentType, TaskColumn, TaskLabel
from apps.trips.models import Trip, TripDependent, TripTask
from apps.trips.services.family import default_age_group_for_type, infer_age_group
from apps.users.serializers import UserSummarySerializer

User = get_user_model()


class TripSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    startDate = serializers.DateField(source='start_date', read_only=True)
    endDate = serializers.DateField(source='end_date', read_only=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Trip
        fields = [
            'id', 'groupId', 'name', 'description', 'location',
            'startDate', 'endDate', 'status', 'createdBy', 'createdAt',
        ]
        read_only_fields = fields


class TripWriteSerializer(serializers.Serializer):
    """Accepts camelCase from the client for create and partial update."""
    groupId = serializers.UUIDField(required=False)
    name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, allow_null=True)
    endDate = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=Trip.Status.choices, required=False)

    field_map = {
        'name': 'name',
        'description': 'description',
        'location': 'location',
        'startDate': 'start_date',
        'endDate': 'end_date',
        'status': 'status',
    }

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()

    def validate(self, attrs):
        if self.instance is None:
            if 'groupId' not in attrs:
                raise serializers.ValidationError({'groupId': 'This field is required.'})
            if 'name' not in attrs:
                raise serializers.ValidationError({'name': 'Name is required'})
            user = self.context['request'].user
            if not GroupMember.objects.filter(group_id=attrs['groupId'], user=user).exists():
                raise serializers.ValidationError({'groupId': 'You must be a member of this group.'})

        start_date = attrs.get('startDate', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('endDate', getattr(self.instance, 'end_date', None))
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({'endDate': 'End date must be after start date.'})
        return attrs

    def create(self, validated_data):
        fields = {
            model_field: validated_data[key]
            for key, model_field in self.field_map.items()
            if key in validated_data
        }
        return Trip.objects.create(
            group_id=validated_data['groupId'],
            created_by=self.context['request'].user,
            **fields,
        )

    def update(self, instance, validated_data):
        for key, model_field in self.field_map.items():
            if key in validated_data:
                setattr(instance, model_field, validated_data[key])
        instance.save()
        return instance


class TripTaskSerializer(serializers.ModelSerializer):
    tripId = serializers.CharField(source='trip_id', read_only=True)
    columnId = serializers.CharField(source='column_id', read_only=True)
    sortOrder = serializers.IntegerField(source='sort_order', read_only=True)
    assignedTo = UserSummarySerializer(source='assigned_to', read_only=True)
    assignedBy = serializers.CharField(source='assigned_by_id', read_only=True, allow_null=True)
    dueDate = serializers.DateField(source='due_date', read_only=True)
    linkedExpenseId = serializers.CharField(source='linked_expense_id', read_only=True, allow_null=True)
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = TripTask
        fields = [
            'id', 'tripId', 'title', 'description', 'columnId', 'sortOrder',
            'labels', 'assignedTo', 'assignedBy', 'dueDate', 'linkedExpenseId',
            'createdBy', 'createdAt',
        ]
        read_only_fields = fields


class TripTaskWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    columnId = serializers.ChoiceField(choices=TaskColumn.choices, required=False)
    labels = serializers.ListField(
        child=serializers.ChoiceField(choices=TaskLabel.choices),
        required=False,
    )
    assignedTo = serializers.UUIDField(required=False, allow_null=True)
    dueDate = serializers.DateField(required=False, allow_null=True)
    linkedExpenseId = serializers.UUIDField(required=False, allow_null=True)

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_assignedTo(self, value):
        if value is None:
            return None
        trip = self.context['trip']
        if not GroupMember.objects.filter(group_id=trip.group_id, user_id=value).exists():
            raise serializers.ValidationError('Assignee must be a member of the group.')
        return User.objects.get(pk=value)

    def validate(self, attrs):
        if self.context.get('creating') and 'title' not in attrs:
            raise serializers.ValidationError({'title': 'Title is required'})
        return attrs

    def to_model_fields(self):
        data = self.validated_data
        mapping = {
            'title': 'title',
            'description': 'description',
            'columnId': 'column_id',
            'labels': 'labels',
            'assignedTo': 'assigned_to',
            'dueDate': 'due_date',
            'linkedExpenseId': 'linked_expense_id',
        }
        return {model_field: data[key] for key, model_field in mapping.items() if key in data}


class TaskMoveSerializer(serializers.Serializer):
    columnId = serializers.ChoiceField(choices=TaskColumn.choices)
    sortOrder = serializers.IntegerField(min_value=0)


class TaskReorderSerializer(serializers.Serializer):
    columnId = serializers.ChoiceField(choices=TaskColumn.choices)
    taskIds = serializers.ListField(child=serializers.UUIDField())

    def validate(self, attrs):
        trip = self.context['trip']
        existing_ids = set(
            TripTask.objects.filter(
                trip=trip, column_id=attrs['columnId'],
            ).values_list('id', flat=True)
        )
        if existing_ids != set(attrs['taskIds']):
            raise serializers.ValidationError(
                {'taskIds': 'Provided task IDs do not match the tasks in this column.'}
            )
        return attrs


class TripDependentSerializer(serializers.ModelSerializer):
    tripId = serializers.CharField(source='trip_id', read_only=True)
    ageGroup = serializers.CharField(source='age_group', read_only=True)
    responsibleMember = serializers.CharField(source='responsible_member_id', read_only=True)
    addedBy = serializers.CharField(source='added_by_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = TripDependent
        fields = [
            'id', 'tripId', 'name', 'type', 'ageGroup', 'age',
            'responsibleMember', 'notes', 'addedBy', 'createdAt',
        ]
        read_only_fields = fields


class TripDependentWriteSerializer(serializers.Serializer):
    """
    When ``ageGroup`` is omitted it is inferred from ``age``, or from the
    dependent type when no age is given either.
    """
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=DependentType.choices, required=False)
    ageGroup = serializers.ChoiceField(choices=AgeGroup.choices, required=False)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    responsibleMember = serializers.UUIDField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()

    def validate_responsibleMember(self, value):
        trip = self.context['trip']
        if not GroupMember.objects.filter(group_id=trip.group_id, user_id=value).exists():
            raise serializers.ValidationError('Responsible member must belong to the group.')
        return value

    def validate(self, attrs):
        if self.instance is None:
            if 'name' not in attrs:
                raise serializers.ValidationError({'name': 'Name is required'})
            if 'ageGroup' not in attrs:
                if attrs.get('age') is not None:
                    attrs['ageGroup'] = infer_age_group(attrs['age'])
                else:
                    attrs['ageGroup'] = default_age_group_for_type(
                        attrs.get('type', DependentType.OTHER)
                    )
        return attrs

    def _model_fields(self, validated_data):
        mapping = {
            'name': 'name',
            'type': 'type',
            'ageGroup': 'age_group',
            'age': 'age',
            'responsibleMember': 'responsible_member_id',
            'notes': 'notes',
        }
        fields = {
            model_field: validated_data[key]
            for key, model_field in mapping.items()
            if key in validated_data
        }
        if 'notes' in fields:
            fields['notes'] = fields['notes'].strip()
        return fields

    def create(self, validated_data):
        user = self.context['request'].user
        fields = self._model_fields(validated_data)
        fields.setdefault('responsible_member_id', user.pk)
        return TripDependent.objects.create(
            trip=self.context['trip'],
            added_by=user,
            **fields,
        )

    def update(self, instance, validated_data):
        for name, value in self._model_fields(validated_data).items():
            setattr(instance, name, value)
        instance.save()
        return instance


class FamilyUnitSerializer(serializers.Serializer):
    member = UserSummarySerializer(read_only=True)
    memberName = serializers.CharField(source='member_name', read_only=True)
    isCurrentUser = serializers.BooleanField(source='is_current_user', read_only=True)
    dependents = TripDependentSerializer(many=True, read_only=True)
    totalPeople = serializers.IntegerField(source='total_people', read_only=True)
