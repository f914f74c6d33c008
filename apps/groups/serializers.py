"""
Serializers for the Groups app.
All output uses camelCase to match the web client.
"""
from rest_framework import serializers

from apps.groups.models import Group, GroupMember
from apps.users.serializers import UserSummarySerializer


class GroupMemberSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    userId = serializers.CharField(source='user_id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)

    class Meta:
        model = GroupMember
        fields = ['id', 'groupId', 'userId', 'user', 'role', 'joinedAt']
        read_only_fields = fields


class GroupMemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=GroupMember.Role.choices)


class GroupSerializer(serializers.ModelSerializer):
    inviteCode = serializers.CharField(source='invite_code', read_only=True)
    photoUrl = serializers.SerializerMethodField()
    createdBy = serializers.CharField(source='created_by_id', read_only=True)
    memberCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'inviteCode', 'photoUrl',
            'createdBy', 'memberCount', 'createdAt',
        ]
        read_only_fields = fields

    def get_photoUrl(self, obj):
        return obj.photo.strip() or None

    def get_memberCount(self, obj):
        # Uses the prefetched roster when the list view loaded it
        return len(obj.members.all())


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    photo = serializers.URLField(max_length=500, required=False, allow_blank=True, default='')

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()


class GroupUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Group
        fields = ['name', 'description', 'photo']

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()


class JoinGroupSerializer(serializers.Serializer):
    """Resolves the invite code to the group being joined."""
    inviteCode = serializers.CharField(max_length=8)

    def validate_inviteCode(self, value):
        group = Group.objects.filter(invite_code=value.strip().upper(), is_active=True).first()
        if group is None:
            raise serializers.ValidationError('Invalid or expired invite code.')
        if group.has_member(self.context['request'].user):
            raise serializers.ValidationError('You are already a member of this group.')
        return group
