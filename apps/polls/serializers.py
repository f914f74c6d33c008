"""
Serializers for the Polls app.
All output uses camelCase to match the web client.
"""
from rest_framework import serializers

from apps.groups.models import GroupMember
from apps.polls.models import LotteryResult, Poll, PollOption, PollVote
from apps.users.serializers import UserSummarySerializer


class PollSettingsSerializer(serializers.Serializer):
    allow_member_options = serializers.BooleanField(required=False)
    multi_select = serializers.BooleanField(required=False)
    max_selections = serializers.IntegerField(required=False, min_value=1)
    anonymous = serializers.BooleanField(required=False)
    show_results = serializers.BooleanField(required=False)


class PollVoteSerializer(serializers.ModelSerializer):
    optionId = serializers.CharField(source='option_id', read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = PollVote
        fields = ['id', 'optionId', 'user', 'rank', 'availability']
        read_only_fields = fields

    def get_user(self, obj):
        if self.context.get('anonymous'):
            return None
        return UserSummarySerializer(obj.user).data


class PollOptionSerializer(serializers.ModelSerializer):
    pollId = serializers.CharField(source='poll_id', read_only=True)
    optionText = serializers.CharField(source='option_text', read_only=True)
    optionDate = serializers.DateField(source='option_date', read_only=True)
    sortOrder = serializers.IntegerField(source='sort_order', read_only=True)
    suggester = UserSummarySerializer(source='created_by', read_only=True)
    votes = serializers.SerializerMethodField()
    voteCount = serializers.SerializerMethodField()

    class Meta:
        model = PollOption
        fields = [
            'id', 'pollId', 'optionText', 'optionDate', 'sortOrder',
            'suggester', 'votes', 'voteCount',
        ]
        read_only_fields = fields

    def get_votes(self, obj):
        if not self.context.get('include_votes'):
            return []
        return PollVoteSerializer(obj.votes.all(), many=True, context=self.context).data

    def get_voteCount(self, obj):
        return len(obj.votes.all())


class PollSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    tripId = serializers.CharField(source='trip_id', read_only=True, allow_null=True)
    pollType = serializers.CharField(source='poll_type', read_only=True)
    closesAt = serializers.DateTimeField(source='closes_at', read_only=True)
    isClosed = serializers.BooleanField(source='is_closed', read_only=True)
    creator = UserSummarySerializer(source='created_by', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    voteCount = serializers.SerializerMethodField()
    hasVoted = serializers.SerializerMethodField()

    class Meta:
        model = Poll
        fields = [
            'id', 'groupId', 'tripId', 'title', 'description', 'pollType',
            'settings', 'closesAt', 'isClosed', 'creator', 'createdAt',
            'voteCount', 'hasVoted',
        ]
        read_only_fields = fields

    def _voter_ids(self, obj):
        return {vote.user_id for vote in obj.votes.all()}

    def get_voteCount(self, obj):
        return len(self._voter_ids(obj))

    def get_hasVoted(self, obj):
        request = self.context.get('request')
        return bool(request) and request.user.pk in self._voter_ids(obj)


class PollDetailSerializer(PollSerializer):
    options = serializers.SerializerMethodField()
    results = serializers.SerializerMethodField()

    class Meta(PollSerializer.Meta):
        fields = PollSerializer.Meta.fields + ['options', 'results']
        read_only_fields = fields

    def get_options(self, obj):
        context = {**self.context, 'include_votes': True, 'anonymous': obj.is_anonymous}
        return PollOptionSerializer(obj.options.all(), many=True, context=context).data

    def get_results(self, obj):
        return self.context.get('results', [])


class OptionInputSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=255, allow_blank=True)
    date = serializers.DateField(required=False, allow_null=True)

    def validate_text(self, value):
        if not value.strip():
            raise serializers.ValidationError('Option text is required')
        return value.strip()


class PollCreateSerializer(serializers.Serializer):
    groupId = serializers.UUIDField()
    tripId = serializers.UUIDField(required=False, allow_null=True)
    title = serializers.CharField(max_length=200, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    pollType = serializers.ChoiceField(choices=Poll.Type.choices, default=Poll.Type.MULTIPLE_CHOICE)
    settings = PollSettingsSerializer(required=False)
    closesAt = serializers.DateTimeField(required=False, allow_null=True)
    options = OptionInputSerializer(many=True)

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_options(self, value):
        if len(value) < 2:
            raise serializers.ValidationError('At least 2 options are required')
        return value

    def validate(self, attrs):
        user = self.context['request'].user
        if not GroupMember.objects.filter(group_id=attrs['groupId'], user=user).exists():
            raise serializers.ValidationError({'groupId': 'You must be a member of this group.'})
        return attrs

    def poll_fields(self):
        data = self.validated_data
        return {
            'trip_id': data.get('tripId'),
            'title': data['title'],
            'description': data.get('description', '').strip(),
            'poll_type': data['pollType'],
            'settings': dict(data.get('settings') or {}),
            'closes_at': data.get('closesAt'),
        }


class VoteInputSerializer(serializers.Serializer):
    optionId = serializers.UUIDField()
    rank = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    availability = serializers.ChoiceField(
        choices=PollVote.Availability.choices,
        required=False,
        allow_null=True,
    )


class VoteSerializer(serializers.Serializer):
    votes = VoteInputSerializer(many=True)

    def validate_votes(self, value):
        poll = self.context['poll']
        options = {option.pk: option for option in poll.options.all()}
        seen = set()
        resolved = []
        for vote in value:
            option = options.get(vote['optionId'])
            if option is None:
                raise serializers.ValidationError('Vote refers to an option outside this poll.')
            if option.pk in seen:
                raise serializers.ValidationError('Each option can only be voted on once.')
            seen.add(option.pk)
            resolved.append({
                'option': option,
                'rank': vote.get('rank'),
                'availability': vote.get('availability'),
            })
        return resolved


class LotteryResultSerializer(serializers.ModelSerializer):
    pollId = serializers.CharField(source='poll_id', read_only=True)
    winnerOptionId = serializers.CharField(source='winner_option_id', read_only=True)
    winningOption = PollOptionSerializer(source='winner_option', read_only=True)
    suggester = UserSummarySerializer(source='suggested_by', read_only=True)
    drawnAt = serializers.DateTimeField(source='drawn_at', read_only=True)

    class Meta:
        model = LotteryResult
        fields = ['id', 'pollId', 'winnerOptionId', 'winningOption', 'suggester', 'drawnAt']
        read_only_fields = fields
