"""
Serializers for the Users app.

All serializers use camelCase field names to match the web client.
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for the authenticated user's own profile.
    """
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    displayName = serializers.CharField(source='display_name', read_only=True)
    fullName = serializers.CharField(source='full_name', read_only=True)
    avatarUrl = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'firstName',
            'lastName',
            'displayName',
            'fullName',
            'phone',
            'avatarUrl',
        ]
        read_only_fields = fields

    def get_avatarUrl(self, obj):
        return obj.avatar or None


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user shape embedded in expenses, splits, votes and balances."""
    displayName = serializers.CharField(source='display_name', read_only=True)
    fullName = serializers.CharField(source='full_name', read_only=True)
    avatarUrl = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'displayName', 'fullName', 'avatarUrl']
        read_only_fields = fields

    def get_avatarUrl(self, obj):
        return obj.avatar or None


class UserRegistrationSerializer(serializers.Serializer):
    """
    Serializer for user registration.
    Accepts camelCase from the client, auto-generates username from email.
    """
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    displayName = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'},
    )

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value

    def create(self, validated_data):
        email = validated_data['email']
        # Auto-generate username from email prefix
        base_username = email.split('@')[0][:30]
        username = base_username
        counter = 1
        while User.objects.filter(username=username).exists():
            username = f'{base_username}{counter}'
            counter += 1

        user = User(
            email=email,
            username=username,
            first_name=validated_data['firstName'],
            last_name=validated_data.get('lastName', ''),
            display_name=validated_data.get('displayName', '').strip(),
        )
        user.set_password(validated_data['password'])
        user.save()
        return user


class UserUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating the user profile.
    """
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False, allow_blank=True)
    displayName = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    avatarUrl = serializers.URLField(max_length=500, required=False, allow_blank=True)

    def update(self, instance, validated_data):
        if 'firstName' in validated_data:
            instance.first_name = validated_data['firstName']
        if 'lastName' in validated_data:
            instance.last_name = validated_data['lastName']
        if 'displayName' in validated_data:
            instance.display_name = validated_data['displayName'].strip()
        if 'phone' in validated_data:
            instance.phone = validated_data['phone']
        if 'avatarUrl' in validated_data:
            instance.avatar = validated_data['avatarUrl']
        instance.save()
        return instance
