"""
Views for the Users app.

Auth responses use camelCase and a flat token structure.
"""
import logging

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.users.serializers import (
    UserRegistrationSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


def _build_auth_response(user, refresh_token, http_status=status.HTTP_200_OK):
    """Helper to build a consistent auth response with camelCase tokens."""
    return Response(
        {
            'success': True,
            'user': UserSerializer(user).data,
            'accessToken': str(refresh_token.access_token),
            'refreshToken': str(refresh_token),
        },
        status=http_status,
    )


class RegisterView(APIView):
    """
    Register a new user account.

    POST /api/v1/auth/register/
    Body: {"firstName": "...", "lastName": "...", "email": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        refresh = RefreshToken.for_user(user)
        return _build_auth_response(user, refresh, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with email and password to obtain JWT tokens.

    POST /api/v1/auth/login/
    Body: {"email": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        email = (request.data.get('email') or '').lower()
        password = request.data.get('password')

        if not email or not password:
            raise ValidationError('Both email and password are required.')

        user = User.objects.filter(email=email).first()
        if user is None or not user.check_password(password):
            logger.info('Failed login for %s', email)
            raise AuthenticationFailed('Invalid email or password.')

        if not user.is_active:
            raise PermissionDenied('This account has been disabled.', code='account_disabled')

        refresh = RefreshToken.for_user(user)
        return _build_auth_response(user, refresh, status.HTTP_200_OK)


class UserProfileView(APIView):
    """
    Retrieve or update the authenticated user's profile.

    GET   /api/v1/users/me/
    PATCH /api/v1/users/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response({'success': True, 'data': serializer.data})

    def patch(self, request):
        serializer = UserUpdateSerializer(
            request.user,
            data=request.data,
            partial=True,
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {
                'success': True,
                'data': UserSerializer(request.user).data,
            }
        )


class LogoutView(APIView):
    """
    Blacklist the caller's refresh token.

    POST /api/v1/auth/logout/
    Body: {"refreshToken": "<refresh_token>"}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        token = request.data.get('refreshToken')
        if not token:
            raise ValidationError('Refresh token is required.')
        try:
            RefreshToken(token).blacklist()
        except TokenError:
            raise AuthenticationFailed('Token is invalid or expired.', code='token_invalid')

        logger.info('User %s logged out', request.user.pk)
        return Response({'success': True, 'message': 'Logged out.'})
