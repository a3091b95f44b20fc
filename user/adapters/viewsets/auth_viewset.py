import logging

from django.db import IntegrityError
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from taskhub.policy import Action, ensure_access
from taskhub.tokens import issue_token
from user.services import email_taken, find_user_by_email, verify_password
from utils.exceptions import Conflict
from ..serializers.user_serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


class AuthViewSet(viewsets.ViewSet):
    """Registration and login. Neither requires nor inspects a bearer token."""
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'auth'
    serializer_class = LoginSerializer

    @extend_schema(request=RegisterSerializer, responses={201: UserSerializer})
    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if email_taken(serializer.validated_data['email']):
            raise Conflict('User with this email already exists')

        try:
            user = serializer.save()
        except IntegrityError:
            # concurrent registration with the same email
            raise Conflict('User with this email already exists')
        logger.info(f"User {user.pk} registered")

        return Response(
            {
                'message': 'User registered successfully',
                'token': issue_token(user.pk),
                'user': UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=LoginSerializer, responses={200: UserSerializer})
    def login(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = find_user_by_email(serializer.validated_data['email'])
        if (
            user is None
            or not user.is_active
            or not verify_password(serializer.validated_data['password'], user.password)
        ):
            logger.info("Failed login attempt")
            return Response({'message': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        return Response(
            {
                'message': 'Login successful',
                'token': issue_token(user.pk),
                'user': UserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )


class ProfileViewSet(viewsets.ViewSet):
    """The caller's own user record."""
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: UserSerializer})
    def retrieve(self, request):
        ensure_access(request.auth, Action.READ, request.user)
        return Response({'user': UserSerializer(request.user).data})

    @extend_schema(request=ProfileUpdateSerializer, responses={200: UserSerializer})
    def update(self, request):
        ensure_access(request.auth, Action.WRITE, request.user)
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response({'message': 'Profile updated successfully', 'user': UserSerializer(user).data})
