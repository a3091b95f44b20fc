import logging

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from notifications.events import system_notification_event
from notifications.registry import get_registry
from task.models import Status, Task
from taskhub.policy import Action, can_access, ensure_access
from user.models import Role
from user.permission import IsAdminRole
from user.services import email_taken
from utils.custom_paginator import UserPaginator
from utils.exceptions import BadRequest, Conflict
from ..serializers.user_serializers import AdminUserCreateSerializer, AdminUserUpdateSerializer, UserSerializer

logger = logging.getLogger(__name__)


class UserListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    search = serializers.CharField(required=False)
    sortBy = serializers.ChoiceField(choices=['firstName', 'lastName', 'email', 'createdAt'], default='createdAt')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='desc')


SORT_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'email': 'email',
    'createdAt': 'date_joined',
}


class UserViewSet(viewsets.ModelViewSet):
    """
    User administration, admin only.

    Users are never removed from the database: deleting one deactivates it
    and hands its tasks to the admin who deleted it.
    """
    serializer_class = UserSerializer
    pagination_class = UserPaginator
    permission_classes = [IsAuthenticated, IsAdminRole]
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']
    registry = None

    def get_registry(self):
        return self.registry or get_registry()

    def get_queryset(self):
        return User.objects.select_related('profile')

    def get_object(self):
        try:
            user = self.get_queryset().get(pk=self.kwargs['pk'])
        except (User.DoesNotExist, TypeError, ValueError):
            raise NotFound('User not found')
        self.check_object_permissions(self.request, user)
        return user

    def list(self, request, *args, **kwargs):
        query = UserListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        qs = self.get_queryset().filter(is_active=True)
        if params.get('role'):
            if params['role'] == Role.ADMIN:
                qs = qs.filter(Q(profile__role=Role.ADMIN) | Q(profile__isnull=True, is_superuser=True))
            else:
                qs = qs.filter(Q(profile__role=Role.USER) | Q(profile__isnull=True, is_superuser=False))
        if params.get('search'):
            term = params['search']
            qs = qs.filter(
                Q(first_name__icontains=term) | Q(last_name__icontains=term) | Q(email__icontains=term)
            )

        order = SORT_FIELDS[params['sortBy']]
        qs = qs.order_by(order if params['sortOrder'] == 'asc' else f"-{order}", 'id')

        page = self.paginate_queryset(qs)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        user = self.get_object()
        if not user.is_active:
            raise NotFound('User not found')

        counts = (
            Task.objects.filter(assigned_to=user)
            .values('status')
            .annotate(count=Count('id'))
        )
        task_stats = {value: 0 for value in Status.values}
        for row in counts:
            task_stats[row['status']] = row['count']

        return Response({'user': UserSerializer(user).data, 'taskStats': task_stats})

    @extend_schema(request=AdminUserCreateSerializer, responses={201: UserSerializer})
    def create(self, request, *args, **kwargs):
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if email_taken(serializer.validated_data['email']):
            raise Conflict('User with this email already exists')

        try:
            user = serializer.save()
        except IntegrityError:
            raise Conflict('User with this email already exists')
        logger.info(f"Admin {request.auth.user_id} created user {user.pk}")
        return Response(
            {'message': 'User created successfully', 'user': UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=AdminUserUpdateSerializer, responses={200: UserSerializer})
    def update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        # deactivating is a soft delete, so it follows the delete rule
        if serializer.validated_data.get('isActive') is False and not can_access(request.auth, Action.DELETE, user):
            raise BadRequest('You cannot delete your own account')

        email = serializer.validated_data.get('email')
        if email and email_taken(email, exclude_user_id=user.pk):
            raise Conflict('Email is already taken')

        try:
            with transaction.atomic():
                user = serializer.save()
        except IntegrityError:
            raise Conflict('Email is already taken')
        return Response({'message': 'User updated successfully', 'user': UserSerializer(user).data})

    def destroy(self, request, *args, **kwargs):
        if str(kwargs['pk']) == str(request.auth.user_id):
            raise BadRequest('You cannot delete your own account')

        user = self.get_object()
        ensure_access(request.auth, Action.DELETE, user)

        with transaction.atomic():
            user.is_active = False
            user.save(update_fields=['is_active'])
            moved = Task.objects.filter(assigned_to=user).update(assigned_to=request.user)

        logger.info(f"User {user.pk} deactivated by {request.auth.user_id}; {moved} task(s) reassigned")
        self.get_registry().notify(
            user.pk, system_notification_event('Your account has been deactivated', level='warning')
        )
        return Response({'message': 'User deleted successfully'}, status=status.HTTP_200_OK)
