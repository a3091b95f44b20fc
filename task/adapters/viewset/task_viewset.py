import logging

from django.db import transaction
from django.http import FileResponse
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from notifications.events import task_assigned_event, task_update_event
from notifications.registry import get_registry
from task.attachments import AttachmentHandler
from task.filters import TaskFilter
from task.models import Task, TaskAttachment
from task.permission import TaskAccessPermission
from taskhub.policy import ensure_can_reassign, resolve_create_assignee
from utils.custom_paginator import TaskPaginator
from utils.email_notification import send_task_assignment_email
from ..serializers.task_serializer import TaskSerializer, TaskWriteSerializer

logger = logging.getLogger(__name__)


class TaskListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    sortBy = serializers.ChoiceField(choices=['title', 'status', 'priority', 'dueDate', 'createdAt'], default='createdAt')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='desc')


SORT_FIELDS = {
    'title': 'title',
    'status': 'status',
    'priority': 'priority',
    'dueDate': 'due_date',
    'createdAt': 'created_at',
}


class TaskViewset(viewsets.ModelViewSet):
    """
    Tasks API with:
    - bearer JWT auth
    - list filtering/search/sorting, non-admins scoped to their own tasks
    - object-level permissions via TaskAccessPermission
    - up to 3 PDF attachments per task, uploaded as multipart ``attachments``
    - live notifications and assignment emails after every change
    """
    serializer_class = TaskSerializer
    pagination_class = TaskPaginator
    permission_classes = [IsAuthenticated, TaskAccessPermission]
    parser_classes = [JSONParser, FormParser, MultiPartParser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = TaskFilter

    attachment_handler_class = AttachmentHandler
    # set by tests; requests otherwise use the process-wide registry
    registry = None

    def get_registry(self):
        return self.registry or get_registry()

    def get_attachment_handler(self):
        return self.attachment_handler_class()

    def get_queryset(self):
        qs = Task.objects.select_related('assigned_to', 'created_by').prefetch_related('attachments')

        if self.action == 'list':
            requester = getattr(self.request, 'auth', None)
            if requester is None:
                return qs.none()
            if not requester.is_admin:
                qs = qs.filter(assigned_to_id=requester.user_id)

        return qs

    def get_object(self):
        try:
            task = self.get_queryset().get(pk=self.kwargs['pk'])
        except (Task.DoesNotExist, TypeError, ValueError):
            raise NotFound('Task not found')
        self.check_object_permissions(self.request, task)
        return task

    def list(self, request, *args, **kwargs):
        query = TaskListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        qs = self.filter_queryset(self.get_queryset())
        order = SORT_FIELDS[params['sortBy']]
        qs = qs.order_by(order if params['sortOrder'] == 'asc' else f"-{order}", '-id')

        page = self.paginate_queryset(qs)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        task = self.get_object()
        return Response({'task': TaskSerializer(task).data})

    @extend_schema(request=TaskWriteSerializer, responses={201: TaskSerializer})
    def create(self, request, *args, **kwargs):
        data = self._form_fields(request)
        data['assignedTo'] = resolve_create_assignee(request.auth, data.get('assignedTo'))

        write_serializer = TaskWriteSerializer(data=data)
        write_serializer.is_valid(raise_exception=True)

        task = self._save_with_attachments(
            write_serializer,
            request.FILES.getlist('attachments'),
            existing_count=0,
            created_by=request.user,
        )
        task = self.get_queryset().get(pk=task.pk)
        task_data = TaskSerializer(task).data

        logger.info(f"Task {task.pk} created by {request.auth.user_id} for {task.assigned_to_id}")
        self._notify(task.assigned_to_id, task_update_event(task_data, 'created'))
        if task.assigned_to_id != request.auth.user_id:
            self._announce_assignment(task, task_data)

        return Response(
            {'message': 'Task created successfully', 'task': task_data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=TaskWriteSerializer, responses={200: TaskSerializer})
    def update(self, request, *args, **kwargs):
        task = self.get_object()
        previous_assignee_id = task.assigned_to_id

        data = self._form_fields(request)
        if not ensure_can_reassign(request.auth, task, data.get('assignedTo')):
            data.pop('assignedTo', None)

        write_serializer = TaskWriteSerializer(task, data=data, partial=True)
        write_serializer.is_valid(raise_exception=True)

        task = self._save_with_attachments(
            write_serializer,
            request.FILES.getlist('attachments'),
            existing_count=task.attachments.count(),
        )
        task = self.get_queryset().get(pk=task.pk)
        task_data = TaskSerializer(task).data

        self._notify(task.assigned_to_id, task_update_event(task_data, 'updated'))
        if task.assigned_to_id != previous_assignee_id:
            logger.info(f"Task {task.pk} reassigned from {previous_assignee_id} to {task.assigned_to_id}")
            self._notify(previous_assignee_id, task_update_event(task_data, 'updated'))
            self._announce_assignment(task, task_data)

        return Response({'message': 'Task updated successfully', 'task': task_data})

    def destroy(self, request, *args, **kwargs):
        task = self.get_object()
        task_data = TaskSerializer(task).data
        assignee_id = task.assigned_to_id
        stored_names = [attachment.file.name for attachment in task.attachments.all()]

        task.delete()

        handler = self.get_attachment_handler()
        for name in stored_names:
            handler.remove(name)

        self._notify(assignee_id, task_update_event(task_data, 'deleted'))
        return Response({'message': 'Task deleted successfully'}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get', 'delete'], url_path=r'attachments/(?P<attachment_id>[^/.]+)')
    def attachment(self, request, pk=None, attachment_id=None):
        """Download (GET) or remove (DELETE) one attachment of a task."""
        task = self.get_object()
        try:
            attachment = task.attachments.get(pk=attachment_id)
        except (TaskAttachment.DoesNotExist, TypeError, ValueError):
            raise NotFound('Attachment not found')

        handler = self.get_attachment_handler()

        if request.method == 'DELETE':
            name = attachment.file.name
            attachment.delete()
            handler.remove(name)

            task = self.get_queryset().get(pk=task.pk)
            self._notify(task.assigned_to_id, task_update_event(TaskSerializer(task).data, 'updated'))
            return Response({'message': 'Attachment removed successfully'})

        if not handler.exists(attachment.file.name):
            raise NotFound('File not found on server')

        return FileResponse(
            handler.storage.open(attachment.file.name, 'rb'),
            as_attachment=True,
            filename=attachment.original_name,
            content_type=attachment.mime_type,
        )

    def _save_with_attachments(self, write_serializer, files, existing_count, **save_kwargs):
        handler = self.get_attachment_handler()
        stored = handler.accept(files, existing_count=existing_count)
        try:
            with transaction.atomic():
                return write_serializer.save(attachments=stored, **save_kwargs)
        except Exception:
            # the database write failed after the files were written
            handler.discard(stored)
            raise

    def _form_fields(self, request):
        return {key: request.data.get(key) for key in request.data.keys() if key != 'attachments'}

    def _notify(self, user_id, event):
        self.get_registry().notify(user_id, event)

    def _announce_assignment(self, task, task_data):
        self._notify(task.assigned_to_id, task_assigned_event(task_data))
        send_task_assignment_email(task.assigned_to, task)
