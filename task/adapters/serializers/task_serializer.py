from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework import serializers

from task.lifecycle import InvalidTransition, check_transition, compute_completed_at
from task.models import Priority, Status, Task, TaskAttachment
from user.adapters.serializers.user_serializers import UserSummarySerializer


class TaskAttachmentSerializer(serializers.ModelSerializer):
    storedFilename = serializers.CharField(source='stored_filename')
    originalName = serializers.CharField(source='original_name')
    mimeType = serializers.CharField(source='mime_type')
    sizeBytes = serializers.IntegerField(source='size')
    uploadedAt = serializers.DateTimeField(source='uploaded_at')

    class Meta:
        model = TaskAttachment
        fields = ('id', 'storedFilename', 'originalName', 'mimeType', 'sizeBytes', 'uploadedAt')
        read_only_fields = fields


class TaskSerializer(serializers.ModelSerializer):
    dueDate = serializers.DateTimeField(source='due_date')
    assignedTo = UserSummarySerializer(source='assigned_to', read_only=True)
    createdBy = UserSummarySerializer(source='created_by', read_only=True)
    attachments = TaskAttachmentSerializer(many=True, read_only=True)
    completedAt = serializers.DateTimeField(source='completed_at', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Task
        fields = (
            'id',
            'title',
            'description',
            'status',
            'priority',
            'dueDate',
            'assignedTo',
            'createdBy',
            'attachments',
            'completedAt',
            'createdAt',
            'updatedAt',
        )
        read_only_fields = fields


class TaskWriteSerializer(serializers.Serializer):
    """
    Input for creating and updating tasks.

    Updates are always partial. Attachments and ``created_by`` are passed to
    ``save()`` by the view, never read from the request body.
    """
    title = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=1000)
    status = serializers.ChoiceField(choices=Status.choices, required=False)
    priority = serializers.ChoiceField(choices=Priority.choices)
    dueDate = serializers.DateTimeField()
    assignedTo = serializers.IntegerField()

    def validate_dueDate(self, value):
        if value <= timezone.now():
            raise serializers.ValidationError('Due date must be in the future')
        return value

    def validate_assignedTo(self, value):
        user = User.objects.filter(pk=value, is_active=True).first()
        if user is None:
            raise serializers.ValidationError('Assigned user not found')
        return user

    def validate_status(self, value):
        if self.instance is not None:
            try:
                check_transition(self.instance.status, value)
            except InvalidTransition as exc:
                raise serializers.ValidationError(str(exc))
        return value

    def create(self, validated_data):
        attachments = validated_data.pop('attachments', [])
        status = validated_data.get('status', Status.PENDING)

        task = Task.objects.create(
            title=validated_data['title'],
            description=validated_data['description'],
            status=status,
            priority=validated_data['priority'],
            due_date=validated_data['dueDate'],
            assigned_to=validated_data['assignedTo'],
            created_by=validated_data['created_by'],
            completed_at=compute_completed_at(None, status, None),
        )
        _bind_attachments(task, attachments)
        return task

    def update(self, instance, validated_data):
        attachments = validated_data.pop('attachments', [])

        if 'status' in validated_data:
            new_status = validated_data['status']
            instance.completed_at = compute_completed_at(instance.status, new_status, instance.completed_at)
            instance.status = new_status

        for field, attr in (
            ('title', 'title'),
            ('description', 'description'),
            ('priority', 'priority'),
            ('dueDate', 'due_date'),
            ('assignedTo', 'assigned_to'),
        ):
            if field in validated_data:
                setattr(instance, attr, validated_data[field])

        instance.save()
        _bind_attachments(instance, attachments)
        return instance


def _bind_attachments(task, stored):
    for item in stored:
        TaskAttachment.objects.create(
            task=task,
            file=item.name,
            original_name=item.original_name,
            mime_type=item.mime_type,
            size=item.size,
        )
