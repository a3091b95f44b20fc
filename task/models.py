from django.contrib.auth.models import User
from django.db import models


class Status(models.TextChoices):
    PENDING = 'pending', 'Pending'
    IN_PROGRESS = 'in-progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class Priority(models.TextChoices):
    LOW = 'low', 'Low'
    MEDIUM = 'medium', 'Medium'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


class Task(models.Model):
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=1000)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    due_date = models.DateTimeField()
    assigned_to = models.ForeignKey(User, on_delete=models.PROTECT, related_name='assigned_tasks')
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='created_tasks')
    # non-null exactly while status is completed, see task.lifecycle
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['assigned_to', 'status'], name='task_assignee_status_idx'),
            models.Index(fields=['created_by'], name='task_created_by_idx'),
            models.Index(fields=['due_date'], name='task_due_date_idx'),
        ]


class TaskAttachment(models.Model):
    """A stored file owned by exactly one task."""
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='attachments')
    file = models.FileField(upload_to='tasks/', max_length=255)
    original_name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField()
    uploaded_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.original_name

    @property
    def stored_filename(self):
        return self.file.name.rsplit('/', 1)[-1]

    class Meta:
        ordering = ['uploaded_at', 'id']
