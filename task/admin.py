from django.contrib import admin

from .lifecycle import compute_completed_at
from .models import Task, TaskAttachment


class TaskAttachmentInline(admin.TabularInline):
    model = TaskAttachment
    extra = 0
    readonly_fields = ('original_name', 'mime_type', 'size', 'uploaded_at')


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'priority', 'due_date', 'assigned_to', 'completed_at')
    list_filter = ('status', 'priority')
    search_fields = ('title', 'description')
    readonly_fields = ('completed_at', 'created_at', 'updated_at')
    inlines = [TaskAttachmentInline]

    def save_model(self, request, obj, form, change):
        previous = None
        if change:
            previous = Task.objects.filter(pk=obj.pk).values('status', 'completed_at').first()
        obj.completed_at = compute_completed_at(
            previous['status'] if previous else None,
            obj.status,
            previous['completed_at'] if previous else None,
        )
        super().save_model(request, obj, form, change)
