import logging
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from task.models import Status, Task
from utils.email_notification import send_task_reminder_email

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Email assignees whose open tasks fall due within the next --hours hours."

    def add_arguments(self, parser):
        parser.add_argument('--hours', type=int, default=24, help='Reminder window in hours (default 24)')

    def handle(self, *args, **options):
        now = timezone.now()
        window_end = now + timedelta(hours=options['hours'])

        due_tasks = (
            Task.objects.select_related('assigned_to')
            .filter(
                due_date__gte=now,
                due_date__lte=window_end,
                assigned_to__is_active=True,
            )
            .exclude(status__in=[Status.COMPLETED, Status.CANCELLED])
            .order_by('due_date')
        )

        sent = 0
        for task in due_tasks:
            if send_task_reminder_email(task.assigned_to, task):
                sent += 1

        logger.info(f"Task reminders: {sent} sent for {len(due_tasks)} due task(s)")
        self.stdout.write(self.style.SUCCESS(f"Sent {sent} reminder(s)"))
