import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils.html import escape

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, message: str, html_message: str) -> bool:
    """
    Send one email through the configured backend.

    Returns:
        bool: True if the message was handed to the backend, False otherwise.
        Failures are logged and never raised, so a broken mail server cannot
        fail the request that triggered the email.
    """
    if not to_email:
        logger.warning(f"No recipient for '{subject}', email not sent")
        return False

    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to_email],
            html_message=html_message,
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Error sending email '{subject}' to {to_email}: {str(e)}")
        return False

    logger.info(f"Email '{subject}' sent to {to_email}")
    return True


def _display_name(user) -> str:
    return f"{user.first_name} {user.last_name}".strip() or user.email


def send_task_assignment_email(user, task) -> bool:
    due = task.due_date.strftime('%Y-%m-%d')
    plain_message = (
        f"Hello {_display_name(user)},\n\n"
        f"You have been assigned a new task: {task.title}\n"
        f"Priority: {task.priority}\n"
        f"Due Date: {due}\n\n"
        f"Please log in to your account to view more details."
    )
    html_message = f"""
        <h2>New Task Assigned</h2>
        <p>Hello {escape(_display_name(user))},</p>
        <p>You have been assigned a new task:</p>
        <div style="border: 1px solid #ddd; padding: 15px; margin: 10px 0;">
          <h3>{escape(task.title)}</h3>
          <p><strong>Description:</strong> {escape(task.description)}</p>
          <p><strong>Priority:</strong> {escape(task.priority)}</p>
          <p><strong>Due Date:</strong> {due}</p>
        </div>
        <p>Please log in to your account to view more details.</p>
    """
    return send_email(user.email, 'New Task Assigned', plain_message, html_message)


def send_task_reminder_email(user, task) -> bool:
    due = task.due_date.strftime('%Y-%m-%d %H:%M')
    plain_message = (
        f"Hello {_display_name(user)},\n\n"
        f"This is a reminder that your task is due soon: {task.title}\n"
        f"Due Date: {due}\n"
        f"Status: {task.status}\n\n"
        f"Please complete your task on time."
    )
    html_message = f"""
        <h2>Task Reminder</h2>
        <p>Hello {escape(_display_name(user))},</p>
        <p>This is a reminder that your task is due soon:</p>
        <div style="border: 1px solid #ddd; padding: 15px; margin: 10px 0;">
          <h3>{escape(task.title)}</h3>
          <p><strong>Due Date:</strong> {due}</p>
          <p><strong>Status:</strong> {escape(task.status)}</p>
        </div>
        <p>Please complete your task on time.</p>
    """
    return send_email(user.email, 'Task Due Soon', plain_message, html_message)
