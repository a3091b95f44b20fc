from django.utils import timezone

TASK_UPDATE = 'taskUpdate'
TASK_ASSIGNED = 'taskAssigned'
SYSTEM_NOTIFICATION = 'systemNotification'


def _now():
    return timezone.now().isoformat()


def task_update_event(task_data, action):
    """``action`` is one of created, updated, deleted."""
    return {
        'event': TASK_UPDATE,
        'task': task_data,
        'action': action,
        'timestamp': _now(),
    }


def task_assigned_event(task_data):
    return {
        'event': TASK_ASSIGNED,
        'task': task_data,
        'message': f"You have been assigned a new task: {task_data.get('title')}",
        'timestamp': _now(),
    }


def system_notification_event(message, level='info'):
    return {
        'event': SYSTEM_NOTIFICATION,
        'message': message,
        'type': level,
        'timestamp': _now(),
    }
