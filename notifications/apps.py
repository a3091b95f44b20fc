from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'notifications'

    def ready(self):
        from .registry import ConnectionRegistry

        # one registry per process, shared by every request handler and consumer
        self.registry = ConnectionRegistry()
