from django.urls import re_path

from .consumers import TaskEventConsumer

websocket_urlpatterns = [
    re_path(r'^ws/notifications/?$', TaskEventConsumer.as_asgi()),
]
