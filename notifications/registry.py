"""
Live-connection registry for task notifications.

Maps a user id to the Channels channel name of that user's WebSocket. Only
the most recent connection of a user is kept. Delivery is best effort: an
event for a user with no connection is dropped, and a failed send is logged.
"""
import logging
import threading
from typing import Dict, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

EVENT_MESSAGE_TYPE = 'task.event'


class ConnectionRegistry:

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer
        self._connections: Dict[str, str] = {}
        # Django may serve requests from several threads
        self._lock = threading.Lock()

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    def register(self, user_id, channel_name: str) -> None:
        with self._lock:
            previous = self._connections.get(str(user_id))
            self._connections[str(user_id)] = channel_name
        if previous and previous != channel_name:
            logger.debug(f"User {user_id} reconnected, replacing {previous}")
        logger.info(f"User {user_id} connected on {channel_name}")

    def unregister(self, user_id, channel_name: str) -> bool:
        """Forget the connection unless a newer one has replaced it."""
        with self._lock:
            if self._connections.get(str(user_id)) != channel_name:
                return False
            del self._connections[str(user_id)]
        logger.info(f"User {user_id} disconnected")
        return True

    def channel_for(self, user_id) -> Optional[str]:
        with self._lock:
            return self._connections.get(str(user_id))

    def connected_users(self):
        with self._lock:
            return list(self._connections)

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()

    def notify(self, user_id, event: dict) -> bool:
        """Send ``event`` to the user's live connection. Returns False when dropped."""
        channel_name = self.channel_for(user_id)
        if channel_name is None:
            logger.debug(f"No live connection for user {user_id}, dropping {event.get('event')}")
            return False
        return self._send(channel_name, event)

    def broadcast(self, event: dict) -> int:
        with self._lock:
            channels = list(self._connections.values())
        return sum(1 for channel_name in channels if self._send(channel_name, event))

    def _send(self, channel_name: str, event: dict) -> bool:
        layer = self.channel_layer
        if layer is None:
            logger.warning("No channel layer configured, notification dropped")
            return False
        try:
            async_to_sync(layer.send)(channel_name, {'type': EVENT_MESSAGE_TYPE, 'event': event})
        except Exception as e:
            logger.warning(f"Could not deliver {event.get('event')} to {channel_name}: {e}")
            return False
        return True


def get_registry() -> ConnectionRegistry:
    from django.apps import apps

    return apps.get_app_config('notifications').registry
