import logging
from urllib.parse import parse_qs

from channels.generic.websocket import JsonWebsocketConsumer
from rest_framework.exceptions import APIException

from taskhub.jwt_auth import authenticate_raw_token
from .registry import get_registry

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4401


class TaskEventConsumer(JsonWebsocketConsumer):
    """
    Live task notifications for one user.

    The client connects to ``/ws/notifications/?token=<access token>``; the
    token is checked exactly like an HTTP bearer token.
    """
    registry = None

    def get_registry(self):
        return self.registry or get_registry()

    def connect(self):
        query = parse_qs(self.scope.get('query_string', b'').decode('utf-8'))
        raw_token = (query.get('token') or [''])[0]

        try:
            user, requester = authenticate_raw_token(raw_token)
        except APIException as exc:
            logger.info(f"Rejected WebSocket connection: {exc.detail}")
            self.close(code=CLOSE_UNAUTHENTICATED)
            return

        self.user_id = requester.user_id
        # must be in the registry before the handshake completes
        self.get_registry().register(self.user_id, self.channel_name)
        self.accept()

    def disconnect(self, code):
        user_id = getattr(self, 'user_id', None)
        if user_id is not None:
            self.get_registry().unregister(user_id, self.channel_name)

    def receive_json(self, content, **kwargs):
        # clients only listen; answer pings so they can detect dead sockets
        if content.get('type') == 'ping':
            self.send_json({'type': 'pong'})

    def task_event(self, message):
        self.send_json(message['event'])
