import threading

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator

from notifications.consumers import CLOSE_UNAUTHENTICATED, TaskEventConsumer
from notifications.events import system_notification_event, task_assigned_event, task_update_event
from notifications.registry import ConnectionRegistry, get_registry
from taskhub.tokens import issue_token


class FakeChannelLayer:

    def __init__(self, fail_for=()):
        self.messages = []
        self.fail_for = set(fail_for)

    async def send(self, channel, message):
        if channel in self.fail_for:
            raise RuntimeError('channel is gone')
        self.messages.append((channel, message))


@pytest.fixture
def layer():
    return FakeChannelLayer()


@pytest.fixture
def connections(layer):
    return ConnectionRegistry(channel_layer=layer)


class TestConnectionRegistry:

    def test_notify_delivers_to_registered_channel(self, connections, layer):
        connections.register(7, 'chan-a')
        event = system_notification_event('hello')

        assert connections.notify(7, event) is True
        assert layer.messages == [('chan-a', {'type': 'task.event', 'event': event})]

    def test_user_ids_are_compared_as_strings(self, connections, layer):
        connections.register('7', 'chan-a')
        assert connections.notify(7, system_notification_event('hi'))

    def test_no_connection_drops_event(self, connections, layer):
        assert connections.notify(99, system_notification_event('lost')) is False
        assert layer.messages == []

    def test_new_connection_replaces_old(self, connections, layer):
        connections.register(7, 'chan-a')
        connections.register(7, 'chan-b')
        connections.notify(7, system_notification_event('x'))

        assert [channel for channel, _ in layer.messages] == ['chan-b']

    def test_stale_disconnect_keeps_newer_mapping(self, connections):
        connections.register(7, 'chan-a')
        connections.register(7, 'chan-b')

        assert connections.unregister(7, 'chan-a') is False
        assert connections.channel_for(7) == 'chan-b'

        assert connections.unregister(7, 'chan-b') is True
        assert connections.channel_for(7) is None

    def test_failed_send_is_swallowed(self):
        connections = ConnectionRegistry(channel_layer=FakeChannelLayer(fail_for={'chan-a'}))
        connections.register(7, 'chan-a')

        assert connections.notify(7, system_notification_event('x')) is False

    def test_broadcast(self, connections, layer):
        connections.register(1, 'chan-1')
        connections.register(2, 'chan-2')

        assert connections.broadcast(system_notification_event('maintenance', level='warning')) == 2
        assert {channel for channel, _ in layer.messages} == {'chan-1', 'chan-2'}

    def test_concurrent_registration(self, connections):
        def register_many(offset):
            for i in range(200):
                connections.register(offset + i, f"chan-{offset + i}")

        threads = [threading.Thread(target=register_many, args=(n * 1000,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(connections.connected_users()) == 800

        connections.clear()
        assert connections.connected_users() == []


def test_process_registry_comes_from_app_config():
    assert isinstance(get_registry(), ConnectionRegistry)
    assert get_registry() is get_registry()


def test_event_shapes():
    task = {'id': 1, 'title': 'Ship it'}

    update = task_update_event(task, 'updated')
    assert update['event'] == 'taskUpdate'
    assert update['action'] == 'updated'
    assert update['task'] == task
    assert 'timestamp' in update

    assigned = task_assigned_event(task)
    assert assigned['event'] == 'taskAssigned'
    assert assigned['message'] == 'You have been assigned a new task: Ship it'

    notice = system_notification_event('Down at noon', level='warning')
    assert notice['event'] == 'systemNotification'
    assert notice['message'] == 'Down at noon'
    assert notice['type'] == 'warning'


@pytest.mark.django_db(transaction=True)
class TestTaskEventConsumer:

    @pytest.fixture
    def consumer_registry(self):
        return ConnectionRegistry()

    @pytest.fixture
    def app(self, consumer_registry):
        consumer_class = type('TestConsumer', (TaskEventConsumer,), {'registry': consumer_registry})
        return consumer_class.as_asgi()

    def test_valid_token_registers_and_receives_events(self, app, consumer_registry, regular_user):
        async def scenario():
            communicator = WebsocketCommunicator(app, f"/ws/notifications/?token={issue_token(regular_user.pk)}")
            connected, _ = await communicator.connect()
            assert connected

            channel_name = consumer_registry.channel_for(regular_user.pk)
            assert channel_name

            event = system_notification_event('hello')
            await get_channel_layer().send(channel_name, {'type': 'task.event', 'event': event})
            assert await communicator.receive_json_from() == event

            await communicator.send_json_to({'type': 'ping'})
            assert await communicator.receive_json_from() == {'type': 'pong'}

            await communicator.disconnect()
            assert consumer_registry.channel_for(regular_user.pk) is None

        async_to_sync(scenario)()

    def test_bad_token_is_refused(self, app, consumer_registry):
        async def scenario():
            communicator = WebsocketCommunicator(app, '/ws/notifications/?token=nope')
            connected, code = await communicator.connect()
            assert not connected
            assert code == CLOSE_UNAUTHENTICATED

        async_to_sync(scenario)()
        assert consumer_registry.connected_users() == []

    def test_missing_token_is_refused(self, app):
        async def scenario():
            communicator = WebsocketCommunicator(app, '/ws/notifications/')
            connected, code = await communicator.connect()
            assert not connected
            assert code == CLOSE_UNAUTHENTICATED

        async_to_sync(scenario)()
