"""Tests for the Redis broker with a mocked redis client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from service_sync.broker import PublishError, RedisBroker, SubscriptionError


def make_pubsub(messages, error=None):
    """Build a PubSub mock whose listen() yields ``messages``, then raises ``error`` if given."""
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.aclose = AsyncMock()

    async def listen():
        for message in messages:
            yield message
        if error is not None:
            raise error

    pubsub.listen = listen
    return pubsub


def make_client(pubsub=None):
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.publish = AsyncMock(return_value=2)
    client.aclose = AsyncMock()
    client.pubsub = MagicMock(return_value=pubsub or make_pubsub([]))
    return client


@pytest.fixture
def redis_client():
    client = make_client()
    with patch("service_sync.broker.redis_broker.aioredis.from_url", return_value=client) as from_url:
        client.from_url = from_url
        yield client


class TestRedisBroker:
    """Test cases for RedisBroker."""

    @pytest.mark.asyncio
    async def test_connect_pings(self, redis_client):
        broker = RedisBroker("redis://cache:6379/1")

        await broker.connect()

        redis_client.from_url.assert_called_once_with("redis://cache:6379/1")
        redis_client.ping.assert_awaited_once()
        assert broker.is_connected

    @pytest.mark.asyncio
    async def test_connect_failure_raises_connection_error(self, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("refused")
        broker = RedisBroker()

        with pytest.raises(ConnectionError):
            await broker.connect()

        redis_client.aclose.assert_awaited_once()
        assert not broker.is_connected

    @pytest.mark.asyncio
    async def test_publish_returns_receiver_count(self, redis_client):
        broker = RedisBroker()
        await broker.connect()

        receivers = await broker.publish("messages created", '{"text":"hi"}')

        assert receivers == 2
        redis_client.publish.assert_awaited_once_with("messages created", '{"text":"hi"}')

    @pytest.mark.asyncio
    async def test_publish_requires_connection(self):
        with pytest.raises(ConnectionError):
            await RedisBroker().publish("messages created", "{}")

    @pytest.mark.asyncio
    async def test_publish_error(self, redis_client):
        redis_client.publish.side_effect = RedisError("boom")
        broker = RedisBroker()
        await broker.connect()

        with pytest.raises(PublishError):
            await broker.publish("messages created", "{}")

    @pytest.mark.asyncio
    async def test_subscribe_dispatches_messages(self, redis_client):
        pubsub = make_pubsub(
            [
                {"type": "subscribe", "channel": "messages created", "data": 1},
                {"type": "message", "channel": "messages created", "data": '{"text":"hi"}'},
            ]
        )
        redis_client.pubsub.return_value = pubsub
        received = []
        broker = RedisBroker()
        broker.on_message(lambda channel, payload: received.append((channel, payload)))
        await broker.connect()

        await broker.subscribe("messages created", "messages removed")
        await asyncio.wait_for(broker._listener, timeout=1)

        pubsub.subscribe.assert_awaited_once_with("messages created", "messages removed")
        assert received == [("messages created", '{"text":"hi"}')]

    @pytest.mark.asyncio
    async def test_subscribe_requires_connection(self):
        with pytest.raises(ConnectionError):
            await RedisBroker().subscribe("messages created")

    @pytest.mark.asyncio
    async def test_subscribe_error(self, redis_client):
        pubsub = make_pubsub([])
        pubsub.subscribe.side_effect = RedisError("boom")
        redis_client.pubsub.return_value = pubsub
        broker = RedisBroker()
        await broker.connect()

        with pytest.raises(SubscriptionError):
            await broker.subscribe("messages created")

    @pytest.mark.asyncio
    async def test_disconnect_closes_everything(self, redis_client):
        pubsub = make_pubsub([])
        redis_client.pubsub.return_value = pubsub
        broker = RedisBroker()
        await broker.connect()
        await broker.subscribe("messages created")

        await broker.disconnect()

        pubsub.aclose.assert_awaited_once()
        redis_client.aclose.assert_awaited_once()
        assert not broker.is_connected

    @pytest.mark.asyncio
    async def test_disconnect_without_connect(self):
        await RedisBroker().disconnect()

    @pytest.mark.asyncio
    async def test_bytes_messages_are_decoded(self, redis_client):
        redis_client.pubsub.return_value = make_pubsub(
            [{"type": "message", "channel": b"messages created", "data": b'{"text":"h\xc3\xa9"}'}]
        )
        received = []
        broker = RedisBroker()
        broker.on_message(lambda channel, payload: received.append((channel, payload)))
        await broker.connect()

        await broker.subscribe("messages created")
        await asyncio.wait_for(broker._listener, timeout=1)

        assert received == [("messages created", '{"text":"hé"}')]

    @pytest.mark.asyncio
    async def test_non_utf8_payload_is_skipped(self, redis_client):
        redis_client.pubsub.return_value = make_pubsub(
            [
                {"type": "message", "channel": b"messages created", "data": b"\xff\xfe"},
                {"type": "message", "channel": b"messages created", "data": b'{"text":"after"}'},
            ]
        )
        received = []
        broker = RedisBroker()
        broker.on_message(lambda channel, payload: received.append((channel, payload)))
        await broker.connect()

        await broker.subscribe("messages created")
        await asyncio.wait_for(broker._listener, timeout=1)

        assert received == [("messages created", '{"text":"after"}')]
        assert broker._listener.exception() is None

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_listener(self, redis_client):
        redis_client.pubsub.return_value = make_pubsub(
            [
                {"type": "message", "channel": "messages created", "data": "first"},
                {"type": "message", "channel": "messages created", "data": "second"},
            ]
        )
        received = []

        def handler(channel, payload):
            received.append(payload)
            if payload == "first":
                raise RuntimeError("handler failed")

        broker = RedisBroker()
        broker.on_message(handler)
        await broker.connect()

        await broker.subscribe("messages created")
        await asyncio.wait_for(broker._listener, timeout=1)

        assert received == ["first", "second"]

    @pytest.mark.asyncio
    async def test_listener_ends_on_redis_error(self, redis_client):
        pubsub = make_pubsub(
            [{"type": "message", "channel": "messages created", "data": "{}"}],
            error=RedisConnectionError("connection lost"),
        )
        redis_client.pubsub.return_value = pubsub
        received = []
        broker = RedisBroker()
        broker.on_message(lambda channel, payload: received.append(payload))
        await broker.connect()

        await broker.subscribe("messages created")
        await asyncio.wait_for(broker._listener, timeout=1)

        assert received == ["{}"]
        assert broker._listener.exception() is None

        await broker.disconnect()

        pubsub.aclose.assert_awaited_once()
        redis_client.aclose.assert_awaited_once()
        assert not broker.is_connected

    @pytest.mark.asyncio
    async def test_disconnect_after_unexpected_listener_failure(self, redis_client):
        pubsub = make_pubsub([], error=RuntimeError("unexpected"))
        redis_client.pubsub.return_value = pubsub
        broker = RedisBroker()
        await broker.connect()
        await broker.subscribe("messages created")
        await asyncio.wait_for(broker._listener, timeout=1)

        await broker.disconnect()

        pubsub.aclose.assert_awaited_once()
        redis_client.aclose.assert_awaited_once()
        assert not broker.is_connected

    @pytest.mark.asyncio
    async def test_disconnect_closes_client_when_pubsub_close_fails(self, redis_client):
        pubsub = make_pubsub([])
        pubsub.aclose.side_effect = RedisError("already closed")
        redis_client.pubsub.return_value = pubsub
        broker = RedisBroker()
        await broker.connect()
        await broker.subscribe("messages created")

        with pytest.raises(RedisError):
            await broker.disconnect()

        redis_client.aclose.assert_awaited_once()
        assert not broker.is_connected
