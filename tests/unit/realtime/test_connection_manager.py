"""Unit tests for the WebSocket ConnectionManager."""

from unittest.mock import AsyncMock
from uuid import uuid4

from infrastructure.realtime.connection_manager import ConnectionManager


async def test_emit_reaches_every_socket_of_the_user():
    manager = ConnectionManager()
    user, other = uuid4(), uuid4()
    first, second, foreign = AsyncMock(), AsyncMock(), AsyncMock()
    await manager.connect(user, first)
    await manager.connect(user, second)
    await manager.connect(other, foreign)

    await manager.emit_to_user(user, "notification.created", {"id": "1"})

    expected = {"event": "notification.created", "data": {"id": "1"}}
    first.send_json.assert_awaited_once_with(expected)
    second.send_json.assert_awaited_once_with(expected)
    foreign.send_json.assert_not_called()
    assert manager.connection_count() == 3
    assert manager.connection_count(user) == 2


async def test_failing_socket_is_dropped():
    manager = ConnectionManager()
    user = uuid4()
    broken = AsyncMock()
    broken.send_json.side_effect = RuntimeError("closed")
    await manager.connect(user, broken)

    await manager.emit_to_user(user, "ping", {})

    assert manager.connection_count(user) == 0


async def test_emit_without_connections_is_noop():
    await ConnectionManager().emit_to_user(uuid4(), "ping", {})


def test_disconnect_unknown_socket():
    manager = ConnectionManager()
    manager.disconnect(uuid4(), AsyncMock())

    assert manager.connection_count() == 0
