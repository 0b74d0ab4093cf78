"""
Tests for the connection registry, per-connection queues and notification fan-out.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from teamtasks.domain.tasks.models import Notification, TaskEvent
from teamtasks.domain.users.models import Role, User
from teamtasks.realtime.connection import ClientConnection
from teamtasks.realtime.fanout import NotificationFanout
from teamtasks.realtime.registry import ConnectionRegistry

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _user(user_id: str, role: Role = Role.USER) -> User:
    return User(id=user_id, name=user_id, email=f"{user_id}@example.com", role=role, is_active=True, created_at=NOW)


class Sink:
    """Collects what a connection writes."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def send(self, message: dict) -> None:
        await asyncio.sleep(0)
        self.messages.append(message)


async def _drain(*conns: ClientConnection) -> None:
    for conn in conns:
        conn.close()
    await asyncio.gather(*(conn._writer for conn in conns))


def _start(conn: ClientConnection) -> ClientConnection:
    conn._writer = asyncio.create_task(conn.run())
    return conn


def test_bind_places_connection_in_user_and_role_groups():
    registry = ConnectionRegistry()
    conn = ClientConnection(Sink().send, label="c1")
    registry.bind(conn, _user("u1"))

    assert registry.for_user("u1") == [conn]
    assert registry.for_role(Role.USER) == [conn]
    assert registry.for_role(Role.ADMIN) == []
    assert registry.binding(conn).user_id == "u1"
    assert len(registry) == 1


def test_release_removes_all_memberships_immediately():
    registry = ConnectionRegistry()
    conn = ClientConnection(Sink().send, label="c1")
    registry.bind(conn, _user("u1"))

    binding = registry.release(conn)
    assert binding is not None and binding.user_id == "u1"
    assert registry.for_user("u1") == []
    assert registry.for_role(Role.USER) == []
    assert len(registry) == 0
    assert registry.release(conn) is None


def test_every_connection_of_a_user_gets_a_copy():
    async def run():
        registry = ConnectionRegistry()
        fanout = NotificationFanout(registry)
        sink_a, sink_b, sink_other = Sink(), Sink(), Sink()
        a = _start(ClientConnection(sink_a.send, label="a"))
        b = _start(ClientConnection(sink_b.send, label="b"))
        other = _start(ClientConnection(sink_other.send, label="other"))
        registry.bind(a, _user("u1"))
        registry.bind(b, _user("u1"))
        registry.bind(other, _user("u2"))

        fanout.deliver(Notification("u1", TaskEvent.UPDATED, {"id": "t1"}))
        await _drain(a, b, other)

        expected = [{"event": "taskUpdated", "data": {"id": "t1"}}]
        assert sink_a.messages == expected
        assert sink_b.messages == expected
        assert sink_other.messages == []

    asyncio.run(run())


def test_events_keep_emission_order_per_connection():
    async def run():
        registry = ConnectionRegistry()
        fanout = NotificationFanout(registry)
        sink = Sink()
        conn = _start(ClientConnection(sink.send, label="c"))
        registry.bind(conn, _user("u1"))

        for event in (TaskEvent.UPDATED, TaskEvent.ASSIGNED, TaskEvent.DELETED):
            fanout.deliver(Notification("u1", event, {"id": "t1"}))
        await _drain(conn)

        assert [m["event"] for m in sink.messages] == ["taskUpdated", "taskAssigned", "taskDeleted"]

    asyncio.run(run())


def test_no_connection_means_event_is_dropped():
    registry = ConnectionRegistry()
    fanout = NotificationFanout(registry)
    # nothing bound: must neither raise nor queue anything
    fanout.deliver(Notification("u1", TaskEvent.ASSIGNED, {"id": "t1"}))
    assert len(registry) == 0


def test_released_connection_receives_nothing_new():
    async def run():
        registry = ConnectionRegistry()
        fanout = NotificationFanout(registry)
        sink = Sink()
        conn = _start(ClientConnection(sink.send, label="c"))
        registry.bind(conn, _user("u1"))
        registry.release(conn)

        fanout.deliver(Notification("u1", TaskEvent.UPDATED, {"id": "t1"}))
        await _drain(conn)
        assert sink.messages == []

    asyncio.run(run())


def test_full_queue_drops_instead_of_blocking():
    conn = ClientConnection(Sink().send, label="slow", max_queue=2)
    assert conn.push({"event": "a"})
    assert conn.push({"event": "b"})
    assert not conn.push({"event": "c"})


def test_failed_send_stops_connection_quietly():
    async def run():
        async def broken(message: dict) -> None:
            raise ConnectionResetError("gone")

        conn = ClientConnection(broken, label="broken")
        task = asyncio.create_task(conn.run())
        conn.push({"event": "taskUpdated"})
        await task
        assert conn.closed
        assert not conn.push({"event": "taskUpdated"})

    asyncio.run(run())


def test_broadcast_to_role():
    async def run():
        registry = ConnectionRegistry()
        fanout = NotificationFanout(registry)
        admin_sink, user_sink = Sink(), Sink()
        admin_conn = _start(ClientConnection(admin_sink.send, label="admin"))
        user_conn = _start(ClientConnection(user_sink.send, label="user"))
        registry.bind(admin_conn, _user("boss", Role.ADMIN))
        registry.bind(user_conn, _user("u1"))

        assert fanout.broadcast_to_role(Role.ADMIN, "announcement", {"text": "hi"}) == 1
        await _drain(admin_conn, user_conn)

        assert admin_sink.messages == [{"event": "announcement", "data": {"text": "hi"}}]
        assert user_sink.messages == []

    asyncio.run(run())
