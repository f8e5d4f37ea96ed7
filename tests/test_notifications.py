"""Tests for the notification center and the realtime channel."""

import asyncio
import json
from typing import Optional

import pytest

from booking_engine.errors import NotFound
from booking_engine.notifications.center import NotificationCenter
from booking_engine.notifications.channel import ConnectionState, ReconnectingChannel
from booking_engine.schemas.notification_schema import NotificationType


def _emit(center: NotificationCenter, recipient: str = "venue-1", entity: str = "CT-1"):
    return center.emit(
        type=NotificationType.CONTRACT_PROPOSAL,
        recipient_id=recipient,
        related_entity_id=entity,
        title="New booking proposal",
        message="You received a booking proposal.",
    )


class TestNotificationCenter:
    def test_inbox_is_newest_first(self):
        center = NotificationCenter()
        first = _emit(center, entity="CT-1")
        second = _emit(center, entity="CT-2")
        assert [n.id for n in center.list_for("venue-1")] == [second.id, first.id]

    def test_inbox_paging(self):
        center = NotificationCenter()
        for i in range(5):
            _emit(center, entity=f"CT-{i}")
        page = center.list_for("venue-1", limit=2, offset=1)
        assert [n.related_entity_id for n in page] == ["CT-3", "CT-2"]

    def test_inboxes_are_per_user(self):
        center = NotificationCenter()
        _emit(center, recipient="venue-1")
        assert center.list_for("artist-1") == []

    def test_unread_count_and_mark_as_read(self):
        center = NotificationCenter()
        event = _emit(center)
        _emit(center)
        assert center.unread_count("venue-1") == 2
        center.mark_as_read("venue-1", event.id)
        assert center.unread_count("venue-1") == 1

    def test_mark_someone_elses_notification(self):
        center = NotificationCenter()
        event = _emit(center, recipient="venue-1")
        with pytest.raises(NotFound):
            center.mark_as_read("venue-2", event.id)

    def test_mark_all_as_read(self):
        center = NotificationCenter()
        event = _emit(center)
        _emit(center)
        center.mark_as_read("venue-1", event.id)
        assert center.mark_all_as_read("venue-1") == 1
        assert center.unread_count("venue-1") == 0

    def test_listeners_receive_events(self):
        center = NotificationCenter()
        seen = []
        center.subscribe(seen.append)
        event = _emit(center)
        assert [e.id for e in seen] == [event.id]

    def test_failing_listener_does_not_block_others(self):
        center = NotificationCenter()
        seen = []

        def broken(_event):
            raise RuntimeError("socket gone")

        center.subscribe(broken)
        center.subscribe(seen.append)
        _emit(center)
        assert len(seen) == 1
        assert center.unread_count("venue-1") == 1

    def test_reset_clears_inboxes(self):
        center = NotificationCenter()
        _emit(center)
        center.reset()
        assert center.list_for("venue-1") == []


class FakeConnection:
    """In-memory connection. ``recv`` blocks until something is fed."""

    def __init__(self, *messages: Optional[str]) -> None:
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False
        for message in messages:
            self.incoming.put_nowait(message)

    async def recv(self) -> Optional[str]:
        return await self.incoming.get()

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self.incoming.put_nowait(None)


def connector(*outcomes):
    """Build a connect callable that plays back connections or errors in order."""
    remaining = list(outcomes)

    async def connect():
        if not remaining:
            raise ConnectionRefusedError("no more connections")
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return connect


class RecordingSleep:
    """Returns at once and records the delay. Delays of ``park_at`` or more block until cancelled."""

    def __init__(self, park_at: float = 3600.0) -> None:
        self.park_at = park_at
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        if delay >= self.park_at:
            await asyncio.Event().wait()
        self.delays.append(delay)


async def wait_for_state(channel: ReconnectingChannel, state: ConnectionState) -> None:
    for _ in range(100):
        if channel.state == state:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"channel never reached {state.value}")


def make_channel(connect, received=None, sleep=None, **overrides) -> ReconnectingChannel:
    options = {"base_delay": 1.0, "max_delay": 30.0, "max_attempts": 10, "ping_interval": 3600.0}
    options.update(overrides)
    return ReconnectingChannel(
        connect=connect,
        on_message=(received.append if received is not None else lambda _m: None),
        sleep=sleep or RecordingSleep(),
        **options,
    )


class TestBackoffPolicy:
    def test_delays_double_and_cap(self):
        channel = make_channel(connector())
        assert [channel.backoff_delay(n) for n in range(7)] == [1, 2, 4, 8, 16, 30, 30]

    def test_defaults_come_from_settings(self):
        channel = ReconnectingChannel(connect=connector(), on_message=lambda _m: None)
        assert channel.base_delay == 1.0
        assert channel.max_delay == 30.0
        assert channel.max_attempts == 10
        assert channel.ping_interval == 30.0


class TestReconnectingChannel:
    @pytest.mark.asyncio
    async def test_dispatches_valid_messages_only(self):
        conn = FakeConnection(
            json.dumps({"type": "notification", "payload": {"id": "NTF-1"}}),
            "not json",
            json.dumps({"payload": {}}),
            None,
        )
        received = []
        channel = make_channel(connector(conn), received, max_attempts=0)
        await channel.run()
        assert received == [{"type": "notification", "payload": {"id": "NTF-1"}}]
        assert channel.get_state_trace() == ["connecting", "open", "closed"]
        assert conn.closed

    @pytest.mark.asyncio
    async def test_gives_up_after_retry_budget(self):
        sleep = RecordingSleep()
        channel = make_channel(connector(), sleep=sleep, max_attempts=3)
        await channel.run()
        assert sleep.delays == [1.0, 2.0, 4.0]
        assert channel.state == ConnectionState.CLOSED
        assert channel.get_state_trace() == [
            "connecting", "backoff", "connecting", "backoff",
            "connecting", "backoff", "connecting", "closed",
        ]

    @pytest.mark.asyncio
    async def test_successful_open_resets_attempts(self):
        sleep = RecordingSleep()
        conn = FakeConnection(None)
        channel = make_channel(
            connector(OSError("refused"), conn), sleep=sleep, max_attempts=2,
        )
        await channel.run()
        assert sleep.delays == [1.0, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_send_while_open_and_close(self):
        conn = FakeConnection()
        channel = make_channel(connector(conn))
        task = channel.start()
        await wait_for_state(channel, ConnectionState.OPEN)
        assert channel.is_connected

        assert await channel.send("mark_read", {"id": "NTF-1"})
        assert json.loads(conn.sent[0]) == {"type": "mark_read", "payload": {"id": "NTF-1"}}

        await channel.close()
        await asyncio.wait_for(task, timeout=1)
        assert channel.state == ConnectionState.CLOSED
        assert not await channel.send("mark_read", {"id": "NTF-2"})

    @pytest.mark.asyncio
    async def test_send_before_connect(self):
        channel = make_channel(connector())
        assert not await channel.send("ping", {})

    @pytest.mark.asyncio
    async def test_close_during_backoff_stops_at_once(self):
        channel = make_channel(connector(), sleep=asyncio.sleep, base_delay=5.0)
        task = channel.start()
        await wait_for_state(channel, ConnectionState.BACKOFF)

        await channel.close()
        await asyncio.wait_for(task, timeout=1)
        assert channel.state == ConnectionState.CLOSED
        assert channel.get_state_trace() == ["connecting", "backoff", "closed"]

    @pytest.mark.asyncio
    async def test_failed_heartbeat_drops_connection(self):
        class DeadSendConnection(FakeConnection):
            async def send(self, data: str) -> None:
                raise ConnectionResetError("peer gone")

        conn = DeadSendConnection()
        sleep = RecordingSleep()
        channel = make_channel(connector(conn), sleep=sleep, ping_interval=0.5, max_attempts=0)
        await asyncio.wait_for(channel.run(), timeout=1)
        assert sleep.delays == [0.5]
        assert channel.get_state_trace() == ["connecting", "open", "closed"]
        assert conn.closed
