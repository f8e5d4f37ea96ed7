"""
Supervised realtime notification channel with bounded reconnects.

The channel owns one connection at a time and moves through explicit
states: CONNECTING -> OPEN, and on failure or disconnect BACKOFF -> CONNECTING
again, until the retry budget is spent or ``close()`` is called, at which
point it settles in CLOSED. Delays grow exponentially from the base delay
and are capped. A successful open resets the attempt counter.

Usage:
    channel = ReconnectingChannel(connect=open_socket, on_message=handle)
    task = channel.start()
    ...
    await channel.close()
    await task
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from booking_engine.config import settings

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    BACKOFF = "backoff"
    CLOSED = "closed"


class Connection(Protocol):
    """Minimal transport the channel drives. ``recv`` returns None on EOF."""

    async def recv(self) -> Optional[str]: ...

    async def send(self, data: str) -> None: ...

    async def close(self) -> None: ...


@dataclass
class StateEntry:
    """Recorded history entry for a channel state."""
    state: ConnectionState
    entered_at: datetime
    attempt: int = 0


Connector = Callable[[], Awaitable[Connection]]
MessageHandler = Callable[[dict[str, Any]], None]


class ReconnectingChannel:
    """Keeps a realtime connection alive within a fixed retry budget."""

    def __init__(
        self,
        connect: Connector,
        on_message: MessageHandler,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        max_attempts: Optional[int] = None,
        ping_interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        cfg = settings.realtime
        self._connect = connect
        self._on_message = on_message
        self.base_delay = cfg.base_delay_sec if base_delay is None else base_delay
        self.max_delay = cfg.max_delay_sec if max_delay is None else max_delay
        self.max_attempts = cfg.max_attempts if max_attempts is None else max_attempts
        self.ping_interval = cfg.ping_interval_sec if ping_interval is None else ping_interval
        self._sleep = sleep

        self._state = ConnectionState.CLOSED
        self._attempt = 0
        self._closing = False
        self._stop = asyncio.Event()
        self._conn: Optional[Connection] = None
        self._history: list[StateEntry] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.OPEN

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def backoff_delay(self, attempt: int) -> float:
        """Delay before reconnect attempt ``attempt`` (zero-based)."""
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        self._history.append(StateEntry(
            state=state, entered_at=datetime.now(timezone.utc), attempt=self._attempt,
        ))
        logger.debug("Realtime channel -> %s (attempt %d)", state.value, self._attempt)

    # ------------------------------------------------------------------ #
    # Supervisor
    # ------------------------------------------------------------------ #

    def start(self) -> "asyncio.Task[None]":
        """Run the supervisor as a background task."""
        return asyncio.create_task(self.run())

    async def run(self) -> None:
        """Connect, pump messages, and reconnect until closed or out of budget."""
        self._closing = False
        self._stop.clear()
        while not self._closing:
            self._set_state(ConnectionState.CONNECTING)
            try:
                conn = await self._connect()
            except Exception as exc:
                logger.warning("Realtime connect failed: %s", exc)
                if not await self._backoff():
                    break
                continue

            self._conn = conn
            self._attempt = 0
            self._set_state(ConnectionState.OPEN)
            logger.info("Realtime channel connected")
            try:
                await self._pump(conn)
            except Exception as exc:
                logger.warning("Realtime connection dropped: %s", exc)
            finally:
                self._conn = None
                await self._safe_close(conn)

            if self._closing or not await self._backoff():
                break

        self._set_state(ConnectionState.CLOSED)

    async def _backoff(self) -> bool:
        """Wait before the next attempt. Returns False once the budget is spent."""
        if self._attempt >= self.max_attempts:
            logger.error("Realtime channel gave up after %d attempts", self._attempt)
            return False
        delay = self.backoff_delay(self._attempt)
        self._set_state(ConnectionState.BACKOFF)
        logger.info(
            "Reconnecting in %.1fs (attempt %d/%d)",
            delay, self._attempt + 1, self.max_attempts,
        )
        await self._wait_or_stop(delay)
        self._attempt += 1
        return not self._closing

    async def _wait_or_stop(self, delay: float) -> None:
        """Sleep for ``delay``, returning early once ``close()`` is called."""
        sleeper = asyncio.ensure_future(self._sleep(delay))
        stopper = asyncio.ensure_future(self._stop.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, stopper):
                if not task.done():
                    await self._cancel(task)

    async def _pump(self, conn: Connection) -> None:
        """Dispatch messages until EOF, close, or a failed heartbeat."""
        heartbeat = asyncio.create_task(self._heartbeat(conn))
        try:
            while not self._closing:
                receiver = asyncio.ensure_future(conn.recv())
                await asyncio.wait({receiver, heartbeat}, return_when=asyncio.FIRST_COMPLETED)
                if heartbeat.done():
                    await self._cancel(receiver)
                    # Re-raises the send error so the supervisor reconnects.
                    heartbeat.result()
                    return
                raw = receiver.result()
                if raw is None:
                    logger.info("Realtime channel disconnected by server")
                    return
                self._dispatch(raw)
        finally:
            if not heartbeat.done():
                await self._cancel(heartbeat)

    async def _heartbeat(self, conn: Connection) -> None:
        while True:
            await self._sleep(self.ping_interval)
            await conn.send(self._encode("ping", {"timestamp": datetime.now(timezone.utc).isoformat()}))

    @staticmethod
    async def _cancel(task: "asyncio.Future[Any]") -> None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _dispatch(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Dropping malformed realtime message: %r", raw[:200])
            return
        if not isinstance(message, dict) or "type" not in message:
            logger.error("Dropping realtime message without a type: %r", raw[:200])
            return
        self._on_message(message)

    @staticmethod
    def _encode(type: str, payload: dict[str, Any]) -> str:
        return json.dumps({"type": type, "payload": payload})

    @staticmethod
    async def _safe_close(conn: Connection) -> None:
        try:
            await conn.close()
        except Exception as exc:
            logger.debug("Ignoring error while closing connection: %s", exc)

    # ------------------------------------------------------------------ #
    # Client API
    # ------------------------------------------------------------------ #

    async def send(self, type: str, payload: dict[str, Any]) -> bool:
        """Send a message if connected. Returns False when not open."""
        conn = self._conn
        if conn is None or self._state != ConnectionState.OPEN:
            logger.warning("Cannot send '%s', realtime channel not connected", type)
            return False
        await conn.send(self._encode(type, payload))
        return True

    async def close(self) -> None:
        """Stop the supervisor and close the live connection, if any."""
        self._closing = True
        self._stop.set()
        conn = self._conn
        if conn is not None:
            await self._safe_close(conn)
