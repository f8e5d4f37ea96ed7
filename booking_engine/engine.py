"""
Composition root for the availability and booking engine.

Wires the schedule store, read cache, slot ledger, contract store,
notification center and services together for a single process, so
callers (an HTTP layer, the console demo, tests) share one consistent set
of collaborators.

Usage:
    engine = BookingEngine()
    engine.schedules.create_schedule(artist, artist.user_id, min_gig_duration=120)
    result = engine.call(engine.contracts.update_status, venue, contract_id, "ACCEPTED")
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from booking_engine.contracts.lifecycle import ContractService
from booking_engine.contracts.state_machine import ContractStateMachine
from booking_engine.contracts.store import ContractStore
from booking_engine.errors import BookingError, to_error_payload
from booking_engine.logging_context import set_request_id
from booking_engine.notifications.center import NotificationCenter
from booking_engine.scheduling.ledger import SlotBookingLedger
from booking_engine.scheduling.query import SchedulingQueryService
from booking_engine.scheduling.schedule import ScheduleService
from booking_engine.scheduling.store import ScheduleCache, ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class CallResult:
    """Outcome of an engine call made through ``BookingEngine.call``."""
    ok: bool
    value: Any = None
    error: Optional[dict[str, Any]] = None


class BookingEngine:
    """Owns every store and service of one booking engine instance."""

    def __init__(self, allow_accepted_cancellation: Optional[bool] = None) -> None:
        self.schedule_store = ScheduleStore()
        self.cache = ScheduleCache()
        self.contract_store = ContractStore()
        self.notifications = NotificationCenter()

        self.ledger = SlotBookingLedger(self.schedule_store, self.cache)
        self.schedules = ScheduleService(self.schedule_store, self.cache)
        self.queries = SchedulingQueryService(self.schedules)
        self.contracts = ContractService(
            self.contract_store,
            self.schedule_store,
            self.ledger,
            self.notifications,
            ContractStateMachine(allow_accepted_cancellation),
        )

    def call(self, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> CallResult:
        """
        Run one operation as a request, tagging its logs with a request id.

        Engine errors come back as an ErrorResponse-shaped payload instead
        of propagating; anything else is a bug and propagates.
        """
        set_request_id(f"REQ-{uuid.uuid4().hex[:8]}")
        try:
            return CallResult(ok=True, value=operation(*args, **kwargs))
        except BookingError as exc:
            logger.info("Request failed with %s: %s", exc.code, exc.message)
            return CallResult(ok=False, error=to_error_payload(exc))

