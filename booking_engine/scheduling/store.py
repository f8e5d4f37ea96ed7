"""
In-memory schedule storage and read cache.

In production this would be backed by the marketplace database, with the
ledger's check-and-set expressed as a conditional UPDATE keyed on slot id
and ``is_booked = false``. Here a single re-entrant lock plays that role:
every write to a slot's booked flag, and every slot removal, happens while
holding ``ScheduleStore.lock``.
"""

import logging
import threading
from typing import Optional

from booking_engine.schemas.availability_schema import AvailabilitySchedule, Slot

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Owns schedule aggregates and an index from slot id to owning artist."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._schedules: dict[str, AvailabilitySchedule] = {}
        self._slot_owners: dict[str, str] = {}

    def get(self, artist_id: str) -> Optional[AvailabilitySchedule]:
        """Return the live schedule object. Callers must hold ``lock`` to mutate it."""
        return self._schedules.get(artist_id)

    def add(self, schedule: AvailabilitySchedule) -> None:
        self._schedules[schedule.artist_id] = schedule
        for slot in schedule.slots:
            self._slot_owners[slot.id] = schedule.artist_id

    def snapshot(self, artist_id: str) -> Optional[AvailabilitySchedule]:
        """Return a detached copy safe to hand out to readers."""
        with self.lock:
            schedule = self._schedules.get(artist_id)
            return schedule.model_copy(deep=True) if schedule else None

    def owner_of(self, slot_id: str) -> Optional[str]:
        return self._slot_owners.get(slot_id)

    def find_slot(self, slot_id: str) -> Optional[Slot]:
        """Return the live slot object, or None if it does not exist."""
        artist_id = self._slot_owners.get(slot_id)
        if artist_id is None:
            return None
        for slot in self._schedules[artist_id].slots:
            if slot.id == slot_id:
                return slot
        return None

    def index_slot(self, slot: Slot, artist_id: str) -> None:
        self._slot_owners[slot.id] = artist_id

    def drop_slot(self, slot_id: str) -> None:
        self._slot_owners.pop(slot_id, None)


class ScheduleCache:
    """Read-through cache of schedule snapshots keyed by artist id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, AvailabilitySchedule] = {}

    def get(self, artist_id: str) -> Optional[AvailabilitySchedule]:
        with self._lock:
            cached = self._entries.get(artist_id)
        return cached.model_copy(deep=True) if cached else None

    def put(self, schedule: AvailabilitySchedule) -> None:
        with self._lock:
            self._entries[schedule.artist_id] = schedule.model_copy(deep=True)

    def invalidate(self, artist_id: str) -> None:
        with self._lock:
            if self._entries.pop(artist_id, None) is not None:
                logger.debug("Schedule cache invalidated for artist %s", artist_id)

    def __contains__(self, artist_id: str) -> bool:
        with self._lock:
            return artist_id in self._entries
