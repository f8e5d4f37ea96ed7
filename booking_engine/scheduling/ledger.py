"""
Slot booking ledger: which contract currently holds which slot.

Guarantees at most one active booking per slot. ``bind_slot`` is a single
check-and-set performed under the schedule store lock, so two contracts
racing for the same slot cannot both win; the loser sees ``Conflict``.
"""

from typing import Optional

from booking_engine.errors import Conflict, NotFound
from booking_engine.logging_context import get_request_logger
from booking_engine.scheduling.store import ScheduleCache, ScheduleStore

logger = get_request_logger(__name__)


class SlotBookingLedger:
    """Keeps each slot's ``is_booked`` flag in lock-step with contract state."""

    def __init__(self, store: ScheduleStore, cache: Optional[ScheduleCache] = None) -> None:
        self.store = store
        self.cache = cache
        self._holders: dict[str, str] = {}

    def _invalidate(self, slot_id: str) -> None:
        if self.cache is None:
            return
        artist_id = self.store.owner_of(slot_id)
        if artist_id is not None:
            self.cache.invalidate(artist_id)

    def bind_slot(self, slot_id: str, contract_id: str) -> None:
        """
        Reserve a slot for a contract.

        Idempotent for the contract already holding the slot.

        Raises:
            NotFound: the slot does not exist.
            Conflict: the slot is held by a different contract.
        """
        with self.store.lock:
            slot = self.store.find_slot(slot_id)
            if slot is None:
                raise NotFound("slot not found")
            holder = self._holders.get(slot_id)
            if slot.is_booked:
                if holder == contract_id:
                    return
                raise Conflict("slot is already booked by another contract", field="slot")
            slot.is_booked = True
            self._holders[slot_id] = contract_id
            self._invalidate(slot_id)

        logger.info("Slot %s bound to contract %s", slot_id, contract_id)

    def release_slot(self, slot_id: str, contract_id: Optional[str] = None) -> bool:
        """
        Free a slot. A no-op when the slot is already free or gone.

        When ``contract_id`` is given, the slot is only released if that
        contract is the one holding it.

        Returns:
            True if a booking was actually released.
        """
        with self.store.lock:
            holder = self._holders.get(slot_id)
            if holder is None:
                return False
            if contract_id is not None and holder != contract_id:
                return False
            slot = self.store.find_slot(slot_id)
            if slot is not None:
                slot.is_booked = False
            del self._holders[slot_id]
            self._invalidate(slot_id)

        logger.info("Slot %s released by contract %s", slot_id, holder)
        return True

    def holder_of(self, slot_id: str) -> Optional[str]:
        """Return the id of the contract holding a slot, if any."""
        with self.store.lock:
            return self._holders.get(slot_id)

    def is_booked(self, slot_id: str) -> bool:
        with self.store.lock:
            return slot_id in self._holders
