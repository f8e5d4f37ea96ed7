"""In-memory contract storage with per-contract locks."""

import threading
from typing import Iterator, Optional

from booking_engine.schemas.contract_schema import Contract


class ContractStore:
    """
    Holds contracts by id. ``lock_for`` serializes changes to one contract.

    Locks exist only for stored contracts: ``save`` creates one and
    ``delete`` drops it, so unknown ids never leave anything behind.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contracts: dict[str, Contract] = {}
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, contract_id: str) -> Optional[threading.Lock]:
        """Return the contract's lock, or None if no such contract is stored."""
        with self._lock:
            return self._locks.get(contract_id)

    def get(self, contract_id: str) -> Optional[Contract]:
        with self._lock:
            return self._contracts.get(contract_id)

    def save(self, contract: Contract) -> None:
        with self._lock:
            self._contracts[contract.id] = contract
            self._locks.setdefault(contract.id, threading.Lock())

    def delete(self, contract_id: str) -> None:
        with self._lock:
            self._contracts.pop(contract_id, None)
            self._locks.pop(contract_id, None)

    def all(self) -> Iterator[Contract]:
        with self._lock:
            contracts = list(self._contracts.values())
        return iter(contracts)

    @property
    def lock_count(self) -> int:
        with self._lock:
            return len(self._locks)
