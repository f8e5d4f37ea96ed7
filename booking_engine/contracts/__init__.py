from booking_engine.contracts.lifecycle import ContractService
from booking_engine.contracts.state_machine import (
    ContractStateMachine,
    Party,
    SlotEffect,
    Transition,
)
from booking_engine.contracts.store import ContractStore

__all__ = [
    "ContractService",
    "ContractStateMachine",
    "ContractStore",
    "Party",
    "SlotEffect",
    "Transition",
]
