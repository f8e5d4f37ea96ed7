"""
Finite state machine for the contract lifecycle.

Defines the five contract states and the explicit edges between them,
each gated by which party may take it and carrying its slot side effect.
A status change that is not an edge of this table is rejected no matter
who asks for it.

Usage:
    machine = ContractStateMachine()
    edge = machine.resolve(ContractStatus.PENDING, ContractStatus.ACCEPTED)
    assert edge.allows(Party.RECIPIENT)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from booking_engine.config import settings
from booking_engine.errors import InvalidStateTransition
from booking_engine.schemas.contract_schema import ContractStatus

logger = logging.getLogger(__name__)


class Party(str, Enum):
    """A contract participant relative to who created the proposal."""
    PROPOSER = "proposer"
    RECIPIENT = "recipient"


class SlotEffect(str, Enum):
    """What a transition does to the contract's referenced slot."""
    NONE = "none"
    BIND = "bind"
    RELEASE = "release"


BOTH_PARTIES = frozenset({Party.PROPOSER, Party.RECIPIENT})

TERMINAL_STATES = frozenset({
    ContractStatus.REJECTED,
    ContractStatus.CANCELLED,
    ContractStatus.COMPLETED,
})

DELETABLE_STATES = frozenset({ContractStatus.PENDING, ContractStatus.REJECTED})


@dataclass(frozen=True)
class Transition:
    """A single valid status change."""
    from_state: ContractStatus
    to_state: ContractStatus
    actors: frozenset
    slot_effect: SlotEffect = SlotEffect.NONE

    def allows(self, party: Party) -> bool:
        return party in self.actors


class ContractStateMachine:
    """
    Table-driven contract lifecycle.

    ``ACCEPTED -> CANCELLED`` is a product switch: off by default, and when
    enabled either party may cancel an accepted booking, freeing its slot.
    """

    TRANSITIONS: list[Transition] = [
        Transition(ContractStatus.PENDING, ContractStatus.ACCEPTED,
                   frozenset({Party.RECIPIENT}), SlotEffect.BIND),
        Transition(ContractStatus.PENDING, ContractStatus.REJECTED,
                   BOTH_PARTIES, SlotEffect.RELEASE),
        Transition(ContractStatus.PENDING, ContractStatus.CANCELLED,
                   frozenset({Party.PROPOSER}), SlotEffect.RELEASE),
        Transition(ContractStatus.ACCEPTED, ContractStatus.COMPLETED,
                   BOTH_PARTIES, SlotEffect.RELEASE),
    ]

    ACCEPTED_CANCELLATION = Transition(
        ContractStatus.ACCEPTED, ContractStatus.CANCELLED, BOTH_PARTIES, SlotEffect.RELEASE,
    )

    def __init__(self, allow_accepted_cancellation: Optional[bool] = None) -> None:
        if allow_accepted_cancellation is None:
            allow_accepted_cancellation = settings.contracts.allow_accepted_cancellation
        self._transitions = list(self.TRANSITIONS)
        if allow_accepted_cancellation:
            self._transitions.append(self.ACCEPTED_CANCELLATION)

    def resolve(self, current: ContractStatus, target: ContractStatus) -> Transition:
        """
        Find the edge from ``current`` to ``target``.

        Raises:
            InvalidStateTransition: If no such edge exists.
        """
        for t in self._transitions:
            if t.from_state == current and t.to_state == target:
                return t

        valid = [s.value for s in self.get_valid_targets(current)]
        logger.debug("Rejected transition %s -> %s", current.value, target.value)
        raise InvalidStateTransition(
            f"cannot move a contract from {current.value} to {target.value}. "
            f"Allowed: {valid or 'none (terminal state)'}",
            field="status",
        )

    def get_valid_targets(
        self, current: ContractStatus, party: Optional[Party] = None
    ) -> list[ContractStatus]:
        """Return all states reachable from ``current``, optionally for one party."""
        return [
            t.to_state
            for t in self._transitions
            if t.from_state == current and (party is None or t.allows(party))
        ]

    @staticmethod
    def is_terminal(state: ContractStatus) -> bool:
        return state in TERMINAL_STATES

    @staticmethod
    def is_deletable(state: ContractStatus) -> bool:
        return state in DELETABLE_STATES
