"""
Contract lifecycle service: proposals, status changes and deletion.

Either party may propose a booking. The other party (the recipient) must
act on it first. Accepting a contract that references a slot binds the slot
through the ledger in the same unit of work as the status change: if the
bind fails the contract stays PENDING, and if the status commit fails the
bind is compensated. Terminal transitions free the slot.

Every proposal and status change notifies the counterpart party.
"""

import threading
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from booking_engine.config import settings
from booking_engine.contracts.state_machine import (
    ContractStateMachine,
    Party,
    SlotEffect,
)
from booking_engine.contracts.store import ContractStore
from booking_engine.errors import (
    Conflict,
    Forbidden,
    InvalidArgument,
    NotFound,
    ValidationError,
    from_pydantic,
)
from booking_engine.logging_context import get_request_logger
from booking_engine.notifications.center import NotificationCenter
from booking_engine.scheduling.ledger import SlotBookingLedger
from booking_engine.scheduling.store import ScheduleStore
from booking_engine.schemas.auth_schema import AuthContext, UserRole
from booking_engine.schemas.contract_schema import (
    Contract,
    ContractCreate,
    ContractPage,
    ContractStatus,
    StatusChange,
)
from booking_engine.schemas.notification_schema import NotificationType
from booking_engine.utils import clean_text

logger = get_request_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ContractService:
    """Creates contracts and drives them through the lifecycle."""

    def __init__(
        self,
        store: ContractStore,
        schedules: ScheduleStore,
        ledger: SlotBookingLedger,
        notifier: Optional[NotificationCenter] = None,
        machine: Optional[ContractStateMachine] = None,
    ) -> None:
        self.store = store
        self.schedules = schedules
        self.ledger = ledger
        self.notifier = notifier
        self.machine = machine or ContractStateMachine()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _is_party(contract: Contract, ctx: AuthContext) -> bool:
        if ctx.role == UserRole.ARTIST:
            return ctx.user_id == contract.artist_id
        return ctx.user_id == contract.venue_id

    def _lock_for(self, contract_id: str) -> threading.Lock:
        lock = self.store.lock_for(contract_id)
        if lock is None:
            raise NotFound("contract not found")
        return lock

    def _load_for(self, ctx: AuthContext, contract_id: str) -> Contract:
        contract = self.store.get(contract_id)
        if contract is None or not self._is_party(contract, ctx):
            raise NotFound("contract not found")
        return contract

    @staticmethod
    def _party_of(contract: Contract, ctx: AuthContext) -> Party:
        return Party.PROPOSER if ctx.user_id == contract.proposer_id else Party.RECIPIENT

    def _notify(
        self,
        type: NotificationType,
        recipient_id: str,
        contract: Contract,
        title: str,
        message: str,
    ) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.emit(
                type=type,
                recipient_id=recipient_id,
                related_entity_id=contract.id,
                title=title,
                message=message,
                payload={"status": contract.status.value},
            )
        except Exception:
            # The transition is already committed; delivery is best effort.
            logger.exception("Failed to emit %s for contract %s", type.value, contract.id)

    def _check_slot(self, data: ContractCreate) -> None:
        if self.schedules.owner_of(data.slot_id) != data.artist_id:
            raise NotFound("slot not found in this artist's schedule", field="slot_id")
        slot = self.schedules.find_slot(data.slot_id)
        if slot is not None and slot.day_of_week != data.event_date.weekday():
            raise InvalidArgument(
                "event date does not fall on the slot's day of week", field="event_date",
            )
        if self.ledger.is_booked(data.slot_id):
            raise Conflict("slot is already booked", field="slot_id")

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def create_contract(
        self,
        ctx: AuthContext,
        artist_id: str,
        venue_id: str,
        event_date: Union[date, str],
        final_price: Union[Decimal, float, int, str],
        details: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        slot_id: Optional[str] = None,
    ) -> Contract:
        """Propose a booking. The new contract starts in PENDING."""
        try:
            data = ContractCreate(
                artist_id=artist_id,
                venue_id=venue_id,
                event_date=event_date,
                final_price=final_price,
                details=details,
                tags=list(tags) if tags is not None else [],
                slot_id=slot_id,
            )
        except PydanticValidationError as exc:
            raise from_pydantic(exc) from None

        own_id = data.artist_id if ctx.is_artist else data.venue_id
        if ctx.user_id != own_id:
            raise Forbidden("you can only propose contracts on your own behalf")
        if data.artist_id == data.venue_id:
            raise InvalidArgument("artist and venue must be different parties")
        if data.event_date < date.today():
            raise InvalidArgument("event date cannot be in the past", field="event_date")
        if data.final_price <= 0:
            raise InvalidArgument("final price must be greater than zero", field="final_price")

        details_text = clean_text(data.details)
        limit = settings.contracts.max_details_length
        if details_text and len(details_text) > limit:
            raise ValidationError(f"details must be at most {limit} characters", field="details")

        if data.slot_id is not None:
            self._check_slot(data)

        now = _now()
        contract = Contract(
            id=f"CT-{uuid.uuid4().hex[:8].upper()}",
            artist_id=data.artist_id,
            venue_id=data.venue_id,
            proposer_id=ctx.user_id,
            proposer_role=ctx.role,
            event_date=data.event_date,
            final_price=data.final_price,
            details=details_text,
            tags=data.tags,
            slot_id=data.slot_id,
            history=[StatusChange(status=ContractStatus.PENDING, changed_at=now, changed_by=ctx.user_id)],
            created_at=now,
            updated_at=now,
        )
        self.store.save(contract)
        logger.info(
            "Contract %s proposed by %s (%s) for %s",
            contract.id, ctx.user_id, ctx.role.value, contract.event_date.isoformat(),
        )

        self._notify(
            NotificationType.CONTRACT_PROPOSAL,
            contract.recipient_id,
            contract,
            title="New booking proposal",
            message=f"You received a booking proposal for {contract.event_date.isoformat()}.",
        )
        return contract.model_copy(deep=True)

    def get_contract(self, ctx: AuthContext, contract_id: str) -> Contract:
        return self._load_for(ctx, contract_id).model_copy(deep=True)

    def list_contracts(
        self,
        ctx: AuthContext,
        status: Optional[ContractStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> ContractPage:
        """Newest-first page of the caller's contracts."""
        if limit is None:
            limit = settings.contracts.page_size
        if not 1 <= limit <= settings.contracts.max_page_size:
            raise InvalidArgument(
                f"limit must be between 1 and {settings.contracts.max_page_size}", field="limit",
            )
        if offset < 0:
            raise InvalidArgument("offset cannot be negative", field="offset")

        mine = [c for c in self.store.all() if self._is_party(c, ctx)]
        if status is not None:
            mine = [c for c in mine if c.status == status]
        mine.sort(key=lambda c: c.created_at, reverse=True)
        return ContractPage(
            items=[c.model_copy(deep=True) for c in mine[offset:offset + limit]],
            total=len(mine),
            limit=limit,
            offset=offset,
        )

    def update_status(
        self,
        ctx: AuthContext,
        contract_id: str,
        target: Union[ContractStatus, str],
    ) -> Contract:
        """
        Move a contract along one lifecycle edge.

        Raises:
            NotFound: unknown contract, or the caller is not a party to it.
            InvalidStateTransition: the edge does not exist, whoever asks.
            Forbidden: the edge exists but not for the caller's side.
            Conflict: accepting would double-book the slot.
        """
        try:
            target = ContractStatus(target)
        except ValueError:
            raise ValidationError(f"unknown contract status: {target!r}", field="status") from None

        with self._lock_for(contract_id):
            contract = self._load_for(ctx, contract_id)
            edge = self.machine.resolve(contract.status, target)
            party = self._party_of(contract, ctx)
            if not edge.allows(party):
                raise Forbidden(
                    f"the {party.value} cannot move this contract to {target.value}",
                    field="status",
                )

            bound = False
            if edge.slot_effect == SlotEffect.BIND and contract.slot_id:
                try:
                    self.ledger.bind_slot(contract.slot_id, contract.id)
                except NotFound:
                    raise Conflict(
                        "the referenced slot no longer exists", field="slot_id",
                    ) from None
                bound = True

            now = _now()
            updated = contract.model_copy(deep=True)
            updated.status = target
            updated.updated_at = now
            updated.history.append(StatusChange(status=target, changed_at=now, changed_by=ctx.user_id))
            try:
                self.store.save(updated)
            except Exception:
                if bound:
                    self.ledger.release_slot(contract.slot_id, contract.id)
                raise

            if edge.slot_effect == SlotEffect.RELEASE and contract.slot_id:
                self.ledger.release_slot(contract.slot_id, contract.id)

        logger.info(
            "Contract %s: %s -> %s by %s",
            contract_id, edge.from_state.value, target.value, ctx.user_id,
        )
        self._notify(
            NotificationType.CONTRACT_STATUS_CHANGE,
            updated.counterpart_of(ctx.user_id),
            updated,
            title=f"Contract {target.value.lower()}",
            message=f"Your booking for {updated.event_date.isoformat()} is now {target.value.lower()}.",
        )
        return updated.model_copy(deep=True)

    def delete_contract(self, ctx: AuthContext, contract_id: str) -> None:
        """Hard-delete a contract that is still PENDING or was REJECTED."""
        with self._lock_for(contract_id):
            contract = self._load_for(ctx, contract_id)
            if not self.machine.is_deletable(contract.status):
                raise Conflict(
                    f"a {contract.status.value} contract cannot be deleted", field="status",
                )
            if contract.slot_id:
                self.ledger.release_slot(contract.slot_id, contract.id)
            self.store.delete(contract_id)

        logger.info("Contract %s deleted by %s", contract_id, ctx.user_id)
