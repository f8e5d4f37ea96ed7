"""
Artist availability schedules: settings plus recurring weekly slots.

Each artist owns at most one schedule. Slots are validated by the time
window rules before they are stored, exact duplicates are refused, and a
slot can only be removed while no contract holds it. Every mutation
invalidates the cached read of that artist's schedule.

Usage:
    service = ScheduleService(store, cache)
    service.create_schedule(ctx, ctx.user_id, min_gig_duration=120)
    slot = service.add_slot(ctx, TimeWindow(day_of_week=5, start_time="22:00",
                                            end_time="02:00", crosses_midnight=True))
"""

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from booking_engine.config import settings
from booking_engine.errors import (
    AlreadyExists,
    Conflict,
    Forbidden,
    InvalidArgument,
    NotFound,
    ValidationError,
    from_pydantic,
)
from booking_engine.logging_context import get_request_logger
from booking_engine.scheduling.store import ScheduleCache, ScheduleStore
from booking_engine.scheduling.time_window import validate_time_window
from booking_engine.schemas.auth_schema import AuthContext
from booking_engine.schemas.availability_schema import (
    AvailabilitySchedule,
    ScheduleCreate,
    ScheduleSettingsUpdate,
    Slot,
    TimeWindow,
)
from booking_engine.utils import clean_text, merge_tags

logger = get_request_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def sort_slots(slots: Iterable[Slot]) -> list[Slot]:
    """Order slots by day of week, then start time."""
    return sorted(slots, key=Slot.sort_key)


def group_slots_by_day(slots: Iterable[Slot]) -> dict[int, list[Slot]]:
    """Group slots for display, keeping the per-day start-time order."""
    grouped: dict[int, list[Slot]] = defaultdict(list)
    for slot in sort_slots(slots):
        grouped[slot.day_of_week].append(slot)
    return dict(grouped)


def coerce_window(window) -> TimeWindow:
    """Accept a TimeWindow or a plain mapping of its fields."""
    if isinstance(window, TimeWindow):
        return window
    try:
        return TimeWindow.model_validate(window)
    except PydanticValidationError as exc:
        raise from_pydantic(exc) from None


class ScheduleService:
    """Create, configure and edit artist availability schedules."""

    def __init__(self, store: ScheduleStore, cache: Optional[ScheduleCache] = None) -> None:
        self.store = store
        self.cache = cache or ScheduleCache()

    # ------------------------------------------------------------------ #
    # Guards
    # ------------------------------------------------------------------ #

    @staticmethod
    def _require_artist(ctx: AuthContext) -> None:
        if not ctx.is_artist:
            raise Forbidden("only artists can manage an availability schedule")

    @staticmethod
    def _check_min_gig_duration(value: int) -> None:
        floor = settings.schedule.min_gig_duration
        if value < floor:
            raise InvalidArgument(
                f"minimum gig duration must be at least {floor} minutes",
                field="min_gig_duration",
            )

    @staticmethod
    def _check_notes(notes: Optional[str]) -> Optional[str]:
        notes = clean_text(notes)
        limit = settings.schedule.max_notes_length
        if notes and len(notes) > limit:
            raise ValidationError(f"notes must be at most {limit} characters", field="notes")
        return notes

    def _owned_schedule(self, artist_id: str) -> AvailabilitySchedule:
        schedule = self.store.get(artist_id)
        if schedule is None:
            raise NotFound("no availability schedule for this artist")
        return schedule

    def _touch(self, schedule: AvailabilitySchedule) -> None:
        schedule.updated_at = _now()
        self.cache.invalidate(schedule.artist_id)

    # ------------------------------------------------------------------ #
    # Schedule settings
    # ------------------------------------------------------------------ #

    def create_schedule(
        self,
        ctx: AuthContext,
        artist_id: str,
        min_gig_duration: int,
        notes: Optional[str] = None,
        preferred_event_types: Optional[Iterable[str]] = None,
    ) -> AvailabilitySchedule:
        """Create the artist's schedule. Fails if one already exists."""
        self._require_artist(ctx)
        try:
            data = ScheduleCreate(
                artist_id=artist_id,
                min_gig_duration=min_gig_duration,
                notes=notes,
                preferred_event_types=merge_tags(preferred_event_types),
            )
        except PydanticValidationError as exc:
            raise from_pydantic(exc) from None
        if ctx.user_id != data.artist_id:
            raise Forbidden("artists can only create their own schedule")
        self._check_min_gig_duration(data.min_gig_duration)
        notes = self._check_notes(data.notes)

        with self.store.lock:
            if self.store.get(data.artist_id) is not None:
                raise AlreadyExists("this artist already has an availability schedule")
            now = _now()
            schedule = AvailabilitySchedule(
                id=f"SCH-{uuid.uuid4().hex[:8].upper()}",
                artist_id=data.artist_id,
                min_gig_duration=data.min_gig_duration,
                notes=notes,
                preferred_event_types=data.preferred_event_types,
                created_at=now,
                updated_at=now,
            )
            self.store.add(schedule)
            self.cache.invalidate(artist_id)

        logger.info("Schedule %s created for artist %s", schedule.id, artist_id)
        return schedule.model_copy(deep=True)

    def get_schedule(self, artist_id: str) -> AvailabilitySchedule:
        """Return a snapshot of an artist's schedule with slots in display order."""
        cached = self.cache.get(artist_id)
        if cached is not None:
            return cached
        with self.store.lock:
            schedule = self.store.snapshot(artist_id)
            if schedule is None:
                raise NotFound("no availability schedule for this artist")
            schedule.slots = sort_slots(schedule.slots)
            self.cache.put(schedule)
        return schedule

    def get_my_schedule(self, ctx: AuthContext) -> AvailabilitySchedule:
        self._require_artist(ctx)
        return self.get_schedule(ctx.user_id)

    def update_settings(
        self,
        ctx: AuthContext,
        min_gig_duration: Optional[int] = None,
        notes: Optional[str] = None,
        preferred_event_types: Optional[Iterable[str]] = None,
        is_active: Optional[bool] = None,
    ) -> AvailabilitySchedule:
        """Partially update schedule settings. None leaves a field unchanged."""
        self._require_artist(ctx)
        try:
            update = ScheduleSettingsUpdate(
                min_gig_duration=min_gig_duration,
                notes=notes,
                preferred_event_types=merge_tags(preferred_event_types)
                if preferred_event_types is not None else None,
                is_active=is_active,
            )
        except PydanticValidationError as exc:
            raise from_pydantic(exc) from None
        if update.min_gig_duration is not None:
            self._check_min_gig_duration(update.min_gig_duration)
        cleaned_notes = self._check_notes(update.notes) if update.notes is not None else None

        with self.store.lock:
            schedule = self._owned_schedule(ctx.user_id)
            if update.min_gig_duration is not None:
                schedule.min_gig_duration = update.min_gig_duration
            if update.notes is not None:
                schedule.notes = cleaned_notes
            if update.preferred_event_types is not None:
                schedule.preferred_event_types = update.preferred_event_types
            if update.is_active is not None:
                schedule.is_active = update.is_active
            self._touch(schedule)
            result = schedule.model_copy(deep=True)

        logger.info("Schedule settings updated for artist %s", ctx.user_id)
        return result

    # ------------------------------------------------------------------ #
    # Slots
    # ------------------------------------------------------------------ #

    def add_slot(self, ctx: AuthContext, window) -> Slot:
        """Validate and append a new unbooked slot to the caller's schedule."""
        self._require_artist(ctx)
        window = coerce_window(window)
        validate_time_window(window)

        with self.store.lock:
            schedule = self._owned_schedule(ctx.user_id)
            if any(slot.key() == window.key() for slot in schedule.slots):
                raise Conflict("an identical time slot already exists", field="slot")
            slot = Slot(
                id=f"SLT-{uuid.uuid4().hex[:8].upper()}",
                schedule_id=schedule.id,
                **window.model_dump(),
            )
            schedule.slots.append(slot)
            self.store.index_slot(slot, ctx.user_id)
            self._touch(schedule)

        logger.info(
            "Slot %s added for artist %s: day=%d %s-%s%s",
            slot.id, ctx.user_id, slot.day_of_week, slot.start_time, slot.end_time,
            " (+1d)" if slot.crosses_midnight else "",
        )
        return slot.model_copy()

    def remove_slot(self, ctx: AuthContext, slot_id: str) -> None:
        """Delete an unbooked slot from the caller's schedule."""
        self._require_artist(ctx)
        with self.store.lock:
            if self.store.owner_of(slot_id) != ctx.user_id:
                raise NotFound("slot not found in your schedule")
            slot = self.store.find_slot(slot_id)
            if slot.is_booked:
                raise Conflict(
                    "slot is booked; the contract holding it must finish first",
                    field="slot",
                )
            schedule = self._owned_schedule(ctx.user_id)
            schedule.slots = [s for s in schedule.slots if s.id != slot_id]
            self.store.drop_slot(slot_id)
            self._touch(schedule)

        logger.info("Slot %s removed for artist %s", slot_id, ctx.user_id)

    def list_slots(
        self,
        artist_id: str,
        day_of_week: Optional[int] = None,
        available_only: bool = False,
    ) -> list[Slot]:
        """List an artist's slots ordered by day then start time."""
        slots = self.get_schedule(artist_id).slots
        if day_of_week is not None:
            slots = [s for s in slots if s.day_of_week == day_of_week]
        if available_only:
            slots = [s for s in slots if not s.is_booked]
        return sort_slots(slots)
