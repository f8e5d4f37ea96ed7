"""Venue-side schedule browsing: free slots and weekly overview."""

import logging
from typing import Optional

from booking_engine.errors import ValidationError
from booking_engine.scheduling.schedule import ScheduleService, sort_slots
from booking_engine.scheduling.time_window import MAX_DAY_OF_WEEK, MIN_DAY_OF_WEEK
from booking_engine.schemas.availability_schema import Slot
from booking_engine.utils import is_hhmm

logger = logging.getLogger(__name__)


class SchedulingQueryService:
    """
    Read-only projections over availability schedules.

    Reads take no locks beyond a snapshot copy. A slot booked a moment ago
    may still show as free; binding it then fails with Conflict.
    """

    def __init__(self, schedules: ScheduleService) -> None:
        self.schedules = schedules

    def get_free_slots(
        self,
        artist_id: str,
        day_of_week: Optional[int] = None,
        min_duration: Optional[int] = None,
        earliest_start: Optional[str] = None,
        latest_start: Optional[str] = None,
    ) -> list[Slot]:
        """Unbooked slots of an active schedule, optionally filtered."""
        for name, value in (("earliest_start", earliest_start), ("latest_start", latest_start)):
            if value is not None and not is_hhmm(value):
                raise ValidationError(f"{name} must use the HH:MM format", field=name)

        schedule = self.schedules.get_schedule(artist_id)
        if not schedule.is_active:
            logger.debug("Schedule for artist %s is inactive; no free slots", artist_id)
            return []

        slots = [s for s in schedule.slots if not s.is_booked]
        if day_of_week is not None:
            slots = [s for s in slots if s.day_of_week == day_of_week]
        if min_duration is not None:
            slots = [s for s in slots if s.duration_minutes >= min_duration]
        if earliest_start is not None:
            slots = [s for s in slots if s.start_time >= earliest_start]
        if latest_start is not None:
            slots = [s for s in slots if s.start_time <= latest_start]
        return sort_slots(slots)

    def get_schedule_summary_by_day(self, artist_id: str) -> dict[int, int]:
        """Slot count for every day of the week, zero-filled."""
        summary = {day: 0 for day in range(MIN_DAY_OF_WEEK, MAX_DAY_OF_WEEK + 1)}
        for slot in self.schedules.get_schedule(artist_id).slots:
            summary[slot.day_of_week] += 1
        return summary
