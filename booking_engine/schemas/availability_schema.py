"""Availability schedule and time window data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictInt

from booking_engine.utils import window_minutes


class TimeWindow(BaseModel):
    """A recurring weekly window. Monday=0 .. Sunday=6."""

    day_of_week: int
    start_time: str
    end_time: str
    crosses_midnight: bool = False

    def key(self) -> tuple[int, str, str, bool]:
        """Identity used for exact-duplicate detection."""
        return (self.day_of_week, self.start_time, self.end_time, self.crosses_midnight)


class Slot(TimeWindow):
    """One bookable window in an artist's schedule."""

    id: str
    schedule_id: str
    is_booked: bool = False

    @property
    def duration_minutes(self) -> int:
        return window_minutes(self.start_time, self.end_time, self.crosses_midnight)

    def sort_key(self) -> tuple[int, str]:
        return (self.day_of_week, self.start_time)


class AvailabilitySchedule(BaseModel):
    """Artist-owned aggregate of slots plus booking preferences."""

    id: str
    artist_id: str
    min_gig_duration: int
    notes: Optional[str] = None
    preferred_event_types: list[str] = Field(default_factory=list)
    is_active: bool = True
    slots: list[Slot] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ScheduleCreate(BaseModel):
    """Validated schedule creation request. Durations must be whole minutes."""

    artist_id: str = Field(min_length=1)
    min_gig_duration: StrictInt
    notes: Optional[str] = None
    preferred_event_types: list[str] = Field(default_factory=list)


class ScheduleSettingsUpdate(BaseModel):
    """Partial settings update. Fields left as None keep their value."""

    min_gig_duration: Optional[StrictInt] = None
    notes: Optional[str] = None
    preferred_event_types: Optional[list[str]] = None
    is_active: Optional[bool] = None
