"""Shared test fixtures and helpers."""

from datetime import date, timedelta
from typing import Optional

import pytest

from booking_engine.engine import BookingEngine
from booking_engine.schemas.auth_schema import AuthContext, UserRole
from booking_engine.schemas.availability_schema import TimeWindow

ARTIST_ID = "artist-luna"
VENUE_ID = "venue-blue-note"
OTHER_VENUE_ID = "venue-basement"


@pytest.fixture
def engine():
    return BookingEngine()


@pytest.fixture
def artist():
    return AuthContext(user_id=ARTIST_ID, role=UserRole.ARTIST)


@pytest.fixture
def venue():
    return AuthContext(user_id=VENUE_ID, role=UserRole.VENUE)


@pytest.fixture
def other_venue():
    return AuthContext(user_id=OTHER_VENUE_ID, role=UserRole.VENUE)


@pytest.fixture
def schedule(engine, artist):
    return engine.schedules.create_schedule(artist, ARTIST_ID, min_gig_duration=120)


@pytest.fixture
def saturday_slot(engine, artist, schedule):
    """Saturday 22:00 until 02:00 the next day."""
    return engine.schedules.add_slot(
        artist, make_window(5, "22:00", "02:00", crosses_midnight=True)
    )


def make_window(
    day_of_week: int = 4,
    start_time: str = "21:00",
    end_time: str = "23:00",
    crosses_midnight: bool = False,
) -> TimeWindow:
    """Helper to create a TimeWindow with sensible defaults."""
    return TimeWindow(
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        crosses_midnight=crosses_midnight,
    )


def next_weekday(day_of_week: int, start: Optional[date] = None) -> date:
    """First date strictly after ``start`` (default today) on ``day_of_week``."""
    start = start or date.today()
    days_ahead = (day_of_week - start.weekday()) % 7 or 7
    return start + timedelta(days=days_ahead)


def propose(engine, proposer: AuthContext, venue_id: str = VENUE_ID, **overrides):
    """Helper to create a contract between ARTIST_ID and ``venue_id``."""
    fields = {
        "artist_id": ARTIST_ID,
        "venue_id": venue_id,
        "event_date": next_weekday(5),
        "final_price": "1500.00",
    }
    fields.update(overrides)
    return engine.contracts.create_contract(proposer, **fields)
