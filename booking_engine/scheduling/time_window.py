"""
Validation for a single recurring time window.

A window is a day of week plus a start/end wall-clock pair. Windows that
do not cross midnight must end at least ``min_slot_minutes`` after they
start. Windows flagged ``crosses_midnight`` must have an end clock value
earlier than the start (the end is read as next-day), and, unless the
overnight minimum is switched off, must also last ``min_slot_minutes``
once the wraparound is accounted for.

Usage:
    window = TimeWindow(day_of_week=5, start_time="22:00", end_time="02:00",
                        crosses_midnight=True)
    validate_time_window(window)  # raises ValidationError when invalid
"""

import logging
from typing import Optional

from booking_engine.config import settings
from booking_engine.errors import ValidationError
from booking_engine.schemas.availability_schema import TimeWindow
from booking_engine.utils import MINUTES_PER_DAY, is_hhmm, to_minutes

logger = logging.getLogger(__name__)

MIN_DAY_OF_WEEK = 0
MAX_DAY_OF_WEEK = 6

ORDERING_MESSAGE = "end time must be after start (min {minutes} min) or mark crosses-midnight"


def validate_time_window(
    window: TimeWindow,
    min_minutes: Optional[int] = None,
    enforce_overnight_minimum: Optional[bool] = None,
) -> None:
    """
    Check a window against the day, format and ordering rules.

    Raises:
        ValidationError: naming the offending field.
    """
    if min_minutes is None:
        min_minutes = settings.schedule.min_slot_minutes
    if enforce_overnight_minimum is None:
        enforce_overnight_minimum = settings.schedule.enforce_overnight_minimum

    if not MIN_DAY_OF_WEEK <= window.day_of_week <= MAX_DAY_OF_WEEK:
        raise ValidationError(
            f"day of week must be between {MIN_DAY_OF_WEEK} and {MAX_DAY_OF_WEEK}",
            field="day_of_week",
        )
    if not is_hhmm(window.start_time):
        raise ValidationError("start time must use the HH:MM format", field="start_time")
    if not is_hhmm(window.end_time):
        raise ValidationError("end time must use the HH:MM format", field="end_time")

    start = to_minutes(window.start_time)
    end = to_minutes(window.end_time)

    if window.crosses_midnight:
        valid = end < start
        if valid and enforce_overnight_minimum:
            valid = (MINUTES_PER_DAY - start) + end >= min_minutes
    else:
        valid = end - start >= min_minutes

    if not valid:
        logger.debug(
            "Rejected window day=%d %s-%s crosses_midnight=%s",
            window.day_of_week, window.start_time, window.end_time, window.crosses_midnight,
        )
        raise ValidationError(ORDERING_MESSAGE.format(minutes=min_minutes), field="end_time")


def check_time_window(window: TimeWindow) -> tuple[bool, str]:
    """
    Non-raising variant of validate_time_window.

    Returns:
        (valid, message) where message is empty on success.
    """
    try:
        validate_time_window(window)
    except ValidationError as exc:
        return False, exc.message
    return True, ""
