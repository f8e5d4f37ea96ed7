from booking_engine.scheduling.ledger import SlotBookingLedger
from booking_engine.scheduling.query import SchedulingQueryService
from booking_engine.scheduling.schedule import ScheduleService, group_slots_by_day
from booking_engine.scheduling.store import ScheduleCache, ScheduleStore
from booking_engine.scheduling.time_window import check_time_window, validate_time_window

__all__ = [
    "ScheduleService",
    "ScheduleStore",
    "ScheduleCache",
    "SlotBookingLedger",
    "SchedulingQueryService",
    "group_slots_by_day",
    "validate_time_window",
    "check_time_window",
]
