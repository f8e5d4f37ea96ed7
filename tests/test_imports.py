"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_availability_schema(self):
        from booking_engine.schemas.availability_schema import (
            AvailabilitySchedule, Slot, TimeWindow,
        )
        window = TimeWindow(day_of_week=0, start_time="10:00", end_time="11:00")
        assert window.crosses_midnight is False
        assert AvailabilitySchedule is not None
        assert Slot is not None

    def test_import_contract_schema(self):
        from booking_engine.schemas.contract_schema import ContractStatus, ContractTag
        assert ContractStatus.PENDING == "PENDING"
        assert len(ContractTag) == 6

    def test_import_notification_schema(self):
        from booking_engine.schemas.notification_schema import NotificationType
        assert NotificationType.CONTRACT_PROPOSAL == "CONTRACT_PROPOSAL"


class TestPackageReExports:
    def test_scheduling_package(self):
        from booking_engine.scheduling import (
            ScheduleService, SchedulingQueryService, SlotBookingLedger, validate_time_window,
        )
        assert callable(validate_time_window)
        assert ScheduleService and SchedulingQueryService and SlotBookingLedger

    def test_contracts_package(self):
        from booking_engine.contracts import ContractService, ContractStateMachine, Party
        assert Party.PROPOSER == "proposer"
        assert ContractService and ContractStateMachine

    def test_notifications_package(self):
        from booking_engine.notifications import (
            ConnectionState, NotificationCenter, ReconnectingChannel,
        )
        assert ConnectionState.CLOSED == "closed"
        assert NotificationCenter and ReconnectingChannel


class TestEntryPoints:
    def test_engine(self):
        from booking_engine.engine import BookingEngine
        engine = BookingEngine()
        assert engine.contracts.ledger is engine.ledger

    def test_console_demo(self):
        import console_demo
        assert callable(console_demo.main)
