"""Tests for the slot booking ledger."""

import threading

import pytest

from booking_engine.errors import Conflict, NotFound


class TestBindSlot:
    def test_bind_marks_slot_booked(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        assert engine.ledger.is_booked(saturday_slot.id)
        assert engine.ledger.holder_of(saturday_slot.id) == "CT-1"
        assert engine.schedule_store.find_slot(saturday_slot.id).is_booked

    def test_bind_is_idempotent_for_same_contract(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        assert engine.ledger.holder_of(saturday_slot.id) == "CT-1"

    def test_bind_by_other_contract_conflicts(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        with pytest.raises(Conflict):
            engine.ledger.bind_slot(saturday_slot.id, "CT-2")
        assert engine.ledger.holder_of(saturday_slot.id) == "CT-1"

    def test_bind_unknown_slot(self, engine, schedule):
        with pytest.raises(NotFound):
            engine.ledger.bind_slot("SLT-MISSING", "CT-1")

    def test_concurrent_binds_have_one_winner(self, engine, saturday_slot):
        barrier = threading.Barrier(8)
        winners, losers = [], []

        def attempt(contract_id: str) -> None:
            barrier.wait()
            try:
                engine.ledger.bind_slot(saturday_slot.id, contract_id)
                winners.append(contract_id)
            except Conflict:
                losers.append(contract_id)

        threads = [threading.Thread(target=attempt, args=(f"CT-{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(winners) == 1
        assert len(losers) == 7
        assert engine.ledger.holder_of(saturday_slot.id) == winners[0]


class TestReleaseSlot:
    def test_release_frees_slot(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        assert engine.ledger.release_slot(saturday_slot.id)
        assert not engine.ledger.is_booked(saturday_slot.id)
        assert not engine.schedule_store.find_slot(saturday_slot.id).is_booked

    def test_release_free_slot_is_noop(self, engine, saturday_slot):
        assert not engine.ledger.release_slot(saturday_slot.id)
        assert not engine.ledger.is_booked(saturday_slot.id)

    def test_release_unknown_slot_is_noop(self, engine, schedule):
        assert not engine.ledger.release_slot("SLT-MISSING")

    def test_release_by_non_holder_keeps_booking(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        assert not engine.ledger.release_slot(saturday_slot.id, contract_id="CT-2")
        assert engine.ledger.holder_of(saturday_slot.id) == "CT-1"

    def test_rebind_after_release(self, engine, saturday_slot):
        engine.ledger.bind_slot(saturday_slot.id, "CT-1")
        engine.ledger.release_slot(saturday_slot.id, contract_id="CT-1")
        engine.ledger.bind_slot(saturday_slot.id, "CT-2")
        assert engine.ledger.holder_of(saturday_slot.id) == "CT-2"
