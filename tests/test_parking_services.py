from datetime import timedelta
import pytest
from sqlalchemy.exc import IntegrityError

from core.enums import VehicleClass, SessionStatus, EntryRejection, SessionFilter, PassStatus
from parking.models import ParkingSession
from parking.passes import sell_pass
from parking.services import register_entry, process_exit, filter_sessions, find_active_session
from parking.stores import SqlSessionStore, SqlPassStore, RecordNotFoundError

@pytest.fixture
def stores(db_session):
    return SqlSessionStore(db_session), SqlPassStore(db_session)

def enter(stores, clock, number, vehicle_class, helmet=False):
    sessions, passes = stores
    return register_entry(sessions, passes, number, vehicle_class, helmet, clock=clock)

def leave(stores, clock, number):
    sessions, passes = stores
    return process_exit(sessions, passes, number, clock=clock)

def give_pass(stores, clock, number, vehicle_class):
    return sell_pass(stores[1], number, vehicle_class, "Owner", "9000000000", clock=clock).monthly_pass

def test_entry_creates_active_session(stores, clock):
    result = enter(stores, clock, "ka01ab1234", VehicleClass.FOUR_WHEELER)
    assert result.ok
    s = result.session
    assert s.id is not None
    assert s.vehicle_number == "KA01AB1234"
    assert s.status == SessionStatus.ACTIVE
    assert s.entry_at == clock.now
    assert s.is_pass_holder is False
    assert s.pass_id is None
    assert s.exit_at is None and s.amount_due is None and s.duration_hours is None

def test_duplicate_entry_rejected_regardless_of_case(stores, clock):
    assert enter(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER).ok
    clock.advance(minutes=5)
    again = enter(stores, clock, "ka01Ab1234", VehicleClass.FOUR_WHEELER)
    assert not again.ok
    assert again.rejection == EntryRejection.DUPLICATE_ACTIVE
    assert again.session is None
    assert len(stores[0].list_all()) == 1

def test_entry_with_pass_for_other_class_rejected(stores, clock):
    give_pass(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    result = enter(stores, clock, "ka01ab1234", VehicleClass.FOUR_WHEELER)
    assert result.rejection == EntryRejection.PASS_CLASS_MISMATCH
    assert "Two Wheeler" in result.message
    assert stores[0].list_all() == []

def test_helmet_only_kept_for_cycles_and_two_wheelers(stores, clock):
    assert enter(stores, clock, "CYC1", VehicleClass.CYCLE, helmet=True).session.helmet_taken is True
    assert enter(stores, clock, "BIKE1", VehicleClass.TWO_WHEELER, helmet=True).session.helmet_taken is True
    assert enter(stores, clock, "AUTO1", VehicleClass.THREE_WHEELER, helmet=True).session.helmet_taken is False
    assert enter(stores, clock, "CAR1", VehicleClass.FOUR_WHEELER, helmet=True).session.helmet_taken is False

def test_pass_holder_entry_marks_pass_used(stores, clock):
    p = give_pass(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    assert p.last_used_at is None
    clock.advance(hours=1)
    s = enter(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER).session
    assert s.is_pass_holder is True
    assert s.pass_id == p.id
    assert p.last_used_at == clock.now

def test_exit_without_active_session_returns_none(stores, clock):
    assert leave(stores, clock, "NOPE123") is None
    enter(stores, clock, "KA01AB1234", VehicleClass.CYCLE)
    clock.advance(hours=1)
    assert leave(stores, clock, "KA01AB1234") is not None
    assert leave(stores, clock, "KA01AB1234") is None

def test_four_wheeler_five_hours(stores, clock):
    enter(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    clock.advance(hours=5)
    s = leave(stores, clock, "ka01ab1234")
    assert s.status == SessionStatus.COMPLETED
    assert s.amount_due == 40
    assert s.breakdown == ["0–6 hrs: ₹40"]
    assert s.duration_hours == 5
    assert s.exit_at == clock.now
    assert s.active_vehicle_key is None

def test_two_wheeler_pass_with_helmet_pays_only_helmet(stores, clock):
    p = give_pass(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    enter(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER, helmet=True)
    clock.advance(hours=10)
    s = leave(stores, clock, "KA01AB1234")
    assert s.amount_due == 2
    assert s.is_pass_holder is True
    assert s.pass_id == p.id
    assert s.breakdown == ["Monthly pass (Two Wheeler): ₹0", "Helmet (1 day(s)): ₹2"]
    assert p.last_used_at == clock.now

def test_pass_holder_without_helmet_pays_nothing(stores, clock):
    give_pass(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    enter(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    clock.advance(days=2, hours=3)
    s = leave(stores, clock, "KA01AB1234")
    assert s.amount_due == 0
    assert s.breakdown == ["Monthly pass (Four Wheeler): ₹0"]

def test_cycle_thirty_hours_without_pass(stores, clock):
    enter(stores, clock, "CYC42", VehicleClass.CYCLE)
    clock.advance(hours=30)
    s = leave(stores, clock, "CYC42")
    assert s.amount_due == 30
    assert s.breakdown == ["1 day(s): ₹20", "6–12 hrs (extra day): ₹10"]
    assert s.duration_hours == 30

def test_metered_helmet_surcharge_added(stores, clock):
    enter(stores, clock, "BIKE7", VehicleClass.TWO_WHEELER, helmet=True)
    clock.advance(hours=26)
    s = leave(stores, clock, "BIKE7")
    assert s.amount_due == 40 + 10 + 4
    assert s.breakdown == ["1 day(s): ₹40", "0–6 hrs (extra day): ₹10", "Helmet (2 day(s)): ₹4"]
    assert s.is_pass_holder is False

def test_pass_lapsing_during_stay_falls_back_to_tariff(stores, clock):
    p = give_pass(stores, clock, "KA01AB1234", VehicleClass.THREE_WHEELER)
    clock.now = p.end_at - timedelta(hours=2)
    assert enter(stores, clock, "KA01AB1234", VehicleClass.THREE_WHEELER).session.is_pass_holder is True
    clock.advance(hours=4)
    s = leave(stores, clock, "KA01AB1234")
    assert s.is_pass_holder is False
    assert s.pass_id is None
    assert s.amount_due == 30

def test_suspended_pass_is_not_honoured_at_exit(stores, clock):
    p = give_pass(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    enter(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    stores[1].update(p.id, {"status": PassStatus.SUSPENDED})
    clock.advance(hours=3)
    s = leave(stores, clock, "KA01AB1234")
    assert s.is_pass_holder is False
    assert s.amount_due == 10

def test_vehicle_can_return_after_exit(stores, clock):
    enter(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    clock.advance(hours=1)
    leave(stores, clock, "KA01AB1234")
    clock.advance(hours=1)
    again = enter(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    assert again.ok
    assert len(stores[0].list_all()) == 2
    assert find_active_session(stores[0].list_all(), "ka01ab1234") is again.session

def test_store_refuses_second_active_row(db_session, stores, clock):
    enter(stores, clock, "KA01AB1234", VehicleClass.CYCLE)
    with pytest.raises(IntegrityError):
        stores[0].create(ParkingSession(
            vehicle_number="KA01AB1234",
            vehicle_class=VehicleClass.CYCLE,
            entry_at=clock.now,
            status=SessionStatus.ACTIVE,
            active_vehicle_key="KA01AB1234",
        ))
    db_session.rollback()

def test_filter_sessions_by_status_and_search(stores, clock):
    enter(stores, clock, "KA01AB1234", VehicleClass.CYCLE)
    clock.advance(hours=1)
    enter(stores, clock, "MH12XY0001", VehicleClass.FOUR_WHEELER)
    clock.advance(hours=1)
    leave(stores, clock, "KA01AB1234")
    everything = stores[0].list_all()
    assert [s.vehicle_number for s in filter_sessions(everything)] == ["MH12XY0001", "KA01AB1234"]
    assert [s.vehicle_number for s in filter_sessions(everything, SessionFilter.ACTIVE)] == ["MH12XY0001"]
    assert [s.vehicle_number for s in filter_sessions(everything, SessionFilter.COMPLETED)] == ["KA01AB1234"]
    assert [s.vehicle_number for s in filter_sessions(everything, search="xy")] == ["MH12XY0001"]

def test_store_update_of_missing_record_raises(stores):
    with pytest.raises(RecordNotFoundError):
        stores[0].update(999, {"amount_due": 1})
    with pytest.raises(RecordNotFoundError):
        stores[1].update(999, {"last_used_at": None})

def test_exit_uses_class_recorded_at_entry_for_pass_lookup(stores, clock):
    enter(stores, clock, "KA01AB1234", VehicleClass.FOUR_WHEELER)
    clock.advance(hours=1)
    give_pass(stores, clock, "KA01AB1234", VehicleClass.TWO_WHEELER)
    clock.advance(hours=4)
    s = leave(stores, clock, "KA01AB1234")
    assert s.is_pass_holder is False
    assert s.pass_id is None
    assert s.amount_due == 40
    assert s.breakdown == ["0–6 hrs: ₹40"]

def test_metered_helmet_surcharge_for_cycle(stores, clock):
    enter(stores, clock, "CYC9", VehicleClass.CYCLE, helmet=True)
    clock.advance(hours=3)
    s = leave(stores, clock, "CYC9")
    assert s.amount_due == 5 + 2
    assert s.breakdown == ["2–6 hrs: ₹5", "Helmet (1 day(s)): ₹2"]

def test_helmet_request_ignored_for_three_wheeler_at_exit(stores, clock):
    enter(stores, clock, "AUTO9", VehicleClass.THREE_WHEELER, helmet=True)
    clock.advance(hours=3)
    s = leave(stores, clock, "AUTO9")
    assert s.helmet_taken is False
    assert s.amount_due == 30
    assert s.breakdown == ["0–6 hrs: ₹30"]
