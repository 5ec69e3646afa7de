import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from core.enums import VehicleClass, SessionStatus, EntryRejection, PassMatchOutcome, SessionFilter
from .models import ParkingSession
from .passes import match_pass, find_active_pass, normalize_vehicle_number
from .stores import SessionStore, PassStore, Clock, utc_now, as_utc
from .tariff import compute_fare, duration_hours, helmet_surcharge, charge_line

logger = logging.getLogger(__name__)

@dataclass
class EntryResult:
    session: Optional[ParkingSession] = None
    rejection: Optional[EntryRejection] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

def find_active_session(sessions: Iterable[ParkingSession], vehicle_number: str) -> Optional[ParkingSession]:
    number = normalize_vehicle_number(vehicle_number)
    for s in sessions:
        if s.status == SessionStatus.ACTIVE and normalize_vehicle_number(s.vehicle_number) == number:
            return s
    return None

def register_entry(sessions: SessionStore, passes: PassStore, vehicle_number: str, vehicle_class: VehicleClass, helmet_requested: bool = False, clock: Clock = utc_now) -> EntryResult:
    number = normalize_vehicle_number(vehicle_number)
    now = clock()
    if find_active_session(sessions.list_all(), number):
        logger.info("Entry rejected for %s: already parked", number)
        return EntryResult(rejection=EntryRejection.DUPLICATE_ACTIVE, message=f"Vehicle {number} is already parked")
    match = match_pass(passes.list_all(), number, vehicle_class, now)
    if match.outcome == PassMatchOutcome.CLASS_MISMATCH:
        covered = match.monthly_pass.vehicle_class
        logger.info("Entry rejected for %s: pass covers %s, not %s", number, covered.value, vehicle_class.value)
        return EntryResult(
            rejection=EntryRejection.PASS_CLASS_MISMATCH,
            message=f"Vehicle {number} holds a {covered.label} pass; select {covered.label} to use it",
        )
    monthly_pass = match.monthly_pass
    session = sessions.create(ParkingSession(
        vehicle_number=number,
        vehicle_class=vehicle_class,
        entry_at=now,
        status=SessionStatus.ACTIVE,
        is_pass_holder=monthly_pass is not None,
        pass_id=monthly_pass.id if monthly_pass else None,
        helmet_taken=bool(helmet_requested) and vehicle_class.allows_helmet,
        active_vehicle_key=number,
    ))
    if monthly_pass is not None:
        passes.update(monthly_pass.id, {"last_used_at": now})
    logger.info("Vehicle %s (%s) entered, session %s, pass holder=%s", number, vehicle_class.value, session.id, session.is_pass_holder)
    return EntryResult(session=session)

def process_exit(sessions: SessionStore, passes: PassStore, vehicle_number: str, clock: Clock = utc_now) -> Optional[ParkingSession]:
    number = normalize_vehicle_number(vehicle_number)
    session = find_active_session(sessions.list_all(), number)
    if not session:
        logger.info("Exit requested for %s but no active session", number)
        return None
    exit_at = clock()
    entry_at = as_utc(session.entry_at)
    monthly_pass = find_active_pass(passes.list_all(), number, exit_at, session.vehicle_class)
    if monthly_pass is not None:
        amount = 0
        breakdown = [charge_line(f"Monthly pass ({session.vehicle_class.label})", 0)]
        if session.helmet_taken:
            surcharge, line = helmet_surcharge(entry_at, exit_at)
            amount += surcharge
            if line:
                breakdown.append(line)
    else:
        fare = compute_fare(session.vehicle_class, entry_at, exit_at)
        amount = fare.amount
        breakdown = list(fare.breakdown)
        if session.helmet_taken and session.vehicle_class.allows_helmet:
            surcharge, line = helmet_surcharge(entry_at, exit_at)
            amount += surcharge
            if line:
                breakdown.append(line)
    completed = sessions.update(session.id, {
        "exit_at": exit_at,
        "duration_hours": duration_hours(entry_at, exit_at),
        "amount_due": amount,
        "breakdown": breakdown,
        "status": SessionStatus.COMPLETED,
        "is_pass_holder": monthly_pass is not None,
        "pass_id": monthly_pass.id if monthly_pass else None,
        "active_vehicle_key": None,
    })
    if monthly_pass is not None:
        passes.update(monthly_pass.id, {"last_used_at": exit_at})
    logger.info("Vehicle %s exited, session %s, amount due %d", number, completed.id, amount)
    return completed

def filter_sessions(sessions: Iterable[ParkingSession], status_filter: SessionFilter = SessionFilter.ALL, search: str | None = None) -> List[ParkingSession]:
    term = search.strip().lower() if search else ""
    result = []
    for s in sessions:
        if status_filter != SessionFilter.ALL and s.status.value != status_filter.value:
            continue
        if term and term not in s.vehicle_number.lower():
            continue
        result.append(s)
    result.sort(key=lambda s: as_utc(s.entry_at), reverse=True)
    return result

def entered_between(sessions: Iterable[ParkingSession], start: datetime, end: datetime) -> List[ParkingSession]:
    start, end = as_utc(start), as_utc(end)
    return [s for s in sessions if start <= as_utc(s.entry_at) <= end]
