import calendar
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from core.enums import VehicleClass, PassStatus, PassMatchOutcome, PassSaleRejection, PassView
from .models import MonthlyPass
from .stores import PassStore, Clock, utc_now, as_utc

logger = logging.getLogger(__name__)

# monthly price per class, in rupees
PASS_CATALOG = {
    VehicleClass.CYCLE: {"label": "Cycle Pass", "price": 300, "description": "For bicycles/Cycles only"},
    VehicleClass.TWO_WHEELER: {"label": "Two-Wheeler Pass", "price": 600, "description": "For Motorcycles, Scooters"},
    VehicleClass.THREE_WHEELER: {"label": "Three-Wheeler Pass", "price": 1200, "description": "For Auto Rickshaws only"},
    VehicleClass.FOUR_WHEELER: {"label": "Four-Wheeler Pass", "price": 1500, "description": "For Cars/SUVs"},
}

@dataclass
class PassMatch:
    outcome: PassMatchOutcome
    monthly_pass: Optional[MonthlyPass] = None

@dataclass
class PassSaleResult:
    monthly_pass: Optional[MonthlyPass] = None
    rejection: Optional[PassSaleRejection] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

def normalize_vehicle_number(vehicle_number: str) -> str:
    return vehicle_number.strip().upper()

def is_currently_valid(monthly_pass: MonthlyPass, now: datetime) -> bool:
    return monthly_pass.status == PassStatus.ACTIVE and as_utc(monthly_pass.end_at) > as_utc(now)

def find_active_pass(passes: Iterable[MonthlyPass], vehicle_number: str, now: datetime, vehicle_class: VehicleClass | None = None) -> Optional[MonthlyPass]:
    """Return the first currently valid pass for the vehicle.

    With ``vehicle_class`` only a pass covering that exact class matches; a
    pass for another class on the same number is ignored. Without it any
    valid pass for the number matches.
    """
    number = normalize_vehicle_number(vehicle_number)
    for p in passes:
        if normalize_vehicle_number(p.vehicle_number) != number:
            continue
        if vehicle_class is not None and p.vehicle_class != vehicle_class:
            continue
        if is_currently_valid(p, now):
            return p
    return None

def match_pass(passes: Iterable[MonthlyPass], vehicle_number: str, vehicle_class: VehicleClass, now: datetime) -> PassMatch:
    passes = list(passes)
    exact = find_active_pass(passes, vehicle_number, now, vehicle_class)
    if exact is not None:
        return PassMatch(PassMatchOutcome.EXACT, exact)
    other = find_active_pass(passes, vehicle_number, now)
    if other is not None:
        return PassMatch(PassMatchOutcome.CLASS_MISMATCH, other)
    return PassMatch(PassMatchOutcome.NONE)

def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)

def pass_price(vehicle_class: VehicleClass, months: int) -> int:
    return PASS_CATALOG[vehicle_class]["price"] * months

def sell_pass(store: PassStore, vehicle_number: str, vehicle_class: VehicleClass, owner_name: str, owner_phone: str, months: int = 1, clock: Clock = utc_now) -> PassSaleResult:
    if months < 1:
        raise ValueError("months must be at least 1")
    now = clock()
    number = normalize_vehicle_number(vehicle_number)
    existing = find_active_pass(store.list_all(), number, now)
    if existing is not None:
        logger.info("Pass sale rejected for %s: pass %s still valid", number, existing.id)
        return PassSaleResult(
            rejection=PassSaleRejection.ALREADY_ACTIVE,
            message=f"Vehicle {number} already has an active {existing.vehicle_class.label} pass",
        )
    monthly_pass = store.create(MonthlyPass(
        vehicle_number=number,
        vehicle_class=vehicle_class,
        owner_name=owner_name.strip(),
        owner_phone=owner_phone.strip(),
        start_at=now,
        end_at=add_months(now, months),
        price=pass_price(vehicle_class, months),
        status=PassStatus.ACTIVE,
        created_at=now,
    ))
    logger.info("Sold %s pass %s to %s for %d month(s)", vehicle_class.value, monthly_pass.id, number, months)
    return PassSaleResult(monthly_pass=monthly_pass)

def filter_passes(passes: Iterable[MonthlyPass], now: datetime, view: PassView = PassView.ALL, search: str | None = None) -> List[MonthlyPass]:
    result = []
    term = search.strip().lower() if search else ""
    for p in passes:
        if view == PassView.ACTIVE and not is_currently_valid(p, now):
            continue
        if view == PassView.EXPIRED and not (p.status == PassStatus.EXPIRED or as_utc(p.end_at) <= as_utc(now)):
            continue
        if term and term not in p.vehicle_number.lower() and term not in p.owner_name.lower():
            continue
        result.append(p)
    return result
