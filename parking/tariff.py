"""Banded parking tariffs.

Every vehicle class has an ordered list of duration bands with flat prices and
a daily rate for stays longer than a day. Long stays are charged as whole days
at the daily rate plus the leftover hours priced like a fresh short stay.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Tuple
from core.enums import VehicleClass

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
HELMET_CHARGE_PER_DAY = 2
INVALID_DURATION_LINE = "Invalid duration (0 hours): ₹0"

@dataclass(frozen=True)
class Band:
    max_hours: int
    price: int
    label: str

@dataclass(frozen=True)
class Tariff:
    bands: Tuple[Band, ...]
    daily_rate: int

@dataclass
class Fare:
    amount: int = 0
    breakdown: List[str] = field(default_factory=list)

    def add(self, label: str, cost: int) -> None:
        if cost > 0:
            self.breakdown.append(charge_line(label, cost))
        self.amount += cost

TARIFFS = {
    VehicleClass.CYCLE: Tariff(
        bands=(
            Band(2, 5, "0–2 hrs"),
            Band(6, 5, "2–6 hrs"),
            Band(12, 10, "6–12 hrs"),
            Band(24, 15, "12–24 hrs"),
        ),
        daily_rate=20,
    ),
    VehicleClass.TWO_WHEELER: Tariff(
        bands=(
            Band(6, 10, "0–6 hrs"),
            Band(12, 30, "6–12 hrs"),
            Band(24, 40, "12–24 hrs"),
        ),
        daily_rate=40,
    ),
    VehicleClass.THREE_WHEELER: Tariff(
        bands=(
            Band(6, 30, "0–6 hrs"),
            Band(12, 60, "6–12 hrs"),
            Band(24, 80, "12–24 hrs"),
        ),
        daily_rate=80,
    ),
    VehicleClass.FOUR_WHEELER: Tariff(
        bands=(
            Band(6, 40, "0–6 hrs"),
            Band(24, 80, "6–24 hrs"),
        ),
        daily_rate=80,
    ),
}

def charge_line(label: str, cost: int) -> str:
    return f"{label}: ₹{cost}"

def elapsed_ms(entry_time: datetime, exit_time: datetime) -> int:
    return (exit_time - entry_time) // timedelta(milliseconds=1)

def _ceil_div(value: int, unit: int) -> int:
    return -(-value // unit)

def duration_hours(entry_time: datetime, exit_time: datetime) -> int:
    """Whole hours for display, rounded up. Never used for banding."""
    ms = elapsed_ms(entry_time, exit_time)
    if ms <= 0:
        return 0
    return _ceil_div(ms, HOUR_MS)

def _band_for(tariff: Tariff, ms: int) -> Band:
    for band in tariff.bands:
        if ms < band.max_hours * HOUR_MS:
            return band
    return tariff.bands[-1]

def compute_fare(vehicle_class: VehicleClass, entry_time: datetime, exit_time: datetime) -> Fare:
    ms = elapsed_ms(entry_time, exit_time)
    if ms <= 0:
        return Fare(0, [INVALID_DURATION_LINE])
    tariff = TARIFFS[vehicle_class]
    fare = Fare()
    if ms < DAY_MS:
        band = _band_for(tariff, ms)
        fare.add(band.label, band.price)
        return fare
    days = ms // DAY_MS
    fare.add(f"{days} day(s)", days * tariff.daily_rate)
    remaining = ms - days * DAY_MS
    if remaining > 0:
        band = _band_for(tariff, remaining)
        fare.add(f"{band.label} (extra day)", band.price)
    return fare

def helmet_surcharge(entry_time: datetime, exit_time: datetime) -> Tuple[int, str | None]:
    """₹2 for every started day of the stay, pass holders included."""
    ms = elapsed_ms(entry_time, exit_time)
    days = _ceil_div(ms, DAY_MS) if ms > 0 else 0
    amount = days * HELMET_CHARGE_PER_DAY
    if amount == 0:
        return 0, None
    return amount, charge_line(f"Helmet ({days} day(s))", amount)

def format_duration(hours: int) -> str:
    if hours <= 0:
        return "0 hours"
    d, h = divmod(hours, 24)
    parts = []
    if d > 0:
        parts.append(f"{d} day{'s' if d > 1 else ''}")
    if h > 0:
        parts.append(f"{h} hour{'s' if h > 1 else ''}")
    return " ".join(parts)
