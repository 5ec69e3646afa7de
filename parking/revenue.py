"""Revenue and occupancy reporting over sessions and passes.

Metered revenue counts completed sessions of vehicles without a pass. Pass
holder sessions stay out of it even when a helmet surcharge was charged.
Pass sales are recognised when the pass is created.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Tuple
from zoneinfo import ZoneInfo
from core.config import settings
from core.enums import SessionStatus, VehicleClass
from .models import ParkingSession, MonthlyPass
from .passes import is_currently_valid
from .services import entered_between
from .stores import as_utc

Window = Tuple[datetime, datetime]

@dataclass
class RevenueSummary:
    start: datetime
    end: datetime
    metered_revenue: int
    pass_sales_revenue: int
    total_revenue: int = field(init=False)

    def __post_init__(self):
        self.total_revenue = self.metered_revenue + self.pass_sales_revenue

def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.LOCAL_TIMEZONE)

def _in_window(value: datetime | None, start: datetime, end: datetime) -> bool:
    if value is None:
        return False
    return as_utc(start) <= as_utc(value) <= as_utc(end)

def metered_revenue(sessions: Iterable[ParkingSession], start: datetime, end: datetime) -> int:
    return sum(
        s.amount_due or 0
        for s in sessions
        if s.status == SessionStatus.COMPLETED and not s.is_pass_holder and _in_window(s.exit_at, start, end)
    )

def pass_sales_revenue(passes: Iterable[MonthlyPass], start: datetime, end: datetime) -> int:
    return sum(p.price for p in passes if _in_window(p.created_at, start, end))

def revenue_between(sessions: Iterable[ParkingSession], passes: Iterable[MonthlyPass], start: datetime, end: datetime) -> RevenueSummary:
    return RevenueSummary(
        start=start,
        end=end,
        metered_revenue=metered_revenue(sessions, start, end),
        pass_sales_revenue=pass_sales_revenue(passes, start, end),
    )

def day_window(day: date, tz: ZoneInfo | None = None) -> Window:
    tz = tz or local_zone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz) - timedelta(microseconds=1)
    return start, end

def local_date(now: datetime, tz: ZoneInfo | None = None) -> date:
    return as_utc(now).astimezone(tz or local_zone()).date()

def today_window(now: datetime, tz: ZoneInfo | None = None) -> Window:
    return day_window(local_date(now, tz), tz)

def yesterday_window(now: datetime, tz: ZoneInfo | None = None) -> Window:
    return day_window(local_date(now, tz) - timedelta(days=1), tz)

def last_7_days_window(now: datetime, tz: ZoneInfo | None = None) -> Window:
    today = local_date(now, tz)
    start, _ = day_window(today - timedelta(days=6), tz)
    _, end = day_window(today, tz)
    return start, end

def this_month_window(now: datetime, tz: ZoneInfo | None = None) -> Window:
    today = local_date(now, tz)
    first = today.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    start, _ = day_window(first, tz)
    _, end = day_window(next_first - timedelta(days=1), tz)
    return start, end

def revenue_summary(sessions: Iterable[ParkingSession], passes: Iterable[MonthlyPass], now: datetime, tz: ZoneInfo | None = None) -> dict:
    sessions, passes = list(sessions), list(passes)
    windows = {
        "today": today_window(now, tz),
        "yesterday": yesterday_window(now, tz),
        "last_7_days": last_7_days_window(now, tz),
        "this_month": this_month_window(now, tz),
    }
    return {name: revenue_between(sessions, passes, start, end) for name, (start, end) in windows.items()}

def occupancy_stats(sessions: Iterable[ParkingSession], passes: Iterable[MonthlyPass], now: datetime, day: date | None = None, tz: ZoneInfo | None = None) -> dict:
    sessions, passes = list(sessions), list(passes)
    active = [s for s in sessions if s.status == SessionStatus.ACTIVE]
    by_class = {c.value: 0 for c in VehicleClass}
    for s in active:
        by_class[s.vehicle_class.value] += 1
    start, end = day_window(day or local_date(now, tz), tz)
    return {
        "active_vehicles": len(active),
        "active_by_class": by_class,
        "pass_holders_parked": sum(1 for s in active if s.is_pass_holder),
        "active_passes": sum(1 for p in passes if is_currently_valid(p, now)),
        "total_passes": len(passes),
        "total_records": len(sessions),
        "records_on_day": len(entered_between(sessions, start, end)),
    }
