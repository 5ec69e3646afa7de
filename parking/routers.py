import logging
from datetime import date, datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.database import get_db
from core.enums import PassView, SessionFilter, VehicleClass
from .schemas import (
    EntryRequest, ExitRequest, ParkingSessionRead, ExitReceipt, PaginatedParkingSessions,
    FareQuoteRequest, FareQuote, TariffRead, TariffBandRead,
    PassCatalogItem, MonthlyPassCreate, MonthlyPassRead, PassLookupRead,
    RevenueRead, RevenueSummaryRead, OccupancyRead,
)
from .services import register_entry, process_exit, find_active_session, filter_sessions
from .passes import PASS_CATALOG, sell_pass, filter_passes, match_pass, normalize_vehicle_number
from .revenue import revenue_between, revenue_summary, occupancy_stats, day_window, local_date
from .stores import SqlSessionStore, SqlPassStore, Clock, utc_now, as_utc
from .tariff import TARIFFS, compute_fare, duration_hours, helmet_surcharge, format_duration

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Parking"])

def get_clock() -> Clock:
    return utc_now

def _internal_error(db: Session, action: str) -> HTTPException:
    db.rollback()
    logger.exception("Unexpected failure while %s", action)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")

@router.post("/parking-sessions/entry", response_model=ParkingSessionRead)
def parking_entry(request: EntryRequest, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    try:
        result = register_entry(SqlSessionStore(db), SqlPassStore(db), request.vehicle_number, request.vehicle_class, request.helmet, clock=clock)
        if not result.ok:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
        db.commit()
        db.refresh(result.session)
        return result.session
    except HTTPException as e:
        raise e
    except IntegrityError:
        # another terminal committed an active session for the same number first
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Vehicle {request.vehicle_number} is already parked")
    except Exception:
        raise _internal_error(db, "registering entry")

@router.post("/parking-sessions/exit", response_model=ExitReceipt)
def parking_exit(request: ExitRequest, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    try:
        session = process_exit(SqlSessionStore(db), SqlPassStore(db), request.vehicle_number, clock=clock)
        if not session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vehicle {request.vehicle_number} is not currently parked")
        db.commit()
        db.refresh(session)
        return ExitReceipt.from_session(session)
    except HTTPException as e:
        raise e
    except Exception:
        raise _internal_error(db, "processing exit")

@router.get("/parking-sessions", response_model=PaginatedParkingSessions)
def list_parking_sessions(status_value: SessionFilter = SessionFilter.ALL, search: str | None = None, skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    items = filter_sessions(SqlSessionStore(db).list_all(), status_value, search)
    return {"items": items[skip:skip + limit], "total": len(items)}

@router.get("/parking-sessions/active/{vehicle_number}", response_model=ParkingSessionRead)
def get_active_session(vehicle_number: str, db: Session = Depends(get_db)):
    session = find_active_session(SqlSessionStore(db).list_all(), vehicle_number)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Vehicle {normalize_vehicle_number(vehicle_number)} is not currently parked")
    return session

@router.get("/tariffs", response_model=List[TariffRead])
def list_tariffs():
    return [
        TariffRead(
            vehicle_class=vehicle_class,
            bands=[TariffBandRead(max_hours=b.max_hours, price=b.price, label=b.label) for b in tariff.bands],
            daily_rate=tariff.daily_rate,
        )
        for vehicle_class, tariff in TARIFFS.items()
    ]

@router.post("/tariffs/quote", response_model=FareQuote)
def quote_fare(request: FareQuoteRequest):
    entry_at, exit_at = as_utc(request.entry_at), as_utc(request.exit_at)
    fare = compute_fare(request.vehicle_class, entry_at, exit_at)
    amount, breakdown = fare.amount, list(fare.breakdown)
    if request.helmet and request.vehicle_class.allows_helmet:
        surcharge, line = helmet_surcharge(entry_at, exit_at)
        amount += surcharge
        if line:
            breakdown.append(line)
    hours = duration_hours(entry_at, exit_at)
    return FareQuote(vehicle_class=request.vehicle_class, amount=amount, breakdown=breakdown, duration_hours=hours, duration_display=format_duration(hours))

@router.get("/monthly-passes/catalog", response_model=List[PassCatalogItem])
def pass_catalog():
    return [
        PassCatalogItem(vehicle_class=c, label=item["label"], monthly_price=item["price"], description=item["description"])
        for c, item in PASS_CATALOG.items()
    ]

@router.post("/monthly-passes", response_model=MonthlyPassRead)
def create_monthly_pass(request: MonthlyPassCreate, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    try:
        result = sell_pass(SqlPassStore(db), request.vehicle_number, request.vehicle_class, request.owner_name, request.owner_phone, request.months, clock=clock)
        if not result.ok:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
        db.commit()
        db.refresh(result.monthly_pass)
        return result.monthly_pass
    except HTTPException as e:
        raise e
    except Exception:
        raise _internal_error(db, "selling a monthly pass")

@router.get("/monthly-passes", response_model=List[MonthlyPassRead])
def list_monthly_passes(view: PassView = PassView.ALL, search: str | None = None, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return filter_passes(SqlPassStore(db).list_all(), clock(), view, search)

@router.get("/monthly-passes/lookup/{vehicle_number}", response_model=PassLookupRead)
def lookup_pass(vehicle_number: str, vehicle_class: VehicleClass, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    match = match_pass(SqlPassStore(db).list_all(), vehicle_number, vehicle_class, clock())
    return PassLookupRead(
        vehicle_number=normalize_vehicle_number(vehicle_number),
        outcome=match.outcome,
        monthly_pass=MonthlyPassRead.model_validate(match.monthly_pass) if match.monthly_pass else None,
    )

@router.get("/reports/revenue", response_model=RevenueRead)
def revenue_report(start: datetime, end: datetime, db: Session = Depends(get_db)):
    if as_utc(end) < as_utc(start):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    return revenue_between(SqlSessionStore(db).list_all(), SqlPassStore(db).list_all(), start, end)

@router.get("/reports/revenue/summary", response_model=RevenueSummaryRead)
def revenue_summary_report(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return revenue_summary(SqlSessionStore(db).list_all(), SqlPassStore(db).list_all(), clock())

@router.get("/reports/revenue/daily", response_model=RevenueRead)
def daily_revenue_report(day: date | None = None, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    start, end = day_window(day or local_date(clock()))
    return revenue_between(SqlSessionStore(db).list_all(), SqlPassStore(db).list_all(), start, end)

@router.get("/reports/occupancy", response_model=OccupancyRead)
def occupancy_report(day: date | None = None, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    now = clock()
    day = day or local_date(now)
    stats = occupancy_stats(SqlSessionStore(db).list_all(), SqlPassStore(db).list_all(), now, day)
    return {"day": day, **stats}
