from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date
from core.enums import VehicleClass, SessionStatus, PassStatus, PassMatchOutcome
from .passes import normalize_vehicle_number
from .tariff import format_duration

class _VehicleNumberMixin(BaseModel):
    vehicle_number: str = Field(..., min_length=1, max_length=20)

    @field_validator("vehicle_number")
    @classmethod
    def normalize_number(cls, v: str) -> str:
        v = normalize_vehicle_number(v)
        if not v:
            raise ValueError("vehicle number must not be blank")
        return v

class EntryRequest(_VehicleNumberMixin):
    vehicle_class: VehicleClass
    helmet: bool = False

class ExitRequest(_VehicleNumberMixin):
    pass

class ParkingSessionRead(BaseModel):
    id: int
    vehicle_number: str
    vehicle_class: VehicleClass
    entry_at: datetime
    exit_at: Optional[datetime] = None
    duration_hours: Optional[int] = None
    amount_due: Optional[int] = None
    status: SessionStatus
    is_pass_holder: bool
    pass_id: Optional[int] = None
    helmet_taken: bool
    breakdown: Optional[List[str]] = None
    model_config = ConfigDict(from_attributes=True)

class ExitReceipt(ParkingSessionRead):
    duration_display: str = ""

    @classmethod
    def from_session(cls, session) -> "ExitReceipt":
        receipt = cls.model_validate(session)
        receipt.duration_display = format_duration(session.duration_hours or 0)
        return receipt

class PaginatedParkingSessions(BaseModel):
    items: List[ParkingSessionRead]
    total: int

class FareQuoteRequest(BaseModel):
    vehicle_class: VehicleClass
    entry_at: datetime
    exit_at: datetime
    helmet: bool = False

class FareQuote(BaseModel):
    vehicle_class: VehicleClass
    amount: int
    breakdown: List[str]
    duration_hours: int
    duration_display: str

class TariffBandRead(BaseModel):
    max_hours: int
    price: int
    label: str

class TariffRead(BaseModel):
    vehicle_class: VehicleClass
    bands: List[TariffBandRead]
    daily_rate: int

class PassCatalogItem(BaseModel):
    vehicle_class: VehicleClass
    label: str
    monthly_price: int
    description: str

class MonthlyPassCreate(_VehicleNumberMixin):
    vehicle_class: VehicleClass
    owner_name: str = Field(..., min_length=1, max_length=100)
    owner_phone: str = Field(..., min_length=1, max_length=20)
    months: int = Field(1, ge=1, le=12)

class MonthlyPassRead(BaseModel):
    id: int
    vehicle_number: str
    vehicle_class: VehicleClass
    owner_name: str
    owner_phone: str
    start_at: datetime
    end_at: datetime
    price: int
    status: PassStatus
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class PassLookupRead(BaseModel):
    vehicle_number: str
    outcome: PassMatchOutcome
    monthly_pass: Optional[MonthlyPassRead] = None

class RevenueRead(BaseModel):
    start: datetime
    end: datetime
    metered_revenue: int
    pass_sales_revenue: int
    total_revenue: int
    model_config = ConfigDict(from_attributes=True)

class RevenueSummaryRead(BaseModel):
    today: RevenueRead
    yesterday: RevenueRead
    last_7_days: RevenueRead
    this_month: RevenueRead

class OccupancyRead(BaseModel):
    day: date
    active_vehicles: int
    active_by_class: Dict[str, int]
    pass_holders_parked: int
    active_passes: int
    total_passes: int
    total_records: int
    records_on_day: int
