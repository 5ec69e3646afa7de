from sqlalchemy import Column, Integer, String, Boolean, Enum, ForeignKey, Index, JSON
from sqlalchemy.sql import func
from core.database import Base, UTCDateTime
from core.enums import VehicleClass, SessionStatus, PassStatus

class MonthlyPass(Base):
    __tablename__ = "monthly_passes"
    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(20), nullable=False, index=True)
    vehicle_class = Column(Enum(VehicleClass), nullable=False)
    owner_name = Column(String(100), nullable=False)
    owner_phone = Column(String(20), nullable=False)
    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False, index=True)
    price = Column(Integer, nullable=False)
    status = Column(Enum(PassStatus), default=PassStatus.ACTIVE, nullable=False, index=True)
    last_used_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=func.now(), nullable=True, index=True)
    __table_args__ = (
        Index("idx_monthly_passes_vehicle_status", "vehicle_number", "status"),
    )

class ParkingSession(Base):
    __tablename__ = "parking_sessions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(20), nullable=False, index=True)
    vehicle_class = Column(Enum(VehicleClass), nullable=False)
    entry_at = Column(UTCDateTime, nullable=False, index=True)
    exit_at = Column(UTCDateTime, nullable=True, index=True)
    duration_hours = Column(Integer, nullable=True)
    amount_due = Column(Integer, nullable=True)
    status = Column(Enum(SessionStatus), default=SessionStatus.ACTIVE, nullable=False, index=True)
    is_pass_holder = Column(Boolean, default=False, nullable=False)
    pass_id = Column(Integer, ForeignKey("monthly_passes.id", ondelete="SET NULL"), nullable=True, index=True)
    helmet_taken = Column(Boolean, default=False, nullable=False)
    breakdown = Column(JSON, nullable=True)
    # vehicle number while active, NULL once completed; unique so a second active row cannot commit
    active_vehicle_key = Column(String(20), nullable=True, unique=True)
    created_at = Column(UTCDateTime, default=func.now(), nullable=False)
    __table_args__ = (
        Index("idx_parking_sessions_vehicle_status", "vehicle_number", "status"),
    )
