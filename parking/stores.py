from datetime import datetime, timezone
from typing import Callable, List, Protocol
from sqlalchemy.orm import Session
from .models import ParkingSession, MonthlyPass

Clock = Callable[[], datetime]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class SessionStore(Protocol):
    def create(self, session: ParkingSession) -> ParkingSession: ...
    def update(self, session_id: int, fields: dict) -> ParkingSession: ...
    def list_all(self) -> List[ParkingSession]: ...

class PassStore(Protocol):
    def create(self, monthly_pass: MonthlyPass) -> MonthlyPass: ...
    def update(self, pass_id: int, fields: dict) -> MonthlyPass: ...
    def list_all(self) -> List[MonthlyPass]: ...

class RecordNotFoundError(Exception):
    pass

class _SqlStore:
    model = None

    def __init__(self, db: Session):
        self.db = db

    def create(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def update(self, obj_id: int, fields: dict):
        obj = self.db.query(self.model).filter(self.model.id == obj_id).first()
        if not obj:
            raise RecordNotFoundError(f"{self.model.__tablename__} {obj_id} not found")
        for key, value in fields.items():
            setattr(obj, key, value)
        self.db.flush()
        return obj

    def list_all(self):
        return self.db.query(self.model).order_by(self.model.id.asc()).all()

class SqlSessionStore(_SqlStore):
    model = ParkingSession

class SqlPassStore(_SqlStore):
    model = MonthlyPass
