# /core/enums.py
import enum

class VehicleClass(enum.Enum):
    CYCLE = "cycle"
    TWO_WHEELER = "two_wheeler"
    THREE_WHEELER = "three_wheeler"
    FOUR_WHEELER = "four_wheeler"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def allows_helmet(self) -> bool:
        return self in (VehicleClass.CYCLE, VehicleClass.TWO_WHEELER)

class SessionStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"

class PassStatus(enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"

class EntryRejection(enum.Enum):
    DUPLICATE_ACTIVE = "duplicate_active"
    PASS_CLASS_MISMATCH = "pass_class_mismatch"

class PassMatchOutcome(enum.Enum):
    NONE = "none"
    EXACT = "exact"
    CLASS_MISMATCH = "class_mismatch"

class PassSaleRejection(enum.Enum):
    ALREADY_ACTIVE = "already_active"

class PassView(enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    ALL = "all"

class SessionFilter(enum.Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
