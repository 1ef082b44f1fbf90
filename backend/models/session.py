"""
SmartParking - Session Models
Defines the parking session record, its status lifecycle and request models.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Dict, FrozenSet
from datetime import datetime
from enum import Enum

from models.space import VehicleType, SpaceSummary, SpaceStats
from utils.helpers import utcnow, normalize_plate


class SessionStatus(str, Enum):
    """Lifecycle states of a parking session."""
    ACTIVE = "active"
    FINISHED = "finished"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    WALLET = "wallet"


# active -> finished -> paid, nothing leaves paid
ALLOWED_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.ACTIVE: frozenset({SessionStatus.FINISHED}),
    SessionStatus.FINISHED: frozenset({SessionStatus.PAID}),
    SessionStatus.PAID: frozenset(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Check a status write against the transition table."""
    return SessionStatus(target) in ALLOWED_TRANSITIONS[SessionStatus(current)]


class Vehicle(BaseModel):
    """Vehicle occupying a space."""
    id: Optional[str] = Field(default=None, description="Optional vehicle identifier")
    plate: str = Field(..., min_length=2, max_length=15, description="License plate")
    type: VehicleType = Field(default=VehicleType.CAR)

    class Config:
        use_enum_values = True
        validate_default = True

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v: str) -> str:
        """Plates are stored upper-case, blanks collapsed; other characters are rejected."""
        return normalize_plate(v)


class SessionPhotos(BaseModel):
    """Entry and exit camera snapshots (URLs)."""
    entry: Optional[str] = None
    exit: Optional[str] = None


class Session(BaseModel):
    """One vehicle's occupancy of a parking space, from entry to payment."""
    session_id: str = Field(..., description="Unique session identifier")
    vehicle: Vehicle
    space_number: str = Field(..., description="Foreign key to ParkingSpace.number")
    entry_time: datetime = Field(default_factory=utcnow)
    exit_time: Optional[datetime] = Field(default=None)
    status: SessionStatus = Field(default=SessionStatus.ACTIVE)
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = Field(default=None)
    photos: SessionPhotos = Field(default_factory=SessionPhotos)
    duration: Optional[int] = Field(default=None, ge=0, description="Duration in minutes")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    space: Optional[SpaceSummary] = Field(
        default=None,
        description="Space resolved from space_number, filled by the service layer"
    )

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True

    @model_validator(mode="after")
    def check_status_fields(self) -> "Session":
        if self.status == SessionStatus.ACTIVE:
            if self.exit_time is not None:
                raise ValueError("exit_time must be empty while the session is active")
            if self.amount is not None:
                raise ValueError("amount is only set once the session is finished")
        if self.payment_method is not None and self.status != SessionStatus.PAID:
            raise ValueError("payment_method is only set on paid sessions")
        return self

    def to_document(self) -> dict:
        """Serialize for storage; the joined space is never persisted."""
        return self.model_dump(mode="python", exclude={"space"})


class SessionCreate(BaseModel):
    """Vehicle entry request."""
    vehicle: Vehicle
    space_number: str = Field(..., min_length=1, max_length=10)
    photos: SessionPhotos = Field(default_factory=SessionPhotos)


class SessionEnd(BaseModel):
    """Vehicle exit request."""
    exit_photo: Optional[str] = None
    amount: Optional[float] = Field(
        default=None,
        ge=0,
        description="Overrides the computed amount when given"
    )


class SessionPayment(BaseModel):
    """Payment of a finished session."""
    payment_method: PaymentMethod
    amount: Optional[float] = Field(default=None, ge=0)
    user_id: Optional[str] = Field(
        default=None,
        description="Wallet debited when payment_method is wallet"
    )

    @model_validator(mode="after")
    def check_wallet_owner(self) -> "SessionPayment":
        if self.payment_method == PaymentMethod.WALLET and not self.user_id:
            raise ValueError("user_id is required for wallet payments")
        return self


class SessionStatusUpdate(BaseModel):
    """Direct status write, checked against ALLOWED_TRANSITIONS."""
    status: SessionStatus


class SessionStats(BaseModel):
    """Session counts per status."""
    total: int
    active: int
    completed: int
    paid: int


class DashboardStats(BaseModel):
    """Occupancy and today's activity, for the operator dashboard."""
    spaces: SpaceStats
    sessions_today: int
    active_sessions: int
    payments_today: int
    revenue_today: float
    currency: str
    timestamp: datetime = Field(default_factory=utcnow)
