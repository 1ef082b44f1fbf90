"""
SmartParking - Parking Space Models
Places de parking, réservations et résumé joint aux sessions.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from utils.helpers import utcnow, normalize_plate


class VehicleType(str, Enum):
    """Types de véhicules acceptés."""
    CAR = "car"
    TRUCK = "truck"
    MOTORCYCLE = "motorcycle"


class SpaceStatus(str, Enum):
    """États possibles d'une place."""
    FREE = "free"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    OUT_OF_SERVICE = "out_of_service"


class SpaceReservation(BaseModel):
    """Réservation en cours sur une place."""
    plate: str
    vehicle_type: VehicleType = VehicleType.CAR
    expires_at: datetime

    class Config:
        use_enum_values = True
        validate_default = True


class SpaceSummary(BaseModel):
    """Vue réduite d'une place, jointe aux sessions."""
    number: str
    zone: str
    vehicle_type: VehicleType

    class Config:
        use_enum_values = True
        validate_default = True


class ParkingSpace(BaseModel):
    """Place de parking identifiée par son numéro (ex: A1)."""
    number: str = Field(..., min_length=1, max_length=10)
    zone: str = Field(default="Zone A")
    vehicle_type: VehicleType = Field(default=VehicleType.CAR)
    status: SpaceStatus = Field(default=SpaceStatus.FREE)
    current_session_id: Optional[str] = Field(default=None)
    reservation: Optional[SpaceReservation] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True

    def summary(self) -> SpaceSummary:
        return SpaceSummary(
            number=self.number,
            zone=self.zone,
            vehicle_type=self.vehicle_type
        )


class ReservationRequest(BaseModel):
    """Requête de réservation d'une place."""
    plate: str = Field(..., min_length=2, max_length=15)
    vehicle_type: VehicleType = Field(default=VehicleType.CAR)
    duration_minutes: int = Field(
        default=30,
        ge=15,
        description="Durée de la réservation en minutes"
    )

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v: str) -> str:
        return normalize_plate(v)


class ServiceToggleRequest(BaseModel):
    """Mise hors service / remise en service d'une place."""
    out_of_service: bool


class SpaceStats(BaseModel):
    """Compteurs d'occupation des places."""
    total: int
    free: int
    occupied: int
    reserved: int
    out_of_service: int
    occupancy_rate: float
