"""
SmartParking - Parking Settings Models
Paramètres d'exploitation modifiables à chaud par un administrateur.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ParkingSettings(BaseModel):
    """Paramètres effectifs: valeurs enregistrées, sinon celles de l'environnement."""
    parking_name: str = Field(default="SmartParking")
    hourly_rate: float = Field(..., ge=0)
    grace_period_minutes: int = Field(..., ge=0)
    currency: str = Field(..., min_length=1, max_length=5)
    max_reservation_minutes: int = Field(..., ge=1)
    updated_at: Optional[datetime] = None


class ParkingSettingsUpdate(BaseModel):
    """Modification partielle des paramètres."""
    parking_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    grace_period_minutes: Optional[int] = Field(default=None, ge=0, le=240)
    currency: Optional[str] = Field(default=None, min_length=1, max_length=5)
    max_reservation_minutes: Optional[int] = Field(default=None, ge=1, le=1440)
