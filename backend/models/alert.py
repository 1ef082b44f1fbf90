"""
SmartParking - Alert Models
Notifications système horodatées avec indicateur de lecture.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum

from utils.helpers import utcnow


class AlertType(str, Enum):
    """Niveaux d'alerte."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Alert(BaseModel):
    """Alerte système. Seul le champ `read` évolue après création."""
    alert_id: str
    type: AlertType
    message: str = Field(..., min_length=1, max_length=500)
    timestamp: datetime = Field(default_factory=utcnow)
    read: bool = False

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True


class AlertCreate(BaseModel):
    """Création manuelle d'une alerte."""
    type: AlertType
    message: str = Field(..., min_length=1, max_length=500)
