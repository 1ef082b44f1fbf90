"""
SmartParking - Payment Models
Enregistrements de paiement liés aux sessions.
"""

from pydantic import BaseModel, Field
from typing import Dict, List
from datetime import datetime
from enum import Enum
import secrets

from models.session import PaymentMethod
from utils.helpers import utcnow


class PaymentStatus(str, Enum):
    """États possibles d'un paiement."""
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


def generate_payment_reference() -> str:
    """Référence lisible du type PAY-<timestamp>-<aléatoire>."""
    return f"PAY-{int(utcnow().timestamp() * 1000)}-{secrets.token_hex(4)}"


class PaymentRecord(BaseModel):
    """Enregistrement d'un paiement de session."""
    payment_id: str = Field(..., description="ID unique du paiement")
    session_id: str = Field(..., description="Session payée")
    amount: float = Field(..., ge=0, description="Montant en devise locale")
    currency: str = Field(default="TND")
    payment_method: PaymentMethod
    status: PaymentStatus = Field(default=PaymentStatus.COMPLETED)
    reference: str = Field(default_factory=generate_payment_reference)
    payment_time: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True


class PaymentStats(BaseModel):
    """Totaux des paiements: global et du jour."""
    count: int
    total: float
    average: float
    today_count: int
    today_total: float
    currency: str


class PaymentReport(BaseModel):
    """Rapport des paiements d'une période, ventilé par moyen de paiement."""
    start_date: datetime
    end_date: datetime
    count: int
    total: float
    currency: str
    by_method: Dict[str, float] = Field(default_factory=dict)
    payments: List[PaymentRecord] = Field(default_factory=list)
