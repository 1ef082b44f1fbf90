"""
SmartParking - Wallet Models
Opérations de portefeuille prépayé des clients.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from utils.helpers import utcnow


class TransactionType(str, Enum):
    """Sens de l'opération."""
    TOPUP = "topup"
    PAYMENT = "payment"


class WalletTransaction(BaseModel):
    """Crédit ou débit du portefeuille d'un utilisateur."""
    transaction_id: str = Field(..., description="ID unique de l'opération")
    user_id: str
    type: TransactionType
    amount: float = Field(..., gt=0)
    session_id: Optional[str] = Field(default=None, description="Session payée, pour un débit")
    description: str = Field(default="")
    timestamp: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True


class TopUpRequest(BaseModel):
    """Rechargement du portefeuille."""
    amount: float = Field(..., gt=0, le=1000, description="Montant crédité")
