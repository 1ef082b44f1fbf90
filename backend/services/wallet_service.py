"""
SmartParking - Wallet Service
Portefeuille prépayé: rechargement et historique des opérations.

Le débit a lieu au paiement d'une session (SessionService.pay), dans la même
transaction que le passage de la session à paid.
"""

from typing import List
import logging
import uuid

from database.firebase_db import get_db, FirebaseDB, StaleDocumentError
from models.wallet import TransactionType, WalletTransaction
from services.user_service import UserNotFoundError

# Configure logging
logger = logging.getLogger(__name__)


class WalletService:
    """Opérations sur les portefeuilles des utilisateurs."""

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()

    async def top_up(self, user_id: str, amount: float) -> float:
        """
        Crédite le portefeuille.

        Returns:
            float: nouveau solde

        Raises:
            UserNotFoundError: utilisateur inconnu
        """
        transaction = WalletTransaction(
            transaction_id=str(uuid.uuid4()),
            user_id=user_id,
            type=TransactionType.TOPUP,
            amount=round(amount, 2),
            description="Rechargement",
        )
        try:
            return await self.db.wallet_top_up(transaction.model_dump(mode="python"))
        except StaleDocumentError as e:
            raise UserNotFoundError(str(e))

    async def list_transactions(self, user_id: str, limit: int = 50) -> List[WalletTransaction]:
        """Opérations les plus récentes en premier."""
        documents = await self.db.list_wallet_transactions(user_id, limit=limit)
        return [WalletTransaction(**d) for d in documents]


def get_wallet_service() -> WalletService:
    """Service des portefeuilles sur la base par défaut."""
    return WalletService()
