"""
SmartParking - Payment Service
Historique, statistiques et rapports des paiements de sessions.
"""

from typing import Dict, List
from datetime import datetime
import asyncio
import logging

from database.firebase_db import get_db, FirebaseDB
from models.payment import PaymentRecord, PaymentStats, PaymentReport
from services.settings_service import SettingsService
from utils.helpers import utcnow, start_of_day

# Configure logging
logger = logging.getLogger(__name__)


class PaymentService:
    """Lectures sur la collection des paiements."""

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()
        self.parking_settings = SettingsService(self.db)

    async def recent(self, limit: int = 50) -> List[PaymentRecord]:
        """Derniers paiements, plus récent en premier."""
        payments = await self.db.get_recent_payments(limit=limit)
        return [PaymentRecord(**p) for p in payments]

    async def get_stats(self) -> PaymentStats:
        """Nombre, total et moyenne des paiements, globalement et depuis minuit UTC."""
        overall, today, parking = await asyncio.gather(
            self.db.payment_totals(),
            self.db.payment_totals(since=start_of_day(utcnow().date())),
            self.parking_settings.get(),
        )
        count = overall["count"]
        average = overall["total"] / count if count else 0.0

        return PaymentStats(
            count=count,
            total=round(overall["total"], 2),
            average=round(average, 2),
            today_count=today["count"],
            today_total=round(today["total"], 2),
            currency=parking.currency,
        )

    async def get_report(self, start: datetime, end: datetime) -> PaymentReport:
        """
        Paiements de la période [start, end[ et leur ventilation par moyen de paiement.

        Args:
            start: début inclus
            end: fin exclue
        """
        documents = await self.db.list_payments_in_range(start, end)
        payments = [PaymentRecord(**d) for d in documents]

        by_method: Dict[str, float] = {}
        for payment in payments:
            by_method[payment.payment_method] = round(
                by_method.get(payment.payment_method, 0.0) + payment.amount, 2
            )

        parking = await self.parking_settings.get()
        return PaymentReport(
            start_date=start,
            end_date=end,
            count=len(payments),
            total=round(sum(p.amount for p in payments), 2),
            currency=parking.currency,
            by_method=by_method,
            payments=payments,
        )


def get_payment_service() -> PaymentService:
    """Service des paiements sur la base par défaut."""
    return PaymentService()
