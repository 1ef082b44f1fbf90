"""
SmartParking - Alert Service
Création, lecture et acquittement des alertes système.
"""

from typing import List
import logging
import uuid

from config import get_settings
from database.firebase_db import get_db, FirebaseDB
from models.alert import Alert, AlertType
from services.websocket_service import get_websocket_manager
from utils.helpers import utcnow

# Configure logging
logger = logging.getLogger(__name__)


class AlertNotFoundError(Exception):
    """Aucune alerte avec cet identifiant."""


class AlertService:
    """Opérations sur les alertes."""

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()

    async def get_recent(self, limit: int = None) -> List[Alert]:
        """
        Les `limit` alertes les plus récentes, plus récente en premier.
        Lecture seule: l'indicateur `read` n'est pas modifié.
        """
        limit = limit or get_settings().alerts_default_limit
        alerts = await self.db.get_recent_alerts(limit=limit)
        return [Alert(**a) for a in alerts]

    async def get_unread(self, limit: int = 50) -> List[Alert]:
        """Alertes non lues, plus récente en premier."""
        alerts = await self.db.get_recent_alerts(limit=limit, unread_only=True)
        return [Alert(**a) for a in alerts]

    async def create(self, alert_type: AlertType, message: str) -> Alert:
        """Enregistre une alerte non lue et la diffuse aux clients WebSocket."""
        alert = Alert(
            alert_id=str(uuid.uuid4()),
            type=alert_type,
            message=message,
            timestamp=utcnow(),
            read=False,
        )
        await self.db.create_alert(alert.model_dump(mode="python"))
        logger.info(f"Alerte {alert.type}: {message}")

        await get_websocket_manager().broadcast_alert(alert.model_dump())
        return alert

    async def mark_read(self, alert_id: str) -> Alert:
        """
        Marque une alerte comme lue.

        Raises:
            AlertNotFoundError: si l'alerte n'existe pas
        """
        data = await self.db.get_alert(alert_id)
        if data is None:
            raise AlertNotFoundError(f"Alerte {alert_id} introuvable")

        if not data.get("read"):
            await self.db.mark_alert_read(alert_id)
            data["read"] = True

        return Alert(**data)


def get_alert_service() -> AlertService:
    """Service d'alertes sur la base par défaut."""
    return AlertService()
