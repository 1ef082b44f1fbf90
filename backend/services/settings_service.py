"""
SmartParking - Settings Service
Paramètres d'exploitation du parking.

Les valeurs enregistrées dans Firestore priment; les champs jamais modifiés
retombent sur la configuration d'environnement.
"""

import logging

from config import get_settings
from database.firebase_db import get_db, FirebaseDB
from models.settings import ParkingSettings, ParkingSettingsUpdate

# Configure logging
logger = logging.getLogger(__name__)


class SettingsService:
    """Lecture et modification des paramètres du parking."""

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()

    @staticmethod
    def defaults() -> dict:
        settings = get_settings()
        return {
            "hourly_rate": settings.hourly_rate,
            "grace_period_minutes": settings.grace_period_minutes,
            "currency": settings.currency,
            "max_reservation_minutes": settings.max_reservation_minutes,
        }

    async def get(self) -> ParkingSettings:
        """Paramètres effectifs."""
        stored = await self.db.get_parking_settings() or {}
        known = {k: v for k, v in stored.items() if k in ParkingSettings.model_fields}
        return ParkingSettings(**{**self.defaults(), **known})

    async def update(self, request: ParkingSettingsUpdate, updated_by: str = None) -> ParkingSettings:
        """
        Enregistre les champs fournis et retourne les paramètres effectifs.

        Raises:
            ValueError: aucun champ à modifier
        """
        updates = request.model_dump(exclude_none=True)
        if not updates:
            raise ValueError("Aucun paramètre à modifier")

        await self.db.save_parking_settings(dict(updates))
        logger.info(f"Paramètres modifiés par {updated_by or 'inconnu'}: {sorted(updates)}")
        return await self.get()


def get_settings_service() -> SettingsService:
    """Service des paramètres sur la base par défaut."""
    return SettingsService()
