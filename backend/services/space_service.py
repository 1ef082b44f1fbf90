"""
SmartParking - Space Service
Gestion de l'état des places: occupation, réservations et maintenance.
"""

from typing import List, Optional
from datetime import datetime, timedelta
import logging

from database.firebase_db import get_db, FirebaseDB
from models.alert import AlertType
from models.space import (
    ParkingSpace,
    SpaceStatus,
    SpaceStats,
    ReservationRequest,
    VehicleType,
)
from services.alert_service import AlertService
from services.settings_service import SettingsService
from utils.helpers import utcnow, ensure_utc

# Configure logging
logger = logging.getLogger(__name__)


class SpaceNotFoundError(Exception):
    """Aucune place avec ce numéro."""


class SpaceUnavailableError(Exception):
    """La place ne peut pas prendre l'état demandé."""


class SpaceService:
    """
    Opérations sur les places de parking.
    Les sessions occupent et libèrent les places via cette classe.
    """

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()

    async def list_spaces(self) -> List[ParkingSpace]:
        """Toutes les places, triées par numéro."""
        spaces = await self.db.get_all_spaces()
        return [ParkingSpace(**s) for s in spaces]

    async def get_space(self, number: str) -> ParkingSpace:
        """
        Récupère une place.

        Raises:
            SpaceNotFoundError: numéro inconnu
        """
        data = await self.db.get_space(number.upper())
        if data is None:
            raise SpaceNotFoundError(f"Place {number} introuvable")
        return ParkingSpace(**data)

    async def get_stats(self) -> SpaceStats:
        """Compteurs d'occupation sur toutes les places."""
        spaces = await self.list_spaces()
        counts = {s.value: 0 for s in SpaceStatus}
        for space in spaces:
            counts[space.status] += 1

        total = len(spaces)
        in_service = total - counts[SpaceStatus.OUT_OF_SERVICE.value]
        occupancy = counts[SpaceStatus.OCCUPIED.value] / in_service * 100 if in_service else 0.0

        return SpaceStats(
            total=total,
            free=counts[SpaceStatus.FREE.value],
            occupied=counts[SpaceStatus.OCCUPIED.value],
            reserved=counts[SpaceStatus.RESERVED.value],
            out_of_service=counts[SpaceStatus.OUT_OF_SERVICE.value],
            occupancy_rate=round(occupancy, 1),
        )

    @staticmethod
    def is_reservation_expired(space: ParkingSpace, now: datetime = None) -> bool:
        if space.reservation is None:
            return True
        return ensure_utc(space.reservation.expires_at) <= (now or utcnow())

    def can_enter(self, space: ParkingSpace, plate: str) -> bool:
        """
        Un véhicule peut entrer sur une place libre, réservée pour sa
        propre plaque, ou dont la réservation a expiré.
        """
        if space.status == SpaceStatus.FREE:
            return True
        if space.status == SpaceStatus.RESERVED:
            return (
                self.is_reservation_expired(space)
                or space.reservation.plate == plate.upper()
            )
        return False

    async def occupy(self, number: str, session_id: str, plate: str) -> ParkingSpace:
        """
        Marque une place occupée par une session.

        Raises:
            SpaceNotFoundError: numéro inconnu
            SpaceUnavailableError: le véhicule ne peut pas entrer sur cette place
        """
        space = await self.get_space(number)
        if not self.can_enter(space, plate):
            raise SpaceUnavailableError(
                f"Place {space.number} indisponible ({space.status})"
            )

        await self.db.update_space(space.number, {
            "status": SpaceStatus.OCCUPIED.value,
            "current_session_id": session_id,
            "reservation": None,
        })
        space.status = SpaceStatus.OCCUPIED.value
        space.current_session_id = session_id
        space.reservation = None
        return space

    async def free(self, number: str) -> None:
        """Libère une place à la sortie. Une place hors service le reste."""
        space = await self.db.get_space(number)
        if space is None:
            logger.warning(f"Place {number} absente lors de la libération")
            return

        updates = {"current_session_id": None}
        if space.get("status") == SpaceStatus.OCCUPIED.value:
            updates["status"] = SpaceStatus.FREE.value
        await self.db.update_space(number, updates)

    async def reserve(self, number: str, request: ReservationRequest) -> ParkingSpace:
        """
        Réserve une place libre pour une plaque.

        Raises:
            ValueError: durée supérieure au maximum des paramètres du parking
            SpaceNotFoundError: numéro inconnu
            SpaceUnavailableError: place non libre
        """
        max_minutes = (await SettingsService(self.db).get()).max_reservation_minutes
        if request.duration_minutes > max_minutes:
            raise ValueError(f"Durée maximale de réservation: {max_minutes} minutes")

        space = await self.get_space(number)
        if space.status != SpaceStatus.FREE:
            raise SpaceUnavailableError(
                f"Place {space.number} non disponible ({space.status})"
            )

        reservation = {
            "plate": request.plate,
            "vehicle_type": VehicleType(request.vehicle_type).value,
            "expires_at": utcnow() + timedelta(minutes=request.duration_minutes),
        }
        await self.db.update_space(space.number, {
            "status": SpaceStatus.RESERVED.value,
            "reservation": reservation,
        })

        logger.info(f"Place {space.number} réservée pour {request.plate}")
        return await self.get_space(space.number)

    async def cancel_reservation(self, number: str) -> ParkingSpace:
        """
        Annule la réservation d'une place.

        Raises:
            SpaceUnavailableError: place non réservée
        """
        space = await self.get_space(number)
        if space.status != SpaceStatus.RESERVED:
            raise SpaceUnavailableError(f"Place {space.number} non réservée")

        await self.db.update_space(space.number, {
            "status": SpaceStatus.FREE.value,
            "reservation": None,
        })
        logger.info(f"Réservation de la place {space.number} annulée")
        return await self.get_space(space.number)

    async def set_out_of_service(self, number: str, out_of_service: bool) -> ParkingSpace:
        """
        Met une place hors service ou la remet en service.

        Raises:
            SpaceUnavailableError: place occupée
        """
        space = await self.get_space(number)
        if space.status == SpaceStatus.OCCUPIED:
            raise SpaceUnavailableError(f"Place {space.number} occupée")

        new_status = SpaceStatus.OUT_OF_SERVICE if out_of_service else SpaceStatus.FREE
        await self.db.update_space(space.number, {
            "status": new_status.value,
            "reservation": None,
        })
        logger.info(f"Place {space.number} -> {new_status.value}")
        return await self.get_space(space.number)

    async def release_expired_reservations(self, now: Optional[datetime] = None) -> List[str]:
        """
        Libère chaque place dont la réservation a expiré et crée une
        alerte warning pour chacune.

        Returns:
            List[str]: numéros des places libérées
        """
        now = now or utcnow()
        expired = await self.db.get_expired_reservations(now)
        alerts = AlertService(self.db)

        released = []
        for space in expired:
            number = space["number"]
            await self.db.update_space(number, {
                "status": SpaceStatus.FREE.value,
                "reservation": None,
            })
            plate = (space.get("reservation") or {}).get("plate", "?")
            await alerts.create(
                AlertType.WARNING,
                f"Réservation expirée: place {number} ({plate})"
            )
            released.append(number)

        return released


def get_space_service() -> SpaceService:
    """Service des places sur la base par défaut."""
    return SpaceService()
