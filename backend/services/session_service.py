"""
SmartParking - Session Service
Cycle de vie des sessions de stationnement: entrée, sortie, paiement.

Chaque session retournée porte la place jointe (`space`), résolue par une
lecture groupée des numéros de place.
"""

from typing import List, Optional
from datetime import datetime
import asyncio
import logging
import uuid

from config import get_settings
from database.firebase_db import (
    get_db,
    FirebaseDB,
    StaleDocumentError,
    WalletDebitError,
)
from models.alert import AlertType
from models.payment import PaymentRecord
from models.wallet import TransactionType, WalletTransaction
from models.session import (
    Session,
    SessionStatus,
    PaymentMethod,
    SessionCreate,
    SessionEnd,
    SessionPayment,
    SessionStats,
    DashboardStats,
    can_transition,
)
from models.space import SpaceSummary
from services.alert_service import AlertService
from services.settings_service import SettingsService
from services.space_service import SpaceService
from services.websocket_service import get_websocket_manager
from utils.helpers import (
    utcnow,
    calculate_duration_minutes,
    compute_parking_amount,
    format_duration,
    start_of_day,
)

# Configure logging
logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Aucune session avec cet identifiant."""


class InvalidStatusTransition(Exception):
    """Changement de statut interdit par ALLOWED_TRANSITIONS."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Transition {current} -> {target} interdite")
        self.current = current
        self.target = target


class WalletPaymentError(Exception):
    """Débit du portefeuille refusé."""


class SessionService:
    """
    Service des sessions.
    Les lectures sont sans effet de bord; les écritures passent par la
    table de transitions.
    """

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()
        self.spaces = SpaceService(self.db)
        self.alerts = AlertService(self.db)
        self.parking_settings = SettingsService(self.db)

    # ==================== LECTURES ====================

    async def attach_spaces(self, sessions: List[Session]) -> List[Session]:
        """Résout `space_number` en SpaceSummary pour toutes les sessions, en une lecture."""
        spaces = await self.db.get_spaces_by_numbers(s.space_number for s in sessions)
        for session in sessions:
            space = spaces.get(session.space_number)
            session.space = SpaceSummary(**space) if space else None
        return sessions

    async def list_sessions(self, status_filter: Optional[str] = None) -> List[Session]:
        """
        Page de sessions la plus récente (entry_time décroissant).

        Args:
            status_filter: statut exact, ou None pour tous
        """
        documents = await self.db.list_sessions(
            status_filter=status_filter,
            limit=get_settings().sessions_page_size,
        )
        return await self.attach_spaces([Session(**d) for d in documents])

    async def list_active(self) -> List[Session]:
        """Sessions en cours, plus récente en premier."""
        documents = await self.db.list_sessions(
            status_filter=SessionStatus.ACTIVE.value,
            limit=get_settings().total_parking_spaces,
        )
        return await self.attach_spaces([Session(**d) for d in documents])

    async def list_for_export(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status_filter: Optional[str] = None
    ) -> List[Session]:
        documents = await self.db.list_sessions_in_range(start, end, status_filter)
        return await self.attach_spaces([Session(**d) for d in documents])

    async def get(self, session_id: str) -> Session:
        """
        Raises:
            SessionNotFoundError: si la session n'existe pas
        """
        data = await self.db.get_session(session_id)
        if data is None:
            raise SessionNotFoundError(f"Session {session_id} introuvable")
        session = Session(**data)
        await self.attach_spaces([session])
        return session

    async def get_stats(self) -> SessionStats:
        """Quatre comptages indépendants, lancés en parallèle."""
        total, active, finished, paid = await asyncio.gather(
            self.db.count_sessions(),
            self.db.count_sessions(SessionStatus.ACTIVE.value),
            self.db.count_sessions(SessionStatus.FINISHED.value),
            self.db.count_sessions(SessionStatus.PAID.value),
        )
        return SessionStats(total=total, active=active, completed=finished, paid=paid)

    async def get_dashboard(self) -> DashboardStats:
        """
        Occupation des places et activité du jour (depuis minuit UTC).

        `active_sessions` compte toutes les sessions en cours, y compris
        celles entrées avant minuit.
        """
        today = start_of_day(utcnow().date())
        spaces, sessions_today, active, payments, parking = await asyncio.gather(
            self.spaces.get_stats(),
            self.db.count_sessions(since=today),
            self.db.count_sessions(SessionStatus.ACTIVE.value),
            self.db.payment_totals(since=today),
            self.parking_settings.get(),
        )
        return DashboardStats(
            spaces=spaces,
            sessions_today=sessions_today,
            active_sessions=active,
            payments_today=payments["count"],
            revenue_today=round(payments["total"], 2),
            currency=parking.currency,
        )

    # ==================== ÉCRITURES ====================

    async def start(self, request: SessionCreate) -> Session:
        """
        Entrée d'un véhicule: crée une session active et occupe la place.

        Raises:
            SpaceNotFoundError: place inconnue
            SpaceUnavailableError: place occupée, hors service ou réservée pour une autre plaque
        """
        session_id = str(uuid.uuid4())
        plate = request.vehicle.plate

        space = await self.spaces.occupy(request.space_number, session_id, plate)

        now = utcnow()
        session = Session(
            session_id=session_id,
            vehicle=request.vehicle,
            space_number=space.number,
            entry_time=now,
            status=SessionStatus.ACTIVE,
            photos=request.photos,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.db.create_session(session.to_document())
        except Exception as e:
            # La place ne doit pas rester occupée sans session
            logger.error(f"Création de la session {session_id} échouée, place {space.number} libérée: {e}")
            await self.spaces.free(space.number)
            raise
        session.space = space.summary()

        await self.alerts.create(
            AlertType.SUCCESS,
            f"Entrée du véhicule {plate} sur la place {space.number}"
        )
        await self._broadcast("created", session)
        return session

    async def end(self, session_id: str, request: SessionEnd = None) -> Session:
        """
        Sortie du véhicule: active -> finished, calcul du montant, libération de la place.

        Raises:
            SessionNotFoundError, InvalidStatusTransition
        """
        request = request or SessionEnd()
        session = await self.get(session_id)
        self._check_transition(session, SessionStatus.FINISHED)

        parking = await self.parking_settings.get()
        exit_time = utcnow()
        duration = calculate_duration_minutes(session.entry_time, exit_time)

        if request.amount is not None:
            amount = request.amount
        else:
            amount = compute_parking_amount(
                duration,
                parking.hourly_rate,
                parking.grace_period_minutes,
            )

        updates = {
            "status": SessionStatus.FINISHED.value,
            "exit_time": exit_time,
            "duration": duration,
            "amount": amount,
        }
        if request.exit_photo:
            updates["photos.exit"] = request.exit_photo

        await self.db.update_session(session_id, updates)
        await self.spaces.free(session.space_number)

        session.status = SessionStatus.FINISHED.value
        session.exit_time = exit_time
        session.duration = duration
        session.amount = amount
        if request.exit_photo:
            session.photos.exit = request.exit_photo

        await self.alerts.create(
            AlertType.SUCCESS,
            f"Sortie du véhicule {session.vehicle.plate} après {format_duration(duration)}: "
            f"{amount:.2f} {parking.currency}"
        )
        await self._broadcast("ended", session)
        return session

    async def pay(self, session_id: str, request: SessionPayment) -> Session:
        """
        Paiement: finished -> paid, enregistrement du paiement.

        Le statut de la session, le paiement et le débit éventuel du
        portefeuille sont écrits dans une seule transaction.

        Raises:
            SessionNotFoundError, InvalidStatusTransition, WalletPaymentError
        """
        session = await self.get(session_id)
        self._check_transition(session, SessionStatus.PAID)

        amount = request.amount if request.amount is not None else (session.amount or 0.0)

        record = PaymentRecord(
            payment_id=str(uuid.uuid4()),
            session_id=session_id,
            amount=amount,
            currency=(await self.parking_settings.get()).currency,
            payment_method=request.payment_method,
        )

        wallet_debit = None
        if record.payment_method == PaymentMethod.WALLET.value and amount > 0:
            wallet_debit = WalletTransaction(
                transaction_id=str(uuid.uuid4()),
                user_id=request.user_id,
                type=TransactionType.PAYMENT,
                amount=amount,
                session_id=session_id,
                description=f"Paiement {record.reference}",
            ).model_dump(mode="python")

        try:
            await self.db.record_session_payment(
                session_id,
                SessionStatus.FINISHED.value,
                {
                    "status": SessionStatus.PAID.value,
                    "payment_method": record.payment_method,
                    "amount": amount,
                },
                record.model_dump(mode="python"),
                wallet_debit,
            )
        except StaleDocumentError as e:
            # Session payée ou modifiée entre la lecture et la transaction
            logger.warning(f"Paiement de {session_id} refusé: {e}")
            raise InvalidStatusTransition(session.status, SessionStatus.PAID.value)
        except WalletDebitError as e:
            raise WalletPaymentError(str(e))

        session.status = SessionStatus.PAID.value
        session.payment_method = record.payment_method
        session.amount = amount

        await self.alerts.create(
            AlertType.SUCCESS,
            f"Paiement {record.reference} reçu: {amount:.2f} {record.currency} ({record.payment_method})"
        )
        await self._broadcast("paid", session)
        return session

    async def update_status(self, session_id: str, target: SessionStatus) -> Session:
        """
        Écriture directe du statut.
        active -> finished et finished -> paid passent par end() et pay()
        pour que les champs associés restent cohérents.

        Raises:
            SessionNotFoundError, InvalidStatusTransition
        """
        target = SessionStatus(target)
        if target == SessionStatus.FINISHED:
            return await self.end(session_id)

        session = await self.get(session_id)
        self._check_transition(session, target)

        # Only finished -> paid remains; payment method defaults to cash
        return await self.pay(session_id, SessionPayment(payment_method=PaymentMethod.CASH))

    # ==================== INTERNE ====================

    @staticmethod
    def _check_transition(session: Session, target: SessionStatus):
        if not can_transition(session.status, target):
            logger.warning(
                f"Transition refusée pour {session.session_id}: {session.status} -> {SessionStatus(target).value}"
            )
            raise InvalidStatusTransition(session.status, SessionStatus(target).value)

    async def _broadcast(self, action: str, session: Session):
        await get_websocket_manager().broadcast_session_update(
            action, session.model_dump()
        )


def get_session_service() -> SessionService:
    """Service des sessions sur la base par défaut."""
    return SessionService()
