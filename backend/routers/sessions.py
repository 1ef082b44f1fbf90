"""
SmartParking - Sessions Router
Liste, statistiques, export et cycle de vie des sessions de stationnement.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from datetime import date, timedelta
from typing import Optional
import logging

from models.session import (
    SessionStatus,
    SessionCreate,
    SessionEnd,
    SessionPayment,
    SessionStatusUpdate,
    SessionStats,
    DashboardStats,
)
from models.user import User
from security.auth import get_current_operator
from services.export_service import (
    ExportFormat,
    export_sessions,
    get_exporter,
)
from services.session_service import (
    get_session_service,
    SessionNotFoundError,
    InvalidStatusTransition,
    WalletPaymentError,
)
from services.space_service import SpaceNotFoundError, SpaceUnavailableError
from utils.errors import QueryError
from utils.helpers import start_of_day

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    tags=["Sessions"],
    responses={
        401: {"description": "Non authentifié"},
        403: {"description": "Rôle insuffisant"},
    }
)


@router.get(
    "/sessions",
    summary="Sessions récentes",
    description="Les 10 sessions les plus récentes, filtrables par statut."
)
async def list_sessions(
    status_filter: Optional[SessionStatus] = Query(None, alias="status", description="Statut exact"),
    user: User = Depends(get_current_operator)
):
    """
    Retourne au plus SESSIONS_PAGE_SIZE sessions, entry_time décroissant.
    Sans filtre, toutes les sessions sont candidates.
    """
    try:
        service = get_session_service()
        sessions = await service.list_sessions(
            status_filter.value if status_filter else None
        )
        return {"sessions": sessions}

    except Exception as e:
        logger.error(f"Erreur récupération sessions: {e}")
        raise QueryError(str(e), field="message")


@router.get(
    "/stats",
    response_model=SessionStats,
    summary="Statistiques des sessions",
    description="Nombre total de sessions et répartition par statut."
)
async def get_stats(user: User = Depends(get_current_operator)):
    """
    Quatre comptages: total, active, completed (statut finished), paid.
    """
    try:
        service = get_session_service()
        return await service.get_stats()

    except Exception as e:
        logger.error(f"Erreur calcul statistiques: {e}")
        raise QueryError(str(e), field="error")


@router.get(
    "/stats/dashboard",
    response_model=DashboardStats,
    summary="Tableau de bord",
    description="Occupation des places, sessions et recettes du jour."
)
async def get_dashboard(user: User = Depends(get_current_operator)):
    """
    Compteurs du jour depuis minuit UTC, plus les sessions actives.
    """
    try:
        service = get_session_service()
        return await service.get_dashboard()

    except Exception as e:
        logger.error(f"Erreur calcul tableau de bord: {e}")
        raise QueryError(str(e), field="error")


@router.get(
    "/sessions/export",
    summary="Exporter les sessions",
    description="Télécharge les sessions au format csv ou excel.",
    responses={501: {"description": "Format non disponible"}}
)
async def export(
    export_format: ExportFormat = Query(..., alias="format"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: str = Query("all", alias="status", description="Statut ou 'all'"),
    user: User = Depends(get_current_operator)
):
    """
    Export des sessions entrées entre start_date et end_date (inclus).
    """
    if get_exporter(export_format) is None:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail=f"Export {export_format.value} pas encore disponible"
        )

    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date doit être postérieure à start_date"
        )

    if status_filter != "all" and status_filter not in {s.value for s in SessionStatus}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Statut inconnu: {status_filter}"
        )

    start = start_of_day(start_date) if start_date else None
    end = start_of_day(end_date + timedelta(days=1)) if end_date else None

    try:
        service = get_session_service()
        sessions = await service.list_for_export(
            start=start,
            end=end,
            status_filter=None if status_filter == "all" else status_filter,
        )
        exported = export_sessions(sessions, export_format)

    except Exception as e:
        logger.error(f"Erreur export sessions: {e}")
        raise QueryError(str(e), field="message")

    logger.info(f"Export {export_format.value} par {user.email}")
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.get(
    "/sessions/active",
    summary="Sessions en cours",
    description="Toutes les sessions actives, plus récente en premier."
)
async def list_active_sessions(user: User = Depends(get_current_operator)):
    try:
        service = get_session_service()
        return {"sessions": await service.list_active()}

    except Exception as e:
        logger.error(f"Erreur récupération sessions actives: {e}")
        raise QueryError(str(e), field="message")


@router.get(
    "/sessions/{session_id}",
    summary="Détails d'une session"
)
async def get_session(session_id: str, user: User = Depends(get_current_operator)):
    """
    Retourne une session avec sa place jointe.
    """
    try:
        service = get_session_service()
        return await service.get(session_id)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur récupération session {session_id}: {e}")
        raise QueryError(str(e), field="message")


@router.post(
    "/sessions",
    status_code=status.HTTP_201_CREATED,
    summary="Entrée d'un véhicule",
    description="Crée une session active et occupe la place."
)
async def create_session(
    request: SessionCreate,
    user: User = Depends(get_current_operator)
):
    """
    Enregistre l'entrée d'un véhicule.

    La place doit être libre, ou réservée pour la même plaque.
    """
    try:
        service = get_session_service()
        return await service.start(request)

    except SpaceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SpaceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur entrée véhicule sur {request.space_number}: {e}")
        raise QueryError(str(e), field="message")


@router.put(
    "/sessions/{session_id}/end",
    summary="Sortie d'un véhicule",
    description="Termine une session active et calcule le montant."
)
async def end_session(
    session_id: str,
    request: Optional[SessionEnd] = None,
    user: User = Depends(get_current_operator)
):
    try:
        service = get_session_service()
        return await service.end(session_id, request)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/sessions/{session_id}/pay",
    summary="Paiement d'une session",
    description="Enregistre le paiement d'une session terminée."
)
async def pay_session(
    session_id: str,
    request: SessionPayment,
    user: User = Depends(get_current_operator)
):
    try:
        service = get_session_service()
        return await service.pay(session_id, request)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except WalletPaymentError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur paiement session {session_id}: {e}")
        raise QueryError(str(e), field="message")


@router.patch(
    "/sessions/{session_id}/status",
    summary="Changer le statut",
    description="Écriture directe du statut, limitée aux transitions autorisées."
)
async def update_session_status(
    session_id: str,
    request: SessionStatusUpdate,
    user: User = Depends(get_current_operator)
):
    try:
        service = get_session_service()
        return await service.update_status(session_id, request.status)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
