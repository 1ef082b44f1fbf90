"""
SmartParking - Payments Router
Historique, statistiques et rapports des paiements de sessions.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from datetime import date, timedelta
import logging

from models.payment import PaymentStats, PaymentReport
from models.user import User
from security.auth import get_current_operator, get_current_admin
from services.payment_service import get_payment_service
from utils.errors import QueryError
from utils.helpers import start_of_day

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/payments",
    tags=["Payment"],
    responses={401: {"description": "Non autorisé"}}
)


@router.get(
    "",
    summary="Paiements récents",
    description="Derniers paiements enregistrés, plus récent en premier."
)
async def list_payments(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_operator)
):
    try:
        return {"payments": await get_payment_service().recent(limit=limit)}

    except Exception as e:
        logger.error(f"Erreur récupération paiements: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erreur récupération paiements"
        )


@router.get(
    "/stats",
    response_model=PaymentStats,
    summary="Statistiques des paiements",
    description="Nombre, total et moyenne des paiements, global et du jour."
)
async def get_payment_stats(user: User = Depends(get_current_operator)):
    try:
        return await get_payment_service().get_stats()

    except Exception as e:
        logger.error(f"Erreur statistiques paiements: {e}")
        raise QueryError(str(e), field="error")


@router.get(
    "/reports",
    response_model=PaymentReport,
    summary="Rapport des paiements",
    description="Paiements entre start_date et end_date (inclus), ventilés par moyen de paiement."
)
async def get_payment_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    user: User = Depends(get_current_admin)
):
    """
    Rapport financier d'une période. Réservé aux administrateurs.
    """
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date doit être postérieure à start_date"
        )

    try:
        report = await get_payment_service().get_report(
            start_of_day(start_date),
            start_of_day(end_date + timedelta(days=1)),
        )

    except Exception as e:
        logger.error(f"Erreur rapport paiements: {e}")
        raise QueryError(str(e), field="error")

    logger.info(f"Rapport paiements {start_date} -> {end_date} par {user.email}: {report.count} paiements")
    return report
