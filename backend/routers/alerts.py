"""
SmartParking - Alerts Router
Alertes système: dernières alertes, création, acquittement.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
import logging

from models.alert import AlertCreate
from models.user import User
from security.auth import get_current_user
from services.alert_service import get_alert_service, AlertNotFoundError
from utils.errors import QueryError

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/alerts",
    tags=["Alerts"],
    responses={401: {"description": "Non authentifié"}}
)


@router.get(
    "",
    summary="Alertes récentes",
    description="Les alertes les plus récentes (3 par défaut)."
)
async def get_alerts(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Nombre d'alertes"),
    user: User = Depends(get_current_user)
):
    """
    Retourne les `limit` alertes les plus récentes, timestamp décroissant.
    Ne modifie pas l'indicateur de lecture.
    """
    try:
        service = get_alert_service()
        return {"alerts": await service.get_recent(limit)}

    except Exception as e:
        logger.error(f"Erreur récupération alertes: {e}")
        raise QueryError(str(e), field="message")


@router.get(
    "/unread",
    summary="Alertes non lues"
)
async def get_unread_alerts(user: User = Depends(get_current_user)):
    try:
        service = get_alert_service()
        return {"alerts": await service.get_unread()}

    except Exception as e:
        logger.error(f"Erreur récupération alertes non lues: {e}")
        raise QueryError(str(e), field="message")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Créer une alerte"
)
async def create_alert(
    request: AlertCreate,
    user: User = Depends(get_current_user)
):
    """
    Crée une alerte non lue, horodatée maintenant, et la diffuse.
    """
    service = get_alert_service()
    return await service.create(request.type, request.message)


@router.patch(
    "/{alert_id}/read",
    summary="Marquer comme lue"
)
async def mark_alert_read(
    alert_id: str,
    user: User = Depends(get_current_user)
):
    try:
        service = get_alert_service()
        return await service.mark_read(alert_id)

    except AlertNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
