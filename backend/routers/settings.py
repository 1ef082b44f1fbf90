"""
SmartParking - Settings Router
Paramètres d'exploitation: tarif, période de grâce, devise, réservations.
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from models.settings import ParkingSettings, ParkingSettingsUpdate
from models.user import User
from security.auth import get_current_operator, get_current_admin
from services.settings_service import get_settings_service
from utils.errors import QueryError

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
    responses={401: {"description": "Non authentifié"}}
)


@router.get(
    "",
    response_model=ParkingSettings,
    summary="Paramètres du parking"
)
async def get_parking_settings(user: User = Depends(get_current_operator)):
    try:
        return await get_settings_service().get()

    except Exception as e:
        logger.error(f"Erreur lecture paramètres: {e}")
        raise QueryError(str(e), field="error")


@router.api_route(
    "",
    methods=["PUT", "POST"],
    response_model=ParkingSettings,
    summary="Modifier les paramètres",
    description="Seuls les champs fournis sont modifiés. Réservé aux administrateurs."
)
async def update_parking_settings(
    request: ParkingSettingsUpdate,
    admin: User = Depends(get_current_admin)
):
    try:
        return await get_settings_service().update(request, updated_by=admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
