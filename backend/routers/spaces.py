"""
SmartParking - Parking Spaces Router
État des places, réservations et maintenance.
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from models.space import ReservationRequest, ServiceToggleRequest, SpaceStats
from models.user import User
from security.auth import (
    get_current_user,
    get_current_customer,
    get_current_operator,
    get_current_admin,
)
from services.space_service import (
    get_space_service,
    SpaceNotFoundError,
    SpaceUnavailableError,
)

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/parking",
    tags=["Parking"],
    responses={401: {"description": "Non authentifié"}}
)


@router.get(
    "/spaces",
    summary="Places de parking",
    description="Toutes les places, triées par numéro."
)
async def list_spaces(user: User = Depends(get_current_user)):
    try:
        service = get_space_service()
        spaces = await service.list_spaces()
        return {"spaces": spaces, "total": len(spaces)}

    except Exception as e:
        logger.error(f"Erreur récupération places: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erreur récupération places"
        )


@router.get(
    "/stats",
    response_model=SpaceStats,
    summary="Occupation du parking"
)
async def get_space_stats(user: User = Depends(get_current_user)):
    """
    Compteurs par état et taux d'occupation des places en service.
    """
    try:
        return await get_space_service().get_stats()

    except Exception as e:
        logger.error(f"Erreur statistiques places: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erreur statistiques places"
        )


@router.get(
    "/spaces/{number}",
    summary="Détails d'une place"
)
async def get_space(number: str, user: User = Depends(get_current_user)):
    try:
        return await get_space_service().get_space(number)

    except SpaceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/spaces/{number}/reserve",
    summary="Réserver une place",
    description="Réserve une place libre pour une plaque."
)
async def reserve_space(
    number: str,
    request: ReservationRequest,
    user: User = Depends(get_current_customer)
):
    """
    Réserver une place de parking.

    La réservation expire après duration_minutes; le scheduler libère
    ensuite la place.
    """
    try:
        space = await get_space_service().reserve(number, request)
        logger.info(f"Réservation {space.number} par {user.email}")
        return space

    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SpaceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SpaceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete(
    "/spaces/{number}/reservation",
    summary="Annuler une réservation"
)
async def cancel_reservation(
    number: str,
    user: User = Depends(get_current_operator)
):
    try:
        return await get_space_service().cancel_reservation(number)

    except SpaceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SpaceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.patch(
    "/spaces/{number}/service",
    summary="Hors service",
    description="Met une place hors service ou la remet en service."
)
async def toggle_service(
    number: str,
    request: ServiceToggleRequest,
    user: User = Depends(get_current_admin)
):
    try:
        return await get_space_service().set_out_of_service(number, request.out_of_service)

    except SpaceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SpaceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
