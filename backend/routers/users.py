"""
SmartParking - Users Router
Administration des comptes utilisateur. Réservé aux administrateurs.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import logging

from models.user import User, UserPublic, UserCreate, UserUpdate
from models.wallet import TopUpRequest
from security.auth import get_current_admin
from services.user_service import (
    get_user_service,
    UserNotFoundError,
    EmailAlreadyRegisteredError,
)
from services.wallet_service import get_wallet_service

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Non authentifié"},
        403: {"description": "Rôle admin requis"},
    }
)


@router.get(
    "",
    response_model=List[UserPublic],
    summary="Liste des utilisateurs"
)
async def list_users(admin: User = Depends(get_current_admin)):
    users = await get_user_service().list_users()
    return [u.to_public() for u in users]


@router.get(
    "/{user_id}",
    response_model=UserPublic,
    summary="Détails d'un utilisateur"
)
async def get_user(user_id: str, admin: User = Depends(get_current_admin)):
    try:
        user = await get_user_service().get(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return user.to_public()


@router.post(
    "",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un utilisateur",
    description="Crée un compte avec n'importe quel rôle."
)
async def create_user(request: UserCreate, admin: User = Depends(get_current_admin)):
    try:
        user = await get_user_service().create(request)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return user.to_public()


@router.put(
    "/{user_id}",
    response_model=UserPublic,
    summary="Modifier un utilisateur",
    description="Modification partielle: seuls les champs fournis sont écrits."
)
async def update_user(
    user_id: str,
    request: UserUpdate,
    admin: User = Depends(get_current_admin)
):
    try:
        user = await get_user_service().update(user_id, request)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return user.to_public()


@router.delete(
    "/{user_id}",
    summary="Supprimer un utilisateur"
)
async def delete_user(user_id: str, admin: User = Depends(get_current_admin)):
    try:
        await get_user_service().delete(user_id, requested_by=admin.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True, "message": f"Utilisateur {user_id} supprimé"}


@router.post(
    "/{user_id}/wallet/topup",
    summary="Recharger le portefeuille d'un utilisateur"
)
async def top_up_user_wallet(
    user_id: str,
    request: TopUpRequest,
    admin: User = Depends(get_current_admin)
):
    try:
        balance = await get_wallet_service().top_up(user_id, request.amount)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info(f"Portefeuille {user_id} rechargé de {request.amount:.2f} par {admin.email}")
    return {"success": True, "user_id": user_id, "wallet_balance": balance}
