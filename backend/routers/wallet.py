"""
SmartParking - Wallet Router
Portefeuille de l'utilisateur connecté.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
import logging

from models.user import User
from models.wallet import TopUpRequest
from security.auth import get_current_customer
from services.user_service import UserNotFoundError
from services.wallet_service import get_wallet_service

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/wallet",
    tags=["Wallet"],
    responses={401: {"description": "Non authentifié"}}
)


@router.get(
    "",
    summary="Mon portefeuille",
    description="Solde et dernières opérations."
)
async def get_wallet(
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_customer)
):
    transactions = await get_wallet_service().list_transactions(user.user_id, limit=limit)
    return {
        "wallet_balance": user.wallet_balance,
        "transactions": transactions,
    }


@router.post(
    "/topup",
    summary="Recharger mon portefeuille"
)
async def top_up_wallet(
    request: TopUpRequest,
    user: User = Depends(get_current_customer)
):
    try:
        balance = await get_wallet_service().top_up(user.user_id, request.amount)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {"success": True, "wallet_balance": balance}
