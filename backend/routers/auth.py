"""
SmartParking - Authentication Router
Connexion, inscription, vérification du jeton et déconnexion.
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from models.user import User, UserPublic, LoginRequest, LoginResponse, RegisterRequest
from security.auth import get_bearer_token, get_current_user
from services.auth_service import get_auth_service, AuthenticationError
from services.user_service import get_user_service, EmailAlreadyRegisteredError

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={401: {"description": "Non autorisé"}}
)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Connexion",
    description="Échange email et mot de passe contre un jeton Bearer."
)
async def login(request: LoginRequest) -> LoginResponse:
    """
    Authentification par email et mot de passe.

    Email inconnu et mauvais mot de passe reçoivent la même réponse 401.
    """
    try:
        issued = await get_auth_service().login(request.email, request.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    return LoginResponse(
        success=True,
        token=issued.token,
        expires_at=issued.expires_at,
        user=issued.user.to_public(),
        message="Connexion réussie",
    )


@router.get(
    "/verify",
    summary="Vérifier le jeton",
    description="Retourne l'utilisateur propriétaire du jeton Bearer."
)
async def verify(user: User = Depends(get_current_user)):
    return {"success": True, "user": user.to_public()}


@router.post(
    "/logout",
    summary="Déconnexion",
    description="Révoque le jeton Bearer."
)
async def logout(token: str = Depends(get_bearer_token)):
    await get_auth_service().logout(token)
    return {"success": True, "message": "Déconnexion réussie"}


@router.post(
    "/register",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Inscription",
    description="Crée un compte client. Les rôles operator et admin sont attribués par un administrateur."
)
async def register(request: RegisterRequest):
    try:
        user = await get_user_service().register(request)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return user.to_public()
