"""
SmartParking - Authentication Dependencies
Résolution du jeton Bearer et contrôle des rôles pour les routes FastAPI.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from models.user import User, UserRole
from security.access_gate import has_required_role
from services.auth_service import get_auth_service

# Configure logging
logger = logging.getLogger(__name__)

# Schéma de sécurité Bearer
bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """
    Extrait le jeton Bearer de l'en-tête Authorization.

    Raises:
        HTTPException: si l'en-tête est absent
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Jeton d'authentification manquant",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(token: str = Depends(get_bearer_token)) -> User:
    """
    Récupère l'utilisateur propriétaire du jeton Bearer.

    Returns:
        User: utilisateur authentifié et actif

    Raises:
        HTTPException: si le jeton est inconnu, expiré ou révoqué
    """
    try:
        user = await get_auth_service().authenticate(token)
    except Exception as e:
        logger.error(f"Erreur de vérification du jeton: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erreur du service d'authentification",
        )

    if user is None:
        logger.warning("Jeton invalide ou expiré reçu")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Jeton d'authentification invalide ou expiré",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_role(required_role: UserRole):
    """
    Construit une dépendance acceptant les utilisateurs de rang >= required_role.

    Utilisation:
        @router.get("/x", dependencies=[Depends(require_role(UserRole.OPERATOR))])
    """
    # Un rôle inconnu échoue dès l'import
    has_required_role(UserRole.ADMIN, required_role)

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_required_role(user.role, required_role):
            logger.warning(
                f"Utilisateur {user.user_id} ({user.role}) refusé, rôle requis: {UserRole(required_role).value}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Rôle {UserRole(required_role).value} requis",
            )
        return user

    return dependency


get_current_customer = require_role(UserRole.CUSTOMER)
get_current_operator = require_role(UserRole.OPERATOR)
get_current_admin = require_role(UserRole.ADMIN)
