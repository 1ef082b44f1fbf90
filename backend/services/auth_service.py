"""
SmartParking - Authentication Service
Vérification des identifiants et gestion des jetons de session.

Les jetons sont des chaînes aléatoires opaques (32 octets). Seul leur hash
SHA-256 est stocké, avec une date d'expiration; la déconnexion supprime
l'enregistrement.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import logging
import secrets

from config import get_settings
from database.firebase_db import get_db, FirebaseDB
from models.user import User, UserStatus
from security.passwords import verify_password
from services.user_directory import UserDirectory, get_user_directory
from utils.helpers import utcnow, ensure_utc

# Configure logging
logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Identifiants refusés. Le message est présentable au client."""


@dataclass
class IssuedToken:
    """Jeton remis au client après connexion."""
    token: str
    expires_at: datetime
    user: User


def generate_token() -> str:
    """64 caractères hexadécimaux, générés par secrets."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash SHA-256 du jeton, seule forme stockée."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """Connexion, vérification et révocation des jetons."""

    INVALID_CREDENTIALS = "Email ou mot de passe incorrect"

    def __init__(self, directory: UserDirectory = None, db: FirebaseDB = None):
        self.db = db or get_db()
        self.directory = directory or get_user_directory()

    async def login(self, email: str, password: str) -> IssuedToken:
        """
        Authentifie un utilisateur et émet un jeton.

        Raises:
            AuthenticationError: email inconnu, mot de passe faux ou compte inactif
        """
        user = await self.directory.get_by_email(email)

        # Same message for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Échec de connexion pour {email}")
            raise AuthenticationError(self.INVALID_CREDENTIALS)

        if user.status != UserStatus.ACTIVE:
            logger.warning(f"Connexion refusée, compte {user.status}: {email}")
            raise AuthenticationError("Compte désactivé")

        now = utcnow()
        expires_at = now + timedelta(hours=get_settings().token_ttl_hours)
        token = generate_token()

        await self.db.save_auth_token(hash_token(token), {
            "user_id": user.user_id,
            "created_at": now,
            "expires_at": expires_at,
        })

        user.last_login = now
        await self.directory.save(user)

        logger.info(f"Connexion réussie: {user.email} ({user.role})")
        return IssuedToken(token=token, expires_at=expires_at, user=user)

    async def authenticate(self, token: str) -> Optional[User]:
        """
        Résout un jeton en utilisateur actif.
        Retourne None si le jeton est inconnu, expiré, ou l'utilisateur inactif.
        """
        if not token:
            return None

        token_hash = hash_token(token)
        record = await self.db.get_auth_token(token_hash)
        if record is None:
            return None

        if ensure_utc(record["expires_at"]) <= utcnow():
            logger.info("Jeton expiré supprimé")
            await self.db.delete_auth_token(token_hash)
            return None

        user = await self.directory.get_by_id(record["user_id"])
        if user is None or user.status != UserStatus.ACTIVE:
            return None

        return user

    async def logout(self, token: str) -> None:
        """Révoque un jeton."""
        await self.db.delete_auth_token(hash_token(token))


def get_auth_service() -> AuthService:
    """Service d'authentification sur la base par défaut."""
    return AuthService()
