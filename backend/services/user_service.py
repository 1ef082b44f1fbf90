"""
SmartParking - User Service
Gestion des comptes: inscription des clients et administration des utilisateurs.
"""

from typing import List
import logging
import uuid

from models.user import (
    User,
    UserRole,
    UserStatus,
    UserCreate,
    UserUpdate,
    RegisterRequest,
)
from security.passwords import hash_password
from services.user_directory import UserDirectory, get_user_directory

# Configure logging
logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Aucun utilisateur avec cet identifiant."""


class EmailAlreadyRegisteredError(Exception):
    """L'email appartient déjà à un autre compte."""


class UserService:
    """
    Opérations sur les comptes utilisateur.
    Les mots de passe sont hachés ici; l'annuaire ne voit que les hash.
    """

    def __init__(self, directory: UserDirectory = None):
        self.directory = directory or get_user_directory()

    async def list_users(self) -> List[User]:
        """Tous les comptes, triés par nom."""
        return await self.directory.list_users()

    async def get(self, user_id: str) -> User:
        """
        Raises:
            UserNotFoundError: identifiant inconnu
        """
        user = await self.directory.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"Utilisateur {user_id} introuvable")
        return user

    async def create(self, request: UserCreate) -> User:
        """
        Crée un compte avec le rôle demandé.

        Raises:
            EmailAlreadyRegisteredError: email déjà utilisé
        """
        email = request.email.lower()
        if await self.directory.get_by_email(email):
            raise EmailAlreadyRegisteredError(f"Email {email} déjà enregistré")

        user = User(
            user_id=str(uuid.uuid4()),
            name=request.name,
            email=email,
            password_hash=hash_password(request.password),
            role=request.role,
            status=request.status,
            phone=request.phone,
        )
        await self.directory.save(user)

        logger.info(f"Compte créé: {user.email} ({user.role})")
        return user

    async def register(self, request: RegisterRequest) -> User:
        """Inscription publique: toujours un compte client actif."""
        return await self.create(UserCreate(
            **request.model_dump(),
            role=UserRole.CUSTOMER,
            status=UserStatus.ACTIVE,
        ))

    async def update(self, user_id: str, request: UserUpdate) -> User:
        """
        Applique les champs fournis. Un nouveau mot de passe est re-haché.

        Raises:
            UserNotFoundError, EmailAlreadyRegisteredError
        """
        user = await self.get(user_id)
        updates = request.model_dump(exclude_none=True)

        if "email" in updates:
            updates["email"] = updates["email"].lower()
            owner = await self.directory.get_by_email(updates["email"])
            if owner and owner.user_id != user_id:
                raise EmailAlreadyRegisteredError(f"Email {updates['email']} déjà enregistré")

        password = updates.pop("password", None)
        if password:
            updates["password_hash"] = hash_password(password)

        updated = user.model_copy(update=updates)
        await self.directory.save(updated)

        logger.info(f"Compte {user_id} modifié: {sorted(k for k in updates if k != 'password_hash')}")
        return updated

    async def delete(self, user_id: str, requested_by: str) -> None:
        """
        Raises:
            ValueError: suppression de son propre compte
            UserNotFoundError: identifiant inconnu
        """
        if user_id == requested_by:
            raise ValueError("Impossible de supprimer son propre compte")

        if not await self.directory.delete(user_id):
            raise UserNotFoundError(f"Utilisateur {user_id} introuvable")

        logger.info(f"Compte {user_id} supprimé par {requested_by}")


def get_user_service() -> UserService:
    """Service des comptes sur l'annuaire par défaut."""
    return UserService()
