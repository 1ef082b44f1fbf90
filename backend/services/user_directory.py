"""
SmartParking - User Directory
Annuaire des utilisateurs injectable. L'application dépend de l'interface
UserDirectory: Firestore en production, un dictionnaire pour les tests et démos.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, List, NamedTuple
import logging
import uuid

from database.firebase_db import get_db, FirebaseDB
from models.user import User, UserRole, UserStatus
from security.passwords import hash_password

# Configure logging
logger = logging.getLogger(__name__)


class UserDirectory(ABC):
    """Recherche et persistance des fiches utilisateur."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def save(self, user: User) -> User:
        ...

    @abstractmethod
    async def list_users(self) -> List[User]:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Supprime une fiche. Retourne False si elle n'existait pas."""


class FirestoreUserDirectory(UserDirectory):
    """Annuaire stocké dans la collection Firestore `users`."""

    def __init__(self, db: FirebaseDB = None):
        self.db = db or get_db()

    async def get_by_email(self, email: str) -> Optional[User]:
        data = await self.db.get_user_by_email(email.lower())
        return User(**data) if data else None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        data = await self.db.get_user(user_id)
        return User(**data) if data else None

    async def save(self, user: User) -> User:
        await self.db.save_user(user.user_id, user.model_dump(mode="python"))
        return user

    async def list_users(self) -> List[User]:
        return [User(**data) for data in await self.db.list_users()]

    async def delete(self, user_id: str) -> bool:
        if await self.db.get_user(user_id) is None:
            return False
        return await self.db.delete_user(user_id)


class InMemoryUserDirectory(UserDirectory):
    """Annuaire en mémoire, indexé par user_id."""

    def __init__(self, users: List[User] = None):
        self._users: Dict[str, User] = {u.user_id: u for u in users or []}

    async def get_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        for user in self._users.values():
            if user.email.lower() == email:
                return user
        return None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def save(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    async def list_users(self) -> List[User]:
        return sorted(self._users.values(), key=lambda u: u.name)

    async def delete(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None


class AccountSeed(NamedTuple):
    """Compte à créer dans un annuaire vide."""
    name: str
    email: str
    password: str
    role: UserRole


# Comptes de démonstration, un par rôle, stockés hachés
DEMO_ACCOUNTS = [
    AccountSeed("Administrateur", "admin@smartparking.com", "admin123", UserRole.ADMIN),
    AccountSeed("Opérateur", "operator@smartparking.com", "operator123", UserRole.OPERATOR),
    AccountSeed("Client", "customer@smartparking.com", "customer123", UserRole.CUSTOMER),
]


async def seed_accounts(
    directory: UserDirectory,
    accounts: List[AccountSeed],
    rounds: int = None
) -> List[User]:
    """
    Crée les comptes dont l'email n'est pas encore enregistré.

    Returns:
        List[User]: utilisateurs créés
    """
    created = []
    for account in accounts:
        if await directory.get_by_email(account.email):
            logger.info(f"Compte {account.email} déjà présent")
            continue

        user = User(
            user_id=str(uuid.uuid4()),
            name=account.name,
            email=account.email.lower(),
            password_hash=hash_password(account.password, rounds=rounds),
            role=account.role,
            status=UserStatus.ACTIVE,
        )
        await directory.save(user)
        created.append(user)
        logger.info(f"Compte {account.email} créé ({user.role})")

    return created


def get_user_directory() -> UserDirectory:
    """Annuaire utilisé par l'API."""
    return FirestoreUserDirectory(get_db())
