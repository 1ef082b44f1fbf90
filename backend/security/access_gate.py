"""
SmartParking - Access Gate
Décide si un utilisateur peut voir une page protégée, ou vers où le rediriger.

Le contexte de session (jeton + utilisateur sérialisé) est lu depuis un
CredentialStore injecté, pas depuis un stockage global.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Tuple
import json
import logging

from models.user import UserRole, role_rank

# Configure logging
logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
LOGIN_PATH = "/login"
DEFAULT_HOME = "/parking"

# Page d'accueil de chaque rôle, cible des redirections de rang
ROLE_HOME = {
    UserRole.CUSTOMER.value: "/parking",
    UserRole.OPERATOR.value: "/sessions",
    UserRole.ADMIN.value: "/dashboard",
}


class CredentialStore(ABC):
    """Stockage clé/valeur des identifiants côté client."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class InMemoryCredentialStore(CredentialStore):
    """CredentialStore en mémoire."""

    def __init__(self, values: Dict[str, str] = None):
        self._values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._values


class AuthSessionContext:
    """Jeton et utilisateur de la session courante, lus depuis un store."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def load(self) -> Tuple[Optional[str], Optional[str]]:
        """Retourne (token, user JSON brut)."""
        return self.store.get(TOKEN_KEY), self.store.get(USER_KEY)

    def save(self, token: str, user: dict) -> None:
        self.store.set(TOKEN_KEY, token)
        self.store.set(USER_KEY, json.dumps(user, default=str))

    def clear(self) -> None:
        self.store.remove(TOKEN_KEY)
        self.store.remove(USER_KEY)


@dataclass(frozen=True)
class AccessDecision:
    """Résultat de l'évaluation: accès accordé, ou chemin de redirection."""
    allowed: bool
    redirect_to: Optional[str] = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def redirect(cls, path: str) -> "AccessDecision":
        return cls(allowed=False, redirect_to=path)


def has_required_role(role, required_role) -> bool:
    """
    Comparaison de rang commune au gate et aux dépendances FastAPI.

    Raises:
        ValueError: si required_role n'est pas un rôle connu
    """
    required_rank = role_rank(required_role)
    if required_rank == 0:
        raise ValueError(f"Rôle requis inconnu: {required_role}")
    return role_rank(role) >= required_rank


def home_for_role(role) -> str:
    """Page d'accueil d'un rôle, /parking pour un rôle inconnu."""
    return ROLE_HOME.get(str(role), DEFAULT_HOME) if role is not None else DEFAULT_HOME


def evaluate_access(
    context: AuthSessionContext,
    required_role: Optional[str] = None
) -> AccessDecision:
    """
    Évalue l'accès à une vue protégée.

    Args:
        context: Session courante (jeton + utilisateur sérialisé)
        required_role: Rôle minimal exigé, None pour "connecté suffit"

    Returns:
        AccessDecision: allowed, ou redirect_to (/login ou page du rôle)
    """
    token, raw_user = context.load()

    if not token or not raw_user:
        return AccessDecision.redirect(LOGIN_PATH)

    try:
        user = json.loads(raw_user)
    except (TypeError, ValueError):
        user = None

    if not isinstance(user, dict):
        logger.warning("Utilisateur stocké illisible, session effacée")
        context.clear()
        return AccessDecision.redirect(LOGIN_PATH)

    if required_role is not None:
        role = user.get("role")
        if not has_required_role(role, required_role):
            return AccessDecision.redirect(home_for_role(role))

    return AccessDecision.allow()
