"""
SmartParking - Security Package
Password hashing, access gate and authorization dependencies.

Les dépendances FastAPI sont dans security.auth et s'importent depuis ce module.
"""

from security.passwords import hash_password, verify_password
from security.access_gate import (
    CredentialStore,
    InMemoryCredentialStore,
    AuthSessionContext,
    AccessDecision,
    evaluate_access,
    has_required_role,
)

__all__ = [
    "hash_password",
    "verify_password",
    "CredentialStore",
    "InMemoryCredentialStore",
    "AuthSessionContext",
    "AccessDecision",
    "evaluate_access",
    "has_required_role",
]
