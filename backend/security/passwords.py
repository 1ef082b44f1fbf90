"""
SmartParking - Password Hashing
Hachage bcrypt des identifiants. Les mots de passe en clair ne sont jamais
stockés ni comparés directement.
"""

import bcrypt
import logging

from config import get_settings

# Configure logging
logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = None) -> str:
    """
    Hache un mot de passe avec bcrypt.

    Args:
        password: mot de passe en clair
        rounds: facteur de coût, BCRYPT_ROUNDS par défaut

    Returns:
        str: hash bcrypt, stocké en chaîne dans la base
    """
    if not password:
        raise ValueError("Le mot de passe ne peut pas être vide")

    salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Vérifie un mot de passe contre son hash bcrypt.
    Retourne False pour un hash malformé au lieu de lever.
    """
    if not password or not password_hash:
        return False

    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Hash de mot de passe malformé")
        return False
