"""
Script pour créer les comptes de démonstration dans Firestore.
Les mots de passe sont hachés (bcrypt) avant enregistrement.
Les comptes déjà présents ne sont pas modifiés.

Usage:
    cd backend
    python seed_users.py
"""

import asyncio
from dotenv import load_dotenv

# Charger les variables d'environnement
load_dotenv()

from database.firebase_db import init_firebase  # noqa: E402
from services.user_directory import (  # noqa: E402
    DEMO_ACCOUNTS,
    get_user_directory,
    seed_accounts,
)


async def seed():
    init_firebase()
    return await seed_accounts(get_user_directory(), DEMO_ACCOUNTS)


def main():
    print("=" * 50)
    print("   COMPTES DE DÉMONSTRATION SMARTPARKING")
    print("=" * 50)
    print()

    try:
        created = asyncio.run(seed())
    except Exception as e:
        print(f"❌ Erreur: {e}")
        return

    for account in DEMO_ACCOUNTS:
        marker = "✅ créé" if any(u.email == account.email for u in created) else "⚠️  existant"
        print(f"{marker}: {account.email} ({account.role.value})")

    print()
    print("=" * 50)
    print(f"{len(created)} compte(s) créé(s)")
    print("=" * 50)


if __name__ == "__main__":
    main()
