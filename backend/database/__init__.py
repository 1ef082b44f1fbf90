"""
SmartParking - Database Package
Firebase Firestore database integration.
"""

from database.firebase_db import (
    init_firebase,
    get_firestore_client,
    get_db,
    FirebaseDB,
)

__all__ = [
    "init_firebase",
    "get_firestore_client",
    "get_db",
    "FirebaseDB",
]
