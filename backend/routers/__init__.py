"""
SmartParking - Routers Package
API route handlers.
"""

from routers.auth import router as auth_router
from routers.sessions import router as sessions_router
from routers.alerts import router as alerts_router
from routers.spaces import router as spaces_router
from routers.payments import router as payments_router
from routers.users import router as users_router
from routers.wallet import router as wallet_router
from routers.settings import router as settings_router
from routers.websocket import router as websocket_router

__all__ = [
    "auth_router",
    "sessions_router",
    "alerts_router",
    "spaces_router",
    "payments_router",
    "users_router",
    "wallet_router",
    "settings_router",
    "websocket_router",
]
