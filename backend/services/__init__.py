"""
SmartParking - Services Package
Business logic and service layer.
"""

from services.websocket_service import WebSocketManager, get_websocket_manager
from services.alert_service import AlertService, get_alert_service
from services.space_service import SpaceService, get_space_service
from services.session_service import SessionService, get_session_service
from services.user_directory import UserDirectory, get_user_directory
from services.auth_service import AuthService, get_auth_service
from services.user_service import UserService, get_user_service
from services.wallet_service import WalletService, get_wallet_service
from services.payment_service import PaymentService, get_payment_service
from services.settings_service import SettingsService, get_settings_service

__all__ = [
    "WebSocketManager",
    "get_websocket_manager",
    "AlertService",
    "get_alert_service",
    "SpaceService",
    "get_space_service",
    "SessionService",
    "get_session_service",
    "UserDirectory",
    "get_user_directory",
    "AuthService",
    "get_auth_service",
    "UserService",
    "get_user_service",
    "WalletService",
    "get_wallet_service",
    "PaymentService",
    "get_payment_service",
    "SettingsService",
    "get_settings_service",
]
