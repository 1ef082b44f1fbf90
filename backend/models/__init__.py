"""
SmartParking - Models Package
Contient tous les modèles Pydantic pour l'application.
"""

from models.space import (
    VehicleType,
    SpaceStatus,
    SpaceReservation,
    SpaceSummary,
    ParkingSpace,
    ReservationRequest,
    ServiceToggleRequest,
    SpaceStats,
)
from models.session import (
    SessionStatus,
    PaymentMethod,
    ALLOWED_TRANSITIONS,
    can_transition,
    Vehicle,
    SessionPhotos,
    Session,
    SessionCreate,
    SessionEnd,
    SessionPayment,
    SessionStatusUpdate,
    SessionStats,
    DashboardStats,
)
from models.alert import (
    AlertType,
    Alert,
    AlertCreate,
)
from models.user import (
    UserRole,
    UserStatus,
    ROLE_RANK,
    role_rank,
    User,
    UserPublic,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserCreate,
    UserUpdate,
)
from models.payment import (
    PaymentStatus,
    PaymentRecord,
    PaymentStats,
    PaymentReport,
)
from models.wallet import (
    TransactionType,
    WalletTransaction,
    TopUpRequest,
)
from models.settings import (
    ParkingSettings,
    ParkingSettingsUpdate,
)

__all__ = [
    # Space Models
    "VehicleType",
    "SpaceStatus",
    "SpaceReservation",
    "SpaceSummary",
    "ParkingSpace",
    "ReservationRequest",
    "ServiceToggleRequest",
    "SpaceStats",
    # Session Models
    "SessionStatus",
    "PaymentMethod",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "Vehicle",
    "SessionPhotos",
    "Session",
    "SessionCreate",
    "SessionEnd",
    "SessionPayment",
    "SessionStatusUpdate",
    "SessionStats",
    "DashboardStats",
    # Alert Models
    "AlertType",
    "Alert",
    "AlertCreate",
    # User Models
    "UserRole",
    "UserStatus",
    "ROLE_RANK",
    "role_rank",
    "User",
    "UserPublic",
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "UserCreate",
    "UserUpdate",
    # Payment Models
    "PaymentStatus",
    "PaymentRecord",
    "PaymentStats",
    "PaymentReport",
    # Wallet Models
    "TransactionType",
    "WalletTransaction",
    "TopUpRequest",
    # Settings Models
    "ParkingSettings",
    "ParkingSettingsUpdate",
]
