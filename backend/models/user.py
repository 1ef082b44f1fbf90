"""
SmartParking - User Models
Defines all data models related to users and authentication.
"""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional
from datetime import datetime
from enum import Enum

from utils.helpers import utcnow


class UserRole(str, Enum):
    """Enumeration of user roles, lowest privilege first."""
    CUSTOMER = "customer"
    OPERATOR = "operator"
    ADMIN = "admin"


# Total order used for authorization decisions
ROLE_RANK = {
    UserRole.CUSTOMER: 1,
    UserRole.OPERATOR: 2,
    UserRole.ADMIN: 3,
}


def role_rank(role) -> int:
    """
    Rank of a role in the hierarchy.
    Unknown or missing roles rank 0, below every real role.
    """
    try:
        return ROLE_RANK[UserRole(role)]
    except ValueError:
        return 0


class UserStatus(str, Enum):
    """Enumeration of account states."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """Stored user record, including the password hash."""
    user_id: str = Field(..., description="Unique user identifier")
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="Login email, unique")
    password_hash: str = Field(..., description="bcrypt hash of the password")
    role: UserRole = Field(default=UserRole.CUSTOMER)
    status: UserStatus = Field(default=UserStatus.ACTIVE)
    wallet_balance: float = Field(default=0.0, ge=0)
    phone: Optional[str] = Field(default=None)
    last_login: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True

    def to_public(self) -> "UserPublic":
        return UserPublic(**self.model_dump(exclude={"password_hash"}))


class UserPublic(BaseModel):
    """User record as exposed through the API (no credentials)."""
    user_id: str
    name: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    wallet_balance: float = 0.0
    phone: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response model after successful login."""
    success: bool
    token: str
    expires_at: datetime
    user: UserPublic
    message: str = ""


class RegisterRequest(BaseModel):
    """Self-service customer sign-up."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=20)


class UserCreate(RegisterRequest):
    """Account created by an administrator, any role."""
    role: UserRole = Field(default=UserRole.CUSTOMER)
    status: UserStatus = Field(default=UserStatus.ACTIVE)

    class Config:
        use_enum_values = True
        validate_default = True


class UserUpdate(BaseModel):
    """Partial update; only the fields given are written."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=20)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

    class Config:
        use_enum_values = True
