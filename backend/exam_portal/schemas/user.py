"""
Exam Portal - User Schemas
Pydantic schemas for registration, authentication, and account management
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from exam_portal.models.user import UserRole, UserStatus


# ============================================================================
# Registration & Authentication
# ============================================================================

class UserCreate(BaseModel):
    """Student self-registration. Accounts start out pending approval."""
    full_name: Annotated[str, Field(min_length=1, max_length=255)]
    email: EmailStr
    password: Annotated[str, Field(min_length=8, max_length=128)]
    phone: Annotated[str | None, Field(max_length=20)] = None


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Schema for authentication token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 1800  # 30 minutes in seconds


class LoginResponse(TokenResponse):
    user: "UserResponse"


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


class PasswordChange(BaseModel):
    new_password: Annotated[str, Field(min_length=8, max_length=128)]


# ============================================================================
# User Response Schemas
# ============================================================================

class UserResponse(BaseModel):
    """Public account data."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    full_name: str
    phone: str | None = None
    role: UserRole
    status: UserStatus
    created_at: datetime


class UserStatusUpdate(BaseModel):
    """Admin approval / rejection of an account."""
    status: UserStatus


LoginResponse.model_rebuild()
