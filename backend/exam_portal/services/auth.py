"""
Exam Portal - Authentication Service
Business logic for registration, login, and token management
"""
import logging
import uuid
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.config import settings
from exam_portal.core.database import utcnow
from exam_portal.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    hash_token,
    verify_password,
    verify_token,
)
from exam_portal.models.user import RefreshToken, User, UserRole, UserStatus
from exam_portal.schemas.user import TokenResponse, UserCreate

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base authentication error."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""
    pass


class AccountNotActiveError(AuthenticationError):
    """Account is pending approval, deactivated, or rejected."""
    pass


class TokenError(AuthenticationError):
    """Token validation error."""
    pass


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new student. The account stays pending until an admin approves it.

        Raises:
            ValueError: If email already exists
        """
        existing = await self.db.execute(
            select(User.id).where(User.email == user_data.email)
        )
        if existing.first() is not None:
            raise ValueError("Email already registered")

        user = User(
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            phone=user_data.phone,
            role=UserRole.STUDENT,
            status=UserStatus.PENDING,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Registered student %s (pending approval)", user.id, extra={"student_id": user.id})
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccountNotActiveError: If the account has not been approved or was deactivated
        """
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.hashed_password):
            logger.info("Failed login for %s", email)
            raise InvalidCredentialsError("Invalid email or password")

        if not user.is_active:
            if user.status == UserStatus.PENDING:
                raise AccountNotActiveError("Your account is awaiting admin approval.")
            raise AccountNotActiveError("Your account is not active. Please contact the administrator.")

        user.last_login = utcnow()
        await self.db.flush()
        return user

    async def create_tokens(self, user: User) -> TokenResponse:
        """Issue an access/refresh pair and store the refresh token's hash."""
        role_value = user.role.value if hasattr(user.role, "value") else user.role
        access_token = create_access_token(subject=str(user.id), role=role_value)
        refresh_token = create_refresh_token(subject=str(user.id))

        self.db.add(RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        ))
        await self.db.flush()

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """
        Rotate a refresh token.

        Raises:
            TokenError: If refresh token is invalid, expired, or revoked
        """
        user_id = verify_token(refresh_token, token_type="refresh")
        if not user_id:
            raise TokenError("Invalid refresh token")

        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token_hash == hash_token(refresh_token),
                RefreshToken.revoked_at.is_(None)
            )
        )
        token_record = result.scalar_one_or_none()
        if not token_record or token_record.is_expired:
            raise TokenError("Refresh token expired or revoked")

        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise TokenError("User not found or inactive")

        token_record.revoked_at = utcnow()
        return await self.create_tokens(user)

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Unknown tokens are ignored."""
        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
        )
        token_record = result.scalar_one_or_none()
        if token_record:
            token_record.revoked_at = utcnow()
            await self.db.flush()

    async def change_password(self, user: User, new_password: str) -> None:
        user.hashed_password = get_password_hash(new_password)
        await self.db.flush()
        logger.info("Password changed for user %s", user.id)

    async def get_user_by_id(self, user_id: str | uuid.UUID) -> User | None:
        """Get user by ID; malformed ids return None."""
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None
        return await self.db.get(User, user_id)
