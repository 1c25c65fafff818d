"""
Exam Portal - Authentication API Routes
Endpoints for registration, login, token refresh, and logout
"""
from fastapi import APIRouter, HTTPException, status

from exam_portal.api.deps import CurrentUser, DbSession
from exam_portal.schemas.common import ApiResponse, ok
from exam_portal.schemas.user import (
    LoginResponse,
    TokenRefresh,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from exam_portal.services.auth import (
    AccountNotActiveError,
    AuthService,
    InvalidCredentialsError,
    TokenError,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new student",
    description="Create a student account. An admin must approve it before the student can log in.",
)
async def register(
    user_data: UserCreate,
    db: DbSession,
):
    auth_service = AuthService(db)

    try:
        user = await auth_service.register_user(user_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    await db.commit()
    return ok("Registration successful. Please wait for admin approval.", UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Authenticate user",
    description="Login with email and password to receive access and refresh tokens.",
)
async def login(
    credentials: UserLogin,
    db: DbSession,
):
    auth_service = AuthService(db)

    try:
        user = await auth_service.authenticate(
            email=credentials.email,
            password=credentials.password,
        )
        tokens = await auth_service.create_tokens(user)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AccountNotActiveError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )

    await db.commit()
    return ok("Login successful", LoginResponse(
        **tokens.model_dump(),
        user=UserResponse.model_validate(user),
    ))


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenResponse],
    summary="Refresh access token",
    description="Use a valid refresh token to obtain new access and refresh tokens.",
)
async def refresh_token(
    token_data: TokenRefresh,
    db: DbSession,
):
    auth_service = AuthService(db)

    try:
        tokens = await auth_service.refresh_tokens(token_data.refresh_token)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    await db.commit()
    return ok("Token refreshed", tokens)


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Logout user",
    description="Revoke the refresh token to end the session.",
)
async def logout(
    token_data: TokenRefresh,
    db: DbSession,
):
    await AuthService(db).logout(token_data.refresh_token)
    await db.commit()
    return ok("Logged out")


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Get current user",
    description="Verify the session and return the authenticated user's profile.",
)
async def get_current_user_profile(
    current_user: CurrentUser,
):
    return ok("Session valid", UserResponse.model_validate(current_user))
