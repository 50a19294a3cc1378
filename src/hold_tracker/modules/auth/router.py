"""
Authentication Router

Endpoints:
- POST /auth/login - Email and password
- POST /auth/google - Google Sign-In ID token
- GET /auth/me - The signed-in user
- POST /auth/logout - Record the logout (tokens are stateless)

Sign-ins are written to the activity log (LOGIN); rejected sign-ins are
logged as UNAUTHORIZED_ACCESS.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import CurrentUser, get_current_user
from hold_tracker.core.config import settings
from hold_tracker.core.database import get_db
from hold_tracker.core.rate_limit import rate_limit
from hold_tracker.core.security import create_access_token, verify_password
from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.auth.google import GoogleTokenError, verify_google_id_token
from hold_tracker.modules.auth.schemas import (
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
)
from hold_tracker.modules.users.models import User, UserRole
from hold_tracker.modules.users.repository import UserRepository
from hold_tracker.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_LOGIN = (10, 60)  # 10 attempts per minute per IP


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


def _account_inactive() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "error": "ACCOUNT_INACTIVE",
            "message": "Your account has been deactivated.",
        },
    )


async def _issue_token(db: AsyncSession, user: User, method: str) -> LoginResponse:
    access_token = create_access_token(
        subject=str(user.id),
        additional_claims={
            "email": user.email,
            "role": user.role.value,
            "name": user.name,
        },
    )

    logger.info(f"User logged in: {user.id} (role: {user.role.value}, via {method})")
    await activity_repository.log_safely(
        db, ActivityAction.LOGIN, f"Signed in with {method}", user=user.email
    )

    return LoginResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
@rate_limit(limit=RATE_LIMIT_LOGIN[0], window_seconds=RATE_LIMIT_LOGIN[1])
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate with email and password and return a JWT access token.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
    """
    user = await UserRepository.get_by_email(db, credentials.email)

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("Rejected password login")
        await activity_repository.log_safely(
            db,
            ActivityAction.UNAUTHORIZED_ACCESS,
            "Failed password login",
            user=credentials.email.lower(),
        )
        raise _invalid_credentials()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {user.id}")
        raise _account_inactive()

    return await _issue_token(db, user, "password")


@router.post("/google", response_model=LoginResponse)
@rate_limit(limit=RATE_LIMIT_LOGIN[0], window_seconds=RATE_LIMIT_LOGIN[1])
async def google_login(
    request: Request,
    data: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Sign in with a Google ID token.

    First-time users are created as staff, or as admin when their email is
    listed in ADMIN_EMAILS.

    Raises:
        HTTPException 401: Token rejected
        HTTPException 403: Account inactive
        HTTPException 503: Google Sign-In not configured
    """
    if not settings.google_client_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "GOOGLE_SIGNIN_DISABLED",
                "message": "Google Sign-In is not configured.",
            },
        )

    try:
        identity = await verify_google_id_token(
            data.id_token,
            client_id=settings.google_client_id,
            allowed_domain=settings.allowed_email_domain,
        )
    except GoogleTokenError as e:
        logger.warning(f"Rejected Google sign-in: {e}")
        await activity_repository.log_safely(
            db, ActivityAction.UNAUTHORIZED_ACCESS, f"Failed Google sign-in: {e}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_GOOGLE_TOKEN",
                "message": str(e),
            },
        ) from e

    user = await UserRepository.get_by_email(db, identity.email)
    if not user:
        role = UserRole.ADMIN if identity.email in settings.admin_emails_list else UserRole.STAFF
        user = await UserRepository.create(db, email=identity.email, name=identity.name, role=role)

    if not user.is_active:
        raise _account_inactive()

    return await _issue_token(db, user, "Google")


@router.get("/me", response_model=UserResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
) -> UserResponse:
    user = await UserRepository.get_by_id(db, current.id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "USER_NOT_FOUND",
                "message": "User not found.",
            },
        )
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
) -> LogoutResponse:
    """Tokens are not revoked server-side; the client discards its token."""
    await activity_repository.log_safely(
        db, ActivityAction.LOGOUT, "Signed out", user=current.email
    )
    return LogoutResponse()
