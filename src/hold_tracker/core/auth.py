"""
Authentication and Authorization Module

FastAPI dependencies for:
- Staff authentication (JWT bearer token issued by /auth/login or /auth/google)
- Admin-only endpoints (role check on top of staff authentication)
- The reminder batch trigger (static shared secret, not a user token)

The token is trusted for identity and role; the users table is the source of
truth only at sign-in time.
"""

import hmac
import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hold_tracker.core.config import settings
from hold_tracker.core.security import decode_token
from hold_tracker.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated staff member.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address, used as the creator identity on records
        role: "admin" or "staff"
        name: User's display name (matches record owner names)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract user claims.

    Raises:
        HTTPException 401: If token is invalid, expired, or has bad claims
    """
    payload = decode_token(token)

    if payload is None:
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the JWT token and returns the user.

    Usage:
        @router.get("/records")
        async def list_records(user: CurrentUser = Depends(get_current_user)):
            ...

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    user = _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency for admin-only endpoints.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If user is not an admin
    """
    if not user.is_admin:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', 'admin' required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )
    return user


async def verify_batch_secret(authorization: str | None = Header(None)) -> None:
    """
    Guard for the reminder batch trigger.

    The Authorization header must be exactly "Bearer <BATCH_SECRET>".
    With no secret configured every request is rejected.

    Raises:
        HTTPException 401: If the header does not match
    """
    secret = settings.batch_secret
    expected = f"Bearer {secret}"

    if not secret or not authorization or not hmac.compare_digest(
        authorization.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Reminder batch trigger rejected: bad or missing batch secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "UNAUTHORIZED", "message": "Unauthorized"},
        )


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_current_admin_user",
    "verify_batch_secret",
]
