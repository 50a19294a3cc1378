"""
Users Router

Admin management of staff accounts.

Endpoints:
- GET /users - List staff accounts
- PUT /users/{user_id}/admin - Grant or revoke the admin role
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import CurrentUser, get_current_admin_user
from hold_tracker.core.database import get_db
from hold_tracker.modules.users.models import UserRole
from hold_tracker.modules.users.repository import UserRepository
from hold_tracker.modules.users.schemas import SetAdminRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[UserResponse], summary="List Users")
async def list_users(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> list[UserResponse]:
    users = await UserRepository.list_all(db)
    return [UserResponse.model_validate(user) for user in users]


@router.put(
    "/{user_id}/admin",
    response_model=UserResponse,
    summary="Set Admin Role",
    responses={
        400: {"description": "Admins cannot revoke their own admin role"},
        404: {"description": "User not found"},
    },
)
async def set_admin(
    user_id: UUID,
    data: SetAdminRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> UserResponse:
    """Grant (is_admin=true) or revoke (is_admin=false) the admin role."""
    if user_id == admin.id and not data.is_admin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "CANNOT_REVOKE_OWN_ADMIN",
                "message": "You cannot revoke your own admin role.",
            },
        )

    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "USER_NOT_FOUND",
                "message": "User not found.",
            },
        )

    role = UserRole.ADMIN if data.is_admin else UserRole.STAFF
    user = await UserRepository.set_role(db, user, role)

    logger.info(f"Admin {admin.id} set role of user {user.id} to {role.value}")
    return UserResponse.model_validate(user)
