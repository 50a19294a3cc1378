"""
On-Hold Records Router

API endpoints for staff to track on-hold student records.
All endpoints require a valid staff token; delete is admin only.

Endpoints:
- GET /records - List records (search and filters)
- GET /records/analytics - Dashboard counts
- GET /records/{record_id} - Get one record
- POST /records - Create a record
- PUT /records/{record_id} - Update a record
- PUT /records/{record_id}/reminders - Turn automatic reminders off or on
- DELETE /records/{record_id} - Permanently delete a record (admin)

Security:
- Requests and responses carry plaintext; sensitive fields are encrypted at rest
- Every mutation is written to the activity log with the actor's email
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import CurrentUser, get_current_user
from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.database import get_db
from hold_tracker.core.deps import get_field_cipher
from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.records import service
from hold_tracker.modules.records.models import RecordStatus
from hold_tracker.modules.records.schemas import (
    DeleteRecordResponse,
    RecordAnalytics,
    RecordCreate,
    RecordFilters,
    RecordRead,
    RecordUpdate,
    ReminderToggleRequest,
)
from hold_tracker.modules.records.service import RecordServiceError
from hold_tracker.modules.reminders.jobs import reminder_today

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: RecordServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


# ============================================
# Read Endpoints
# ============================================


@router.get(
    "",
    response_model=list[RecordRead],
    summary="List Records",
    description="""
All records, most recently created first.

**Filters:**
- `search`: Case-insensitive match on student name, record id, category,
  hold reason and contact email
- `team`, `status`, `section`: Exact match
- `mine`: Only records you created or that are assigned to your name
""",
)
async def list_records(
    search: str | None = Query(None, max_length=100, description="Search term"),
    team: str | None = Query(None, description="Filter by team"),
    record_status: RecordStatus | None = Query(None, alias="status", description="Status"),
    section: str | None = Query(None, description="Filter by held section"),
    mine: bool = Query(False, description="Only my records"),
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> list[RecordRead]:
    filters = RecordFilters(
        search=search,
        team=team,
        status=record_status,
        section=section,
        mine=mine,
    )
    return await service.list_records(
        db, cipher, filters, actor_email=user.email, actor_name=user.name
    )


@router.get("/analytics", response_model=RecordAnalytics, summary="Record Analytics")
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> RecordAnalytics:
    """Counts by status, team and category, plus records due today."""
    analytics = await service.get_analytics(db, cipher, reminder_today())
    await activity_repository.log_safely(
        db, ActivityAction.ANALYZE_RECORD, "Viewed record analytics", user=user.email
    )
    return analytics


@router.get(
    "/{record_id}",
    response_model=RecordRead,
    summary="Get Record",
    responses={404: {"description": "Record not found"}},
)
async def get_record(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> RecordRead:
    try:
        return await service.get_record(db, cipher, record_id)
    except RecordServiceError as e:
        _handle_service_error(e)


# ============================================
# Write Endpoints
# ============================================


@router.post(
    "",
    response_model=RecordRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Record",
    responses={400: {"description": "Record ID already exists"}},
)
async def create_record(
    data: RecordCreate,
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> RecordRead:
    """Create a record. The creator is taken from the token, never from the body."""
    try:
        return await service.create_record(db, cipher, data, actor=user.email)
    except RecordServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error creating record: {e}")
        raise _internal_error() from e


@router.put(
    "/{record_id}",
    response_model=RecordRead,
    summary="Update Record",
    responses={404: {"description": "Record not found"}},
)
async def update_record(
    record_id: str,
    data: RecordUpdate,
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> RecordRead:
    """Change the supplied fields. record_id and the creator cannot be changed."""
    try:
        return await service.update_record(db, cipher, record_id, data, actor=user.email)
    except RecordServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating record {record_id}: {e}")
        raise _internal_error() from e


@router.put(
    "/{record_id}/reminders",
    response_model=RecordRead,
    summary="Toggle Reminders",
    responses={404: {"description": "Record not found"}},
)
async def toggle_reminders(
    record_id: str,
    data: ReminderToggleRequest,
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    user: CurrentUser = Depends(get_current_user),
) -> RecordRead:
    try:
        return await service.set_reminders_suppressed(
            db, cipher, record_id, data.suppressed, actor=user.email
        )
    except RecordServiceError as e:
        _handle_service_error(e)


@router.delete(
    "/{record_id}",
    response_model=DeleteRecordResponse,
    summary="Delete Record",
    responses={
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Record not found"},
    },
)
async def delete_record(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DeleteRecordResponse:
    """Permanently delete a record. Admin only; attempts by staff are audited."""
    if not user.is_admin:
        logger.warning(f"Non-admin user {user.id} attempted to delete record {record_id}")
        await activity_repository.log_safely(
            db,
            ActivityAction.UNAUTHORIZED_ACCESS,
            f"Attempted to delete record {record_id} without admin role",
            user=user.email,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    try:
        await service.delete_record(db, record_id, actor=user.email)
    except RecordServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deleting record {record_id}: {e}")
        raise _internal_error() from e

    return DeleteRecordResponse(record_id=record_id)
