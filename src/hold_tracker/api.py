from fastapi import APIRouter

from hold_tracker.modules.activities import router as activities_router
from hold_tracker.modules.auth import router as auth_router
from hold_tracker.modules.notifications import router as notifications_router
from hold_tracker.modules.records import router as records_router
from hold_tracker.modules.reminders import router as reminders_router
from hold_tracker.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(records_router, prefix="/records", tags=["Records"])

api_router.include_router(activities_router, prefix="/activities", tags=["Activities"])

api_router.include_router(
    notifications_router, prefix="/notifications", tags=["Notifications"]
)

api_router.include_router(reminders_router, prefix="/reminders", tags=["Reminders"])
