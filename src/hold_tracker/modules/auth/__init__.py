"""Authentication module."""

from hold_tracker.modules.auth.router import router
from hold_tracker.modules.auth.schemas import LoginRequest, LoginResponse

__all__ = ["router", "LoginRequest", "LoginResponse"]
