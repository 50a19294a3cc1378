"""Authentication schemas."""

from pydantic import BaseModel, EmailStr

from hold_tracker.modules.users.schemas import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class GoogleLoginRequest(BaseModel):
    """Google Sign-In request schema."""

    id_token: str


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class LogoutResponse(BaseModel):
    message: str = "Logged out"
