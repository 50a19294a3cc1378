"""
Users module - Staff accounts and roles.
"""

from hold_tracker.modules.users.models import User, UserRole
from hold_tracker.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
