"""
Activities Module

Append-only audit log of user and system actions.

API Endpoints:
- GET /activities - List recent activity (newest first)
- POST /activities - Append an entry for the signed-in user
"""

from .router import router

__all__ = ["router"]
