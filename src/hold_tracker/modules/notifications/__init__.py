"""Notifications module - Ad hoc emails and follow-up digests."""

from .router import router

__all__ = ["router"]
