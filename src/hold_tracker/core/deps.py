"""
Shared FastAPI Dependencies

The field cipher and the mail transport are built once in the app lifespan
and stored on app.state. Routes receive them through these dependencies so
tests can substitute their own via app.dependency_overrides.
"""

from fastapi import Request

from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.email import MailTransport


def get_field_cipher(request: Request) -> FieldCipher:
    return request.app.state.field_cipher


def get_mail_transport(request: Request) -> MailTransport:
    return request.app.state.mail_transport
