"""
Notification Schemas
"""

from pydantic import BaseModel, EmailStr, Field


class SendEmailRequest(BaseModel):
    """Request body for POST /notifications/send."""

    to: EmailStr
    subject: str = Field(..., min_length=1, max_length=300)
    html_body: str = Field(..., min_length=1)


class SendEmailResponse(BaseModel):
    success: bool = True
    message_id: str


class DigestRequest(BaseModel):
    """Request body for POST /notifications/digest."""

    record_ids: list[str] = Field(..., min_length=1, max_length=500)
    recipient: EmailStr | None = Field(
        None, description="Defaults to the operations mailbox"
    )


class DigestResponse(BaseModel):
    sent: int
    failed: int
    notified_record_ids: list[str]
    failed_owners: list[str]
