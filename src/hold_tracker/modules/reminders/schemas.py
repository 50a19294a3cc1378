"""
Reminder Batch Schemas
"""

from pydantic import BaseModel


class BatchRunResponse(BaseModel):
    """Summary of one reminder batch run."""

    state: str
    due: int
    sent: int
    failed: int
    advanced: int
    message: str
