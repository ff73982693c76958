"""
Pydantic schemas for the SMS API.
"""

from pydantic import BaseModel, Field


class SendSmsRequest(BaseModel):
    """Request body for POST /api/sms."""

    to: str = Field(..., min_length=1, max_length=32, description="Destination phone number")
    text: str = Field(..., min_length=1, max_length=1600, description="Message body")
    client_ref: str | None = Field(
        None,
        max_length=128,
        description="Caller idempotency key; a repeated value returns the first send",
    )
    preferred: str | None = Field(None, max_length=32, description="Provider to try first")


class SendSmsResponse(BaseModel):
    provider: str
    message_id: str
    to: str
    client_ref: str | None = None
