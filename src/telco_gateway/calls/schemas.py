"""
Pydantic schemas for the alias call API.
"""

from pydantic import BaseModel, ConfigDict, Field


class AliasCallRequest(BaseModel):
    """Request body for POST /api/calls/alias."""

    user_id: int = Field(..., ge=1, description="Caller's user id")
    to: str = Field(..., min_length=1, max_length=32, description="Number to reach")


class AliasCallResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    from_number: str = Field(..., alias="from")
    to: str
    user_forwarding_number: str
    stage: str
    call_sid: str
