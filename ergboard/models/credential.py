"""OAuth credential models for the Concept2 provider."""

from typing import Optional
from pydantic import BaseModel, Field


class ExternalCredential(BaseModel):
    """Stored Concept2 credential set for a single member."""
    access_token: str
    refresh_token: str
    expires_at: int = Field(description="Absolute expiry, seconds since epoch")
    external_user_id: str = Field(default="", description="Concept2 user id")


class TokenResponse(BaseModel):
    """Payload returned by the Concept2 OAuth token endpoint."""
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    scope: Optional[str] = None
