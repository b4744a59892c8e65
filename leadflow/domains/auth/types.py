"""Auth domain type definitions for type safety."""

from typing import Optional

from pydantic import BaseModel, Field


class SupabaseJwtPayload(BaseModel):
    """Claims of a Supabase access token that the API relies on."""

    sub: Optional[str] = Field(None, description="Subject (user ID)")
    iss: Optional[str] = Field(None, description="Token issuer")
    aud: Optional[str | list[str]] = Field(None, description="Token audience")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    email: Optional[str] = Field(None, description="User email address")
    role: Optional[str] = Field(None, description="Database role the token maps to")
    session_id: Optional[str] = Field(None, description="Session identifier")

    model_config = {"extra": "allow"}
