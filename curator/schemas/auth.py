"""Authentication schemas for Supabase JWT tokens."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class JWTClaims(BaseModel):
    """JWT claims extracted from a Supabase access token."""

    sub: str = Field(..., description="Subject (Supabase user ID)")
    email: EmailStr = Field(..., description="User email")
    role: str = Field(default="authenticated", description="Postgres role claim")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")

    aud: Optional[str] = Field(None, description="Audience")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")


class CurrentUser(BaseModel):
    """Authenticated identity, before its profile is looked up."""

    id: str = Field(..., description="Supabase user ID")
    email: EmailStr = Field(..., description="User email")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    access_token: Optional[str] = Field(None, description="Raw bearer token", exclude=True)

    @property
    def display_name(self) -> str:
        """Name taken from signup metadata: ``full_name``, then ``name``, else empty."""
        metadata = self.user_metadata or {}
        return metadata.get("full_name") or metadata.get("name") or ""


__all__ = ["JWTClaims", "CurrentUser"]
