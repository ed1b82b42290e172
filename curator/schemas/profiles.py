"""Profile request and response schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    """Profile as returned by the API."""

    id: UUID = Field(..., description="Supabase user ID")
    email: str = Field(..., description="User email")
    full_name: Optional[str] = Field(None, description="User's full name")
    role: str = Field(..., description="user, curator or admin")
    is_active: bool = Field(..., description="Whether the profile may act")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Self-service profile update; only the name is editable."""

    full_name: str = Field(..., max_length=200)


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., description="New role: user, curator or admin")


class ActiveUpdateRequest(BaseModel):
    is_active: bool
