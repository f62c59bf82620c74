# Auth Models
"""Pydantic models for identities and user capability records."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """User as returned by the identity service for a bearer token."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Identity service user id")
    email: Optional[str] = Field(default=None, description="Login email")


class UserRecord(BaseModel):
    """Row of the application's ``users`` table; holds capability flags."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    can_edit_markers: Optional[bool] = False
