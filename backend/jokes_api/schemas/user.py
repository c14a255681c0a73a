"""
Jokes API Backend — Auth / User Schemas
=========================================

What:  Request bodies and response payloads of the /api/auth routes.

Request models are deliberately permissive (every field optional): the
validation layer owns the rules and reports them with its own messages,
before the service touches the store.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    username: Optional[str] = Field(default=None, examples=["chuckles"])
    email: Optional[str] = Field(default=None, examples=["chuckles@example.com"])
    password: Optional[str] = Field(default=None, examples=["secret123"])
    display_name: Optional[str] = Field(default=None, examples=["Chuckles the Clown"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AvailabilityRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PublicUser(BaseModel):
    """Public profile fields; never includes the password hash."""
    id: int
    username: str
    display_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(PublicUser):
    """201 body of POST /api/auth/register: the profile plus a session token."""
    token: str


class LoginResponse(BaseModel):
    token: str
    user: PublicUser


class ProfileResponse(PublicUser):
    """GET /api/auth/me."""
    created_at: datetime


class AvailabilityResponse(BaseModel):
    """
    Only the keys that were asked about are present in the response
    (the route serializes with exclude_none).
    """
    username_available: Optional[bool] = Field(default=None, serialization_alias="usernameAvailable")
    email_available: Optional[bool] = Field(default=None, serialization_alias="emailAvailable")
