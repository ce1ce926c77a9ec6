"""
Pydantic schemas for the auth module.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

UserType = Literal["guest", "regular"]


class AuthUser(BaseModel):
    """User returned by a provider's authorize step."""
    id: Optional[str] = None
    email: Optional[str] = None
    type: UserType


class SessionUser(BaseModel):
    id: str
    type: UserType
    email: Optional[str] = None
    name: Optional[str] = None


class Session(BaseModel):
    """Session exposed to routes and returned by /api/auth/session."""
    user: SessionUser
    expires: datetime


class UserLogin(BaseModel):
    """Schema for credentials sign-in and registration payloads."""
    email: str
    password: str
