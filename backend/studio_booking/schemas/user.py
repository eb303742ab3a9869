"""
Pydantic schemas for staff authentication.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from studio_booking.models.enums import Role


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class AdminBootstrap(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)


class UserCreate(BaseModel):
    """Staff account created by an admin."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Role.USER


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: Role
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse
