"""
User Pydantic schemas.

Defines request and response models for user registration and roles.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from parcel_backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """
    Schema for first-login registration.

    Role is not accepted from clients; new users always start as USER.
    """
    email: EmailStr = Field(..., description="User email address")
    display_name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=500)


class UserResponse(BaseModel):
    id: int
    email: str
    display_name: Optional[str]
    role: UserRole
    created_at: datetime
    last_login_at: Optional[datetime]

    class Config:
        from_attributes = True


class UserCreateResponse(BaseModel):
    """`inserted` is False when the email was already registered."""
    inserted: bool
    message: str
    user: UserResponse


class UserSearchResult(BaseModel):
    id: int
    email: str
    role: UserRole
    created_at: datetime

    class Config:
        from_attributes = True


class RoleResponse(BaseModel):
    email: str
    role: UserRole


class RoleChange(BaseModel):
    """Validated by the status guard so invalid roles get a typed rejection."""
    role: str = Field(..., description="One of: admin, user, rider")


class RoleChangeResponse(BaseModel):
    user_id: int
    previous_role: UserRole
    role: UserRole
    message: str
