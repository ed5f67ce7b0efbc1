"""
User, Profile & Pin Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.schemas.base import CamelModel
from app.schemas.trip import TripPublicResponse


class UserResponse(CamelModel):
    """Schema for the signed-in user's own record"""
    id: UUID
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    display_name: Optional[str]
    bio: Optional[str]
    profile_image_url: Optional[str]
    is_admin: bool
    subscription_plan: str
    created_at: Optional[datetime]


class ProfileUpdate(CamelModel):
    """Schema for updating user profile"""
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    display_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)


class ProfilePictureUpdate(CamelModel):
    profile_image_url: str = Field(..., min_length=1)


class PublicUserSummary(CamelModel):
    """What other users may see about a user"""
    id: UUID
    first_name: Optional[str]
    last_name: Optional[str]
    display_name: Optional[str]
    bio: Optional[str]
    profile_image_url: Optional[str]


class PublicProfileResponse(CamelModel):
    user: PublicUserSummary
    trips: List[TripPublicResponse]


class PinCreate(CamelModel):
    latitude: Decimal = Field(..., ge=-90, le=90)
    longitude: Decimal = Field(..., ge=-180, le=180)
    location_name: Optional[str] = None


class PinResponse(CamelModel):
    id: UUID
    user_id: UUID
    latitude: Decimal
    longitude: Decimal
    location_name: Optional[str]
    created_at: Optional[datetime]
