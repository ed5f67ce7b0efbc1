"""
Trip Schemas
"""
from pydantic import Field
from typing import Optional, List, Literal
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.schemas.base import CamelModel


class TripCreate(CamelModel):
    """Schema for creating a trip"""
    name: str = Field(..., min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: Optional[int] = Field(None, ge=1, le=365)
    trip_type: Literal["plan", "past"] = "plan"
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    header_image_url: Optional[str] = None
    tags: List[str] = []
    private_notes: Optional[str] = None


class TripUpdate(CamelModel):
    """Schema for partially updating a trip (owner is never writable)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: Optional[int] = Field(None, ge=1, le=365)
    trip_type: Optional[Literal["plan", "past"]] = None
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    header_image_url: Optional[str] = None
    tags: Optional[List[str]] = None
    photos: Optional[List[str]] = None
    private_notes: Optional[str] = None


class TripPublish(CamelModel):
    """Schema for posting a trip to the explore feed"""
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    header_image_url: Optional[str] = None
    photos: Optional[List[str]] = None


class ExpenseCounts(CamelModel):
    flights: int = 0
    accommodation: int = 0
    activities: int = 0


class TripPublicResponse(CamelModel):
    """Trip fields that are safe to show to anyone"""
    id: UUID
    user_id: UUID
    name: str
    start_date: Optional[date]
    end_date: Optional[date]
    days: Optional[int]
    trip_type: str
    description: Optional[str]
    header_image_url: Optional[str]
    tags: Optional[List[str]] = []
    photos: Optional[List[str]] = []
    is_public: bool
    created_at: Optional[datetime]
    total_cost: float = 0


class TripResponse(TripPublicResponse):
    """Schema for trip response to its owner"""
    share_id: Optional[str]
    favorite: bool
    budget: Optional[Decimal]
    private_notes: Optional[str]
    expense_counts: Optional[ExpenseCounts] = None


class ShareResponse(CamelModel):
    share_id: str


class HeaderImageUpdate(CamelModel):
    header_image_url: str = Field(..., min_length=1)


class PhotoAdd(CamelModel):
    photo_url: str = Field(..., min_length=1)


class ObjectPathResponse(CamelModel):
    object_path: str


class CategoryBreakdown(CamelModel):
    category: str
    total: float
    share: float  # percent of trip total, 0-100


class BudgetResponse(CamelModel):
    trip_id: UUID
    total_cost: float
    budget: Optional[Decimal]
    remaining: Optional[float]
    categories: List[CategoryBreakdown]
