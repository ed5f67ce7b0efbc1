"""
Day Detail Schemas
"""
from pydantic import Field
from typing import Optional
from decimal import Decimal
from uuid import UUID

from app.schemas.base import CamelModel


class DayDetailUpsert(CamelModel):
    """Create or replace the itinerary details for one day of a trip"""
    day_number: int = Field(..., ge=1)
    destination: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    local_transport_notes: Optional[str] = None
    food_budget_adjustment: Optional[Decimal] = None
    staying_in_same_city: Optional[bool] = None
    intercity_transport_type: Optional[str] = None
    notes: Optional[str] = None


class DayDetailResponse(CamelModel):
    id: UUID
    trip_id: UUID
    day_number: int
    destination: Optional[str]
    latitude: Optional[Decimal]
    longitude: Optional[Decimal]
    local_transport_notes: Optional[str]
    food_budget_adjustment: Optional[Decimal]
    staying_in_same_city: Optional[bool]
    intercity_transport_type: Optional[str]
    notes: Optional[str]
