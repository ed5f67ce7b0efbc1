"""
Explore Feed, Sharing & Engagement Schemas
"""
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.schemas.base import CamelModel
from app.schemas.trip import TripPublicResponse
from app.schemas.expense import ExpenseResponse
from app.schemas.day_detail import DayDetailResponse
from app.schemas.user import PublicUserSummary


class ExploreTripResponse(TripPublicResponse):
    owner: Optional[PublicUserSummary] = None
    like_count: int = 0
    comment_count: int = 0


class ExploreTripDetailResponse(CamelModel):
    trip: ExploreTripResponse
    expenses: List[ExpenseResponse]
    day_details: List[DayDetailResponse]
    owner: Optional[PublicUserSummary]


class SharedTripResponse(CamelModel):
    trip: TripPublicResponse
    expenses: List[ExpenseResponse]
    day_details: List[DayDetailResponse] = []


class LikeResponse(CamelModel):
    trip_id: UUID
    liked: bool
    like_count: int


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(CamelModel):
    id: UUID
    trip_id: UUID
    user_id: UUID
    content: str
    created_at: Optional[datetime]
    author: Optional[PublicUserSummary] = None
