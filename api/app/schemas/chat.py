"""
Budget Assistant Chat Schemas
"""
from pydantic import Field
from typing import Optional

from app.schemas.base import CamelModel


class TripContext(CamelModel):
    """What the client knows about the trip being planned"""
    name: str = "General Travel"
    destination: Optional[str] = None
    days: Optional[int] = None
    start_date: Optional[str] = None
    total_cost: Optional[float] = None


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)
    trip_context: TripContext = Field(default_factory=TripContext)

