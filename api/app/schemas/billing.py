"""
Billing Schemas - subscriptions & tips
"""
from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID

from app.schemas.base import CamelModel


class SubscriptionResponse(CamelModel):
    plan: str
    status: Optional[str]
    ends_at: Optional[datetime]
    ai_uses_remaining: int


class TipCheckoutRequest(CamelModel):
    trip_id: UUID
    trip_name: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(..., description="Tip amount in cents")
    creator_name: Optional[str] = None


class CheckoutResponse(CamelModel):
    url: str


class UploadParametersResponse(CamelModel):
    upload_type: str = "cloudinary"
    signature: str
    timestamp: int
    cloud_name: str
    api_key: str
    public_id: str
    folder: str
