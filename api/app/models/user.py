"""
User Model
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, Uuid, func
from sqlalchemy.orm import relationship
import uuid

from app.utils.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    clerk_id = Column(String(255), unique=True, index=True)
    email = Column(String(255))
    first_name = Column(String(255))
    last_name = Column(String(255))
    display_name = Column(String(255))
    bio = Column(Text)
    profile_image_url = Column(Text)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Billing
    stripe_customer_id = Column(String(255), unique=True)
    stripe_subscription_id = Column(String(255), index=True)
    subscription_status = Column(String(50))  # active, trialing, past_due, canceled
    subscription_plan = Column(String(50), default="free", nullable=False)  # free, premium
    subscription_ends_at = Column(DateTime(timezone=True))
    ai_uses_remaining = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    trips = relationship("Trip", back_populates="owner", passive_deletes=True)
    pins = relationship("TravelPin", back_populates="user", passive_deletes=True)

    @property
    def is_premium(self) -> bool:
        return self.subscription_plan == "premium"

    def __repr__(self):
        return f"<User {self.email}>"
