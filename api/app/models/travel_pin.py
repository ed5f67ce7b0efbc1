"""
Travel Pin Model - places a user has marked on their map
"""
from sqlalchemy import Column, Text, DateTime, Numeric, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
import uuid

from app.utils.database import Base


class TravelPin(Base):
    __tablename__ = "travel_pins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    latitude = Column(Numeric(10, 7), nullable=False)
    longitude = Column(Numeric(10, 7), nullable=False)
    location_name = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="pins")

    def __repr__(self):
        return f"<TravelPin {self.location_name} ({self.latitude}, {self.longitude})>"
