"""
Trip Model
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, Date, DateTime, Numeric, JSON, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
import uuid

from app.utils.database import Base


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Ownership is fixed at creation; no update path writes this column
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    days = Column(Integer)

    share_id = Column(String(64), unique=True)
    favorite = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False, index=True)
    trip_type = Column(String(50), default="plan", nullable=False)  # plan, past

    description = Column(Text)
    header_image_url = Column(Text)
    tags = Column(JSON, default=list)
    photos = Column(JSON, default=list)
    budget = Column(Numeric(10, 2), default=0)
    private_notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="trips")
    expenses = relationship("Expense", back_populates="trip", passive_deletes=True)
    day_details = relationship("DayDetail", back_populates="trip", passive_deletes=True)

    def __repr__(self):
        return f"<Trip {self.name} ({self.days or '?'} days)>"
