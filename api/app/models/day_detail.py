"""
DayDetail Model - per-day itinerary metadata
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, Numeric, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.utils.database import Base


class DayDetail(Base):
    __tablename__ = "day_details"
    __table_args__ = (
        UniqueConstraint("trip_id", "day_number", name="uq_day_details_trip_day"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id = Column(Uuid, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    day_number = Column(Integer, nullable=False)

    destination = Column(Text)
    latitude = Column(Numeric(10, 7))
    longitude = Column(Numeric(10, 7))
    local_transport_notes = Column(Text)
    food_budget_adjustment = Column(Numeric(10, 2), default=0)
    staying_in_same_city = Column(Boolean, default=False)
    intercity_transport_type = Column(String(50))  # train, bus, flight, car, ferry
    notes = Column(Text)

    trip = relationship("Trip", back_populates="day_details")

    def __repr__(self):
        return f"<DayDetail day {self.day_number}: {self.destination}>"
