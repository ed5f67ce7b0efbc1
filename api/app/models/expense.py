"""
Expense Model
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, Date, Numeric, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.utils.database import Base

EXPENSE_CATEGORIES = (
    "flights",
    "accommodation",
    "food",
    "activities",
    "local",
    "intercity",
    "other",
)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_expenses_cost_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id = Column(Uuid, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    cost = Column(Numeric(10, 2), nullable=False)
    url = Column(Text)
    date = Column(Date)
    day_number = Column(Integer)
    purchased = Column(Boolean, default=False, nullable=False)

    trip = relationship("Trip", back_populates="expenses")

    def __repr__(self):
        return f"<Expense {self.category} {self.description} ${self.cost}>"
