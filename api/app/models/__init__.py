"""SQLAlchemy Models"""
from app.models.user import User
from app.models.trip import Trip
from app.models.expense import Expense, EXPENSE_CATEGORIES
from app.models.day_detail import DayDetail
from app.models.engagement import Like, Comment
from app.models.travel_pin import TravelPin

__all__ = [
    "User", "Trip", "Expense", "EXPENSE_CATEGORIES", "DayDetail",
    "Like", "Comment", "TravelPin",
]
