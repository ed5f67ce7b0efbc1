"""
Expense Schemas
"""
from pydantic import Field
from typing import Optional, List, Literal
from datetime import date as date_type
from decimal import Decimal
from uuid import UUID

from app.schemas.base import CamelModel

ExpenseCategory = Literal[
    "flights", "accommodation", "food", "activities", "local", "intercity", "other"
]


class ExpenseCreate(CamelModel):
    """Schema for creating an expense"""
    trip_id: UUID
    category: ExpenseCategory
    description: str = Field(..., min_length=1)
    cost: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    url: Optional[str] = None
    date: Optional[date_type] = None
    day_number: Optional[int] = Field(None, ge=1)
    purchased: bool = False


class ExpenseUpdate(CamelModel):
    """Schema for partially updating an expense"""
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = Field(None, min_length=1)
    cost: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    url: Optional[str] = None
    date: Optional[date_type] = None
    day_number: Optional[int] = Field(None, ge=1)
    purchased: Optional[bool] = None


class ExpenseResponse(CamelModel):
    id: UUID
    trip_id: UUID
    category: str
    description: str
    cost: Decimal
    url: Optional[str]
    date: Optional[date_type]
    day_number: Optional[int]
    purchased: bool


class BulkLodgingRequest(CamelModel):
    """
    Multi-night stay. Required fields are checked by the endpoint so a
    missing one yields a 400 rather than a schema error.
    """
    check_in_date: Optional[date_type] = None
    check_out_date: Optional[date_type] = None
    lodging_name: Optional[str] = None
    total_cost: Optional[Decimal] = Field(None, ge=0)
    url: Optional[str] = None
    start_day_number: Optional[int] = Field(None, ge=1)
    day_numbers_to_delete: List[int] = []


class BulkLodgingResponse(CamelModel):
    success: bool = True
    nights: int
    nightly_rate: str
    expenses: List[ExpenseResponse]
