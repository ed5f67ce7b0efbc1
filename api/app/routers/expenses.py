"""
Expense Tracking Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Tuple
from uuid import UUID
import logging

from app.utils.database import get_db
from app.utils.redis import get_redis
from app.routers.auth import get_current_user
from app.models.user import User
from app.models.trip import Trip
from app.models.expense import Expense
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    BulkLodgingRequest,
    BulkLodgingResponse,
)
from app.services import trip_math
from app.services.trip_service import TripService

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_owned_expense(db: AsyncSession, expense_id: UUID, user: User) -> Tuple[Expense, Trip]:
    """Expenses are owned through their trip"""
    result = await db.execute(select(Expense).where(Expense.id == expense_id))
    expense = result.scalar_one_or_none()

    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    trip = await TripService.get_owned_trip(db, expense.trip_id, user)
    return expense, trip


def _fill_day_number(trip: Trip, expense: Expense) -> None:
    if expense.date and expense.day_number is None and trip.start_date:
        expense.day_number = trip_math.day_number_for_date(trip.start_date, expense.date)


@router.get("/trips/{trip_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List all expenses of a trip
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    return await TripService.list_expenses(db, trip.id)


@router.post("/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Add an expense to a trip
    """
    trip = await TripService.get_owned_trip(db, expense_data.trip_id, current_user)

    expense = Expense(**expense_data.model_dump())
    _fill_day_number(trip, expense)

    db.add(expense)
    await db.commit()
    await db.refresh(expense)
    await TripService.refresh_explore_feed(cache, trip)

    logger.info(f"Expense created: {expense.id} ({expense.category}) on trip {trip.id}")

    return expense


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    updates: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Update an expense
    """
    expense, trip = await _get_owned_expense(db, expense_id, current_user)

    update_data = updates.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(expense, field, value)

    if "date" in update_data and "day_number" not in update_data:
        expense.day_number = None
        _fill_day_number(trip, expense)

    await db.commit()
    await db.refresh(expense)
    await TripService.refresh_explore_feed(cache, trip)

    return expense


@router.delete("/expenses/{expense_id}")
async def delete_expense(
    expense_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Delete an expense
    """
    expense, trip = await _get_owned_expense(db, expense_id, current_user)

    await db.delete(expense)
    await db.commit()
    await TripService.refresh_explore_feed(cache, trip)

    return {"success": True}


@router.post("/trips/{trip_id}/lodging/bulk", response_model=BulkLodgingResponse)
async def create_bulk_lodging(
    trip_id: UUID,
    lodging: BulkLodgingRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Book a multi-night stay: one accommodation expense per night at the
    nightly rate. Nights falling outside the trip are skipped. Rows of the
    same lodging on the affected days are replaced.
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    if not (lodging.check_in_date and lodging.check_out_date and lodging.lodging_name and lodging.total_cost):
        raise HTTPException(status_code=400, detail="Missing required fields")

    if not trip.start_date and not lodging.start_day_number:
        raise HTTPException(
            status_code=400,
            detail="startDayNumber is required for trips without a start date"
        )

    nights = trip_math.nights_between(lodging.check_in_date, lodging.check_out_date)
    if nights <= 0:
        raise HTTPException(status_code=400, detail="Check-out date must be after check-in date")

    rate = trip_math.nightly_rate(lodging.total_cost, nights)

    # (day_number, date) for each night that lands inside the trip
    nights_data = []
    for i in range(nights):
        night_date = trip_math.date_for_day_number(lodging.check_in_date, i + 1)
        if trip.start_date:
            day_number = trip_math.day_number_for_date(trip.start_date, night_date)
        else:
            day_number = lodging.start_day_number + i

        if day_number >= 1 and (not trip.days or day_number <= trip.days):
            nights_data.append((day_number, night_date))

    # Editing replaces the original booking's days; a new booking replaces
    # same-named lodging on the days it now covers
    replaced_days = set(lodging.day_numbers_to_delete) or {day for day, _ in nights_data}
    existing = await TripService.list_expenses(db, trip.id)
    for expense in existing:
        if (
            expense.category == "accommodation"
            and expense.description == lodging.lodging_name
            and expense.day_number in replaced_days
        ):
            await db.delete(expense)

    created = []
    for day_number, night_date in nights_data:
        expense = Expense(
            trip_id=trip.id,
            category="accommodation",
            description=lodging.lodging_name,
            cost=rate,
            url=lodging.url or None,
            date=night_date,
            day_number=day_number,
        )
        db.add(expense)
        created.append(expense)

    await db.commit()
    for expense in created:
        await db.refresh(expense)
    await TripService.refresh_explore_feed(cache, trip)

    logger.info(f"Bulk lodging on trip {trip.id}: {nights} nights at {rate}, {len(created)} rows")

    return BulkLodgingResponse(
        nights=nights,
        nightly_rate=f"{rate:.2f}",
        expenses=[ExpenseResponse.model_validate(e) for e in created],
    )
