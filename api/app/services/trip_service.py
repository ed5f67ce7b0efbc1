"""
Trip Service - ownership checks, aggregation, cascades and cloning
"""
from collections import defaultdict
from typing import Dict, List, Optional, Sequence
from uuid import UUID
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.models.trip import Trip
from app.models.expense import Expense
from app.models.day_detail import DayDetail
from app.models.engagement import Like, Comment
from app.schemas.trip import TripResponse, TripPublicResponse, ExpenseCounts
from app.services import trip_math
from app.utils.redis import CacheService

logger = logging.getLogger(__name__)

EXPLORE_CACHE_PATTERN = "explore:*"


class TripService:
    """
    Data access for trips and the rows that hang off them
    """

    @staticmethod
    async def get_trip(db: AsyncSession, trip_id: UUID) -> Optional[Trip]:
        result = await db.execute(select(Trip).where(Trip.id == trip_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_owned_trip(db: AsyncSession, trip_id: UUID, user: User) -> Trip:
        """Fetch a trip the user owns: 404 when missing, 403 when someone else's"""
        trip = await TripService.get_trip(db, trip_id)
        if not trip:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
        if trip.user_id != user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return trip

    @staticmethod
    async def get_public_trip(db: AsyncSession, trip_id: UUID) -> Trip:
        trip = await TripService.get_trip(db, trip_id)
        if not trip or not trip.is_public:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
        return trip

    @staticmethod
    async def get_trip_by_share_id(db: AsyncSession, share_id: str) -> Optional[Trip]:
        result = await db.execute(select(Trip).where(Trip.share_id == share_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_expenses(db: AsyncSession, trip_id: UUID) -> List[Expense]:
        result = await db.execute(
            select(Expense)
            .where(Expense.trip_id == trip_id)
            .order_by(Expense.day_number.asc().nulls_last(), Expense.date.asc().nulls_last())
        )
        return list(result.scalars().all())

    @staticmethod
    async def expenses_by_trip_ids(db: AsyncSession, trip_ids: Sequence[UUID]) -> Dict[UUID, List[Expense]]:
        """All expenses for many trips in a single query, grouped by trip"""
        grouped: Dict[UUID, List[Expense]] = defaultdict(list)
        if not trip_ids:
            return grouped
        result = await db.execute(select(Expense).where(Expense.trip_id.in_(trip_ids)))
        for expense in result.scalars().all():
            grouped[expense.trip_id].append(expense)
        return grouped

    @staticmethod
    async def list_day_details(db: AsyncSession, trip_id: UUID) -> List[DayDetail]:
        result = await db.execute(
            select(DayDetail)
            .where(DayDetail.trip_id == trip_id)
            .order_by(DayDetail.day_number)
        )
        return list(result.scalars().all())

    @staticmethod
    def to_response(trip: Trip, expenses: Sequence[Expense], with_counts: bool = False) -> TripResponse:
        response = TripResponse.model_validate(trip)
        response.total_cost = trip_math.trip_total(expenses)
        if with_counts:
            response.expense_counts = ExpenseCounts(**trip_math.expense_counts(expenses))
        return response

    @staticmethod
    def to_public_response(trip: Trip, expenses: Sequence[Expense]) -> TripPublicResponse:
        response = TripPublicResponse.model_validate(trip)
        response.total_cost = trip_math.trip_total(expenses)
        return response

    @staticmethod
    async def refresh_explore_feed(cache, trip: Trip) -> None:
        """Drop cached explore pages after a public trip or its expenses change"""
        if trip.is_public:
            await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    @staticmethod
    async def delete_trip(db: AsyncSession, trip: Trip) -> None:
        """Delete a trip together with its expenses, day details, likes and comments"""
        for model in (Expense, DayDetail, Like, Comment):
            await db.execute(delete(model).where(model.trip_id == trip.id))
        await db.delete(trip)
        await db.flush()
        logger.info(f"Trip deleted with dependents: {trip.id}")

    @staticmethod
    async def recalculate_expense_day_numbers(db: AsyncSession, trip: Trip) -> int:
        """Re-derive dayNumber for every dated expense from the trip's start date"""
        if not trip.start_date:
            return 0
        result = await db.execute(
            select(Expense).where(Expense.trip_id == trip.id, Expense.date.is_not(None))
        )
        updated = 0
        for expense in result.scalars().all():
            day_number = trip_math.day_number_for_date(trip.start_date, expense.date)
            if expense.day_number != day_number:
                expense.day_number = day_number
                updated += 1
        await db.flush()
        logger.info(f"Recalculated day numbers for {updated} expenses on trip {trip.id}")
        return updated

    @staticmethod
    def generate_share_id() -> str:
        """32 hex characters of a random UUID"""
        return uuid.uuid4().hex

    @staticmethod
    async def clone_trip(db: AsyncSession, source: Trip, new_owner: User) -> Trip:
        """
        Copy a trip with its expenses and day details into another user's account.
        The copy starts private, unshared and without the original's private notes.
        """
        clone = Trip(
            user_id=new_owner.id,
            name=f"{source.name} (Copy)",
            start_date=source.start_date,
            end_date=source.end_date,
            days=source.days,
            trip_type="plan",
            description=source.description,
            header_image_url=source.header_image_url,
            tags=list(source.tags or []),
            photos=[],
            budget=source.budget,
            favorite=False,
            is_public=False,
        )
        db.add(clone)
        await db.flush()

        for expense in await TripService.list_expenses(db, source.id):
            db.add(Expense(
                trip_id=clone.id,
                category=expense.category,
                description=expense.description,
                cost=expense.cost,
                url=expense.url,
                date=expense.date,
                day_number=expense.day_number,
                purchased=False,
            ))

        for detail in await TripService.list_day_details(db, source.id):
            db.add(DayDetail(
                trip_id=clone.id,
                day_number=detail.day_number,
                destination=detail.destination,
                latitude=detail.latitude,
                longitude=detail.longitude,
                local_transport_notes=detail.local_transport_notes,
                food_budget_adjustment=detail.food_budget_adjustment,
                staying_in_same_city=detail.staying_in_same_city,
                intercity_transport_type=detail.intercity_transport_type,
                notes=detail.notes,
            ))

        await db.flush()
        logger.info(f"Trip {source.id} cloned to {clone.id} for user {new_owner.id}")
        return clone
