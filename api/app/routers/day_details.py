"""
Itinerary Day Detail Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from decimal import Decimal
from uuid import UUID
import logging

from app.utils.database import get_db
from app.routers.auth import get_current_user
from app.models.user import User
from app.models.day_detail import DayDetail
from app.schemas.day_detail import DayDetailUpsert, DayDetailResponse
from app.services.geocoding import GeocodingService
from app.services.trip_service import TripService

router = APIRouter()
logger = logging.getLogger(__name__)


async def _find_day(db: AsyncSession, trip_id: UUID, day_number: int) -> Optional[DayDetail]:
    result = await db.execute(
        select(DayDetail).where(
            DayDetail.trip_id == trip_id,
            DayDetail.day_number == day_number,
        )
    )
    return result.scalar_one_or_none()


def _apply(day: DayDetail, values: dict) -> None:
    for field, value in values.items():
        setattr(day, field, value)


@router.get("/{trip_id}/all-day-details", response_model=List[DayDetailResponse])
async def list_day_details(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    All day details of a trip, ordered by day
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    return await TripService.list_day_details(db, trip.id)


@router.get("/{trip_id}/day-details/{day_number}", response_model=Optional[DayDetailResponse])
async def get_day_detail(
    trip_id: UUID,
    day_number: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Details for one day, or null when the day has none yet
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    return await _find_day(db, trip.id, day_number)


@router.post("/{trip_id}/day-details", response_model=DayDetailResponse)
async def upsert_day_detail(
    trip_id: UUID,
    detail: DayDetailUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create or update the details for a day. A destination without
    coordinates is geocoded; a failed lookup still saves the day.
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    values = detail.model_dump(exclude_unset=True, exclude={"day_number"})

    if detail.destination and (detail.latitude is None or detail.longitude is None):
        logger.info(f"Geocoding day {detail.day_number} destination: {detail.destination}")
        location = await GeocodingService.geocode(detail.destination)
        if location:
            values["latitude"] = Decimal(location.lat)
            values["longitude"] = Decimal(location.lon)

    day = await _find_day(db, trip_id, detail.day_number)
    if day is None:
        day = DayDetail(trip_id=trip_id, day_number=detail.day_number)
        db.add(day)
        _apply(day, values)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created the day first; update that row instead
            await db.rollback()
            logger.info(f"Day {detail.day_number} of trip {trip_id} created concurrently, updating it")
            day = await _find_day(db, trip_id, detail.day_number)
            _apply(day, values)
            await db.commit()
    else:
        _apply(day, values)
        await db.commit()

    await db.refresh(day)

    logger.info(f"Day {day.day_number} saved for trip {trip_id}")

    return day
