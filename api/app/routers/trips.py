"""
Trip Planning Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID
import logging

from app.utils.database import get_db
from app.utils.redis import get_redis, CacheService
from app.routers.auth import get_current_user
from app.models.user import User
from app.models.trip import Trip
from app.schemas.trip import (
    TripCreate,
    TripUpdate,
    TripPublish,
    TripResponse,
    ShareResponse,
    HeaderImageUpdate,
    PhotoAdd,
    ObjectPathResponse,
    BudgetResponse,
)
from app.services import trip_math
from app.services.trip_service import TripService, EXPLORE_CACHE_PATTERN
from app.services.uploads import UploadService

router = APIRouter()
logger = logging.getLogger(__name__)


async def _respond(db: AsyncSession, trip: Trip) -> TripResponse:
    expenses = await TripService.list_expenses(db, trip.id)
    return TripService.to_response(trip, expenses)


@router.get("", response_model=List[TripResponse])
async def list_trips(
    trip_type: Optional[str] = Query(None, alias="tripType", description="Filter by trip type (plan, past)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the current user's trips with cost totals and expense counts
    """
    query = (
        select(Trip)
        .where(Trip.user_id == current_user.id)
        .order_by(Trip.favorite.desc(), Trip.created_at.desc())
    )
    if trip_type:
        query = query.where(Trip.trip_type == trip_type)

    result = await db.execute(query)
    trips = result.scalars().all()

    expenses_by_trip = await TripService.expenses_by_trip_ids(db, [t.id for t in trips])

    return [
        TripService.to_response(trip, expenses_by_trip.get(trip.id, []), with_counts=True)
        for trip in trips
    ]


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new trip. With both dates set, days counts the start and end day.
    """
    if trip_data.start_date and trip_data.end_date and trip_data.end_date < trip_data.start_date:
        raise HTTPException(status_code=400, detail="End date must not be before start date")

    trip = Trip(
        user_id=current_user.id,
        name=trip_data.name,
        start_date=trip_data.start_date,
        end_date=trip_data.end_date,
        days=trip_math.trip_days(trip_data.start_date, trip_data.end_date, trip_data.days),
        trip_type=trip_data.trip_type,
        budget=trip_data.budget,
        description=trip_data.description,
        header_image_url=trip_data.header_image_url,
        tags=trip_data.tags,
        photos=[],
        private_notes=trip_data.private_notes,
    )

    db.add(trip)
    await db.commit()
    await db.refresh(trip)

    logger.info(f"Trip created: {trip.id} by user {current_user.id}")

    return TripService.to_response(trip, [])


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get trip details
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    return await _respond(db, trip)


@router.patch("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_id: UUID,
    updates: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Update a trip. Moving the start date renumbers every dated expense.
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    previous_start = trip.start_date

    update_data = updates.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(trip, field, value)

    if trip.start_date and trip.end_date and trip.end_date < trip.start_date:
        raise HTTPException(status_code=400, detail="End date must not be before start date")

    if "start_date" in update_data or "end_date" in update_data:
        trip.days = trip_math.trip_days(trip.start_date, trip.end_date, trip.days)

    if trip.start_date and trip.start_date != previous_start:
        await TripService.recalculate_expense_day_numbers(db, trip)

    await db.commit()
    await db.refresh(trip)
    await TripService.refresh_explore_feed(cache, trip)

    logger.info(f"Trip updated: {trip.id}")

    return await _respond(db, trip)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Delete a trip and everything attached to it
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    was_public = trip.is_public

    await TripService.delete_trip(db, trip)
    await db.commit()

    if was_public:
        await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    return {"success": True}


@router.patch("/{trip_id}/favorite", response_model=TripResponse)
async def toggle_favorite(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Toggle the favorite flag
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    trip.favorite = not trip.favorite

    await db.commit()
    await db.refresh(trip)

    return await _respond(db, trip)


@router.post("/{trip_id}/share", response_model=ShareResponse)
async def create_share_link(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the trip's read-only share id, generating one on first use
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    if not trip.share_id:
        trip.share_id = TripService.generate_share_id()
        await db.commit()
        logger.info(f"Share link generated for trip {trip.id}")

    return ShareResponse(share_id=trip.share_id)


@router.patch("/{trip_id}/publish", response_model=TripResponse)
async def publish_trip(
    trip_id: UUID,
    details: TripPublish,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Post a trip to the explore feed
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    for field, value in details.model_dump(exclude_unset=True).items():
        setattr(trip, field, value)
    trip.is_public = True

    await db.commit()
    await db.refresh(trip)
    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    logger.info(f"Trip published: {trip.id}")

    return await _respond(db, trip)


@router.patch("/{trip_id}/unpublish", response_model=TripResponse)
async def unpublish_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Remove a trip from the explore feed
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    trip.is_public = False

    await db.commit()
    await db.refresh(trip)
    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    logger.info(f"Trip unpublished: {trip.id}")

    return await _respond(db, trip)


@router.put("/{trip_id}/header-image", response_model=ObjectPathResponse)
async def set_header_image(
    trip_id: UUID,
    image: HeaderImageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Store an uploaded header image on the trip
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    try:
        object_path = UploadService.normalize_image_url(image.header_image_url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    trip.header_image_url = object_path
    await db.commit()
    await TripService.refresh_explore_feed(cache, trip)

    return ObjectPathResponse(object_path=object_path)


@router.put("/{trip_id}/photos", response_model=ObjectPathResponse)
async def add_photo(
    trip_id: UUID,
    photo: PhotoAdd,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Append an uploaded photo to the trip's gallery
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)

    try:
        object_path = UploadService.normalize_image_url(photo.photo_url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Reassign so the JSON column registers the change
    trip.photos = [*(trip.photos or []), object_path]
    await db.commit()
    await TripService.refresh_explore_feed(cache, trip)

    return ObjectPathResponse(object_path=object_path)


@router.get("/{trip_id}/budget", response_model=BudgetResponse)
async def get_budget_breakdown(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Category totals and their share of the trip total (budget chart)
    """
    trip = await TripService.get_owned_trip(db, trip_id, current_user)
    expenses = await TripService.list_expenses(db, trip.id)
    total = trip_math.trip_total(expenses)

    return BudgetResponse(
        trip_id=trip.id,
        total_cost=total,
        budget=trip.budget,
        remaining=float(trip.budget) - total if trip.budget is not None else None,
        categories=trip_math.category_shares(expenses),
    )
