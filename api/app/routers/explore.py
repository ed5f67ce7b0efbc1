"""
Explore Feed, Shared Trips & Engagement Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import Dict, List, Sequence
from uuid import UUID
import logging

from app.config import settings
from app.utils.database import get_db
from app.utils.redis import get_redis, CacheService
from app.routers.auth import get_current_user
from app.models.user import User
from app.models.trip import Trip
from app.models.engagement import Like, Comment
from app.schemas.trip import TripResponse
from app.schemas.expense import ExpenseResponse
from app.schemas.day_detail import DayDetailResponse
from app.schemas.explore import (
    ExploreTripResponse,
    ExploreTripDetailResponse,
    SharedTripResponse,
    LikeResponse,
    CommentCreate,
    CommentResponse,
)
from app.services import trip_math
from app.services.trip_service import TripService, EXPLORE_CACHE_PATTERN

router = APIRouter()
logger = logging.getLogger(__name__)


async def _count_by_trip(db: AsyncSession, model, trip_ids: Sequence[UUID]) -> Dict[UUID, int]:
    if not trip_ids:
        return {}
    result = await db.execute(
        select(model.trip_id, func.count())
        .where(model.trip_id.in_(trip_ids))
        .group_by(model.trip_id)
    )
    return {trip_id: count for trip_id, count in result.all()}


async def _like_count(db: AsyncSession, trip_id: UUID) -> int:
    return (await _count_by_trip(db, Like, [trip_id])).get(trip_id, 0)


def _explore_item(trip: Trip, expenses, likes: int, comments: int) -> ExploreTripResponse:
    """Expects trip.owner to be eagerly loaded"""
    item = ExploreTripResponse.model_validate(trip)
    item.total_cost = trip_math.trip_total(expenses)
    item.like_count = likes
    item.comment_count = comments
    return item


@router.get("/explore/trips", response_model=List[ExploreTripResponse])
async def list_public_trips(
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Public trips, newest first, with owner and engagement counts
    """
    cache_service = CacheService(cache)
    cache_key = f"explore:trips:{limit}:{offset}"

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return cached

    result = await db.execute(
        select(Trip)
        .where(Trip.is_public.is_(True))
        .options(selectinload(Trip.owner))
        .order_by(Trip.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    trips = result.scalars().all()
    trip_ids = [t.id for t in trips]

    expenses_by_trip = await TripService.expenses_by_trip_ids(db, trip_ids)
    likes = await _count_by_trip(db, Like, trip_ids)
    comments = await _count_by_trip(db, Comment, trip_ids)

    items = [
        _explore_item(trip, expenses_by_trip.get(trip.id, []), likes.get(trip.id, 0), comments.get(trip.id, 0))
        for trip in trips
    ]

    await cache_service.set(
        cache_key,
        [item.model_dump(mode="json", by_alias=True) for item in items],
        settings.CACHE_TTL_EXPLORE,
    )

    return items


@router.get("/explore/trips/{trip_id}", response_model=ExploreTripDetailResponse)
async def get_public_trip(
    trip_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    A public trip with its expenses, itinerary and owner
    """
    result = await db.execute(
        select(Trip)
        .where(Trip.id == trip_id, Trip.is_public.is_(True))
        .options(selectinload(Trip.owner))
    )
    trip = result.scalar_one_or_none()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")

    expenses = await TripService.list_expenses(db, trip.id)
    day_details = await TripService.list_day_details(db, trip.id)
    likes = await _count_by_trip(db, Like, [trip.id])
    comments = await _count_by_trip(db, Comment, [trip.id])
    item = _explore_item(trip, expenses, likes.get(trip.id, 0), comments.get(trip.id, 0))

    return ExploreTripDetailResponse(
        trip=item,
        expenses=[ExpenseResponse.model_validate(e) for e in expenses],
        day_details=[DayDetailResponse.model_validate(d) for d in day_details],
        owner=item.owner,
    )


@router.post("/explore/trips/{trip_id}/clone", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def clone_public_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Copy a public trip into the current user's trips as a template
    """
    source = await TripService.get_public_trip(db, trip_id)
    clone = await TripService.clone_trip(db, source, current_user)

    await db.commit()
    await db.refresh(clone)

    expenses = await TripService.list_expenses(db, clone.id)
    return TripService.to_response(clone, expenses)


@router.post("/explore/trips/{trip_id}/like", response_model=LikeResponse, status_code=status.HTTP_201_CREATED)
async def like_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Like a public trip (once per user)
    """
    trip = await TripService.get_public_trip(db, trip_id)

    existing = await db.execute(
        select(Like).where(Like.trip_id == trip.id, Like.user_id == current_user.id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Trip already liked")

    db.add(Like(trip_id=trip.id, user_id=current_user.id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Trip already liked")

    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    return LikeResponse(trip_id=trip.id, liked=True, like_count=await _like_count(db, trip.id))


@router.delete("/explore/trips/{trip_id}/like", response_model=LikeResponse)
async def unlike_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Remove the current user's like
    """
    trip = await TripService.get_public_trip(db, trip_id)

    result = await db.execute(
        select(Like).where(Like.trip_id == trip.id, Like.user_id == current_user.id)
    )
    like = result.scalar_one_or_none()
    if not like:
        raise HTTPException(status_code=404, detail="Like not found")

    await db.delete(like)
    await db.commit()
    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    return LikeResponse(trip_id=trip.id, liked=False, like_count=await _like_count(db, trip.id))


@router.get("/explore/trips/{trip_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    trip_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Comments on a public trip, oldest first
    """
    trip = await TripService.get_public_trip(db, trip_id)

    result = await db.execute(
        select(Comment)
        .where(Comment.trip_id == trip.id)
        .options(selectinload(Comment.author))
        .order_by(Comment.created_at.asc())
    )
    return result.scalars().all()


@router.post("/explore/trips/{trip_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    trip_id: UUID,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Comment on a public trip
    """
    trip = await TripService.get_public_trip(db, trip_id)

    comment = Comment(trip_id=trip.id, author=current_user, content=comment_data.content.strip())
    db.add(comment)
    await db.commit()
    await db.refresh(comment, ["created_at"])
    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    return comment


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache = Depends(get_redis),
):
    """
    Delete a comment (its author or the trip's owner)
    """
    comment = await db.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    trip = await TripService.get_trip(db, comment.trip_id)
    if comment.user_id != current_user.id and (not trip or trip.user_id != current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    await db.delete(comment)
    await db.commit()
    await CacheService(cache).delete_pattern(EXPLORE_CACHE_PATTERN)

    return {"success": True}


@router.get("/share/{share_id}", response_model=SharedTripResponse)
async def get_shared_trip(
    share_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Read-only view of a trip through its share link (no sign-in needed)
    """
    trip = await TripService.get_trip_by_share_id(db, share_id)
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")

    expenses = await TripService.list_expenses(db, trip.id)
    day_details = await TripService.list_day_details(db, trip.id)

    return SharedTripResponse(
        trip=TripService.to_public_response(trip, expenses),
        expenses=[ExpenseResponse.model_validate(e) for e in expenses],
        day_details=[DayDetailResponse.model_validate(d) for d in day_details],
    )


@router.post("/share/{share_id}/clone", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def clone_shared_trip(
    share_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Copy a shared trip into the current user's trips as a template
    """
    source = await TripService.get_trip_by_share_id(db, share_id)
    if not source:
        raise HTTPException(status_code=404, detail="Trip not found")

    clone = await TripService.clone_trip(db, source, current_user)
    await db.commit()
    await db.refresh(clone)

    expenses = await TripService.list_expenses(db, clone.id)
    return TripService.to_response(clone, expenses)
