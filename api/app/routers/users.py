"""
User Profile & Travel Pin Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from uuid import UUID
import logging

from app.utils.database import get_db
from app.routers.auth import get_current_user
from app.models.user import User
from app.models.trip import Trip
from app.models.travel_pin import TravelPin
from app.schemas.user import (
    UserResponse,
    ProfileUpdate,
    ProfilePictureUpdate,
    PublicUserSummary,
    PublicProfileResponse,
    PinCreate,
    PinResponse,
)
from app.schemas.trip import ObjectPathResponse
from app.services.trip_service import TripService
from app.services.uploads import UploadService

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    """
    Get current user profile
    """
    return current_user


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    updates: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Update current user profile
    """
    update_data = updates.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.commit()
    await db.refresh(current_user)

    logger.info(f"User profile updated: {current_user.id}")

    return current_user


@router.get("/profile/{user_id}", response_model=PublicUserSummary)
async def get_user_summary(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Public summary of any user (map page header)
    """
    return await _get_user_or_404(db, user_id)


@router.put("/users/profile-picture", response_model=ObjectPathResponse)
async def update_profile_picture(
    picture: ProfilePictureUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Store an uploaded profile picture
    """
    try:
        object_path = UploadService.normalize_image_url(picture.profile_image_url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    current_user.profile_image_url = object_path
    await db.commit()

    return ObjectPathResponse(object_path=object_path)


@router.get("/users/{user_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    A user's public profile with their published trips
    """
    user = await _get_user_or_404(db, user_id)

    result = await db.execute(
        select(Trip)
        .where(Trip.user_id == user.id, Trip.is_public.is_(True))
        .order_by(Trip.created_at.desc())
    )
    trips = result.scalars().all()
    expenses_by_trip = await TripService.expenses_by_trip_ids(db, [t.id for t in trips])

    return PublicProfileResponse(
        user=PublicUserSummary.model_validate(user),
        trips=[TripService.to_public_response(t, expenses_by_trip.get(t.id, [])) for t in trips],
    )


@router.get("/users/{user_id}/pins", response_model=List[PinResponse])
async def list_pins(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Travel pins on a user's map
    """
    result = await db.execute(
        select(TravelPin)
        .where(TravelPin.user_id == user_id)
        .order_by(TravelPin.created_at.asc())
    )
    return result.scalars().all()


@router.post("/pins", response_model=PinResponse, status_code=status.HTTP_201_CREATED)
async def add_pin(
    pin_data: PinCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Drop a pin on the current user's map
    """
    pin = TravelPin(user_id=current_user.id, **pin_data.model_dump())

    db.add(pin)
    await db.commit()
    await db.refresh(pin)

    logger.info(f"Pin added for user {current_user.id}: {pin.location_name}")

    return pin


@router.delete("/pins/{pin_id}")
async def delete_pin(
    pin_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Remove one of the current user's pins
    """
    pin = await db.get(TravelPin, pin_id)

    if not pin:
        raise HTTPException(status_code=404, detail="Pin not found")
    if pin.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    await db.delete(pin)
    await db.commit()

    return {"success": True}
