"""
Authentication - Clerk session verification & current-user dependencies
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import logging

import httpx

from app.config import settings
from app.utils.database import get_db
from app.models.user import User
from app.schemas.user import UserResponse
from app.services.clerk import ClerkService, AuthError, ClerkConfigurationError

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_COOKIE = "__session"


def _extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else Clerk's session cookie"""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def _provision_user(db: AsyncSession, clerk_id: str) -> User:
    """First sign-in: copy the Clerk profile into a local user row"""
    try:
        clerk_user = await ClerkService.fetch_user(clerk_id)
    except ClerkConfigurationError:
        logger.error("CLERK_SECRET_KEY is not set")
        raise HTTPException(status_code=500, detail="Server configuration error")
    except httpx.HTTPError as e:
        logger.error(f"Clerk API error for {clerk_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch user data")

    user = User(
        clerk_id=clerk_id,
        ai_uses_remaining=settings.FREE_AI_USES,
        **ClerkService.profile_fields(clerk_user),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User created from Clerk: {user.id} ({clerk_id})")
    return user


async def _resolve_user(request: Request, db: AsyncSession) -> Optional[User]:
    token = _extract_token(request)
    if not token:
        return None

    try:
        claims = await ClerkService.verify_session_token(token)
    except ClerkConfigurationError as e:
        logger.error(f"Clerk not configured: {e}")
        raise HTTPException(status_code=500, detail="Server configuration error")
    except AuthError:
        return None

    clerk_id = claims["sub"]
    result = await db.execute(select(User).where(User.clerk_id == clerk_id))
    user = result.scalar_one_or_none()
    if user is None:
        user = await _provision_user(db, clerk_id)
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency that resolves the signed-in user or fails with 401
    Usage: current_user: User = Depends(get_current_user)
    """
    user = await _resolve_user(request, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests get None"""
    return await _resolve_user(request, db)


@router.get("/user", response_model=UserResponse)
async def get_authenticated_user(current_user: User = Depends(get_current_user)):
    """
    Get the signed-in user
    """
    return current_user
