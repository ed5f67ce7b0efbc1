"""
AI Budget Assistant Endpoint
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid import UUID
import logging

from app.utils.database import get_db, get_session_factory
from app.routers.auth import get_current_user
from app.models.user import User
from app.schemas.chat import ChatRequest
from app.services.chat import ChatService

router = APIRouter()
logger = logging.getLogger(__name__)


def _refund_ai_use(session_factory: async_sessionmaker, user_id: UUID):
    async def refund():
        async with session_factory() as session:
            user = await session.get(User, user_id)
            if user is None or user.is_premium:
                return
            user.ai_uses_remaining += 1
            await session.commit()
        logger.info(f"Refunded AI use to user {user_id} after a failed reply")
    return refund


@router.post("")
async def chat(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Ask the budgeting assistant; the reply streams back as server-sent events.
    Free accounts spend one AI use per question, returned if the reply fails.
    """
    if not ChatService.is_configured():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Assistant is unavailable")

    on_failure = None
    if not current_user.is_premium:
        if current_user.ai_uses_remaining <= 0:
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                detail="No AI uses remaining. Upgrade to Premium for unlimited questions."
            )
        current_user.ai_uses_remaining -= 1
        await db.commit()
        on_failure = _refund_ai_use(session_factory, current_user.id)

    logger.info(f"Chat request from user {current_user.id} about '{request.trip_context.name}'")

    return StreamingResponse(
        ChatService.stream_events(request.message, request.trip_context, on_failure),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
