"""
Subscription, Tip & Stripe Webhook Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

import stripe

from app.utils.database import get_db
from app.routers.auth import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.billing import (
    SubscriptionResponse,
    TipCheckoutRequest,
    CheckoutResponse,
)
from app.services.billing import BillingService, BillingError, WebhookSignatureError
from app.services.trip_service import TripService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_subscription(current_user: User = Depends(get_current_user)):
    """
    Current plan and remaining AI uses
    """
    return SubscriptionResponse(
        plan=current_user.subscription_plan,
        status=current_user.subscription_status,
        ends_at=current_user.subscription_ends_at,
        ai_uses_remaining=current_user.ai_uses_remaining,
    )


@router.post("/subscription/checkout", response_model=CheckoutResponse)
async def start_subscription_checkout(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Start a Stripe Checkout for the premium plan
    """
    if current_user.is_premium:
        raise HTTPException(status_code=400, detail="Already subscribed")

    try:
        url = await BillingService.create_subscription_checkout(db, current_user)
    except BillingError as e:
        logger.error(f"Subscription checkout unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Billing is unavailable")
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to start checkout")

    await db.commit()
    return CheckoutResponse(url=url)


@router.post("/billing/portal", response_model=CheckoutResponse)
async def open_billing_portal(current_user: User = Depends(get_current_user)):
    """
    Stripe billing portal for managing the subscription
    """
    if not current_user.stripe_customer_id:
        raise HTTPException(status_code=400, detail="No billing account")

    try:
        url = await BillingService.create_portal_session(current_user)
    except BillingError as e:
        logger.error(f"Billing portal unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Billing is unavailable")
    except stripe.StripeError as e:
        logger.error(f"Stripe portal failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to open billing portal")

    return CheckoutResponse(url=url)


@router.post("/tips/checkout", response_model=CheckoutResponse)
async def start_tip_checkout(
    tip: TipCheckoutRequest,
    tipper: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    One-time tip to the creator of a trip. Signing in is optional.
    """
    trip = await TripService.get_trip(db, tip.trip_id)
    if not trip or not (trip.is_public or trip.share_id):
        raise HTTPException(status_code=404, detail="Trip not found")

    try:
        url = await BillingService.create_tip_checkout(
            str(trip.id),
            tip.trip_name,
            tip.amount,
            tip.creator_name,
            tipper_id=str(tipper.id) if tipper else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BillingError as e:
        logger.error(f"Tip checkout unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Billing is unavailable")
    except stripe.StripeError as e:
        logger.error(f"Stripe tip checkout failed for trip {trip.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to start checkout")

    return CheckoutResponse(url=url)


@router.post("/stripe/webhook", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Stripe subscription lifecycle events. The body is read raw: signature
    verification needs the exact bytes Stripe sent.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Missing stripe-signature")

    try:
        event = BillingService.construct_event(payload, signature)
    except WebhookSignatureError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except BillingError as e:
        logger.error(f"Stripe webhook unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Billing is unavailable")

    handled = await BillingService.handle_event(db, event)
    await db.commit()

    return {"received": True, "handled": handled}
