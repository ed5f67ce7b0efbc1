"""
Billing Service - Stripe subscriptions, tips and webhook processing
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import asyncio
import logging

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)

PREMIUM_STATUSES = {"active", "trialing"}
UNLIMITED_AI_USES = 999999


class BillingError(Exception):
    """Stripe is not configured or rejected a request"""


class WebhookSignatureError(BillingError):
    """Webhook payload did not carry a valid Stripe signature"""


def _configure() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise BillingError("Stripe is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


class BillingService:
    """
    Stripe calls go through the synchronous SDK, run off the event loop.
    """

    @staticmethod
    async def ensure_customer(db: AsyncSession, user: User) -> str:
        """Stripe customer id for the user, creating the customer on first use"""
        if user.stripe_customer_id:
            return user.stripe_customer_id

        _configure()
        customer = await asyncio.to_thread(
            stripe.Customer.create,
            email=user.email or None,
            name=" ".join(filter(None, [user.first_name, user.last_name])) or None,
            metadata={"user_id": str(user.id)},
        )
        user.stripe_customer_id = customer["id"]
        await db.flush()

        logger.info(f"Stripe customer {customer['id']} created for user {user.id}")
        return customer["id"]

    @staticmethod
    async def create_subscription_checkout(db: AsyncSession, user: User) -> str:
        """Checkout Session URL for the premium plan"""
        _configure()
        if not settings.STRIPE_PREMIUM_PRICE_ID:
            raise BillingError("Premium price is not configured")

        customer_id = await BillingService.ensure_customer(db, user)
        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            mode="subscription",
            customer=customer_id,
            line_items=[{"price": settings.STRIPE_PREMIUM_PRICE_ID, "quantity": 1}],
            success_url=f"{settings.APP_BASE_URL}/?subscription=success",
            cancel_url=f"{settings.APP_BASE_URL}/settings?subscription=canceled",
            metadata={"user_id": str(user.id)},
        )
        return session["url"]

    @staticmethod
    async def create_portal_session(user: User) -> str:
        """Billing portal URL where the user manages their subscription"""
        _configure()
        if not user.stripe_customer_id:
            raise BillingError("No billing account for this user")

        session = await asyncio.to_thread(
            stripe.billing_portal.Session.create,
            customer=user.stripe_customer_id,
            return_url=f"{settings.APP_BASE_URL}/settings",
        )
        return session["url"]

    @staticmethod
    async def create_tip_checkout(
        trip_id: str,
        trip_name: str,
        amount_cents: int,
        creator_name: Optional[str] = None,
        tipper_id: Optional[str] = None,
    ) -> str:
        """One-time payment Checkout Session thanking a trip's creator"""
        _configure()
        if not settings.TIP_MIN_AMOUNT_CENTS <= amount_cents <= settings.TIP_MAX_AMOUNT_CENTS:
            raise ValueError(
                f"Tip must be between {settings.TIP_MIN_AMOUNT_CENTS} and "
                f"{settings.TIP_MAX_AMOUNT_CENTS} cents"
            )

        metadata = {"trip_id": trip_id, "type": "tip"}
        if tipper_id:
            metadata["tipper_user_id"] = tipper_id

        product_name = f"Tip for {creator_name}" if creator_name else "Tip for trip creator"
        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": "usd",
                    "unit_amount": amount_cents,
                    "product_data": {
                        "name": product_name,
                        "description": f"Thanks for sharing \"{trip_name}\"",
                    },
                },
                "quantity": 1,
            }],
            success_url=f"{settings.APP_BASE_URL}/tip/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.APP_BASE_URL}/explore/{trip_id}",
            metadata=metadata,
        )
        return session["url"]

    @staticmethod
    def construct_event(payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify the raw webhook body against its Stripe-Signature header"""
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise BillingError("Stripe webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise WebhookSignatureError(str(e)) from e

    @staticmethod
    def apply_subscription_status(
        user: User,
        subscription_id: Optional[str],
        status: str,
        current_period_end: Optional[datetime] = None,
        keep_free_uses: bool = False,
    ) -> None:
        """
        Mirror a Stripe subscription onto the user. A lapsed plan loses its
        AI uses unless keep_free_uses is set, which is the case for a new
        subscription still waiting on its first payment.
        """
        is_premium = status in PREMIUM_STATUSES
        user.stripe_subscription_id = subscription_id
        user.subscription_status = status
        user.subscription_plan = "premium" if is_premium else "free"
        user.subscription_ends_at = current_period_end
        if is_premium:
            user.ai_uses_remaining = UNLIMITED_AI_USES
        elif not keep_free_uses:
            user.ai_uses_remaining = 0

    @staticmethod
    async def _find_user(db: AsyncSession, subscription: Dict[str, Any]) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.stripe_subscription_id == subscription["id"])
        )
        user = result.scalar_one_or_none()
        if user is None and subscription.get("customer"):
            result = await db.execute(
                select(User).where(User.stripe_customer_id == subscription["customer"])
            )
            user = result.scalar_one_or_none()
        return user

    @staticmethod
    async def handle_event(db: AsyncSession, event: Dict[str, Any]) -> bool:
        """
        Apply a subscription lifecycle event to the matching user.
        Returns False for event types that are ignored or unmatched.
        """
        event_type = event["type"]
        subscription = event["data"]["object"]

        if event_type not in (
            "customer.subscription.created",
            "customer.subscription.updated",
            "customer.subscription.deleted",
        ):
            logger.debug(f"Ignoring Stripe event {event_type}")
            return False

        user = await BillingService._find_user(db, subscription)
        if user is None:
            logger.warning(f"No user for Stripe subscription {subscription['id']} ({event_type})")
            return False

        if event_type == "customer.subscription.deleted":
            BillingService.apply_subscription_status(user, None, "canceled")
        else:
            BillingService.apply_subscription_status(
                user,
                subscription["id"],
                subscription["status"],
                _timestamp(subscription.get("current_period_end")),
                keep_free_uses=event_type == "customer.subscription.created",
            )

        await db.flush()
        logger.info(f"Subscription {event_type} applied to user {user.id}: {user.subscription_plan}")
        return True
