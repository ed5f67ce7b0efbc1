import pytest
import stripe

from app.config import settings
from app.models import User
from app.services.billing import UNLIMITED_AI_USES


@pytest.fixture
def stripe_keys(monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    monkeypatch.setattr(settings, "STRIPE_PREMIUM_PRICE_ID", "price_premium")


@pytest.fixture
async def customer(session_factory, users):
    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        user.stripe_customer_id = "cus_alice"
        await session.commit()
    return "cus_alice"


def _subscription_event(event_type, status="active", customer="cus_alice"):
    return {
        "type": event_type,
        "data": {
            "object": {
                "id": "sub_123",
                "customer": customer,
                "status": status,
                "current_period_end": 1767225600,
            }
        },
    }


@pytest.fixture
def send_event(client, monkeypatch, stripe_keys):
    async def _send(event):
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda payload, sig, secret: event)
        return await client.post(
            "/api/stripe/webhook",
            content=b'{"id": "evt_test"}',
            headers={"stripe-signature": "t=1,v1=signed"},
        )
    return _send


async def test_subscription_defaults_to_free(client):
    body = (await client.get("/api/subscription")).json()

    assert body["plan"] == "free"
    assert body["aiUsesRemaining"] == 5


async def test_subscription_created_makes_user_premium(client, customer, send_event):
    response = await send_event(_subscription_event("customer.subscription.created"))

    assert response.json() == {"received": True, "handled": True}
    body = (await client.get("/api/subscription")).json()
    assert body["plan"] == "premium"
    assert body["status"] == "active"
    assert body["aiUsesRemaining"] == UNLIMITED_AI_USES
    assert body["endsAt"] is not None


async def test_past_due_subscription_drops_to_free(client, customer, send_event):
    await send_event(_subscription_event("customer.subscription.created"))
    await send_event(_subscription_event("customer.subscription.updated", status="past_due"))

    body = (await client.get("/api/subscription")).json()
    assert body["plan"] == "free"
    assert body["status"] == "past_due"
    assert body["aiUsesRemaining"] == 0


async def test_incomplete_new_subscription_keeps_free_uses(client, customer, send_event):
    response = await send_event(_subscription_event("customer.subscription.created", status="incomplete"))

    assert response.json()["handled"] is True
    body = (await client.get("/api/subscription")).json()
    assert body["plan"] == "free"
    assert body["status"] == "incomplete"
    assert body["aiUsesRemaining"] == 5

    await send_event(_subscription_event("customer.subscription.updated", status="incomplete_expired"))

    assert (await client.get("/api/subscription")).json()["aiUsesRemaining"] == 0


async def test_subscription_deleted_cancels(client, session_factory, users, customer, send_event):
    await send_event(_subscription_event("customer.subscription.created"))
    await send_event(_subscription_event("customer.subscription.deleted", status="canceled"))

    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        assert user.subscription_plan == "free"
        assert user.subscription_status == "canceled"
        assert user.stripe_subscription_id is None
        assert user.ai_uses_remaining == 0


async def test_unrelated_or_unmatched_events_are_acknowledged(customer, send_event):
    ignored = await send_event({"type": "invoice.paid", "data": {"object": {"id": "in_1"}}})
    unmatched = await send_event(_subscription_event("customer.subscription.created", customer="cus_nobody"))

    assert ignored.json() == {"received": True, "handled": False}
    assert unmatched.json() == {"received": True, "handled": False}


async def test_webhook_rejects_bad_signature(client, stripe_keys):
    response = await client.post(
        "/api/stripe/webhook",
        content=b'{"type": "customer.subscription.created"}',
        headers={"stripe-signature": "t=1,v1=forged"},
    )

    assert response.status_code == 400


async def test_webhook_requires_signature_header(client, stripe_keys):
    response = await client.post("/api/stripe/webhook", content=b"{}")
    assert response.status_code == 400


async def test_subscription_checkout_creates_customer_once(client, session_factory, users, stripe_keys, monkeypatch):
    created_customers = []
    sessions = []

    def fake_customer_create(**kwargs):
        created_customers.append(kwargs)
        return {"id": "cus_new"}

    def fake_session_create(**kwargs):
        sessions.append(kwargs)
        return {"url": "https://checkout.stripe.com/c/pay/cs_test_sub"}

    monkeypatch.setattr(stripe.Customer, "create", fake_customer_create)
    monkeypatch.setattr(stripe.checkout.Session, "create", fake_session_create)

    first = await client.post("/api/subscription/checkout")
    await client.post("/api/subscription/checkout")

    assert first.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_sub"}
    assert len(created_customers) == 1
    assert created_customers[0]["email"] == "alice@example.com"
    assert sessions[0]["mode"] == "subscription"
    assert sessions[1]["customer"] == "cus_new"

    async with session_factory() as session:
        assert (await session.get(User, users["alice"].id)).stripe_customer_id == "cus_new"


async def test_checkout_unavailable_without_stripe(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
    assert (await client.post("/api/subscription/checkout")).status_code == 503


async def test_billing_portal_needs_customer(client, customer, stripe_keys, monkeypatch):
    monkeypatch.setattr(
        stripe.billing_portal.Session, "create",
        lambda **kwargs: {"url": f"https://billing.stripe.com/p/session/{kwargs['customer']}"},
    )

    response = await client.post("/api/billing/portal")

    assert response.json()["url"].endswith("cus_alice")


async def test_billing_portal_without_customer(client, stripe_keys):
    assert (await client.post("/api/billing/portal")).status_code == 400


async def test_tip_checkout(client, auth, make_trip, publish, stripe_keys, monkeypatch):
    trip = await make_trip(name="Andalusia")
    await publish(trip["id"])
    sessions = []

    def fake_session_create(**kwargs):
        sessions.append(kwargs)
        return {"url": "https://checkout.stripe.com/c/pay/cs_test_tip"}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_session_create)

    auth.user_id = None
    response = await client.post(
        "/api/tips/checkout",
        json={"tripId": trip["id"], "tripName": "Andalusia", "amount": 500, "creatorName": "Alice"},
    )

    assert response.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_tip"}
    [checkout] = sessions
    assert checkout["mode"] == "payment"
    assert checkout["line_items"][0]["price_data"]["unit_amount"] == 500
    assert checkout["metadata"] == {"trip_id": trip["id"], "type": "tip"}


@pytest.mark.parametrize("amount", [50, 50001])
async def test_tip_amount_out_of_range(client, make_trip, publish, stripe_keys, amount):
    trip = await make_trip()
    await publish(trip["id"])

    response = await client.post(
        "/api/tips/checkout",
        json={"tripId": trip["id"], "tripName": "Iberia Loop", "amount": amount},
    )

    assert response.status_code == 400


async def test_tip_for_private_trip_not_found(client, make_trip, stripe_keys):
    trip = await make_trip()

    response = await client.post(
        "/api/tips/checkout",
        json={"tripId": trip["id"], "tripName": "Iberia Loop", "amount": 500},
    )

    assert response.status_code == 404


async def test_tip_records_signed_in_tipper(client, users, make_trip, publish, stripe_keys, monkeypatch):
    trip = await make_trip()
    await publish(trip["id"])
    sessions = []

    def fake_session_create(**kwargs):
        sessions.append(kwargs)
        return {"url": "https://checkout.stripe.com/c/pay/cs_test_tip"}

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_session_create)

    await client.post(
        "/api/tips/checkout",
        json={"tripId": trip["id"], "tripName": "Iberia Loop", "amount": 1000},
    )

    assert sessions[0]["metadata"]["tipper_user_id"] == str(users["alice"].id)
