import json

import pytest

from app.config import settings
from app.models import User
from app.schemas.chat import TripContext
from app.services.chat import (
    ChatService,
    ChatServiceError,
    build_messages,
    extract_expense,
    map_category,
    strip_expense_block,
)

REPLY_WITH_EXPENSE = (
    "A taxi from the airport into Lisbon runs about 20 euros.\n"
    "```expense\n"
    '{"category": "local_transportation", "cost": 22, "description": "Airport taxi to Lisbon"}\n'
    "```"
)


def _events(body: str):
    return [line[len("data: "):] for line in body.split("\n\n") if line.startswith("data: ")]


def test_extract_expense_remaps_category():
    assert extract_expense(REPLY_WITH_EXPENSE) == {
        "category": "local",
        "cost": 22.0,
        "description": "Airport taxi to Lisbon",
    }


@pytest.mark.parametrize("reply", [
    "No estimate here.",
    "```expense\nnot json\n```",
    '```expense\n{"category": "food", "description": "Dinner"}\n```',
    '```expense\n{"category": "food", "cost": -5, "description": "Dinner"}\n```',
    '```expense\n{"category": "food", "cost": true, "description": "Dinner"}\n```',
    '```expense\n{"cost": 12, "description": "Dinner"}\n```',
])
def test_extract_expense_rejects_incomplete_blocks(reply):
    assert extract_expense(reply) is None


def test_category_map():
    assert map_category("city_transportation") == "intercity"
    assert map_category("Local_Transportation") == "local"
    assert map_category("accommodation") == "accommodation"
    assert map_category("spa day") == "other"


def test_strip_expense_block():
    assert strip_expense_block(REPLY_WITH_EXPENSE) == "A taxi from the airport into Lisbon runs about 20 euros."


def test_build_messages_carries_trip_context():
    messages = build_messages(
        "How much is food?",
        TripContext(name="Lisbon", destination="Portugal", days=4, total_cost=1250.5),
    )

    context = messages[1]["content"]
    assert "Trip: Lisbon" in context
    assert "Length: 4 days" in context
    assert "$1,250.50" in context
    assert messages[-1] == {"role": "user", "content": "How much is food?"}


@pytest.fixture
def assistant(monkeypatch):
    monkeypatch.setattr(settings, "CHAT_API_KEY", "test-key")

    async def fake_completion(messages):
        for chunk in (REPLY_WITH_EXPENSE[:40], REPLY_WITH_EXPENSE[40:]):
            yield chunk

    monkeypatch.setattr(ChatService, "stream_completion", fake_completion)


async def test_stream_events_end_with_expense_and_done(assistant):
    events = [e async for e in ChatService.stream_events("Taxi cost?", TripContext())]

    payloads = [e[len("data: "):].strip() for e in events]
    assert payloads[-1] == "[DONE]"
    assert json.loads(payloads[-2]) == {
        "expense": {"category": "local", "cost": 22.0, "description": "Airport taxi to Lisbon"}
    }
    content = "".join(json.loads(p)["content"] for p in payloads[:-2])
    assert content == REPLY_WITH_EXPENSE


async def test_stream_events_report_upstream_failure(monkeypatch):
    async def failing_completion(messages):
        raise ChatServiceError("upstream 500")
        yield  # pragma: no cover

    monkeypatch.setattr(ChatService, "stream_completion", failing_completion)

    events = [e async for e in ChatService.stream_events("Hi", TripContext())]

    assert "error" in json.loads(events[0][len("data: "):])
    assert events[-1] == "data: [DONE]\n\n"


async def test_chat_endpoint_streams_and_spends_a_use(client, users, session_factory, assistant):
    response = await client.post(
        "/api/chat",
        json={"message": "How much is a taxi from the airport?", "tripContext": {"name": "Lisbon"}},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _events(response.text)
    assert events[-1] == "[DONE]"
    assert json.loads(events[-2])["expense"]["category"] == "local"

    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        assert user.ai_uses_remaining == 4


async def test_chat_without_uses_requires_premium(client, users, session_factory, assistant):
    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        user.ai_uses_remaining = 0
        await session.commit()

    response = await client.post("/api/chat", json={"message": "Hotel prices?"})

    assert response.status_code == 402


async def test_premium_chat_is_unmetered(client, users, session_factory, assistant):
    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        user.subscription_plan = "premium"
        user.ai_uses_remaining = 0
        await session.commit()

    response = await client.post("/api/chat", json={"message": "Hotel prices?"})

    assert response.status_code == 200


async def test_chat_unavailable_without_api_key(client, monkeypatch):
    monkeypatch.setattr(settings, "CHAT_API_KEY", "")

    response = await client.post("/api/chat", json={"message": "Hello"})

    assert response.status_code == 503


async def test_failed_reply_returns_the_use(client, users, session_factory, monkeypatch):
    monkeypatch.setattr(settings, "CHAT_API_KEY", "test-key")

    async def failing_completion(messages):
        raise ChatServiceError("upstream 503")
        yield  # pragma: no cover

    monkeypatch.setattr(ChatService, "stream_completion", failing_completion)

    response = await client.post("/api/chat", json={"message": "Ferry prices?"})

    assert response.status_code == 200
    events = _events(response.text)
    assert "error" in json.loads(events[0])
    assert events[-1] == "[DONE]"

    async with session_factory() as session:
        user = await session.get(User, users["alice"].id)
        assert user.ai_uses_remaining == 5
