"""
Budget Assistant Chat Service

Streams replies from an OpenAI-compatible chat completions endpoint and
pulls structured expense suggestions out of the finished reply. The model
is asked to append suggestions as a fenced block:

    ```expense
    {"category": "food", "cost": 12.5, "description": "Lunch in Madrid"}
    ```
"""
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional
import json
import logging
import re

import httpx

from app.config import settings
from app.schemas.chat import TripContext

logger = logging.getLogger(__name__)

EXPENSE_BLOCK_RE = re.compile(r"```expense\n([\s\S]*?)\n```")

# Names the model uses -> expense categories
CATEGORY_MAP = {
    "flights": "flights",
    "accommodation": "accommodation",
    "food": "food",
    "activities": "activities",
    "local_transportation": "local",
    "local": "local",
    "city_transportation": "intercity",
    "intercity": "intercity",
    "other": "other",
}

SYSTEM_PROMPT = """You are a friendly travel budgeting assistant. Give realistic, concise cost \
estimates in US dollars for travel expenses (flights, lodging, food, activities, transportation). \
When your answer contains one concrete cost the traveler could add to their budget, end your reply \
with exactly one fenced block in this format:

```expense
{"category": "<flights|accommodation|food|activities|local_transportation|city_transportation|other>", \
"cost": <number>, "description": "<short description>"}
```

Only include the block for a single specific cost estimate."""


class ChatServiceError(Exception):
    """Upstream chat completion failed or is not configured"""


def map_category(category: str) -> str:
    return CATEGORY_MAP.get((category or "").strip().lower(), "other")


def extract_expense(content: str) -> Optional[Dict]:
    """
    Parse the fenced expense block of an assistant reply.

    Returns None when there is no block, it is not valid JSON, or it lacks
    a category, a numeric cost or a description.
    """
    match = EXPENSE_BLOCK_RE.search(content or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None
    cost = data.get("cost")
    if not data.get("category") or not data.get("description"):
        return None
    if isinstance(cost, bool) or not isinstance(cost, (int, float)) or cost < 0:
        return None

    return {
        "category": map_category(data["category"]),
        "cost": float(cost),
        "description": str(data["description"]),
    }


def strip_expense_block(content: str) -> str:
    return EXPENSE_BLOCK_RE.sub("", content or "").strip()


def build_messages(message: str, trip_context: TripContext) -> List[Dict[str, str]]:
    context_lines = [f"Trip: {trip_context.name}"]
    if trip_context.destination:
        context_lines.append(f"Destination: {trip_context.destination}")
    if trip_context.days:
        context_lines.append(f"Length: {trip_context.days} days")
    if trip_context.start_date:
        context_lines.append(f"Starts: {trip_context.start_date}")
    if trip_context.total_cost is not None:
        context_lines.append(f"Budgeted so far: ${trip_context.total_cost:,.2f}")

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "system", "content": "\n".join(context_lines)},
        {"role": "user", "content": message},
    ]


def sse_event(payload) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


class ChatService:
    """
    Client for the streaming chat completion endpoint
    """

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.CHAT_API_KEY)

    @staticmethod
    async def stream_completion(messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """Yield content deltas as the model produces them"""
        if not ChatService.is_configured():
            raise ChatServiceError("Chat assistant is not configured")

        payload = {
            "model": settings.CHAT_MODEL,
            "messages": messages,
            "stream": True,
            "temperature": 0.4,
        }
        headers = {"Authorization": f"Bearer {settings.CHAT_API_KEY}"}

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(60.0, connect=10.0)) as client:
                async with client.stream(
                    "POST",
                    f"{settings.CHAT_API_BASE_URL}/chat/completions",
                    json=payload,
                    headers=headers,
                ) as response:
                    if response.status_code >= 400:
                        body = await response.aread()
                        raise ChatServiceError(
                            f"Chat completion failed with status {response.status_code}: {body[:200]!r}"
                        )
                    async for line in response.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        data = line[len("data: "):]
                        if data == "[DONE]":
                            break
                        try:
                            chunk = json.loads(data)
                        except json.JSONDecodeError:
                            continue
                        choices = chunk.get("choices") or []
                        delta = choices[0].get("delta", {}).get("content") if choices else None
                        if delta:
                            yield delta
        except httpx.HTTPError as e:
            raise ChatServiceError(f"Chat completion request failed: {e}") from e

    @staticmethod
    async def stream_events(
        message: str,
        trip_context: TripContext,
        on_failure: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> AsyncIterator[str]:
        """
        Server-sent events for the client: content chunks, an optional
        parsed expense, then [DONE]. Upstream failures become an error event
        and run on_failure.
        """
        full_content = ""
        try:
            async for delta in ChatService.stream_completion(build_messages(message, trip_context)):
                full_content += delta
                yield sse_event({"content": delta})
        except ChatServiceError as e:
            logger.error(f"Chat stream failed: {e}")
            if on_failure:
                await on_failure()
            yield sse_event({"error": "Sorry, I had trouble processing that. Please try again."})
        else:
            logger.debug(f"Assistant reply: {strip_expense_block(full_content)[:200]!r}")
            expense = extract_expense(full_content)
            if expense:
                yield sse_event({"expense": expense})
        yield sse_event("[DONE]")
