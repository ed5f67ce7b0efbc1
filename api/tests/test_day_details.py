from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select

from app.config import settings
from app.models.day_detail import DayDetail
from app.routers import day_details
from app.services.geocoding import GeocodingResult, GeocodingService


@pytest.fixture
def geocoder(monkeypatch):
    lookups = []

    async def fake_geocode(destination):
        lookups.append(destination)
        return GeocodingResult(lat="40.4168", lon="-3.7038", display_name="Madrid, Spain")

    monkeypatch.setattr(GeocodingService, "geocode", fake_geocode)
    return lookups


async def test_upsert_updates_day_in_place(client, make_trip, geocoder):
    trip = await make_trip()
    url = f"/api/trips/{trip['id']}/day-details"

    created = (await client.post(url, json={"dayNumber": 2, "destination": "Madrid"})).json()
    updated = (await client.post(url, json={"dayNumber": 2, "notes": "Prado in the morning"})).json()

    assert updated["id"] == created["id"]
    assert updated["destination"] == "Madrid"
    assert updated["notes"] == "Prado in the morning"

    all_days = (await client.get(f"/api/trips/{trip['id']}/all-day-details")).json()
    assert len(all_days) == 1


async def test_destination_without_coordinates_is_geocoded(client, make_trip, geocoder):
    trip = await make_trip()

    day = (await client.post(
        f"/api/trips/{trip['id']}/day-details", json={"dayNumber": 1, "destination": "Madrid"}
    )).json()

    assert geocoder == ["Madrid"]
    assert Decimal(day["latitude"]) == Decimal("40.4168")
    assert Decimal(day["longitude"]) == Decimal("-3.7038")


async def test_explicit_coordinates_skip_geocoding(client, make_trip, geocoder):
    trip = await make_trip()

    day = (await client.post(
        f"/api/trips/{trip['id']}/day-details",
        json={"dayNumber": 1, "destination": "Sevilla", "latitude": "37.3891", "longitude": "-5.9845"},
    )).json()

    assert geocoder == []
    assert Decimal(day["latitude"]) == Decimal("37.3891")


async def test_failed_geocoding_still_saves_day(client, make_trip, monkeypatch):
    async def no_match(destination):
        return None

    monkeypatch.setattr(GeocodingService, "geocode", no_match)
    trip = await make_trip()

    response = await client.post(
        f"/api/trips/{trip['id']}/day-details", json={"dayNumber": 3, "destination": "Nowhere Town"}
    )

    assert response.status_code == 200
    assert response.json()["latitude"] is None


async def test_day_details_are_ordered_and_missing_day_is_null(client, make_trip):
    trip = await make_trip()
    url = f"/api/trips/{trip['id']}/day-details"
    await client.post(url, json={"dayNumber": 3, "notes": "Train to Valencia"})
    await client.post(url, json={"dayNumber": 1, "notes": "Arrive", "stayingInSameCity": True})

    all_days = (await client.get(f"/api/trips/{trip['id']}/all-day-details")).json()
    missing = await client.get(f"/api/trips/{trip['id']}/day-details/2")

    assert [d["dayNumber"] for d in all_days] == [1, 3]
    assert all_days[0]["stayingInSameCity"] is True
    assert missing.status_code == 200
    assert missing.json() is None


async def test_unreadable_geocoder_response_still_saves_day(client, make_trip, monkeypatch):
    monkeypatch.setattr(settings, "LOCATIONIQ_API_KEY", "pk.test")

    async def maintenance_page(self, url, **kwargs):
        return httpx.Response(200, text="<html>maintenance</html>", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", maintenance_page)
    trip = await make_trip()

    response = await client.post(
        f"/api/trips/{trip['id']}/day-details", json={"dayNumber": 1, "destination": "Madrid"}
    )

    assert response.status_code == 200
    day = response.json()
    assert day["destination"] == "Madrid"
    assert day["latitude"] is None


async def test_day_created_by_a_concurrent_request_is_updated(client, make_trip, session_factory, monkeypatch):
    trip = await make_trip()
    first = await client.post(f"/api/trips/{trip['id']}/day-details", json={"dayNumber": 2, "notes": "Museum"})
    assert first.status_code == 200

    original_find_day = day_details._find_day
    calls = []

    async def miss_once(db, trip_id, day_number):
        calls.append(day_number)
        if len(calls) == 1:
            return None
        return await original_find_day(db, trip_id, day_number)

    monkeypatch.setattr(day_details, "_find_day", miss_once)

    response = await client.post(
        f"/api/trips/{trip['id']}/day-details", json={"dayNumber": 2, "notes": "Market"}
    )

    assert response.status_code == 200
    assert response.json()["id"] == first.json()["id"]
    assert response.json()["notes"] == "Market"
    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(DayDetail))
        assert count == 1
