"""
Location Search Endpoints
"""
from fastapi import APIRouter, HTTPException, Query
import logging

import httpx

from app.services.geocoding import GeocodingService, GeocodingError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/autocomplete")
async def autocomplete_location(
    q: str = Query("", max_length=200, description="Partially typed place name"),
    limit: int = Query(5, ge=1, le=10),
):
    """
    Place suggestions for the destination picker
    """
    try:
        return await GeocodingService.autocomplete(q, limit=limit)
    except (GeocodingError, httpx.HTTPError) as e:
        logger.error(f"Location autocomplete failed for '{q}': {e}")
        raise HTTPException(status_code=502, detail="Location search is unavailable")
