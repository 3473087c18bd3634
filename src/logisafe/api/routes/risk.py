"""Risk zone and live risk feed endpoints."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from ...schemas.risk import (
    NearRouteQuery,
    RiskFeedResponse,
    RiskZoneQuery,
    RiskZonesResponse,
)
from ...services.risk.feed import FeedEntry, entry_to_model, get_risk_feed
from ...services.risk.zones import get_risk_zone_registry, seed_risk_zones, zone_to_model

router = APIRouter(tags=["risk"])

# Seconds between keep-alive comments on an idle stream.
STREAM_KEEPALIVE_SECONDS = 15.0


@router.get("/risk-zones", response_model=RiskZonesResponse, status_code=status.HTTP_200_OK)
def list_risk_zones(
    include_simulated: bool = Query(
        False, alias="includeSimulated", description="Also return zones added since startup."
    ),
) -> RiskZonesResponse:
    zones = get_risk_zone_registry().zones() if include_simulated else seed_risk_zones()
    return RiskZonesResponse(risk_zones=[zone_to_model(zone) for zone in zones])


@router.post("/risk-zones", response_model=RiskZonesResponse, status_code=status.HTTP_200_OK)
def simulate_risk_zone(payload: RiskZoneQuery) -> RiskZonesResponse:
    """Generate one new zone keyed by the first known city in the query."""
    try:
        zone = get_risk_zone_registry().simulate_for_query(payload.query)
    except Exception as exc:
        logging.exception(f"Error generating risk zone: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate risk zone: {str(exc)}"
        ) from exc
    return RiskZonesResponse(risk_zones=[zone_to_model(zone)])


@router.post("/risk-zones/near-route", response_model=RiskZonesResponse, status_code=status.HTTP_200_OK)
def risk_zones_near_route(payload: NearRouteQuery) -> RiskZonesResponse:
    path = [(point.lat, point.lng) for point in payload.path]
    zones = get_risk_zone_registry().near_path(path, payload.radius_km)
    return RiskZonesResponse(risk_zones=[zone_to_model(zone) for zone in zones])


@router.get("/risk-feed", response_model=RiskFeedResponse, status_code=status.HTTP_200_OK)
def risk_feed() -> RiskFeedResponse:
    feed = get_risk_feed()
    return RiskFeedResponse(entries=[entry_to_model(entry) for entry in feed.entries()], capacity=feed.capacity)


def _sse(entry: FeedEntry) -> str:
    payload = entry_to_model(entry).model_dump(mode="json")
    return f"event: {entry.type}\ndata: {json.dumps(payload)}\n\n"


@router.get("/risk-feed/stream")
async def risk_feed_stream(request: Request) -> StreamingResponse:
    """Server-sent events: the current feed (oldest first), then every new entry as it is published."""
    feed = get_risk_feed()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[FeedEntry] = asyncio.Queue()
    unsubscribe = feed.subscribe(lambda entry: loop.call_soon_threadsafe(queue.put_nowait, entry))

    async def events():
        try:
            for entry in reversed(feed.entries()):
                yield _sse(entry)
            while not await request.is_disconnected():
                try:
                    entry = await asyncio.wait_for(queue.get(), timeout=STREAM_KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse(entry)
        finally:
            unsubscribe()

    return StreamingResponse(events(), media_type="text/event-stream")
