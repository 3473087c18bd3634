"""Live risk feed.

A capped, most-recent-first log of simulated info/warning events. New entries
are pushed to subscribers as they are published; a background ticker drives
the simulation at a fixed cadence while the application is running.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Callable, Literal, Optional

from ...config import settings
from ...models.domain import RiskZone, utcnow
from ...schemas.risk import FeedEntryModel
from ..routing.locations import random_city
from .zones import RiskZoneRegistry, get_risk_zone_registry

logger = logging.getLogger(__name__)

FeedEntryType = Literal["info", "warning", "error"]

INFO_MESSAGES = (
    "Driver D001 reports smooth traffic on Mumbai-Pune Expressway",
    "Driver D003 completed checkpoint verification near Bangalore",
    "Heavy rain expected on NH48 this evening; reduce speed",
    "Fog advisory issued for Delhi-NCR early morning routes",
    "Traffic congestion reported near Hyderabad Outer Ring Road",
    "Toll plaza queue cleared on Ahmedabad-Vadodara Expressway",
    "Driver D005 reports road works near Kolkata Eastern Bypass",
)


@dataclass(slots=True)
class FeedEntry:
    type: FeedEntryType
    message: str
    details: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)


Subscriber = Callable[[FeedEntry], None]


class RiskFeed:
    """Capped feed of risk events with push notification to subscribers."""

    def __init__(
        self,
        capacity: int | None = None,
        zone_probability: float | None = None,
        registry: RiskZoneRegistry | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.capacity = capacity or settings.risk_feed_capacity
        self.zone_probability = (
            zone_probability if zone_probability is not None else settings.risk_feed_zone_probability
        )
        self.registry = registry or get_risk_zone_registry()
        self.rng = rng or random.Random()
        self._entries: deque[FeedEntry] = deque(maxlen=self.capacity)
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def entries(self) -> list[FeedEntry]:
        """Entries ordered most recent first."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, entry: FeedEntry) -> FeedEntry:
        with self._lock:
            self._entries.appendleft(entry)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(entry)
            except Exception:
                logger.exception("Risk feed subscriber failed")
        return entry

    def tick(self) -> FeedEntry:
        """Produce one simulated event."""
        if self.rng.random() < self.zone_probability:
            city = random_city(self.rng)
            try:
                zone = self.registry.simulate_for_query(f"Risk update for {city}", self.rng)
            except Exception as e:
                logger.error(f"Risk zone simulation failed for {city}: {e}")
                return self.publish(FeedEntry(type="error", message=f"Risk zone update for {city} failed"))
            return self.publish(
                FeedEntry(
                    type="warning",
                    message=f"New {zone.risk_level.value.lower()} risk zone detected: {zone.area}",
                    details=zone.description,
                )
            )
        return self.publish(FeedEntry(type="info", message=self.rng.choice(INFO_MESSAGES)))


class RiskFeedTicker:
    """Ticks a feed at most once per ``interval`` seconds on the running event loop."""

    def __init__(self, feed: RiskFeed, interval: float | None = None) -> None:
        self.feed = feed
        self.interval = interval or settings.risk_feed_interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Risk feed ticker started (every {self.interval:.1f}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Risk feed ticker stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.feed.tick()


@lru_cache()
def get_risk_feed() -> RiskFeed:
    return RiskFeed()


def record_route_risk(
    query: str,
    registry: RiskZoneRegistry | None = None,
    feed: RiskFeed | None = None,
) -> RiskZone:
    """Refresh risk zones for a newly assigned route and announce it on the feed."""
    zone = (registry or get_risk_zone_registry()).simulate_for_query(query)
    (feed or get_risk_feed()).publish(
        FeedEntry(
            type="warning",
            message=f"Risk zones refreshed for assigned route near {zone.location}",
            details=f"{zone.area}: {zone.description}",
        )
    )
    return zone


def entry_to_model(entry: FeedEntry) -> FeedEntryModel:
    return FeedEntryModel(
        type=entry.type,
        message=entry.message,
        details=entry.details,
        timestamp=entry.timestamp,
    )
