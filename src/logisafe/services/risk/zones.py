"""Risk zone seed data, simulation and the in-process zone registry."""

from __future__ import annotations

import logging
import random
import threading
import uuid
from datetime import datetime
from functools import lru_cache
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import RiskLevel, RiskZone, utcnow
from ...schemas.risk import RiskZoneModel
from ...schemas.routing import LatLng
from ..geospatial import distance_to_path_km
from ..routing.locations import CITY_COORDINATES, DEFAULT_CITY, find_city_in

logger = logging.getLogger(__name__)

_SEED = (
    ("1", "NH48 Highway", "Mumbai-Pune Expressway", RiskLevel.HIGH, (19.033, 73.0297),
     "Multiple theft incidents reported between 2-5 PM. Cargo types: electronics, machinery."),
    ("2", "Outer Ring Road", "Bangalore", RiskLevel.MEDIUM, (13.0827, 77.5877),
     "Incidents reported during night hours. Recommend avoiding after 10 PM."),
    ("3", "NH44 Junction", "Hyderabad-Vijayawada", RiskLevel.HIGH, (17.385, 78.4867),
     "High-value cargo thefts reported. Police checkpoints recommended."),
    ("4", "Industrial Zone", "Delhi-NCR", RiskLevel.MEDIUM, (28.6139, 77.209),
     "Incidents during early morning hours. Increased security recommended."),
    ("5", "Eastern Bypass", "Kolkata", RiskLevel.LOW, (22.5726, 88.3639),
     "Minor incidents reported. General caution advised."),
)

SIMULATED_DESCRIPTIONS = (
    "Recent cargo theft reported in this area. Exercise caution.",
    "Multiple incidents of vehicle hijacking in the past month.",
    "Suspicious activity reported by drivers. Avoid night travel.",
    "Police checkpoint recommended due to recent incidents.",
    "Low visibility area with history of theft attempts.",
)


def seed_risk_zones(now: datetime | None = None) -> list[RiskZone]:
    timestamp = now or utcnow()
    return [
        RiskZone(
            id=zone_id,
            area=area,
            location=location,
            latitude=lat,
            longitude=lng,
            risk_level=level,
            description=description,
            last_updated=timestamp,
        )
        for zone_id, area, location, level, (lat, lng), description in _SEED
    ]


def simulate_risk_zone(query: Optional[str], rng: random.Random | None = None) -> RiskZone:
    """Generate one zone keyed by the first known city in ``query`` (Mumbai otherwise)."""
    chooser = rng or random
    city = find_city_in(query) or DEFAULT_CITY
    lat, lng = CITY_COORDINATES[city]
    return RiskZone(
        id=uuid.uuid4().hex,
        area=f"{city} Outskirts",
        location=city,
        latitude=lat,
        longitude=lng,
        risk_level=chooser.choice(list(RiskLevel)),
        description=chooser.choice(SIMULATED_DESCRIPTIONS),
        last_updated=utcnow(),
    )


class RiskZoneRegistry:
    """Append-only collection of known risk zones, seeded with the static list."""

    def __init__(self, zones: Sequence[RiskZone] | None = None) -> None:
        self._lock = threading.Lock()
        self._zones: list[RiskZone] = list(zones) if zones is not None else seed_risk_zones()

    def zones(self) -> list[RiskZone]:
        with self._lock:
            return list(self._zones)

    def append(self, zone: RiskZone) -> RiskZone:
        with self._lock:
            self._zones.append(zone)
        logger.info(f"Risk zone added: {zone.area} ({zone.risk_level.value})")
        return zone

    def simulate_for_query(self, query: Optional[str], rng: random.Random | None = None) -> RiskZone:
        return self.append(simulate_risk_zone(query, rng))

    def near_path(
        self,
        path: Sequence[tuple[float, float]],
        radius_km: float | None = None,
    ) -> list[RiskZone]:
        """Zones whose centre lies within ``radius_km`` of the path."""
        if not path:
            return []
        radius = radius_km if radius_km is not None else settings.risk_zone_radius_km
        return [
            zone
            for zone in self.zones()
            if distance_to_path_km(zone.latitude, zone.longitude, path) <= radius
        ]


@lru_cache()
def get_risk_zone_registry() -> RiskZoneRegistry:
    return RiskZoneRegistry()


def zone_to_model(zone: RiskZone) -> RiskZoneModel:
    return RiskZoneModel(
        id=zone.id,
        area=zone.area,
        location=zone.location,
        risk_level=zone.risk_level.value,
        coordinates=LatLng(lat=zone.latitude, lng=zone.longitude),
        description=zone.description,
        last_updated=zone.last_updated,
    )
