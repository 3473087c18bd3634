"""Static city-to-coordinate lookup used whenever live geocoding is unavailable."""

from __future__ import annotations

import random
from typing import Optional

DEFAULT_CITY = "Mumbai"

# (lat, lng)
CITY_COORDINATES: dict[str, tuple[float, float]] = {
    "Mumbai": (19.076, 72.8777),
    "Delhi": (28.6139, 77.209),
    "Bangalore": (12.9716, 77.5946),
    "Hyderabad": (17.385, 78.4867),
    "Chennai": (13.0827, 80.2707),
    "Kolkata": (22.5726, 88.3639),
    "Pune": (18.5204, 73.8567),
    "Jaipur": (26.9124, 75.7873),
    "Ahmedabad": (23.0225, 72.5714),
    "Surat": (21.1702, 72.8311),
}

_LOOKUP = {name.casefold(): name for name in CITY_COORDINATES}


def canonical_city(name: Optional[str]) -> Optional[str]:
    """Return the table spelling of ``name`` or None when it is not a known city."""
    if not name:
        return None
    return _LOOKUP.get(name.strip().casefold())


def resolve_coordinates(name: Optional[str]) -> tuple[float, float]:
    """Resolve a location name to (lat, lng), defaulting to Mumbai for unknown names."""
    city = canonical_city(name)
    if city is None and name:
        # "Mumbai warehouse", "Pune, MH" and similar free text
        city = find_city_in(name)
    return CITY_COORDINATES[city or DEFAULT_CITY]


def find_city_in(text: Optional[str]) -> Optional[str]:
    """Return the first known city mentioned in ``text`` (table order), if any."""
    if not text:
        return None
    folded = text.casefold()
    for city in CITY_COORDINATES:
        if city.casefold() in folded:
            return city
    return None


def random_city(rng: random.Random | None = None) -> str:
    return (rng or random).choice(list(CITY_COORDINATES))
