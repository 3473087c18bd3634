"""Route variant sources.

A variant source turns an origin/destination pair into a small set of
labelled route alternatives (fastest, safest, economical, balanced). The
simulated source below stands in for a real optimizer; anything implementing
:class:`RouteVariantSource` can replace it without touching the assignment
workflow.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from ...config import settings
from ...models.domain import RouteVariant, VariantKey

logger = logging.getLogger(__name__)

VariantMode = Literal["basic", "extended"]

ROUTE_ARROW = "→"

CARGO_RISK_FACTORS: dict[str, float] = {
    "electronics": 0.8,
    "perishable": 0.5,
    "furniture": 0.3,
    "clothing": 0.2,
    "machinery": 0.7,
}
DEFAULT_RISK_FACTOR = 0.5


def base_risk_factor(cargo_type: Optional[str]) -> float:
    """Cargo-type risk factor shared by every variant of a request."""
    if not cargo_type:
        return DEFAULT_RISK_FACTOR
    return CARGO_RISK_FACTORS.get(cargo_type.strip().lower(), DEFAULT_RISK_FACTOR)


def validate_locations(origin: Optional[str], destination: Optional[str]) -> tuple[str, str]:
    """Return stripped origin/destination or raise ValueError when either is blank."""
    origin_value = (origin or "").strip()
    destination_value = (destination or "").strip()
    missing = [
        label
        for label, value in (("origin", origin_value), ("destination", destination_value))
        if not value
    ]
    if missing:
        raise ValueError(f"Missing required location(s): {', '.join(missing)}.")
    return origin_value, destination_value


class RouteVariantSource(ABC):
    """Contract for anything that produces route variants."""

    @abstractmethod
    def generate(
        self,
        *,
        origin: str,
        destination: str,
        stops: Sequence[str] = (),
        cargo_type: Optional[str] = None,
        mode: VariantMode = "basic",
    ) -> dict[str, RouteVariant]:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class _Range:
    base: float
    spread: int

    def sample(self, rng: random.Random) -> float:
        if self.spread <= 0:
            return self.base
        return self.base + rng.randrange(self.spread)


@dataclass(frozen=True, slots=True)
class VariantProfile:
    key: VariantKey
    name: str
    description: str
    risk_coefficient: float
    distance_km: _Range
    duration_hours: _Range
    fuel_liters: _Range
    cost_inr: _Range
    via: str
    extended_via: str
    waypoints: tuple[str, ...]
    risk_area_labels: tuple[str, ...]
    extended_risk_area_labels: tuple[str, ...]
    badge_text: str
    icon: str
    directions: tuple[str, ...]
    extended_directions: tuple[str, ...]


# Directions use "{origin}"/"{destination}" placeholders.
VARIANT_PROFILES: dict[VariantKey, VariantProfile] = {
    VariantKey.FASTEST: VariantProfile(
        key=VariantKey.FASTEST,
        name="Fastest Route",
        description="Optimized for minimum travel time",
        risk_coefficient=1.0,
        distance_km=_Range(100, 50),
        duration_hours=_Range(2, 2),
        fuel_liters=_Range(15, 10),
        cost_inr=_Range(5000, 1000),
        via="Highway",
        extended_via="Highway",
        waypoints=(),
        risk_area_labels=("Highway (High theft risk)",),
        extended_risk_area_labels=("Highway (High theft risk)", "Toll Plaza (Medium risk at night)"),
        badge_text="Fastest",
        icon="Clock",
        directions=("Start from {origin}", "Take the highway", "Arrive at {destination}"),
        extended_directions=(
            "Start from {origin}",
            "Take the main highway entrance",
            "Continue straight on the highway for 80km",
            "Take exit towards {destination}",
            "Arrive at {destination}",
        ),
    ),
    VariantKey.SAFEST: VariantProfile(
        key=VariantKey.SAFEST,
        name="Safest Route",
        description="AI-optimized for theft prevention",
        risk_coefficient=0.4,
        distance_km=_Range(130, 30),
        duration_hours=_Range(3, 2),
        fuel_liters=_Range(18, 10),
        cost_inr=_Range(6000, 1000),
        via="Alternate Route",
        extended_via="Police Checkpoints",
        waypoints=("Police Checkpoint", "Secure Rest Area"),
        risk_area_labels=("Checkpoint approach (Low theft risk)",),
        extended_risk_area_labels=("Checkpoint approach (Low theft risk)",),
        badge_text="Safest",
        icon="Shield",
        directions=(
            "Start from {origin}",
            "Take the safer alternate route",
            "Pass through security checkpoint",
            "Arrive at {destination}",
        ),
        extended_directions=(
            "Start from {origin}",
            "Take the secondary road towards the police checkpoint",
            "Pass through the police checkpoint (security verification)",
            "Continue to the secure rest area",
            "Take the monitored route with CCTV coverage",
            "Arrive at {destination}",
        ),
    ),
    VariantKey.ECONOMICAL: VariantProfile(
        key=VariantKey.ECONOMICAL,
        name="Economical Route",
        description="Optimized for fuel efficiency",
        risk_coefficient=0.6,
        distance_km=_Range(120, 20),
        duration_hours=_Range(3, 1),
        fuel_liters=_Range(12, 5),
        cost_inr=_Range(4500, 800),
        via="Secondary Roads",
        extended_via="Secondary Roads",
        waypoints=(),
        risk_area_labels=("Secondary Roads (Medium theft risk)",),
        extended_risk_area_labels=("Secondary Roads (Medium theft risk)",),
        badge_text="Economical",
        icon="RouteIcon",
        directions=("Start from {origin}", "Take the secondary roads", "Arrive at {destination}"),
        extended_directions=(
            "Start from {origin}",
            "Take the fuel-efficient route via secondary roads",
            "Maintain constant speed of 60-70 km/h for optimal fuel consumption",
            "Avoid steep inclines where possible",
            "Arrive at {destination}",
        ),
    ),
    VariantKey.BALANCED: VariantProfile(
        key=VariantKey.BALANCED,
        name="Balanced Route",
        description="Good balance of safety and speed",
        risk_coefficient=0.5,
        distance_km=_Range(115, 25),
        duration_hours=_Range(2.5, 1),
        fuel_liters=_Range(14, 7),
        cost_inr=_Range(5200, 900),
        via="Mixed Roads",
        extended_via="Mixed Roads",
        waypoints=("Toll Plaza",),
        risk_area_labels=("Toll Plaza (Medium risk at night)",),
        extended_risk_area_labels=("Toll Plaza (Medium risk at night)",),
        badge_text="Balanced",
        icon="MapPin",
        directions=("Start from {origin}", "Take the mixed roads", "Arrive at {destination}"),
        extended_directions=(
            "Start from {origin}",
            "Take the main road for 30km",
            "Pass through the toll plaza",
            "Continue on the regional highway",
            "Take the direct route to avoid city traffic",
            "Arrive at {destination}",
        ),
    ),
}

BASIC_VARIANTS: tuple[VariantKey, ...] = (VariantKey.FASTEST, VariantKey.SAFEST)
EXTENDED_VARIANTS: tuple[VariantKey, ...] = (
    VariantKey.FASTEST,
    VariantKey.SAFEST,
    VariantKey.ECONOMICAL,
    VariantKey.BALANCED,
)


class SimulatedVariantSource(RouteVariantSource):
    """Randomized stand-in for a routing backend.

    Metrics get bounded jitter; risk does not, so the ordering of risk scores
    across variants depends only on the per-variant coefficients.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        risk_area_threshold: float | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.risk_area_threshold = (
            risk_area_threshold if risk_area_threshold is not None else settings.risk_area_threshold
        )

    def generate(
        self,
        *,
        origin: str,
        destination: str,
        stops: Sequence[str] = (),
        cargo_type: Optional[str] = None,
        mode: VariantMode = "basic",
    ) -> dict[str, RouteVariant]:
        origin, destination = validate_locations(origin, destination)
        clean_stops = [stop.strip() for stop in stops if stop and stop.strip()]
        base_risk = base_risk_factor(cargo_type)
        keys = EXTENDED_VARIANTS if mode == "extended" else BASIC_VARIANTS

        variants = {
            key.value: self._build_variant(
                VARIANT_PROFILES[key],
                origin=origin,
                destination=destination,
                stops=clean_stops,
                base_risk=base_risk,
                extended=mode == "extended",
            )
            for key in keys
        }
        logger.debug(
            f"Simulated {len(variants)} route variants {origin} -> {destination} "
            f"(cargo={cargo_type!r}, base_risk={base_risk})"
        )
        return variants

    def _build_variant(
        self,
        profile: VariantProfile,
        *,
        origin: str,
        destination: str,
        stops: list[str],
        base_risk: float,
        extended: bool,
    ) -> RouteVariant:
        risk_score = round(min(1.0, base_risk * profile.risk_coefficient), 3)
        labels = profile.extended_risk_area_labels if extended else profile.risk_area_labels
        risk_areas = list(labels) if risk_score > self.risk_area_threshold else []

        via = profile.extended_via if extended else profile.via
        path = f" {ROUTE_ARROW} ".join([origin, *stops, via, destination])

        templates = profile.extended_directions if extended else profile.directions
        directions = [line.format(origin=origin, destination=destination) for line in templates]
        if stops:
            directions[1:1] = [f"Stop at {stop}" for stop in stops]

        return RouteVariant(
            key=profile.key.value,
            name=profile.name,
            description=profile.description,
            distance_km=profile.distance_km.sample(self.rng),
            duration_hours=profile.duration_hours.sample(self.rng),
            fuel_liters=profile.fuel_liters.sample(self.rng),
            cost_estimate=profile.cost_inr.sample(self.rng) if extended else None,
            risk_score=risk_score,
            path=path,
            risk_areas=risk_areas,
            directions=directions,
            waypoints=list(profile.waypoints) if extended else [],
            badge_text=profile.badge_text,
            icon=profile.icon,
        )
