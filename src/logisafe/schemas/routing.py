"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RouteOptimizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_location: Optional[str] = Field(default=None, alias="startLocation")
    end_location: Optional[str] = Field(default=None, alias="endLocation")
    stops: List[str] = Field(default_factory=list, max_length=5, description="Intermediate delivery stops.")
    cargo_type: Optional[str] = Field(default=None, alias="cargoType")
    use_gemini: bool = Field(
        default=False,
        alias="useGemini",
        description="Request the extended variant set (fastest, safest, economical, balanced).",
    )


class RouteVariantModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    distance: str
    duration: str
    risk_score: float = Field(..., alias="riskScore")
    path: str
    risk_areas: List[str] = Field(default_factory=list, alias="riskAreas")
    fuel_consumption: str = Field(..., alias="fuelConsumption")
    cost_estimate: Optional[str] = Field(default=None, alias="costEstimate")
    waypoints: List[str] = Field(default_factory=list)
    badge_text: str = Field(..., alias="badgeText")
    icon: str
    directions: List[str] = Field(default_factory=list)
    distance_km: float = Field(..., alias="distanceKm")
    duration_hours: float = Field(..., alias="durationHours")
    fuel_liters: float = Field(..., alias="fuelLiters")


class LatLng(BaseModel):
    lat: float
    lng: float


class DirectionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    origin: Optional[str] = None
    destination: Optional[str] = None
    waypoints: List[str] = Field(default_factory=list)
    travel_mode: str = Field(default="driving", alias="travelMode")
    variant_key: Optional[str] = Field(
        default=None,
        alias="variantKey",
        description="Variant the path is drawn for; only shifts the synthetic midpoint.",
    )


class DirectionsResponse(BaseModel):
    """Provider-shaped directions payload plus provenance of the path."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    status: str
    routes: List[dict]
    source: Literal["provider", "synthetic"]
    fallback_reason: Optional[str] = Field(default=None, alias="fallbackReason")
    path: List[LatLng]
