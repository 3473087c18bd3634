"""Risk zone and risk feed schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .routing import LatLng


class RiskZoneModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    area: str
    location: str
    risk_level: Literal["Low", "Medium", "High"] = Field(..., alias="riskLevel")
    coordinates: LatLng
    description: str
    last_updated: datetime = Field(..., alias="lastUpdated")


class RiskZonesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    risk_zones: List[RiskZoneModel] = Field(default_factory=list, alias="riskZones")


class RiskZoneQuery(BaseModel):
    query: str = Field(default="", description="Free text; the first known city mentioned keys the new zone.")


class NearRouteQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: List[LatLng] = Field(..., min_length=1)
    radius_km: Optional[float] = Field(default=None, ge=0.0, alias="radiusKm")


class FeedEntryModel(BaseModel):
    type: Literal["info", "warning", "error"]
    message: str
    details: Optional[str] = None
    timestamp: datetime


class RiskFeedResponse(BaseModel):
    entries: List[FeedEntryModel]
    capacity: int
