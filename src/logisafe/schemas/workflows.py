"""Assignment workflow schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .routing import LatLng, RouteVariantModel


class WorkflowCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")


class WorkflowSelectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    variant_key: str = Field(..., alias="variantKey")


class WorkflowAssignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_id: Optional[str] = Field(default=None, alias="driverId")


class RouteOverlayModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    variant_key: str = Field(..., alias="variantKey")
    path: List[LatLng]
    color: str
    weight: int
    opacity: float
    selected: bool
    dashed: bool
    source: Literal["provider", "synthetic"]
    fallback_reason: Optional[str] = Field(default=None, alias="fallbackReason")
    canvas_points: Optional[List[List[float]]] = Field(default=None, alias="canvasPoints")


class RiskMarkerModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    zone_id: str = Field(..., alias="zoneId")
    area: str
    risk_level: Literal["Low", "Medium", "High"] = Field(..., alias="riskLevel")
    coordinates: LatLng
    color: str
    radius_m: int = Field(..., alias="radiusMeters")
    canvas_point: Optional[List[float]] = Field(default=None, alias="canvasPoint")
    canvas_radius: Optional[float] = Field(default=None, alias="canvasRadius")


class MapSceneModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["map", "canvas"]
    center: LatLng
    overlays: List[RouteOverlayModel]
    risk_markers: List[RiskMarkerModel] = Field(default_factory=list, alias="riskMarkers")


class WorkflowModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    state: Literal["Idle", "VariantsGenerated", "VariantSelected", "DriverAssigning", "Assigned"]
    order_id: Optional[str] = Field(default=None, alias="orderId")
    variants: Dict[str, RouteVariantModel] = Field(default_factory=dict)
    selected_variant: Optional[str] = Field(default=None, alias="selectedVariant")
    instructions: List[str] = Field(default_factory=list)
    map: Optional[MapSceneModel] = None
    assigned_driver: Optional[str] = Field(default=None, alias="assignedDriver")
    assigned_at: Optional[datetime] = Field(default=None, alias="assignedAt")


class AssignmentOutcomeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["recorded", "recorded_not_persisted"]
    order_id: Optional[str] = Field(default=None, alias="orderId")
    driver_id: str = Field(..., alias="driverId")
    route: str
    assigned_at: datetime = Field(..., alias="assignedAt")
    duplicate: bool = False
    workflow: WorkflowModel
