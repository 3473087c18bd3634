"""Domain models for orders, drivers, route variants and risk zones."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CargoType(str, Enum):
    ELECTRONICS = "electronics"
    PERISHABLE = "perishable"
    FURNITURE = "furniture"
    CLOTHING = "clothing"
    MACHINERY = "machinery"


class OrderStatus(str, Enum):
    """Lifecycle states for a delivery order."""

    PENDING = "Pending"
    IN_TRANSIT = "In Transit"
    DELAYED = "Delayed"
    DELIVERED = "Delivered"


class DriverStatus(str, Enum):
    AVAILABLE = "Available"
    BUSY = "Busy"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class UserRole(str, Enum):
    ADMIN = "admin"
    DRIVER = "driver"


class VariantKey(str, Enum):
    FASTEST = "fastest"
    SAFEST = "safest"
    ECONOMICAL = "economical"
    BALANCED = "balanced"


@dataclass(slots=True)
class Order:
    """A delivery order as stored in the orders collection."""

    id: str
    customer_name: str
    pickup_location: str
    delivery_location: str
    cargo_type: str
    weight_kg: float
    special_instructions: str = ""
    status: OrderStatus = OrderStatus.PENDING
    driver: Optional[str] = None
    route: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    assigned_at: Optional[datetime] = None


@dataclass(slots=True)
class AssignmentRecord:
    order_id: Optional[str]
    driver_id: str
    route: str
    assigned_at: datetime


@dataclass(slots=True)
class Driver:
    """A driver and the vehicle they operate."""

    id: str
    name: str
    vehicle: str
    status: DriverStatus


@dataclass(slots=True)
class DriverLocation:
    driver_id: str
    latitude: float
    longitude: float
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class RouteVariant:
    """One labelled route alternative produced by a variant source."""

    key: str
    name: str
    description: str
    distance_km: float
    duration_hours: float
    fuel_liters: float
    cost_estimate: Optional[float]
    risk_score: float
    path: str
    risk_areas: list[str]
    directions: list[str]
    waypoints: list[str]
    badge_text: str
    icon: str


@dataclass(slots=True)
class RiskZone:
    id: str
    area: str
    location: str
    latitude: float
    longitude: float
    risk_level: RiskLevel
    description: str
    last_updated: datetime


@dataclass(slots=True)
class Session:
    """Resolved caller identity, passed explicitly to anything that gates on role."""

    role: Optional[UserRole]
    user_id: Optional[str] = None
    is_demo_mode: bool = False
    loading: bool = False

    @property
    def resolved(self) -> bool:
        return not self.loading and self.role is not None

    @property
    def is_admin(self) -> bool:
        return self.resolved and self.role == UserRole.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.resolved and self.role == UserRole.DRIVER
