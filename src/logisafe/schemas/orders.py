"""Order, driver and assignment schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.domain import CargoType, OrderStatus


class OrderCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_name: str = Field(..., min_length=1, alias="customerName")
    pickup_location: str = Field(..., alias="pickupLocation")
    delivery_location: str = Field(..., alias="deliveryLocation")
    cargo_type: CargoType = Field(..., alias="cargoType")
    weight_kg: float = Field(..., ge=0.0, alias="weightKg")
    special_instructions: str = Field(default="", alias="specialInstructions")

    @field_validator("pickup_location", "delivery_location")
    @classmethod
    def validate_location(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("location must not be blank")
        return value.strip()


class OrderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    customer_name: str = Field(..., alias="customerName")
    pickup_location: str = Field(..., alias="pickupLocation")
    delivery_location: str = Field(..., alias="deliveryLocation")
    cargo_type: str = Field(..., alias="cargoType")
    weight_kg: float = Field(..., alias="weightKg")
    special_instructions: str = Field(default="", alias="specialInstructions")
    status: OrderStatus
    driver: Optional[str] = None
    route: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")
    assigned_at: Optional[datetime] = Field(default=None, alias="assignedAt")


class OrderWriteResponse(BaseModel):
    """An order after a write, and whether the write reached durable storage."""

    order: OrderModel
    persisted: bool


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class DriverModel(BaseModel):
    id: str
    name: str
    vehicle: str
    status: Literal["Available", "Busy"]


class DriverSummaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_id: str = Field(..., alias="driverId")
    active: int
    upcoming: int
    completed: int
    orders: List[OrderModel]


class AssignmentRecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")
    driver_id: str = Field(..., alias="driverId")
    route: str
    assigned_at: datetime = Field(..., alias="assignedAt")


class DriverLocationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_id: str = Field(..., alias="driverId")
    latitude: float
    longitude: float
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class DriverLocationsResponse(BaseModel):
    drivers: List[DriverLocationModel]


class DriverLocationUpdate(BaseModel):
    """Position report; ``driverId`` defaults to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    driver_id: Optional[str] = Field(default=None, alias="driverId")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class DriverLocationWriteResponse(BaseModel):
    location: DriverLocationModel
    persisted: bool
