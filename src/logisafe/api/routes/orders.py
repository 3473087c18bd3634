"""Order and driver endpoints."""

from __future__ import annotations

from typing import List, Literal

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.domain import Session
from ...schemas.orders import (
    AssignmentRecordModel,
    DriverLocationModel,
    DriverLocationsResponse,
    DriverLocationUpdate,
    DriverLocationWriteResponse,
    DriverModel,
    DriverSummaryModel,
    OrderCreateRequest,
    OrderModel,
    OrderStatusUpdate,
    OrderWriteResponse,
)
from ...services.orders import driver_locations
from ...services.orders import service as orders_service
from ...services.orders.drivers import driver_to_model, list_drivers
from ..deps import get_session, raise_for_service_error

router = APIRouter(tags=["orders"])


@router.get("/drivers", response_model=List[DriverModel], status_code=status.HTTP_200_OK)
def drivers(session: Session = Depends(get_session)) -> List[DriverModel]:
    """Static fleet roster with availability."""
    return [driver_to_model(driver) for driver in list_drivers()]


def _location_model(location) -> DriverLocationModel:
    return DriverLocationModel(
        driver_id=location.driver_id,
        latitude=location.latitude,
        longitude=location.longitude,
        updated_at=location.updated_at,
    )


@router.get("/drivers/locations", response_model=DriverLocationsResponse, status_code=status.HTTP_200_OK)
def locations(session: Session = Depends(get_session)) -> DriverLocationsResponse:
    """Last reported driver positions."""
    try:
        found = driver_locations.list_driver_locations(session)
    except Exception as exc:
        raise_for_service_error(exc, "load driver locations")
    return DriverLocationsResponse(drivers=[_location_model(location) for location in found])


@router.post("/drivers/locations", response_model=DriverLocationWriteResponse, status_code=status.HTTP_200_OK)
def report_location(
    payload: DriverLocationUpdate,
    session: Session = Depends(get_session),
) -> DriverLocationWriteResponse:
    try:
        location, persisted = driver_locations.update_driver_location(
            session, payload.driver_id, payload.latitude, payload.longitude
        )
    except Exception as exc:
        raise_for_service_error(exc, "update driver location")
    return DriverLocationWriteResponse(location=_location_model(location), persisted=persisted)


@router.get("/drivers/me/summary", response_model=DriverSummaryModel, status_code=status.HTTP_200_OK)
def my_summary(session: Session = Depends(get_session)) -> DriverSummaryModel:
    try:
        return orders_service.driver_summary(session)
    except Exception as exc:
        raise_for_service_error(exc, "load driver summary")


@router.post("/orders", response_model=OrderWriteResponse, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreateRequest, session: Session = Depends(get_session)) -> OrderWriteResponse:
    try:
        order, persisted = orders_service.create_order(session, payload)
    except Exception as exc:
        raise_for_service_error(exc, "create order")
    return OrderWriteResponse(order=orders_service.order_to_model(order), persisted=persisted)


@router.get("/orders", response_model=List[OrderModel], status_code=status.HTTP_200_OK)
def list_orders(session: Session = Depends(get_session)) -> List[OrderModel]:
    try:
        orders = orders_service.list_orders(session)
    except Exception as exc:
        raise_for_service_error(exc, "list orders")
    return [orders_service.order_to_model(order) for order in orders]


@router.get("/orders/export")
def export_orders(
    export_format: Literal["csv", "xlsx"] = Query("csv", alias="format"),
    session: Session = Depends(get_session),
) -> Response:
    try:
        content, media_type, filename = orders_service.export_orders(session, export_format)
    except Exception as exc:
        raise_for_service_error(exc, "export orders")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/orders/{order_id}", response_model=OrderModel, status_code=status.HTTP_200_OK)
def get_order(order_id: str, session: Session = Depends(get_session)) -> OrderModel:
    try:
        return orders_service.order_to_model(orders_service.get_order(session, order_id))
    except Exception as exc:
        raise_for_service_error(exc, "load order")


@router.get(
    "/orders/{order_id}/assignments",
    response_model=List[AssignmentRecordModel],
    status_code=status.HTTP_200_OK,
)
def order_assignments(order_id: str, session: Session = Depends(get_session)) -> List[AssignmentRecordModel]:
    """Assignment log of one order, oldest first."""
    try:
        records = orders_service.order_assignments(session, order_id)
    except Exception as exc:
        raise_for_service_error(exc, "load assignment log")
    return [
        AssignmentRecordModel(
            order_id=record.order_id,
            driver_id=record.driver_id,
            route=record.route,
            assigned_at=record.assigned_at,
        )
        for record in records
    ]


@router.patch("/orders/{order_id}/status", response_model=OrderWriteResponse, status_code=status.HTTP_200_OK)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
) -> OrderWriteResponse:
    try:
        order, persisted = orders_service.update_order_status(session, order_id, payload.status)
    except Exception as exc:
        raise_for_service_error(exc, "update order status")
    return OrderWriteResponse(order=orders_service.order_to_model(order), persisted=persisted)
