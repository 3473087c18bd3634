"""Order creation, listing, progress updates and export."""

from __future__ import annotations

import logging
from typing import Literal

from ...models.domain import AssignmentRecord, Order, OrderStatus, Session, utcnow
from ...schemas.orders import DriverSummaryModel, OrderCreateRequest, OrderModel
from ..access import require_admin, require_resolved
from ..outputs.formatter import orders_to_csv, orders_to_xlsx
from .repository import OrderRepository, get_order_repository

logger = logging.getLogger(__name__)

ExportFormat = Literal["csv", "xlsx"]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Progress a driver may report on their own order.
DRIVER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.IN_TRANSIT: frozenset({OrderStatus.DELAYED, OrderStatus.DELIVERED}),
    OrderStatus.DELAYED: frozenset({OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED}),
}


def order_to_model(order: Order) -> OrderModel:
    return OrderModel(
        id=order.id,
        customer_name=order.customer_name,
        pickup_location=order.pickup_location,
        delivery_location=order.delivery_location,
        cargo_type=order.cargo_type,
        weight_kg=order.weight_kg,
        special_instructions=order.special_instructions,
        status=order.status,
        driver=order.driver,
        route=order.route,
        created_at=order.created_at,
        assigned_at=order.assigned_at,
    )


def create_order(
    session: Session,
    payload: OrderCreateRequest,
    repository: OrderRepository | None = None,
) -> tuple[Order, bool]:
    require_admin(session, "create orders")
    repo = repository or get_order_repository()
    order, persisted = repo.create(
        lambda order_id: Order(
            id=order_id,
            customer_name=payload.customer_name.strip(),
            pickup_location=payload.pickup_location,
            delivery_location=payload.delivery_location,
            cargo_type=payload.cargo_type.value,
            weight_kg=payload.weight_kg,
            special_instructions=payload.special_instructions,
            status=OrderStatus.PENDING,
            created_at=utcnow(),
        )
    )
    if persisted:
        logger.info(f"Order {order.id} created for {order.customer_name}")
    else:
        logger.warning(f"Order {order.id} created but not durably persisted")
    return order, persisted


def list_orders(session: Session, repository: OrderRepository | None = None) -> list[Order]:
    """Admins see every order; drivers only the orders assigned to them."""
    require_resolved(session)
    orders = (repository or get_order_repository()).list_orders()
    if session.is_admin:
        return orders
    return [order for order in orders if order.driver and order.driver == session.user_id]


def get_order(session: Session, order_id: str, repository: OrderRepository | None = None) -> Order:
    require_resolved(session)
    order = (repository or get_order_repository()).get(order_id)
    if order is None:
        raise LookupError(f"Order {order_id} not found")
    if session.is_driver and order.driver != session.user_id:
        raise PermissionError(f"Order {order_id} is not assigned to you")
    return order


def order_assignments(
    session: Session,
    order_id: str,
    repository: OrderRepository | None = None,
) -> list[AssignmentRecord]:
    repo = repository or get_order_repository()
    get_order(session, order_id, repo)
    return sorted(repo.assignments(order_id), key=lambda record: record.assigned_at)


def update_order_status(
    session: Session,
    order_id: str,
    status: OrderStatus,
    repository: OrderRepository | None = None,
) -> tuple[Order, bool]:
    repo = repository or get_order_repository()
    order = get_order(session, order_id, repo)
    if session.is_driver:
        allowed = DRIVER_TRANSITIONS.get(order.status, frozenset())
        if status not in allowed:
            raise ValueError(f"Cannot move order {order_id} from {order.status.value} to {status.value}")
    order.status = status
    persisted = repo.save(order)
    logger.info(f"Order {order_id} status set to {status.value} by {session.role.value}")
    return order, persisted


def driver_summary(
    session: Session,
    driver_id: str | None = None,
    repository: OrderRepository | None = None,
) -> DriverSummaryModel:
    """Active / upcoming / completed counts for a driver's dashboard."""
    require_resolved(session)
    target = driver_id or session.user_id
    if not target:
        raise ValueError("Driver id is required")
    if session.is_driver and target != session.user_id:
        raise PermissionError("Drivers may only view their own summary")
    orders = [order for order in (repository or get_order_repository()).list_orders() if order.driver == target]
    return DriverSummaryModel(
        driver_id=target,
        active=sum(1 for o in orders if o.status in (OrderStatus.IN_TRANSIT, OrderStatus.DELAYED)),
        upcoming=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        completed=sum(1 for o in orders if o.status == OrderStatus.DELIVERED),
        orders=[order_to_model(order) for order in orders],
    )


def export_orders(
    session: Session,
    export_format: ExportFormat = "csv",
    repository: OrderRepository | None = None,
) -> tuple[bytes, str, str]:
    """Return ``(content, media_type, filename)`` for the orders visible to the session."""
    orders = list_orders(session, repository)
    stamp = utcnow().strftime("%Y%m%dT%H%M%SZ")
    if export_format == "csv":
        return orders_to_csv(orders).encode("utf-8"), "text/csv", f"orders_{stamp}.csv"
    if export_format == "xlsx":
        return orders_to_xlsx(orders), XLSX_MEDIA_TYPE, f"orders_{stamp}.xlsx"
    raise ValueError(f"Unsupported export format: {export_format}")
