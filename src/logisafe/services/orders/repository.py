"""Order and assignment store with a database-first approach, falling back to the file store."""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Optional

from ...config import settings
from ...models.domain import AssignmentRecord, Order, OrderStatus
from ...persistence import database
from ...persistence.filesystem import FileStorage

logger = logging.getLogger(__name__)

_ORDER_ID_PATTERN = re.compile(r"^ORD-(\d+)$")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def order_to_document(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "customerName": order.customer_name,
        "pickupLocation": order.pickup_location,
        "deliveryLocation": order.delivery_location,
        "cargoType": order.cargo_type,
        "weightKg": order.weight_kg,
        "specialInstructions": order.special_instructions,
        "status": order.status.value,
        "driver": order.driver,
        "route": order.route,
        "createdAt": order.created_at.isoformat(),
        "assignedAt": order.assigned_at.isoformat() if order.assigned_at else None,
    }


def order_from_document(document: dict[str, Any]) -> Order:
    return Order(
        id=str(document["id"]),
        customer_name=str(document.get("customerName", "")),
        pickup_location=str(document.get("pickupLocation", "")),
        delivery_location=str(document.get("deliveryLocation", "")),
        cargo_type=str(document.get("cargoType", "")),
        weight_kg=float(document.get("weightKg") or 0.0),
        special_instructions=str(document.get("specialInstructions") or ""),
        status=OrderStatus(document.get("status") or OrderStatus.PENDING.value),
        driver=document.get("driver"),
        route=document.get("route"),
        created_at=parse_timestamp(document.get("createdAt")) or datetime.min.replace(tzinfo=timezone.utc),
        assigned_at=parse_timestamp(document.get("assignedAt")),
    )


def assignment_to_document(record: AssignmentRecord) -> dict[str, Any]:
    return {
        "orderId": record.order_id,
        "driverId": record.driver_id,
        "route": record.route,
        "assignedAt": record.assigned_at.isoformat(),
    }


def assignment_from_document(document: dict[str, Any]) -> AssignmentRecord:
    return AssignmentRecord(
        order_id=document.get("orderId"),
        driver_id=str(document["driverId"]),
        route=str(document["route"]),
        assigned_at=parse_timestamp(document["assignedAt"]),
    )


class OrderRepository:
    """In-process view of the orders and assignment collections.

    Reads come from the database when it is configured and reachable, otherwise
    from the JSON file store. Every write updates the in-process view first and
    then reports whether the durable write succeeded.
    """

    def __init__(
        self,
        storage: FileStorage | None = None,
        use_database: bool | None = None,
        orders_collection: str | None = None,
        assignments_collection: str | None = None,
    ) -> None:
        self.storage = storage or FileStorage()
        self.use_database = database.database_configured() if use_database is None else use_database
        self.orders_collection = orders_collection or settings.orders_collection
        self.assignments_collection = assignments_collection or settings.assignments_collection
        self._lock = threading.RLock()
        self._orders: dict[str, Order] | None = None
        self._assignments: list[AssignmentRecord] | None = None

    def _load_documents(self, collection: str, from_database) -> list[dict[str, Any]]:
        if self.use_database:
            documents = from_database()
            if documents is not None:
                return documents
            logger.warning(f"Falling back to file store for '{collection}'")
        try:
            return self.storage.read_collection(collection)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read '{collection}' from file store: {e}")
            return []

    def _ensure_loaded(self) -> None:
        if self._orders is not None and self._assignments is not None:
            return
        orders: dict[str, Order] = {}
        for document in self._load_documents(self.orders_collection, database.get_orders_from_database):
            try:
                order = order_from_document(document)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid order document: {e}")
                continue
            orders[order.id] = order
        assignments: list[AssignmentRecord] = []
        for document in self._load_documents(self.assignments_collection, database.get_assignments_from_database):
            try:
                assignments.append(assignment_from_document(document))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid assignment document: {e}")
        self._orders = orders
        self._assignments = assignments
        logger.info(f"Loaded {len(orders)} orders and {len(assignments)} assignments")

    def list_orders(self) -> list[Order]:
        with self._lock:
            self._ensure_loaded()
            return sorted(self._orders.values(), key=lambda order: (order.created_at, order.id))

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            self._ensure_loaded()
            return self._orders.get(order_id)

    def next_order_id(self) -> str:
        with self._lock:
            self._ensure_loaded()
            highest = 0
            for order_id in self._orders:
                match = _ORDER_ID_PATTERN.match(order_id)
                if match:
                    highest = max(highest, int(match.group(1)))
            return f"ORD-{highest + 1:04d}"

    def create(self, build: Callable[[str], Order]) -> tuple[Order, bool]:
        """Allocate the next order id, build the order with it and store it.

        The lock is held from allocation to insert so concurrent creates never
        share an id.
        """
        with self._lock:
            order = build(self.next_order_id())
            return order, self.save(order)

    def save(self, order: Order) -> bool:
        """Store ``order``; returns True only if the write reached durable storage."""
        with self._lock:
            self._ensure_loaded()
            self._orders[order.id] = order
            if self.use_database and database.save_order_to_database(order_to_document(order)):
                return True
            documents = [order_to_document(item) for item in self._orders.values()]
            return self.storage.write_collection(self.orders_collection, documents)

    def assignments(self, order_id: Optional[str] = None) -> list[AssignmentRecord]:
        with self._lock:
            self._ensure_loaded()
            if order_id is None:
                return list(self._assignments)
            return [record for record in self._assignments if record.order_id == order_id]

    def append_assignment(self, record: AssignmentRecord) -> bool:
        with self._lock:
            self._ensure_loaded()
            self._assignments.append(record)
            if self.use_database and database.append_assignment_to_database(assignment_to_document(record)):
                return True
            documents = [assignment_to_document(item) for item in self._assignments]
            return self.storage.write_collection(self.assignments_collection, documents)


@lru_cache()
def get_order_repository() -> OrderRepository:
    return OrderRepository()
