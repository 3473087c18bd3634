import csv
import io
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

import pytest
from openpyxl import load_workbook

from logisafe.models.domain import AssignmentRecord, CargoType, OrderStatus, Session, UserRole
from logisafe.persistence.filesystem import FileStorage
from logisafe.schemas.orders import OrderCreateRequest
from logisafe.services.orders import service as orders_service
from logisafe.services.orders.driver_locations import (
    DriverLocationStore,
    list_driver_locations,
    update_driver_location,
)
from logisafe.services.orders.drivers import available_drivers, get_driver, list_drivers
from logisafe.services.orders.repository import OrderRepository

ADMIN = Session(role=UserRole.ADMIN, user_id="admin-1")


def driver(driver_id: str) -> Session:
    return Session(role=UserRole.DRIVER, user_id=driver_id)


@pytest.fixture
def repository(tmp_path: Path) -> OrderRepository:
    return OrderRepository(storage=FileStorage(root=tmp_path), use_database=False)


def _request(customer: str = "Acme Traders", cargo: CargoType = CargoType.MACHINERY) -> OrderCreateRequest:
    return OrderCreateRequest(
        customerName=customer,
        pickupLocation="Mumbai",
        deliveryLocation="Delhi",
        cargoType=cargo,
        weightKg=500,
        specialInstructions="Fragile",
    )


def _assign(repository: OrderRepository, order_id: str, driver_id: str, status=OrderStatus.IN_TRANSIT) -> None:
    order = repository.get(order_id)
    order.driver = driver_id
    order.route = "safest"
    order.status = status
    repository.save(order)


def test_driver_roster() -> None:
    assert [d.id for d in list_drivers()] == ["D001", "D002", "D003", "D004", "D005"]
    assert {d.id for d in available_drivers()} == {"D002", "D004", "D005"}
    assert get_driver("d002").name == "Amit Singh"
    assert get_driver("D999") is None
    assert get_driver(None) is None


def test_create_order_generates_sequential_ids(repository) -> None:
    first, persisted = orders_service.create_order(ADMIN, _request(), repository)
    second, _ = orders_service.create_order(ADMIN, _request("Globex"), repository)

    assert persisted
    assert (first.id, second.id) == ("ORD-0001", "ORD-0002")
    assert first.status == OrderStatus.PENDING
    assert first.driver is None and first.route is None and first.assigned_at is None
    assert first.cargo_type == "machinery"


class SlowStorage(FileStorage):
    def write_collection(self, collection, documents):
        time.sleep(0.01)
        return super().write_collection(collection, documents)


def test_concurrent_creates_get_distinct_ids(tmp_path: Path) -> None:
    repository = OrderRepository(storage=SlowStorage(root=tmp_path), use_database=False)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda i: orders_service.create_order(ADMIN, _request(f"C{i}"), repository), range(8)))

    ids = [order.id for order, _ in results]
    assert len(set(ids)) == 8
    assert len(repository.list_orders()) == 8


def test_only_admins_create_orders(repository) -> None:
    with pytest.raises(PermissionError):
        orders_service.create_order(driver("D002"), _request(), repository)
    with pytest.raises(PermissionError):
        orders_service.create_order(Session(role=None), _request(), repository)


def test_blank_locations_are_rejected() -> None:
    with pytest.raises(ValueError):
        OrderCreateRequest(
            customerName="Acme", pickupLocation="  ", deliveryLocation="Pune", cargoType="furniture", weightKg=1
        )
    with pytest.raises(ValueError):
        OrderCreateRequest(
            customerName="Acme", pickupLocation="Mumbai", deliveryLocation="Pune", cargoType="plutonium", weightKg=1
        )


def test_drivers_only_list_their_own_orders(repository) -> None:
    for name in ("A", "B", "C"):
        orders_service.create_order(ADMIN, _request(name), repository)
    _assign(repository, "ORD-0002", "D002")

    assert len(orders_service.list_orders(ADMIN, repository)) == 3
    assert [o.id for o in orders_service.list_orders(driver("D002"), repository)] == ["ORD-0002"]
    assert orders_service.list_orders(driver("D004"), repository) == []


def test_get_order_checks_ownership(repository) -> None:
    orders_service.create_order(ADMIN, _request(), repository)

    with pytest.raises(LookupError):
        orders_service.get_order(ADMIN, "ORD-4242", repository)
    with pytest.raises(PermissionError):
        orders_service.get_order(driver("D002"), "ORD-0001", repository)

    _assign(repository, "ORD-0001", "D002")
    assert orders_service.get_order(driver("D002"), "ORD-0001", repository).driver == "D002"


def test_driver_progress_transitions(repository) -> None:
    orders_service.create_order(ADMIN, _request(), repository)
    _assign(repository, "ORD-0001", "D002")

    order, persisted = orders_service.update_order_status(
        driver("D002"), "ORD-0001", OrderStatus.DELAYED, repository
    )
    assert persisted
    assert order.status == OrderStatus.DELAYED

    order, _ = orders_service.update_order_status(driver("D002"), "ORD-0001", OrderStatus.DELIVERED, repository)
    assert order.status == OrderStatus.DELIVERED

    with pytest.raises(ValueError):
        orders_service.update_order_status(driver("D002"), "ORD-0001", OrderStatus.PENDING, repository)
    with pytest.raises(PermissionError):
        orders_service.update_order_status(driver("D004"), "ORD-0001", OrderStatus.DELAYED, repository)


def test_order_assignments_follow_order_visibility(repository) -> None:
    orders_service.create_order(ADMIN, _request(), repository)
    for driver_id, hour in (("D004", 11), ("D002", 10)):
        repository.append_assignment(
            AssignmentRecord(
                order_id="ORD-0001",
                driver_id=driver_id,
                route="safest",
                assigned_at=datetime(2024, 5, 1, hour, 0, tzinfo=timezone.utc),
            )
        )

    records = orders_service.order_assignments(ADMIN, "ORD-0001", repository)

    assert [r.driver_id for r in records] == ["D002", "D004"]
    with pytest.raises(PermissionError):
        orders_service.order_assignments(driver("D002"), "ORD-0001", repository)
    with pytest.raises(LookupError):
        orders_service.order_assignments(ADMIN, "ORD-0099", repository)


def test_admin_may_set_any_status(repository) -> None:
    orders_service.create_order(ADMIN, _request(), repository)

    order, _ = orders_service.update_order_status(ADMIN, "ORD-0001", OrderStatus.DELIVERED, repository)

    assert order.status == OrderStatus.DELIVERED


def test_driver_summary_counts(repository) -> None:
    for name in ("A", "B", "C", "D"):
        orders_service.create_order(ADMIN, _request(name), repository)
    _assign(repository, "ORD-0001", "D002")
    _assign(repository, "ORD-0002", "D002", OrderStatus.DELAYED)
    _assign(repository, "ORD-0003", "D002", OrderStatus.DELIVERED)
    _assign(repository, "ORD-0004", "D002", OrderStatus.PENDING)

    summary = orders_service.driver_summary(driver("D002"), repository=repository)

    assert (summary.active, summary.upcoming, summary.completed) == (2, 1, 1)
    assert len(summary.orders) == 4
    with pytest.raises(PermissionError):
        orders_service.driver_summary(driver("D004"), "D002", repository)
    with pytest.raises(ValueError):
        orders_service.driver_summary(Session(role=UserRole.ADMIN), repository=repository)


def test_export_csv(repository) -> None:
    orders_service.create_order(ADMIN, _request("Acme, Ltd."), repository)

    content, media_type, filename = orders_service.export_orders(ADMIN, "csv", repository)

    assert media_type == "text/csv"
    assert filename.endswith(".csv")
    rows = list(csv.reader(io.StringIO(content.decode("utf-8"))))
    assert rows[0][:3] == ["Order ID", "Customer", "Pickup"]
    assert rows[1][:2] == ["ORD-0001", "Acme, Ltd."]
    assert rows[1][6] == "Pending"


def test_export_xlsx(repository) -> None:
    orders_service.create_order(ADMIN, _request(), repository)
    orders_service.create_order(ADMIN, _request("Globex"), repository)

    content, media_type, filename = orders_service.export_orders(ADMIN, "xlsx", repository)

    assert filename.endswith(".xlsx")
    assert "spreadsheetml" in media_type
    sheet = load_workbook(io.BytesIO(content)).active
    values = list(sheet.iter_rows(values_only=True))
    assert values[0][0] == "Order ID"
    assert [row[0] for row in values[1:]] == ["ORD-0001", "ORD-0002"]


def test_export_rejects_unknown_format(repository) -> None:
    with pytest.raises(ValueError):
        orders_service.export_orders(ADMIN, "pdf", repository)


def test_driver_locations_round_trip(tmp_path: Path) -> None:
    store = DriverLocationStore(storage=FileStorage(root=tmp_path), use_database=False)

    location, persisted = update_driver_location(driver("D002"), None, 19.07, 72.88, store)
    update_driver_location(ADMIN, "d004", 28.61, 77.21, store)
    update_driver_location(driver("D002"), "D002", 18.52, 73.86, store)

    assert persisted
    assert location.driver_id == "D002"
    fleet = list_driver_locations(ADMIN, store)
    assert [(loc.driver_id, loc.latitude) for loc in fleet] == [("D002", 18.52), ("D004", 28.61)]
    assert [loc.driver_id for loc in list_driver_locations(driver("D004"), store)] == ["D004"]
    assert list_driver_locations(driver("D002"), store)[0].updated_at is not None


def test_driver_location_permissions(tmp_path: Path) -> None:
    store = DriverLocationStore(storage=FileStorage(root=tmp_path), use_database=False)

    with pytest.raises(PermissionError):
        update_driver_location(driver("D002"), "D004", 19.0, 72.0, store)
    with pytest.raises(ValueError):
        update_driver_location(ADMIN, "D999", 19.0, 72.0, store)
    with pytest.raises(PermissionError):
        list_driver_locations(Session(role=None), store)


def test_driver_locations_skip_invalid_documents(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    storage.write_collection("drivers", [{"id": "D005", "latitude": 22.57, "longitude": 88.36}, {"id": "D001"}])

    locations = DriverLocationStore(storage=storage, use_database=False).list()

    assert [loc.driver_id for loc in locations] == ["D005"]
    assert locations[0].updated_at is None
