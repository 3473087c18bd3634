"""Static fleet roster."""

from __future__ import annotations

from typing import Optional

from ...models.domain import Driver, DriverStatus
from ...schemas.orders import DriverModel

DRIVERS: tuple[Driver, ...] = (
    Driver(id="D001", name="Rajesh Kumar", vehicle="TRK-001", status=DriverStatus.BUSY),
    Driver(id="D002", name="Amit Singh", vehicle="TRK-002", status=DriverStatus.AVAILABLE),
    Driver(id="D003", name="Priya Sharma", vehicle="TRK-003", status=DriverStatus.BUSY),
    Driver(id="D004", name="Suresh Reddy", vehicle="TRK-004", status=DriverStatus.AVAILABLE),
    Driver(id="D005", name="Ananya Das", vehicle="TRK-005", status=DriverStatus.AVAILABLE),
)

_BY_ID = {driver.id: driver for driver in DRIVERS}


def list_drivers() -> list[Driver]:
    return list(DRIVERS)


def get_driver(driver_id: Optional[str]) -> Optional[Driver]:
    if not driver_id:
        return None
    return _BY_ID.get(driver_id.strip().upper())


def available_drivers() -> list[Driver]:
    return [driver for driver in DRIVERS if driver.status == DriverStatus.AVAILABLE]


def driver_to_model(driver: Driver) -> DriverModel:
    return DriverModel(id=driver.id, name=driver.name, vehicle=driver.vehicle, status=driver.status.value)
