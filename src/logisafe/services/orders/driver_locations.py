"""Last reported driver positions, kept in the ``drivers`` collection."""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Any, Optional

from ...config import settings
from ...models.domain import DriverLocation, Session, utcnow
from ...persistence import database
from ...persistence.filesystem import FileStorage
from ..access import require_resolved
from .drivers import get_driver
from .repository import parse_timestamp

logger = logging.getLogger(__name__)


def location_to_document(location: DriverLocation) -> dict[str, Any]:
    return {
        "id": location.driver_id,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "updatedAt": location.updated_at.isoformat() if location.updated_at else None,
    }


def location_from_document(document: dict[str, Any]) -> DriverLocation:
    return DriverLocation(
        driver_id=str(document["id"]),
        latitude=float(document["latitude"]),
        longitude=float(document["longitude"]),
        updated_at=parse_timestamp(document.get("updatedAt")),
    )


class DriverLocationStore:
    """Reads go to the store on every call; positions are written by the drivers' devices."""

    def __init__(
        self,
        storage: FileStorage | None = None,
        use_database: bool | None = None,
        collection: str | None = None,
    ) -> None:
        self.storage = storage or FileStorage()
        self.use_database = database.database_configured() if use_database is None else use_database
        self.collection = collection or settings.drivers_collection
        self._lock = threading.Lock()

    def _documents(self) -> list[dict[str, Any]]:
        if self.use_database:
            documents = database.get_driver_locations_from_database()
            if documents is not None:
                return documents
            logger.warning(f"Falling back to file store for '{self.collection}'")
        try:
            return self.storage.read_collection(self.collection)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read '{self.collection}' from file store: {e}")
            return []

    def list(self) -> list[DriverLocation]:
        with self._lock:
            documents = self._documents()
        locations = []
        for document in documents:
            try:
                locations.append(location_from_document(document))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping invalid driver location document: {e}")
        return sorted(locations, key=lambda location: location.driver_id)

    def save(self, location: DriverLocation) -> bool:
        document = location_to_document(location)
        with self._lock:
            if self.use_database and database.save_driver_location_to_database(document):
                return True
            try:
                documents = self.storage.read_collection(self.collection)
            except (OSError, ValueError) as e:
                logger.error(f"Rewriting '{self.collection}' after failed read: {e}")
                documents = []
            documents = [item for item in documents if item.get("id") != location.driver_id]
            documents.append(document)
            return self.storage.write_collection(self.collection, documents)


@lru_cache()
def get_driver_location_store() -> DriverLocationStore:
    return DriverLocationStore()


def list_driver_locations(session: Session, store: DriverLocationStore | None = None) -> list[DriverLocation]:
    """Admins see the whole fleet; drivers only their own position."""
    require_resolved(session)
    locations = (store or get_driver_location_store()).list()
    if session.is_admin:
        return locations
    return [location for location in locations if location.driver_id == session.user_id]


def update_driver_location(
    session: Session,
    driver_id: Optional[str],
    latitude: float,
    longitude: float,
    store: DriverLocationStore | None = None,
) -> tuple[DriverLocation, bool]:
    require_resolved(session)
    driver = get_driver(driver_id or session.user_id)
    if driver is None:
        raise ValueError(f"Unknown driver: {driver_id or session.user_id}")
    if session.is_driver and driver.id != session.user_id:
        raise PermissionError("Drivers may only report their own location")

    location = DriverLocation(driver_id=driver.id, latitude=latitude, longitude=longitude, updated_at=utcnow())
    persisted = (store or get_driver_location_store()).save(location)
    if not persisted:
        logger.warning(f"Location of driver {driver.id} not durably persisted")
    return location, persisted
