"""Database persistence for orders, driver assignments and driver locations."""

from __future__ import annotations

import logging
from typing import Any

from ..config import settings
from ..db.supabase import get_supabase_client


def database_configured() -> bool:
    return get_supabase_client() is not None


def get_orders_from_database() -> list[dict[str, Any]] | None:
    """Retrieve every order document from the database.

    Returns:
        List of order documents, or None when the database is not configured or
        the query failed (callers fall back to the file store).
    """
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = supabase.table(settings.orders_collection).select("*").order("createdAt").execute()
        orders = response.data or []
        logging.info(f"Retrieved {len(orders)} orders from database")
        return orders
    except Exception as e:
        logging.warning(f"Failed to retrieve orders from database: {e}")
        return None


def save_order_to_database(document: dict[str, Any]) -> bool:
    """Insert or update one order document keyed by ``id``.

    Returns:
        True if the database accepted the write.
    """
    supabase = get_supabase_client()
    if not supabase:
        return False

    try:
        supabase.table(settings.orders_collection).upsert(document, on_conflict="id").execute()
        return True
    except Exception as e:
        logging.error(f"Failed to save order {document.get('id')} to database: {e}")
        return False


def get_assignments_from_database(order_id: str | None = None) -> list[dict[str, Any]] | None:
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        query = supabase.table(settings.assignments_collection).select("*")
        if order_id:
            query = query.eq("orderId", order_id)
        response = query.order("assignedAt").execute()
        return response.data or []
    except Exception as e:
        logging.warning(f"Failed to retrieve assignments from database: {e}")
        return None


def append_assignment_to_database(document: dict[str, Any]) -> bool:
    supabase = get_supabase_client()
    if not supabase:
        return False

    try:
        supabase.table(settings.assignments_collection).insert(document).execute()
        return True
    except Exception as e:
        logging.error(f"Failed to append assignment for order {document.get('orderId')}: {e}")
        return False


def get_driver_locations_from_database() -> list[dict[str, Any]] | None:
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = supabase.table(settings.drivers_collection).select("*").execute()
        return response.data or []
    except Exception as e:
        logging.warning(f"Failed to retrieve driver locations from database: {e}")
        return None


def save_driver_location_to_database(document: dict[str, Any]) -> bool:
    supabase = get_supabase_client()
    if not supabase:
        return False

    try:
        supabase.table(settings.drivers_collection).upsert(document, on_conflict="id").execute()
        return True
    except Exception as e:
        logging.error(f"Failed to save location of driver {document.get('id')}: {e}")
        return False


def check_database() -> dict[str, Any]:
    """Report whether the database is configured and both collections are reachable."""
    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": (
                "Supabase not configured. Set LOGISAFE_SUPABASE_URL and LOGISAFE_SUPABASE_KEY "
                "environment variables. Orders are stored in the local file store."
            ),
        }

    tables: dict[str, bool] = {}
    for table in (settings.orders_collection, settings.assignments_collection, settings.drivers_collection):
        try:
            supabase.table(table).select("id", count="exact").limit(1).execute()
            tables[table] = True
        except Exception as e:
            logging.warning(f"Database table '{table}' not reachable: {e}")
            tables[table] = False

    connected = all(tables.values())
    return {
        "configured": True,
        "connected": connected,
        "tables": tables,
        "message": "Database connected." if connected else "Database connected but some tables are missing.",
    }
