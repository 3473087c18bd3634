"""Supabase client for the order store."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.info("Supabase credentials not configured; using the local file store")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Example usage patterns:
#
# from .db.supabase import get_supabase_client
#
# # Upsert an order
# get_supabase_client().table('orders').upsert({
#     'id': 'ORD-0001',
#     'customerName': 'Acme Traders',
#     'status': 'Pending',
# }, on_conflict='id').execute()
#
# # Assignments for one order
# get_supabase_client().table('driverAssignments') \
#     .select('*') \
#     .eq('orderId', 'ORD-0001') \
#     .order('assignedAt') \
#     .execute()
