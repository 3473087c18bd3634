from pathlib import Path

import pytest

from logisafe.config import settings
from logisafe.db.supabase import get_supabase_client
from logisafe.services.assignment.registry import get_workflow_registry
from logisafe.services.orders.driver_locations import get_driver_location_store
from logisafe.services.orders.repository import get_order_repository
from logisafe.services.risk.feed import get_risk_feed
from logisafe.services.risk.zones import get_risk_zone_registry

_CACHED = (
    get_supabase_client,
    get_risk_zone_registry,
    get_risk_feed,
    get_order_repository,
    get_driver_location_store,
    get_workflow_registry,
)


@pytest.fixture(autouse=True)
def isolated_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Every test gets its own data root, no provider key, no database and fresh singletons."""
    monkeypatch.setattr(settings, "data_root", tmp_path)
    monkeypatch.setattr(settings, "maps_api_key", None)
    monkeypatch.setattr(settings, "supabase_url", None)
    monkeypatch.setattr(settings, "supabase_key", None)
    monkeypatch.setattr(settings, "demo_mode", False)
    for cached in _CACHED:
        cached.cache_clear()
    yield
    if get_workflow_registry.cache_info().currsize:
        get_workflow_registry().shutdown()
    for cached in _CACHED:
        cached.cache_clear()

