"""Route group exports."""

from . import health, maps, orders, risk, routes, workflows

__all__ = ["health", "maps", "orders", "risk", "routes", "workflows"]
