"""Route group exports."""

from . import analytics, health, routes, trucks, ws

__all__ = ["analytics", "health", "routes", "trucks", "ws"]
