"""Route and truck storage backends."""

from .base import RouteStore, TruckStore
from .database import SupabaseRouteStore, SupabaseTruckStore, build_stores
from .memory import InMemoryRouteStore, InMemoryTruckStore

__all__ = [
    "InMemoryRouteStore",
    "InMemoryTruckStore",
    "RouteStore",
    "SupabaseRouteStore",
    "SupabaseTruckStore",
    "TruckStore",
    "build_stores",
]
