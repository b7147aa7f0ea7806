"""GPS simulation and live tracking sessions."""

from .events import EventSink
from .gps import GPSSimulator
from .sessions import TrackingService, TrackingSession

__all__ = ["EventSink", "GPSSimulator", "TrackingService", "TrackingSession"]
