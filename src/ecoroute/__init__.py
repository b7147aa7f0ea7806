"""EcoRoute: traffic-aware delivery route optimization and live tracking."""

__version__ = "0.1.0"
