"""Route group exports."""

from . import geofence, health, routes

__all__ = ["geofence", "health", "routes"]
