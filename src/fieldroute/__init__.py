"""Field survey route optimization and geofence service."""
