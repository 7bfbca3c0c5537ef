#!/usr/bin/env python3
"""Manual check that the configured directions service answers optimized route requests."""

import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from fieldroute.config import settings
from fieldroute.models.domain import Waypoint
from fieldroute.services.routing.coordinator import DirectionsCoordinator
from fieldroute.services.routing.directions_client import DirectionsClient, check_health
from fieldroute.services.routing.models import RouteSource


def main() -> int:
    print("=" * 60)
    print("Directions Connection Check")
    print("=" * 60)
    print(f"Endpoint: {settings.directions_base_url}")
    print(f"Mode: {settings.directions_mode}, timeout: {settings.directions_timeout_seconds}s")
    if not settings.directions_api_key:
        print("[WARN] FIELDROUTE_DIRECTIONS_API_KEY is not set; most providers will reject the request")

    print("\n1. Health probe...")
    if not check_health():
        print("   [ERROR] Directions service is not responding")
        return 1
    print("   [OK] Directions service answered")

    print("\n2. Optimized loop over four waypoints...")
    waypoints = [
        Waypoint(10.118542, 76.248265, "Gate"),
        Waypoint(10.119800, 76.250100, "North corner"),
        Waypoint(10.117300, 76.251000, "East corner"),
        Waypoint(10.116900, 76.247900, "South corner"),
    ]
    with DirectionsCoordinator(DirectionsClient()) as coordinator:
        result = coordinator.compute_display_route_blocking("check", waypoints)

    print(f"   Source: {result.source.value} (degraded={result.degraded})")
    print(f"   Order: {[waypoint.label for waypoint in result.ordered_waypoints]}")
    print(f"   Path points: {len(result.path_polyline)}")
    print(f"   Distance: {result.total_distance_meters:.0f} m, duration: {result.total_duration_seconds:.0f} s")
    return 0 if result.source is RouteSource.EXTERNAL else 1


if __name__ == "__main__":
    sys.exit(main())
