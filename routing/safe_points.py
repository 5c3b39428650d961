"""
Purpose: Safe-Point Resolver.
What it does:
Given an endpoint that lies inside a restricted zone, finds a substitute point
just outside the zone: the nearest boundary point, pushed outward (away from
the zone centroid) by a fixed margin.

Only the first applicable zone containing the point (registry order) is used.
A point outside every applicable zone resolves to None; that is the common
case, not an error.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from geometry import (
    LatLon,
    extend_beyond,
    haversine_m,
    nearest_point_on_line,
    polygon_boundary_as_line,
)
from zones import RestrictedZone, VehicleClass, ZoneRegistry

from .models import SafePoint
from .policy import AvoidancePolicy, default_avoidance_policy

logger = logging.getLogger(__name__)

#below this, the centroid is considered to sit on the boundary point itself
_MIN_ANCHOR_DISTANCE_M = 0.5


class SafePointResolver:

    def __init__(self, registry: ZoneRegistry, policy: Optional[AvoidancePolicy] = None):
        self.registry = registry
        self.policy = policy or default_avoidance_policy()

    def zone_containing(
            self,
            point: LatLon,
            vehicle_class: VehicleClass,
            *,
            on_date: date,
    ) -> Optional[RestrictedZone]:
        """First active, non-exempt zone containing the point, or None."""
        matches = self.registry.zones_containing(point, vehicle_class, on_date)
        return matches[0] if matches else None

    def resolve(
            self,
            point: LatLon,
            vehicle_class: VehicleClass,
            *,
            on_date: date,
    ) -> Optional[SafePoint]:
        """
        Nearest point just outside the zone that contains `point`.

        Returns:
            SafePoint, or None when the point is not inside any applicable zone.
        """
        zone = self.zone_containing(point, vehicle_class, on_date=on_date)
        if zone is None:
            return None

        coordinates = safe_point_outside(
            zone,
            point,
            margin_m=self.policy.safe_point_margin_m,
            max_extensions=self.policy.max_margin_extensions,
        )
        return SafePoint(
            coordinates=coordinates,
            source_zone_id=zone.id,
            zone_name=zone.name,
            distance_m=haversine_m(point, coordinates),
        )


def safe_point_outside(
        zone: RestrictedZone,
        point: LatLon,
        *,
        margin_m: float,
        max_extensions: int = 0,
) -> LatLon:
    """
    Push the boundary point nearest to `point` outward by margin_m.

    The outward direction is the bearing from the zone centroid to the boundary
    point. If the pushed point still lands inside the zone (non-convex rings),
    the margin is grown in steps of margin_m up to max_extensions times.
    """
    boundary = polygon_boundary_as_line(zone.ring)
    nearest = nearest_point_on_line(boundary, point).point

    anchor = zone.centroid
    if haversine_m(anchor, nearest) < _MIN_ANCHOR_DISTANCE_M:
        anchor = point

    candidate = extend_beyond(anchor, nearest, margin_m)
    extensions = 0
    while zone.contains(candidate) and extensions < max_extensions:
        extensions += 1
        candidate = extend_beyond(anchor, nearest, margin_m * (extensions + 1))

    if zone.contains(candidate):
        logger.warning(
            "Safe point for zone %s is still inside after %d extensions", zone.id, extensions
        )
    return candidate
