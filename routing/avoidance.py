"""
Purpose: Avoidance Waypoint Planner.
What it does:
Given zones a route violated and the trip's origin/destination, computes
intermediate (non-stopping) waypoints that bias the routing collaborator
around those zones.

Per violated zone:
1. classify the zone by area -> waypoint count and outward margin
2. sample the straight origin -> destination line, project nearby samples onto
   the zone boundary -> candidate boundary points ranked by distance
3. pick the bypass side (left/right of the trip direction) by probing a point
   on each side of the centroid
4. spread the waypoints along the boundary at fixed fractions, keep the ones on
   the chosen side, push each outward from the centroid by the margin
5. backfill from the ranked candidates if the side filter left too few

The side probe is a heuristic: for strongly non-convex zones it can pick the
worse side. The retry loop in route_service re-validates every attempt.

Rule: no routing calls here. The planner only proposes waypoints.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from geometry import (
    LatLon,
    bearing_deg,
    cumulative_lengths,
    destination_from_bearing,
    extend_beyond,
    haversine_m,
    interpolate_along,
    nearest_point_on_line,
    polygon_boundary_as_line,
    side_of_line,
)
from zones import RestrictedZone, ZoneRegistry

from .policy import AvoidancePolicy, default_avoidance_policy

logger = logging.getLogger(__name__)

LEFT = 1
RIGHT = -1

WaypointKey = Tuple[float, float]


def waypoint_key(point: LatLon, precision: int) -> WaypointKey:
    return (round(point[0], precision), round(point[1], precision))


def merge_waypoints(
        existing: Sequence[LatLon],
        new: Iterable[LatLon],
        precision: int = 5,
) -> Tuple[List[LatLon], int]:
    """
    Append new waypoints that are not already present (compared on rounded
    coordinates). Existing waypoints keep their order.

    Returns:
        (merged waypoints, number of waypoints added)
    """
    merged = list(existing)
    seen: Set[WaypointKey] = {waypoint_key(point, precision) for point in merged}
    added = 0
    for point in new:
        key = waypoint_key(point, precision)
        if key in seen:
            continue
        seen.add(key)
        merged.append(point)
        added += 1
    return merged, added


def order_along_trip(waypoints: Iterable[LatLon], origin: LatLon, destination: LatLon) -> List[LatLon]:
    """Waypoints sorted by progress along the straight origin -> destination line."""
    trip_line = [origin, destination]
    return sorted(waypoints, key=lambda point: nearest_point_on_line(trip_line, point).along_m)


def _side(point: LatLon, origin: LatLon, destination: LatLon) -> int:
    return LEFT if side_of_line(point, origin, destination) > 0 else RIGHT


class AvoidancePlanner:

    def __init__(self, registry: ZoneRegistry, policy: Optional[AvoidancePolicy] = None):
        self.registry = registry
        self.policy = policy or default_avoidance_policy()

    def plan(
            self,
            violated_zone_ids: Iterable[str],
            origin: LatLon,
            destination: LatLon,
    ) -> List[LatLon]:
        """
        Waypoints for every violated zone, ordered along the trip direction and
        deduplicated. Unknown zone ids are ignored.
        """
        wanted = set(violated_zone_ids)
        waypoints: List[LatLon] = []
        for zone in self.registry:
            if zone.id not in wanted:
                continue
            zone_waypoints = self.plan_for_zone(zone, origin, destination)
            waypoints, _ = merge_waypoints(waypoints, zone_waypoints, self.policy.dedup_precision)

        return order_along_trip(waypoints, origin, destination)

    def plan_for_zone(
            self,
            zone: RestrictedZone,
            origin: LatLon,
            destination: LatLon,
    ) -> List[LatLon]:
        size = self.policy.size_class_for(zone.area_m2)
        centroid = zone.centroid
        equivalent_radius = math.sqrt(zone.area_m2 / math.pi)

        boundary = polygon_boundary_as_line(zone.ring)
        boundary_cumulative = cumulative_lengths(boundary)
        perimeter = boundary_cumulative[-1]

        candidates = self._candidate_boundary_points(
            boundary, boundary_cumulative, centroid, equivalent_radius, origin, destination
        )
        preferred = self._preferred_side(zone, centroid, equivalent_radius, size.margin_m, origin, destination)

        precision = self.policy.dedup_precision
        waypoints: List[LatLon] = []
        for fraction in size.boundary_fractions:
            boundary_point = interpolate_along(boundary, perimeter * fraction, boundary_cumulative)
            if _side(boundary_point, origin, destination) != preferred:
                continue
            waypoints, _ = merge_waypoints(
                waypoints, [extend_beyond(centroid, boundary_point, size.margin_m)], precision
            )

        #side filtering can starve the result; backfill with the closest candidates
        for boundary_point in candidates:
            if len(waypoints) >= size.waypoint_count:
                break
            waypoints, _ = merge_waypoints(
                waypoints, [extend_beyond(centroid, boundary_point, size.margin_m)], precision
            )

        logger.debug(
            "Zone %s (%s, %.0f m2): %d waypoint(s) on the %s side",
            zone.id, size.name, zone.area_m2, len(waypoints), "left" if preferred == LEFT else "right",
        )
        return waypoints[:size.waypoint_count]

    def _candidate_boundary_points(
            self,
            boundary: Sequence[LatLon],
            boundary_cumulative: Sequence[float],
            centroid: LatLon,
            equivalent_radius: float,
            origin: LatLon,
            destination: LatLon,
    ) -> List[LatLon]:
        """
        Boundary points closest to samples of the straight trip line, ranked by
        sample-to-boundary distance. Only samples near the zone are used; if
        none is near, every sample is used.
        """
        steps = max(1, int(round(1.0 / self.policy.sample_step_fraction)))
        samples = [
            (origin[0] + (destination[0] - origin[0]) * i / steps,
             origin[1] + (destination[1] - origin[1]) * i / steps)
            for i in range(steps + 1)
        ]
        reach = self.policy.sample_radius_factor * equivalent_radius
        nearby = [sample for sample in samples if haversine_m(sample, centroid) <= reach]

        ranked: List[Tuple[float, LatLon]] = []
        for sample in nearby or samples:
            position = nearest_point_on_line(boundary, sample, boundary_cumulative)
            ranked.append((position.distance_m, position.point))
        ranked.sort(key=lambda item: item[0])

        unique, _ = merge_waypoints([], (point for _, point in ranked), self.policy.dedup_precision)
        return unique

    def _preferred_side(
            self,
            zone: RestrictedZone,
            centroid: LatLon,
            equivalent_radius: float,
            margin_m: float,
            origin: LatLon,
            destination: LatLon,
    ) -> int:
        """
        Probe one point left and one right of the centroid (perpendicular to the
        trip direction). Prefer the side whose probe is outside the zone; when
        both or neither are outside, prefer the shorter detour.
        """
        heading = bearing_deg(origin, destination)
        probe_distance = equivalent_radius + margin_m
        left_probe = destination_from_bearing(centroid, probe_distance, heading - 90.0)
        right_probe = destination_from_bearing(centroid, probe_distance, heading + 90.0)

        left_outside = not zone.contains(left_probe)
        right_outside = not zone.contains(right_probe)
        if left_outside and not right_outside:
            return LEFT
        if right_outside and not left_outside:
            return RIGHT

        left_detour = haversine_m(left_probe, origin) + haversine_m(left_probe, destination)
        right_detour = haversine_m(right_probe, origin) + haversine_m(right_probe, destination)
        return LEFT if left_detour <= right_detour else RIGHT
