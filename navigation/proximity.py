#Purpose: Proximity detection for live navigation.
#Answers "what should the driver be warned about at this position":
#tracked points (POIs, hazards) inside their announce radius
#restricted zones within the zone-alert radius (distance 0 when inside)
#Each subject is announced at most once per trip: callers pass the set of keys
#already announced and these functions add to it.
#No event publishing here; the tracker wraps results into NavigationEvents.

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Set

from geometry import BBox, LatLon, distance_point_to_polygon_m, haversine_m
from zones import VehicleClass, ZoneRegistry

from .models import ProximityEvent, ProximityKind, TrackedPoint
from .policy import NavigationPolicy


def alert_key(kind: ProximityKind, subject_id: str) -> str:
    """Announce-once key; ids of different kinds never collide."""
    return f"{kind.value}:{subject_id}"


def _radius_for(point: TrackedPoint, policy: NavigationPolicy) -> float:
    if point.radius_m is not None:
        return point.radius_m
    if point.kind is ProximityKind.HAZARD:
        return policy.hazard_radius_m
    return policy.poi_radius_m


def find_point_alerts(
        location: LatLon,
        points: Iterable[TrackedPoint],
        announced: Set[str],
        policy: NavigationPolicy,
) -> List[ProximityEvent]:
    """
    Tracked points within their radius of `location` that were not announced
    yet this trip. Marks the returned ones as announced.
    """
    events: List[ProximityEvent] = []
    for point in points:
        key = alert_key(point.kind, point.id)
        if key in announced:
            continue
        distance = haversine_m(location, point.location)
        if distance < _radius_for(point, policy):
            announced.add(key)
            events.append(ProximityEvent(point.kind, point.id, distance, point.label))
    return events


def find_zone_alerts(
        location: LatLon,
        registry: ZoneRegistry,
        vehicle_class: VehicleClass,
        on_date: date,
        announced: Set[str],
        policy: NavigationPolicy,
) -> List[ProximityEvent]:
    """
    Applicable zones closer than the zone-alert radius, in registry order.
    Marks the returned ones as announced.
    """
    events: List[ProximityEvent] = []
    for zone in registry.applicable_zones(vehicle_class, on_date):
        key = alert_key(ProximityKind.ZONE, zone.id)
        if key in announced:
            continue
        #cheap reject: the centroid is far beyond the alert radius plus the zone's own extent
        if haversine_m(location, zone.centroid) > policy.zone_alert_radius_m + _extent_m(zone.bbox):
            continue
        distance = distance_point_to_polygon_m(location, zone.ring)
        if distance <= policy.zone_alert_radius_m:
            announced.add(key)
            events.append(ProximityEvent(ProximityKind.ZONE, zone.id, distance, zone.name))
    return events


def _extent_m(bbox: BBox) -> float:
    min_lat, min_lon, max_lat, max_lon = bbox
    return haversine_m((min_lat, min_lon), (max_lat, max_lon))
