"""
Purpose: Immutable, ordered set of restricted zones for the process lifetime.
What it does:
- keeps zones in registry order (the order they were loaded)
- answers "which zones restrict this vehicle class on this date"
- answers "which of those contain this point"

A reload builds a new registry; an existing one is never mutated, so it can be
shared between concurrent callers without locking.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from geometry import LatLon, point_in_bbox

from .models import RestrictedZone, VehicleClass


class ZoneRegistry:
    """
    Ordered, read-only collection of RestrictedZone objects.
    """

    def __init__(self, zones: Iterable[RestrictedZone] = ()):
        self._zones: Tuple[RestrictedZone, ...] = tuple(zones)
        self._by_id: Dict[str, RestrictedZone] = {}
        for zone in self._zones:
            if zone.id in self._by_id:
                raise ValueError(f"Duplicate zone id in registry: {zone.id}")
            self._by_id[zone.id] = zone

    def __iter__(self) -> Iterator[RestrictedZone]:
        return iter(self._zones)

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, zone_id: object) -> bool:
        return zone_id in self._by_id

    def __repr__(self) -> str:
        return f"ZoneRegistry({[zone.id for zone in self._zones]})"

    @property
    def zones(self) -> Tuple[RestrictedZone, ...]:
        return self._zones

    def get(self, zone_id: str) -> Optional[RestrictedZone]:
        return self._by_id.get(zone_id)

    def applicable_zones(
            self,
            vehicle_class: VehicleClass,
            on_date: date,
            exclude_zone_ids: Iterable[str] = (),
    ) -> List[RestrictedZone]:
        """
        Zones active on `on_date` that forbid `vehicle_class`, in registry order,
        minus the excluded ids.
        """
        excluded = set(exclude_zone_ids)
        return [
            zone for zone in self._zones
            if zone.id not in excluded and zone.restricts(vehicle_class, on_date)
        ]

    def zones_containing(
            self,
            point: LatLon,
            vehicle_class: VehicleClass,
            on_date: date,
    ) -> List[RestrictedZone]:
        """Applicable zones whose polygon contains the point, in registry order."""
        return [
            zone for zone in self.applicable_zones(vehicle_class, on_date)
            if point_in_bbox(point, zone.bbox) and zone.contains(point)
        ]

    def without(self, *zone_ids: str) -> "ZoneRegistry":
        """A new registry with the given zones removed."""
        removed = set(zone_ids)
        return ZoneRegistry(zone for zone in self._zones if zone.id not in removed)
