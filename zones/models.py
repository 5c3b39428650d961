"""
Purpose: Domain models for restricted circulation zones.
What it does:
- Defines RestrictedZone (id, name, boundary ring, allowed vehicle classes,
  active date range)
- Defines the known vehicle class tags

Vehicle classes are opaque tags compared by equality; no ordering between
classes is assumed.

Rule: No routing calls, no loading logic. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from functools import cached_property
from typing import FrozenSet, Tuple, Union

from geometry import (
    BBox,
    LatLon,
    bounding_box,
    open_ring,
    point_in_polygon,
    polygon_area_m2,
    polygon_centroid,
)


class VehicleTag(str, Enum):
    """
    Environmental label tags shipped with the bundled zone data.
    Any other string is accepted wherever a vehicle class is expected.
    """
    CERO = "CERO"
    ECO = "ECO"
    C = "C"
    B = "B"
    NONE = "NONE"


VehicleClass = Union[str, VehicleTag]


def class_tag(vehicle_class: VehicleClass) -> str:
    """Normalise a vehicle class to its plain string tag."""
    if isinstance(vehicle_class, Enum):
        return str(vehicle_class.value)
    return str(vehicle_class)


@dataclass(frozen=True)
class RestrictedZone:
    """
    A polygon inside which vehicle classes outside `allowed_classes` may not
    circulate between `active_from` and `active_to` (both inclusive).

    The boundary is assumed simple with at least 3 vertices; this is checked
    once by the loader, not at runtime.
    """
    id: str
    name: str
    boundary: Tuple[LatLon, ...]
    allowed_classes: FrozenSet[str]
    active_from: date
    active_to: date

    def is_active_on(self, day: date) -> bool:
        return self.active_from <= day <= self.active_to

    def allows(self, vehicle_class: VehicleClass) -> bool:
        return class_tag(vehicle_class) in self.allowed_classes

    def restricts(self, vehicle_class: VehicleClass, day: date) -> bool:
        """True if the zone is active on `day` and forbids the class."""
        return self.is_active_on(day) and not self.allows(vehicle_class)

    def contains(self, point: LatLon) -> bool:
        return point_in_polygon(point, self.boundary)

    @cached_property
    def ring(self) -> Tuple[LatLon, ...]:
        return tuple(open_ring(self.boundary))

    @cached_property
    def bbox(self) -> BBox:
        return bounding_box(self.ring)

    @cached_property
    def centroid(self) -> LatLon:
        return polygon_centroid(self.ring)

    @cached_property
    def area_m2(self) -> float:
        return polygon_area_m2(self.ring)
