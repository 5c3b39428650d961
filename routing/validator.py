#Purpose: Route Validator.
#Checks a route geometry against every restricted zone for one vehicle class.
#Typical responsibilities:
#skip zones outside their active date range (inclusive on both ends)
#skip zones listed in exclude_zone_ids (e.g. zones already handled via safe points)
#skip zones whose allow-list contains the vehicle class
#polygon test for everything else
#Output: a ValidationResult listing the violated zones in registry order.
#The reference date is always passed in, never read from the clock here.

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence, Union

from geometry import LatLon, line_intersects_polygon
from zones import VehicleClass, ZoneRegistry

from .models import RouteGeometry, ValidationResult, ViolatedZone


class RouteValidator:
    """
    Stateless apart from the (immutable) registry it reads, so one instance can
    serve concurrent callers.
    """

    def __init__(self, registry: ZoneRegistry):
        self.registry = registry

    def validate(
            self,
            route: Union[RouteGeometry, Sequence[LatLon]],
            vehicle_class: VehicleClass,
            *,
            on_date: date,
            exclude_zone_ids: Iterable[str] = (),
    ) -> ValidationResult:
        """
        Validate a route for a vehicle class on a given date.

        Args:
            route: RouteGeometry or a sequence of (lat, lon) vertices (>= 2)
            vehicle_class: the vehicle's class tag
            on_date: the day the trip happens (zones active on that day apply)
            exclude_zone_ids: zones to ignore

        Returns:
            ValidationResult, valid iff no zone is violated.

        Raises:
            InvalidRouteError: the route has fewer than 2 vertices.
        """
        geometry = RouteGeometry.of(route)

        violated: List[ViolatedZone] = []
        for zone in self.registry.applicable_zones(vehicle_class, on_date, exclude_zone_ids):
            if line_intersects_polygon(geometry.coordinates, zone.ring):
                violated.append(
                    ViolatedZone(
                        zone_id=zone.id,
                        name=zone.name,
                        allowed_classes=zone.allowed_classes,
                    )
                )

        return ValidationResult(valid=not violated, violated_zones=tuple(violated))
