"""
Purpose: Domain models for the routing capability.
What it does:
- Defines the route shapes returned by the routing collaborator:
  RouteGeometry (polyline + cached cumulative lengths), RouteStep, RouteLeg,
  RouteCandidate
- Defines the zone-check outputs: ViolatedZone, ValidationResult, SafePoint
- Defines the planning output: PlanningStatus, PlanningOutcome

Defines enums/constants:
- PlanningStatus = VALID | VALID_ALTERNATIVE | DEGRADED

Rule: No HTTP calls, no zone rules. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import FrozenSet, Optional, Sequence, Tuple, Union

from geometry import LatLon, LinePosition, cumulative_lengths, nearest_point_on_line


class InvalidRouteError(ValueError):
    """Raised when a route with fewer than two vertices reaches validation or tracking."""
    pass


@dataclass(frozen=True)
class RouteGeometry:
    """
    Ordered (lat, lon) vertices of a travelled path.
    The cumulative length table is computed once, on first use.
    """
    coordinates: Tuple[LatLon, ...]

    def __post_init__(self):
        coordinates = tuple((float(lat), float(lon)) for lat, lon in self.coordinates)
        if len(coordinates) < 2:
            raise InvalidRouteError(
                f"A route needs at least 2 vertices, got {len(coordinates)}."
            )
        #frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "coordinates", coordinates)

    @classmethod
    def of(cls, route: Union["RouteGeometry", Sequence[LatLon]]) -> "RouteGeometry":
        if isinstance(route, RouteGeometry):
            return route
        return cls(tuple(route))

    @cached_property
    def cumulative_m(self) -> Tuple[float, ...]:
        return tuple(cumulative_lengths(self.coordinates))

    @property
    def length_m(self) -> float:
        return self.cumulative_m[-1]

    @property
    def start(self) -> LatLon:
        return self.coordinates[0]

    @property
    def end(self) -> LatLon:
        return self.coordinates[-1]

    def locate(self, point: LatLon) -> LinePosition:
        """Snap a point onto the route using the cached length table."""
        return nearest_point_on_line(self.coordinates, point, self.cumulative_m)


@dataclass(frozen=True)
class RouteStep:
    """
    One instructed segment of a route (e.g. "Turn left onto Calle Mayor").
    """
    start_point: LatLon
    end_point: LatLon
    distance_m: float
    duration_s: float
    maneuver: str
    instruction: str
    road_name: Optional[str] = None


@dataclass(frozen=True)
class RouteLeg:
    distance_m: float
    duration_s: float
    steps: Tuple[RouteStep, ...] = ()


@dataclass(frozen=True)
class RouteCandidate:
    """
    One route returned by the routing collaborator (main or alternative).
    """
    geometry: RouteGeometry
    legs: Tuple[RouteLeg, ...] = ()
    distance_m: float = 0.0
    duration_s: float = 0.0

    @property
    def steps(self) -> Tuple[RouteStep, ...]:
        return tuple(step for leg in self.legs for step in leg.steps)


@dataclass(frozen=True)
class ViolatedZone:
    zone_id: str
    name: str
    allowed_classes: FrozenSet[str]


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of checking one route against the zone registry.
    Violations are listed in registry order.
    """
    valid: bool
    violated_zones: Tuple[ViolatedZone, ...] = ()

    @property
    def violation_count(self) -> int:
        return len(self.violated_zones)

    @property
    def zone_ids(self) -> Tuple[str, ...]:
        return tuple(zone.zone_id for zone in self.violated_zones)


@dataclass(frozen=True)
class SafePoint:
    """
    A substitute endpoint just outside a restricted zone.
    """
    coordinates: LatLon
    source_zone_id: str
    zone_name: str
    distance_m: float  # from the original point


class PlanningStatus(Enum):
    VALID = "VALID"  # main route or an avoidance attempt passed validation
    VALID_ALTERNATIVE = "VALID_ALTERNATIVE"  # an alternative from the first call passed
    DEGRADED = "DEGRADED"  # route to/from safe points; some confined stretch remains


@dataclass(frozen=True)
class PlanningOutcome:
    """
    Result of a zone-aware planning cycle.

    For DEGRADED outcomes `residual_zone_ids` lists the zones the trip still
    touches: zones crossed by the returned route plus the zones that contain
    the original endpoints.
    """
    status: PlanningStatus
    route: RouteCandidate
    validation: ValidationResult
    waypoints: Tuple[LatLon, ...] = ()
    attempts: int = 0
    origin_safe_point: Optional[SafePoint] = None
    destination_safe_point: Optional[SafePoint] = None
    residual_zone_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_degraded(self) -> bool:
        return self.status is PlanningStatus.DEGRADED

    @property
    def residual_violations(self) -> int:
        return len(self.residual_zone_ids)
