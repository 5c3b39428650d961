#Marks routing as a package.
#Re-exports the public API (validator, safe points, avoidance, planner, OSRM
#client, ETA and cost helpers) so other modules import from routing without
#knowing internal file names.
#No business logic.

from .models import (
    InvalidRouteError,
    RouteGeometry,
    RouteStep,
    RouteLeg,
    RouteCandidate,
    ViolatedZone,
    ValidationResult,
    SafePoint,
    PlanningStatus,
    PlanningOutcome,
)
from .policy import AvoidancePolicy, ZoneSizeClass, default_avoidance_policy
from .validator import RouteValidator
from .safe_points import SafePointResolver, safe_point_outside
from .avoidance import AvoidancePlanner, merge_waypoints, order_along_trip
from .osrm_client import OSRMClient, OSRMError, NoRouteFound
from .route_service import ZoneAwareRoutePlanner, AllRoutesBlocked
from .eta_service import estimate_eta, effective_speed
from .trip_cost import estimate_trip_cost, TripCost, VehicleType

__all__ = [
    "InvalidRouteError",
    "RouteGeometry",
    "RouteStep",
    "RouteLeg",
    "RouteCandidate",
    "ViolatedZone",
    "ValidationResult",
    "SafePoint",
    "PlanningStatus",
    "PlanningOutcome",
    "AvoidancePolicy",
    "ZoneSizeClass",
    "default_avoidance_policy",
    "RouteValidator",
    "SafePointResolver",
    "safe_point_outside",
    "AvoidancePlanner",
    "merge_waypoints",
    "order_along_trip",
    "OSRMClient",
    "OSRMError",
    "NoRouteFound",
    "ZoneAwareRoutePlanner",
    "AllRoutesBlocked",
    "estimate_eta",
    "effective_speed",
    "estimate_trip_cost",
    "TripCost",
    "VehicleType",
]
