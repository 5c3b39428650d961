"""
Purpose: Domain models for live navigation.
What it does:
- PositionFix: one sample from the position source
- TrackedPoint / ProximityEvent: POIs and hazards the driver is warned about
- NavigationEvent: the message the tracker publishes (speech/UI subscribe)
- NavigationState: the mutable, single-writer state owned by the tracker

Defines enums/constants:
- ProximityKind = zone | poi | hazard
- EventKind = TRIP_STARTED | UPCOMING_MANEUVER | CURRENT_MANEUVER | PROXIMITY |
  ARRIVED | REROUTE_REQUESTED | FIX_ERROR | TRIP_STOPPED
- TrackerStatus = IDLE | ACTIVE

Rule: No geometry, no I/O. Models only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Set, Tuple

from geometry import LatLon
from routing.models import RouteGeometry, RouteStep


class PositionSourceError(Exception):
    """The position source failed (permission revoked, sensor timeout, ...)."""
    pass


@dataclass(frozen=True)
class PositionFix:
    lat: float
    lon: float
    heading_deg: Optional[float] = None
    speed_mps: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def location(self) -> LatLon:
        return (self.lat, self.lon)


class ProximityKind(str, Enum):
    ZONE = "zone"
    POI = "poi"
    HAZARD = "hazard"


@dataclass(frozen=True)
class TrackedPoint:
    """
    A point the driver should be warned about once per trip
    (speed camera, fuel station, ...). radius_m overrides the policy default.
    """
    id: str
    kind: ProximityKind
    location: LatLon
    label: str = ""
    radius_m: Optional[float] = None


@dataclass(frozen=True)
class ProximityEvent:
    kind: ProximityKind
    subject_id: str
    distance_m: float
    label: str = ""


class EventKind(str, Enum):
    TRIP_STARTED = "trip_started"
    UPCOMING_MANEUVER = "upcoming_maneuver"
    CURRENT_MANEUVER = "current_maneuver"
    PROXIMITY = "proximity"
    ARRIVED = "arrived"
    REROUTE_REQUESTED = "reroute_requested"
    FIX_ERROR = "fix_error"
    TRIP_STOPPED = "trip_stopped"


@dataclass(frozen=True)
class NavigationEvent:
    """
    What the tracker tells its listeners. Only the fields relevant to the kind
    are set: step events carry step_index + instruction, PROXIMITY carries
    proximity, REROUTE_REQUESTED carries the off-route distance.
    """
    kind: EventKind
    step_index: Optional[int] = None
    instruction: Optional[str] = None
    distance_m: Optional[float] = None
    proximity: Optional[ProximityEvent] = None
    message: Optional[str] = None


class TrackerStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class NavigationState:
    """
    Mutable state of one trip. Only NavigationTracker writes to it.

    Progress fields are left untouched on a fix error so tracking resumes on
    the next good fix.
    """
    status: TrackerStatus = TrackerStatus.IDLE
    route: Optional[RouteGeometry] = None
    steps: Tuple[RouteStep, ...] = ()

    # last good fix
    last_fix: Optional[PositionFix] = None
    snapped_point: Optional[LatLon] = None
    heading_deg: Optional[float] = None
    speed_mps: Optional[float] = None

    # progress
    distance_travelled_m: float = 0.0
    distance_remaining_m: Optional[float] = None
    eta_seconds: Optional[float] = None
    progress_fraction: float = 0.0
    off_route_m: float = 0.0

    # steps
    current_step_index: int = 0
    distance_to_step_end_m: Optional[float] = None

    # per-trip announce-once bookkeeping
    announced_steps: Set[int] = field(default_factory=set)
    pre_announced_steps: Set[int] = field(default_factory=set)
    announced_points: Set[str] = field(default_factory=set)

    arrived: bool = False
    off_route: bool = False
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status is TrackerStatus.ACTIVE

    @property
    def current_step(self) -> Optional[RouteStep]:
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None
