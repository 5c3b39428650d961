"""
Navigation domain package.

Public API:
- Domain models: PositionFix, NavigationState, NavigationEvent, EventKind,
  ProximityEvent, ProximityKind, TrackedPoint, TrackerStatus
- Tracker: NavigationTracker
- Async driver: NavigationSession, QueuedPositionSource
- Tracked points: load_tracked_points, load_speed_cameras
"""
from .models import (
    PositionSourceError,
    PositionFix,
    ProximityKind,
    TrackedPoint,
    ProximityEvent,
    EventKind,
    NavigationEvent,
    TrackerStatus,
    NavigationState,
)
from .policy import NavigationPolicy, default_navigation_policy
from .state_machine import NavigationStateException
from .proximity import find_point_alerts, find_zone_alerts
from .points import load_tracked_points, load_speed_cameras
from .tracker import NavigationTracker
from .session import NavigationSession, QueuedPositionSource, PositionSubscription, SubscriptionClosed

__all__ = [
    "PositionSourceError",
    "PositionFix",
    "ProximityKind",
    "TrackedPoint",
    "ProximityEvent",
    "EventKind",
    "NavigationEvent",
    "TrackerStatus",
    "NavigationState",
    "NavigationPolicy",
    "default_navigation_policy",
    "NavigationStateException",
    "find_point_alerts",
    "find_zone_alerts",
    "load_tracked_points",
    "load_speed_cameras",
    "NavigationTracker",
    "NavigationSession",
    "QueuedPositionSource",
    "PositionSubscription",
    "SubscriptionClosed",
]
