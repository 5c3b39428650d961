"""
Purpose: Navigation Tracker (live state machine over position fixes).
What it does:
Snaps each fix onto the active route, keeps progress/ETA current, advances
through the maneuver steps and publishes NavigationEvents to its listeners.

Per fix, in this order:
1. snap -> distance remaining, progress fraction (clamped to [0, 1])
2. ETA from the fix speed (fallback speed when missing or 0)
3. step advancement: forward-only, a fix within step_advance_m of a later
   step's end point moves the index one past that step
4. CURRENT_MANEUVER when the index lands on a step not announced yet
5. UPCOMING_MANEUVER once per step when its boundary is within pre_announce_m
6. PROXIMITY once per POI / hazard / zone per trip
7. ARRIVED once when distance remaining drops below arrival_m
8. REROUTE_REQUESTED once per divergence episode (re-armed when back on route)

The tracker never reroutes or stops itself: arrival and divergence are only
reported. NavigationSession decides what to do with them.

States: IDLE -> ACTIVE -> IDLE (stop / arrival). Transitions live in state_machine.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence, Union

from geometry import LatLon, haversine_m
from routing.eta_service import estimate_eta
from routing.models import RouteCandidate, RouteGeometry, RouteStep
from zones import VehicleClass, ZoneRegistry

from .models import (
    EventKind,
    NavigationEvent,
    NavigationState,
    PositionFix,
    TrackedPoint,
)
from .policy import NavigationPolicy, default_navigation_policy
from .proximity import find_point_alerts, find_zone_alerts
from .state_machine import begin_trip, end_trip, record_fix_error

logger = logging.getLogger(__name__)

Listener = Callable[[NavigationEvent], None]


class NavigationTracker:
    """
    Single live tracker per trip. Not thread-safe by itself: callers serialise
    handle_fix (NavigationSession does it with an asyncio.Lock).
    """

    def __init__(
            self,
            policy: Optional[NavigationPolicy] = None,
            *,
            registry: Optional[ZoneRegistry] = None,
            vehicle_class: Optional[VehicleClass] = None,
            tracked_points: Sequence[TrackedPoint] = (),
            today: Callable[[], date] = date.today,
    ):
        self.policy = policy or default_navigation_policy()
        self.policy.validate()
        self.registry = registry
        self.vehicle_class = vehicle_class
        self.tracked_points = tuple(tracked_points)
        self._today = today
        self._state = NavigationState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> NavigationState:
        return self._state

    # --- Listeners ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, events: List[NavigationEvent]) -> List[NavigationEvent]:
        for event in events:
            for listener in list(self._listeners):
                listener(event)
        return events

    # --- Transitions ---

    def start(
            self,
            route: Union[RouteCandidate, RouteGeometry, Sequence[LatLon]],
            steps: Optional[Sequence[RouteStep]] = None,
    ) -> List[NavigationEvent]:
        """
        Start a trip on `route`. A RouteCandidate brings its own steps unless
        `steps` is given.

        Raises:
            InvalidRouteError: fewer than 2 route vertices
            NavigationStateException: a trip is already active
        """
        if isinstance(route, RouteCandidate):
            geometry = route.geometry
            if steps is None:
                steps = route.steps
        else:
            geometry = RouteGeometry.of(route)
        #build the length table once, before the first fix
        geometry.cumulative_m

        self._state = begin_trip(self._state, geometry, steps or ())
        state = self._state
        first = state.current_step
        if first is not None:
            state.announced_steps.add(0)

        logger.info(
            "Navigation started: %.0f m, %d step(s)", geometry.length_m, len(state.steps)
        )
        return self._publish([
            NavigationEvent(
                kind=EventKind.TRIP_STARTED,
                step_index=0 if first is not None else None,
                instruction=first.instruction if first is not None else None,
                distance_m=geometry.length_m,
            )
        ])

    def stop(self) -> List[NavigationEvent]:
        """Clear the trip and return to IDLE. Idempotent."""
        if not self._state.is_active:
            return []
        self._state = end_trip(self._state)
        logger.info("Navigation stopped")
        return self._publish([NavigationEvent(kind=EventKind.TRIP_STOPPED)])

    # --- Position updates ---

    def handle_fix(self, fix: PositionFix) -> List[NavigationEvent]:
        """
        Process one position fix and return the events it produced.
        Fixes while IDLE and fixes older than the last processed one are ignored.
        """
        state = self._state
        if not state.is_active:
            return []
        last = state.last_fix
        if last is not None and last.timestamp and fix.timestamp and fix.timestamp < last.timestamp:
            logger.debug("Dropping out-of-order fix from %s", fix.timestamp.isoformat())
            return []

        route = state.route
        location = fix.location
        events: List[NavigationEvent] = []

        # 1. snap + progress
        position = route.locate(location)
        total = route.length_m
        state.last_fix = fix
        state.error = None
        state.snapped_point = position.point
        state.heading_deg = fix.heading_deg
        state.speed_mps = fix.speed_mps
        state.distance_travelled_m = position.along_m
        state.distance_remaining_m = max(0.0, total - position.along_m)
        state.progress_fraction = min(1.0, max(0.0, position.along_m / total)) if total > 0 else 1.0
        state.off_route_m = position.distance_m

        # 2. ETA
        state.eta_seconds = estimate_eta(
            state.distance_remaining_m, fix.speed_mps, self.policy.fallback_speed_mps
        )

        # 3. step advancement
        previous_index = state.current_step_index
        self._advance_steps(location)
        step = state.current_step
        state.distance_to_step_end_m = haversine_m(location, step.end_point) if step is not None else None

        # 4. announce the step we just moved onto
        if state.current_step_index != previous_index and step is not None:
            if state.current_step_index not in state.announced_steps:
                state.announced_steps.add(state.current_step_index)
                logger.info("Step %d: %s", state.current_step_index, step.instruction)
                events.append(NavigationEvent(
                    kind=EventKind.CURRENT_MANEUVER,
                    step_index=state.current_step_index,
                    instruction=step.instruction,
                    distance_m=state.distance_to_step_end_m,
                ))

        # 5. pre-announce the next step
        next_index = state.current_step_index + 1
        if (
                state.distance_to_step_end_m is not None
                and next_index < len(state.steps)
                and state.distance_to_step_end_m < self.policy.pre_announce_m
                and next_index not in state.pre_announced_steps
        ):
            state.pre_announced_steps.add(next_index)
            events.append(NavigationEvent(
                kind=EventKind.UPCOMING_MANEUVER,
                step_index=next_index,
                instruction=state.steps[next_index].instruction,
                distance_m=state.distance_to_step_end_m,
            ))

        # 6. proximity
        events.extend(self._proximity_events(location))

        # 7. arrival
        if not state.arrived and state.distance_remaining_m < self.policy.arrival_m:
            state.arrived = True
            logger.info("Arrived: %.1f m remaining", state.distance_remaining_m)
            events.append(NavigationEvent(kind=EventKind.ARRIVED, distance_m=state.distance_remaining_m))

        # 8. divergence
        if position.distance_m > self.policy.divergence_m:
            if not state.off_route:
                state.off_route = True
                logger.info("Off route by %.0f m; requesting reroute", position.distance_m)
                events.append(NavigationEvent(kind=EventKind.REROUTE_REQUESTED, distance_m=position.distance_m))
        else:
            state.off_route = False

        return self._publish(events)

    def handle_fix_error(self, error: Union[str, Exception]) -> List[NavigationEvent]:
        """
        The position source failed. The trip stays ACTIVE with its last known
        progress and resumes on the next good fix.
        """
        if not self._state.is_active:
            return []
        message = str(error) or error.__class__.__name__
        record_fix_error(self._state, message)
        logger.warning("Position fix error: %s", message)
        return self._publish([NavigationEvent(kind=EventKind.FIX_ERROR, message=message)])

    # --- Helpers ---

    def _advance_steps(self, location: LatLon) -> None:
        state = self._state
        threshold = self.policy.step_advance_m
        new_index = state.current_step_index
        for index in range(state.current_step_index, len(state.steps)):
            if haversine_m(location, state.steps[index].end_point) <= threshold:
                new_index = index + 1
        if new_index > state.current_step_index:
            logger.debug("Advancing from step %d to %d", state.current_step_index, new_index)
            state.current_step_index = new_index

    def _proximity_events(self, location: LatLon) -> List[NavigationEvent]:
        state = self._state
        alerts = find_point_alerts(location, self.tracked_points, state.announced_points, self.policy)
        if self.registry is not None and self.vehicle_class is not None:
            alerts.extend(find_zone_alerts(
                location,
                self.registry,
                self.vehicle_class,
                self._today(),
                state.announced_points,
                self.policy,
            ))
        return [
            NavigationEvent(
                kind=EventKind.PROXIMITY,
                distance_m=alert.distance_m,
                proximity=alert,
                message=alert.label or alert.subject_id,
            )
            for alert in alerts
        ]
