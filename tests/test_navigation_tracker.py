from datetime import datetime, timedelta, timezone

import pytest

from geometry import destination_from_bearing, interpolate_along
from navigation import (
    EventKind,
    NavigationPolicy,
    NavigationStateException,
    NavigationTracker,
    PositionFix,
    ProximityKind,
    TrackedPoint,
    TrackerStatus,
)
from routing import InvalidRouteError
from zones import ZoneRegistry

from conftest import TODAY, make_route, make_zone, straight_steps

A = (40.0, -3.0)
B = (40.01, -3.0)
C = (40.01, -2.99)
START_TIME = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def route():
    return make_route([A, B, C], straight_steps([A, B, C], ["Head north", "Turn right onto Calle Mayor"]))


@pytest.fixture
def tracker():
    return NavigationTracker(today=lambda: TODAY)


def fix_at(route, along_m, seconds=None, speed=None):
    lat, lon = interpolate_along(route.geometry.coordinates, along_m)
    timestamp = START_TIME + timedelta(seconds=seconds if seconds is not None else along_m / 10.0)
    return PositionFix(lat, lon, speed_mps=speed, timestamp=timestamp)


def kinds(events):
    return [event.kind for event in events]


def test_start_announces_the_first_instruction(tracker, route):
    events = tracker.start(route)

    assert kinds(events) == [EventKind.TRIP_STARTED]
    assert events[0].instruction == "Head north"
    assert events[0].step_index == 0
    assert tracker.state.status is TrackerStatus.ACTIVE
    assert tracker.state.distance_remaining_m == pytest.approx(route.geometry.length_m)


def test_start_requires_two_vertices(tracker):
    with pytest.raises(InvalidRouteError):
        tracker.start([A])
    assert tracker.state.status is TrackerStatus.IDLE


def test_start_twice_is_an_invalid_transition(tracker, route):
    tracker.start(route)
    with pytest.raises(NavigationStateException):
        tracker.start(route)


def test_fixes_while_idle_are_ignored(tracker, route):
    assert tracker.handle_fix(fix_at(route, 100)) == []
    assert tracker.state.last_fix is None


def test_progress_is_monotonic_and_steps_never_regress(tracker, route):
    tracker.start(route)
    total = route.geometry.length_m

    previous_progress = 0.0
    previous_step = 0
    along = 0.0
    while along <= total:
        tracker.handle_fix(fix_at(route, along))
        state = tracker.state
        assert 0.0 <= state.progress_fraction <= 1.0
        assert state.progress_fraction >= previous_progress
        assert state.current_step_index >= previous_step
        previous_progress = state.progress_fraction
        previous_step = state.current_step_index
        along += 50.0

    assert previous_step >= 1


def test_eta_uses_fix_speed_or_fallback(tracker, route):
    tracker.start(route)
    tracker.handle_fix(fix_at(route, 500, speed=20.0))
    remaining = tracker.state.distance_remaining_m
    assert tracker.state.eta_seconds == pytest.approx(remaining / 20.0)

    tracker.handle_fix(fix_at(route, 600, speed=0.0))
    remaining = tracker.state.distance_remaining_m
    assert tracker.state.eta_seconds == pytest.approx(remaining / 10.0)


def test_maneuvers_are_announced_once(tracker, route):
    tracker.start(route)
    ab = route.geometry.cumulative_m[1]

    upcoming = tracker.handle_fix(fix_at(route, ab - 112))
    assert kinds(upcoming) == [EventKind.UPCOMING_MANEUVER]
    assert upcoming[0].step_index == 1
    assert upcoming[0].instruction == "Turn right onto Calle Mayor"
    assert tracker.handle_fix(fix_at(route, ab - 100)) == []

    current = tracker.handle_fix(fix_at(route, ab))
    assert kinds(current) == [EventKind.CURRENT_MANEUVER]
    assert current[0].step_index == 1
    assert tracker.state.current_step_index == 1
    assert tracker.handle_fix(fix_at(route, ab + 5)) == []


def test_single_arrival_at_last_vertex(tracker, route):
    tracker.start(route)
    total = route.geometry.length_m

    events = tracker.handle_fix(fix_at(route, total))
    assert kinds(events).count(EventKind.ARRIVED) == 1
    assert tracker.state.arrived
    assert tracker.state.distance_remaining_m < 50
    assert tracker.state.progress_fraction == pytest.approx(1.0)

    again = tracker.handle_fix(fix_at(route, total, seconds=total / 10.0 + 5))
    assert EventKind.ARRIVED not in kinds(again)


def test_reroute_is_requested_once_per_divergence(tracker, route):
    tracker.start(route)
    on_route = fix_at(route, 300)
    off_route = destination_from_bearing(on_route.location, 200.0, 270.0)

    first = tracker.handle_fix(PositionFix(*off_route, timestamp=START_TIME + timedelta(seconds=40)))
    assert kinds(first) == [EventKind.REROUTE_REQUESTED]
    assert first[0].distance_m == pytest.approx(200, rel=0.05)
    assert tracker.state.off_route

    still_off = tracker.handle_fix(PositionFix(*off_route, timestamp=START_TIME + timedelta(seconds=41)))
    assert still_off == []

    tracker.handle_fix(fix_at(route, 320, seconds=42))
    assert not tracker.state.off_route
    again = tracker.handle_fix(PositionFix(*off_route, timestamp=START_TIME + timedelta(seconds=43)))
    assert kinds(again) == [EventKind.REROUTE_REQUESTED]


def test_out_of_order_fixes_are_dropped(tracker, route):
    tracker.start(route)
    newer = fix_at(route, 400, seconds=40)
    older = fix_at(route, 200, seconds=20)

    tracker.handle_fix(newer)
    assert tracker.handle_fix(older) == []
    assert tracker.state.last_fix == newer


def test_fix_error_keeps_progress(tracker, route):
    tracker.start(route)
    tracker.handle_fix(fix_at(route, 400))
    progress = tracker.state.progress_fraction

    events = tracker.handle_fix_error("GPS signal lost")
    assert kinds(events) == [EventKind.FIX_ERROR]
    assert events[0].message == "GPS signal lost"
    assert tracker.state.is_active
    assert tracker.state.error == "GPS signal lost"
    assert tracker.state.progress_fraction == progress

    tracker.handle_fix(fix_at(route, 450))
    assert tracker.state.error is None
    assert tracker.state.progress_fraction > progress


def test_hazards_and_pois_are_announced_once(route):
    camera = TrackedPoint("CAM-1", ProximityKind.HAZARD, destination_from_bearing(A, 800.0, 0.0), "Speed camera")
    far_poi = TrackedPoint("POI-1", ProximityKind.POI, (40.2, -3.0), "Fuel")
    tracker = NavigationTracker(tracked_points=[camera, far_poi], today=lambda: TODAY)
    tracker.start(route)

    assert tracker.handle_fix(fix_at(route, 100)) == []

    events = tracker.handle_fix(fix_at(route, 600))
    assert kinds(events) == [EventKind.PROXIMITY]
    assert events[0].proximity.kind is ProximityKind.HAZARD
    assert events[0].proximity.subject_id == "CAM-1"
    assert events[0].proximity.distance_m == pytest.approx(200, rel=0.05)

    assert tracker.handle_fix(fix_at(route, 700)) == []
    assert tracker.handle_fix(fix_at(route, 800)) == []


def test_point_radius_overrides_policy():
    point = TrackedPoint("P", ProximityKind.POI, (40.0, -3.0), radius_m=10.0)
    route = make_route([(39.99, -3.0), (40.01, -3.0)])
    tracker = NavigationTracker(tracked_points=[point], today=lambda: TODAY)
    tracker.start(route)

    assert tracker.handle_fix(PositionFix(39.9995, -3.0)) == []
    events = tracker.handle_fix(PositionFix(39.99995, -3.0))
    assert [e.proximity.subject_id for e in events if e.kind is EventKind.PROXIMITY] == ["P"]


def test_zone_alerts_fire_once_for_restricted_classes(route):
    zone = make_zone("NEAR", center=(40.05, -3.0))
    registry = ZoneRegistry([zone])

    tracker = NavigationTracker(registry=registry, vehicle_class="NONE", today=lambda: TODAY)
    tracker.start(route)
    events = tracker.handle_fix(fix_at(route, 0))
    zone_events = [e for e in events if e.kind is EventKind.PROXIMITY]
    assert [e.proximity.subject_id for e in zone_events] == ["NEAR"]
    assert zone_events[0].proximity.kind is ProximityKind.ZONE
    assert zone_events[0].proximity.distance_m > 0
    assert tracker.handle_fix(fix_at(route, 50)) == []

    exempt = NavigationTracker(registry=registry, vehicle_class="ECO", today=lambda: TODAY)
    exempt.start(route)
    assert exempt.handle_fix(fix_at(route, 0)) == []


def test_stop_is_idempotent_and_resets_the_trip(tracker, route):
    tracker.start(route)
    tracker.handle_fix(fix_at(route, 1000))
    assert tracker.state.pre_announced_steps

    assert kinds(tracker.stop()) == [EventKind.TRIP_STOPPED]
    assert tracker.stop() == []
    assert tracker.state.status is TrackerStatus.IDLE
    assert not tracker.state.pre_announced_steps

    #a new trip may announce the same step again
    tracker.start(route)
    assert kinds(tracker.handle_fix(fix_at(route, 1000))) == [EventKind.UPCOMING_MANEUVER]


def test_listeners_receive_events_until_unsubscribed(tracker, route):
    received = []
    unsubscribe = tracker.subscribe(received.append)

    tracker.start(route)
    assert kinds(received) == [EventKind.TRIP_STARTED]

    unsubscribe()
    tracker.stop()
    assert kinds(received) == [EventKind.TRIP_STARTED]


def test_policy_validation():
    with pytest.raises(ValueError):
        NavigationPolicy(fallback_speed_mps=0).validate()
    with pytest.raises(ValueError):
        NavigationTracker(NavigationPolicy(divergence_m=-1))
