import math
from datetime import date

import pytest

from routing.models import RouteCandidate, RouteGeometry, RouteLeg, RouteStep
from zones import RestrictedZone, ZoneRegistry

TODAY = date(2025, 6, 1)
CENTER = (40.0, -3.0)

METERS_PER_DEGREE = 6371008.8 * math.pi / 180.0


def square_ring(center, half_side_m):
    """(lat, lon) ring of a square around center, SW -> SE -> NE -> NW."""
    dlat = half_side_m / METERS_PER_DEGREE
    dlon = half_side_m / (METERS_PER_DEGREE * math.cos(math.radians(center[0])))
    lat, lon = center
    return (
        (lat - dlat, lon - dlon),
        (lat - dlat, lon + dlon),
        (lat + dlat, lon + dlon),
        (lat + dlat, lon - dlon),
    )


def make_zone(zone_id="Z", center=CENTER, half_side_m=1000.0, allowed=("CERO", "ECO"),
              active_from=date(2024, 1, 1), active_to=date(2030, 12, 31)):
    return RestrictedZone(
        id=zone_id,
        name=f"Zone {zone_id}",
        boundary=square_ring(center, half_side_m),
        allowed_classes=frozenset(allowed),
        active_from=active_from,
        active_to=active_to,
    )


def make_route(coordinates, steps=()):
    geometry = RouteGeometry(tuple(coordinates))
    leg = RouteLeg(geometry.length_m, geometry.length_m / 10.0, tuple(steps))
    return RouteCandidate(geometry, (leg,), geometry.length_m, geometry.length_m / 10.0)


def straight_steps(points, instructions=None):
    """One step per consecutive pair of points, plus the arrive step."""
    steps = []
    for index in range(len(points) - 1):
        instruction = instructions[index] if instructions else f"Step {index}"
        steps.append(RouteStep(points[index], points[index + 1], 0.0, 0.0, "turn", instruction))
    steps.append(RouteStep(points[-1], points[-1], 0.0, 0.0, "arrive", "You have arrived"))
    return steps


@pytest.fixture
def square_zone():
    # 2 x 2 km square around CENTER; "NONE" is not allowed inside
    return make_zone()


@pytest.fixture
def registry(square_zone):
    return ZoneRegistry([square_zone])


# West -> east through the middle of the square zone
@pytest.fixture
def crossing_route():
    return [(40.0, -3.05), (40.0, -2.95)]


# Same trip, bent north around the zone
@pytest.fixture
def detour_route():
    return [(40.0, -3.05), (40.02, -3.05), (40.02, -2.95), (40.0, -2.95)]
