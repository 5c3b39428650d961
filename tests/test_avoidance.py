import pytest

from geometry import nearest_point_on_line
from routing import AvoidancePlanner, AvoidancePolicy, RouteValidator, ZoneSizeClass, merge_waypoints
from routing.avoidance import waypoint_key
from zones import ZoneRegistry

from conftest import CENTER, TODAY, make_zone

ORIGIN = (40.0, -3.05)
DESTINATION = (40.0, -2.95)


def test_merge_waypoints_deduplicates_on_rounded_coordinates():
    existing = [(40.000001, -3.0)]
    merged, added = merge_waypoints(existing, [(40.0000012, -3.0000004), (40.1, -3.0)], precision=5)

    assert added == 1
    assert merged == [(40.000001, -3.0), (40.1, -3.0)]


def test_merge_waypoints_keeps_existing_order():
    merged, added = merge_waypoints([(1.0, 1.0), (0.0, 0.0)], [(2.0, 2.0), (1.0, 1.0)])
    assert merged == [(1.0, 1.0), (0.0, 0.0), (2.0, 2.0)]
    assert added == 1


def test_small_zone_gets_one_waypoint_outside(registry, square_zone):
    waypoints = AvoidancePlanner(registry).plan(["Z"], ORIGIN, DESTINATION)

    assert len(waypoints) == 1
    assert not square_zone.contains(waypoints[0])


def test_large_zone_gets_three_waypoints_in_trip_order():
    zone = make_zone("L", half_side_m=4000)  # 64 km2
    planner = AvoidancePlanner(ZoneRegistry([zone]))
    origin, destination = (40.0, -3.15), (40.0, -2.85)

    waypoints = planner.plan(["L"], origin, destination)

    assert len(waypoints) == 3
    assert all(not zone.contains(point) for point in waypoints)
    progress = [nearest_point_on_line([origin, destination], point).along_m for point in waypoints]
    assert progress == sorted(progress)


def test_medium_zone_gets_two_waypoints():
    zone = make_zone("M", half_side_m=2000)  # 16 km2
    waypoints = AvoidancePlanner(ZoneRegistry([zone])).plan(["M"], (40.0, -3.1), (40.0, -2.9))
    assert len(waypoints) == 2
    assert all(not zone.contains(point) for point in waypoints)


def test_bypass_prefers_the_shorter_detour(registry, square_zone):
    #trip crosses the southern half: the south side is the cheaper way round
    waypoints = AvoidancePlanner(registry).plan(["Z"], (39.995, -3.05), (39.995, -2.95))

    assert len(waypoints) == 1
    assert waypoints[0][0] < CENTER[0]
    assert not square_zone.contains(waypoints[0])


def test_overlapping_zones_do_not_duplicate_waypoints(square_zone):
    twin = make_zone("Z2")  # same polygon, different id
    planner = AvoidancePlanner(ZoneRegistry([square_zone, twin]))

    waypoints = planner.plan(["Z", "Z2"], ORIGIN, DESTINATION)

    keys = [waypoint_key(point, 5) for point in waypoints]
    assert len(keys) == len(set(keys))
    assert waypoints == planner.plan(["Z"], ORIGIN, DESTINATION)


def test_unknown_zone_ids_are_ignored(registry):
    assert AvoidancePlanner(registry).plan(["NOPE"], ORIGIN, DESTINATION) == []


def test_route_through_waypoints_revalidates_the_same_way(registry, detour_route):
    validator = RouteValidator(registry)
    first = validator.validate(detour_route, "NONE", on_date=TODAY)
    assert first.valid
    assert validator.validate(detour_route, "NONE", on_date=TODAY) == first


def test_policy_rejects_inconsistent_size_classes():
    policy = AvoidancePolicy(size_classes=(
        ZoneSizeClass("small", 1, 300.0, (0.5,)),
        ZoneSizeClass("medium", 2, 500.0, (0.5,)),
        ZoneSizeClass("large", 3, 800.0, (0.2, 0.5, 0.8)),
    ))
    with pytest.raises(ValueError):
        policy.validate()
