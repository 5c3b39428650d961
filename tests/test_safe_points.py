import pytest

from geometry import destination_from_bearing, distance_point_to_polygon_m, haversine_m
from routing import AvoidancePolicy, SafePointResolver
from routing.safe_points import safe_point_outside
from zones import RestrictedZone, ZoneRegistry

from conftest import CENTER, TODAY, make_zone


def test_safe_point_for_zone_centroid_lands_margin_outside(registry, square_zone):
    safe = SafePointResolver(registry).resolve(CENTER, "NONE", on_date=TODAY)

    assert safe is not None
    assert safe.source_zone_id == "Z"
    assert safe.zone_name == "Zone Z"
    assert not square_zone.contains(safe.coordinates)
    #centroid -> edge midpoint is 1000 m, then 350 m more along the same bearing
    assert distance_point_to_polygon_m(safe.coordinates, square_zone.ring) == pytest.approx(350, abs=15)
    assert safe.distance_m == pytest.approx(1350, abs=15)
    assert safe.distance_m == pytest.approx(haversine_m(CENTER, safe.coordinates))


def test_safe_point_leaves_through_the_nearest_edge(registry, square_zone):
    near_east_edge = destination_from_bearing(CENTER, 900.0, 90.0)
    safe = SafePointResolver(registry).resolve(near_east_edge, "NONE", on_date=TODAY)

    east_lon = square_zone.bbox[3]
    assert safe.coordinates[1] > east_lon
    assert safe.distance_m == pytest.approx(450, abs=15)


def test_points_outside_or_exempt_resolve_to_none(registry):
    resolver = SafePointResolver(registry)
    assert resolver.resolve((41.0, -3.0), "NONE", on_date=TODAY) is None
    assert resolver.resolve(CENTER, "CERO", on_date=TODAY) is None


def test_zone_containing(registry, square_zone):
    resolver = SafePointResolver(registry)
    assert resolver.zone_containing(CENTER, "NONE", on_date=TODAY) is square_zone
    assert resolver.zone_containing((41.0, -3.0), "NONE", on_date=TODAY) is None


@pytest.mark.parametrize("bearing", range(0, 360, 30))
@pytest.mark.parametrize("distance_m", [0.0, 200.0, 600.0, 950.0])
def test_every_interior_point_escapes(registry, square_zone, bearing, distance_m):
    point = destination_from_bearing(CENTER, distance_m, bearing)
    assert square_zone.contains(point)

    safe = SafePointResolver(registry).resolve(point, "NONE", on_date=TODAY)
    assert not square_zone.contains(safe.coordinates)


def test_margin_grows_for_folded_rings():
    #U-shaped zone open to the north; the point sits in the right arm
    ring = (
        (40.00, -3.03), (40.00, -2.97), (40.03, -2.97), (40.03, -2.98),
        (40.01, -2.98), (40.01, -3.02), (40.03, -3.02), (40.03, -3.03),
    )
    zone = RestrictedZone("U", "U", ring, frozenset(), TODAY, TODAY)
    point = (40.02, -2.975)
    assert zone.contains(point)

    safe = safe_point_outside(zone, point, margin_m=200.0, max_extensions=10)
    assert not zone.contains(safe)


def test_margin_comes_from_policy(registry, square_zone):
    policy = AvoidancePolicy(safe_point_margin_m=100.0)
    safe = SafePointResolver(registry, policy).resolve(CENTER, "NONE", on_date=TODAY)
    assert distance_point_to_polygon_m(safe.coordinates, square_zone.ring) == pytest.approx(100, abs=10)


def test_registry_order_decides_between_overlapping_zones(square_zone):
    outer = make_zone("outer", half_side_m=3000)
    safe = SafePointResolver(ZoneRegistry([outer, square_zone])).resolve(CENTER, "NONE", on_date=TODAY)
    assert safe.source_zone_id == "outer"
