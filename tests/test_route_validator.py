from datetime import date

import pytest

from routing import InvalidRouteError, RouteGeometry, RouteValidator
from zones import ZoneRegistry

from conftest import TODAY, make_zone


def test_route_through_square_zone_is_rejected(registry, crossing_route):
    result = RouteValidator(registry).validate(crossing_route, "NONE", on_date=TODAY)

    assert result.valid is False
    assert result.zone_ids == ("Z",)
    assert result.violated_zones[0].name == "Zone Z"
    assert result.violated_zones[0].allowed_classes == frozenset({"CERO", "ECO"})


def test_detour_is_accepted(registry, detour_route):
    result = RouteValidator(registry).validate(detour_route, "NONE", on_date=TODAY)
    assert result.valid is True
    assert result.violated_zones == ()


def test_allowed_class_and_inactive_dates_are_exempt(registry, crossing_route):
    validator = RouteValidator(registry)
    assert validator.validate(crossing_route, "ECO", on_date=TODAY).valid
    assert validator.validate(crossing_route, "NONE", on_date=date(2031, 1, 1)).valid
    assert validator.validate(crossing_route, "NONE", on_date=date(2030, 12, 31)).valid is False


def test_excluded_zone_is_ignored(registry, crossing_route):
    result = RouteValidator(registry).validate(
        crossing_route, "NONE", on_date=TODAY, exclude_zone_ids={"Z"}
    )
    assert result.valid


def test_violations_are_in_registry_order(crossing_route):
    registry = ZoneRegistry([
        make_zone("east", center=(40.0, -2.97), half_side_m=500),
        make_zone("west", center=(40.0, -3.03), half_side_m=500),
    ])
    result = RouteValidator(registry).validate(crossing_route, "NONE", on_date=TODAY)
    assert result.zone_ids == ("east", "west")


def test_exclusion_and_removal_never_increase_violations(crossing_route):
    registry = ZoneRegistry([
        make_zone("A", center=(40.0, -3.03), half_side_m=500),
        make_zone("B", center=(40.0, -3.0), half_side_m=500),
        make_zone("C", center=(40.0, -2.97), half_side_m=500),
        make_zone("far", center=(41.0, -3.0), half_side_m=500),
    ])
    validator = RouteValidator(registry)
    baseline = validator.validate(crossing_route, "NONE", on_date=TODAY).violation_count
    assert baseline == 3

    for zone in registry:
        excluded = validator.validate(crossing_route, "NONE", on_date=TODAY, exclude_zone_ids={zone.id})
        removed = RouteValidator(registry.without(zone.id)).validate(crossing_route, "NONE", on_date=TODAY)
        assert excluded.violation_count <= baseline
        assert removed.violation_count <= baseline


def test_validation_is_deterministic(registry, detour_route):
    validator = RouteValidator(registry)
    geometry = RouteGeometry.of(detour_route)
    first = validator.validate(geometry, "NONE", on_date=TODAY)
    assert first == validator.validate(geometry, "NONE", on_date=TODAY)


@pytest.mark.parametrize("route", [[], [(40.0, -3.0)]])
def test_routes_with_fewer_than_two_vertices_fail_fast(registry, route):
    with pytest.raises(InvalidRouteError):
        RouteValidator(registry).validate(route, "NONE", on_date=TODAY)
