import json
from datetime import date

import pytest

from zones import VehicleTag, ZoneDataError, ZoneRegistry, load_zones, zones_from_geojson

from conftest import CENTER, TODAY, make_zone


def _feature(zone_id="Z1", ring=None, valid_from="2024-01-01", valid_to="2030-12-31"):
    ring = ring or [[-3.01, 39.99], [-2.99, 39.99], [-2.99, 40.01], [-3.01, 40.01], [-3.01, 39.99]]
    return {
        "type": "Feature",
        "properties": {
            "id": zone_id,
            "name": f"Zone {zone_id}",
            "allowed_tags": ["CERO", "ECO"],
            "valid_from": valid_from,
            "valid_to": valid_to,
        },
        "geometry": {"type": "Polygon", "coordinates": [ring]},
    }


def test_applicable_zones_filters_by_class_date_and_exclusion():
    a = make_zone("A")
    b = make_zone("B", allowed=("CERO", "ECO", "C"))
    c = make_zone("C", active_from=date(2026, 1, 1))
    registry = ZoneRegistry([a, b, c])

    assert [z.id for z in registry.applicable_zones("NONE", TODAY)] == ["A", "B"]
    assert [z.id for z in registry.applicable_zones("C", TODAY)] == ["A"]
    assert [z.id for z in registry.applicable_zones(VehicleTag.ECO, TODAY)] == []
    assert [z.id for z in registry.applicable_zones("NONE", date(2026, 1, 1))] == ["A", "B", "C"]
    assert [z.id for z in registry.applicable_zones("NONE", TODAY, exclude_zone_ids={"A"})] == ["B"]


def test_active_range_is_inclusive():
    zone = make_zone(active_from=date(2025, 1, 1), active_to=date(2025, 12, 31))
    assert zone.is_active_on(date(2025, 1, 1))
    assert zone.is_active_on(date(2025, 12, 31))
    assert not zone.is_active_on(date(2026, 1, 1))


def test_zones_containing_keeps_registry_order():
    registry = ZoneRegistry([make_zone("outer", half_side_m=3000), make_zone("inner")])
    assert [z.id for z in registry.zones_containing(CENTER, "NONE", TODAY)] == ["outer", "inner"]
    assert registry.zones_containing((41.0, -3.0), "NONE", TODAY) == []


def test_without_returns_a_new_registry():
    registry = ZoneRegistry([make_zone("A"), make_zone("B")])
    smaller = registry.without("A")
    assert "A" in registry
    assert "A" not in smaller
    assert len(smaller) == 1
    assert smaller.get("B") is registry.get("B")


def test_duplicate_ids_are_rejected():
    with pytest.raises(ValueError):
        ZoneRegistry([make_zone("A"), make_zone("A")])


def test_zones_from_geojson_converts_lon_lat_and_drops_closing_vertex():
    registry = zones_from_geojson({"type": "FeatureCollection", "features": [_feature()]})
    zone = registry.get("Z1")
    assert len(zone.boundary) == 4
    assert zone.boundary[0] == (39.99, -3.01)
    assert zone.allowed_classes == frozenset({"CERO", "ECO"})
    assert zone.contains(CENTER)


@pytest.mark.parametrize("feature", [
    _feature(ring=[[-3.01, 39.99], [-2.99, 39.99], [-3.01, 39.99]]),
    _feature(valid_from="not-a-date"),
    _feature(valid_from="2030-01-01", valid_to="2024-01-01"),
    {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": [[]]}},
])
def test_malformed_features_raise_zone_data_error(feature):
    with pytest.raises(ZoneDataError):
        zones_from_geojson({"type": "FeatureCollection", "features": [feature]})


def test_load_zones_from_explicit_path(tmp_path):
    path = tmp_path / "zones.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [_feature("A"), _feature("B")]}))
    registry = load_zones(path)
    assert [zone.id for zone in registry] == ["A", "B"]


def test_load_zones_uses_environment_override(tmp_path, monkeypatch):
    path = tmp_path / "env_zones.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [_feature("ENV")]}))
    monkeypatch.setenv("ZONES_PATH", str(path))
    assert [zone.id for zone in load_zones()] == ["ENV"]


def test_bundled_zones_load(monkeypatch):
    monkeypatch.delenv("ZONES_PATH", raising=False)
    registry = load_zones()
    assert "ZBE_MADRID" in registry
    madrid = registry.get("ZBE_MADRID")
    #Puerta del Sol
    assert madrid.contains((40.4169, -3.7035))
    assert not madrid.allows("NONE")
    assert madrid.allows(VehicleTag.CERO)
