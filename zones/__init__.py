"""
Zones domain package.

Public API:
- Domain models: RestrictedZone, VehicleTag, VehicleClass
- Registry: ZoneRegistry
- Loading: load_zones, zones_from_geojson, ZoneDataError
"""
from .models import RestrictedZone, VehicleTag, VehicleClass, class_tag
from .registry import ZoneRegistry
from .loader import load_zones, zones_from_geojson, zone_from_feature, ZoneDataError

__all__ = [
    "RestrictedZone",
    "VehicleTag",
    "VehicleClass",
    "class_tag",
    "ZoneRegistry",
    "load_zones",
    "zones_from_geojson",
    "zone_from_feature",
    "ZoneDataError",
]
