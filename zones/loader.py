#Purpose: Zone data source.
#Reads restricted zones once at startup from a GeoJSON FeatureCollection and
#returns an immutable ZoneRegistry.
#Expected feature shape:
#geometry: Polygon, outer ring as [lon, lat] pairs (inner rings are ignored)
#properties: id, name, allowed_tags, valid_from, valid_to (ISO dates)
#GeoJSON [lon, lat] pairs are converted to the internal (lat, lon) here and nowhere else.

from __future__ import annotations

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

from .models import RestrictedZone
from .registry import ZoneRegistry

logger = logging.getLogger(__name__)

# Optional override in .env:
# ZONES_PATH=/srv/data/restricted_zones.geojson
load_dotenv()

DEFAULT_ZONES_PATH = Path(__file__).resolve().parent / "data" / "restricted_zones.geojson"


class ZoneDataError(ValueError):
    """Raised when a zone feature cannot be turned into a RestrictedZone."""
    pass


def zone_from_feature(feature: Dict[str, Any]) -> RestrictedZone:
    """
    Build a RestrictedZone from one GeoJSON Polygon feature.
    """
    properties = feature.get("properties") or {}
    geometry = feature.get("geometry") or {}

    zone_id = properties.get("id")
    if not zone_id:
        raise ZoneDataError("Zone feature is missing an 'id' property.")

    if geometry.get("type") != "Polygon" or not geometry.get("coordinates"):
        raise ZoneDataError(f"Zone {zone_id} must have a Polygon geometry.")

    outer_ring = geometry["coordinates"][0]
    boundary = [(float(lat), float(lon)) for lon, lat, *_ in outer_ring]
    #GeoJSON rings repeat the first vertex at the end; the ring is implicitly closed
    if len(boundary) > 1 and boundary[0] == boundary[-1]:
        boundary.pop()
    if len(boundary) < 3:
        raise ZoneDataError(f"Zone {zone_id} needs at least 3 distinct vertices, got {len(boundary)}.")

    try:
        active_from = date.fromisoformat(properties["valid_from"])
        active_to = date.fromisoformat(properties["valid_to"])
    except (KeyError, TypeError, ValueError) as error:
        raise ZoneDataError(f"Zone {zone_id} has an invalid active date range: {error}") from error

    if active_to < active_from:
        raise ZoneDataError(f"Zone {zone_id} ends ({active_to}) before it starts ({active_from}).")

    return RestrictedZone(
        id=str(zone_id),
        name=str(properties.get("name", zone_id)),
        boundary=tuple(boundary),
        allowed_classes=frozenset(str(tag) for tag in properties.get("allowed_tags", [])),
        active_from=active_from,
        active_to=active_to,
    )


def zones_from_geojson(data: Dict[str, Any]) -> ZoneRegistry:
    """Registry from an already parsed FeatureCollection (feature order is kept)."""
    if data.get("type") != "FeatureCollection":
        raise ZoneDataError("Zone data must be a GeoJSON FeatureCollection.")

    zones: List[RestrictedZone] = [zone_from_feature(feature) for feature in data.get("features", [])]
    return ZoneRegistry(zones)


def load_zones(path: Optional[Union[str, Path]] = None) -> ZoneRegistry:
    """
    Load the zone registry.

    Resolution order for the file: explicit `path`, then the ZONES_PATH
    environment variable, then the bundled sample data.
    """
    resolved = Path(path or os.getenv("ZONES_PATH") or DEFAULT_ZONES_PATH)

    with open(resolved, "r", encoding="utf-8") as file:
        data = json.load(file)

    registry = zones_from_geojson(data)
    logger.info("Loaded %d restricted zones from %s", len(registry), resolved)
    return registry
