"""
Purpose: Load tracked points (speed cameras, POIs) from CSV.
Expected columns: id, lat, lon, label, radius_m (radius_m may be empty).
"""

from __future__ import annotations

import csv
import os
from typing import List, Optional, Union

from .models import ProximityKind, TrackedPoint

SPEED_CAMERAS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "speed_cameras.csv")


def load_tracked_points(
        csv_path: Union[str, os.PathLike],
        kind: Union[str, ProximityKind] = ProximityKind.POI,
) -> List[TrackedPoint]:
    kind = ProximityKind(kind)
    points: List[TrackedPoint] = []
    with open(csv_path, "r", newline="", encoding="utf-8") as file:
        reader = csv.DictReader(file)
        for row in reader:
            radius: Optional[float] = None
            if (row.get("radius_m") or "").strip():
                radius = float(row["radius_m"])
            points.append(
                TrackedPoint(
                    id=row["id"],
                    kind=kind,
                    location=(float(row["lat"]), float(row["lon"])),
                    label=row.get("label") or "",
                    radius_m=radius,
                )
            )
    return points


def load_speed_cameras(csv_path: Union[str, os.PathLike, None] = None) -> List[TrackedPoint]:
    """Bundled speed cameras, as hazards."""
    return load_tracked_points(csv_path or SPEED_CAMERAS_PATH, ProximityKind.HAZARD)
