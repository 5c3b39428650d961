import math
from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd

from geometry import bearing_deg, cumulative_lengths, interpolate_along

# Straight drive across central Madrid, west -> east (passes through the ZBE)
DEFAULT_ORIGIN = (40.4200, -3.7350)
DEFAULT_DESTINATION = (40.4200, -3.6750)

METERS_PER_DEGREE_LAT = 111_320.0


def fixes_along(coordinates, spacing_m=25.0, speed_mps=12.0, noise_m=4.0, start=None, seed=None):
    """
    Simulated GPS fixes every `spacing_m` along a (lat, lon) polyline.
    Each fix is jittered with gaussian noise (noise_m standard deviation) and
    carries the heading of the segment it was sampled on.
    The last fix is always the exact end of the line.
    """
    if seed is not None:
        np.random.seed(seed)
    start = start or datetime.now(timezone.utc)

    cumulative = cumulative_lengths(coordinates)
    total = cumulative[-1]
    distances = np.append(np.arange(0.0, total, spacing_m), total)

    rows = []
    segment = 0
    for index, along in enumerate(distances):
        while segment < len(coordinates) - 2 and cumulative[segment + 1] < along:
            segment += 1
        lat, lon = interpolate_along(coordinates, float(along), cumulative)

        is_last = index == len(distances) - 1
        if noise_m > 0 and not is_last:
            lat += np.random.normal(0.0, noise_m) / METERS_PER_DEGREE_LAT
            lon += np.random.normal(0.0, noise_m) / (METERS_PER_DEGREE_LAT * math.cos(math.radians(lat)))

        rows.append({
            "timestamp": (start + timedelta(seconds=float(along) / speed_mps)).isoformat(),
            "lat": np.round(lat, 7),
            "lon": np.round(lon, 7),
            "heading_deg": np.round(bearing_deg(coordinates[segment], coordinates[segment + 1]), 1),
            "speed_mps": np.round(max(0.0, np.random.normal(speed_mps, 1.5)), 2),
        })
    return pd.DataFrame(rows)


def generate_mock_fixes(output_file="mock_fixes.csv", origin=DEFAULT_ORIGIN, destination=DEFAULT_DESTINATION,
                        spacing_m=25.0, speed_mps=12.0, noise_m=4.0, seed=None):
    df = fixes_along([origin, destination], spacing_m, speed_mps, noise_m, seed=seed)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {len(df)} fixes and saved to '{output_file}'")
    return df


if __name__ == "__main__":
    generate_mock_fixes()
