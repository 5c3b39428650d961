"""
Purpose: Central configuration for zone avoidance (single source of truth).
What it does:

Stores all tunable thresholds/caps:

SAFE_POINT_MARGIN_M = 350

SMALL_ZONE_MAX_AREA_M2 = 5 km2, MEDIUM_ZONE_MAX_AREA_M2 = 30 km2

WAYPOINTS PER SIZE = 1 / 2 / 3, MARGINS PER SIZE = 300 / 500 / 800 m

MAX_ATTEMPTS = 5

Rule: No logic here beyond picking a size class - just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class ZoneSizeClass:
    """
    How hard to push a route around a zone of a given size.
    Larger zones get more waypoints spread along the boundary and a larger margin.
    """
    name: str
    waypoint_count: int
    margin_m: float
    boundary_fractions: Tuple[float, ...]


def _default_size_classes() -> Tuple[ZoneSizeClass, ...]:
    return (
        ZoneSizeClass("small", 1, 300.0, (0.5,)),
        ZoneSizeClass("medium", 2, 500.0, (0.3, 0.7)),
        ZoneSizeClass("large", 3, 800.0, (0.2, 0.5, 0.8)),
    )


@dataclass(frozen=True)
class AvoidancePolicy:
    """
    Central configuration for safe points and avoidance waypoints.

    Notes:
    - size classes are ordered small -> large; a zone falls in the first class
      whose area threshold it does not exceed (the last class has no cap).
    - sample_radius_factor bounds which origin->destination samples are projected
      onto a zone boundary, in multiples of the zone's equivalent radius
      (radius of a circle with the same area).
    """

    # --- Safe points ---
    # Distance pushed outward from the nearest boundary point.
    safe_point_margin_m: float = 350.0

    # Non-convex rings can fold back over the outward ray; the margin is grown
    # by one more step at most this many times before giving up.
    max_margin_extensions: int = 4

    # --- Zone size classification ---
    small_zone_max_area_m2: float = 5_000_000.0  # 5 km2
    medium_zone_max_area_m2: float = 30_000_000.0  # 30 km2
    size_classes: Tuple[ZoneSizeClass, ...] = field(default_factory=_default_size_classes)

    # --- Candidate sampling along the straight origin -> destination line ---
    sample_step_fraction: float = 0.05  # every 5 %
    sample_radius_factor: float = 3.0

    # --- Retry loop ---
    max_attempts: int = 5

    # Waypoints are deduplicated on coordinates rounded to this many decimals
    # (5 decimals ~ 1 m).
    dedup_precision: int = 5

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.safe_point_margin_m <= 0:
            raise ValueError("safe_point_margin_m must be > 0")

        if self.max_margin_extensions < 0:
            raise ValueError("max_margin_extensions must be >= 0")

        if not (0 < self.small_zone_max_area_m2 < self.medium_zone_max_area_m2):
            raise ValueError("Zone area thresholds must satisfy 0 < small < medium")

        if len(self.size_classes) != 3:
            raise ValueError("Must provide exactly 3 size classes (small, medium, large).")

        for size_class in self.size_classes:
            if size_class.waypoint_count < 1:
                raise ValueError(f"{size_class.name}: waypoint_count must be >= 1")
            if size_class.margin_m <= 0:
                raise ValueError(f"{size_class.name}: margin_m must be > 0")
            if len(size_class.boundary_fractions) != size_class.waypoint_count:
                raise ValueError(f"{size_class.name}: need one boundary fraction per waypoint")
            if any(not 0.0 <= f <= 1.0 for f in size_class.boundary_fractions):
                raise ValueError(f"{size_class.name}: boundary fractions must be within [0, 1]")

        if not 0 < self.sample_step_fraction <= 1:
            raise ValueError("sample_step_fraction must be within (0, 1]")

        if self.sample_radius_factor <= 0:
            raise ValueError("sample_radius_factor must be > 0")

        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        if self.dedup_precision < 0:
            raise ValueError("dedup_precision must be >= 0")

    def size_class_for(self, area_m2: float) -> ZoneSizeClass:
        small, medium, large = self.size_classes
        if area_m2 <= self.small_zone_max_area_m2:
            return small
        if area_m2 <= self.medium_zone_max_area_m2:
            return medium
        return large


def default_avoidance_policy() -> AvoidancePolicy:
    """
    Convenience factory for the default policy.
    """
    p = AvoidancePolicy()
    p.validate()
    return p
