"""
Purpose: Central configuration for live navigation.
What it does:

Stores all tunable thresholds for the tracker and the session:

FALLBACK_SPEED_MPS = 10, STEP_ADVANCE_M = 30, PRE_ANNOUNCE_M = 150

ARRIVAL_M = 50, DIVERGENCE_M = 60

POI_RADIUS_M = 500, HAZARD_RADIUS_M = 300, ZONE_ALERT_RADIUS_M = 20 km

FIX_TIMEOUT_S = 10

Rule: No logic here - just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NavigationPolicy:

    # --- ETA ---
    # Used when the fix has no speed or reports 0 (stale reading).
    fallback_speed_mps: float = 10.0

    # --- Steps ---
    # A fix this close to a step's end point completes that step.
    step_advance_m: float = 30.0
    # "In 150 m, turn left" is spoken once when the next step boundary is this close.
    pre_announce_m: float = 150.0

    # --- Trip end / divergence ---
    arrival_m: float = 50.0
    # Distance from the raw fix to the route line beyond which a reroute is requested.
    divergence_m: float = 60.0

    # --- Proximity alerts ---
    poi_radius_m: float = 500.0
    hazard_radius_m: float = 300.0
    zone_alert_radius_m: float = 20_000.0

    # --- Position source ---
    # No fix within this many seconds is reported as a fix error.
    fix_timeout_s: float = 10.0
    auto_stop_on_arrival: bool = True

    def validate(self) -> None:
        if self.fallback_speed_mps <= 0:
            raise ValueError("fallback_speed_mps must be > 0")
        for name in ("step_advance_m", "pre_announce_m", "arrival_m", "divergence_m",
                     "poi_radius_m", "hazard_radius_m", "zone_alert_radius_m"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.fix_timeout_s <= 0:
            raise ValueError("fix_timeout_s must be > 0")


def default_navigation_policy() -> NavigationPolicy:
    p = NavigationPolicy()
    p.validate()
    return p
