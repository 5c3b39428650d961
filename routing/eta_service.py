#Purpose: ETA estimation policy.
#Converts remaining distance + current speed into an ETA used by:
#live navigation (time remaining)
#trip summaries
#A missing, zero or negative speed falls back to a fixed cruising speed so a
#stale 0 reading does not produce an infinite or wildly swinging ETA.

from typing import Optional

DEFAULT_FALLBACK_SPEED_MPS = 10.0  # ~36 km/h


def effective_speed(speed_mps: Optional[float], fallback_speed_mps: float = DEFAULT_FALLBACK_SPEED_MPS) -> float:
    if speed_mps is not None and speed_mps > 0:
        return speed_mps
    return fallback_speed_mps


def estimate_eta(
        distance_m: float,
        speed_mps: Optional[float] = None,
        fallback_speed_mps: float = DEFAULT_FALLBACK_SPEED_MPS,
) -> float:
    """Seconds needed to cover distance_m at the effective speed."""
    if fallback_speed_mps <= 0:
        raise ValueError("fallback_speed_mps must be > 0")
    return max(0.0, distance_m) / effective_speed(speed_mps, fallback_speed_mps)
