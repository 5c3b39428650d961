from typing import Optional, Sequence

from routing.models import RouteGeometry, RouteStep

from .models import NavigationState, TrackerStatus


class NavigationStateException(Exception):
    """Raised when an invalid tracker transition is attempted."""
    pass


def begin_trip(state: NavigationState, route: RouteGeometry, steps: Sequence[RouteStep]) -> NavigationState:
    """
    Idle -> Active.
    Starts from a clean slate: progress and every announce-once set are reset
    so a new trip can announce the same ids again.
    """
    if state.is_active:
        raise NavigationStateException("Navigation is already active; stop the current trip first.")

    return NavigationState(
        status=TrackerStatus.ACTIVE,
        route=route,
        steps=tuple(steps),
        distance_remaining_m=route.length_m,
    )


def end_trip(state: NavigationState) -> NavigationState:
    """
    Active -> Idle (stop or arrival). Ending an idle trip is a no-op so stop()
    stays idempotent.
    """
    if not state.is_active:
        return state
    return NavigationState()


def require_active(state: NavigationState) -> None:
    if not state.is_active:
        raise NavigationStateException("Navigation is not active.")


def record_fix_error(state: NavigationState, error: Optional[str]) -> None:
    """
    A failed fix only marks the state; progress is kept so tracking resumes
    on the next good fix.
    """
    require_active(state)
    state.error = error
