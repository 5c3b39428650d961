"""
Purpose: Zone-aware route computation for downstream use (the "glue").
What it does:
Asks the routing collaborator for a route, validates it against the zone
registry and, while it is blocked, nudges the collaborator with avoidance
waypoints. Returns the route that navigation should follow.

Planning cycle:
1. main route (+ alternatives) origin -> destination; valid -> done
2. up to max_attempts avoidance attempts: waypoints for the newly violated
   zones are merged into the current set (rounded-coordinate dedup), the set is
   re-sorted along origin -> destination and the route is recomputed and
   re-validated; an attempt that adds no new waypoint ends the loop early
3. fallback a: the first independently valid alternative from step 1
4. fallback b: a route between safe points just outside the zones that contain
   the endpoints (a degraded success)
5. otherwise AllRoutesBlocked with the violations of the best candidate

"No route found" (NoRouteFound from the collaborator) on the first call is
surfaced as-is and is never confused with "all routes blocked".

Starting a new planning cycle cancels the one in flight.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional, Protocol, Sequence, Set, Tuple

from geometry import LatLon
from zones import VehicleClass, ZoneRegistry

from .avoidance import AvoidancePlanner, merge_waypoints, order_along_trip
from .models import (
    PlanningOutcome,
    PlanningStatus,
    RouteCandidate,
    SafePoint,
    ValidationResult,
    ViolatedZone,
)
from .osrm_client import NoRouteFound
from .policy import AvoidancePolicy, default_avoidance_policy
from .safe_points import SafePointResolver
from .validator import RouteValidator

logger = logging.getLogger(__name__)


class RoutingCollaborator(Protocol):
    """Anything shaped like OSRMClient.compute_route (blocking call)."""

    def compute_route(
            self,
            origin: LatLon,
            destination: LatLon,
            waypoints: Optional[Sequence[LatLon]] = None,
            alternatives: bool = False,
    ) -> List[RouteCandidate]:
        ...


class AllRoutesBlocked(Exception):
    """
    Every candidate (main, alternatives, avoidance attempts, safe-point route)
    crosses at least one active zone for the vehicle class.
    Carries the violations of the best (fewest-violation) candidate.
    """

    def __init__(self, violated_zones: Sequence[ViolatedZone], best_route: Optional[RouteCandidate] = None):
        self.violated_zones: Tuple[ViolatedZone, ...] = tuple(violated_zones)
        self.best_route = best_route
        names = ", ".join(zone.name for zone in self.violated_zones) or "unknown zones"
        super().__init__(f"All candidate routes cross restricted zones: {names}")


class _Best:
    """Tracks the fewest-violation candidate seen during a planning cycle."""

    def __init__(self, route: RouteCandidate, result: ValidationResult):
        self.route = route
        self.result = result

    def offer(self, route: RouteCandidate, result: ValidationResult) -> None:
        if result.violation_count < self.result.violation_count:
            self.route = route
            self.result = result


class ZoneAwareRoutePlanner:
    """
    Plans a route that respects restricted zones for one vehicle class.

    The routing collaborator is a blocking client (OSRMClient); each call runs
    in a worker thread so the event loop stays free for navigation.
    """

    def __init__(
            self,
            router: RoutingCollaborator,
            registry: ZoneRegistry,
            *,
            policy: Optional[AvoidancePolicy] = None,
            today: Callable[[], date] = date.today,
    ):
        self.router = router
        self.registry = registry
        self.policy = policy or default_avoidance_policy()
        self.policy.validate()
        self.validator = RouteValidator(registry)
        self.resolver = SafePointResolver(registry, self.policy)
        self.avoidance = AvoidancePlanner(registry, self.policy)
        self._today = today
        self._current_task: Optional[asyncio.Task] = None

    # --- Public API ---

    async def plan_route(
            self,
            origin: LatLon,
            destination: LatLon,
            vehicle_class: VehicleClass,
            *,
            on_date: Optional[date] = None,
    ) -> PlanningOutcome:
        """
        Run one planning cycle. Cancels any cycle still in flight; that cycle's
        caller receives asyncio.CancelledError.

        Raises:
            NoRouteFound: the collaborator had no route for origin -> destination
            AllRoutesBlocked: no acceptable route, even through safe points
        """
        self.cancel()
        on_date = on_date or self._today()
        task = asyncio.create_task(self._plan(origin, destination, vehicle_class, on_date))
        self._current_task = task
        try:
            return await task
        finally:
            if self._current_task is task:
                self._current_task = None

    def cancel(self) -> None:
        """Cancel the planning cycle in flight, if any."""
        task, self._current_task = self._current_task, None
        if task is not None and not task.done():
            logger.info("Cancelling in-flight route planning")
            task.cancel()

    # --- Planning cycle ---

    async def _plan(
            self,
            origin: LatLon,
            destination: LatLon,
            vehicle_class: VehicleClass,
            on_date: date,
    ) -> PlanningOutcome:
        endpoint_zone_ids = self._endpoint_zone_ids(origin, destination, vehicle_class, on_date)

        candidates = await self._compute(origin, destination, alternatives=True)
        main, alternatives = candidates[0], candidates[1:]
        result = self.validator.validate(main.geometry, vehicle_class, on_date=on_date)
        if result.valid:
            return PlanningOutcome(status=PlanningStatus.VALID, route=main, validation=result)

        logger.info("Main route crosses %d zone(s): %s", result.violation_count, ", ".join(result.zone_ids))
        best = _Best(main, result)

        waypoints, attempts, outcome = await self._avoidance_loop(
            origin, destination, vehicle_class, on_date, result, endpoint_zone_ids, best
        )
        if outcome is not None:
            return outcome

        # fallback a: an alternative that is valid on its own
        for alternative in alternatives:
            alternative_result = self.validator.validate(alternative.geometry, vehicle_class, on_date=on_date)
            if alternative_result.valid:
                logger.info("Falling back to a valid alternative route")
                return PlanningOutcome(
                    status=PlanningStatus.VALID_ALTERNATIVE,
                    route=alternative,
                    validation=alternative_result,
                    attempts=attempts,
                )
            best.offer(alternative, alternative_result)

        # fallback b: route between safe points
        if endpoint_zone_ids:
            outcome = await self._plan_via_safe_points(
                origin, destination, vehicle_class, on_date, endpoint_zone_ids, waypoints, attempts, best
            )
            if outcome is not None:
                return outcome

        logger.warning(
            "All routes blocked for class %s: best candidate crosses %d zone(s)",
            vehicle_class, best.result.violation_count,
        )
        raise AllRoutesBlocked(best.result.violated_zones, best.route)

    async def _avoidance_loop(
            self,
            origin: LatLon,
            destination: LatLon,
            vehicle_class: VehicleClass,
            on_date: date,
            result: ValidationResult,
            endpoint_zone_ids: Set[str],
            best: _Best,
    ) -> Tuple[List[LatLon], int, Optional[PlanningOutcome]]:
        """
        Bounded retry loop with an explicit attempt counter.

        Returns:
            (waypoints accumulated, attempts made, outcome if a valid route was found)
        """
        waypoints: List[LatLon] = []
        attempts = 0
        for attempt in range(1, self.policy.max_attempts + 1):
            #zones containing an endpoint cannot be bypassed; safe points handle them
            avoidable = [zone_id for zone_id in result.zone_ids if zone_id not in endpoint_zone_ids]
            if not avoidable:
                break

            proposed = self.avoidance.plan(avoidable, origin, destination)
            waypoints, added = merge_waypoints(waypoints, proposed, self.policy.dedup_precision)
            if added == 0:
                logger.info("Avoidance attempt %d added no new waypoint; stopping", attempt)
                break
            #a later attempt may report a zone nearer the origin than the earlier ones
            waypoints = order_along_trip(waypoints, origin, destination)

            attempts = attempt
            try:
                route = (await self._compute(origin, destination, waypoints=waypoints))[0]
            except NoRouteFound:
                logger.warning("No route through %d avoidance waypoint(s); stopping", len(waypoints))
                break

            result = self.validator.validate(route.geometry, vehicle_class, on_date=on_date)
            logger.info(
                "Avoidance attempt %d: %d waypoint(s), %d zone(s) still crossed",
                attempt, len(waypoints), result.violation_count,
            )
            best.offer(route, result)
            if result.valid:
                return waypoints, attempts, PlanningOutcome(
                    status=PlanningStatus.VALID,
                    route=route,
                    validation=result,
                    waypoints=tuple(waypoints),
                    attempts=attempts,
                )
        return waypoints, attempts, None

    async def _plan_via_safe_points(
            self,
            origin: LatLon,
            destination: LatLon,
            vehicle_class: VehicleClass,
            on_date: date,
            endpoint_zone_ids: Set[str],
            waypoints: Sequence[LatLon],
            attempts: int,
            best: _Best,
    ) -> Optional[PlanningOutcome]:
        origin_safe: Optional[SafePoint] = self.resolver.resolve(origin, vehicle_class, on_date=on_date)
        destination_safe: Optional[SafePoint] = self.resolver.resolve(destination, vehicle_class, on_date=on_date)
        start = origin_safe.coordinates if origin_safe else origin
        end = destination_safe.coordinates if destination_safe else destination

        #direct first, then through the avoidance waypoints gathered so far
        tries: List[Sequence[LatLon]] = [()]
        if waypoints:
            tries.append(waypoints)

        for via in tries:
            try:
                route = (await self._compute(start, end, waypoints=via or None))[0]
            except NoRouteFound:
                logger.warning("No route between safe points (%d waypoint(s))", len(via))
                continue

            confined = self.validator.validate(
                route.geometry, vehicle_class, on_date=on_date, exclude_zone_ids=endpoint_zone_ids
            )
            full = self.validator.validate(route.geometry, vehicle_class, on_date=on_date)
            best.offer(route, full)
            if not confined.valid:
                continue

            residual = list(full.zone_ids)
            residual.extend(zone_id for zone_id in sorted(endpoint_zone_ids) if zone_id not in residual)
            logger.info("Degraded route via safe points; %d zone(s) remain near the endpoints", len(residual))
            return PlanningOutcome(
                status=PlanningStatus.DEGRADED,
                route=route,
                validation=full,
                waypoints=tuple(via),
                attempts=attempts,
                origin_safe_point=origin_safe,
                destination_safe_point=destination_safe,
                residual_zone_ids=tuple(residual),
            )
        return None

    # --- Helpers ---

    def _endpoint_zone_ids(
            self,
            origin: LatLon,
            destination: LatLon,
            vehicle_class: VehicleClass,
            on_date: date,
    ) -> Set[str]:
        zone_ids: Set[str] = set()
        for point in (origin, destination):
            zone = self.resolver.zone_containing(point, vehicle_class, on_date=on_date)
            if zone is not None:
                zone_ids.add(zone.id)
        return zone_ids

    async def _compute(
            self,
            origin: LatLon,
            destination: LatLon,
            *,
            waypoints: Optional[Sequence[LatLon]] = None,
            alternatives: bool = False,
    ) -> List[RouteCandidate]:
        candidates = await asyncio.to_thread(
            self.router.compute_route,
            origin,
            destination,
            waypoints=list(waypoints) if waypoints else None,
            alternatives=alternatives,
        )
        if not candidates:
            raise NoRouteFound("Routing service returned no candidate")
        return candidates
