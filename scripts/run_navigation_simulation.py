import asyncio
import logging
import os
import sys
from datetime import datetime

import pandas as pd

from geometry import bearing_deg, haversine_m
from navigation import (
    NavigationSession,
    NavigationTracker,
    PositionFix,
    QueuedPositionSource,
    load_speed_cameras,
)
from routing import (
    AllRoutesBlocked,
    RouteCandidate,
    RouteGeometry,
    RouteLeg,
    RouteStep,
    ZoneAwareRoutePlanner,
    estimate_trip_cost,
)
from scripts.generate_mock_fixes import DEFAULT_DESTINATION, DEFAULT_ORIGIN, fixes_along
from zones import load_zones


class StraightLineRouter:
    """
    Stand-in for OSRM: drives in straight lines through the waypoints.
    Good enough to exercise the avoidance loop and the tracker offline.
    """

    def __init__(self, speed_mps=12.0):
        self.speed_mps = speed_mps

    def compute_route(self, origin, destination, waypoints=None, alternatives=False):
        points = [origin, *(waypoints or []), destination]
        steps = []
        for index in range(len(points) - 1):
            a, b = points[index], points[index + 1]
            distance = haversine_m(a, b)
            if index == 0:
                maneuver, instruction = "depart", f"Head out on bearing {bearing_deg(a, b):.0f}"
            else:
                maneuver, instruction = "turn", f"Turn towards bearing {bearing_deg(a, b):.0f}"
            steps.append(RouteStep(a, b, distance, distance / self.speed_mps, maneuver, instruction))
        steps.append(RouteStep(destination, destination, 0.0, 0.0, "arrive", "You have arrived at your destination"))

        total = sum(step.distance_m for step in steps)
        leg = RouteLeg(total, total / self.speed_mps, tuple(steps))
        return [RouteCandidate(RouteGeometry(tuple(points)), (leg,), total, total / self.speed_mps)]


async def simulate(vehicle_class="NONE", fixes_file=None, output_file="navigation_events.csv", replay_interval_s=0.005):
    registry = load_zones()
    print(f"Loaded {len(registry)} restricted zones.")

    # 1. Plan
    planner = ZoneAwareRoutePlanner(StraightLineRouter(), registry)
    try:
        outcome = await planner.plan_route(DEFAULT_ORIGIN, DEFAULT_DESTINATION, vehicle_class)
    except AllRoutesBlocked as e:
        print(f"[FAILED] {e}")
        return None

    route = outcome.route
    print(f"Plan: {outcome.status.value} after {outcome.attempts} attempt(s), "
          f"{len(outcome.waypoints)} waypoint(s), {route.distance_m / 1000:.2f} km")
    cost = estimate_trip_cost(route.distance_m, "gasoline")
    if cost:
        print(f"Estimated cost: {cost.consumed:.2f} {cost.unit} -> {cost.cost:.2f} EUR")

    # 2. Fixes
    if fixes_file and os.path.exists(fixes_file):
        df = pd.read_csv(fixes_file)
    else:
        df = fixes_along(route.geometry.coordinates, seed=7)
        if fixes_file:
            df.to_csv(fixes_file, index=False)
    print(f"Replaying {len(df)} position fixes...")

    # 3. Navigate
    events = []
    tracker = NavigationTracker(registry=registry, vehicle_class=vehicle_class, tracked_points=load_speed_cameras())
    tracker.subscribe(events.append)
    source = QueuedPositionSource()
    session = NavigationSession(tracker, source, planner=planner)
    await session.start(route)

    for row in df.itertuples(index=False):
        if not session.running:
            break
        source.push(PositionFix(
            lat=float(row.lat),
            lon=float(row.lon),
            heading_deg=float(row.heading_deg),
            speed_mps=float(row.speed_mps),
            timestamp=datetime.fromisoformat(row.timestamp),
        ))
        await asyncio.sleep(replay_interval_s)
    await session.stop()

    # 4. Report
    events_df = pd.DataFrame([
        {
            "kind": event.kind.value,
            "step_index": event.step_index,
            "instruction": event.instruction,
            "distance_m": round(event.distance_m, 1) if event.distance_m is not None else None,
            "message": event.message,
        }
        for event in events
    ])
    events_df.to_csv(output_file, index=False)

    print("\nEvents by kind:")
    for kind, count in events_df["kind"].value_counts().items():
        print(f"  {kind}: {count}")
    print(f"Fixes dropped by the source buffer: {source.dropped}")
    print(f"Events written to '{output_file}'.")
    return events_df


def run_simulation():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    vehicle_class = sys.argv[1] if len(sys.argv) > 1 else "NONE"
    fixes_file = sys.argv[2] if len(sys.argv) > 2 else None
    print("=== STARTING NAVIGATION SIMULATION ===")
    asyncio.run(simulate(vehicle_class, fixes_file))
    print("\n=== SIMULATION COMPLETE ===")


if __name__ == "__main__":
    run_simulation()
