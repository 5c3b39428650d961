"""
Purpose: Trip cost estimate for a planned route.
What it does:
Turns a route distance into energy consumed and money spent, for a handful of
vehicle energy profiles (litres or kWh per 100 km at a flat unit price).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union


class VehicleType(str, Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class VehicleProfile:
    label: str
    consumption_per_100km: float
    unit_price: float  # EUR per unit
    unit: str  # "L" or "kWh"


VEHICLE_PROFILES: Dict[VehicleType, VehicleProfile] = {
    VehicleType.GASOLINE: VehicleProfile("Gasoline", 7.0, 1.55, "L"),
    VehicleType.DIESEL: VehicleProfile("Diesel", 5.5, 1.45, "L"),
    VehicleType.ELECTRIC: VehicleProfile("Electric", 16.0, 0.15, "kWh"),
    VehicleType.HYBRID: VehicleProfile("Hybrid", 4.5, 1.55, "L"),
}


@dataclass(frozen=True)
class TripCost:
    vehicle_type: VehicleType
    distance_km: float
    consumed: float
    unit: str
    cost: float


def estimate_trip_cost(
        distance_m: Optional[float],
        vehicle_type: Union[str, VehicleType] = VehicleType.GASOLINE,
) -> Optional[TripCost]:
    """
    Energy and cost for driving distance_m with the given vehicle type.
    Returns None when there is no distance to cost (missing or <= 0).
    """
    if distance_m is None or distance_m <= 0:
        return None

    vehicle_type = VehicleType(vehicle_type)
    profile = VEHICLE_PROFILES[vehicle_type]
    distance_km = distance_m / 1000.0
    consumed = profile.consumption_per_100km / 100.0 * distance_km
    return TripCost(
        vehicle_type=vehicle_type,
        distance_km=distance_km,
        consumed=consumed,
        unit=profile.unit,
        cost=consumed * profile.unit_price,
    )
