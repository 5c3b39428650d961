#Purpose: The OSRM “adapter/client” (the external routing collaborator).
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts/error handling
#parsing response JSON into RouteCandidate / RouteLeg / RouteStep
#It should not contain zone rules or avoidance logic.


from dotenv import load_dotenv
import os
from typing import List, Tuple, Dict, Any, Optional, Sequence
import requests

from .models import RouteCandidate, RouteGeometry, RouteLeg, RouteStep

# Read OSRM base URL from environment
# Example in .env:
# BASE_URL=http://router.project-osrm.org
load_dotenv()
BASE_URL = os.getenv("BASE_URL")

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]


class OSRMError(Exception):
    """Custom exception for OSRM client errors."""
    pass


class NoRouteFound(OSRMError):
    """OSRM answered but had no route between the given points."""
    pass


_MODIFIER_WORDS = {
    "uturn": "make a U-turn",
    "sharp right": "turn sharp right",
    "right": "turn right",
    "slight right": "keep slightly right",
    "straight": "continue straight",
    "slight left": "keep slightly left",
    "left": "turn left",
    "sharp left": "turn sharp left",
}


def instruction_for(maneuver_type: str, modifier: Optional[str], road_name: Optional[str]) -> str:
    """
    Build a short spoken instruction from an OSRM maneuver.
    OSRM does not return text instructions itself.
    """
    onto = f" onto {road_name}" if road_name else ""
    if maneuver_type == "depart":
        return f"Head out{onto}".strip()
    if maneuver_type == "arrive":
        return "You have arrived at your destination"
    if maneuver_type in ("roundabout", "rotary"):
        return f"Enter the roundabout and exit{onto}"
    if maneuver_type in ("exit roundabout", "exit rotary"):
        return f"Exit the roundabout{onto}"
    if maneuver_type == "merge":
        return f"Merge{onto}"
    if maneuver_type in ("on ramp", "off ramp"):
        return f"Take the ramp{onto}"
    if maneuver_type == "fork":
        side = "left" if modifier and "left" in modifier else "right"
        return f"Keep {side} at the fork{onto}"
    if maneuver_type == "end of road":
        side = "left" if modifier and "left" in modifier else "right"
        return f"At the end of the road turn {side}{onto}"

    action = _MODIFIER_WORDS.get(modifier or "", "continue")
    return f"{action[0].upper()}{action[1:]}{onto}"


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs

    """
    def __init__(self, profile: str = "driving", timeout: int = 5, base_url: Optional[str] = None):
        self.base_url = base_url or BASE_URL
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set it in the .env file.")

    #----------------
    # Internal helper methods for coordinate formatting, parsing, error handling
    #----------------
    def format_coordinates(self, coords: Sequence[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{lon},{lat}" for lat, lon in coords])

    @staticmethod
    def _to_latlon(pairs: Sequence[Sequence[float]]) -> List[LatLon]:
        #OSRM/GeoJSON coordinates are [lon, lat]
        return [(float(pair[1]), float(pair[0])) for pair in pairs]

    def _parse_step(self, step: Dict[str, Any], fallback: LatLon) -> RouteStep:
        """`fallback` locates a step that carries neither geometry nor a maneuver location."""
        maneuver = step.get("maneuver", {})
        points = self._to_latlon(step.get("geometry", {}).get("coordinates", []))
        location = maneuver.get("location")
        if not points and location:
            points = self._to_latlon([location])
        start = points[0] if points else fallback
        end = points[-1] if points else start

        road_name = step.get("name") or None
        maneuver_type = maneuver.get("type", "continue")
        modifier = maneuver.get("modifier")
        return RouteStep(
            start_point=start,
            end_point=end,
            distance_m=float(step.get("distance", 0.0)),
            duration_s=float(step.get("duration", 0.0)),
            maneuver=f"{maneuver_type} {modifier}" if modifier else maneuver_type,
            instruction=instruction_for(maneuver_type, modifier, road_name),
            road_name=road_name,
        )

    def _parse_route(self, route: Dict[str, Any]) -> RouteCandidate:
        geometry = RouteGeometry(tuple(self._to_latlon(route["geometry"]["coordinates"])))
        legs = []
        previous_end = geometry.start
        for leg in route.get("legs", []):
            steps = []
            for step in leg.get("steps", []):
                parsed = self._parse_step(step, previous_end)
                previous_end = parsed.end_point
                steps.append(parsed)
            legs.append(RouteLeg(
                distance_m=float(leg.get("distance", 0.0)),
                duration_s=float(leg.get("duration", 0.0)),
                steps=tuple(steps),
            ))
        return RouteCandidate(
            geometry=geometry,
            legs=tuple(legs),
            distance_m=float(route.get("distance", 0.0)),
            duration_s=float(route.get("duration", 0.0)),
        )

    #----------------
    # Public methods
    #----------------
    def compute_route(
            self,
            origin: LatLon,
            destination: LatLon,
            waypoints: Optional[Sequence[LatLon]] = None,
            alternatives: bool = False,
    ) -> List[RouteCandidate]:
        """
        calls the OSRM /route endpoint and returns every route it proposes,
        the main route first.

        Waypoints are passed as intermediate via points. OSRM only computes
        alternatives for two-point requests, so `alternatives` is ignored when
        waypoints are given.

        Raises:
            NoRouteFound: OSRM found no route (code NoRoute or empty list)
            OSRMError: transport failure or any other non-Ok answer
        """
        coordinates = [origin, *(waypoints or []), destination]
        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"

        params = {
            "overview": "full", # full geometry is needed for zone validation
            "geometries": "geojson",
            "steps": "true",
        }
        if alternatives and not waypoints:
            params["alternatives"] = "true"

        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            data = response.json() #OSRM returns a JSON response with routes, legs and steps
        except requests.exceptions.RequestException as e:
            raise OSRMError(f"OSRM connection error: {e}") from e
        except ValueError as e:
            raise OSRMError(f"OSRM returned a non-JSON response (HTTP {response.status_code})") from e

        #validating OSRM response
        code = data.get("code")
        if code == "NoRoute":
            raise NoRouteFound(data.get("message", "No route found"))
        if code != "Ok":
            raise OSRMError(f"OSRM error: {data.get('message', 'Unknown error')}")

        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFound("OSRM returned no routes")

        #Normalize output to internal format
        return [self._parse_route(route) for route in routes]
