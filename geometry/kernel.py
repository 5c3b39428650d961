"""
Purpose: Geometry primitives shared by the zone, routing and navigation packages.
What it does:
- great-circle distance, bearing and destination point (haversine, spherical earth)
- point/segment projection on a local equirectangular plane (short distances)
- point-in-polygon (boundary counts as inside), polygon area / centroid / boundary
- nearest point on a polyline together with the distance travelled along it
- bounding box helpers used as cheap pre-filters

Coordinates are (lat, lon) tuples in degrees. Polygons are rings of (lat, lon)
vertices, implicitly closed (a duplicated closing vertex is tolerated).

Rule: pure functions only. No zone rules, no routing calls, no state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

#(min_lat, min_lon, max_lat, max_lon)
BBox = Tuple[float, float, float, float]

EARTH_RADIUS_M = 6371008.8

#tolerance for collinearity tests, in squared degrees
_COLLINEAR_EPSILON = 1e-14


@dataclass(frozen=True)
class LinePosition:
    """
    Result of snapping a point onto a polyline.
    """
    point: LatLon  # closest point on the line
    distance_m: float  # query point -> closest point
    along_m: float  # distance travelled along the line up to `point`
    segment_index: int  # index of the segment start vertex


# ----------------
# Distances and bearings
# ----------------

def haversine_m(a: LatLon, b: LatLon) -> float:
    """Great-circle distance in meters between two (lat, lon) points."""
    lat1, lon1 = math.radians(a[0]), math.radians(a[1])
    lat2, lon2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def bearing_deg(a: LatLon, b: LatLon) -> float:
    """Initial bearing from a to b, degrees clockwise from north in [0, 360)."""
    lat1, lat2 = math.radians(a[0]), math.radians(b[0])
    dlon = math.radians(b[1] - a[1])
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def destination_from_bearing(point: LatLon, distance_m: float, bearing: float) -> LatLon:
    """Point reached after travelling distance_m from point on the given bearing."""
    lat1 = math.radians(point[0])
    lon1 = math.radians(point[1])
    theta = math.radians(bearing)
    delta = distance_m / EARTH_RADIUS_M

    lat2 = math.asin(
        math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(theta)
    )
    lon2 = lon1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    lon = (math.degrees(lon2) + 540.0) % 360.0 - 180.0
    return (math.degrees(lat2), lon)


def extend_beyond(anchor: LatLon, through: LatLon, distance_m: float) -> LatLon:
    """
    Point distance_m past `through`, continuing on the bearing anchor -> through.
    Used to push a boundary point outward from a polygon centroid.
    """
    return destination_from_bearing(through, distance_m, bearing_deg(anchor, through))


# ----------------
# Local plane helpers
# ----------------

def _to_plane(point: LatLon, origin: LatLon) -> Tuple[float, float]:
    """Equirectangular projection around origin, meters (x east, y north)."""
    x = math.radians(point[1] - origin[1]) * math.cos(math.radians(origin[0])) * EARTH_RADIUS_M
    y = math.radians(point[0] - origin[0]) * EARTH_RADIUS_M
    return x, y


def _from_plane(xy: Tuple[float, float], origin: LatLon) -> LatLon:
    x, y = xy
    lat = origin[0] + math.degrees(y / EARTH_RADIUS_M)
    lon = origin[1] + math.degrees(x / (EARTH_RADIUS_M * math.cos(math.radians(origin[0]))))
    return (lat, lon)


def project_onto_segment(point: LatLon, a: LatLon, b: LatLon) -> Tuple[LatLon, float]:
    """
    Closest point to `point` on segment a-b and its parameter t in [0, 1].
    The projection is done on a plane centred on `point`.
    """
    ax, ay = _to_plane(a, point)
    bx, by = _to_plane(b, point)
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return a, 0.0

    #the query point sits at the plane origin (0, 0)
    t = -(ax * dx + ay * dy) / length_sq
    if t <= 0.0:
        return a, 0.0
    if t >= 1.0:
        return b, 1.0
    return (a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1])), t


def distance_point_to_segment_m(point: LatLon, a: LatLon, b: LatLon) -> float:
    projected, _ = project_onto_segment(point, a, b)
    return haversine_m(point, projected)


def side_of_line(point: LatLon, a: LatLon, b: LatLon) -> float:
    """
    Signed cross product of (b - a) x (point - a) on a plane around a.
    Positive: point is left of the directed line a -> b. Negative: right.
    """
    bx, by = _to_plane(b, a)
    px, py = _to_plane(point, a)
    return bx * py - by * px


# ----------------
# Polylines
# ----------------

def cumulative_lengths(line: Sequence[LatLon]) -> List[float]:
    """Distance in meters from the first vertex to every vertex of the line."""
    lengths = [0.0]
    for index in range(1, len(line)):
        lengths.append(lengths[-1] + haversine_m(line[index - 1], line[index]))
    return lengths


def line_length_m(line: Sequence[LatLon]) -> float:
    return cumulative_lengths(line)[-1] if line else 0.0


def nearest_point_on_line(
        line: Sequence[LatLon],
        point: LatLon,
        cumulative: Optional[Sequence[float]] = None,
) -> LinePosition:
    """
    Snap a point onto a polyline.

    Returns the closest projection over all segments and the distance travelled
    along the line to reach it. On ties the first segment (in line order) wins.

    Args:
        line: polyline vertices, at least 2
        point: query point
        cumulative: optional precomputed cumulative_lengths(line)
    """
    if len(line) < 2:
        raise ValueError("A line needs at least two vertices.")
    if cumulative is None:
        cumulative = cumulative_lengths(line)

    best: Optional[LinePosition] = None
    for index in range(len(line) - 1):
        start, end = line[index], line[index + 1]
        projected, _ = project_onto_segment(point, start, end)
        distance = haversine_m(point, projected)
        #strict comparison keeps the first segment on ties
        if best is None or distance < best.distance_m:
            best = LinePosition(
                point=projected,
                distance_m=distance,
                along_m=cumulative[index] + haversine_m(start, projected),
                segment_index=index,
            )
    return best


def interpolate_along(
        line: Sequence[LatLon],
        distance_m: float,
        cumulative: Optional[Sequence[float]] = None,
) -> LatLon:
    """Point located distance_m along the line (clamped to its ends)."""
    if not line:
        raise ValueError("Cannot interpolate along an empty line.")
    if len(line) == 1 or distance_m <= 0.0:
        return line[0]
    if cumulative is None:
        cumulative = cumulative_lengths(line)
    if distance_m >= cumulative[-1]:
        return line[-1]

    for index in range(1, len(line)):
        if cumulative[index] >= distance_m:
            segment = cumulative[index] - cumulative[index - 1]
            if segment == 0.0:
                return line[index]
            t = (distance_m - cumulative[index - 1]) / segment
            a, b = line[index - 1], line[index]
            return (a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1]))
    return line[-1]


# ----------------
# Polygons
# ----------------

def open_ring(polygon: Sequence[LatLon]) -> List[LatLon]:
    """Ring vertices without a duplicated closing vertex."""
    ring = [tuple(vertex) for vertex in polygon]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def polygon_boundary_as_line(polygon: Sequence[LatLon]) -> List[LatLon]:
    """The polygon ring as an explicitly closed polyline."""
    ring = open_ring(polygon)
    if ring:
        ring.append(ring[0])
    return ring


def _on_segment(point: LatLon, a: LatLon, b: LatLon) -> bool:
    cross = (b[0] - a[0]) * (point[1] - a[1]) - (b[1] - a[1]) * (point[0] - a[0])
    if abs(cross) > _COLLINEAR_EPSILON:
        return False
    return (
        min(a[0], b[0]) <= point[0] <= max(a[0], b[0])
        and min(a[1], b[1]) <= point[1] <= max(a[1], b[1])
    )


def point_in_polygon(point: LatLon, polygon: Sequence[LatLon]) -> bool:
    """
    Ray-casting point-in-polygon test.

    A point lying on the boundary counts as inside, so that zone checks fail
    closed rather than open.
    """
    ring = open_ring(polygon)
    if len(ring) < 3:
        return False

    count = len(ring)
    for index in range(count):
        if _on_segment(point, ring[index], ring[(index + 1) % count]):
            return True

    lat, lon = point
    inside = False
    j = count - 1
    for i in range(count):
        lat_i, lon_i = ring[i]
        lat_j, lon_j = ring[j]
        crosses = ((lat_i > lat) != (lat_j > lat)) and (
            lon < (lon_j - lon_i) * (lat - lat_i) / (lat_j - lat_i) + lon_i
        )
        if crosses:
            inside = not inside
        j = i
    return inside


def _orientation(p: LatLon, q: LatLon, r: LatLon) -> int:
    value = (q[1] - p[1]) * (r[0] - q[0]) - (q[0] - p[0]) * (r[1] - q[1])
    if abs(value) <= _COLLINEAR_EPSILON:
        return 0
    return 1 if value > 0 else -1


def segments_intersect(p1: LatLon, p2: LatLon, p3: LatLon, p4: LatLon) -> bool:
    """True if segment p1-p2 touches or crosses segment p3-p4."""
    o1 = _orientation(p1, p2, p3)
    o2 = _orientation(p1, p2, p4)
    o3 = _orientation(p3, p4, p1)
    o4 = _orientation(p3, p4, p2)

    if o1 != o2 and o3 != o4:
        return True

    #collinear special cases
    if o1 == 0 and _on_segment(p3, p1, p2):
        return True
    if o2 == 0 and _on_segment(p4, p1, p2):
        return True
    if o3 == 0 and _on_segment(p1, p3, p4):
        return True
    if o4 == 0 and _on_segment(p2, p3, p4):
        return True
    return False


def line_intersects_polygon(line: Sequence[LatLon], polygon: Sequence[LatLon]) -> bool:
    """
    True if any vertex of the line is inside the polygon (boundary included)
    or any segment of the line crosses a polygon edge.
    """
    ring = open_ring(polygon)
    if len(ring) < 3 or not line:
        return False

    #fast filter: disjoint boxes cannot intersect
    if not bbox_intersects(bounding_box(line), bounding_box(ring)):
        return False

    for vertex in line:
        if point_in_polygon(vertex, ring):
            return True

    count = len(ring)
    for index in range(len(line) - 1):
        r1, r2 = line[index], line[index + 1]
        for j in range(count):
            if segments_intersect(r1, r2, ring[j], ring[(j + 1) % count]):
                return True
    return False


def distance_point_to_polygon_m(point: LatLon, polygon: Sequence[LatLon]) -> float:
    """0 if the point is inside, otherwise the distance to the closest edge."""
    if point_in_polygon(point, polygon):
        return 0.0
    boundary = polygon_boundary_as_line(polygon)
    return min(
        distance_point_to_segment_m(point, boundary[index], boundary[index + 1])
        for index in range(len(boundary) - 1)
    )


def _plane_origin(ring: Sequence[LatLon]) -> LatLon:
    min_lat, min_lon, max_lat, max_lon = bounding_box(ring)
    return ((min_lat + max_lat) / 2.0, (min_lon + max_lon) / 2.0)


def _signed_area_and_moments(ring: Sequence[LatLon], origin: LatLon) -> Tuple[float, float, float]:
    points = [_to_plane(vertex, origin) for vertex in ring]
    area2 = 0.0
    cx = 0.0
    cy = 0.0
    count = len(points)
    for index in range(count):
        x0, y0 = points[index]
        x1, y1 = points[(index + 1) % count]
        cross = x0 * y1 - x1 * y0
        area2 += cross
        cx += (x0 + x1) * cross
        cy += (y0 + y1) * cross
    return area2 / 2.0, cx, cy


def polygon_area_m2(polygon: Sequence[LatLon]) -> float:
    """Polygon area in square meters (shoelace formula on a local plane)."""
    ring = open_ring(polygon)
    if len(ring) < 3:
        return 0.0
    area, _, _ = _signed_area_and_moments(ring, _plane_origin(ring))
    return abs(area)


def polygon_centroid(polygon: Sequence[LatLon]) -> LatLon:
    """
    Area-weighted centroid of the polygon. Falls back to the vertex mean for
    degenerate (zero-area) rings.
    """
    ring = open_ring(polygon)
    if not ring:
        raise ValueError("Cannot compute the centroid of an empty polygon.")

    origin = _plane_origin(ring)
    area, cx, cy = _signed_area_and_moments(ring, origin) if len(ring) >= 3 else (0.0, 0.0, 0.0)
    if abs(area) < 1e-6:
        return (
            sum(vertex[0] for vertex in ring) / len(ring),
            sum(vertex[1] for vertex in ring) / len(ring),
        )
    return _from_plane((cx / (6.0 * area), cy / (6.0 * area)), origin)


# ----------------
# Bounding boxes
# ----------------

def bounding_box(points: Sequence[LatLon]) -> BBox:
    """
    Returns (min_lat, min_lon, max_lat, max_lon) for a list of (lat, lon) points.
    """
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    return (min(lats), min(lons), max(lats), max(lons))


def bbox_intersects(box1: BBox, box2: BBox) -> bool:
    # Check for disjoint
    if (box1[2] < box2[0] or box2[2] < box1[0]  # Lat disjoint
            or box1[3] < box2[1] or box2[3] < box1[1]):  # Lon disjoint
        return False
    return True


def point_in_bbox(point: LatLon, bbox: BBox) -> bool:
    lat, lon = point
    return bbox[0] <= lat <= bbox[2] and bbox[1] <= lon <= bbox[3]
