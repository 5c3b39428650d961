#Marks geometry as a package.
#Re-exports the kernel primitives so other packages import from geometry
#without knowing internal file names. No business logic.

from .kernel import (
    LatLon,
    BBox,
    LinePosition,
    EARTH_RADIUS_M,
    haversine_m,
    bearing_deg,
    destination_from_bearing,
    extend_beyond,
    project_onto_segment,
    distance_point_to_segment_m,
    side_of_line,
    cumulative_lengths,
    line_length_m,
    nearest_point_on_line,
    interpolate_along,
    open_ring,
    polygon_boundary_as_line,
    point_in_polygon,
    segments_intersect,
    line_intersects_polygon,
    distance_point_to_polygon_m,
    polygon_area_m2,
    polygon_centroid,
    bounding_box,
    bbox_intersects,
    point_in_bbox,
)

__all__ = [
    "LatLon",
    "BBox",
    "LinePosition",
    "EARTH_RADIUS_M",
    "haversine_m",
    "bearing_deg",
    "destination_from_bearing",
    "extend_beyond",
    "project_onto_segment",
    "distance_point_to_segment_m",
    "side_of_line",
    "cumulative_lengths",
    "line_length_m",
    "nearest_point_on_line",
    "interpolate_along",
    "open_ring",
    "polygon_boundary_as_line",
    "point_in_polygon",
    "segments_intersect",
    "line_intersects_polygon",
    "distance_point_to_polygon_m",
    "polygon_area_m2",
    "polygon_centroid",
    "bounding_box",
    "bbox_intersects",
    "point_in_bbox",
]
