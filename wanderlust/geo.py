"""Geographic utility functions."""

import math
from typing import NamedTuple, Optional

from .config import CONFIG


class Position(NamedTuple):
    """A WGS84 (lat, lon) pair in degrees"""
    lat: float
    lon: float

    @classmethod
    def from_value(cls, value) -> "Position":
        """Accept [lat, lon], (lat, lon) or {"lat": .., "lon": ..}"""
        if isinstance(value, dict):
            return cls(float(value["lat"]), float(value["lon"]))
        lat, lon = value
        return cls(float(lat), float(lon))


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    R = CONFIG["earth_radius"]

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return R * c


def distance(a: Position, b: Position) -> float:
    """Great-circle distance in meters between two positions"""
    return haversine_distance(a[0], a[1], b[0], b[1])


def path_distance(points: list[Position]) -> float:
    """Total length in meters of a polyline"""
    return sum(distance(points[i - 1], points[i]) for i in range(1, len(points)))


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in degrees (0-180)"""
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


def _projection_parameter(p: Position, seg_start: Position, seg_end: Position) -> Optional[float]:
    """Clamped position of p's projection along the segment, None if degenerate"""
    dx = seg_end[0] - seg_start[0]
    dy = seg_end[1] - seg_start[1]
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return None
    t = ((p[0] - seg_start[0]) * dx + (p[1] - seg_start[1]) * dy) / len_sq
    return max(0.0, min(1.0, t))


def project_onto_segment(p: Position, seg_start: Position, seg_end: Position) -> Position:
    """Closest point to p on the closed segment, using planar degree space.

    The projection parameter is clamped to [0, 1] so the result never lies
    beyond the endpoints.
    """
    t = _projection_parameter(p, seg_start, seg_end)
    if t is None or t == 0.0:
        return Position(seg_start[0], seg_start[1])
    if t == 1.0:
        return Position(seg_end[0], seg_end[1])
    return Position(
        seg_start[0] + t * (seg_end[0] - seg_start[0]),
        seg_start[1] + t * (seg_end[1] - seg_start[1]),
    )


def distance_to_segment(p: Position, seg_start: Position, seg_end: Position,
                        meters_per_degree: Optional[float] = None) -> float:
    """Distance in meters from p to the closest point of a segment.

    Uses a flat meters-per-degree scale (no longitude correction), which is
    good enough at city scale. A degenerate segment falls back to the
    great-circle distance to its single point.
    """
    if seg_start[0] == seg_end[0] and seg_start[1] == seg_end[1]:
        return distance(p, seg_start)
    mpd = meters_per_degree or CONFIG["meters_per_degree"]
    proj = project_onto_segment(p, seg_start, seg_end)
    dx = p[0] - proj[0]
    dy = p[1] - proj[1]
    return math.sqrt(dx * dx + dy * dy) * mpd


def segment_direction(seg_start: Position, seg_end: Position) -> float:
    """Planar direction of the start->end vector in degrees (0-360, 0=east)"""
    d_lon = seg_end[1] - seg_start[1]
    d_lat = seg_end[0] - seg_start[0]
    return (math.degrees(math.atan2(d_lat, d_lon)) + 360) % 360
