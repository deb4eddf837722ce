"""Data classes for Wanderlust."""

import math
from dataclasses import dataclass, field
from typing import Optional

from .config import CONFIG
from .geo import Position, haversine_distance


@dataclass
class StreetSegment:
    """Atomic straight piece of a street way between two consecutive points"""
    id: str  # "{way_id}-{index}"
    way_id: int
    index: int
    start: Position
    end: Position
    street_name: str
    explored: bool = False

    @classmethod
    def make_id(cls, way_id: int, index: int) -> str:
        return f"{way_id}-{index}"

    @property
    def length(self) -> float:
        return haversine_distance(self.start.lat, self.start.lon, self.end.lat, self.end.lon)

    @property
    def midpoint(self) -> Position:
        return Position((self.start.lat + self.end.lat) / 2, (self.start.lon + self.end.lon) / 2)

    def to_record(self) -> "SegmentRecord":
        return SegmentRecord(start=self.start, end=self.end, street_name=self.street_name)


@dataclass
class Street:
    """A named way and its ordered segments"""
    id: int
    name: str
    highway: Optional[str]
    coordinates: list[Position]
    segments: list[StreetSegment] = field(default_factory=list)


@dataclass
class BoundingRegion:
    """Rectangle of cached street data (degrees)"""
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, position: Position, radius_meters: float,
               meters_per_degree: Optional[float] = None) -> "BoundingRegion":
        """Square-ish region of radius_meters around position"""
        mpd = meters_per_degree or CONFIG["meters_per_degree"]
        lat_delta = radius_meters / mpd
        lon_delta = radius_meters / (mpd * math.cos(math.radians(position.lat)))
        return cls(
            south=position.lat - lat_delta,
            west=position.lon - lon_delta,
            north=position.lat + lat_delta,
            east=position.lon + lon_delta,
        )

    def contains(self, position: Position) -> bool:
        return (self.south <= position.lat <= self.north and
                self.west <= position.lon <= self.east)

    def buffer_zone(self, ratio: Optional[float] = None) -> "BoundingRegion":
        """Inner rectangle covering `ratio` of each dimension, same center"""
        ratio = CONFIG["bbox_buffer"] if ratio is None else ratio
        lat_inset = (self.north - self.south) * (1 - ratio) / 2
        lon_inset = (self.east - self.west) * (1 - ratio) / 2
        return BoundingRegion(
            south=self.south + lat_inset,
            west=self.west + lon_inset,
            north=self.north - lat_inset,
            east=self.east - lon_inset,
        )

    def as_overpass_bbox(self) -> str:
        return f"{self.south},{self.west},{self.north},{self.east}"


@dataclass
class SegmentRecord:
    """Geometry of a discovered segment, kept so it can be redrawn offline"""
    start: Position
    end: Position
    street_name: str

    @property
    def length(self) -> float:
        return haversine_distance(self.start.lat, self.start.lon, self.end.lat, self.end.lon)

    def to_dict(self) -> dict:
        return {
            "start": list(self.start),
            "end": list(self.end),
            "streetName": self.street_name,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SegmentRecord":
        return cls(
            start=Position.from_value(d["start"]),
            end=Position.from_value(d["end"]),
            street_name=d.get("streetName") or CONFIG["unnamed_road"],
        )


@dataclass
class SnapResult:
    segment: StreetSegment
    street: Street
    distance: float  # meters, never biased
    snap_point: Position


# Waypoint kinds
START = "start"
WALK = "walk"
FOLLOW = "follow"
TURNAROUND = "turnaround"
RETURN = "return"


@dataclass
class Waypoint:
    position: Position
    instruction: str
    kind: str


@dataclass
class Candidate:
    """An undiscovered segment annotated for route suggestion"""
    segment: StreetSegment
    street_name: str
    distance_from_user: float
    midpoint: Position
    length: float

    @property
    def id(self) -> str:
        return self.segment.id

    @property
    def start(self) -> Position:
        return self.segment.start

    @property
    def end(self) -> Position:
        return self.segment.end


@dataclass
class RouteSuggestion:
    waypoints: list[Waypoint]
    segments: list[Candidate]
    total_distance: float  # km
    segment_count: int
    estimated_xp: float

    @property
    def points(self) -> list[Position]:
        return [wp.position for wp in self.waypoints]


@dataclass
class SuggestionResult:
    success: bool
    route: Optional[RouteSuggestion] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    stats: Optional[dict] = None


@dataclass
class TrackUpdate:
    """What happened to one position sample"""
    position: Position
    route_point: Position
    snap: Optional[SnapResult] = None
    xp_gained: int = 0
    status: str = ""
    new_achievements: list = field(default_factory=list)

    @property
    def snapped(self) -> bool:
        return self.snap is not None
