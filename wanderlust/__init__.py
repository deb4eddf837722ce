"""Wanderlust - Street exploration tracking and route suggestions."""

from .config import CONFIG, load_config
from .errors import WanderlustError, StreetDataError, PositionError
from .geo import (
    Position,
    haversine_distance,
    distance,
    path_distance,
    angle_difference,
    project_onto_segment,
    distance_to_segment,
    segment_direction,
)
from .models import (
    StreetSegment,
    Street,
    BoundingRegion,
    SegmentRecord,
    SnapResult,
    Waypoint,
    Candidate,
    RouteSuggestion,
    SuggestionResult,
    TrackUpdate,
)
from .logger import Logger
from .storage import KeyValueStore, MemoryStore, SQLiteStore
from .osm import OverpassProvider
from .ledger import ExplorationLedger
from .graph import StreetGraphCache, decompose_ways
from .matcher import SegmentMatcher
from .planner import RouteSuggestionEngine
from .progress import ProgressTracker
from .achievements import Achievement, AchievementBook
from .history import RouteHistory
from .gps import PositionSource, Subscription, TermuxLocation, StaticPosition, TracePlayback, TraceRecorder
from .renderer import Renderer, FoliumRenderer
from .tracker import ExplorationTracker
from .app import Wanderlust
from .__main__ import main

__all__ = [
    "CONFIG",
    "load_config",
    "WanderlustError",
    "StreetDataError",
    "PositionError",
    "Position",
    "haversine_distance",
    "distance",
    "path_distance",
    "angle_difference",
    "project_onto_segment",
    "distance_to_segment",
    "segment_direction",
    "StreetSegment",
    "Street",
    "BoundingRegion",
    "SegmentRecord",
    "SnapResult",
    "Waypoint",
    "Candidate",
    "RouteSuggestion",
    "SuggestionResult",
    "TrackUpdate",
    "Logger",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "OverpassProvider",
    "ExplorationLedger",
    "StreetGraphCache",
    "decompose_ways",
    "SegmentMatcher",
    "RouteSuggestionEngine",
    "ProgressTracker",
    "Achievement",
    "AchievementBook",
    "RouteHistory",
    "PositionSource",
    "Subscription",
    "TermuxLocation",
    "StaticPosition",
    "TracePlayback",
    "TraceRecorder",
    "Renderer",
    "FoliumRenderer",
    "ExplorationTracker",
    "Wanderlust",
    "main",
]
