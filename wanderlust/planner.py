"""Route suggestions biased toward undiscovered street segments."""

import math
from typing import Callable, Optional

from .config import CONFIG
from .geo import angle_difference, distance, segment_direction
from .graph import StreetGraphCache
from .logger import Logger
from .models import (
    FOLLOW, RETURN, START, TURNAROUND, WALK,
    Candidate, Position, RouteSuggestion, Street, SuggestionResult, Waypoint,
)

# Failure reasons
NO_STREETS = "no_streets"
NO_UNDISCOVERED = "no_undiscovered"
NO_ROUTE = "no_route"
INVALID_REQUEST = "invalid_request"

FAILURE_MESSAGES = {
    NO_STREETS: "No streets found in the area",
    NO_UNDISCOVERED: "No undiscovered streets in the area! Try a larger search radius.",
    NO_ROUTE: "Could not generate a suitable route",
    INVALID_REQUEST: "Search radius and target route length must be positive",
}


def find_undiscovered_segments(streets: list[Street], position: Position,
                               max_distance: float) -> list[Candidate]:
    """Unexplored segments whose midpoint is within max_distance meters, closest first"""
    undiscovered = []
    for street in streets:
        for segment in street.segments:
            if segment.explored:
                continue
            midpoint = segment.midpoint
            dist = distance(position, midpoint)
            if dist <= max_distance:
                undiscovered.append(Candidate(
                    segment=segment,
                    street_name=street.name,
                    distance_from_user=dist,
                    midpoint=midpoint,
                    length=segment.length,
                ))
    undiscovered.sort(key=lambda c: c.distance_from_user)
    return undiscovered


def _neighbour_counts(candidates: list[Candidate], radius: float) -> list[int]:
    """For each candidate, how many *other* candidates have a midpoint within radius.

    Uses a grid of ~radius-sized cells so only adjacent cells are compared.
    Longitude cells widen with latitude so a cell spans at least radius
    meters east-west everywhere in the candidate set.
    """
    if not candidates:
        return []
    # 1% slack covers great-circle paths bulging poleward of the widest latitude
    lat_cell = radius / math.radians(CONFIG["earth_radius"]) * 1.01
    widest = max(abs(cand.midpoint.lat) for cand in candidates)
    lon_cell = lat_cell / max(math.cos(math.radians(widest)), 1e-6)

    def cell_of(point: Position) -> tuple[int, int]:
        return int(math.floor(point.lat / lat_cell)), int(math.floor(point.lon / lon_cell))

    grid: dict[tuple[int, int], list[int]] = {}
    for idx, cand in enumerate(candidates):
        grid.setdefault(cell_of(cand.midpoint), []).append(idx)

    counts = []
    for idx, cand in enumerate(candidates):
        ci, cj = cell_of(cand.midpoint)
        count = 0
        for di in (-1, 0, 1):
            for dj in (-1, 0, 1):
                for other in grid.get((ci + di, cj + dj), ()):
                    if other != idx and distance(cand.midpoint, candidates[other].midpoint) <= radius:
                        count += 1
        counts.append(count)
    return counts


def find_best_starting_segment(candidates: list[Candidate],
                               density_radius: Optional[float] = None) -> Candidate:
    """Close segment with many undiscovered neighbours (good for continuing)"""
    density_radius = density_radius or CONFIG["start_density_radius"]
    counts = _neighbour_counts(candidates, density_radius)
    best = candidates[0]
    best_score = -1.0
    for cand, nearby in zip(candidates, counts):
        score = (nearby + 1) / (cand.distance_from_user + 100)
        if score > best_score:
            best_score = score
            best = cand
    return best


def find_continuing_segment(current: Candidate, remaining: list[Candidate],
                            current_position: Position) -> Optional[Candidate]:
    """Nearby segment heading roughly the same way as the current one"""
    max_distance = CONFIG["continuing_max_distance"]
    direction_weight = CONFIG["direction_weight"]
    proximity_weight = CONFIG["proximity_weight"]
    current_direction = segment_direction(current.start, current.end)

    best = None
    best_score = -1.0
    for cand in remaining:
        dist = distance(current_position, cand.start)
        if dist > max_distance:
            continue
        diff = angle_difference(current_direction, segment_direction(cand.start, cand.end))
        direction_score = 1 - diff / 180
        proximity_score = 1 / (dist + 50)
        score = direction_score * direction_weight + proximity_score * proximity_weight
        if score > best_score:
            best_score = score
            best = cand
    return best


def _bearing_from(origin: Position, point: Position) -> float:
    """Planar bearing (degrees) of point seen from origin"""
    return math.degrees(math.atan2(point.lon - origin.lon, point.lat - origin.lat))


def find_segments_in_direction(position: Position, candidates: list[Candidate],
                               max_count: Optional[int] = None,
                               cone: Optional[float] = None) -> list[Candidate]:
    """Closest segments lying within a cone around the closest candidate's bearing"""
    if not candidates:
        return []
    max_count = max_count or CONFIG["out_and_back_candidates"]
    cone = cone or CONFIG["out_and_back_cone"]
    base = _bearing_from(position, candidates[0].midpoint)
    in_cone = [
        cand for cand in candidates
        if angle_difference(base, _bearing_from(position, cand.midpoint)) < cone
    ]
    in_cone.sort(key=lambda c: c.distance_from_user)
    return in_cone[:max_count]


def find_clustered_segments(candidates: list[Candidate],
                            max_distance: Optional[float] = None) -> list[Candidate]:
    """Segments with at least one other candidate nearby, closest first"""
    max_distance = max_distance or CONFIG["cluster_radius"]
    counts = _neighbour_counts(candidates, max_distance)
    clustered = [cand for cand, nearby in zip(candidates, counts) if nearby >= 1]
    clustered.sort(key=lambda c: c.distance_from_user)
    return clustered


def build_route(waypoints: list[Waypoint], visited: list[Candidate],
                total_distance: float,
                xp_per_meter: Optional[float] = None) -> Optional[RouteSuggestion]:
    """Package a strategy's walk; a walk that covers nothing new is no route"""
    if not visited:
        return None
    xp_per_meter = CONFIG["xp_per_meter"] if xp_per_meter is None else xp_per_meter
    return RouteSuggestion(
        waypoints=waypoints,
        segments=visited,
        total_distance=total_distance / 1000,
        segment_count=len(visited),
        estimated_xp=sum(cand.length * xp_per_meter for cand in visited),
    )


def linear_walking_route(position: Position, candidates: list[Candidate],
                         target_distance: float,
                         xp_per_meter: Optional[float] = None) -> Optional[RouteSuggestion]:
    """Chain segments that continue in the same direction, then head home"""
    if not candidates:
        return None

    start = find_best_starting_segment(candidates)
    gap_threshold = CONFIG["walk_gap_threshold"]

    waypoints = [Waypoint(position, "Start here", START)]
    visited: list[Candidate] = []

    total = distance(position, start.start)
    waypoints.append(Waypoint(start.start, f"Walk to {start.street_name}", WALK))
    current_position = start.start

    remaining = [cand for cand in candidates if cand is not start]
    current = start

    while total < target_distance * CONFIG["linear_target_fraction"] and remaining:
        visited.append(current)
        waypoints.append(Waypoint(current.end, f"Follow {current.street_name}", FOLLOW))
        total += current.length
        current_position = current.end

        nxt = find_continuing_segment(current, remaining, current_position)
        if nxt is None:
            break
        remaining.remove(nxt)

        gap = distance(current_position, nxt.start)
        total += gap
        if gap > gap_threshold:
            waypoints.append(Waypoint(nxt.start, f"Walk to {nxt.street_name}", WALK))
        current_position = nxt.start
        current = nxt

    if current not in visited:
        visited.append(current)
        waypoints.append(Waypoint(current.end, f"Follow {current.street_name}", FOLLOW))
        total += current.length
        current_position = current.end

    total += distance(current_position, position)
    waypoints.append(Waypoint(position, "Return to start", RETURN))

    return build_route(waypoints, visited, total, xp_per_meter)


def out_and_back_route(position: Position, candidates: list[Candidate],
                       target_distance: float,
                         xp_per_meter: Optional[float] = None) -> Optional[RouteSuggestion]:
    """A few segments in one direction, then straight back"""
    if not candidates:
        return None

    half = target_distance / 2
    max_segments = CONFIG["out_and_back_max_segments"]
    waypoints = [Waypoint(position, "Start here", START)]
    visited: list[Candidate] = []
    total = 0.0
    current_position = position

    for cand in find_segments_in_direction(position, candidates):
        if total > half or len(visited) >= max_segments:
            break
        walk = distance(current_position, cand.start)
        if total + walk + cand.length > half:
            break

        total += walk
        waypoints.append(Waypoint(cand.start, f"Walk to {cand.street_name}", WALK))
        visited.append(cand)
        total += cand.length
        current_position = cand.end
        waypoints.append(Waypoint(cand.end, f"Follow {cand.street_name}", FOLLOW))

    waypoints.append(Waypoint(current_position, "Turn around and head back", TURNAROUND))
    total += distance(current_position, position)
    waypoints.append(Waypoint(position, "Return to start", RETURN))

    return build_route(waypoints, visited, total, xp_per_meter)


def nearby_cluster_route(position: Position, candidates: list[Candidate],
                         target_distance: float,
                         xp_per_meter: Optional[float] = None) -> Optional[RouteSuggestion]:
    """Sweep a dense patch of segments with short walks between them"""
    clustered = find_clustered_segments(candidates)
    if not clustered:
        return None

    max_leg = CONFIG["cluster_max_leg"]
    gap_threshold = CONFIG["walk_gap_threshold"]
    waypoints = [Waypoint(position, "Start here", START)]
    visited: list[Candidate] = []
    total = 0.0
    current_position = position

    for cand in clustered:
        if total > target_distance * CONFIG["cluster_target_fraction"]:
            break
        walk = distance(current_position, cand.start)
        if walk > max_leg:
            continue

        total += walk
        if walk > gap_threshold:
            waypoints.append(Waypoint(cand.start, f"Walk to {cand.street_name}", WALK))
        visited.append(cand)
        total += cand.length
        current_position = cand.end
        waypoints.append(Waypoint(cand.end, f"Explore {cand.street_name}", FOLLOW))

    total += distance(current_position, position)
    waypoints.append(Waypoint(position, "Return to start", RETURN))

    return build_route(waypoints, visited, total, xp_per_meter)


def score_route(route: RouteSuggestion, target_km: float) -> float:
    """Higher is better: close to target length, many segments, much XP"""
    distance_score = 1 - abs(route.total_distance - target_km) / target_km
    segment_score = route.segment_count / 10
    xp_score = route.estimated_xp / 100
    return (distance_score * CONFIG["score_distance_weight"] +
            segment_score * CONFIG["score_segment_weight"] +
            xp_score * CONFIG["score_xp_weight"])


Strategy = Callable[..., Optional[RouteSuggestion]]

STRATEGIES: tuple[Strategy, ...] = (
    linear_walking_route,
    out_and_back_route,
    nearby_cluster_route,
)


class RouteSuggestionEngine:
    """Suggests a walk that covers undiscovered segments near the user"""

    def __init__(self, cache: StreetGraphCache, xp_per_meter: Optional[float] = None,
                 strategies: tuple[Strategy, ...] = STRATEGIES,
                 logger: Optional[Logger] = None):
        self.cache = cache
        self.xp_per_meter = CONFIG["xp_per_meter"] if xp_per_meter is None else xp_per_meter
        self.strategies = strategies
        self.logger = logger or Logger()

    def generate_optimal_route(self, position: Position, candidates: list[Candidate],
                               target_km: float) -> Optional[RouteSuggestion]:
        """Run every strategy and keep the best-scoring route"""
        target_distance = target_km * 1000
        best = None
        best_score = float("-inf")
        for strategy in self.strategies:
            route = strategy(position, candidates, target_distance, self.xp_per_meter)
            if route is None:
                continue
            score = score_route(route, target_km)
            self.logger.log("Route candidate", {
                "strategy": strategy.__name__,
                "score": round(score, 3),
                "distance_km": round(route.total_distance, 3),
                "segments": route.segment_count,
            })
            if score > best_score:
                best_score = score
                best = route
        return best

    def _failure(self, reason: str) -> SuggestionResult:
        self.logger.log("Route suggestion failed", {"reason": reason})
        return SuggestionResult(success=False, error=FAILURE_MESSAGES[reason], reason=reason)

    async def suggest(self, position: Position,
                      search_radius_km: Optional[float] = None,
                      target_route_km: Optional[float] = None) -> SuggestionResult:
        """Suggest a loop of about target_route_km from position"""
        if search_radius_km is None:
            search_radius_km = CONFIG["suggest_search_radius_km"]
        if target_route_km is None:
            target_route_km = CONFIG["suggest_target_km"]
        if search_radius_km <= 0 or target_route_km <= 0:
            return self._failure(INVALID_REQUEST)

        self.logger.log("Finding route suggestion", {
            "target_km": target_route_km,
            "search_radius_km": search_radius_km,
        })

        radius = search_radius_km * 1000
        streets = await self.cache.ensure_loaded(position, radius)
        if not streets:
            return self._failure(NO_STREETS)

        candidates = find_undiscovered_segments(streets, position, radius)
        if not candidates:
            return self._failure(NO_UNDISCOVERED)

        route = self.generate_optimal_route(position, candidates, target_route_km)
        if route is None:
            return self._failure(NO_ROUTE)

        return SuggestionResult(
            success=True,
            route=route,
            stats={
                "total_distance": route.total_distance,
                "undiscovered_segments": route.segment_count,
                "estimated_xp": round(route.estimated_xp),
                "estimated_duration": round(route.total_distance * CONFIG["minutes_per_km"]),
            },
        )
