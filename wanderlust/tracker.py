"""Live exploration tracking: position -> snap -> discovery -> XP."""

import asyncio
from typing import Callable, Optional

from .achievements import Achievement, AchievementBook
from .config import CONFIG
from .errors import PositionError
from .geo import Position, path_distance
from .gps import PositionSource, Subscription
from .graph import StreetGraphCache
from .history import RouteHistory
from .ledger import ExplorationLedger
from .logger import Logger
from .matcher import SegmentMatcher
from .models import TrackUpdate
from .progress import ProgressTracker
from .renderer import Renderer


class ExplorationTracker:
    """Turns a stream of positions into a street-following route and discoveries.

    Each position takes a request token before the street lookup; if another
    position was submitted while the lookup was suspended, the older one is
    dropped without touching the route, the ledger or XP.
    """

    def __init__(self, cache: StreetGraphCache, ledger: ExplorationLedger,
                 matcher: SegmentMatcher, progress: ProgressTracker,
                 achievements: AchievementBook, history: RouteHistory,
                 renderer: Optional[Renderer] = None,
                 logger: Optional[Logger] = None,
                 xp_per_meter: Optional[float] = None):
        self.cache = cache
        self.ledger = ledger
        self.matcher = matcher
        self.progress = progress
        self.achievements = achievements
        self.history = history
        self.renderer = renderer or Renderer()
        self.logger = logger or Logger()
        self.xp_per_meter = CONFIG["xp_per_meter"] if xp_per_meter is None else xp_per_meter

        self.current_route: list[Position] = []
        self.last_segment_id: Optional[str] = None
        self.status = ""
        self.session_discoveries = 0
        self.on_update: Optional[Callable[[TrackUpdate], None]] = None

        self._request_token = 0
        self._tasks: set[asyncio.Task] = set()

    def start(self):
        """Begin a new session"""
        self.current_route = []
        self.last_segment_id = None
        self.session_discoveries = 0
        self.progress.start_session()
        self.progress.record_day()

        self.renderer.clear_current_route()
        self.redraw()

        # Day-based achievements can unlock on start
        self._unlock_achievements()
        self.status = "Tracking started"
        self.logger.log("Session started", self.progress.stats(len(self.ledger)))

    def redraw(self):
        """Draw saved routes and every discovered segment known to the ledger"""
        self.renderer.draw_saved_routes(self.history.routes())
        for segment_id, record in self.ledger.records():
            self.renderer.draw_discovered_segment(segment_id, record)

    def _set_status(self, status: str) -> str:
        self.status = status
        return status

    def _append_point(self, point: Position):
        self.current_route.append(point)
        self.renderer.draw_current_route(self.current_route)

    def _unlock_achievements(self) -> list[Achievement]:
        """Unlock and credit achievements until the rewards unlock nothing more"""
        unlocked = []
        while True:
            new = self.achievements.check(self.progress.stats(len(self.ledger)))
            if not new:
                return unlocked
            for achievement in new:
                self.progress.add_xp(achievement.xp_reward)
            unlocked.extend(new)

    async def process_position(self, position: Position) -> Optional[TrackUpdate]:
        """Run one position through the pipeline. None when superseded."""
        self._request_token += 1
        token = self._request_token
        self.renderer.update_user_position(position)

        streets = await self.cache.ensure_loaded(position)

        if token != self._request_token:
            self.logger.log("Dropping superseded position", {
                "lat": round(position.lat, 6),
                "lon": round(position.lon, 6),
            })
            return None

        if not streets:
            self._append_point(position)
            return self._emit(TrackUpdate(
                position=position,
                route_point=position,
                status=self._set_status("Exploring... (No streets found nearby)"),
            ))

        snap = self.matcher.find_closest(position, streets, self.last_segment_id)

        if not self.matcher.accepts(snap):
            distance = f"{snap.distance:.1f}" if snap else "unknown"
            self._append_point(position)
            return self._emit(TrackUpdate(
                position=position,
                route_point=position,
                status=self._set_status(f"Exploring... ({distance}m from nearest street)"),
            ))

        update = TrackUpdate(position=position, route_point=snap.snap_point, snap=snap)
        segment = snap.segment

        if segment.id != self.last_segment_id:
            record = segment.to_record()
            meters = self.ledger.mark_discovered(segment.id, record)
            self.last_segment_id = segment.id

            if meters > 0:
                segment.explored = True
                self.session_discoveries += 1
                update.xp_gained = round(meters * self.xp_per_meter)
                self.renderer.draw_discovered_segment(segment.id, record)
                self.progress.add_xp(update.xp_gained)
                update.new_achievements = self._unlock_achievements()
                self._set_status(f"New street discovered! +{update.xp_gained} XP ({snap.street.name})")
                self.logger.log("Segment discovered", {
                    "segment": segment.id,
                    "street": snap.street.name,
                    "length_m": round(meters, 1),
                    "xp": update.xp_gained,
                })
            else:
                self._set_status(f"Walking on {snap.street.name} (already explored)")

        self._append_point(snap.snap_point)
        update.status = self.status
        return self._emit(update)

    def _emit(self, update: TrackUpdate) -> TrackUpdate:
        if self.on_update:
            self.on_update(update)
        return update

    def _on_position_error(self, error: PositionError):
        if error.kind == PositionError.PERMISSION:
            status = "Location access denied. Please enable location services."
        elif error.kind == PositionError.TIMEOUT:
            status = "Location request timed out."
        else:
            status = f"Location unavailable: {error}"
        self._set_status(status)
        self.logger.warn("Position error", {"kind": error.kind, "error": str(error)})

    def submit(self, position: Position) -> asyncio.Task:
        """Process a position on its own task so a slow lookup never blocks the next fix"""
        task = asyncio.get_running_loop().create_task(self.process_position(position))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def watch(self, source: PositionSource, interval: Optional[float] = None) -> Subscription:
        """Feed a position source into the pipeline"""
        return source.watch(self.submit, self._on_position_error, interval)

    async def drain(self):
        """Wait for every submitted position to finish"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def stop(self) -> dict:
        """End the session, saving the route when it has more than one point"""
        saved = None
        if len(self.current_route) > 1:
            saved = self.history.save(self.current_route)
            self.renderer.draw_saved_routes(self.history.routes())

        summary = {
            "points": len(self.current_route),
            "distance_m": round(path_distance(self.current_route), 1),
            "segments_discovered": self.session_discoveries,
            "session_xp": self.progress.session_xp,
            "total_xp": self.progress.total_xp,
            "level": self.progress.level,
            "route_id": saved["id"] if saved else None,
        }

        self.current_route = []
        self.last_segment_id = None
        self.renderer.clear_current_route()
        self._set_status("Route saved!" if saved else "Tracking stopped")
        self.logger.log("Session ended", summary)
        return summary

    def reset_progress(self):
        """Forget every discovery, XP, achievement and saved route"""
        self.ledger.reset()
        self.cache.invalidate()
        self.progress.reset()
        self.achievements.reset()
        self.history.clear()

        self.current_route = []
        self.last_segment_id = None
        self.session_discoveries = 0
        self.renderer.clear_all()
        self._set_status("All routes and street progress cleared. Start exploring again!")
        self.logger.log("Progress reset")
