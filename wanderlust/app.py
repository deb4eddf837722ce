"""Main Wanderlust application."""

import asyncio
from typing import Optional

from .achievements import AchievementBook
from .config import CONFIG
from .geo import Position
from .gps import PositionSource
from .graph import StreetGraphCache
from .history import RouteHistory
from .ledger import ExplorationLedger
from .logger import Logger
from .matcher import SegmentMatcher
from .models import SuggestionResult
from .osm import OverpassProvider
from .planner import RouteSuggestionEngine
from .progress import ProgressTracker
from .renderer import Renderer
from .storage import KeyValueStore, SQLiteStore
from .tracker import ExplorationTracker


class Wanderlust:
    """Wires the tracking and suggestion components over one store"""

    def __init__(self, db_path: Optional[str] = None, log_path: Optional[str] = None,
                 renderer: Optional[Renderer] = None, provider=None,
                 store: Optional[KeyValueStore] = None,
                 logger: Optional[Logger] = None):
        self.logger = logger or Logger(log_path)
        self.store = store or SQLiteStore(db_path or CONFIG["db_path"])
        self.provider = provider or OverpassProvider()
        self.renderer = renderer or Renderer()

        self.ledger = ExplorationLedger(self.store, self.logger)
        self.cache = StreetGraphCache(self.provider, self.ledger, logger=self.logger)
        self.matcher = SegmentMatcher()
        self.progress = ProgressTracker(self.store, self.logger)
        self.achievements = AchievementBook(self.store, self.logger)
        self.history = RouteHistory(self.store, self.logger)

        self.tracker = ExplorationTracker(
            self.cache, self.ledger, self.matcher, self.progress,
            self.achievements, self.history,
            renderer=self.renderer, logger=self.logger,
        )
        self.suggestions = RouteSuggestionEngine(self.cache, logger=self.logger)

    def get_stats(self) -> dict:
        stats = self.progress.stats(len(self.ledger))
        stats["saved_routes"] = len(self.history.routes())
        stats["achievements"] = self.achievements.summary()
        stats["unlocked"] = [a.name for a in self.achievements.unlocked()]
        return stats

    async def suggest_route(self, position: Position,
                            search_radius_km: Optional[float] = None,
                            target_route_km: Optional[float] = None) -> SuggestionResult:
        result = await self.suggestions.suggest(position, search_radius_km, target_route_km)
        if result.success:
            self.renderer.draw_suggested_route(result.route)
            self.logger.log("Route suggested", result.stats)
        return result

    async def track(self, source: PositionSource, duration: Optional[float] = None) -> dict:
        """Track positions from source until it runs out, duration passes or the task is cancelled"""
        self.tracker.start()
        subscription = self.tracker.watch(source)
        try:
            if duration is None:
                await subscription.wait()
            else:
                await asyncio.wait({subscription.task}, timeout=duration)
        finally:
            subscription.cancel()
            await subscription.wait()
            await self.tracker.drain()
            summary = self.tracker.stop()
        return summary

    def show_progress(self):
        """Draw what has been explored so far without starting a session"""
        self.tracker.redraw()

    def reset(self) -> dict:
        """Erase all progress; returns counts of what was removed"""
        removed = {
            "segments": len(self.ledger),
            "routes": len(self.history.routes()),
            "xp": self.progress.total_xp,
        }
        self.tracker.reset_progress()
        return removed

    def close(self):
        self.store.close()
        self.logger.close()
