"""Saved walked routes."""

import json
import time
from datetime import datetime, timezone
from typing import Optional

from .geo import Position, path_distance
from .logger import Logger
from .storage import ROUTES_KEY, KeyValueStore


class RouteHistory:
    """Routes the user has walked, stored as a JSON list under one key"""

    def __init__(self, store: KeyValueStore, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or Logger()

    def routes(self) -> list[dict]:
        raw = self.store.get(ROUTES_KEY)
        if raw is None:
            return []
        try:
            routes = json.loads(raw)
        except ValueError as e:
            self.logger.warn("Failed to load saved routes", {"error": str(e)})
            return []
        if not isinstance(routes, list):
            self.logger.warn("Saved routes are not a list, ignoring", {"type": type(routes).__name__})
            return []
        return routes

    def save(self, points: list[Position]) -> dict:
        """Append a walked route and return its record"""
        route = {
            "id": int(time.time() * 1000),
            "points": [list(p) for p in points],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "distance": path_distance(points),
        }
        routes = self.routes()
        routes.append(route)
        self.store.set(ROUTES_KEY, json.dumps(routes))
        self.logger.log("Route saved", {
            "id": route["id"],
            "points": len(points),
            "distance_m": round(route["distance"], 1),
        })
        return route

    def clear(self):
        self.store.remove(ROUTES_KEY)
