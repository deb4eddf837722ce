"""Street geometry cache around the user."""

import asyncio
from typing import Optional

from .config import CONFIG
from .ledger import ExplorationLedger
from .logger import Logger
from .models import BoundingRegion, Position, Street, StreetSegment


def decompose_ways(elements: list[dict], ledger: Optional[ExplorationLedger] = None) -> list[Street]:
    """Turn raw Overpass ways into streets made of atomic segments.

    Segment ids only depend on the way id and the segment's ordinal inside
    the way, so the same way fetched for a different region yields the same ids.
    """
    streets = []
    for element in elements:
        if element.get("type") != "way" or not element.get("geometry"):
            continue

        tags = element.get("tags") or {}
        way_id = element["id"]
        coordinates = [
            Position(point["lat"], point["lon"])
            for point in element["geometry"]
            if point is not None
        ]
        street = Street(
            id=way_id,
            name=tags.get("name") or CONFIG["unnamed_road"],
            highway=tags.get("highway"),
            coordinates=coordinates,
        )

        # Create segments between consecutive points
        for i in range(len(coordinates) - 1):
            segment_id = StreetSegment.make_id(way_id, i)
            street.segments.append(StreetSegment(
                id=segment_id,
                way_id=way_id,
                index=i,
                start=coordinates[i],
                end=coordinates[i + 1],
                street_name=street.name,
                explored=ledger.is_discovered(segment_id) if ledger else False,
            ))

        streets.append(street)

    return streets


class StreetGraphCache:
    """Holds the streets for one bounding region around the user.

    While the user stays inside the inner buffer zone the cached streets are
    served as they are. In the band between the buffer zone and the region
    edge they are still served, and a refresh centered on the user starts in
    the background. Outside the region the caller waits for a new fetch.
    """

    def __init__(self, provider, ledger: Optional[ExplorationLedger] = None,
                 search_radius: Optional[float] = None,
                 buffer_ratio: Optional[float] = None,
                 road_types: Optional[list[str]] = None,
                 logger: Optional[Logger] = None):
        self.provider = provider
        self.ledger = ledger
        self.search_radius = search_radius or CONFIG["search_radius"]
        self.buffer_ratio = CONFIG["bbox_buffer"] if buffer_ratio is None else buffer_ratio
        self.road_types = road_types or CONFIG["road_types"]
        self.logger = logger or Logger()
        self.streets: Optional[list[Street]] = None
        self.region: Optional[BoundingRegion] = None
        self._fetch_seq = 0  # bumped for every fetch issued; only the latest may land
        self._refresh_task: Optional[asyncio.Task] = None

    def is_within_buffer(self, position: Position) -> bool:
        if self.region is None:
            return False
        return self.region.buffer_zone(self.buffer_ratio).contains(position)

    def is_within_region(self, position: Position) -> bool:
        return self.region is not None and self.region.contains(position)

    def refresh_explored(self):
        """Copy the ledger's view onto every cached segment"""
        if not self.streets or not self.ledger:
            return
        for street in self.streets:
            for segment in street.segments:
                segment.explored = self.ledger.is_discovered(segment.id)

    def segments(self) -> list[StreetSegment]:
        return [segment for street in self.streets or [] for segment in street.segments]

    async def ensure_loaded(self, position: Position,
                            search_radius: Optional[float] = None) -> list[Street]:
        """Streets around position, fetching only when the cache no longer covers it"""
        radius = search_radius or self.search_radius

        if self.streets is not None and self.is_within_buffer(position):
            self.refresh_explored()
            return self.streets

        if self.streets is not None and self.is_within_region(position):
            self.refresh_explored()
            self._schedule_refresh(position, radius)
            return self.streets

        return await self._fetch(position, radius)

    def _schedule_refresh(self, position: Position, radius: float):
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.get_running_loop().create_task(self._fetch(position, radius))
        self._refresh_task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.warn("Background street refresh failed", {"error": repr(error)})

    async def wait_for_refresh(self):
        """Wait for a background refresh, if one is running"""
        if self._refresh_task is not None:
            await self._refresh_task

    async def _fetch(self, position: Position, radius: float) -> list[Street]:
        self._fetch_seq += 1
        seq = self._fetch_seq
        region = BoundingRegion.around(position, radius)
        self.logger.log("Fetching street data", {
            "lat": round(position.lat, 6),
            "lon": round(position.lon, 6),
            "radius": radius,
        })

        try:
            elements = await self.provider.fetch_ways(region, self.road_types)
        except Exception as e:
            if seq != self._fetch_seq:
                return self.streets if self.streets is not None else []
            self.logger.warn("Failed to fetch street data, keeping previous cache", {
                "error": str(e) or type(e).__name__,
                "cached_streets": len(self.streets) if self.streets is not None else 0,
            })
            return self.streets if self.streets is not None else []

        if seq != self._fetch_seq:
            # A newer fetch was issued while this one was in flight
            return self.streets if self.streets is not None else []

        streets = decompose_ways(elements, self.ledger)
        self.streets = streets
        self.region = region
        self.logger.log("Fetched streets", {
            "streets": len(streets),
            "segments": sum(len(s.segments) for s in streets),
        })
        return streets

    def invalidate(self):
        """Drop cached streets; in-flight fetches will be discarded"""
        self.streets = None
        self.region = None
        self._fetch_seq += 1
