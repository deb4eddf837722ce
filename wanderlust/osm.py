"""OpenStreetMap street geometry via the Overpass API."""

import asyncio
from typing import Optional

import requests

from .config import CONFIG
from .errors import StreetDataError
from .models import BoundingRegion


class OverpassProvider:
    """Fetch way geometry for a bounding region from Overpass"""

    def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None,
                 request_timeout: Optional[float] = None):
        self.url = url or CONFIG["overpass_url"]
        self.timeout = timeout or CONFIG["overpass_timeout"]
        self.request_timeout = request_timeout or CONFIG["overpass_request_timeout"]

    def build_query(self, region: BoundingRegion, road_types: Optional[list[str]] = None) -> str:
        """Overpass QL for all ways of the given highway classes, with inline geometry"""
        road_types = road_types or CONFIG["road_types"]
        pattern = "|".join(road_types)
        return f"""
        [out:json][timeout:{self.timeout}];
        (
          way["highway"~"^({pattern})$"]({region.as_overpass_bbox()});
        );
        out geom;
        """

    def fetch_ways_sync(self, region: BoundingRegion,
                        road_types: Optional[list[str]] = None) -> list[dict]:
        """Blocking fetch. Returns raw way elements or raises StreetDataError."""
        query = self.build_query(region, road_types)
        try:
            response = requests.post(
                self.url,
                data=query,
                headers={"Content-Type": "text/plain"},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise StreetDataError(f"Overpass request failed: {e}") from e
        except ValueError as e:
            raise StreetDataError(f"Overpass returned invalid JSON: {e}") from e

        elements = data.get("elements") if isinstance(data, dict) else None
        if elements is None:
            raise StreetDataError("Overpass response has no elements")
        return [el for el in elements if el.get("type") == "way"]

    async def fetch_ways(self, region: BoundingRegion,
                         road_types: Optional[list[str]] = None) -> list[dict]:
        """Fetch without blocking the event loop"""
        return await asyncio.to_thread(self.fetch_ways_sync, region, road_types)
