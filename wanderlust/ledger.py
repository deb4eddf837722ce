"""Persistent record of discovered street segments."""

import json
from typing import Iterator, Optional

from .logger import Logger
from .models import SegmentRecord
from .storage import EXPLORED_SEGMENTS_KEY, EXPLORED_SEGMENT_DATA_KEY, KeyValueStore


class ExplorationLedger:
    """The set of discovered segment ids plus their geometry.

    This is the only authority on whether a segment is new. Every mutation is
    written back to the store before the call returns.
    """

    def __init__(self, store: KeyValueStore, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or Logger()
        self.discovered: set[str] = set()
        self.geometry: dict[str, SegmentRecord] = {}
        self._load()

    def _load(self):
        """Load discovered segments, treating malformed data as absent"""
        raw_ids = self.store.get(EXPLORED_SEGMENTS_KEY)
        raw_data = self.store.get(EXPLORED_SEGMENT_DATA_KEY)

        try:
            if raw_ids is not None:
                ids = json.loads(raw_ids)
                if not isinstance(ids, list):
                    raise ValueError("segment ids must be a list")
                self.discovered = {str(segment_id) for segment_id in ids}
        except ValueError as e:
            self.logger.warn("Failed to load explored segments, starting empty", {"error": str(e)})
            self.discovered = set()
            self.geometry = {}
            return

        try:
            if raw_data is not None:
                data = json.loads(raw_data)
                if not isinstance(data, dict):
                    raise ValueError("segment data must be an object")
                self.geometry = {
                    segment_id: SegmentRecord.from_dict(record)
                    for segment_id, record in data.items()
                    if segment_id in self.discovered
                }
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warn("Failed to load explored segment geometry", {"error": str(e)})
            self.geometry = {}

        if self.discovered:
            self.logger.log("Loaded explored segments", {
                "segments": len(self.discovered),
                "with_geometry": len(self.geometry),
            })

    def _save(self):
        self.store.set(EXPLORED_SEGMENTS_KEY, json.dumps(sorted(self.discovered)))
        self.store.set(EXPLORED_SEGMENT_DATA_KEY, json.dumps(
            {segment_id: record.to_dict() for segment_id, record in self.geometry.items()}
        ))

    def is_discovered(self, segment_id: str) -> bool:
        return segment_id in self.discovered

    def mark_discovered(self, segment_id: str, geometry: SegmentRecord) -> float:
        """Record a segment; returns its length in meters, or 0 if already known"""
        if segment_id in self.discovered:
            return 0
        self.discovered.add(segment_id)
        self.geometry[segment_id] = geometry
        self._save()
        return geometry.length

    def stats(self) -> dict:
        return {"count": len(self.discovered)}

    def records(self) -> Iterator[tuple[str, SegmentRecord]]:
        """Discovered segments that can be drawn without a live fetch"""
        return iter(list(self.geometry.items()))

    def reset(self):
        """Forget all progress and persist the empty state"""
        count = len(self.discovered)
        self.discovered.clear()
        self.geometry.clear()
        self._save()
        self.logger.log("Cleared explored segments", {"segments": count})

    def __contains__(self, segment_id: str) -> bool:
        return segment_id in self.discovered

    def __len__(self) -> int:
        return len(self.discovered)
