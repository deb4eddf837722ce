"""Snapping raw positions onto the nearest street segment."""

from typing import Optional

from .config import CONFIG
from .geo import distance_to_segment, project_onto_segment
from .models import Position, SnapResult, Street


class SegmentMatcher:
    """Finds the closest segment, with a bias toward the one being walked.

    Two near-parallel segments a few meters apart would otherwise make the
    snap flip back and forth on every noisy GPS fix.
    """

    def __init__(self, current_segment_bias: Optional[float] = None,
                 snap_threshold: Optional[float] = None):
        self.current_segment_bias = (CONFIG["current_segment_bias"]
                                     if current_segment_bias is None else current_segment_bias)
        self.snap_threshold = CONFIG["snap_threshold"] if snap_threshold is None else snap_threshold

    def find_closest(self, position: Position, streets: list[Street],
                     current_segment_id: Optional[str] = None) -> Optional[SnapResult]:
        """Closest segment to position, or None when there are no segments"""
        closest = None
        min_distance = float("inf")

        for street in streets:
            for segment in street.segments:
                distance = distance_to_segment(position, segment.start, segment.end)

                compared = distance
                if current_segment_id is not None and segment.id == current_segment_id:
                    compared -= self.current_segment_bias

                if compared < min_distance:
                    min_distance = compared
                    closest = (segment, street, distance)

        if closest is None:
            return None

        segment, street, distance = closest
        return SnapResult(
            segment=segment,
            street=street,
            distance=distance,
            snap_point=project_onto_segment(position, segment.start, segment.end),
        )

    def accepts(self, result: Optional[SnapResult], threshold: Optional[float] = None) -> bool:
        """Whether a match is close enough to count as walking on that street"""
        if result is None:
            return False
        threshold = self.snap_threshold if threshold is None else threshold
        return result.distance < threshold
