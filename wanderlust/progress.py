"""XP, levels and exploration days."""

import json
from datetime import date, timedelta
from typing import Optional

from .config import CONFIG
from .logger import Logger
from .storage import EXPLORATION_DAYS_KEY, XP_KEY, KeyValueStore


def xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach level"""
    return CONFIG["level_xp_step"] * level * (level - 1)


def level_for_xp(xp: float) -> int:
    level = 1
    while xp >= xp_for_level(level + 1):
        level += 1
    return level


def longest_streak(days: list[date]) -> int:
    """Longest run of consecutive calendar days"""
    if not days:
        return 0
    ordered = sorted(set(days))
    best = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur - prev == timedelta(days=1):
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


class ProgressTracker:
    """Cumulative and per-session XP plus the days the user went exploring"""

    def __init__(self, store: KeyValueStore, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or Logger()
        self.session_xp = 0
        self.total_xp = self._load_xp()
        self.days: list[date] = self._load_days()

    def _load_xp(self) -> int:
        raw = self.store.get(XP_KEY)
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            self.logger.warn("Ignoring malformed XP value", {"value": raw})
            return 0

    def _load_days(self) -> list[date]:
        raw = self.store.get(EXPLORATION_DAYS_KEY)
        if raw is None:
            return []
        try:
            values = json.loads(raw)
            if not isinstance(values, list):
                raise ValueError("exploration days must be a list")
            return sorted({date.fromisoformat(v) for v in values})
        except (ValueError, TypeError) as e:
            self.logger.warn("Ignoring malformed exploration days", {"error": str(e)})
            return []

    @property
    def level(self) -> int:
        return level_for_xp(self.total_xp)

    def start_session(self):
        self.session_xp = 0

    def add_xp(self, amount: int) -> int:
        """Credit XP to both counters; returns the new total"""
        if amount <= 0:
            return self.total_xp
        level_before = self.level
        self.total_xp += amount
        self.session_xp += amount
        self.store.set(XP_KEY, str(self.total_xp))
        if self.level > level_before:
            self.logger.log("Level up", {"level": self.level, "xp": self.total_xp})
        return self.total_xp

    def record_day(self, day: Optional[date] = None) -> bool:
        """Remember that the user explored on day; False if already known"""
        day = day or date.today()
        if day in self.days:
            return False
        self.days = sorted(self.days + [day])
        self.store.set(EXPLORATION_DAYS_KEY, json.dumps([d.isoformat() for d in self.days]))
        return True

    @property
    def exploration_days(self) -> int:
        return len(self.days)

    @property
    def consecutive_days(self) -> int:
        return longest_streak(self.days)

    def stats(self, segments_explored: int = 0) -> dict:
        return {
            "segments_explored": segments_explored,
            "total_xp": self.total_xp,
            "session_xp": self.session_xp,
            "level": self.level,
            "exploration_days": self.exploration_days,
            "consecutive_days": self.consecutive_days,
        }

    def reset(self):
        self.total_xp = 0
        self.session_xp = 0
        self.days = []
        self.store.remove(XP_KEY)
        self.store.remove(EXPLORATION_DAYS_KEY)
