"""Achievements unlocked by exploration milestones."""

import json
from dataclasses import dataclass
from typing import Optional

from .logger import Logger
from .storage import ACHIEVEMENTS_KEY, KeyValueStore

# Criteria types, each mapped to the ProgressTracker.stats() key it reads
SEGMENTS_DISCOVERED = "segments_discovered"
TOTAL_XP = "total_xp"
SESSION_XP = "session_xp"
LEVEL_REACHED = "level_reached"
EXPLORATION_DAYS = "exploration_days"
CONSECUTIVE_DAYS = "consecutive_days"

STAT_FOR_CRITERIA = {
    SEGMENTS_DISCOVERED: "segments_explored",
    TOTAL_XP: "total_xp",
    SESSION_XP: "session_xp",
    LEVEL_REACHED: "level",
    EXPLORATION_DAYS: "exploration_days",
    CONSECUTIVE_DAYS: "consecutive_days",
}


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    category: str
    criteria: str
    target: int
    xp_reward: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "criteria": {"type": self.criteria, "target": self.target},
            "xpReward": self.xp_reward,
        }


ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Exploration
    Achievement("first_steps", "First Steps", "Discover your first street segment",
                "exploration", SEGMENTS_DISCOVERED, 1, 20),
    Achievement("getting_around", "Getting Around", "Discover 25 street segments",
                "exploration", SEGMENTS_DISCOVERED, 25, 30),
    Achievement("street_scholar", "Street Scholar", "Discover 100 street segments",
                "exploration", SEGMENTS_DISCOVERED, 100, 50),
    Achievement("neighborhood_navigator", "Neighborhood Navigator", "Discover 300 street segments",
                "exploration", SEGMENTS_DISCOVERED, 300, 100),
    Achievement("urban_explorer", "Urban Explorer", "Discover 500 street segments",
                "exploration", SEGMENTS_DISCOVERED, 500, 150),
    Achievement("street_master", "Street Master", "Discover 1000 street segments",
                "exploration", SEGMENTS_DISCOVERED, 1000, 250),
    # Total XP
    Achievement("novice_wanderer", "Novice Wanderer", "Earn 1000 XP from exploration",
                "experience", TOTAL_XP, 1000, 30),
    Achievement("experienced_explorer", "Experienced Explorer", "Earn 3000 XP from exploration",
                "experience", TOTAL_XP, 3000, 60),
    Achievement("seasoned_explorer", "Seasoned Explorer", "Earn 8000 XP from exploration",
                "experience", TOTAL_XP, 8000, 100),
    Achievement("master_wanderer", "Master Wanderer", "Earn 20000 XP from exploration",
                "experience", TOTAL_XP, 20000, 200),
    # Single session
    Achievement("good_walk", "Good Walk", "Earn 50+ XP in a single exploration session",
                "session", SESSION_XP, 50, 25),
    Achievement("marathon_session", "Marathon Session", "Earn 150+ XP in a single exploration session",
                "session", SESSION_XP, 150, 40),
    Achievement("epic_journey", "Epic Journey", "Earn 300+ XP in a single exploration session",
                "session", SESSION_XP, 300, 75),
    Achievement("legendary_expedition", "Legendary Expedition",
                "Earn 500+ XP in a single exploration session",
                "session", SESSION_XP, 500, 125),
    # Levels
    Achievement("rising_explorer", "Rising Explorer", "Reach level 3",
                "level", LEVEL_REACHED, 3, 40),
    Achievement("skilled_navigator", "Skilled Navigator", "Reach level 5",
                "level", LEVEL_REACHED, 5, 60),
    Achievement("level_up_warrior", "Level Up Warrior", "Reach level 8",
                "level", LEVEL_REACHED, 8, 100),
    Achievement("exploration_master", "Exploration Master", "Reach level 12",
                "level", LEVEL_REACHED, 12, 150),
    Achievement("wanderlust_legend", "Wanderlust Legend", "Reach level 20",
                "level", LEVEL_REACHED, 20, 300),
    # Days
    Achievement("return_visitor", "Return Visitor", "Start exploring on 3 different days",
                "dedication", EXPLORATION_DAYS, 3, 50),
    Achievement("regular_explorer", "Regular Explorer", "Start exploring on 7 different days",
                "dedication", EXPLORATION_DAYS, 7, 75),
    Achievement("dedicated_wanderer", "Dedicated Wanderer", "Start exploring on 15 different days",
                "dedication", EXPLORATION_DAYS, 15, 125),
    Achievement("streak_starter", "Streak Starter", "Explore for 3 consecutive days",
                "dedication", CONSECUTIVE_DAYS, 3, 40),
    Achievement("week_warrior", "Week Warrior", "Explore for 7 consecutive days",
                "dedication", CONSECUTIVE_DAYS, 7, 100),
    Achievement("consistency_champion", "Consistency Champion", "Explore for 14 consecutive days",
                "dedication", CONSECUTIVE_DAYS, 14, 200),
)


class AchievementBook:
    """Which achievements are unlocked, persisted as {"unlocked": [...]}"""

    def __init__(self, store: KeyValueStore, logger: Optional[Logger] = None,
                 achievements: tuple[Achievement, ...] = ACHIEVEMENTS):
        self.store = store
        self.logger = logger or Logger()
        self.achievements = {a.id: a for a in achievements}
        self.unlocked_ids: set[str] = set()
        self._load()

    def _load(self):
        raw = self.store.get(ACHIEVEMENTS_KEY)
        if raw is None:
            return
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("achievement data must be an object")
            self.unlocked_ids = {str(a) for a in data.get("unlocked") or []}
        except (ValueError, TypeError) as e:
            self.logger.warn("Failed to load achievements", {"error": str(e)})
            self.unlocked_ids = set()

    def _save(self):
        self.store.set(ACHIEVEMENTS_KEY, json.dumps({"unlocked": sorted(self.unlocked_ids)}))

    def get(self, achievement_id: str) -> Optional[Achievement]:
        return self.achievements.get(achievement_id)

    def check(self, stats: dict) -> list[Achievement]:
        """Unlock everything the stats now satisfy; returns only the new ones"""
        new = []
        for achievement in self.achievements.values():
            if achievement.id in self.unlocked_ids:
                continue
            current = stats.get(STAT_FOR_CRITERIA[achievement.criteria], 0)
            if current >= achievement.target:
                self.unlocked_ids.add(achievement.id)
                new.append(achievement)

        if new:
            self._save()
            for achievement in new:
                self.logger.log("Achievement unlocked", {
                    "id": achievement.id,
                    "name": achievement.name,
                    "xp_reward": achievement.xp_reward,
                })
        return new

    def progress(self, achievement_id: str, stats: dict) -> dict:
        """How far the stats are toward one achievement"""
        achievement = self.achievements.get(achievement_id)
        if achievement is None or achievement.id in self.unlocked_ids:
            target = achievement.target if achievement else 0
            return {"completed": True, "progress": 1, "current": target, "target": target}

        default = 1 if achievement.criteria == LEVEL_REACHED else 0
        current = stats.get(STAT_FOR_CRITERIA[achievement.criteria], default)
        return {
            "completed": False,
            "progress": min(current / achievement.target, 1),
            "current": current,
            "target": achievement.target,
        }

    def unlocked(self) -> list[Achievement]:
        return [a for a in self.achievements.values() if a.id in self.unlocked_ids]

    def summary(self) -> dict:
        total = len(self.achievements)
        unlocked = self.unlocked()
        return {
            "total": total,
            "unlocked": len(unlocked),
            "percentage": round(len(unlocked) / total * 100) if total else 0,
            "total_xp_from_achievements": sum(a.xp_reward for a in unlocked),
        }

    def reset(self):
        self.unlocked_ids.clear()
        self.store.remove(ACHIEVEMENTS_KEY)
