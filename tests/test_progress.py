import json
import unittest
from datetime import date

from wanderlust.achievements import ACHIEVEMENTS, AchievementBook
from wanderlust.progress import ProgressTracker, level_for_xp, longest_streak, xp_for_level
from wanderlust.storage import ACHIEVEMENTS_KEY, EXPLORATION_DAYS_KEY, XP_KEY, MemoryStore

from tests.fakes import quiet_logger


class TestLevels(unittest.TestCase):
    def test_thresholds(self):
        self.assertEqual(xp_for_level(1), 0)
        self.assertEqual(xp_for_level(2), 100)
        self.assertEqual(xp_for_level(3), 300)

    def test_level_for_xp(self):
        self.assertEqual(level_for_xp(0), 1)
        self.assertEqual(level_for_xp(99), 1)
        self.assertEqual(level_for_xp(100), 2)
        self.assertEqual(level_for_xp(299), 2)
        self.assertEqual(level_for_xp(300), 3)


class TestStreaks(unittest.TestCase):
    def test_longest_run(self):
        days = [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 4),
                date(2024, 5, 5), date(2024, 5, 6), date(2024, 5, 10)]
        self.assertEqual(longest_streak(days), 3)

    def test_empty_and_single(self):
        self.assertEqual(longest_streak([]), 0)
        self.assertEqual(longest_streak([date(2024, 1, 1)]), 1)

    def test_month_boundary(self):
        self.assertEqual(longest_streak([date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]), 3)


class TestProgressTracker(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.progress = ProgressTracker(self.store, quiet_logger())

    def test_add_xp_persists(self):
        self.progress.add_xp(40)
        self.progress.add_xp(2)
        self.assertEqual(self.progress.total_xp, 42)
        self.assertEqual(self.progress.session_xp, 42)
        self.assertEqual(self.store.get(XP_KEY), "42")

    def test_session_resets_but_total_does_not(self):
        self.progress.add_xp(40)
        self.progress.start_session()
        self.assertEqual(self.progress.session_xp, 0)
        self.assertEqual(self.progress.total_xp, 40)

    def test_loads_existing_xp(self):
        store = MemoryStore({XP_KEY: "350"})
        progress = ProgressTracker(store, quiet_logger())
        self.assertEqual(progress.total_xp, 350)
        self.assertEqual(progress.level, 3)

    def test_malformed_values(self):
        store = MemoryStore({XP_KEY: "lots", EXPLORATION_DAYS_KEY: "{"})
        progress = ProgressTracker(store, quiet_logger())
        self.assertEqual(progress.total_xp, 0)
        self.assertEqual(progress.exploration_days, 0)

    def test_record_day_once(self):
        self.assertTrue(self.progress.record_day(date(2024, 5, 1)))
        self.assertFalse(self.progress.record_day(date(2024, 5, 1)))
        self.progress.record_day(date(2024, 5, 2))
        self.assertEqual(self.progress.exploration_days, 2)
        self.assertEqual(self.progress.consecutive_days, 2)
        self.assertEqual(json.loads(self.store.get(EXPLORATION_DAYS_KEY)), ["2024-05-01", "2024-05-02"])

    def test_stats_and_reset(self):
        self.progress.add_xp(120)
        self.progress.record_day(date(2024, 5, 1))
        stats = self.progress.stats(segments_explored=7)
        self.assertEqual(stats["segments_explored"], 7)
        self.assertEqual(stats["level"], 2)

        self.progress.reset()
        self.assertEqual(self.progress.total_xp, 0)
        self.assertEqual(self.progress.exploration_days, 0)
        self.assertIsNone(self.store.get(XP_KEY))


class TestAchievementBook(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.book = AchievementBook(self.store, quiet_logger())

    def stats(self, **overrides):
        stats = {
            "segments_explored": 0,
            "total_xp": 0,
            "session_xp": 0,
            "level": 1,
            "exploration_days": 0,
            "consecutive_days": 0,
        }
        stats.update(overrides)
        return stats

    def test_catalogue(self):
        self.assertEqual(len(ACHIEVEMENTS), 25)
        self.assertEqual(len({a.id for a in ACHIEVEMENTS}), 25)

    def test_first_steps(self):
        new = self.book.check(self.stats(segments_explored=1))
        self.assertEqual([a.id for a in new], ["first_steps"])
        self.assertEqual(new[0].xp_reward, 20)

    def test_unlocks_only_once(self):
        self.book.check(self.stats(segments_explored=1))
        self.assertEqual(self.book.check(self.stats(segments_explored=1)), [])

    def test_several_at_once(self):
        new = self.book.check(self.stats(segments_explored=30, session_xp=60, level=3))
        self.assertEqual({a.id for a in new}, {"first_steps", "getting_around", "good_walk", "rising_explorer"})

    def test_persisted(self):
        self.book.check(self.stats(consecutive_days=3))
        self.assertEqual(json.loads(self.store.get(ACHIEVEMENTS_KEY)), {"unlocked": ["streak_starter"]})
        reloaded = AchievementBook(self.store, quiet_logger())
        self.assertEqual([a.id for a in reloaded.unlocked()], ["streak_starter"])

    def test_malformed_storage(self):
        book = AchievementBook(MemoryStore({ACHIEVEMENTS_KEY: "[not json"}), quiet_logger())
        self.assertEqual(book.unlocked(), [])

    def test_progress(self):
        progress = self.book.progress("street_scholar", self.stats(segments_explored=25))
        self.assertEqual(progress, {"completed": False, "progress": 0.25, "current": 25, "target": 100})
        self.book.check(self.stats(segments_explored=100))
        self.assertTrue(self.book.progress("street_scholar", self.stats())["completed"])

    def test_summary_and_reset(self):
        self.book.check(self.stats(segments_explored=1, exploration_days=3))
        summary = self.book.summary()
        self.assertEqual(summary["total"], 25)
        self.assertEqual(summary["unlocked"], 2)
        self.assertEqual(summary["percentage"], 8)
        self.assertEqual(summary["total_xp_from_achievements"], 70)

        self.book.reset()
        self.assertEqual(self.book.unlocked(), [])
        self.assertIsNone(self.store.get(ACHIEVEMENTS_KEY))


if __name__ == "__main__":
    unittest.main()
