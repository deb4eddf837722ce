import json
import unittest

from wanderlust.geo import Position, path_distance
from wanderlust.history import RouteHistory
from wanderlust.storage import ROUTES_KEY, MemoryStore

from tests.fakes import quiet_logger

WALK = [Position(37.7749, -122.4194), Position(37.7750, -122.4194), Position(37.7750, -122.4193)]


class TestRouteHistory(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.history = RouteHistory(self.store, quiet_logger())

    def test_empty(self):
        self.assertEqual(self.history.routes(), [])

    def test_save(self):
        route = self.history.save(WALK)
        self.assertIsInstance(route["id"], int)
        self.assertEqual(route["points"], [[37.7749, -122.4194], [37.775, -122.4194], [37.775, -122.4193]])
        self.assertAlmostEqual(route["distance"], path_distance(WALK))
        self.assertIn("T", route["timestamp"])
        self.assertEqual(json.loads(self.store.get(ROUTES_KEY)), [route])

    def test_appends(self):
        self.history.save(WALK)
        self.history.save(WALK[:2])
        self.assertEqual(len(self.history.routes()), 2)

    def test_malformed_treated_as_empty(self):
        self.store.set(ROUTES_KEY, "not json")
        self.assertEqual(self.history.routes(), [])
        self.store.set(ROUTES_KEY, json.dumps({"id": 1}))
        self.assertEqual(self.history.routes(), [])

    def test_clear(self):
        self.history.save(WALK)
        self.history.clear()
        self.assertEqual(self.history.routes(), [])


if __name__ == "__main__":
    unittest.main()
