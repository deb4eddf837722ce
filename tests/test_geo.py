import unittest

from wanderlust.geo import (
    Position,
    angle_difference,
    distance,
    distance_to_segment,
    haversine_distance,
    path_distance,
    project_onto_segment,
    segment_direction,
)

A = Position(37.7749, -122.4194)
B = Position(37.7750, -122.4194)


class TestHaversine(unittest.TestCase):
    def test_zero_distance(self):
        self.assertEqual(haversine_distance(A.lat, A.lon, A.lat, A.lon), 0)

    def test_one_ten_thousandth_degree_latitude(self):
        self.assertAlmostEqual(distance(A, B), 11.1, delta=0.1)

    def test_symmetric(self):
        other = Position(37.78, -122.41)
        self.assertAlmostEqual(distance(A, other), distance(other, A))

    def test_path_distance(self):
        c = Position(37.7751, -122.4194)
        self.assertAlmostEqual(path_distance([A, B, c]), distance(A, B) + distance(B, c))
        self.assertEqual(path_distance([A]), 0)
        self.assertEqual(path_distance([]), 0)


class TestProjection(unittest.TestCase):
    def test_inside_segment(self):
        p = Position(37.77495, -122.4193)
        snapped = project_onto_segment(p, A, B)
        self.assertAlmostEqual(snapped.lat, 37.77495)
        self.assertAlmostEqual(snapped.lon, -122.4194)

    def test_clamped_before_start(self):
        p = Position(37.7740, -122.4194)
        self.assertEqual(project_onto_segment(p, A, B), A)

    def test_clamped_past_end(self):
        p = Position(37.7760, -122.4190)
        self.assertEqual(project_onto_segment(p, A, B), B)

    def test_never_extrapolates(self):
        for lat, lon in [(37.70, -122.50), (37.90, -122.30), (37.77495, -122.0), (37.7749, -122.4194)]:
            snapped = project_onto_segment(Position(lat, lon), A, B)
            self.assertGreaterEqual(snapped.lat, min(A.lat, B.lat))
            self.assertLessEqual(snapped.lat, max(A.lat, B.lat))
            self.assertEqual(snapped.lon, A.lon)

    def test_degenerate_returns_start(self):
        self.assertEqual(project_onto_segment(B, A, A), A)


class TestDistanceToSegment(unittest.TestCase):
    def test_degenerate_segment_equals_point_distance(self):
        p = Position(37.7760, -122.4180)
        self.assertEqual(distance_to_segment(p, A, A), distance(p, A))

    def test_point_on_segment(self):
        self.assertAlmostEqual(distance_to_segment(A, A, B), 0)

    def test_perpendicular_offset(self):
        # 0.0001 degree of longitude away, planar scale of 111000 m/degree
        p = Position(37.77495, -122.4193)
        self.assertAlmostEqual(distance_to_segment(p, A, B), 11.1, places=3)

    def test_custom_scale(self):
        p = Position(37.77495, -122.4193)
        self.assertAlmostEqual(distance_to_segment(p, A, B, meters_per_degree=100000), 10.0, places=3)


class TestAngles(unittest.TestCase):
    def test_angle_difference_wraps(self):
        self.assertEqual(angle_difference(350, 10), 20)
        self.assertEqual(angle_difference(10, 350), 20)
        self.assertEqual(angle_difference(0, 180), 180)
        self.assertEqual(angle_difference(90, 90), 0)

    def test_segment_direction(self):
        origin = Position(0, 0)
        self.assertAlmostEqual(segment_direction(origin, Position(0, 1)), 0)
        self.assertAlmostEqual(segment_direction(origin, Position(1, 0)), 90)
        self.assertAlmostEqual(segment_direction(origin, Position(0, -1)), 180)
        self.assertAlmostEqual(segment_direction(origin, Position(-1, 0)), 270)


class TestPosition(unittest.TestCase):
    def test_from_value(self):
        self.assertEqual(Position.from_value([1, 2]), Position(1.0, 2.0))
        self.assertEqual(Position.from_value((1, 2)), Position(1.0, 2.0))
        self.assertEqual(Position.from_value({"lat": 1, "lon": 2}), Position(1.0, 2.0))


if __name__ == "__main__":
    unittest.main()
