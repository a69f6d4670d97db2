import math
import random

import pytest

from common.geometry import Point, perpendicular_distance, polygon_area, signed_area, to_points
from common.polygon import convex_hull, downsample, offset_polygon, simplify_closed_polygon, simplify_polygon


class TestGeometry:
    def test_perpendicular_distance(self):
        assert perpendicular_distance(Point(5, 5), Point(0, 0), Point(10, 0)) == pytest.approx(5)

    def test_perpendicular_distance_uses_infinite_line(self):
        assert perpendicular_distance(Point(20, 3), Point(0, 0), Point(10, 0)) == pytest.approx(3)

    def test_perpendicular_distance_degenerate_line(self):
        assert perpendicular_distance(Point(3, 4), Point(0, 0), Point(0, 0)) == pytest.approx(5)

    def test_signed_area_winding(self):
        square = to_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        assert signed_area(square) == pytest.approx(100)
        assert signed_area(square[::-1]) == pytest.approx(-100)
        assert polygon_area(square[::-1]) == pytest.approx(100)


class TestSimplify:
    def test_short_input_unchanged(self):
        assert simplify_polygon([]) == []
        assert simplify_polygon([Point(0, 0)]) == [Point(0, 0)]
        assert simplify_polygon([Point(0, 0), Point(5, 5)]) == [Point(0, 0), Point(5, 5)]

    def test_collinear_points_removed(self):
        points = to_points([(0, 0), (1, 0), (2, 0), (3, 0)])
        assert simplify_polygon(points, 0.5) == [Point(0, 0), Point(3, 0)]

    def test_peak_kept_above_tolerance(self):
        points = to_points([(0, 0), (5, 3), (10, 0)])
        assert simplify_polygon(points, 2.0) == points

    def test_peak_dropped_below_tolerance(self):
        points = to_points([(0, 0), (5, 1), (10, 0)])
        assert simplify_polygon(points, 2.0) == [Point(0, 0), Point(10, 0)]

    def test_endpoints_and_order_kept(self):
        points = [Point(x, math.sin(x / 5.0) * 20) for x in range(100)]
        result = simplify_polygon(points, 1.0)
        assert result[0] == points[0] and result[-1] == points[-1]
        indices = [points.index(p) for p in result]
        assert indices == sorted(indices)

    def test_idempotent(self):
        points = [Point(x, math.sin(x / 7.0) * 30 + (x % 3)) for x in range(300)]
        once = simplify_polygon(points, 2.0)
        assert simplify_polygon(once, 2.0) == once

    def test_long_contour(self):
        # Deep enough to exceed the default recursion limit with a recursive version
        points = [Point(x, (x * x) / 1000.0) for x in range(5000)]
        result = simplify_polygon(points, 0.01)
        assert 2 < len(result) < len(points)

    def test_closed_ring_keeps_far_point(self):
        ring = to_points([(0, 0), (5, 0), (10, 0), (10, 10), (5, 10), (0, 10)])
        result = simplify_closed_polygon(ring, 1.0)
        assert set(result) == {Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10)}


class TestConvexHull:
    @pytest.fixture
    def grid(self):
        return [Point(x, y) for y in range(11) for x in range(11)]

    def test_grid_hull_is_square(self, grid):
        hull = convex_hull(grid)
        assert len(hull) == 4
        assert set(hull) == {Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10)}

    def test_starts_at_pivot(self, grid):
        assert convex_hull(grid)[0] == Point(0, 0)

    def test_order_invariant(self, grid):
        shuffled = list(grid)
        random.Random(7).shuffle(shuffled)
        assert convex_hull(shuffled) == convex_hull(grid)

    def test_idempotent(self):
        rng = random.Random(3)
        points = [Point(rng.uniform(0, 100), rng.uniform(0, 100)) for _ in range(200)]
        hull = convex_hull(points)
        assert set(convex_hull(hull)) == set(hull)

    def test_hull_contains_all_points(self):
        rng = random.Random(11)
        points = [Point(rng.uniform(0, 50), rng.uniform(0, 50)) for _ in range(100)]
        hull = convex_hull(points)
        n = len(hull)
        for p in points:
            for i in range(n):
                a, b = hull[i], hull[(i + 1) % n]
                assert (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0]) >= -1e-9

    def test_fewer_than_three_points(self):
        assert convex_hull([Point(1, 1), Point(2, 2)]) == [Point(1, 1), Point(2, 2)]

    def test_downsample_stride(self):
        points = [Point(i, 0) for i in range(2500)]
        assert downsample(points, 1000) == points[::2]
        assert downsample(points, 5000) == points

    def test_large_input_is_downsampled(self):
        points = [Point(100 * math.cos(t / 1000.0), 100 * math.sin(t / 1000.0)) for t in range(6283)]
        hull = convex_hull(points, max_points=500)
        assert hull == convex_hull(downsample(points, 500), max_points=0)
        assert len(hull) < len(points)
        assert set(hull) <= set(points)


class TestOffset:
    @pytest.fixture
    def square(self):
        return to_points([(100, 100), (200, 100), (200, 200), (100, 200)])

    def test_grow_square(self, square):
        result = offset_polygon(square, 10)
        expected = [(90, 90), (210, 90), (210, 210), (90, 210)]
        for p, e in zip(result, expected):
            assert p == pytest.approx(e)

    def test_grows_for_either_winding(self, square):
        assert polygon_area(offset_polygon(square, 5)) > polygon_area(square)
        reversed_square = square[::-1]
        assert polygon_area(offset_polygon(reversed_square, 5)) > polygon_area(reversed_square)

    def test_round_trip(self, square):
        result = offset_polygon(offset_polygon(square, 7.5), -7.5)
        for p, e in zip(result, square):
            assert p == pytest.approx(e)

    def test_zero_length_edge_vertex_unmoved(self):
        points = to_points([(0, 0), (0, 0), (10, 0), (10, 10), (0, 10)])
        result = offset_polygon(points, 3)
        assert result[0] == Point(0, 0)
        assert result[1] == Point(0, 0)
        assert result[3] == pytest.approx((13, 13))

    def test_short_input_unchanged(self):
        points = [Point(0, 0), Point(1, 1)]
        assert offset_polygon(points, 5) == points

    def test_zero_distance(self, square):
        assert offset_polygon(square, 0) == square
