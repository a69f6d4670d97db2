"""
Geometry primitives shared by the segmentation and paper detection packages.

Points are (x, y) in pixel space, with y growing downwards as in image
coordinates. Polygons are plain lists of points; a polygon with three or
more points is implicitly closed from the last point back to the first.
"""

import math
from typing import List, NamedTuple, Sequence


class Point(NamedTuple):
    x: float
    y: float


Polygon = List[Point]


def to_points(coords) -> Polygon:
    """Convert any iterable of (x, y) pairs (lists, tuples, (N, 2) arrays) to Points."""
    return [Point(float(x), float(y)) for x, y in coords]


def squared_distance(a: Point, b: Point) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def distance(a: Point, b: Point) -> float:
    return math.sqrt(squared_distance(a, b))


def cross(o: Point, a: Point, b: Point) -> float:
    """Z component of (a - o) x (b - o); positive for a counter-clockwise turn."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def perpendicular_distance(point: Point, line_start: Point, line_end: Point) -> float:
    """
    Distance from a point to the line through line_start and line_end.

    Falls back to the plain Euclidean distance to line_start when the two
    line points coincide.
    """
    dx = line_end[0] - line_start[0]
    dy = line_end[1] - line_start[1]

    if dx == 0 and dy == 0:
        return distance(point, line_start)

    t = ((point[0] - line_start[0]) * dx + (point[1] - line_start[1]) * dy) / (dx * dx + dy * dy)
    nearest = (line_start[0] + t * dx, line_start[1] + t * dy)
    return distance(point, nearest)


def centroid(points: Sequence[Point]) -> Point:
    """Arithmetic mean of the vertices (not the area centroid)."""
    n = len(points)
    return Point(sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def signed_area(points: Sequence[Point]) -> float:
    """Shoelace area; positive when the vertices run counter-clockwise in x-right/y-up axes."""
    area = 0.0
    n = len(points)
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        area += x1 * y2 - x2 * y1
    return area / 2.0


def polygon_area(points: Sequence[Point]) -> float:
    return abs(signed_area(points))
