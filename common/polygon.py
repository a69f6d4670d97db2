"""
Polygon algorithms: Douglas-Peucker simplification, Graham-scan convex hull
and miter-style offsetting.
"""

import logging
import math
from typing import List, Sequence

from .geometry import Point, Polygon, cross, perpendicular_distance, signed_area, squared_distance

logger = logging.getLogger(__name__)

DEFAULT_SIMPLIFY_TOLERANCE = 2.0
DEFAULT_HULL_MAX_POINTS = 1000


def simplify_polygon(points: Sequence[Point], tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE) -> Polygon:
    """
    Reduce an ordered point sequence with the Douglas-Peucker algorithm.

    The point farthest from the chord between the endpoints of a span is
    kept when its perpendicular distance exceeds the tolerance, and both
    halves are processed the same way. Spans are handled from an explicit
    stack, which keeps the result identical to the recursive formulation
    without its recursion depth limit on long contours.

    Args:
        points: Ordered points (open sequence; endpoints are always kept)
        tolerance: Maximum allowed deviation in pixel units

    Returns:
        Simplified points. Sequences of 2 or fewer points are returned unchanged.
    """
    points = list(points)
    if len(points) <= 2:
        return points

    keep = [False] * len(points)
    keep[0] = keep[-1] = True
    spans = [(0, len(points) - 1)]

    while spans:
        start, end = spans.pop()
        max_dist = 0.0
        max_idx = start

        for i in range(start + 1, end):
            dist = perpendicular_distance(points[i], points[start], points[end])
            if dist > max_dist:
                max_dist = dist
                max_idx = i

        if max_dist > tolerance:
            keep[max_idx] = True
            spans.append((start, max_idx))
            spans.append((max_idx, end))

    return [p for p, kept in zip(points, keep) if kept]


def simplify_closed_polygon(points: Sequence[Point], tolerance: float) -> Polygon:
    """
    Douglas-Peucker over a closed ring.

    The first point is appended to close the ring, so the chord of the
    outermost span has zero length and the point farthest from the start
    is always retained; the duplicate closing point is dropped again.
    """
    points = list(points)
    if len(points) <= 3:
        return points

    simplified = simplify_polygon(points + [points[0]], tolerance)
    return simplified[:-1]


def downsample(points: Sequence[Point], max_points: int) -> List[Point]:
    """Keep every n-th point so that roughly max_points remain (deterministic stride)."""
    points = list(points)
    if max_points <= 0 or len(points) <= max_points:
        return points

    stride = len(points) // max_points
    return points[::stride]


def convex_hull(points: Sequence[Point], max_points: int = DEFAULT_HULL_MAX_POINTS) -> Polygon:
    """
    Convex hull by Graham scan.

    Inputs with more than max_points points are stride-downsampled first,
    which bounds the cost at the price of a slightly inexact hull.

    Args:
        points: Unordered point set
        max_points: Down-sampling threshold (0 disables it)

    Returns:
        Hull vertices in scan order starting at the pivot. Fewer than 3
        input points are returned unchanged.
    """
    points = list(points)
    if len(points) < 3:
        return points

    sampled = downsample(points, max_points)
    if len(sampled) != len(points):
        logger.debug(f"Convex hull input downsampled from {len(points)} to {len(sampled)} points")

    # Pivot: minimum y, ties broken by minimum x
    pivot_idx = min(range(len(sampled)), key=lambda i: (sampled[i][1], sampled[i][0]))
    pivot = sampled[pivot_idx]
    others = sampled[:pivot_idx] + sampled[pivot_idx + 1:]

    others.sort(key=lambda p: (
        math.atan2(p[1] - pivot[1], p[0] - pivot[0]),
        squared_distance(p, pivot),
    ))

    hull = [pivot]
    for p in others:
        while len(hull) > 1 and cross(hull[-2], hull[-1], p) <= 0:
            hull.pop()
        hull.append(p)

    return hull


def offset_polygon(points: Sequence[Point], distance: float) -> Polygon:
    """
    Grow (positive distance) or shrink (negative distance) a closed polygon.

    Each vertex moves along the average of the unit normals of its two
    adjacent edges, by distance / |average normal| (miter join), so straight
    edges end up exactly `distance` away from where they were. The outward
    side is derived from the polygon's winding. Vertices next to a
    zero-length edge stay where they are. Self-intersections created at
    concave vertices are not repaired.

    Args:
        points: Closed polygon vertices
        distance: Clearance in the polygon's units

    Returns:
        Offset polygon with the same number of vertices. Fewer than 3 points
        are returned unchanged.
    """
    points = list(points)
    n = len(points)
    if n < 3 or distance == 0:
        return points

    # Left-hand normal (-dy, dx) points inside for a positive shoelace area
    side = -1.0 if signed_area(points) > 0 else 1.0
    result = []

    for i in range(n):
        prev = points[(i - 1) % n]
        curr = points[i]
        nxt = points[(i + 1) % n]

        v1x, v1y = curr[0] - prev[0], curr[1] - prev[1]
        v2x, v2y = nxt[0] - curr[0], nxt[1] - curr[1]
        len1 = math.hypot(v1x, v1y)
        len2 = math.hypot(v2x, v2y)

        if len1 == 0 or len2 == 0:
            result.append(Point(curr[0], curr[1]))
            continue

        n1x, n1y = side * -v1y / len1, side * v1x / len1
        n2x, n2y = side * -v2y / len2, side * v2x / len2

        nx = (n1x + n2x) / 2
        ny = (n1y + n2y) / 2
        nlen = math.hypot(nx, ny)

        if nlen == 0:
            # Edges fold back onto each other
            result.append(Point(curr[0], curr[1]))
            continue

        shift = distance / (nlen * nlen)
        result.append(Point(curr[0] + nx * shift, curr[1] + ny * shift))

    return result
