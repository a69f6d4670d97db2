"""
Reduction of a convex hull to four paper corners and canonical corner ordering.
"""

import logging
import math
from typing import List, Sequence

from common.geometry import Point, centroid, squared_distance
from common.polygon import simplify_closed_polygon

logger = logging.getLogger(__name__)

QUAD_TOLERANCE_START = 5.0
QUAD_TOLERANCE_STEP = 5.0
QUAD_TOLERANCE_MAX = 100.0


def order_corners(points: Sequence[Point]) -> List[Point]:
    """
    Order corners: top-left, top-right, bottom-right, bottom-left.

    Points are sorted by their angle around the centroid (which gives a
    consistent rotation direction in image coordinates), then rotated so the
    point with the smallest x + y comes first. Reordering an already ordered
    quadrilateral returns it unchanged.

    The smallest x + y rule assumes a roughly axis-aligned sheet. A sheet
    rotated by around 45 degrees, or seen under strong perspective, can
    have its top-left corner picked wrongly.
    """
    points = list(points)
    if len(points) < 2:
        return points

    center = centroid(points)
    by_angle = sorted(points, key=lambda p: math.atan2(p[1] - center[1], p[0] - center[0]))

    top_left = min(range(len(by_angle)), key=lambda i: by_angle[i][0] + by_angle[i][1])
    return by_angle[top_left:] + by_angle[:top_left]


def select_extreme_points(points: Sequence[Point], count: int = 4) -> List[Point]:
    """
    Pick up to `count` well spread points.

    Starts from the axis extremes (min x, max x, min y, max y) without
    duplicates, then greedily adds the point whose distance to the nearest
    chosen point is largest.
    """
    points = list(points)
    if not points:
        return []

    extremes = [
        min(points, key=lambda p: p[0]),
        max(points, key=lambda p: p[0]),
        min(points, key=lambda p: p[1]),
        max(points, key=lambda p: p[1]),
    ]

    chosen: List[Point] = []
    for p in extremes:
        if p not in chosen:
            chosen.append(p)
    chosen = chosen[:count]

    remaining = [p for p in points if p not in chosen]
    while len(chosen) < count and remaining:
        best = max(remaining, key=lambda p: min(squared_distance(p, c) for c in chosen))
        chosen.append(best)
        remaining = [p for p in remaining if p != best]

    return chosen


def approximate_quadrilateral(hull: Sequence[Point]) -> List[Point]:
    """
    Reduce a convex hull to 4 ordered corners.

    Douglas-Peucker is applied to the closed hull with a tolerance growing
    from 5 to 100 px in steps of 5 until at most 4 points remain. If that
    does not land on exactly 4 points, the corners come from
    select_extreme_points instead.

    Args:
        hull: Convex hull vertices in order

    Returns:
        4 corners in TL, TR, BR, BL order, or fewer points if the hull
        does not have 4 distinct points.
    """
    hull = list(hull)
    if len(hull) < 4:
        return hull
    if len(hull) == 4:
        return order_corners(hull)

    simplified = hull
    tolerance = QUAD_TOLERANCE_START
    while tolerance <= QUAD_TOLERANCE_MAX:
        simplified = simplify_closed_polygon(hull, tolerance)
        if len(simplified) <= 4:
            break
        tolerance += QUAD_TOLERANCE_STEP

    if len(simplified) == 4:
        logger.debug(f"Hull of {len(hull)} points reduced to 4 corners at tolerance {tolerance:g}")
        return order_corners(simplified)

    logger.debug(f"Simplification ended with {len(simplified)} points, using extreme point selection")
    corners = select_extreme_points(hull, 4)
    if len(corners) == 4:
        return order_corners(corners)
    return corners
