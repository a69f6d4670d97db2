"""
Boundary extraction and ordering for segmented regions and masks.
"""

import logging
from typing import List, Sequence

import numpy as np

from common.geometry import Point
from common.raster import Occupancy, as_occupancy

logger = logging.getLogger(__name__)

# Squared distance (~10 px) beyond which the ordering walk stops
MAX_GAP_SQUARED = 100.0


def boundary_pixels(source: Occupancy) -> np.ndarray:
    """
    Boolean array of boundary pixels.

    A member pixel is on the boundary when any of its 4 neighbours is
    outside the raster or not a member.
    """
    occupancy = as_occupancy(source)
    padded = np.pad(occupancy, 1, mode='constant', constant_values=False)

    interior = (
        padded[:-2, 1:-1] & padded[2:, 1:-1]
        & padded[1:-1, :-2] & padded[1:-1, 2:]
    )
    return occupancy & ~interior


def extract_boundary(source: Occupancy) -> List[Point]:
    """Boundary pixels of a Region, Mask or boolean array, in raster order."""
    ys, xs = np.nonzero(boundary_pixels(source))
    return [Point(float(x), float(y)) for x, y in zip(xs, ys)]


def order_boundary(points: Sequence[Point], max_gap_sq: float = MAX_GAP_SQUARED) -> List[Point]:
    """
    Order boundary pixels into a path by repeatedly hopping to the nearest unused pixel.

    The walk starts at the first point and stops as soon as the nearest
    remaining pixel is farther than the gap threshold, so isolated noise
    does not turn into long excursions. Not every pixel is guaranteed to be
    visited.

    Args:
        points: Boundary pixels, first one is the starting point
        max_gap_sq: Squared distance threshold for stopping

    Returns:
        Ordered contour. Fewer than 3 points are returned as given.
    """
    points = list(points)
    if len(points) < 3:
        return points

    coords = np.asarray(points, dtype=np.float64)
    used = np.zeros(len(points), dtype=bool)
    used[0] = True
    current = 0
    ordered = [points[0]]

    for _ in range(len(points) - 1):
        diff = coords - coords[current]
        dist_sq = np.einsum('ij,ij->i', diff, diff)
        dist_sq[used] = np.inf

        nearest = int(np.argmin(dist_sq))
        if dist_sq[nearest] > max_gap_sq:
            break

        used[nearest] = True
        ordered.append(points[nearest])
        current = nearest

    if len(ordered) < len(points):
        logger.debug(f"Boundary ordering visited {len(ordered)} of {len(points)} pixels")

    return ordered
