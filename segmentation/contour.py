"""
Contour tracing over binary masks, such as the ones returned by a
segmentation model.
"""

import logging
from typing import List

import numpy as np

from common.geometry import Point
from common.polygon import DEFAULT_SIMPLIFY_TOLERANCE, simplify_polygon
from common.raster import Occupancy, as_occupancy

logger = logging.getLogger(__name__)

# Headings: right, down, left, up (y grows downwards)
_DX = (1, 0, -1, 0)
_DY = (0, 1, 0, -1)


def trace_mask_contour(mask: Occupancy, threshold: float = 0.5) -> List[Point]:
    """
    Walk the outline of the first foreground blob of a mask.

    Starts at the first foreground pixel in raster order heading right. At
    every step the candidate moves are tried in the order right turn,
    straight, left turn, reverse (relative to the current heading) and the
    first one landing on a foreground pixel that is an edge pixel or has not
    been visited yet is taken.

    The walk ends when it returns to the start pixel, when no move is
    possible, or after width * height steps.

    Returns:
        Raw pixel path (each pixel at most once); empty if the mask has no
        foreground.
    """
    occupancy = as_occupancy(mask, threshold)
    height, width = occupancy.shape

    foreground = np.flatnonzero(occupancy)
    if foreground.size == 0:
        return []

    start = int(foreground[0])
    start_x, start_y = start % width, start // width
    grid = occupancy.tolist()

    def is_edge(x: int, y: int) -> bool:
        for d in range(4):
            ex, ey = x + _DX[d], y + _DY[d]
            if ex < 0 or ex >= width or ey < 0 or ey >= height or not grid[ey][ex]:
                return True
        return False

    contour = []
    visited = set()
    x, y = start_x, start_y
    heading = 0
    max_steps = width * height
    steps = 0

    while True:
        if (x, y) not in visited:
            contour.append(Point(float(x), float(y)))
            visited.add((x, y))

        moved = False
        for new_heading in ((heading + 3) % 4, heading, (heading + 1) % 4, (heading + 2) % 4):
            nx, ny = x + _DX[new_heading], y + _DY[new_heading]
            if 0 <= nx < width and 0 <= ny < height and grid[ny][nx]:
                if is_edge(nx, ny) or (nx, ny) not in visited:
                    x, y, heading = nx, ny, new_heading
                    moved = True
                    break

        steps += 1
        if not moved or (x == start_x and y == start_y):
            break
        if steps >= max_steps:
            logger.debug(f"Contour trace stopped at step cap ({max_steps})")
            break

    return contour


def extract_outline_from_mask(
    mask: Occupancy,
    tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
    threshold: float = 0.5
) -> List[Point]:
    """Trace a mask's outline and simplify it with Douglas-Peucker."""
    contour = trace_mask_contour(mask, threshold)
    outline = simplify_polygon(contour, tolerance)
    logger.debug(f"Mask outline: {len(contour)} contour pixels simplified to {len(outline)} points")
    return outline
