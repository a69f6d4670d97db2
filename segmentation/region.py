"""
Seeded region segmentation over pixel buffers.

Two predicates are supported: colour similarity to the seed pixel (tool
tracing) and brightness above an adaptive percentile (paper detection).
Both grow 4-connected regions with the same flood fill.
"""

import logging
from typing import List, Optional

import numpy as np

from common.geometry import Point
from common.raster import Region

logger = logging.getLogger(__name__)

DEFAULT_COLOR_THRESHOLD = 30.0
DEFAULT_BRIGHTNESS_PERCENTILE = 70.0


def _rgb(image: np.ndarray) -> np.ndarray:
    """Colour channels as float32 (H, W, 3); single channel images are broadcast to grey."""
    if image.ndim == 2:
        return np.repeat(image[:, :, None], 3, axis=2).astype(np.float32)
    return image[:, :, :3].astype(np.float32)


def _fill_from(
    accept: List[bool],
    visited: bytearray,
    width: int,
    height: int,
    start: int,
    max_iterations: int
) -> List[int]:
    """
    Grow a 4-connected region from a flat pixel index.

    Pixels are marked visited when pushed, so each one enters the worklist
    at most once; max_iterations is a hard stop on top of that.
    """
    total = width * height
    region = []
    stack = [start]
    visited[start] = 1
    iterations = 0

    while stack and iterations < max_iterations:
        iterations += 1
        idx = stack.pop()
        region.append(idx)
        x = idx % width

        if x + 1 < width:
            n = idx + 1
            if accept[n] and not visited[n]:
                visited[n] = 1
                stack.append(n)
        if x > 0:
            n = idx - 1
            if accept[n] and not visited[n]:
                visited[n] = 1
                stack.append(n)
        n = idx + width
        if n < total and accept[n] and not visited[n]:
            visited[n] = 1
            stack.append(n)
        n = idx - width
        if n >= 0 and accept[n] and not visited[n]:
            visited[n] = 1
            stack.append(n)

    if stack:
        logger.debug(f"Flood fill stopped at iteration cap ({max_iterations}), {len(stack)} pixels pending")

    return region


def _region_from_indices(indices: List[int], width: int, height: int, seed: Optional[Point]) -> Region:
    flat = np.zeros(width * height, dtype=bool)
    if indices:
        flat[np.asarray(indices, dtype=np.int64)] = True
    return Region(flat.reshape(height, width), seed)


def color_distance_map(image: np.ndarray, color) -> np.ndarray:
    """Euclidean RGB distance (0-255 scale) of every pixel to a reference colour."""
    diff = _rgb(image) - np.asarray(color, dtype=np.float32)[:3]
    return np.sqrt(np.sum(diff * diff, axis=2))


def flood_fill(image: np.ndarray, seed: Point, threshold: float = DEFAULT_COLOR_THRESHOLD) -> Region:
    """
    Region of pixels connected to the seed whose colour is close to the seed colour.

    A pixel joins the region when its Euclidean RGB distance to the seed
    pixel is strictly below the threshold and it is 4-connected to the seed
    through other accepted pixels. The seed pixel is always a member.

    Args:
        image: Pixel buffer (H x W x C or H x W), not modified
        seed: Seed point in pixel coordinates (floored to a pixel)
        threshold: Colour distance threshold

    Returns:
        Region; empty when the seed lies outside the buffer.
    """
    height, width = image.shape[:2]
    sx, sy = int(np.floor(seed[0])), int(np.floor(seed[1]))

    if sx < 0 or sx >= width or sy < 0 or sy >= height:
        logger.debug(f"Seed ({seed[0]}, {seed[1]}) outside {width}x{height} buffer")
        return Region.empty(width, height, seed)

    seed_color = _rgb(image[sy:sy + 1, sx:sx + 1])[0, 0]
    accept = (color_distance_map(image, seed_color) < threshold).ravel().tolist()
    visited = bytearray(width * height)

    indices = _fill_from(accept, visited, width, height, sy * width + sx, width * height)
    logger.debug(f"Flood fill from ({sx}, {sy}) with threshold {threshold}: {len(indices)} pixels")

    return _region_from_indices(indices, width, height, Point(float(sx), float(sy)))


def brightness_map(image: np.ndarray) -> np.ndarray:
    """Mean of the normalized colour channels, in [0, 1]."""
    return _rgb(image).mean(axis=2) / 255.0


def bright_mask(image: np.ndarray, percentile: float = DEFAULT_BRIGHTNESS_PERCENTILE) -> np.ndarray:
    """
    Pixels at least as bright as the given percentile of the image's brightness.

    The threshold adapts to the exposure of each photo instead of using a
    fixed brightness level.
    """
    brightness = brightness_map(image)
    threshold = float(np.percentile(brightness, percentile))
    logger.debug(f"Adaptive brightness threshold (p{percentile:g}): {threshold:.3f}")
    return brightness >= threshold


def largest_bright_region(image: np.ndarray, percentile: float = DEFAULT_BRIGHTNESS_PERCENTILE) -> Region:
    """
    Largest 4-connected region of bright pixels.

    Every bright pixel not yet claimed by a region starts a new flood fill;
    the biggest region wins.

    Returns:
        The largest Region, seeded at its first pixel; empty if the image
        has no pixels.
    """
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return Region.empty(width, height)

    bright = bright_mask(image, percentile)
    accept = bright.ravel().tolist()
    visited = bytearray(width * height)

    best: List[int] = []
    best_start = None
    region_count = 0

    for start in np.flatnonzero(bright).tolist():
        if visited[start]:
            continue
        region = _fill_from(accept, visited, width, height, start, width * height)
        region_count += 1
        if len(region) > len(best):
            best = region
            best_start = start

    logger.debug(f"Found {region_count} bright regions, largest has {len(best)} pixels")

    seed = None
    if best_start is not None:
        seed = Point(float(best_start % width), float(best_start // width))
    return _region_from_indices(best, width, height, seed)
