"""
Raster types passed between segmentation steps.

Pixel buffers themselves are plain numpy arrays as returned by cv2.imread
(H x W x 3/4, or H x W for single channel images).
"""

from dataclasses import dataclass
from typing import List, Optional, Union

import cv2
import numpy as np

from .geometry import Point


@dataclass(frozen=True)
class Mask:
    """
    Binary or probability occupancy raster.

    data has shape (height, width); values above `threshold` in binary()
    count as foreground.
    """

    data: np.ndarray

    def __post_init__(self):
        if self.data.ndim != 2:
            raise ValueError(f"Mask must be 2-dimensional, got shape {self.data.shape}")

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def binary(self, threshold: float = 0.5) -> np.ndarray:
        """Boolean foreground array."""
        if self.data.dtype == bool:
            return self.data.copy()
        return self.data > threshold

    def is_empty(self, threshold: float = 0.5) -> bool:
        return not np.any(self.binary(threshold))


@dataclass(frozen=True)
class Region:
    """Pixels reached by one flood fill, stored as a boolean (height, width) array."""

    pixels: np.ndarray
    seed: Optional[Point] = None

    @classmethod
    def empty(cls, width: int, height: int, seed: Optional[Point] = None) -> "Region":
        return cls(np.zeros((max(height, 0), max(width, 0)), dtype=bool), seed)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> int:
        return int(np.count_nonzero(self.pixels))

    def __len__(self) -> int:
        return self.size

    def points(self) -> List[Point]:
        """Member pixel coordinates in raster order."""
        ys, xs = np.nonzero(self.pixels)
        return [Point(float(x), float(y)) for x, y in zip(xs, ys)]


Occupancy = Union[Region, Mask, np.ndarray]


def as_occupancy(source: Occupancy, threshold: float = 0.5) -> np.ndarray:
    """Boolean (height, width) membership array for a Region, Mask or raw array."""
    if isinstance(source, Region):
        return source.pixels
    if isinstance(source, Mask):
        return source.binary(threshold)

    array = np.asarray(source)
    if array.ndim != 2:
        raise ValueError(f"Occupancy array must be 2-dimensional, got shape {array.shape}")
    if array.dtype == bool:
        return array
    return array > threshold


def resample_mask(mask: Mask, width: int, height: int) -> Mask:
    """
    Resize a mask to (width, height) with nearest-neighbour sampling.

    Nearest-neighbour keeps the edges crisp; interpolating would blur the
    mask boundary into intermediate values.
    """
    if mask.width == width and mask.height == height:
        return mask

    data = mask.data
    if data.dtype == bool:
        data = data.astype(np.uint8)

    resized = cv2.resize(data, (width, height), interpolation=cv2.INTER_NEAREST)
    if mask.data.dtype == bool:
        resized = resized.astype(bool)
    return Mask(resized)
