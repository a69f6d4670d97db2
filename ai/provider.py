"""
Interface to external object segmentation models.

A provider is an explicitly managed handle: it is created unloaded,
initialize() loads the model, dispose() releases it. Nothing is cached at
module level, so independent pipelines can each hold their own provider.
"""

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from common import config
from common.bounds import Bounds
from common.geometry import Point
from common.raster import Mask, resample_mask

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Provider could not be loaded or was used before it was ready."""


class ProviderState(Enum):
    """Lifecycle of a segmentation provider"""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class SegmentationResult:
    """Mask at the input image's resolution plus the model's confidence in [0, 1]."""
    mask: Mask
    confidence: float


class SegmentationProvider(ABC):
    """
    Base class for segmentation models prompted with a point or a box.

    Subclasses implement _load, _unload and _segment. The public segment
    methods return a SegmentationResult whose mask has been resampled to
    the input image size (nearest-neighbour), or None when the model found
    nothing; errors raised by the model itself propagate to the caller.
    """

    def __init__(self):
        self.state = ProviderState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self.state == ProviderState.READY

    def initialize(self) -> bool:
        """
        Load the model if it is not loaded yet.

        Returns:
            True once the provider is ready

        Raises:
            ProviderError: if loading failed (state becomes FAILED)
        """
        if self.state == ProviderState.READY:
            return True

        self.state = ProviderState.LOADING
        logger.info(f"Loading segmentation model ({type(self).__name__})")

        try:
            self._load()
        except Exception as e:
            self.state = ProviderState.FAILED
            logger.exception("Failed to load segmentation model")
            raise ProviderError(f"Failed to load segmentation model: {e}") from e

        self.state = ProviderState.READY
        logger.info("Segmentation model loaded")
        return True

    def dispose(self):
        """Release the model. The provider can be initialized again afterwards."""
        if self.state == ProviderState.READY:
            self._unload()
        self.state = ProviderState.DISPOSED

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False

    def segment_at_point(self, image: np.ndarray, point: Point) -> Optional[SegmentationResult]:
        """Segment the object under a foreground click."""
        self._require_ready()
        result = self._segment(image, point=Point(float(point[0]), float(point[1])))
        return self._fit_to_image(result, image)

    def segment_in_box(self, image: np.ndarray, box: Bounds) -> Optional[SegmentationResult]:
        """Segment the dominant object inside a box."""
        self._require_ready()
        return self._fit_to_image(self._segment(image, box=box), image)

    def _fit_to_image(self, result: Optional[SegmentationResult], image: np.ndarray) -> Optional[SegmentationResult]:
        """Resample the model's mask to the image size (nearest-neighbour)."""
        if result is None:
            return None

        height, width = image.shape[:2]
        if result.mask.width == width and result.mask.height == height:
            return result

        logger.debug(f"Resampling mask from {result.mask.width}x{result.mask.height} to {width}x{height}")
        return SegmentationResult(resample_mask(result.mask, width, height), result.confidence)

    def _require_ready(self):
        if not self.is_ready:
            raise ProviderError(f"Segmentation provider is not ready (state: {self.state.value})")

    @abstractmethod
    def _load(self):
        """Load the model."""

    @abstractmethod
    def _unload(self):
        """Drop the model."""

    @abstractmethod
    def _segment(
        self,
        image: np.ndarray,
        point: Optional[Point] = None,
        box: Optional[Bounds] = None
    ) -> Optional[SegmentationResult]:
        """Run the model with exactly one of point or box set."""


async def request_segmentation(
    provider: SegmentationProvider,
    image: np.ndarray,
    point: Optional[Point] = None,
    box: Optional[Bounds] = None,
    timeout: Optional[float] = config.SEGMENTATION_TIMEOUT
) -> Optional[SegmentationResult]:
    """
    Issue one segmentation request without blocking the event loop.

    The provider runs in the loop's default executor. A provider error or
    a timeout is reported as None so the caller can fall back to local
    flood fill; there are no retries.

    Args:
        timeout: Seconds to wait for the provider (None waits forever).
            The awaiting coroutine resumes when it expires, but the model
            call itself cannot be interrupted: it keeps running in its
            executor thread, and asyncio.run() waits for that thread when
            it shuts the default executor down. A synchronous caller going
            through asyncio.run() therefore returns only after the model
            call has finished.
    """
    if (point is None) == (box is None):
        raise ValueError("Exactly one of point or box must be given")

    if point is not None:
        call = functools.partial(provider.segment_at_point, image, point)
    else:
        call = functools.partial(provider.segment_in_box, image, box)

    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, call), timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Segmentation request timed out after {timeout}s")
        return None
    except Exception:
        logger.exception("Segmentation request failed")
        return None
