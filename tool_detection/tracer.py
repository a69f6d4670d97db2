"""
Tool outline tracing from a click on a photo.

A click is traced with the segmentation provider when one is ready, and
with a local colour flood fill otherwise or when the provider fails. If
even the flood fill produces nothing usable, a fixed-size box around the
click is returned so the user always has an outline to adjust.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ai.provider import SegmentationProvider, SegmentationResult, request_segmentation
from common import config
from common.bounds import Bounds
from common.geometry import Point
from common.polygon import DEFAULT_SIMPLIFY_TOLERANCE, simplify_polygon
from common.raster import Mask
from segmentation.boundary import extract_boundary, order_boundary
from segmentation.contour import extract_outline_from_mask
from segmentation.region import DEFAULT_COLOR_THRESHOLD, flood_fill

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_FLOOD_FILL = "flood_fill"
SOURCE_FALLBACK_BOX = "fallback_box"
SOURCE_NONE = "none"


@dataclass
class TraceResult:
    """Outline in pixel coordinates and where it came from"""
    outline: List[Point]
    source: str
    mask: Optional[Mask] = None
    confidence: Optional[float] = None


@dataclass
class Tool:
    """A traced object as the application keeps it"""
    id: str
    outline: List[Point]
    mask: Optional[Mask] = None
    confidence: Optional[float] = None


def make_tool(result: TraceResult, tool_id: Optional[str] = None) -> Tool:
    return Tool(
        id=tool_id or str(uuid.uuid4()),
        outline=list(result.outline),
        mask=result.mask,
        confidence=result.confidence,
    )


class ToolTracer:
    """
    Traces the outline of the object under a click.

    Args:
        color_threshold: RGB distance below which pixels join the flood fill
        simplify_tolerance: Douglas-Peucker tolerance for outlines (px)
        fallback_box_size: Half size of the box returned when tracing fails (px)
        min_region_pixels: Smallest flood fill region that is traced
    """

    def __init__(
        self,
        color_threshold: float = DEFAULT_COLOR_THRESHOLD,
        simplify_tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
        fallback_box_size: float = 50,
        min_region_pixels: int = 10
    ):
        self.color_threshold = color_threshold
        self.simplify_tolerance = simplify_tolerance
        self.fallback_box_size = fallback_box_size
        self.min_region_pixels = min_region_pixels

    def flood_fill_trace(self, image: np.ndarray, seed: Point) -> List[Point]:
        """
        Flood fill from the seed, then order and simplify the region boundary.

        Returns:
            Simplified outline, or [] when the region is too small
        """
        region = flood_fill(image, seed, self.color_threshold)
        if region.size < self.min_region_pixels:
            logger.debug(f"Flood fill region too small ({region.size} px)")
            return []

        boundary = extract_boundary(region)
        contour = order_boundary(boundary)
        outline = simplify_polygon(contour, self.simplify_tolerance)

        logger.debug(
            f"Traced region of {region.size} px: {len(boundary)} boundary px, "
            f"{len(contour)} ordered, {len(outline)} after simplification"
        )
        return outline

    def trace(self, image: np.ndarray, seed: Point) -> TraceResult:
        """
        Trace locally with a flood fill.

        Falls back to a square around the seed when the flood fill gives
        fewer than 3 points. A seed outside the image gives an empty outline.
        """
        height, width = image.shape[:2]
        if not (0 <= seed[0] < width and 0 <= seed[1] < height):
            logger.info(f"Click ({seed[0]:.0f}, {seed[1]:.0f}) is outside the image")
            return TraceResult([], SOURCE_NONE)

        outline = self.flood_fill_trace(image, seed)
        if len(outline) >= 3:
            return TraceResult(outline, SOURCE_FLOOD_FILL)

        logger.warning(f"Flood fill could not trace an outline at ({seed[0]:.0f}, {seed[1]:.0f}), using fallback box")
        box = Bounds.around(Point(float(seed[0]), float(seed[1])), self.fallback_box_size)
        return TraceResult(box.corners(), SOURCE_FALLBACK_BOX)

    def _from_segmentation(self, result: Optional[SegmentationResult]) -> Optional[TraceResult]:
        if result is None or result.mask.is_empty():
            return None

        outline = extract_outline_from_mask(result.mask, self.simplify_tolerance)
        if len(outline) < 3:
            return None

        return TraceResult(outline, SOURCE_AI, mask=result.mask, confidence=result.confidence)

    def trace_with_ai(
        self,
        image: np.ndarray,
        seed: Point,
        provider: Optional[SegmentationProvider]
    ) -> TraceResult:
        """Trace with the provider, falling back to trace() when it is not ready or fails."""
        if provider is not None and provider.is_ready:
            try:
                traced = self._from_segmentation(provider.segment_at_point(image, seed))
            except Exception:
                logger.exception("AI segmentation failed, falling back to flood fill")
                traced = None

            if traced is not None:
                return traced
            logger.info("AI segmentation gave no outline, falling back to flood fill")

        return self.trace(image, seed)

    def trace_box_with_ai(
        self,
        image: np.ndarray,
        box: Bounds,
        provider: Optional[SegmentationProvider]
    ) -> TraceResult:
        """Trace the object inside a box; the local fallback starts from the box centre."""
        if provider is not None and provider.is_ready:
            try:
                traced = self._from_segmentation(provider.segment_in_box(image, box))
            except Exception:
                logger.exception("AI box segmentation failed, falling back to flood fill")
                traced = None

            if traced is not None:
                return traced

        return self.trace(image, box.center())

    async def trace_with_ai_async(
        self,
        image: np.ndarray,
        seed: Point,
        provider: Optional[SegmentationProvider],
        timeout: Optional[float] = config.SEGMENTATION_TIMEOUT
    ) -> TraceResult:
        """
        Same as trace_with_ai, but awaits the provider in an executor with a
        timeout; a timeout counts as a failure.

        The timeout bounds how long this coroutine waits, not the model
        call, which finishes in the background (see request_segmentation).
        """
        if provider is not None and provider.is_ready:
            result = await request_segmentation(provider, image, point=seed, timeout=timeout)
            traced = self._from_segmentation(result)
            if traced is not None:
                return traced

        return self.trace(image, seed)
