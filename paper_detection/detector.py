"""
Paper detector for images
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ai.provider import SegmentationProvider
from common.geometry import Point, distance, polygon_area
from common.polygon import convex_hull
from common.raster import Occupancy
from segmentation.boundary import extract_boundary
from segmentation.region import DEFAULT_BRIGHTNESS_PERCENTILE, largest_bright_region

from .corners import approximate_quadrilateral, order_corners

logger = logging.getLogger(__name__)


class PaperDetector:
    """
    Class for paper detection in images.

    The sheet is assumed to be the largest bright area of the photo: the
    largest connected region above an adaptive brightness threshold is
    reduced to its convex hull and then to 4 corners. With a segmentation
    provider, the sheet can instead be segmented from a click on it.
    """

    def __init__(
        self,
        brightness_percentile: float = DEFAULT_BRIGHTNESS_PERCENTILE,
        min_region_pixels: int = 100,
        hull_max_points: int = 1000,
        mask_hull_max_points: int = 2000,
        max_dimension: Optional[int] = 1200
    ):
        """
        Initialize the detector.

        Args:
            brightness_percentile: Brightness percentile used as paper threshold (0-100)
            min_region_pixels: Smallest bright region accepted as paper
            hull_max_points: Down-sampling threshold for the hull of the bright region
            mask_hull_max_points: Down-sampling threshold for the hull of a provider mask
            max_dimension: Longest image side used for CV detection (None = full resolution)
        """
        self.brightness_percentile = brightness_percentile
        self.min_region_pixels = min_region_pixels
        self.hull_max_points = hull_max_points
        self.mask_hull_max_points = mask_hull_max_points
        self.max_dimension = max_dimension

    def _downscale(self, image: np.ndarray) -> Tuple[np.ndarray, float, float]:
        """Shrink large images for the pixel-level search. Returns image and x/y factors."""
        h, w = image.shape[:2]
        longest = max(h, w)
        if not self.max_dimension or longest <= self.max_dimension:
            return image, 1.0, 1.0

        factor = self.max_dimension / float(longest)
        new_w = max(1, int(round(w * factor)))
        new_h = max(1, int(round(h * factor)))
        resized = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)

        logger.debug(f"Paper detection on {new_w}x{new_h} (from {w}x{h})")
        return resized, new_w / float(w), new_h / float(h)

    def _corners_from_occupancy(self, occupancy: Occupancy, max_points: int) -> Optional[List[Point]]:
        """Hull of the region's boundary pixels, reduced to 4 ordered corners."""
        boundary = extract_boundary(occupancy)
        if len(boundary) < 4:
            return None

        hull = convex_hull(boundary, max_points)
        corners = approximate_quadrilateral(hull)

        if len(corners) != 4:
            logger.info(f"Paper outline degenerate ({len(corners)} corners)")
            return None
        return corners

    def detect(self, image: np.ndarray) -> Optional[List[Point]]:
        """
        Detect paper in the image.

        Args:
            image: Input image (BGR format)

        Returns:
            4 paper corners ordered top-left, top-right, bottom-right,
            bottom-left, or None if paper was not found.
        """
        if image is None or image.size == 0:
            return None

        work, fx, fy = self._downscale(image)
        region = largest_bright_region(work, self.brightness_percentile)

        if region.size < self.min_region_pixels:
            logger.info(f"No paper detected (largest bright region: {region.size} px)")
            return None

        corners = self._corners_from_occupancy(region, self.hull_max_points)
        if corners is None:
            return None

        return [Point(p.x / fx, p.y / fy) for p in corners]

    def detect_with_ai(
        self,
        image: np.ndarray,
        click: Point,
        provider: SegmentationProvider
    ) -> Optional[List[Point]]:
        """
        Detect paper from a click on it, using a segmentation provider.

        Returns:
            4 ordered corners, or None if the provider failed or returned
            no usable mask.
        """
        if image is None or image.size == 0:
            return None

        try:
            result = provider.segment_at_point(image, click)
        except Exception:
            logger.exception("AI paper segmentation failed")
            return None

        if result is None or result.mask.is_empty():
            logger.info("AI paper segmentation returned no mask")
            return None

        return self._corners_from_occupancy(result.mask, self.mask_hull_max_points)

    def detect_paper(
        self,
        image: np.ndarray,
        click: Optional[Point] = None,
        provider: Optional[SegmentationProvider] = None
    ) -> Optional[List[Point]]:
        """
        Detect paper with the provider when one is ready and a click is given,
        falling back to brightness-based detection.
        """
        if provider is not None and provider.is_ready and click is not None:
            corners = self.detect_with_ai(image, click, provider)
            if corners is not None:
                return corners
            logger.info("Falling back to CV paper detection")

        return self.detect(image)

    def get_paper_dimensions(self, corners: Sequence[Point]) -> Tuple[int, int]:
        """
        Calculate paper dimensions from corners.

        Args:
            corners: Ordered paper corners

        Returns:
            Tuple (width, height) in pixels, taken from the longer of each
            pair of opposite edges
        """
        tl, tr, br, bl = corners

        width = int(max(distance(tl, tr), distance(bl, br)))
        height = int(max(distance(tl, bl), distance(tr, br)))

        return width, height

    def get_paper_metrics(self, corners: Sequence[Point], image_shape: Tuple[int, ...]) -> Dict[str, float]:
        """
        Calculate quality metrics for detected paper.

        Args:
            corners: Paper corners
            image_shape: Shape of the image (height, width[, channels])

        Returns:
            Dictionary with metrics:
                - cover_ratio: Ratio of paper area to image area (0-1)
                - rectangularity: How rectangular the shape is (0-1, 1=perfect rectangle)
                - angle: Rotation angle of the paper's minimum-area rectangle (degrees)
                - perspective_angle: Perspective distortion angle (0=no distortion)
        """
        tl, tr, br, bl = order_corners(corners)
        ordered = [tl, tr, br, bl]

        image_area = image_shape[0] * image_shape[1]
        area = polygon_area(ordered)
        cover_ratio = area / image_area if image_area > 0 else 0.0

        rect = cv2.minAreaRect(np.asarray(ordered, dtype=np.float32))
        rect_area = rect[1][0] * rect[1][1]
        rectangularity = area / rect_area if rect_area > 0 and area > 0 else 0.0

        angle = rect[2]
        if rect[1][0] < rect[1][1]:
            angle = 90 + angle

        top, bottom = distance(tl, tr), distance(bl, br)
        left, right = distance(tl, bl), distance(tr, br)

        horizontal = abs(top - bottom) / max(top, bottom) if max(top, bottom) > 0 else 0.0
        vertical = abs(left - right) / max(left, right) if max(left, right) > 0 else 0.0

        # 0% distortion = 0 degrees, 100% distortion = 45 degrees
        perspective_angle = math.degrees(math.atan((horizontal + vertical) / 2))

        return {
            'cover_ratio': float(cover_ratio),
            'rectangularity': float(rectangularity),
            'angle': float(angle),
            'perspective_angle': float(perspective_angle),
        }
