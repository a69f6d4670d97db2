"""
Visualization of detected paper and traced outlines
"""

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from common.geometry import Point


def _as_int_array(points: Sequence[Point]) -> np.ndarray:
    return np.round(np.asarray(points, dtype=np.float64)).astype(np.int32)


class PaperVisualizer:
    """
    Class for visualizing detected paper and tool outlines.

    Draws a blue frame with a transparent fill over the paper and green
    outlines for traced tools.
    """

    def __init__(
        self,
        border_color: Tuple[int, int, int] = (255, 100, 0),  # Blue in BGR
        border_thickness: int = 3,
        overlay_color: Tuple[int, int, int] = (255, 200, 100),  # Light blue in BGR
        overlay_alpha: float = 0.3,
        outline_color: Tuple[int, int, int] = (0, 200, 0),  # Green in BGR
        outline_thickness: int = 2
    ):
        """
        Initialize the visualizer.

        Args:
            border_color: Frame color in BGR format
            border_thickness: Frame thickness in pixels
            overlay_color: Transparent overlay color in BGR format
            overlay_alpha: Overlay transparency (0.0 = transparent, 1.0 = opaque)
            outline_color: Tool outline color in BGR format
            outline_thickness: Tool outline thickness in pixels
        """
        self.border_color = border_color
        self.border_thickness = border_thickness
        self.overlay_color = overlay_color
        self.overlay_alpha = overlay_alpha
        self.outline_color = outline_color
        self.outline_thickness = outline_thickness

    def visualize(
        self,
        image: np.ndarray,
        corners: Optional[Sequence[Point]],
        draw_border: bool = True,
        draw_overlay: bool = True
    ) -> Optional[np.ndarray]:
        """
        Visualize detected paper on the image.

        Args:
            image: Input image (BGR format)
            corners: 4 paper corners
            draw_border: Whether to draw blue frame
            draw_overlay: Whether to draw transparent background

        Returns:
            Copy of the image with visualization (the unchanged copy when
            there are no corners), or None without an image
        """
        if image is None:
            return None

        result = image.copy()
        if corners is None or len(corners) == 0:
            return result

        corners_int = _as_int_array(corners)

        if draw_overlay:
            overlay = result.copy()
            cv2.fillPoly(overlay, [corners_int], self.overlay_color)
            result = cv2.addWeighted(
                overlay,
                self.overlay_alpha,
                result,
                1 - self.overlay_alpha,
                0
            )

        if draw_border:
            cv2.polylines(result, [corners_int], True, self.border_color, self.border_thickness)
            for corner in corners_int:
                cv2.circle(result, (int(corner[0]), int(corner[1])), radius=5, color=self.border_color, thickness=-1)

        return result

    def draw_outlines(
        self,
        image: np.ndarray,
        outlines: Sequence[Sequence[Point]]
    ) -> Optional[np.ndarray]:
        """
        Draw closed tool outlines on a copy of the image.

        Outlines with fewer than 2 points are skipped.
        """
        if image is None:
            return None

        result = image.copy()
        for outline in outlines:
            if len(outline) < 2:
                continue
            cv2.polylines(result, [_as_int_array(outline)], True, self.outline_color, self.outline_thickness)

        return result
