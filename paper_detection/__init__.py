"""
Paper Detection Module

Detects the reference sheet of paper in a photo, orders its corners and
derives the pixel to millimetre calibration from its known size.
"""

from .calibration import (
    PAPER_SIZES,
    CalibrationScale,
    PaperSize,
    calculate_scale,
    calculate_scale_bidirectional,
    get_paper_size,
    outline_to_mm,
    polygon_to_mm,
)
from .corners import approximate_quadrilateral, order_corners, select_extreme_points
from .detector import PaperDetector
from .visualizer import PaperVisualizer

__all__ = [
    'PaperDetector',
    'PaperVisualizer',
    'PAPER_SIZES',
    'PaperSize',
    'CalibrationScale',
    'get_paper_size',
    'calculate_scale',
    'calculate_scale_bidirectional',
    'polygon_to_mm',
    'outline_to_mm',
    'approximate_quadrilateral',
    'order_corners',
    'select_extreme_points',
]
