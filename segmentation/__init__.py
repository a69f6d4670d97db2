"""
Segmentation Module

Seeded region growing, boundary extraction and mask contour tracing.
"""

from .boundary import extract_boundary, order_boundary
from .contour import extract_outline_from_mask, trace_mask_contour
from .region import bright_mask, flood_fill, largest_bright_region

__all__ = [
    'flood_fill',
    'bright_mask',
    'largest_bright_region',
    'extract_boundary',
    'order_boundary',
    'trace_mask_contour',
    'extract_outline_from_mask',
]
