"""
Geometry primitives, raster types and polygon algorithms shared across packages.
"""

from .bounds import Bounds
from .geometry import Point, Polygon, to_points
from .polygon import convex_hull, offset_polygon, simplify_closed_polygon, simplify_polygon
from .raster import Mask, Region, resample_mask

__all__ = [
    'Bounds',
    'Point',
    'Polygon',
    'to_points',
    'convex_hull',
    'offset_polygon',
    'simplify_polygon',
    'simplify_closed_polygon',
    'Mask',
    'Region',
    'resample_mask',
]
