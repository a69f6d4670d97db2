"""
Pixel to millimetre calibration from a reference sheet of known size.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Union

from common.geometry import Point, distance
from common.polygon import offset_polygon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaperSize:
    """Physical paper size in millimetres (portrait)"""
    name: str
    width_mm: float
    height_mm: float


PAPER_SIZES: Dict[str, PaperSize] = {
    'LETTER': PaperSize('Letter', 215.9, 279.4),
    'A4': PaperSize('A4', 210.0, 297.0),
    'LEGAL': PaperSize('Legal', 215.9, 355.6),
    'A3': PaperSize('A3', 297.0, 420.0),
    'TABLOID': PaperSize('Tabloid', 279.4, 431.8),
}


@dataclass(frozen=True)
class CalibrationScale:
    """Pixels per millimetre along each axis, and their mean"""
    scale_x: float
    scale_y: float
    average: float

    @classmethod
    def isotropic(cls, scale: float) -> "CalibrationScale":
        return cls(scale, scale, scale)


def get_paper_size(name: str) -> PaperSize:
    """
    Look up a paper preset by name (case-insensitive).

    Raises:
        ValueError: for unknown names
    """
    key = name.strip().upper()
    if key not in PAPER_SIZES:
        raise ValueError(f"Unknown paper size: {name} (expected one of {', '.join(PAPER_SIZES)})")
    return PAPER_SIZES[key]


def _resolve_paper(paper: Union[str, PaperSize]) -> PaperSize:
    if isinstance(paper, str):
        paper = get_paper_size(paper)
    if paper.width_mm <= 0 or paper.height_mm <= 0:
        raise ValueError(f"Paper dimensions must be positive, got {paper.width_mm}x{paper.height_mm} mm")
    return paper


def _check_corners(corners: Sequence[Point]) -> List[Point]:
    corners = list(corners)
    if len(corners) != 4:
        raise ValueError(f"Calibration needs 4 corners (TL, TR, BR, BL), got {len(corners)}")
    return corners


def calculate_scale(corners: Sequence[Point], paper: Union[str, PaperSize]) -> float:
    """
    Isotropic scale in pixels per millimetre.

    Uses the mean pixel length of the top and bottom edges divided by the
    paper width.

    Args:
        corners: Paper corners ordered TL, TR, BR, BL
        paper: PaperSize or preset name

    Returns:
        Pixels per millimetre
    """
    tl, tr, br, bl = _check_corners(corners)
    paper = _resolve_paper(paper)

    width_px = (distance(tl, tr) + distance(bl, br)) / 2
    scale = width_px / paper.width_mm

    logger.debug(f"Calibration ({paper.name}): {width_px:.1f} px wide -> {scale:.4f} px/mm")
    return scale


def calculate_scale_bidirectional(corners: Sequence[Point], paper: Union[str, PaperSize]) -> CalibrationScale:
    """
    Per-axis scale: top/bottom edges against the paper width and
    left/right edges against the paper height.

    Under perspective the two differ; `average` is their mean.
    """
    tl, tr, br, bl = _check_corners(corners)
    paper = _resolve_paper(paper)

    width_px = (distance(tl, tr) + distance(bl, br)) / 2
    height_px = (distance(tl, bl) + distance(tr, br)) / 2

    scale_x = width_px / paper.width_mm
    scale_y = height_px / paper.height_mm
    average = (scale_x + scale_y) / 2

    if average > 0 and abs(scale_x - scale_y) / average > 0.1:
        logger.warning(
            f"Horizontal and vertical scale differ by more than 10% "
            f"({scale_x:.3f} vs {scale_y:.3f} px/mm); check paper size and orientation"
        )

    return CalibrationScale(scale_x, scale_y, average)


def polygon_to_mm(points: Sequence[Point], scale: Union[float, CalibrationScale]) -> List[Point]:
    """
    Convert pixel coordinates to millimetres.

    Args:
        points: Polygon in pixels
        scale: Pixels per millimetre, a scalar or a per-axis CalibrationScale

    Raises:
        ValueError: for a non-positive scale
    """
    if isinstance(scale, CalibrationScale):
        scale_x, scale_y = scale.scale_x, scale.scale_y
    else:
        scale_x = scale_y = float(scale)

    if scale_x <= 0 or scale_y <= 0:
        raise ValueError(f"Scale must be positive, got {scale_x}, {scale_y}")

    return [Point(p[0] / scale_x, p[1] / scale_y) for p in points]


def outline_to_mm(
    points: Sequence[Point],
    scale: Union[float, CalibrationScale],
    clearance_mm: float = 0.0
) -> List[Point]:
    """
    Prepare a traced outline for export: add clearance, then convert to mm.

    The clearance is applied in pixel space, converted with the (average)
    scale.
    """
    points = list(points)
    if clearance_mm:
        px_per_mm = scale.average if isinstance(scale, CalibrationScale) else float(scale)
        points = offset_polygon(points, clearance_mm * px_per_mm)
    return polygon_to_mm(points, scale)
