"""
Segment Anything provider backed by ultralytics.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from ultralytics import SAM

from common import config
from common.bounds import Bounds
from common.geometry import Point
from common.raster import Mask

from .provider import SegmentationProvider, SegmentationResult

logger = logging.getLogger(__name__)


class SamProvider(SegmentationProvider):
    """
    SAM / MobileSAM model prompted with a single point or box.

    Model names known to ultralytics (e.g. "mobile_sam.pt", "sam_b.pt") are
    downloaded on first load; anything else must be an existing file.
    """

    def __init__(self, model_path: str = config.SAM_MODEL_PATH, device: Optional[str] = config.SAM_DEVICE):
        super().__init__()
        self.model_path = model_path
        self.device = device
        self.model = None

    def _load(self):
        path = Path(self.model_path)
        if path.parent != Path('.') and not path.exists():
            raise FileNotFoundError(f"SAM checkpoint not found: {path}")
        self.model = SAM(str(self.model_path))

    def _unload(self):
        self.model = None

    def _segment(
        self,
        image: np.ndarray,
        point: Optional[Point] = None,
        box: Optional[Bounds] = None
    ) -> Optional[SegmentationResult]:
        prompts = {}
        if point is not None:
            prompts['points'] = [point.x, point.y]
            prompts['labels'] = [1]
        if box is not None:
            prompts['bboxes'] = box.as_xyxy()
        if self.device:
            prompts['device'] = self.device

        results = self.model.predict(image, verbose=False, **prompts)

        if len(results) == 0 or results[0].masks is None or len(results[0].masks) == 0:
            logger.info("SAM returned no mask")
            return None

        result = results[0]
        masks = result.masks.data.cpu().numpy()

        if result.boxes is not None and len(result.boxes) == len(masks):
            scores = result.boxes.conf.cpu().numpy()
        else:
            scores = np.ones(len(masks), dtype=np.float32)

        best = int(np.argmax(scores))
        mask = Mask(masks[best] > 0.5)

        logger.debug(f"SAM picked mask {best + 1}/{len(masks)} with confidence {scores[best]:.3f}")
        return SegmentationResult(mask=mask, confidence=float(np.clip(scores[best], 0.0, 1.0)))
