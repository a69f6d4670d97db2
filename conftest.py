import time

import numpy as np
import pytest

from ai.provider import SegmentationProvider, SegmentationResult
from common.raster import Mask


class FakeProvider(SegmentationProvider):
    """Provider returning a fixed mask, or raising, without any model."""

    def __init__(self, mask=None, confidence=0.9, error=None, load_error=None, delay=0.0):
        super().__init__()
        self.mask = mask
        self.confidence = confidence
        self.error = error
        self.load_error = load_error
        self.delay = delay
        self.load_count = 0
        self.calls = []

    def _load(self):
        self.load_count += 1
        if self.load_error is not None:
            raise self.load_error

    def _unload(self):
        pass

    def _segment(self, image, point=None, box=None):
        self.calls.append({'point': point, 'box': box})
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.mask is None:
            return None
        return SegmentationResult(Mask(np.asarray(self.mask)), self.confidence)


@pytest.fixture
def fake_provider():
    """Factory for fake segmentation providers"""
    return FakeProvider


@pytest.fixture
def paper_photo():
    """
    Synthetic 300x240 photo: dark table, white Letter-like sheet from
    (40, 20) to (259, 219), dark brown tool from (100, 80) to (179, 139).
    """
    image = np.full((240, 300, 3), 30, dtype=np.uint8)
    image[20:220, 40:260] = 255
    image[80:140, 100:180] = (20, 40, 60)
    return image
