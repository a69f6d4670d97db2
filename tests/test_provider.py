import asyncio

import numpy as np
import pytest

from ai.provider import ProviderError, ProviderState, request_segmentation
from common.bounds import Bounds
from common.geometry import Point


@pytest.fixture
def image():
    return np.zeros((20, 30, 3), dtype=np.uint8)


@pytest.fixture
def mask():
    mask = np.zeros((20, 30), dtype=bool)
    mask[5:15, 10:20] = True
    return mask


class TestProviderLifecycle:
    def test_starts_uninitialized(self, fake_provider):
        provider = fake_provider()
        assert provider.state == ProviderState.UNINITIALIZED
        assert not provider.is_ready

    def test_initialize_once(self, fake_provider):
        provider = fake_provider()
        assert provider.initialize()
        assert provider.initialize()
        assert provider.is_ready
        assert provider.load_count == 1

    def test_load_failure(self, fake_provider):
        provider = fake_provider(load_error=FileNotFoundError("mobile_sam.pt"))
        with pytest.raises(ProviderError):
            provider.initialize()
        assert provider.state == ProviderState.FAILED
        assert not provider.is_ready

    def test_segment_before_ready(self, fake_provider, image):
        provider = fake_provider()
        with pytest.raises(ProviderError):
            provider.segment_at_point(image, Point(1, 1))

    def test_dispose(self, fake_provider, image):
        provider = fake_provider()
        provider.initialize()
        provider.dispose()
        assert provider.state == ProviderState.DISPOSED
        with pytest.raises(ProviderError):
            provider.segment_in_box(image, Bounds(0, 0, 5, 5))

    def test_reinitialize_after_dispose(self, fake_provider):
        provider = fake_provider()
        provider.initialize()
        provider.dispose()
        provider.initialize()
        assert provider.is_ready
        assert provider.load_count == 2

    def test_context_manager(self, fake_provider):
        with fake_provider() as provider:
            assert provider.is_ready
        assert provider.state == ProviderState.DISPOSED

    def test_segment_point_and_box(self, fake_provider, image, mask):
        provider = fake_provider(mask=mask, confidence=0.8)
        provider.initialize()

        result = provider.segment_at_point(image, (12, 7))
        assert result.confidence == 0.8
        assert np.array_equal(result.mask.data, mask)
        assert provider.calls[-1]['point'] == Point(12.0, 7.0)

        provider.segment_in_box(image, Bounds(10, 5, 10, 10))
        assert provider.calls[-1]['box'] == Bounds(10, 5, 10, 10)


class TestRequestSegmentation:
    def test_success(self, fake_provider, image, mask):
        provider = fake_provider(mask=mask)
        provider.initialize()
        result = asyncio.run(request_segmentation(provider, image, point=Point(12, 7)))
        assert result is not None
        assert result.mask.width == 30

    def test_box_prompt(self, fake_provider, image, mask):
        provider = fake_provider(mask=mask)
        provider.initialize()
        result = asyncio.run(request_segmentation(provider, image, box=Bounds(10, 5, 10, 10)))
        assert result is not None
        assert provider.calls[-1]['box'] == Bounds(10, 5, 10, 10)

    def test_requires_exactly_one_prompt(self, fake_provider, image):
        provider = fake_provider()
        provider.initialize()
        with pytest.raises(ValueError):
            asyncio.run(request_segmentation(provider, image))
        with pytest.raises(ValueError):
            asyncio.run(request_segmentation(provider, image, point=Point(1, 1), box=Bounds(0, 0, 2, 2)))

    def test_failure_is_none(self, fake_provider, image):
        provider = fake_provider(error=RuntimeError("CUDA out of memory"))
        provider.initialize()
        assert asyncio.run(request_segmentation(provider, image, point=Point(1, 1))) is None

    def test_not_ready_is_none(self, fake_provider, image):
        provider = fake_provider()
        assert asyncio.run(request_segmentation(provider, image, point=Point(1, 1))) is None

    def test_timeout_is_none(self, fake_provider, image, mask):
        provider = fake_provider(mask=mask, delay=0.5)
        provider.initialize()
        result = asyncio.run(request_segmentation(provider, image, point=Point(1, 1), timeout=0.05))
        assert result is None


class TestMaskResolution:
    def test_low_resolution_mask_is_resampled(self, fake_provider, image):
        half = np.zeros((10, 15), dtype=bool)
        half[2:7, 5:10] = True
        provider = fake_provider(mask=half, confidence=0.7)
        provider.initialize()

        result = provider.segment_at_point(image, Point(15, 8))
        assert (result.mask.width, result.mask.height) == (30, 20)
        assert np.array_equal(result.mask.data, np.kron(half, np.ones((2, 2), dtype=bool)))
        assert result.confidence == 0.7

    def test_box_prompt_mask_is_resampled(self, fake_provider, image):
        provider = fake_provider(mask=np.ones((5, 5), dtype=np.float32))
        provider.initialize()
        result = provider.segment_in_box(image, Bounds(0, 0, 10, 10))
        assert (result.mask.width, result.mask.height) == (30, 20)

    def test_full_resolution_mask_untouched(self, fake_provider, image, mask):
        provider = fake_provider(mask=mask)
        provider.initialize()
        result = provider.segment_at_point(image, Point(12, 7))
        assert np.array_equal(result.mask.data, mask)
