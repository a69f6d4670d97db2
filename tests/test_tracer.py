import asyncio
import uuid

import numpy as np
import pytest

from common.bounds import Bounds
from common.geometry import Point
from tool_detection import ToolTracer, TraceResult, make_tool


def bbox(points):
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


@pytest.fixture
def image():
    """Light background with a red-ish tool from (40, 30) to (89, 69)"""
    image = np.full((100, 120, 3), 240, dtype=np.uint8)
    image[30:70, 40:90] = (40, 40, 200)
    return image


@pytest.fixture
def tool_mask():
    mask = np.zeros((100, 120), dtype=bool)
    mask[30:70, 40:90] = True
    return mask


@pytest.fixture
def tracer():
    return ToolTracer()


class TestToolTracer:
    def test_flood_fill_trace(self, tracer, image):
        result = tracer.trace(image, Point(60, 50))
        assert result.source == "flood_fill"
        assert len(result.outline) >= 4
        assert bbox(result.outline) == (40, 30, 89, 69)

    def test_fallback_box(self, image):
        tracer = ToolTracer(color_threshold=0)
        result = tracer.trace(image, Point(60, 50))
        assert result.source == "fallback_box"
        assert result.outline == Bounds.around(Point(60, 50), 50).corners()

    def test_seed_outside_image(self, tracer, image):
        result = tracer.trace(image, Point(500, 50))
        assert result.source == "none"
        assert result.outline == []

    def test_ai_trace(self, tracer, image, tool_mask, fake_provider):
        provider = fake_provider(mask=tool_mask, confidence=0.93)
        provider.initialize()
        result = tracer.trace_with_ai(image, Point(60, 50), provider)
        assert result.source == "ai"
        assert result.confidence == 0.93
        assert result.mask is not None
        assert bbox(result.outline) == (40, 30, 89, 69)

    def test_ai_half_resolution_mask(self, tracer, image, fake_provider):
        half = np.zeros((50, 60), dtype=bool)
        half[15:35, 20:45] = True
        provider = fake_provider(mask=half)
        provider.initialize()
        result = tracer.trace_with_ai(image, Point(60, 50), provider)
        assert result.source == "ai"
        assert (result.mask.width, result.mask.height) == (120, 100)
        assert bbox(result.outline) == (40, 30, 89, 69)

    def test_ai_failure_falls_back(self, tracer, image, fake_provider):
        provider = fake_provider(error=RuntimeError("model crashed"))
        provider.initialize()
        result = tracer.trace_with_ai(image, Point(60, 50), provider)
        assert result.source == "flood_fill"
        assert len(provider.calls) == 1

    def test_ai_empty_mask_falls_back(self, tracer, image, fake_provider):
        provider = fake_provider(mask=np.zeros((100, 120), dtype=bool))
        provider.initialize()
        assert tracer.trace_with_ai(image, Point(60, 50), provider).source == "flood_fill"

    def test_provider_not_ready(self, tracer, image, tool_mask, fake_provider):
        provider = fake_provider(mask=tool_mask)
        result = tracer.trace_with_ai(image, Point(60, 50), provider)
        assert result.source == "flood_fill"
        assert provider.calls == []

    def test_no_provider(self, tracer, image):
        assert tracer.trace_with_ai(image, Point(60, 50), None).source == "flood_fill"

    def test_box_trace(self, tracer, image, tool_mask, fake_provider):
        provider = fake_provider(mask=tool_mask)
        provider.initialize()
        box = Bounds(35, 25, 60, 50)
        result = tracer.trace_box_with_ai(image, box, provider)
        assert result.source == "ai"
        assert provider.calls[-1]['box'] == box

    def test_box_trace_fallback_uses_center(self, tracer, image):
        result = tracer.trace_box_with_ai(image, Bounds(35, 25, 60, 50), None)
        assert result.source == "flood_fill"
        assert bbox(result.outline) == (40, 30, 89, 69)


class TestAsyncTrace:
    def test_ai_trace(self, tracer, image, tool_mask, fake_provider):
        provider = fake_provider(mask=tool_mask)
        provider.initialize()
        result = asyncio.run(tracer.trace_with_ai_async(image, Point(60, 50), provider))
        assert result.source == "ai"

    def test_timeout_falls_back(self, tracer, image, tool_mask, fake_provider):
        provider = fake_provider(mask=tool_mask, delay=0.5)
        provider.initialize()
        result = asyncio.run(tracer.trace_with_ai_async(image, Point(60, 50), provider, timeout=0.05))
        assert result.source == "flood_fill"


class TestMakeTool:
    def test_ids_are_unique(self):
        result = TraceResult([Point(0, 0), Point(1, 0), Point(1, 1)], "flood_fill")
        first, second = make_tool(result), make_tool(result)
        assert first.id != second.id
        uuid.UUID(first.id)

    def test_explicit_id(self):
        result = TraceResult([Point(0, 0), Point(1, 0), Point(1, 1)], "ai", confidence=0.5)
        tool = make_tool(result, "wrench")
        assert tool.id == "wrench"
        assert tool.confidence == 0.5
        assert tool.outline == result.outline
