"""
AI segmentation providers.

SamProvider is resolved lazily: importing ultralytics pulls in torch,
which the pure geometry paths never need.
"""

from .provider import (
    ProviderError,
    ProviderState,
    SegmentationProvider,
    SegmentationResult,
    request_segmentation,
)

__all__ = [
    'ProviderError',
    'ProviderState',
    'SegmentationProvider',
    'SegmentationResult',
    'request_segmentation',
    'SamProvider',
]


def __getattr__(name):
    if name == 'SamProvider':
        from .sam import SamProvider
        return SamProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
