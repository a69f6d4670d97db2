"""
Tool Detection Module

Traces tool outlines from clicks, with an optional AI segmentation provider.
"""

from .tracer import Tool, ToolTracer, TraceResult, make_tool

__all__ = ['Tool', 'ToolTracer', 'TraceResult', 'make_tool']
