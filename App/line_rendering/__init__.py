"""Raster-to-line rendering pipeline for pen plotters.

AIDEV-NOTE: This package turns a pixel buffer into straight line segments
whose density follows the image's darkness. Organized into modular
components:
- utils: Darkness sampling (safe reads, bilinear sub-pixel sampling)
- rendering: Renderer strategies (hatching, circles, flow field, walkers)
- paths: Polyline chaining and length statistics
- export: CSV / JSON / text / polyline serialization
- processor: LineProcessor request/response orchestrator
"""

from .export import export_lines
from .paths import calculate_total_length, extract_polylines
from .processor import LineProcessor, RenderResult
from .rendering import RENDERERS, LineRenderer, create_renderer

__all__ = [
    "LineProcessor",
    "LineRenderer",
    "RENDERERS",
    "RenderResult",
    "calculate_total_length",
    "create_renderer",
    "export_lines",
    "extract_polylines",
]
