"""Main line processor orchestrating a render request.

AIDEV-NOTE: Request/response boundary for callers (CLI, GUI worker
threads): (pixel buffer, settings) in, line segments out. The processor
holds only immutable configuration, so one instance can serve concurrent
requests on different buffers.
"""

import logging
from dataclasses import dataclass
from functools import cached_property

from PIL import Image

from models import (
    InvalidConfigurationError,
    LineSegment,
    Polyline,
    RendererKind,
    RenderSettings,
)

from .export import Destination, export_lines
from .paths import calculate_total_length, count_points, extract_polylines
from .rendering import LineRenderer, create_renderer
from .utils import as_pixel_array, image_to_pixels

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Result of a render request.

    AIDEV-NOTE: Polylines and the statistics derived from them are chained
    on first access only; CSV/JSON/text callers never pay for chaining.
    """

    # Raw segments in renderer order
    lines: "list[LineSegment]"

    # Display name of the renderer used
    renderer_name: str

    # Source buffer dimensions (pixels)
    width: int = 0
    height: int = 0

    # Total drawn length in px
    total_length: float = 0.0

    @cached_property
    def polylines(self) -> "list[Polyline]":
        """Segments chained into pen-down paths."""
        return extract_polylines(self.lines)

    @property
    def point_count(self) -> int:
        """Pen positions visited while drawing the polylines."""
        return count_points(self.polylines)

    @property
    def pen_lifts(self) -> int:
        """One per polyline."""
        return len(self.polylines)


class LineProcessor:
    """Renders pixel buffers into plotter lines with one renderer."""

    def __init__(
        self,
        settings: RenderSettings | None = None,
        renderer: "LineRenderer | RendererKind | str" = RendererKind.ORTHOGONAL_HATCH,
        **renderer_options,
    ):
        self.settings = settings or RenderSettings()
        if isinstance(renderer, (RendererKind, str)):
            self.renderer = create_renderer(renderer, **renderer_options)
        elif renderer_options:
            raise InvalidConfigurationError(
                "options", "options can only be given together with a renderer kind"
            )
        else:
            self.renderer = renderer

    def render(self, pixels, width: int, height: int) -> "list[LineSegment]":
        """Run the renderer on a pixel buffer.

        Args:
            pixels: Flat row-major RGBA buffer (width * height colors)
            width: Buffer width in pixels
            height: Buffer height in pixels

        Returns:
            Line segments in renderer order

        Raises:
            InvalidConfigurationError: If the buffer is empty or does not
                match the given dimensions
        """
        array = as_pixel_array(pixels, width, height)
        if width == 0 or height == 0:
            raise InvalidConfigurationError(
                "pixels", f"cannot render an empty {width}x{height} buffer"
            )
        return self.renderer.generate(array, width, height, self.settings)

    def process(self, pixels, width: int, height: int) -> RenderResult:
        """Render a pixel buffer and collect statistics.

        Polylines are chained lazily; see RenderResult.
        """
        logger.info(
            "Rendering %dx%d buffer with %s", width, height, self.renderer.name
        )
        lines = self.render(pixels, width, height)
        logger.info("Generated %d line segments", len(lines))

        total_length = calculate_total_length(lines)
        logger.info("Total drawn length %.2f px", total_length)

        return RenderResult(
            lines=lines,
            renderer_name=self.renderer.name,
            width=width,
            height=height,
            total_length=total_length,
        )

    def process_image(self, image: Image.Image) -> RenderResult:
        """Render an already-decoded Pillow image."""
        pixels, width, height = image_to_pixels(image)
        return self.process(pixels, width, height)

    def export(
        self,
        result: "RenderResult | list[LineSegment]",
        destination: Destination,
        fmt=None,
    ):
        """Write a result's lines; see export.export_lines."""
        lines = result.lines if isinstance(result, RenderResult) else result
        return export_lines(lines, destination, fmt)
