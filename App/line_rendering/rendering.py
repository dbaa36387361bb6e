"""Rendering strategies that turn a pixel buffer into plotter line segments.

AIDEV-NOTE: Every renderer follows the same contract:

    generate(pixels, width, height, settings) -> list[LineSegment]

Renderers are frozen dataclasses whose fields are their tunable options.
They keep no state between calls, never mutate the pixel buffer, and any
randomness comes from a generator seeded from settings.seed inside the call.
All threshold tests are "darkness >= settings.darkness_threshold".
"""

import math
from dataclasses import dataclass, fields
from typing import ClassVar, Iterator, Protocol

import numpy as np

from models import (
    InvalidConfigurationError,
    LineSegment,
    RendererKind,
    RenderSettings,
    require_positive,
)

from .utils import DarknessMap, clamp

# Gradient magnitudes below this stop a flow-field trace
MIN_GRADIENT_MAGNITUDE = 0.01

# Chance that an idle random walker jumps elsewhere instead of drifting
TELEPORT_PROBABILITY = 0.1


class LineRenderer(Protocol):
    """Capability shared by all line rendering strategies."""

    name: ClassVar[str]

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]": ...


def _dark_runs(mask: "list[bool]") -> "Iterator[tuple[int, int]]":
    """Yield (first, last) indices of each maximal run of True values.

    Single-element runs are skipped: their segment would have zero length.
    """
    run_start = -1
    for index, dark in enumerate(mask):
        if dark:
            if run_start < 0:
                run_start = index
        elif run_start >= 0:
            if index - 1 > run_start:
                yield run_start, index - 1
            run_start = -1

    last = len(mask) - 1
    if run_start >= 0 and last > run_start:
        yield run_start, last


def _spaced_indices(start: float, limit: int, spacing: float) -> "Iterator[int]":
    """Yield int(position) for position = start, start + spacing, ... < limit.

    Each index is yielded once. When spacing is below one pixel the cursor
    jumps straight to the next index instead of stepping through the repeats.
    """
    position = start
    last_index = None
    while position < limit:
        index = int(position)
        if index == last_index:
            position = index + 1
            continue
        last_index = index
        yield index
        position += spacing


def _require_flag(field: str, value) -> None:
    if not isinstance(value, bool):
        raise InvalidConfigurationError(field, f"expected True/False, got {value!r}")


def _require_int(field: str, value, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(field, f"expected an integer, got {value!r}")
    if value < minimum:
        raise InvalidConfigurationError(field, f"must be >= {minimum}, got {value!r}")


@dataclass(frozen=True)
class OrthogonalHatchRenderer:
    """Horizontal and vertical hatching.

    Rows and columns are scanned every settings.line_spacing pixels; each
    maximal run of dark pixels becomes one segment.

    AIDEV-NOTE: With adaptive_spacing the gap to the next row/column is
    recomputed from the mean darkness of the one just scanned:
    spacing * (1 + (1 - avg_darkness) * 2), so light areas get up to 3x
    the base spacing.
    """

    name: ClassVar[str] = "Orthogonal Hatch"

    draw_horizontal: bool = True
    draw_vertical: bool = True
    adaptive_spacing: bool = False

    def __post_init__(self):
        _require_flag("draw_horizontal", self.draw_horizontal)
        _require_flag("draw_vertical", self.draw_vertical)
        _require_flag("adaptive_spacing", self.adaptive_spacing)

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]":
        darkness = DarknessMap.from_pixels(pixels, width, height)
        lines: "list[LineSegment]" = []
        if darkness.is_empty:
            return lines

        if self.draw_horizontal:
            self._scan_axis(darkness, settings, lines, horizontal=True)
        if self.draw_vertical:
            self._scan_axis(darkness, settings, lines, horizontal=False)

        return lines

    def _scan_axis(
        self,
        darkness: DarknessMap,
        settings: RenderSettings,
        lines: "list[LineSegment]",
        horizontal: bool,
    ) -> None:
        line_count = darkness.height if horizontal else darkness.width
        spacing = settings.line_spacing
        position = 0.0
        last_index = -1

        while position < line_count:
            index = int(position)
            if index == last_index:
                # Spacing below one pixel truncates onto the same row/column
                position = index + 1
                continue
            last_index = index
            values = darkness.grid[index] if horizontal else darkness.grid[:, index]
            mask = (values >= settings.darkness_threshold).tolist()

            for first, last in _dark_runs(mask):
                if horizontal:
                    lines.append(LineSegment.from_coords(first, index, last, index))
                else:
                    lines.append(LineSegment.from_coords(index, first, index, last))

            if self.adaptive_spacing:
                avg_darkness = (
                    darkness.row_average(index)
                    if horizontal
                    else darkness.column_average(index)
                )
                spacing = settings.line_spacing * (1.0 + (1.0 - avg_darkness) * 2.0)

            position += spacing


@dataclass(frozen=True)
class DiagonalHatchRenderer:
    """Hatching along 45° and 135° diagonals.

    45° lines run from the left and top edges down-right; 135° lines run
    from the right and top edges down-left. Seeds are spread
    line_spacing * spacing_factor apart along those edges so the
    perpendicular gap between diagonals roughly matches orthogonal hatching.
    """

    name: ClassVar[str] = "Diagonal Hatch"

    draw_45: bool = True
    draw_135: bool = True
    spacing_factor: float = 1.414

    def __post_init__(self):
        _require_flag("draw_45", self.draw_45)
        _require_flag("draw_135", self.draw_135)
        require_positive("spacing_factor", self.spacing_factor)

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]":
        darkness = DarknessMap.from_pixels(pixels, width, height)
        lines: "list[LineSegment]" = []
        if darkness.is_empty:
            return lines

        spacing = settings.line_spacing * self.spacing_factor
        threshold = settings.darkness_threshold

        if self.draw_45:
            for start_x, start_y in self._seeds(darkness, spacing, from_right=False):
                self._scan_diagonal(darkness, threshold, start_x, start_y, 1, lines)

        if self.draw_135:
            for start_x, start_y in self._seeds(darkness, spacing, from_right=True):
                self._scan_diagonal(darkness, threshold, start_x, start_y, -1, lines)

        return lines

    @staticmethod
    def _seeds(
        darkness: DarknessMap, spacing: float, from_right: bool
    ) -> "list[tuple[int, int]]":
        """Start pixels along the side edge, then along the top edge."""
        edge_x = darkness.width - 1 if from_right else 0
        seeds = [(edge_x, y) for y in _spaced_indices(0.0, darkness.height, spacing)]

        # The shared corner was already covered by the side edge
        if from_right:
            start_x = edge_x - spacing
            last_x = None
            while start_x >= 0:
                x = int(start_x)
                if x == last_x:
                    start_x = x - 1
                    continue
                last_x = x
                seeds.append((x, 0))
                start_x -= spacing
        else:
            seeds.extend((x, 0) for x in _spaced_indices(spacing, darkness.width, spacing))

        # A vanishing spacing can put the first top seed on the corner again
        return list(dict.fromkeys(seeds))

    @staticmethod
    def _scan_diagonal(
        darkness: DarknessMap,
        threshold: float,
        start_x: int,
        start_y: int,
        step_x: int,
        lines: "list[LineSegment]",
    ) -> None:
        """Walk one diagonal (y always increases) and emit its dark runs."""
        coords = []
        x, y = start_x, start_y
        while 0 <= x < darkness.width and 0 <= y < darkness.height:
            coords.append((x, y))
            x += step_x
            y += 1

        mask = [darkness.at(cx, cy) >= threshold for cx, cy in coords]
        for first, last in _dark_runs(mask):
            (x1, y1), (x2, y2) = coords[first], coords[last]
            lines.append(LineSegment.from_coords(x1, y1, x2, y2))


@dataclass(frozen=True)
class ConcentricCirclesRenderer:
    """Rings around grid-placed centres, broken wherever the image is light.

    Centres sit line_spacing * 8 apart. Each ring is sampled at
    circle_segments angles (plus a duplicate of the first to close it);
    consecutive dark, in-bounds samples are joined. Out-of-bounds or light
    samples end the current arc.
    """

    name: ClassVar[str] = "Concentric Circles"

    radius_increment: float = 3.0
    max_radius: float = 50.0
    circle_segments: int = 36

    def __post_init__(self):
        require_positive("radius_increment", self.radius_increment)
        require_positive("max_radius", self.max_radius)
        _require_int("circle_segments", self.circle_segments, 3)

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]":
        darkness = DarknessMap.from_pixels(pixels, width, height)
        lines: "list[LineSegment]" = []
        if darkness.is_empty:
            return lines

        grid_spacing = settings.line_spacing * 8
        max_radius = min(self.max_radius, settings.line_spacing * 10)

        center_y = grid_spacing / 2
        while center_y < darkness.height:
            center_x = grid_spacing / 2
            while center_x < darkness.width:
                radius = self.radius_increment
                while radius < max_radius:
                    self._draw_circle(
                        darkness, settings, center_x, center_y, radius, lines
                    )
                    radius += self.radius_increment
                center_x += grid_spacing
            center_y += grid_spacing

        return lines

    def _draw_circle(
        self,
        darkness: DarknessMap,
        settings: RenderSettings,
        center_x: float,
        center_y: float,
        radius: float,
        lines: "list[LineSegment]",
    ) -> None:
        angle_step = 2 * math.pi / self.circle_segments
        prev_point = None

        for i in range(self.circle_segments + 1):
            angle = i * angle_step
            x = center_x + radius * math.cos(angle)
            y = center_y + radius * math.sin(angle)

            if x < 0 or x >= darkness.width or y < 0 or y >= darkness.height:
                prev_point = None
                continue

            if darkness.at_subpixel(x, y) >= settings.darkness_threshold:
                point = (x, y)
                if prev_point is not None:
                    lines.append(LineSegment(prev_point, point))
                prev_point = point
            else:
                prev_point = None


def compute_gradient_field(darkness: DarknessMap) -> np.ndarray:
    """Sobel gradient of the darkness grid.

    Returns:
        Flat row-major array of shape (height * width, 2) holding (gx, gy)
        for every pixel; border pixels (and buffers smaller than 3x3) hold
        the zero vector.
    """
    height, width = darkness.height, darkness.width
    gx = np.zeros((height, width), dtype=np.float64)
    gy = np.zeros((height, width), dtype=np.float64)

    if width >= 3 and height >= 3:
        d = darkness.grid
        gx[1:-1, 1:-1] = (d[:-2, 2:] + 2 * d[1:-1, 2:] + d[2:, 2:]) - (
            d[:-2, :-2] + 2 * d[1:-1, :-2] + d[2:, :-2]
        )
        gy[1:-1, 1:-1] = (d[2:, :-2] + 2 * d[2:, 1:-1] + d[2:, 2:]) - (
            d[:-2, :-2] + 2 * d[:-2, 1:-1] + d[:-2, 2:]
        )

    return np.stack((gx.ravel(), gy.ravel()), axis=1)


@dataclass(frozen=True)
class FlowFieldRenderer:
    """Paths traced through the image's gradient field.

    Seeds sit on a grid line_spacing * 2 apart and are only used where the
    image is dark. From each seed the path steps step_size pixels at a time
    along the contour (perpendicular to the gradient) or, with
    follow_gradient, down the gradient itself. Tracing stops when the
    gradient vanishes, the path leaves the usable area or a light region,
    or settings.max_line_length has been drawn.
    """

    name: ClassVar[str] = "Flow Field"

    step_size: float = 1.0
    follow_gradient: bool = False

    def __post_init__(self):
        require_positive("step_size", self.step_size)
        _require_flag("follow_gradient", self.follow_gradient)

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]":
        darkness = DarknessMap.from_pixels(pixels, width, height)
        lines: "list[LineSegment]" = []
        if darkness.is_empty:
            return lines

        # AIDEV-NOTE: Derived once per call and dropped when we return
        gradients = compute_gradient_field(darkness)
        grid_spacing = settings.line_spacing * 2

        y = grid_spacing / 2
        while y < darkness.height:
            x = grid_spacing / 2
            while x < darkness.width:
                if darkness.at_subpixel(x, y) >= settings.darkness_threshold:
                    self._trace(darkness, gradients, x, y, settings, lines)
                x += grid_spacing
            y += grid_spacing

        return lines

    def _trace(
        self,
        darkness: DarknessMap,
        gradients: np.ndarray,
        x: float,
        y: float,
        settings: RenderSettings,
        lines: "list[LineSegment]",
    ) -> None:
        width, height = darkness.width, darkness.height
        total_length = 0.0

        while total_length < settings.max_line_length:
            gx, gy = self._gradient_at(gradients, x, y, width, height)
            magnitude = math.hypot(gx, gy)
            if magnitude < MIN_GRADIENT_MAGNITUDE:
                break

            if self.follow_gradient:
                dx, dy = gx / magnitude, gy / magnitude
            else:
                dx, dy = -gy / magnitude, gx / magnitude

            new_x = x + dx * self.step_size
            new_y = y + dy * self.step_size

            if new_x < 0 or new_x >= width - 1 or new_y < 0 or new_y >= height - 1:
                break
            if darkness.at_subpixel(new_x, new_y) < settings.darkness_threshold:
                break

            lines.append(LineSegment((x, y), (new_x, new_y)))
            total_length += math.hypot(new_x - x, new_y - y)
            x, y = new_x, new_y

    @staticmethod
    def _gradient_at(
        gradients: np.ndarray, x: float, y: float, width: int, height: int
    ) -> "tuple[float, float]":
        """Nearest-neighbour gradient lookup; zero on or past the border."""
        ix = int(x)
        iy = int(y)
        if ix < 0 or ix >= width - 1 or iy < 0 or iy >= height - 1:
            return 0.0, 0.0
        gx, gy = gradients[iy * width + ix]
        return float(gx), float(gy)


@dataclass(frozen=True)
class RandomWalkerRenderer:
    """Seeded random walkers that draw short strokes in dark areas.

    Each of settings.iterations walkers starts at a random position and
    takes steps_per_walker steps. A step draws with probability
    darkness ** (1 / darkness_influence) (and only where darkness meets the
    threshold); otherwise the walker either teleports (10%) or drifts
    without drawing.

    AIDEV-NOTE: The generator is created from settings.seed inside
    generate(), so identical inputs always give identical output and
    concurrent calls never share a random stream.
    """

    name: ClassVar[str] = "Random Walker"

    steps_per_walker: int = 100
    step_size: float = 2.0
    darkness_influence: float = 1.5

    def __post_init__(self):
        _require_int("steps_per_walker", self.steps_per_walker, 0)
        require_positive("step_size", self.step_size)
        require_positive("darkness_influence", self.darkness_influence)

    def generate(
        self,
        pixels,
        width: int,
        height: int,
        settings: RenderSettings,
    ) -> "list[LineSegment]":
        darkness = DarknessMap.from_pixels(pixels, width, height)
        lines: "list[LineSegment]" = []
        if darkness.is_empty:
            return lines

        rng = np.random.default_rng(settings.seed)
        width, height = darkness.width, darkness.height
        max_x, max_y = float(width - 1), float(height - 1)
        exponent = 1.0 / self.darkness_influence

        for _ in range(settings.iterations):
            x = rng.random() * width
            y = rng.random() * height

            for _ in range(self.steps_per_walker):
                local_darkness = darkness.at_subpixel(x, y)
                draw_probability = local_darkness**exponent

                if (
                    rng.random() < draw_probability
                    and local_darkness >= settings.darkness_threshold
                ):
                    angle = rng.random() * 2 * math.pi
                    new_x = clamp(x + math.cos(angle) * self.step_size, 0.0, max_x)
                    new_y = clamp(y + math.sin(angle) * self.step_size, 0.0, max_y)

                    # Pinned against a corner: move on without a zero-length stroke
                    if new_x != x or new_y != y:
                        lines.append(LineSegment((x, y), (new_x, new_y)))
                    x, y = new_x, new_y
                elif rng.random() < TELEPORT_PROBABILITY:
                    x = rng.random() * width
                    y = rng.random() * height
                else:
                    angle = rng.random() * 2 * math.pi
                    x = clamp(x + math.cos(angle) * self.step_size, 0.0, max_x)
                    y = clamp(y + math.sin(angle) * self.step_size, 0.0, max_y)

        return lines


RENDERERS = {
    RendererKind.ORTHOGONAL_HATCH: OrthogonalHatchRenderer,
    RendererKind.DIAGONAL_HATCH: DiagonalHatchRenderer,
    RendererKind.CONCENTRIC_CIRCLES: ConcentricCirclesRenderer,
    RendererKind.FLOW_FIELD: FlowFieldRenderer,
    RendererKind.RANDOM_WALKER: RandomWalkerRenderer,
}


def create_renderer(kind: "RendererKind | str", **options) -> LineRenderer:
    """Build the renderer for a kind, applying any option overrides.

    Raises:
        InvalidConfigurationError: For an unknown kind, unknown option
            names or out-of-range option values
    """
    renderer_cls = RENDERERS[RendererKind.parse(kind)]

    known = {field.name for field in fields(renderer_cls)}
    unknown = sorted(set(options) - known)
    if unknown:
        raise InvalidConfigurationError(
            "options",
            f"{renderer_cls.name} does not accept {', '.join(unknown)} "
            f"(accepted: {', '.join(sorted(known))})",
        )

    return renderer_cls(**options)
