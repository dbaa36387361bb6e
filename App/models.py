"""Data models and constants for the line plot renderer."""

import math
from dataclasses import dataclass, replace as dataclass_replace
from enum import Enum
from pathlib import Path

# AIDEV-NOTE: Defaults are shared by the CLI and ConfigManager - keep in sync
DEFAULT_LINE_SPACING = 4.0  # px between scan lines / seeds
DEFAULT_DARKNESS_THRESHOLD = 0.5  # 0 = white, 1 = black
DEFAULT_SEED = 42
DEFAULT_MAX_LINE_LENGTH = 50.0  # px
DEFAULT_ITERATIONS = 1000

# Configuration file path
CONFIG_FILE = Path.home() / ".lineplot_config.json"


class InvalidConfigurationError(ValueError):
    """Raised when settings, options or a request are out of range.

    The offending field name is kept on ``field`` so callers (CLI, UI)
    can point at the right control.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class RendererKind(Enum):
    """Image-to-line rendering strategies.

    AIDEV-NOTE: Each kind maps to one renderer class in
    line_rendering.rendering (see RENDERERS there).
    """

    ORTHOGONAL_HATCH = "orthogonal_hatch"  # Horizontal + vertical runs
    DIAGONAL_HATCH = "diagonal_hatch"  # 45° / 135° runs
    CONCENTRIC_CIRCLES = "concentric_circles"  # Ring arcs broken in light areas
    FLOW_FIELD = "flow_field"  # Paths traced along the Sobel gradient field
    RANDOM_WALKER = "random_walker"  # Seeded walkers that draw in dark areas

    @classmethod
    def parse(cls, value: "RendererKind | str") -> "RendererKind":
        """Resolve an enum member from itself or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise InvalidConfigurationError(
                "renderer", f"unknown renderer {value!r} (choose from {choices})"
            ) from None


class ExportFormat(Enum):
    """Plain-text output formats understood by plotter tooling."""

    CSV = "csv"
    JSON = "json"
    TEXT = "txt"
    POLYLINES = "polylines"

    @classmethod
    def parse(cls, value: "ExportFormat | str") -> "ExportFormat":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().lstrip(".")
        if normalized == "text":
            normalized = "txt"
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(fmt.value for fmt in cls)
            raise InvalidConfigurationError(
                "format", f"unknown export format {value!r} (choose from {choices})"
            ) from None

    @classmethod
    def from_path(cls, path: "str | Path") -> "ExportFormat":
        """Pick the export format from a file suffix."""
        suffix = Path(path).suffix.lower()
        if suffix in _SUFFIX_FORMATS:
            return _SUFFIX_FORMATS[suffix]
        raise InvalidConfigurationError(
            "format", f"cannot infer export format from suffix {suffix!r}"
        )


_SUFFIX_FORMATS = {
    ".csv": ExportFormat.CSV,
    ".json": ExportFormat.JSON,
    ".txt": ExportFormat.TEXT,
    ".plt": ExportFormat.POLYLINES,
    ".poly": ExportFormat.POLYLINES,
}


def _require_number(field: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigurationError(field, f"expected a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidConfigurationError(field, f"must be finite, got {value!r}")
    return float(value)


def _require_int(field: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(field, f"expected an integer, got {value!r}")
    return value


def require_positive(field: str, value) -> float:
    """Validate a finite number > 0 (shared with renderer options)."""
    number = _require_number(field, value)
    if number <= 0:
        raise InvalidConfigurationError(field, f"must be > 0, got {value!r}")
    return number


@dataclass(frozen=True)
class RenderSettings:
    """Configuration shared by every renderer for a single render call.

    AIDEV-NOTE: Validated on construction so renderers can assume sane
    values. Use replace() to derive a modified copy.
    """

    line_spacing: float = DEFAULT_LINE_SPACING  # px between scan lines/seeds
    darkness_threshold: float = DEFAULT_DARKNESS_THRESHOLD  # draw when darkness >= this
    seed: int = DEFAULT_SEED  # random stream for stochastic renderers
    max_line_length: float = DEFAULT_MAX_LINE_LENGTH  # cap for traced paths (px)
    iterations: int = DEFAULT_ITERATIONS  # walkers/samples for stochastic renderers

    def __post_init__(self):
        require_positive("line_spacing", self.line_spacing)

        threshold = _require_number("darkness_threshold", self.darkness_threshold)
        if not 0.0 <= threshold <= 1.0:
            raise InvalidConfigurationError(
                "darkness_threshold", f"must be within [0, 1], got {threshold!r}"
            )

        if _require_int("seed", self.seed) < 0:
            raise InvalidConfigurationError(
                "seed", f"must be non-negative, got {self.seed!r}"
            )

        require_positive("max_line_length", self.max_line_length)

        if _require_int("iterations", self.iterations) <= 0:
            raise InvalidConfigurationError(
                "iterations", f"must be > 0, got {self.iterations!r}"
            )

    def replace(self, **changes) -> "RenderSettings":
        """Return a validated copy with the given fields changed."""
        return dataclass_replace(self, **changes)


@dataclass(frozen=True)
class LineSegment:
    """A single pen stroke between two points in pixel coordinates."""

    start: "tuple[float, float]"
    end: "tuple[float, float]"

    @classmethod
    def from_coords(cls, x1: float, y1: float, x2: float, y2: float) -> "LineSegment":
        return cls((float(x1), float(y1)), (float(x2), float(y2)))

    @property
    def x1(self) -> float:
        return self.start[0]

    @property
    def y1(self) -> float:
        return self.start[1]

    @property
    def x2(self) -> float:
        return self.end[0]

    @property
    def y2(self) -> float:
        return self.end[1]

    def length(self) -> float:
        """Euclidean length of the segment."""
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    def __str__(self) -> str:
        return (
            f"({self.start[0]:.2f},{self.start[1]:.2f}) -> "
            f"({self.end[0]:.2f},{self.end[1]:.2f})"
        )


@dataclass(frozen=True)
class Polyline:
    """Chain of segments drawn without lifting the pen.

    AIDEV-NOTE: Built only by line_rendering.paths.extract_polylines, which
    guarantees each segment starts where the previous one ended (within
    tolerance).
    """

    segments: "tuple[LineSegment, ...]"

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def points(self) -> "list[tuple[float, float]]":
        """Pen positions: first start point followed by every end point."""
        if not self.segments:
            return []
        return [self.segments[0].start] + [segment.end for segment in self.segments]

    def length(self) -> float:
        return sum(segment.length() for segment in self.segments)
