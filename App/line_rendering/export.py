"""Serialize line segments to plain-text plotter formats.

AIDEV-NOTE: The lines_to_* / polylines_to_text functions are pure and
return strings; the export_* functions write those strings to a path or an
open text stream. OSError from the filesystem propagates unchanged.
All coordinates are written with three decimals.
"""

import logging
import os
from typing import IO, Sequence, Union

from models import ExportFormat, LineSegment, Polyline

from .paths import calculate_total_length, extract_polylines

logger = logging.getLogger(__name__)

Destination = Union[str, "os.PathLike[str]", IO[str]]

CSV_HEADER = "x1,y1,x2,y2"


def lines_to_csv(lines: "Sequence[LineSegment]") -> str:
    """One "x1,y1,x2,y2" row per segment, after a header row."""
    rows = [CSV_HEADER]
    for line in lines:
        rows.append(f"{line.x1:.3f},{line.y1:.3f},{line.x2:.3f},{line.y2:.3f}")
    return "\n".join(rows) + "\n"


def lines_to_json(lines: "Sequence[LineSegment]") -> str:
    """JSON object with a "lines" array plus "count" and "totalLength".

    AIDEV-NOTE: Built by hand rather than with json.dumps so numbers keep a
    fixed three-decimal form (5.000, not 5.0) that plotter scripts diff on.
    """
    out = ["{", '  "lines": [']
    last = len(lines) - 1
    for i, line in enumerate(lines):
        comma = "," if i < last else ""
        out.append(
            f'    {{"x1": {line.x1:.3f}, "y1": {line.y1:.3f}, '
            f'"x2": {line.x2:.3f}, "y2": {line.y2:.3f}}}{comma}'
        )
    out.append("  ],")
    out.append(f'  "count": {len(lines)},')
    out.append(f'  "totalLength": {calculate_total_length(lines):.3f}')
    out.append("}")
    return "\n".join(out) + "\n"


def lines_to_text(lines: "Sequence[LineSegment]") -> str:
    """One "x1 y1 x2 y2" row per segment."""
    return "".join(
        f"{line.x1:.3f} {line.y1:.3f} {line.x2:.3f} {line.y2:.3f}\n"
        for line in lines
    )


def polylines_to_text(polylines: "Sequence[Polyline]") -> str:
    """One "x y" row per pen position, blank line after each polyline."""
    out = []
    for polyline in polylines:
        points = polyline.points
        if not points:
            continue
        out.extend(f"{x:.3f} {y:.3f}\n" for x, y in points)
        out.append("\n")
    return "".join(out)


def _write(content: str, destination: Destination) -> None:
    if hasattr(destination, "write"):
        destination.write(content)
        return
    with open(destination, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)


def export_csv(lines: "Sequence[LineSegment]", destination: Destination) -> None:
    _write(lines_to_csv(lines), destination)


def export_json(lines: "Sequence[LineSegment]", destination: Destination) -> None:
    _write(lines_to_json(lines), destination)


def export_text(lines: "Sequence[LineSegment]", destination: Destination) -> None:
    _write(lines_to_text(lines), destination)


def export_polylines(lines: "Sequence[LineSegment]", destination: Destination) -> None:
    """Chain the segments and write them in polyline format."""
    _write(polylines_to_text(extract_polylines(lines)), destination)


_EXPORTERS = {
    ExportFormat.CSV: export_csv,
    ExportFormat.JSON: export_json,
    ExportFormat.TEXT: export_text,
    ExportFormat.POLYLINES: export_polylines,
}


def export_lines(
    lines: "Sequence[LineSegment]",
    destination: Destination,
    fmt: "ExportFormat | str | None" = None,
) -> ExportFormat:
    """Write lines in the requested format.

    Args:
        lines: Segments to write
        destination: File path or open text stream
        fmt: Export format; inferred from the path suffix when omitted

    Returns:
        The format actually written

    Raises:
        InvalidConfigurationError: If the format is unknown or cannot be
            inferred
        OSError: If the destination cannot be written
    """
    if fmt is None:
        if hasattr(destination, "write"):
            export_format = ExportFormat.CSV
        else:
            export_format = ExportFormat.from_path(os.fspath(destination))
    else:
        export_format = ExportFormat.parse(fmt)

    logger.debug(
        "Exporting %d lines as %s to %s", len(lines), export_format.value, destination
    )
    _EXPORTERS[export_format](lines, destination)
    return export_format
