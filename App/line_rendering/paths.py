"""Chain raw line segments into polylines to cut down pen lifts.

AIDEV-NOTE: Chaining is greedy and first-match-wins: the first unused
segment (in input order) starts a polyline, which is then extended by the
first unused segment whose start lies within CONNECT_TOLERANCE of the
polyline's end. Start points are bucketed on a grid so each lookup only
inspects nearby segments; input that already connects in order chains in
roughly linear time. No global reordering happens here.
"""

import math
from typing import Iterable, Sequence

from models import LineSegment, Polyline

# Max distance (px) between an end point and the next start point
CONNECT_TOLERANCE = 0.1


def calculate_total_length(lines: "Iterable[LineSegment]") -> float:
    """Sum of the Euclidean lengths of all segments."""
    total = 0.0
    for line in lines:
        total += line.length()
    return total


def points_are_close(
    p1: "tuple[float, float]",
    p2: "tuple[float, float]",
    tolerance: float = CONNECT_TOLERANCE,
) -> bool:
    """Check whether two points are within tolerance (squared distance)."""
    dx = p1[0] - p2[0]
    dy = p1[1] - p2[1]
    return dx * dx + dy * dy < tolerance * tolerance


def _cell(point: "tuple[float, float]", size: float) -> "tuple[int, int] | None":
    x, y = point[0] / size, point[1] / size
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return math.floor(x), math.floor(y)


def extract_polylines(
    lines: "Sequence[LineSegment]",
    tolerance: float = CONNECT_TOLERANCE,
) -> "list[Polyline]":
    """Group connected segments into polylines.

    Args:
        lines: Segments in renderer order
        tolerance: Max gap (px) between a polyline end and the next start

    Returns:
        Polylines in the order their first segment appears. Segments that
        connect to nothing become single-segment polylines; every input
        segment appears in exactly one polyline.
    """
    if tolerance <= 0:
        return [Polyline((line,)) for line in lines]

    # Unused segment indices bucketed by the cell of their start point,
    # ascending within each bucket. Cells are twice the tolerance, so any
    # start closer than tolerance lies in the same or a neighbouring cell
    # even after float rounding at cell borders.
    cell_size = 2 * tolerance
    buckets: "dict[tuple[int, int], list[int]]" = {}
    for index, line in enumerate(lines):
        key = _cell(line.start, cell_size)
        if key is not None:
            buckets.setdefault(key, []).append(index)

    def take(index: int) -> None:
        key = _cell(lines[index].start, cell_size)
        if key is not None:
            buckets[key].remove(index)

    def next_connected(end: "tuple[float, float]") -> "int | None":
        """Lowest unused index whose start is within tolerance of end."""
        key = _cell(end, cell_size)
        if key is None:
            return None
        best = None
        cx, cy = key
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for candidate in buckets.get((cx + dx, cy + dy), ()):
                    if best is not None and candidate > best:
                        break
                    if points_are_close(end, lines[candidate].start, tolerance):
                        best = candidate
                        break
        return best

    polylines = []
    used = [False] * len(lines)

    for i, line in enumerate(lines):
        if used[i]:
            continue

        chain = [line]
        used[i] = True
        take(i)

        # Extend forward until nothing connects
        j = next_connected(line.end)
        while j is not None:
            chain.append(lines[j])
            used[j] = True
            take(j)
            j = next_connected(lines[j].end)

        polylines.append(Polyline(tuple(chain)))

    return polylines


def count_points(polylines: "Iterable[Polyline]") -> int:
    """Count pen positions visited when drawing the polylines."""
    return sum(len(polyline.points) for polyline in polylines)
