"""Distance-threshold simplification of freehand paths."""

from typing import List, Sequence

from PySide6.QtCore import QPointF

from photovault.editor.geometry import distance


def simplify_path(points: Sequence[QPointF], tolerance: float) -> List[QPointF]:
    """
    Drop interior points that sit too close to their neighbours.

    The first and last points are always kept. An interior point is kept when
    it is farther than ``tolerance`` from the previously kept point or from
    the next raw point. Paths of two points or fewer come back unchanged.
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")

    if len(points) <= 2:
        return list(points)

    simplified = [points[0]]
    for i in range(1, len(points) - 1):
        current = points[i]
        if (distance(simplified[-1], current) > tolerance
                or distance(current, points[i + 1]) > tolerance):
            simplified.append(current)

    simplified.append(points[-1])
    return simplified
