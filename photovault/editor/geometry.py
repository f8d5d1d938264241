"""
Pointer input normalization.

Converts raw mouse and touch coordinates (display/CSS pixels relative to the
page) into canvas-space points, compensating for the difference between the
canvas backing resolution and its displayed size.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

from PySide6.QtCore import QPointF


@dataclass(frozen=True)
class CanvasMetrics:
    """Backing resolution of a canvas and the rectangle it is displayed in."""
    backing_width: int
    backing_height: int
    display_left: float = 0.0
    display_top: float = 0.0
    display_width: float = 0.0
    display_height: float = 0.0

    @property
    def scale_x(self) -> float:
        if self.display_width <= 0:
            return 1.0
        return self.backing_width / self.display_width

    @property
    def scale_y(self) -> float:
        if self.display_height <= 0:
            return 1.0
        return self.backing_height / self.display_height


@dataclass(frozen=True)
class MouseInput:
    """A mouse event position in display coordinates."""
    client_x: float
    client_y: float


@dataclass(frozen=True)
class TouchPoint:
    client_x: float
    client_y: float


@dataclass(frozen=True)
class TouchInput:
    """
    A touch event.

    ``touches`` are the points still in contact; ``changed_touches`` the
    points that changed in this event (the lifted finger on touch end).
    """
    touches: Tuple[TouchPoint, ...] = field(default_factory=tuple)
    changed_touches: Tuple[TouchPoint, ...] = field(default_factory=tuple)


PointerInput = Union[MouseInput, TouchInput]


def distance(a: QPointF, b: QPointF) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b.x() - a.x(), b.y() - a.y())


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def _first_touch(event: TouchInput):
    if event.touches:
        return event.touches[0]
    if event.changed_touches:
        return event.changed_touches[0]
    return None


def normalize_pointer(event: PointerInput, metrics: CanvasMetrics) -> QPointF:
    """
    Convert a pointer event into a canvas-space point.

    Mouse positions are scaled but not clamped. Touch positions use the first
    active touch (falling back to the first changed touch on touch end), are
    scaled, then clamped to the backing bounds. A touch event carrying no
    touch point maps to the origin.
    """
    if isinstance(event, MouseInput):
        return QPointF(
            (event.client_x - metrics.display_left) * metrics.scale_x,
            (event.client_y - metrics.display_top) * metrics.scale_y,
        )

    if isinstance(event, TouchInput):
        touch = _first_touch(event)
        if touch is None:
            return QPointF(0, 0)

        x = (touch.client_x - metrics.display_left) * metrics.scale_x
        y = (touch.client_y - metrics.display_top) * metrics.scale_y
        return QPointF(
            _clamp(x, 0, metrics.backing_width),
            _clamp(y, 0, metrics.backing_height),
        )

    raise TypeError(f"Unsupported pointer input: {type(event).__name__}")


def touch_input(points: Sequence[Tuple[float, float]], changed: Sequence[Tuple[float, float]] = ()) -> TouchInput:
    """Build a TouchInput from plain (x, y) pairs."""
    return TouchInput(
        touches=tuple(TouchPoint(x, y) for x, y in points),
        changed_touches=tuple(TouchPoint(x, y) for x, y in changed),
    )
