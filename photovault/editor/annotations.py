"""
Annotation models for the PhotoVault editor.

Each annotation is an immutable value committed to the document. Annotations
know how to paint themselves on a QPainter; the Renderer decides when.

Annotation Types:
- ArrowAnnotation: Line with a two-stroke arrowhead
- FreehandAnnotation: Semi-transparent marker stroke
- TextAnnotation: Filled text label
"""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Sequence, Tuple, Union

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPainterPath, QPen

DEFAULT_PALETTE: Tuple[str, ...] = (
    "#00ff00",
    "#00ffff",
    "#ffff00",
    "#ff00ff",
    "#ff0000",
    "#ffffff",
)

MIN_STROKE_WIDTH = 1
MAX_STROKE_WIDTH = 10
DEFAULT_STROKE_WIDTH = 3

ARROW_HEAD_LENGTH = 15.0
ARROW_HEAD_ANGLE = math.pi / 6

MARKER_OPACITY = 0.6
MARKER_WIDTH_FACTOR = 2
TEXT_SIZE_FACTOR = 5


class AnnotationType(Enum):
    """Enum for annotation types."""
    ARROW = auto()
    FREEHAND = auto()
    TEXT = auto()


def validate_color(color: str, palette: Sequence[str] = DEFAULT_PALETTE) -> str:
    """Return the normalized palette color or raise ValueError."""
    normalized = str(color).strip().lower()
    if normalized not in palette:
        raise ValueError(f"Color {color!r} is not in the palette {list(palette)}")
    return normalized


def validate_stroke_width(width: int) -> int:
    if isinstance(width, bool) or not isinstance(width, int):
        raise ValueError(f"Stroke width must be an integer, got {width!r}")
    if not MIN_STROKE_WIDTH <= width <= MAX_STROKE_WIDTH:
        raise ValueError(
            f"Stroke width must be in [{MIN_STROKE_WIDTH}, {MAX_STROKE_WIDTH}], got {width}"
        )
    return width


@dataclass(frozen=True)
class AnnotationStyle:
    """
    Color and width picked before a gesture starts.

    Shared by all annotation types; text uses the width as its size factor.
    """
    color: str = DEFAULT_PALETTE[0]
    stroke_width: int = DEFAULT_STROKE_WIDTH
    palette: Tuple[str, ...] = field(default=DEFAULT_PALETTE, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "palette", tuple(c.lower() for c in self.palette))
        object.__setattr__(self, "color", validate_color(self.color, self.palette))
        validate_stroke_width(self.stroke_width)

    def with_color(self, color: str) -> "AnnotationStyle":
        return AnnotationStyle(color, self.stroke_width, self.palette)

    def with_stroke_width(self, width: int) -> "AnnotationStyle":
        return AnnotationStyle(self.color, width, self.palette)


def _stroke_pen(color: str, width: float) -> QPen:
    pen = QPen(QColor(color))
    pen.setWidthF(width)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
    return pen


@dataclass(frozen=True)
class ArrowAnnotation:
    """Arrow from ``start`` to ``end``; the head sits at ``end``."""
    start: QPointF
    end: QPointF
    color: str
    stroke_width: int
    head_length: float = ARROW_HEAD_LENGTH

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", QPointF(self.start))
        object.__setattr__(self, "end", QPointF(self.end))

    @property
    def annotation_type(self) -> AnnotationType:
        return AnnotationType.ARROW

    def head_points(self) -> Tuple[QPointF, QPointF]:
        """End points of the two arrowhead strokes, at +/-30 degrees off the shaft."""
        angle = math.atan2(self.end.y() - self.start.y(), self.end.x() - self.start.x())
        x2, y2 = self.end.x(), self.end.y()
        return (
            QPointF(
                x2 - self.head_length * math.cos(angle - ARROW_HEAD_ANGLE),
                y2 - self.head_length * math.sin(angle - ARROW_HEAD_ANGLE),
            ),
            QPointF(
                x2 - self.head_length * math.cos(angle + ARROW_HEAD_ANGLE),
                y2 - self.head_length * math.sin(angle + ARROW_HEAD_ANGLE),
            ),
        )

    def paint(self, painter: QPainter) -> None:
        left, right = self.head_points()

        path = QPainterPath()
        path.moveTo(self.start)
        path.lineTo(self.end)
        path.lineTo(left)
        path.moveTo(self.end)
        path.lineTo(right)

        painter.setPen(_stroke_pen(self.color, self.stroke_width))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(path)


@dataclass(frozen=True)
class FreehandAnnotation:
    """
    Marker stroke through ``points``.

    Drawn as one rounded polyline at 60% opacity and twice the nominal width.
    """
    points: Tuple[QPointF, ...]
    color: str
    stroke_width: int

    def __post_init__(self) -> None:
        points = tuple(QPointF(p) for p in self.points)
        if len(points) < 2:
            raise ValueError("A freehand stroke needs at least two points")
        object.__setattr__(self, "points", points)

    @property
    def annotation_type(self) -> AnnotationType:
        return AnnotationType.FREEHAND

    def paint(self, painter: QPainter) -> None:
        paint_marker_path(painter, self.points, self.color, self.stroke_width)


def paint_marker_path(
    painter: QPainter,
    points: Sequence[QPointF],
    color: str,
    stroke_width: int,
) -> None:
    """Paint a marker polyline; also used for the unsimplified live preview."""
    if len(points) < 2:
        return

    path = QPainterPath()
    path.moveTo(points[0])
    for point in points[1:]:
        path.lineTo(point)

    painter.save()
    painter.setOpacity(MARKER_OPACITY)
    painter.setPen(_stroke_pen(color, stroke_width * MARKER_WIDTH_FACTOR))
    painter.setBrush(Qt.BrushStyle.NoBrush)
    painter.drawPath(path)
    painter.restore()


@dataclass(frozen=True)
class TextAnnotation:
    """Text label whose baseline starts at ``anchor``."""
    anchor: QPointF
    text: str
    color: str
    font_size_factor: int

    def __post_init__(self) -> None:
        text = (self.text or "").strip()
        if not text:
            raise ValueError("A text label needs non-empty text")
        object.__setattr__(self, "anchor", QPointF(self.anchor))
        object.__setattr__(self, "text", text)

    @property
    def annotation_type(self) -> AnnotationType:
        return AnnotationType.TEXT

    @property
    def font_pixel_size(self) -> int:
        return self.font_size_factor * TEXT_SIZE_FACTOR

    def font(self) -> QFont:
        font = QFont("monospace")
        font.setStyleHint(QFont.StyleHint.Monospace)
        font.setPixelSize(self.font_pixel_size)
        return font

    def paint(self, painter: QPainter) -> None:
        painter.setFont(self.font())
        painter.setPen(QColor(self.color))
        painter.drawText(self.anchor, self.text)


Annotation = Union[ArrowAnnotation, FreehandAnnotation, TextAnnotation]
