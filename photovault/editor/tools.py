"""
Tool framework and implementations for the annotation editor.

Each tool interprets pointer gestures for one annotation type and keeps only
the gesture state that makes sense for it, so e.g. a text tool can never be
mid-drag.

Tools:
- SelectTool: Reserved; ignores all input
- ArrowTool: Drag to draw an arrow
- MarkerTool: Drag to draw a freehand marker stroke
- TextTool: Click to place a text label
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, List, Optional, Sequence

from PySide6.QtCore import QPointF
from PySide6.QtGui import QPainter

from photovault.editor.annotations import (
    ARROW_HEAD_LENGTH,
    AnnotationStyle,
    ArrowAnnotation,
    FreehandAnnotation,
    paint_marker_path,
)
from photovault.editor.geometry import distance
from photovault.editor.simplify import simplify_path
from photovault.services.logging_service import get_logger

if TYPE_CHECKING:
    from photovault.editor.annotation_editor import AnnotationEditor


class ToolType(Enum):
    """Enum for tool types."""
    SELECT = auto()
    ARROW = auto()
    TEXT = auto()
    MARKER = auto()


class GestureState(Enum):
    """What the active tool is doing right now."""
    IDLE = auto()
    DRAGGING = auto()
    PROMPTING = auto()


@dataclass(frozen=True)
class MarkerPreview:
    """Raw, unsimplified marker path drawn while the pointer is down."""
    points: Sequence[QPointF]
    color: str
    stroke_width: int

    def paint(self, painter: QPainter) -> None:
        paint_marker_path(painter, self.points, self.color, self.stroke_width)


class ToolBase(ABC):
    """
    Base class for all tools.

    The editor forwards canvas-space pointer positions; tools commit finished
    annotations back through ``editor.commit``.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    @property
    @abstractmethod
    def tool_type(self) -> ToolType:
        """Return the type of this tool."""

    @property
    def state(self) -> GestureState:
        return GestureState.IDLE

    @abstractmethod
    def on_pointer_down(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        """Handle pointer press."""

    def on_pointer_move(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        """Handle pointer move."""

    def on_pointer_up(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        """Handle pointer release."""

    def on_pointer_abort(self, editor: "AnnotationEditor") -> None:
        """Pointer left the canvas or the touch was cancelled."""

    def on_deactivate(self, editor: "AnnotationEditor") -> None:
        """Called when another tool is selected."""
        self.on_pointer_abort(editor)

    def preview(self):
        """Uncommitted annotation to draw over the document, if any."""
        return None


class SelectTool(ToolBase):
    """Selection is reserved for a later revision; it never changes the document."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.SELECT

    def on_pointer_down(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        pass


class ArrowTool(ToolBase):
    """
    Drag from tail to head.

    Release commits an arrow even when it has zero length.
    """

    def __init__(self) -> None:
        super().__init__()
        self._start: Optional[QPointF] = None
        self._current: Optional[QPointF] = None
        self._style: Optional[AnnotationStyle] = None
        self._head_length: float = ARROW_HEAD_LENGTH

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ARROW

    @property
    def state(self) -> GestureState:
        return GestureState.DRAGGING if self._start is not None else GestureState.IDLE

    def _arrow_to(self, end: QPointF) -> ArrowAnnotation:
        return ArrowAnnotation(
            self._start,
            end,
            self._style.color,
            self._style.stroke_width,
            self._head_length,
        )

    def on_pointer_down(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        self._start = QPointF(pos)
        self._current = QPointF(pos)
        self._style = editor.style
        self._head_length = editor.config.arrow_head_length

    def on_pointer_move(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        if self._start is None:
            return
        self._current = QPointF(pos)
        editor.redraw()

    def on_pointer_up(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        if self._start is None:
            return
        arrow = self._arrow_to(pos)
        self._reset()
        editor.commit(arrow)

    def on_pointer_abort(self, editor: "AnnotationEditor") -> None:
        if self._start is None:
            return
        self._reset()
        self._logger.debug("Arrow gesture aborted")
        editor.redraw()

    def preview(self) -> Optional[ArrowAnnotation]:
        if self._start is None or self._current is None:
            return None
        return ArrowAnnotation(
            self._start, self._current, self._style.color, self._style.stroke_width,
            self._head_length,
        )

    def _reset(self) -> None:
        self._start = None
        self._current = None
        self._style = None
        self._head_length = ARROW_HEAD_LENGTH


class MarkerTool(ToolBase):
    """
    Freehand marker.

    Points closer than ``min_point_distance`` to the last recorded point are
    skipped while dragging. On release the path is simplified and committed
    only if at least two points remain.
    """

    def __init__(self) -> None:
        super().__init__()
        self._path: Optional[List[QPointF]] = None
        self._style: Optional[AnnotationStyle] = None

    @property
    def tool_type(self) -> ToolType:
        return ToolType.MARKER

    @property
    def state(self) -> GestureState:
        return GestureState.DRAGGING if self._path is not None else GestureState.IDLE

    @property
    def path(self) -> List[QPointF]:
        return list(self._path or [])

    def on_pointer_down(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        self._path = [QPointF(pos)]
        self._style = editor.style

    def on_pointer_move(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        if self._path is None:
            return
        if self._path and distance(self._path[-1], pos) <= editor.config.min_point_distance:
            return
        self._path.append(QPointF(pos))
        editor.redraw()

    def on_pointer_up(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        if self._path is None:
            return
        simplified = simplify_path(self._path, editor.config.simplify_tolerance)
        style = self._style
        raw_count = len(self._path)
        self._reset()

        if len(simplified) < 2:
            self._logger.debug(f"Discarded degenerate marker stroke ({raw_count} raw points)")
            editor.redraw()
            return

        editor.commit(FreehandAnnotation(tuple(simplified), style.color, style.stroke_width))

    def on_pointer_abort(self, editor: "AnnotationEditor") -> None:
        if self._path is None:
            return
        self._reset()
        self._logger.debug("Marker gesture aborted")
        editor.redraw()

    def preview(self) -> Optional[MarkerPreview]:
        if not self._path or len(self._path) < 2:
            return None
        return MarkerPreview(tuple(self._path), self._style.color, self._style.stroke_width)

    def _reset(self) -> None:
        self._path = None
        self._style = None


class TextTool(ToolBase):
    """
    Click to place a label.

    A click opens a text prompt anchored at the click point; the editor
    commits the label when non-empty text is submitted.
    """

    def __init__(self) -> None:
        super().__init__()
        self._anchor: Optional[QPointF] = None
        self._style: Optional[AnnotationStyle] = None

    @property
    def tool_type(self) -> ToolType:
        return ToolType.TEXT

    @property
    def state(self) -> GestureState:
        return GestureState.PROMPTING if self._anchor is not None else GestureState.IDLE

    @property
    def anchor(self) -> Optional[QPointF]:
        return QPointF(self._anchor) if self._anchor is not None else None

    @property
    def style(self) -> Optional[AnnotationStyle]:
        return self._style

    def on_pointer_down(self, pos: QPointF, editor: "AnnotationEditor") -> None:
        self._anchor = QPointF(pos)
        self._style = editor.style
        editor.text_requested.emit(QPointF(pos))

    def finish(self) -> None:
        """Close the prompt (after submit or cancel)."""
        self._anchor = None
        self._style = None

    def on_deactivate(self, editor: "AnnotationEditor") -> None:
        if self._anchor is not None:
            self._logger.debug("Text prompt closed by tool change")
        self.finish()


def create_tool(tool_type: ToolType) -> ToolBase:
    """
    Factory function to create tools by type.

    Raises:
        ValueError: for an unknown tool type.
    """
    tool_classes = {
        ToolType.SELECT: SelectTool,
        ToolType.ARROW: ArrowTool,
        ToolType.TEXT: TextTool,
        ToolType.MARKER: MarkerTool,
    }

    if tool_type not in tool_classes:
        raise ValueError(f"Unknown tool type: {tool_type}")

    return tool_classes[tool_type]()
