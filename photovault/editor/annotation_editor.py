"""
Annotation editor session.

The AnnotationEditor owns everything one editing session needs: the drawing
surface, the renderer, the annotation history, the active tool, the current
style and the save/cancel hand-off to the caller. It has no window of its
own; EditorCanvas (or a test) feeds it pointer input.

Lifecycle:
    editor = AnnotationEditor(source, "photo.jpg", "image/jpeg", save, cancel)
    editor.open()                 # loads + scales the photo, first redraw
    editor.pointer_down(...)      # gestures -> commits -> redraws
    await editor.save()           # flatten, hand bytes to save(), close
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple

from PySide6.QtCore import QObject, QPointF, Signal

from photovault.editor.annotations import Annotation, AnnotationStyle, TextAnnotation
from photovault.editor.errors import (
    EditorError,
    EditorStateError,
    EncodingError,
    ImageLoadError,
    SaveError,
    SaveInProgressError,
)
from photovault.editor.geometry import PointerInput, normalize_pointer
from photovault.editor.history import AnnotationHistory, Snapshot
from photovault.editor.renderer import (
    ImageSource,
    Renderer,
    canvas_envelope,
    fit_to_envelope,
    load_source_image,
)
from photovault.editor.surface import CanvasSurface, mime_type_for
from photovault.editor.tools import GestureState, TextTool, ToolBase, ToolType, create_tool
from photovault.services.config_service import ConfigService
from photovault.services.logging_service import get_logger

SaveCallback = Callable[[bytes, str, str], Optional[Awaitable[Any]]]
CancelCallback = Callable[[], None]


@dataclass(frozen=True)
class ExportedImage:
    """Flattened canvas ready to hand to the caller."""
    data: bytes
    file_name: str
    mime_type: str


class AnnotationEditor(QObject):
    """
    One editing session over a single photo.

    Signals:
        changed: Emitted after every redraw (commit, undo, redo, preview).
        text_requested: Emitted with the canvas-space anchor when the text
            tool wants the user to type a label.
        error_occurred: Emitted with the message of every surfaced error.
        busy_changed: Emitted when a save starts or finishes.
        closed: Emitted once, after save succeeds or the session is cancelled.
    """

    changed = Signal()
    text_requested = Signal(QPointF)
    error_occurred = Signal(str)
    busy_changed = Signal(bool)
    closed = Signal()

    def __init__(
        self,
        source: ImageSource,
        file_name: str,
        mime_type: str,
        save_callback: SaveCallback,
        cancel_callback: CancelCallback,
        config: Optional[ConfigService] = None,
        surface: Optional[CanvasSurface] = None,
        viewport: Optional[Tuple[int, int]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)

        self._source = source
        self._file_name = file_name
        self._source_mime_type = mime_type
        self._save_callback = save_callback
        self._cancel_callback = cancel_callback
        self._config = config or ConfigService.defaults()
        self._surface = surface or CanvasSurface()
        self._viewport = viewport

        self._renderer: Optional[Renderer] = None
        self._history = AnnotationHistory(self._config.history_limit)
        self._tool: ToolBase = create_tool(ToolType.ARROW)
        self._style = AnnotationStyle(
            self._config.default_color,
            self._config.default_stroke_width,
            tuple(self._config.palette),
        )

        self._ready = False
        self._busy = False
        self._closed = False
        self._last_error: Optional[EditorError] = None

    # ─── Session ──────────────────────────────────────────────────────────

    def open(self) -> None:
        """
        Load the photo, size the canvas and draw it.

        Raises:
            ImageLoadError: the photo could not be loaded. The editor stays
                unusable and ignores input.
        """
        if self._ready:
            return
        self._ensure_not_closed()

        try:
            image = load_source_image(self._source)
        except ImageLoadError as e:
            self._logger.error(f"Could not load image for {self._file_name}: {e}")
            self._record_error(e)
            raise

        max_width, max_height = canvas_envelope(self._viewport, self._config)
        width, height = fit_to_envelope(image.width(), image.height(), max_width, max_height)
        self._surface.allocate(width, height)
        self._renderer = Renderer(self._surface, image)
        self._ready = True

        self._logger.info(
            f"Editor opened for {self._file_name}: "
            f"{image.width()}x{image.height()} -> {width}x{height}"
        )
        self.redraw()

    @property
    def is_ready(self) -> bool:
        return self._ready and not self._closed

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def last_error(self) -> Optional[EditorError]:
        return self._last_error

    @property
    def config(self) -> ConfigService:
        return self._config

    @property
    def surface(self) -> CanvasSurface:
        return self._surface

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def source_mime_type(self) -> str:
        return self._source_mime_type

    # ─── Document & History ───────────────────────────────────────────────

    @property
    def document(self) -> Snapshot:
        return self._history.document

    @property
    def undo_stack(self) -> Tuple[Snapshot, ...]:
        return self._history.undo_stack

    @property
    def redo_stack(self) -> Tuple[Snapshot, ...]:
        return self._history.redo_stack

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def commit(self, annotation: Annotation) -> None:
        """
        Append a finished annotation to the document and repaint.

        Raises:
            EditorStateError: no image loaded or session closed.
        """
        self._ensure_open()
        self._history.commit(annotation)
        self.redraw()

    def undo(self) -> bool:
        if not self.is_ready or self._tool.state == GestureState.DRAGGING:
            return False
        if self._history.undo():
            self.redraw()
            return True
        return False

    def redo(self) -> bool:
        if not self.is_ready or self._tool.state == GestureState.DRAGGING:
            return False
        if self._history.redo():
            self.redraw()
            return True
        return False

    def redraw(self) -> None:
        """Repaint base photo, document and gesture preview."""
        if self._renderer is None:
            return
        self._renderer.redraw(self._history.document, self._tool.preview())
        self.changed.emit()

    # ─── Tools & Style ────────────────────────────────────────────────────

    @property
    def tool_type(self) -> ToolType:
        return self._tool.tool_type

    @property
    def active_tool(self) -> ToolBase:
        return self._tool

    @property
    def gesture_state(self) -> GestureState:
        return self._tool.state

    def set_tool(self, tool_type: ToolType) -> None:
        """Switch tools; any gesture in progress is dropped."""
        self._tool.on_deactivate(self)
        self._tool = create_tool(tool_type)
        self._logger.debug(f"Tool set to {tool_type.name}")
        self.redraw()

    @property
    def style(self) -> AnnotationStyle:
        return self._style

    @property
    def palette(self) -> Tuple[str, ...]:
        return self._style.palette

    def set_color(self, color: str) -> None:
        """Pick a palette color for the next gesture. Raises ValueError."""
        self._style = self._style.with_color(color)

    def set_stroke_width(self, width: int) -> None:
        """Pick a stroke width in [1, 10] for the next gesture. Raises ValueError."""
        self._style = self._style.with_stroke_width(width)

    # ─── Pointer Input ────────────────────────────────────────────────────

    def to_canvas(self, event: PointerInput) -> QPointF:
        return normalize_pointer(event, self._surface.metrics())

    def pointer_down(self, event: PointerInput) -> None:
        if not self.is_ready or self._busy:
            return
        if self._tool.state == GestureState.DRAGGING:
            self._logger.debug("Ignoring pointer down during an active gesture")
            return
        self._tool.on_pointer_down(self.to_canvas(event), self)

    def pointer_move(self, event: PointerInput) -> None:
        if not self.is_ready or self._tool.state != GestureState.DRAGGING:
            return
        self._tool.on_pointer_move(self.to_canvas(event), self)

    def pointer_up(self, event: PointerInput) -> None:
        if not self.is_ready or self._tool.state != GestureState.DRAGGING:
            return
        self._tool.on_pointer_up(self.to_canvas(event), self)

    def pointer_leave(self) -> None:
        """Mouse left the canvas: abort a drag without committing."""
        self._abort_gesture()

    def pointer_cancel(self) -> None:
        """Touch sequence cancelled by the platform: abort a drag."""
        self._abort_gesture()

    def _abort_gesture(self) -> None:
        if not self.is_ready or self._tool.state != GestureState.DRAGGING:
            return
        self._tool.on_pointer_abort(self)

    # ─── Text Entry ───────────────────────────────────────────────────────

    @property
    def pending_text_anchor(self) -> Optional[QPointF]:
        if isinstance(self._tool, TextTool):
            return self._tool.anchor
        return None

    def submit_text(self, text: str) -> bool:
        """
        Commit a label at the pending anchor.

        Empty or whitespace-only text closes the prompt without committing.
        Returns True if a label was committed.
        """
        if not isinstance(self._tool, TextTool) or self._tool.state != GestureState.PROMPTING:
            return False

        anchor = self._tool.anchor
        style = self._tool.style
        self._tool.finish()

        if not (text or "").strip():
            self._logger.debug("Empty text submission ignored")
            return False

        self.commit(TextAnnotation(anchor, text, style.color, style.stroke_width))
        return True

    def cancel_text(self) -> None:
        """Close the text prompt without committing (Escape)."""
        if isinstance(self._tool, TextTool):
            self._tool.finish()

    # ─── Flatten / Export ─────────────────────────────────────────────────

    def export(self) -> ExportedImage:
        """
        Encode the canvas exactly as last rendered.

        Raises:
            EditorStateError: no image loaded, session closed, or a gesture
                or text prompt is in progress.
            EncodingError: the surface could not produce a buffer.
        """
        self._ensure_open()
        if self._tool.state != GestureState.IDLE:
            error = EditorStateError(
                f"Cannot export while the {self._tool.tool_type.name.lower()} "
                f"tool is {self._tool.state.name.lower()}"
            )
            self._record_error(error)
            raise error

        fmt = self._config.export_format
        try:
            mime_type = mime_type_for(fmt)
            data = self._surface.encode(fmt)
        except EncodingError as e:
            self._logger.error(f"Export of {self._file_name} failed: {e}")
            self._record_error(e)
            raise

        self._logger.debug(f"Exported {self._file_name}: {len(data)} bytes ({mime_type})")
        return ExportedImage(data, self._file_name, mime_type)

    async def save(self) -> ExportedImage:
        """
        Flatten the canvas and hand it to the caller's save callback.

        On success the session closes. On any failure the document is kept so
        the user can retry.

        Raises:
            SaveInProgressError: a save is already outstanding.
            EncodingError: see export().
            SaveError: the save callback failed; chained to its exception.
        """
        if self._busy:
            error = SaveInProgressError("A save is already in progress")
            self._record_error(error)
            raise error
        self._ensure_open()

        self._last_error = None
        self._set_busy(True)
        try:
            exported = self.export()
            try:
                result = self._save_callback(
                    exported.data, exported.file_name, exported.mime_type
                )
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                error = SaveError(str(e) or type(e).__name__)
                self._logger.error(f"Saving {self._file_name} failed: {error}")
                self._record_error(error)
                raise error from e
        finally:
            self._set_busy(False)

        self._logger.info(f"Saved {self._file_name} ({len(exported.data)} bytes)")
        self._close()
        return exported

    def cancel(self) -> None:
        """Discard the session and notify the caller."""
        if self._closed:
            return
        if self._busy:
            error = SaveInProgressError("Cannot cancel while a save is in progress")
            self._record_error(error)
            raise error

        self._logger.info(f"Editing of {self._file_name} cancelled")
        self._close()
        self._cancel_callback()

    # ─── Internals ────────────────────────────────────────────────────────

    def _ensure_not_closed(self) -> None:
        if self._closed:
            self._raise_state_error("Editor session is closed")

    def _ensure_open(self) -> None:
        self._ensure_not_closed()
        if not self._ready:
            self._raise_state_error("No image loaded")

    def _raise_state_error(self, message: str) -> None:
        error = EditorStateError(message)
        self._record_error(error)
        raise error

    def _set_busy(self, busy: bool) -> None:
        if self._busy != busy:
            self._busy = busy
            self.busy_changed.emit(busy)

    def _record_error(self, error: EditorError) -> None:
        self._last_error = error
        self.error_occurred.emit(str(error))

    def _close(self) -> None:
        # Dropping the tool discards any half-finished gesture or prompt
        self._tool = create_tool(ToolType.ARROW)
        self._history.clear()
        self._renderer = None
        self._closed = True
        self.closed.emit()
