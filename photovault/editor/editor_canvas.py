"""
Editor canvas widget.

Displays an AnnotationEditor's surface scaled to fit the widget and turns Qt
mouse, touch and keyboard events into editor input. The displayed size is
usually not the backing size; the editor normalizes coordinates using the
display rectangle kept on the surface.

Supports:
- Mouse and single-finger touch gestures
- Inline text prompt for the text tool (Enter submits, Escape cancels)
- Undo/Redo (Ctrl+Z, Ctrl+Shift+Z, Ctrl+Y)
"""

from typing import List, Optional

from PySide6.QtCore import QEvent, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QEventPoint, QKeyEvent, QMouseEvent, QPainter, QTouchEvent
from PySide6.QtWidgets import QLineEdit, QWidget

from photovault.editor.annotation_editor import AnnotationEditor
from photovault.editor.geometry import MouseInput, TouchInput, TouchPoint
from photovault.services.logging_service import get_logger

# Offset of the text prompt from the clicked point, in widget pixels
TEXT_PROMPT_OFFSET = 20


class TextPrompt(QLineEdit):
    """Single-line label entry; emits ``cancelled`` on Escape."""

    cancelled = Signal()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.cancelled.emit()
            return
        super().keyPressEvent(event)


class EditorCanvas(QWidget):
    """Input adapter and viewer for one AnnotationEditor."""

    def __init__(self, editor: AnnotationEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._editor = editor

        self._prompt = TextPrompt(self)
        self._prompt.setPlaceholderText("Enter text...")
        self._prompt.hide()
        self._prompt.returnPressed.connect(self._submit_prompt)
        self._prompt.cancelled.connect(self._cancel_prompt)

        editor.changed.connect(self.update)
        editor.text_requested.connect(self._open_prompt)
        editor.closed.connect(self._prompt.hide)

        self._setup_widget()

    def _setup_widget(self) -> None:
        """Configure widget properties."""
        self.setMouseTracking(False)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents)
        self.setMinimumSize(200, 200)
        self.setCursor(Qt.CursorShape.CrossCursor)

    @property
    def editor(self) -> AnnotationEditor:
        return self._editor

    # ─── Layout ───────────────────────────────────────────────────────────

    def _fit_rect(self) -> QRectF:
        """Largest rect with the canvas aspect ratio, centered in the widget."""
        backing_w, backing_h = self._editor.surface.backing_size
        if backing_w == 0 or backing_h == 0 or self.width() == 0 or self.height() == 0:
            return QRectF(0, 0, backing_w, backing_h)

        scale = min(self.width() / backing_w, self.height() / backing_h)
        width = backing_w * scale
        height = backing_h * scale
        return QRectF((self.width() - width) / 2, (self.height() - height) / 2, width, height)

    def _sync_display_rect(self) -> None:
        rect = self._fit_rect()
        self._editor.surface.set_display_rect(rect.left(), rect.top(), rect.width(), rect.height())

    def canvas_to_widget(self, pos: QPointF) -> QPointF:
        metrics = self._editor.surface.metrics()
        return QPointF(
            metrics.display_left + pos.x() / metrics.scale_x,
            metrics.display_top + pos.y() / metrics.scale_y,
        )

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._sync_display_rect()

    # ─── Rendering ────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(26, 26, 26))

        if self._editor.is_ready:
            self._sync_display_rect()
            painter.drawImage(self._editor.surface.display_rect, self._editor.surface.snapshot())
        else:
            painter.setPen(QColor(100, 100, 100))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image loaded")

        painter.end()

    # ─── Mouse ────────────────────────────────────────────────────────────

    @staticmethod
    def _mouse_input(event: QMouseEvent) -> MouseInput:
        pos = event.position()
        return MouseInput(pos.x(), pos.y())

    def _over_canvas(self, event: QMouseEvent) -> bool:
        """Pointer is over the displayed image, not the letterbox around it."""
        return self._editor.surface.display_rect.contains(event.position())

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._sync_display_rect()
            if self._over_canvas(event):
                self._editor.pointer_down(self._mouse_input(event))
            event.accept()
        else:
            super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if event.buttons() & Qt.MouseButton.LeftButton:
            # The implicit grab holds back Leave, so leaving the image is detected here
            if self._over_canvas(event):
                self._editor.pointer_move(self._mouse_input(event))
            else:
                self._editor.pointer_leave()
            event.accept()
        else:
            super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            if self._over_canvas(event):
                self._editor.pointer_up(self._mouse_input(event))
            else:
                self._editor.pointer_leave()
            event.accept()
        else:
            super().mouseReleaseEvent(event)

    def leaveEvent(self, event) -> None:
        self._editor.pointer_leave()
        super().leaveEvent(event)

    # ─── Touch ────────────────────────────────────────────────────────────

    @staticmethod
    def _touch_input(event: QTouchEvent) -> TouchInput:
        active: List[TouchPoint] = []
        changed: List[TouchPoint] = []
        for point in event.points():
            pos = point.position()
            touch = TouchPoint(pos.x(), pos.y())
            if point.state() == QEventPoint.State.Released:
                changed.append(touch)
            else:
                active.append(touch)
        return TouchInput(tuple(active), tuple(changed))

    def event(self, event: QEvent) -> bool:
        kind = event.type()
        if kind == QEvent.Type.TouchBegin:
            self._sync_display_rect()
            self._editor.pointer_down(self._touch_input(event))
        elif kind == QEvent.Type.TouchUpdate:
            self._editor.pointer_move(self._touch_input(event))
        elif kind == QEvent.Type.TouchEnd:
            self._editor.pointer_up(self._touch_input(event))
        elif kind == QEvent.Type.TouchCancel:
            self._editor.pointer_cancel()
        else:
            return super().event(event)
        event.accept()
        return True

    # ─── Keyboard ─────────────────────────────────────────────────────────

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        modifiers = event.modifiers()

        if modifiers & Qt.KeyboardModifier.ControlModifier:
            if key == Qt.Key.Key_Z:
                if modifiers & Qt.KeyboardModifier.ShiftModifier:
                    self._editor.redo()
                else:
                    self._editor.undo()
                return
            if key == Qt.Key.Key_Y:
                self._editor.redo()
                return

        super().keyPressEvent(event)

    # ─── Text Prompt ──────────────────────────────────────────────────────

    @property
    def text_prompt(self) -> TextPrompt:
        return self._prompt

    def _open_prompt(self, anchor: QPointF) -> None:
        pos = self.canvas_to_widget(anchor)
        self._logger.debug(f"Text prompt opened at canvas ({anchor.x():.0f}, {anchor.y():.0f})")
        self._prompt.clear()
        self._prompt.move(int(pos.x()) + TEXT_PROMPT_OFFSET, int(pos.y()) + TEXT_PROMPT_OFFSET)
        self._prompt.show()
        self._prompt.setFocus()

    def _submit_prompt(self) -> None:
        self._editor.submit_text(self._prompt.text())
        self._close_prompt()

    def _cancel_prompt(self) -> None:
        self._editor.cancel_text()
        self._close_prompt()

    def _close_prompt(self) -> None:
        self._prompt.clear()
        self._prompt.hide()
        self.setFocus()
