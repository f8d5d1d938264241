import pytest
from PySide6.QtCore import QPoint, QPointF, Qt
from PySide6.QtTest import QTest

from photovault.editor.editor_canvas import EditorCanvas
from photovault.editor.tools import GestureState, ToolType


@pytest.fixture
def canvas(editor):
    # 200x100 surface shown at twice its size
    widget = EditorCanvas(editor)
    widget.resize(400, 200)
    widget.show()
    yield widget
    widget.close()
    widget.deleteLater()


def click(widget, pos: QPoint) -> None:
    QTest.mousePress(widget, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier, pos)
    QTest.mouseRelease(widget, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier, pos)


def test_display_rect_follows_widget_size(canvas, editor):
    rect = editor.surface.display_rect
    assert (rect.width(), rect.height()) == (400, 200)
    assert editor.surface.metrics().scale_x == 0.5


def test_mouse_drag_is_mapped_to_canvas_pixels(canvas, editor):
    QTest.mousePress(canvas, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier,
                     QPoint(20, 100))
    QTest.mouseRelease(canvas, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier,
                       QPoint(380, 100))

    (arrow,) = editor.document
    assert arrow.start == QPointF(10, 50)
    assert arrow.end == QPointF(190, 50)


@pytest.fixture
def square_canvas(editor):
    # The 400x200 image sits between y=100 and y=300
    widget = EditorCanvas(editor)
    widget.resize(400, 400)
    widget.show()
    yield widget
    widget.close()
    widget.deleteLater()


def test_release_in_letterbox_aborts_the_drag(square_canvas, editor):
    canvas = square_canvas
    QTest.mousePress(canvas, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier,
                     QPoint(200, 200))
    assert editor.gesture_state == GestureState.DRAGGING

    QTest.mouseMove(canvas, QPoint(200, 390))
    QTest.mouseRelease(canvas, Qt.MouseButton.LeftButton, Qt.KeyboardModifier.NoModifier,
                       QPoint(200, 390))

    assert editor.document == ()
    assert editor.gesture_state == GestureState.IDLE


def test_press_in_letterbox_starts_nothing(square_canvas, editor):
    click(square_canvas, QPoint(200, 20))

    assert editor.document == ()


def test_right_button_is_ignored(canvas, editor):
    QTest.mousePress(canvas, Qt.MouseButton.RightButton, Qt.KeyboardModifier.NoModifier,
                     QPoint(20, 100))
    assert editor.gesture_state == GestureState.IDLE


def test_undo_and_redo_shortcuts(canvas, editor):
    click(canvas, QPoint(50, 50))
    assert len(editor.document) == 1

    QTest.keyClick(canvas, Qt.Key.Key_Z, Qt.KeyboardModifier.ControlModifier)
    assert editor.document == ()

    QTest.keyClick(canvas, Qt.Key.Key_Y, Qt.KeyboardModifier.ControlModifier)
    assert len(editor.document) == 1

    QTest.keyClick(canvas, Qt.Key.Key_Z, Qt.KeyboardModifier.ControlModifier)
    QTest.keyClick(
        canvas,
        Qt.Key.Key_Z,
        Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.ShiftModifier,
    )
    assert len(editor.document) == 1


def test_text_prompt_submits_on_return(canvas, editor):
    editor.set_tool(ToolType.TEXT)
    click(canvas, QPoint(100, 60))

    prompt = canvas.text_prompt
    assert not prompt.isHidden()
    assert editor.pending_text_anchor == QPointF(50, 30)

    QTest.keyClicks(prompt, "label")
    QTest.keyClick(prompt, Qt.Key.Key_Return)

    assert prompt.isHidden()
    assert [a.text for a in editor.document] == ["label"]
    assert editor.document[0].anchor == QPointF(50, 30)


def test_text_prompt_cancels_on_escape(canvas, editor):
    editor.set_tool(ToolType.TEXT)
    click(canvas, QPoint(100, 60))

    prompt = canvas.text_prompt
    QTest.keyClicks(prompt, "discard me")
    QTest.keyClick(prompt, Qt.Key.Key_Escape)

    assert prompt.isHidden()
    assert editor.gesture_state == GestureState.IDLE
    assert editor.document == ()


def test_prompt_hides_when_session_closes(canvas, editor):
    editor.set_tool(ToolType.TEXT)
    click(canvas, QPoint(100, 60))

    editor.cancel()

    assert canvas.text_prompt.isHidden()
