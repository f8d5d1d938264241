import pytest
from PySide6.QtCore import QPointF

from photovault.editor.annotations import ArrowAnnotation, TextAnnotation
from photovault.editor.history import AnnotationHistory


def arrow(n: int = 0) -> ArrowAnnotation:
    return ArrowAnnotation(QPointF(n, n), QPointF(n + 10, n + 10), "#00ff00", 3)


def label(text: str = "hi") -> TextAnnotation:
    return TextAnnotation(QPointF(5, 5), text, "#ffffff", 2)


def test_commit_appends_and_snapshots_previous_document():
    history = AnnotationHistory()
    first, second = arrow(1), arrow(2)

    history.commit(first)
    history.commit(second)

    assert history.document == (first, second)
    assert history.undo_stack == ((), (first,))
    assert history.redo_stack == ()


def test_undo_then_redo_restores_document():
    history = AnnotationHistory()
    for n in range(4):
        history.commit(arrow(n))
    before = history.document

    assert history.undo()
    assert history.redo()
    assert history.document == before


def test_undo_and_redo_on_empty_stacks_are_noops():
    history = AnnotationHistory()
    assert not history.undo()
    assert not history.redo()
    assert history.document == ()


def test_commit_invalidates_redo():
    history = AnnotationHistory()
    history.commit(arrow(1))
    history.undo()
    assert history.can_redo

    history.commit(arrow(2))
    assert not history.can_redo
    assert history.redo_stack == ()


def test_two_undos_move_both_states_to_redo_in_reverse_commit_order():
    history = AnnotationHistory()
    a, t = arrow(), label()
    history.commit(a)
    history.commit(t)

    history.undo()
    history.undo()

    assert history.document == ()
    assert history.redo_stack == ((a, t), (a,))


def test_undo_stack_is_bounded():
    history = AnnotationHistory(limit=3)
    for n in range(5):
        history.commit(arrow(n))

    assert len(history.undo_stack) == 3
    assert history.undo()
    assert history.undo()
    assert history.undo()
    assert not history.undo()
    assert len(history.document) == 2


def test_clear_discards_everything():
    history = AnnotationHistory()
    history.commit(arrow())
    history.commit(arrow(3))
    history.undo()

    history.clear()

    assert history.document == ()
    assert not history.can_undo
    assert not history.can_redo


def test_invalid_limit():
    with pytest.raises(ValueError):
        AnnotationHistory(limit=0)
