"""
Annotation document and linear undo/redo history.

The document is a tuple of annotations in z-order. Every commit snapshots the
previous document onto the undo stack; undo and redo swap whole snapshots.
"""

from typing import List, Tuple

from photovault.editor.annotations import Annotation
from photovault.services.logging_service import get_logger

Snapshot = Tuple[Annotation, ...]

DEFAULT_HISTORY_LIMIT = 50


class AnnotationHistory:
    """
    Committed annotations plus undo/redo snapshot stacks.

    The undo stack is bounded; once ``limit`` snapshots are held the oldest
    one is dropped on the next commit.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"History limit must be >= 1, got {limit}")
        self._logger = get_logger(__name__)
        self._limit = limit
        self._document: Snapshot = ()
        self._undo_stack: List[Snapshot] = []
        self._redo_stack: List[Snapshot] = []

    @property
    def document(self) -> Snapshot:
        return self._document

    @property
    def undo_stack(self) -> Tuple[Snapshot, ...]:
        return tuple(self._undo_stack)

    @property
    def redo_stack(self) -> Tuple[Snapshot, ...]:
        return tuple(self._redo_stack)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def __len__(self) -> int:
        return len(self._document)

    def commit(self, annotation: Annotation) -> None:
        """Append an annotation; invalidates redo."""
        self._undo_stack.append(self._document)
        if len(self._undo_stack) > self._limit:
            del self._undo_stack[0]
        self._document = self._document + (annotation,)
        self._redo_stack.clear()
        self._logger.debug(
            f"Committed {annotation.annotation_type.name} "
            f"(document size {len(self._document)})"
        )

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        self._redo_stack.append(self._document)
        self._document = self._undo_stack.pop()
        self._logger.debug(f"Undo (document size {len(self._document)})")
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        self._undo_stack.append(self._document)
        self._document = self._redo_stack.pop()
        self._logger.debug(f"Redo (document size {len(self._document)})")
        return True

    def clear(self) -> None:
        """Discard the document and both stacks."""
        self._document = ()
        self._undo_stack.clear()
        self._redo_stack.clear()
