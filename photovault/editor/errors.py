"""
Error types raised by the annotation editor.

Every error the editor surfaces is also stored in its ``last_error`` slot.
"""


class EditorError(Exception):
    """Base class for annotation editor errors."""


class ImageLoadError(EditorError):
    """The base photo could not be loaded; the session cannot start."""


class EncodingError(EditorError):
    """The canvas could not be serialized to an image buffer."""


class SaveError(EditorError):
    """The caller's save callback failed. Carries the callback's message."""


class EditorStateError(EditorError):
    """Operation not allowed in the editor's current state."""


class SaveInProgressError(EditorStateError):
    """A save is already outstanding."""
