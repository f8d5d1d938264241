"""
Off-screen drawing surface.

The surface owns the canvas backing store (a QImage) and knows the rectangle
the canvas is displayed in, which may be scaled by the hosting widget. The
editor core only talks to this class, so it runs without any window.
"""

from typing import Dict, Optional, Tuple

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter

from photovault.editor.errors import EncodingError
from photovault.editor.geometry import CanvasMetrics

EXPORT_MIME_TYPES: Dict[str, str] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


def mime_type_for(fmt: str) -> str:
    try:
        return EXPORT_MIME_TYPES[fmt.upper()]
    except KeyError:
        raise EncodingError(f"Unsupported export format: {fmt}") from None


class CanvasSurface:
    """QImage-backed canvas with a separately tracked display rectangle."""

    def __init__(self) -> None:
        self._image: Optional[QImage] = None
        self._display_rect: Optional[QRectF] = None

    def allocate(self, width: int, height: int) -> None:
        """(Re)create a transparent backing store of the given size."""
        if width < 1 or height < 1:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self._image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        self._image.fill(Qt.GlobalColor.transparent)

    @property
    def is_allocated(self) -> bool:
        return self._image is not None and not self._image.isNull()

    @property
    def backing_size(self) -> Tuple[int, int]:
        if not self.is_allocated:
            return (0, 0)
        return (self._image.width(), self._image.height())

    @property
    def display_rect(self) -> QRectF:
        """Where the canvas is shown; defaults to 1:1 at the origin."""
        if self._display_rect is not None:
            return QRectF(self._display_rect)
        width, height = self.backing_size
        return QRectF(0, 0, width, height)

    def set_display_rect(self, left: float, top: float, width: float, height: float) -> None:
        self._display_rect = QRectF(left, top, width, height)

    def metrics(self) -> CanvasMetrics:
        width, height = self.backing_size
        rect = self.display_rect
        return CanvasMetrics(
            backing_width=width,
            backing_height=height,
            display_left=rect.left(),
            display_top=rect.top(),
            display_width=rect.width(),
            display_height=rect.height(),
        )

    def begin_paint(self) -> QPainter:
        """Open a painter on the backing store. Caller must call end()."""
        if not self.is_allocated:
            raise RuntimeError("Surface has not been allocated")
        painter = QPainter(self._image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        return painter

    def pixel(self, x: int, y: int) -> QColor:
        if not self.is_allocated:
            raise RuntimeError("Surface has not been allocated")
        return self._image.pixelColor(x, y)

    def snapshot(self) -> QImage:
        """Copy of the backing store as last rendered."""
        if not self.is_allocated:
            return QImage()
        return self._image.copy()

    def encode(self, fmt: str = "PNG") -> bytes:
        """
        Serialize the backing store.

        Raises EncodingError when nothing has been allocated, the format is
        unknown, or Qt refuses to write the image.
        """
        mime_type_for(fmt)
        if not self.is_allocated:
            raise EncodingError("Canvas has no pixel data to encode")

        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        ok = self._image.save(buffer, fmt.upper())
        buffer.close()

        if not ok or data.isEmpty():
            raise EncodingError(f"Could not encode canvas as {fmt.upper()}")
        return bytes(data.data())
