"""
Canvas renderer.

Loads the base photo, scales it once into the working resolution and repaints
the whole canvas on request:

1. Clear the backing store
2. Draw the (pre-scaled) base photo
3. Draw committed annotations in document order (z-order)
4. Draw the in-progress gesture preview on top
"""

import base64
import binascii
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QImage, QPainter

from photovault.editor.errors import ImageLoadError
from photovault.editor.surface import CanvasSurface
from photovault.services.config_service import ConfigService
from photovault.services.logging_service import get_logger

ImageSource = Union[QImage, bytes, bytearray, str, Path]

logger = get_logger(__name__)


def _decode(data: bytes, label: str) -> QImage:
    image = QImage()
    if not image.loadFromData(data) or image.isNull():
        raise ImageLoadError(f"Could not decode image data from {label}")
    return image


def _decode_data_url(url: str) -> QImage:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URL")
    try:
        if header.endswith(";base64"):
            data = base64.b64decode(payload, validate=True)
        else:
            data = unquote(payload).encode("latin-1")
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Malformed data URL: {e}") from e
    return _decode(data, "data URL")


def load_source_image(source: ImageSource) -> QImage:
    """
    Resolve a source image reference to pixel data.

    Accepts a QImage, raw encoded bytes, a ``data:`` URL, a ``file://`` URL or
    a filesystem path. Remote URLs are not fetched.
    """
    if isinstance(source, QImage):
        if source.isNull():
            raise ImageLoadError("Source image is empty")
        return source.copy()

    if isinstance(source, (bytes, bytearray)):
        return _decode(bytes(source), "bytes")

    if isinstance(source, Path):
        return _load_file(source)

    if isinstance(source, str):
        if source.startswith("data:"):
            return _decode_data_url(source)

        parsed = urlparse(source)
        if parsed.scheme == "file":
            return _load_file(Path(unquote(parsed.path)))
        if parsed.scheme in ("http", "https"):
            raise ImageLoadError(f"Remote image references are not fetched: {source}")
        return _load_file(Path(source))

    raise ImageLoadError(f"Unsupported image source type: {type(source).__name__}")


def _load_file(path: Path) -> QImage:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Could not read image file {path}: {e}") from e
    return _decode(data, str(path))


def fit_to_envelope(
    width: int,
    height: int,
    max_width: float,
    max_height: float,
) -> Tuple[int, int]:
    """
    Shrink (width, height) into the envelope preserving aspect ratio.

    The width limit is applied first, then the height limit. Images already
    inside the envelope keep their size.
    """
    w, h = float(width), float(height)
    if w > max_width:
        h = h * max_width / w
        w = max_width
    if h > max_height:
        w = w * max_height / h
        h = max_height
    return (max(1, int(w)), max(1, int(h)))


def canvas_envelope(
    viewport: Optional[Tuple[int, int]],
    config: ConfigService,
) -> Tuple[float, float]:
    """Maximum working resolution for a given viewport size."""
    if viewport is not None:
        viewport_width, viewport_height = viewport
        if viewport_width < config.compact_breakpoint:
            return (
                min(viewport_width - config.compact_margin, config.compact_canvas_max_width),
                min(viewport_height * config.compact_height_ratio, config.compact_canvas_max_height),
            )
    return (config.canvas_max_width, config.canvas_max_height)


class Renderer:
    """Repaints a CanvasSurface from the base image and annotation list."""

    def __init__(self, surface: CanvasSurface, base_image: QImage) -> None:
        if base_image.isNull():
            raise ImageLoadError("Base image is empty")
        self._surface = surface
        width, height = surface.backing_size
        if (base_image.width(), base_image.height()) == (width, height):
            self._base = base_image.copy()
        else:
            logger.debug(
                f"Scaling base image {base_image.width()}x{base_image.height()} "
                f"to {width}x{height}"
            )
            self._base = base_image.scaled(
                width,
                height,
                Qt.AspectRatioMode.IgnoreAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )

    @property
    def base_image(self) -> QImage:
        return self._base

    def redraw(self, annotations: Iterable, preview=None) -> None:
        """Full repaint; idempotent for unchanged inputs."""
        painter = self._surface.begin_paint()
        try:
            width, height = self._surface.backing_size
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
            painter.fillRect(QRectF(0, 0, width, height), Qt.GlobalColor.transparent)
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)

            painter.drawImage(QRectF(0, 0, width, height), self._base)

            for annotation in annotations:
                annotation.paint(painter)

            if preview is not None:
                preview.paint(painter)
        finally:
            painter.end()
