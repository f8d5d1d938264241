import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from photovault.editor.annotation_editor import AnnotationEditor


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def make_image(width: int = 200, height: int = 100, color: str = "#0000ff") -> QImage:
    image = QImage(width, height, QImage.Format.Format_RGB32)
    image.fill(QColor(color))
    return image


def png_bytes(image: QImage) -> bytes:
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data.data())


class SaveRecorder:
    """Collects save/cancel callback invocations."""

    def __init__(self, fail_with: Exception = None) -> None:
        self.saved = []
        self.cancelled = 0
        self.fail_with = fail_with

    async def save(self, data: bytes, file_name: str, mime_type: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append((data, file_name, mime_type))

    def cancel(self) -> None:
        self.cancelled += 1


@pytest.fixture
def recorder():
    return SaveRecorder()


@pytest.fixture
def editor(recorder):
    ed = AnnotationEditor(
        make_image(),
        "photo.jpg",
        "image/jpeg",
        recorder.save,
        recorder.cancel,
    )
    ed.open()
    return ed
