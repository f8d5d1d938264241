import base64

import pytest
from PySide6.QtCore import QPointF
from PySide6.QtGui import QImage

from photovault.editor.annotations import ArrowAnnotation, FreehandAnnotation, TextAnnotation
from photovault.editor.errors import ImageLoadError
from photovault.editor.renderer import (
    Renderer,
    canvas_envelope,
    fit_to_envelope,
    load_source_image,
)
from photovault.editor.surface import CanvasSurface
from photovault.services.config_service import ConfigService

from conftest import make_image, png_bytes


@pytest.fixture
def surface():
    s = CanvasSurface()
    s.allocate(200, 100)
    return s


# ─── Envelope ─────────────────────────────────────────────────────────────


def test_fit_to_envelope_keeps_small_images():
    assert fit_to_envelope(640, 480, 1200, 800) == (640, 480)


def test_fit_to_envelope_width_then_height():
    assert fit_to_envelope(2400, 1600, 1200, 800) == (1200, 800)
    assert fit_to_envelope(1000, 2000, 1200, 800) == (400, 800)
    assert fit_to_envelope(3000, 1000, 1200, 800) == (1200, 400)


def test_fit_to_envelope_never_collapses():
    assert fit_to_envelope(5000, 1, 100, 100) == (100, 1)


def test_desktop_envelope():
    config = ConfigService.defaults()
    assert canvas_envelope(None, config) == (1200, 800)
    assert canvas_envelope((1440, 900), config) == (1200, 800)


def test_compact_envelope_for_narrow_viewports():
    config = ConfigService.defaults()
    assert canvas_envelope((390, 844), config) == (358, pytest.approx(337.6))
    assert canvas_envelope((767, 2000), config) == (735, 600)


# ─── Loading ──────────────────────────────────────────────────────────────


def test_load_from_bytes_and_data_url():
    data = png_bytes(make_image(30, 20))
    assert load_source_image(data).size().width() == 30

    url = "data:image/png;base64," + base64.b64encode(data).decode("ascii")
    assert load_source_image(url).size().height() == 20


def test_load_from_path_and_file_url(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes(make_image(12, 34)))

    assert load_source_image(str(path)).width() == 12
    assert load_source_image(path).height() == 34
    assert load_source_image(path.as_uri()).width() == 12


def test_load_from_qimage_copies():
    image = make_image(5, 5)
    loaded = load_source_image(image)
    assert loaded == image
    assert loaded is not image


@pytest.mark.parametrize("source", [
    b"not an image",
    "data:image/png;base64,@@@",
    "data:no-comma",
    "https://example.com/photo.jpg",
    "/definitely/missing/photo.png",
    QImage(),
    12345,
])
def test_load_failures_raise_image_load_error(source):
    with pytest.raises(ImageLoadError):
        load_source_image(source)


# ─── Redraw ───────────────────────────────────────────────────────────────


def test_base_image_is_scaled_once_to_surface(surface):
    renderer = Renderer(surface, make_image(400, 200, "#ff0000"))
    assert renderer.base_image.size().width() == 200

    renderer.redraw([])
    assert surface.pixel(199, 99).red() == 255


def test_redraw_is_idempotent(surface):
    renderer = Renderer(surface, make_image())
    annotations = [
        ArrowAnnotation(QPointF(10, 10), QPointF(150, 80), "#00ff00", 3),
        FreehandAnnotation((QPointF(20, 80), QPointF(60, 20), QPointF(120, 70)), "#ffff00", 4),
        TextAnnotation(QPointF(30, 50), "note", "#ffffff", 3),
    ]

    renderer.redraw(annotations)
    first = surface.snapshot()
    renderer.redraw(annotations)

    assert surface.snapshot() == first


def test_arrow_shaft_is_drawn_in_its_color(surface):
    renderer = Renderer(surface, make_image())
    renderer.redraw([ArrowAnnotation(QPointF(10, 50), QPointF(190, 50), "#00ff00", 3)])

    pixel = surface.pixel(100, 50)
    assert (pixel.red(), pixel.green(), pixel.blue()) == (0, 255, 0)
    assert surface.pixel(100, 10).blue() == 255


def test_marker_is_semi_transparent(surface):
    renderer = Renderer(surface, make_image(color="#0000ff"))
    stroke = FreehandAnnotation((QPointF(10, 50), QPointF(190, 50)), "#00ff00", 3)
    renderer.redraw([stroke])

    pixel = surface.pixel(100, 50)
    # 60% green over blue
    assert 140 <= pixel.green() <= 165
    assert 90 <= pixel.blue() <= 115


def test_later_annotations_draw_on_top(surface):
    renderer = Renderer(surface, make_image())
    under = ArrowAnnotation(QPointF(10, 50), QPointF(190, 50), "#00ff00", 5)
    over = ArrowAnnotation(QPointF(10, 50), QPointF(190, 50), "#ff0000", 5)

    renderer.redraw([under, over])
    assert surface.pixel(100, 50).red() == 255

    renderer.redraw([over, under])
    assert surface.pixel(100, 50).green() == 255


def test_preview_is_drawn_without_touching_the_document(surface):
    renderer = Renderer(surface, make_image())
    document = []
    renderer.redraw(document, preview=ArrowAnnotation(QPointF(10, 50), QPointF(190, 50), "#ff0000", 3))

    assert surface.pixel(100, 50).red() == 255
    assert document == []

