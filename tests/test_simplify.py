import math

import pytest
from PySide6.QtCore import QPointF

from photovault.editor.simplify import simplify_path


def zigzag(count: int):
    return [QPointF(i * 0.7, math.sin(i) * 3) for i in range(count)]


def test_short_paths_are_returned_unchanged():
    assert simplify_path([], 2) == []
    assert simplify_path([QPointF(1, 1)], 2) == [QPointF(1, 1)]
    pair = [QPointF(0, 0), QPointF(0.1, 0)]
    assert simplify_path(pair, 2) == pair


def test_near_straight_line_one_pixel_apart():
    points = [QPointF(i, 0) for i in range(5)]
    simplified = simplify_path(points, 2)

    assert 2 <= len(simplified) < 5
    assert simplified == [QPointF(0, 0), QPointF(3, 0), QPointF(4, 0)]


@pytest.mark.parametrize("tolerance", [0, 0.5, 1, 2, 5, 100])
def test_endpoints_are_preserved_and_length_never_grows(tolerance):
    points = zigzag(40)
    simplified = simplify_path(points, tolerance)

    assert simplified[0] == points[0]
    assert simplified[-1] == points[-1]
    assert len(simplified) <= len(points)


def test_sparse_points_are_all_kept():
    points = [QPointF(0, 0), QPointF(10, 0), QPointF(20, 5), QPointF(30, 0)]
    assert simplify_path(points, 2) == points


def test_order_is_preserved():
    points = zigzag(25)
    simplified = simplify_path(points, 1.5)
    indices = [points.index(p) for p in simplified]
    assert indices == sorted(indices)


def test_negative_tolerance_is_rejected():
    with pytest.raises(ValueError):
        simplify_path([QPointF(0, 0), QPointF(1, 1), QPointF(2, 2)], -1)
