"""
Tests for pure annotation utility functions.

These tests validate individual pure functions that have no side effects.
"""

import numpy as np
import pytest

from inkpage.core.annotation import (
    PageCanvasState,
    ResourceNotReady,
    ShapeType,
    Style,
    VectorObject,
)
from inkpage.core.annotation.utils import (
    bounding_box,
    compute_object_statistics,
    distance_to_polyline,
    hit_test,
    parse_color,
    render_state,
    topmost_object_at,
    validate_dimensions,
)


class TestGeometry:
    def test_distance_to_polyline(self):
        points = [(0, 0), (10, 0), (10, 10)]

        assert distance_to_polyline(points, 5, 0) == pytest.approx(0.0)
        assert distance_to_polyline(points, 5, 3) == pytest.approx(3.0)
        assert distance_to_polyline(points, 13, 5) == pytest.approx(3.0)
        # Beyond the end, distance to the endpoint
        assert distance_to_polyline(points, 10, 14) == pytest.approx(4.0)

    def test_distance_degenerate(self):
        assert distance_to_polyline([(3, 4)], 0, 0) == pytest.approx(5.0)
        assert distance_to_polyline([(1, 1), (1, 1)], 1, 3) == pytest.approx(2.0)
        assert distance_to_polyline([], 0, 0) == float("inf")

    def test_bounding_box(self):
        assert bounding_box([(3, 4), (-1, 10), (5, 0)]) == (-1.0, 0.0, 5.0, 10.0)
        with pytest.raises(ValueError):
            bounding_box([])

    def test_hit_test_stroke_uses_width(self):
        thin = VectorObject("a", ShapeType.PATH, ((0, 0), (100, 0)), Style("red", 2))
        thick = VectorObject("b", ShapeType.PATH, ((0, 0), (100, 0)), Style("yellow", 20))

        assert not hit_test(thin, 50, 8, tolerance=4)
        assert hit_test(thick, 50, 8, tolerance=4)

    def test_hit_test_ellipse_bbox(self):
        ellipse = VectorObject("e", ShapeType.ELLIPSE, (50, 50, 20, 10), Style("red", 1))
        assert hit_test(ellipse, 50, 50, tolerance=0)
        assert hit_test(ellipse, 69, 59, tolerance=0)
        assert not hit_test(ellipse, 50, 70, tolerance=0)

    def test_topmost_object_at(self):
        state = PageCanvasState(
            objects=[
                VectorObject("low", ShapeType.RECT, (0, 0, 10, 10), Style("red", 1)),
                VectorObject("high", ShapeType.RECT, (0, 0, 10, 10), Style("red", 1)),
            ]
        )
        assert topmost_object_at(state, 5, 5).id == "high"
        assert topmost_object_at(state, 50, 50) is None


class TestValidation:
    def test_validate_dimensions(self):
        assert validate_dimensions(600.4, 799.6) == (600, 800)

    @pytest.mark.parametrize("dims", [(None, None), (0, 10), (10, -5)])
    def test_validate_dimensions_not_ready(self, dims):
        with pytest.raises(ResourceNotReady):
            validate_dimensions(*dims)

    @pytest.mark.parametrize(
        "color,expected",
        [
            ("red", (255, 0, 0)),
            ("Yellow", (255, 255, 0)),
            ("#FF0000", (255, 0, 0)),
            ("#0f0", (0, 255, 0)),
            ("rgba(255, 255, 0, 0.3)", (255, 255, 0)),
            ("rgb(1,2,3)", (1, 2, 3)),
            ("purple", (128, 0, 128)),
            ("Gray", (128, 128, 128)),
        ],
    )
    def test_parse_color(self, color, expected):
        assert parse_color(color) == expected

    @pytest.mark.parametrize("color", ["", "#12", "#gggggg", "chartreuse-ish"])
    def test_parse_color_invalid(self, color):
        with pytest.raises(ValueError):
            parse_color(color)


class TestRendering:
    def test_render_empty(self):
        image = render_state(PageCanvasState(), 40, 30)
        assert image.shape == (30, 40, 3)
        assert image.dtype == np.uint8
        assert (image == 255).all()

    def test_render_opaque_stroke(self):
        state = PageCanvasState(
            objects=[VectorObject("a", ShapeType.LINE, (0, 10, 39, 10), Style("red", 3))]
        )
        image = render_state(state, 40, 20)
        np.testing.assert_array_equal(image[10, 20], [255, 0, 0])

    def test_render_blends_opacity(self):
        state = PageCanvasState(
            objects=[
                VectorObject(
                    "h", ShapeType.LINE, (0, 10, 39, 10), Style("yellow", 5, opacity=0.3)
                )
            ]
        )
        image = render_state(state, 40, 20)
        r, g, b = image[10, 20]
        assert r == 255 and g == 255
        # 30% yellow over white keeps most of the blue channel
        assert 170 <= b <= 185

    def test_render_unknown_color_in_black(self, caplog):
        odd = Style("blanchedalmond-ish", 3)
        state = PageCanvasState(
            objects=[VectorObject("u", ShapeType.LINE, (0, 10, 39, 10), odd)]
        )
        image = render_state(state, 40, 20)
        np.testing.assert_array_equal(image[10, 20], [0, 0, 0])
        assert "blanchedalmond-ish" in caplog.text

    def test_render_on_background(self):
        background = np.zeros((20, 40, 3), dtype=np.uint8)
        image = render_state(PageCanvasState(), 40, 20, background=background)
        assert (image == 0).all()
        with pytest.raises(ValueError):
            render_state(PageCanvasState(), 40, 21, background=background)

    def test_render_all_shapes(self, three_object_state):
        ellipse = VectorObject("e", ShapeType.ELLIPSE, (60, 60, 10, 5), Style("blue", 1))
        dot = VectorObject("d", ShapeType.PATH, ((5.0, 5.0),), Style("black", 4))
        three_object_state.objects.extend([ellipse, dot])

        image = render_state(three_object_state, 200, 200)
        assert (image != 255).any()


def test_compute_object_statistics(three_object_state):
    stats = compute_object_statistics(three_object_state)
    assert stats == {
        "num_total": 3,
        "num_path": 2,
        "num_rect": 1,
        "num_line": 0,
        "num_ellipse": 0,
    }
