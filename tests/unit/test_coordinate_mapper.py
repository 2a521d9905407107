import pytest

from retoucher.domain.errors import EditorValidationError
from retoucher.domain.services.coordinate_mapper import CoordinateMapper, Point


@pytest.fixture()
def mapper() -> CoordinateMapper:
    m = CoordinateMapper(2000, 1000)
    m.sync(1000, 500, offset=Point(10, 20), device_pixel_ratio=2)
    return m


def test_scale_is_natural_over_display(mapper):
    assert mapper.scale_x == 2.0
    assert mapper.scale_y == 2.0
    assert mapper.canvas_size == (1000, 500)
    assert mapper.device_pixel_ratio == 2.0


def test_pointer_maps_through_canvas_to_native(mapper):
    canvas = mapper.pointer_to_canvas(Point(110, 70))
    assert canvas == Point(100, 50)
    assert mapper.canvas_to_native(canvas) == (200, 100)
    assert mapper.pointer_to_native(Point(110, 70)) == (200, 100)


def test_native_coordinates_round_half_up(mapper):
    assert mapper.canvas_to_native(Point(100.25, 0.25)) == (201, 1)
    assert mapper.canvas_to_native(Point(100.2, 0.2)) == (200, 0)


def test_canvas_size_truncates_fractional_display():
    m = CoordinateMapper(800, 600)
    assert m.sync(399.7, 299.9) == (399, 299)


def test_sync_rejects_empty_display():
    m = CoordinateMapper(800, 600)
    with pytest.raises(EditorValidationError):
        m.sync(0, 300)


def test_load_image_assumes_one_to_one_display():
    m = CoordinateMapper()
    m.load_image(640, 480)
    assert m.canvas_size == (640, 480)
    assert m.scale_x == 1.0
    assert m.scale_y == 1.0
