import math

import pytest

from SignStamper import InvalidInputError, StampConfig
from SignStamper.PlacementCalculator import PlacementRect, ViewportPoint, clamp, compute_placement

LETTER = (612.0, 792.0)
A4 = (595.28, 841.89)


def place(x, y, page=LETTER, config=StampConfig()):
    return compute_placement(page[0], page[1], ViewportPoint(x, y), config)


def test_us_letter_scenario():
    rect = place(100, 100)
    assert rect.x == pytest.approx(102)
    assert rect.y == pytest.approx(639)
    assert rect.width == pytest.approx(153)
    assert rect.height == pytest.approx(51)


def test_overshoot_right_is_clamped_to_page_edge():
    rect = place(590, 100)
    assert rect.x == pytest.approx(459)
    assert rect.right == pytest.approx(612)


def test_negative_drag_is_clamped_to_top_edge():
    rect = place(100, -50)
    assert rect.y == pytest.approx(741)
    assert rect.top == pytest.approx(792)


def test_origin_maps_to_left_edge_and_top_of_page():
    w, h = A4
    rect = place(0, 0, page=A4)
    sig_height = 50 * w / 600
    assert rect.x == 0
    assert rect.y == pytest.approx(h - sig_height)


def test_full_viewport_width_clamps_to_right_edge():
    w, h = A4
    rect = place(600, 0, page=A4)
    assert rect.x == pytest.approx(w - 150 * w / 600)


def test_bottom_placement_maps_to_zero():
    w, h = LETTER
    ratio = w / 600
    sig_height = 50 * ratio
    # scaled_y == H - sig_height puts the signature flush with the bottom edge
    viewport_y = (h - sig_height) / ratio
    rect = place(0, viewport_y)
    assert rect.y == pytest.approx(0, abs=1e-9)


@pytest.mark.parametrize("page", [LETTER, A4, (300.0, 200.0), (1224.0, 792.0)])
@pytest.mark.parametrize("x", [-1e6, -600, -1, 0, 250.5, 599, 600, 601, 1e6])
@pytest.mark.parametrize("y", [-1e6, -50, 0, 333, 776, 900, 1e6])
def test_rectangle_always_stays_on_page(page, x, y):
    w, h = page
    rect = place(x, y, page=page)
    assert rect.x >= 0
    assert rect.y >= 0
    assert rect.right <= w + 1e-9
    assert rect.top <= h + 1e-9


def test_footprint_scales_with_page_width_not_image():
    rect = place(0, 0, page=(1200.0, 1600.0))
    assert rect.width == pytest.approx(300)
    assert rect.height == pytest.approx(100)


def test_other_viewport_width():
    config = StampConfig(viewport_width=800, footprint_width=200, footprint_height=80)
    rect = place(400, 0, config=config)
    ratio = 612 / 800
    assert rect.x == pytest.approx(400 * ratio)
    assert rect.width == pytest.approx(200 * ratio)
    assert rect.y == pytest.approx(792 - 80 * ratio)


def test_footprint_larger_than_page_pins_to_origin():
    config = StampConfig(footprint_width=700, footprint_height=900)
    rect = place(50, 50, config=config)
    assert rect.x == 0
    assert rect.y == 0
    assert rect.width > 612


def test_non_finite_coordinates_do_not_raise():
    rect = place(float("nan"), float("nan"))
    assert (rect.x, rect.y) == (0, 0)

    rect = place(float("inf"), float("-inf"))
    assert rect.x == pytest.approx(612 - 153)
    assert rect.y == pytest.approx(792 - 51)
    assert not math.isnan(rect.x)


def test_clamp():
    assert clamp(5, 0, 10) == 5
    assert clamp(-5, 0, 10) == 0
    assert clamp(15, 0, 10) == 10
    assert clamp(5, 0, -10) == 0
    assert clamp(float("nan"), 0, 10) == 0


def test_placement_rect_edges():
    rect = PlacementRect(10, 20, 30, 40)
    assert rect.right == 40
    assert rect.top == 60


@pytest.mark.parametrize("field", ["viewport_width", "footprint_width", "footprint_height"])
@pytest.mark.parametrize("value", [0, -1, float("inf"), float("nan"), "600"])
def test_config_rejects_bad_geometry(field, value):
    with pytest.raises(InvalidInputError):
        StampConfig(**{field: value})


def test_config_normalizes_formats():
    assert StampConfig(image_formats=("png",)).image_formats == ("PNG",)
    with pytest.raises(InvalidInputError):
        StampConfig(image_formats=())
