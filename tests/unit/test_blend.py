"""
Tests for blend modes.
"""

import numpy as np
import pytest

from layergraph.core.blend import BlendMode, blend, blend_pixel
from layergraph.core.data_types import ImageData


WHITE = (255, 255, 255, 255)
GRAY = (128, 128, 128, 255)
BLACK = (0, 0, 0, 255)


class TestBlendMode:
    """Tests for the BlendMode enum."""

    def test_twelve_modes(self):
        assert len(BlendMode) == 12

    def test_label(self):
        assert BlendMode.COLOR_DODGE.label == "Color Dodge"
        assert BlendMode.NORMAL.label == "Normal"

    @pytest.mark.parametrize("name", ["color_dodge", "COLOR_DODGE", "Color Dodge", "ColorDodge"])
    def test_from_name(self, name):
        assert BlendMode.from_name(name) is BlendMode.COLOR_DODGE

    def test_from_name_unknown(self):
        with pytest.raises(ValueError):
            BlendMode.from_name("vivid_light")


class TestBlendPixel:
    """Per-mode results on single pixels (opaque bottom and top)."""

    def test_normal_over_transparent_reproduces_top(self):
        top = (10, 200, 30, 128)
        assert blend_pixel((90, 90, 90, 0), top) == top

    def test_normal_opaque_top_replaces_bottom(self):
        assert blend_pixel(GRAY, (1, 2, 3, 255)) == (1, 2, 3, 255)

    def test_multiply_white_over_gray(self):
        assert blend_pixel(GRAY, WHITE, BlendMode.MULTIPLY)[:3] == (128, 128, 128)

    def test_multiply(self):
        assert blend_pixel(GRAY, GRAY, BlendMode.MULTIPLY) == (64, 64, 64, 255)

    def test_screen(self):
        assert blend_pixel(GRAY, GRAY, BlendMode.SCREEN) == (192, 192, 192, 255)

    def test_overlay_uses_bottom_to_choose_branch(self):
        dark = (51, 51, 51, 255)  # 0.2
        assert blend_pixel(dark, GRAY, BlendMode.OVERLAY)[0] == 51
        assert blend_pixel(WHITE, BLACK, BlendMode.OVERLAY)[0] == 255

    def test_hard_light_uses_top_to_choose_branch(self):
        assert blend_pixel(WHITE, BLACK, BlendMode.HARD_LIGHT)[0] == 0
        assert blend_pixel(BLACK, WHITE, BlendMode.HARD_LIGHT)[0] == 255

    def test_darken_and_lighten(self):
        bottom = (10, 200, 30, 255)
        top = (100, 100, 100, 255)
        assert blend_pixel(bottom, top, BlendMode.DARKEN) == (10, 100, 30, 255)
        assert blend_pixel(bottom, top, BlendMode.LIGHTEN) == (100, 200, 100, 255)

    def test_color_dodge(self):
        assert blend_pixel(GRAY, WHITE, BlendMode.COLOR_DODGE)[0] == 255
        assert blend_pixel(BLACK, GRAY, BlendMode.COLOR_DODGE)[0] == 0
        # 0.2 / (1 - 0.502) = 0.402
        assert blend_pixel((51, 51, 51, 255), GRAY, BlendMode.COLOR_DODGE)[0] == 102

    def test_color_burn(self):
        assert blend_pixel(GRAY, BLACK, BlendMode.COLOR_BURN)[0] == 0
        assert blend_pixel(WHITE, GRAY, BlendMode.COLOR_BURN)[0] == 255

    def test_soft_light_neutral_at_half(self):
        bottom = (51, 200, 10, 255)
        result = blend_pixel(bottom, (127.5, 127.5, 127.5, 255), BlendMode.SOFT_LIGHT)
        assert result == bottom

    def test_soft_light_dark_bottom_branch(self):
        # b = 0.2 <= 0.25: D = ((16b - 12)b + 4)b = 0.2 * (4 - 1.76) = 0.448
        # t = 1: b + (2t - 1)(D - b) = 0.448
        assert blend_pixel((51, 0, 0, 255), WHITE, BlendMode.SOFT_LIGHT)[0] == 114

    def test_difference(self):
        assert blend_pixel((200, 10, 0, 255), (50, 60, 0, 255), BlendMode.DIFFERENCE)[:3] == (150, 50, 0)

    def test_exclusion(self):
        assert blend_pixel(WHITE, WHITE, BlendMode.EXCLUSION)[:3] == (0, 0, 0)
        assert blend_pixel(BLACK, GRAY, BlendMode.EXCLUSION)[:3] == (128, 128, 128)

    def test_zero_opacity_keeps_bottom(self):
        bottom = (10, 20, 30, 255)
        for mode in BlendMode:
            assert blend_pixel(bottom, WHITE, mode, opacity=0.0) == bottom

    def test_half_opacity(self):
        assert blend_pixel(BLACK, WHITE, BlendMode.NORMAL, opacity=0.5) == (128, 128, 128, 255)

    def test_both_transparent_gives_zero(self):
        for mode in BlendMode:
            assert blend_pixel((50, 50, 50, 0), (200, 200, 200, 0), mode) == (0, 0, 0, 0)

    def test_alpha_composition(self):
        # result alpha 0.5 over bottom alpha 0.2 -> 0.6
        assert blend_pixel((0, 0, 0, 51), WHITE, opacity=0.5)[3] == 153


class TestBlendImages:
    """Tests for whole-image blending."""

    def test_output_is_uint8_rgba(self):
        bottom = ImageData.solid(4, 3, GRAY)
        top = ImageData.solid(4, 3, WHITE)

        result = blend(bottom, top, BlendMode.MULTIPLY)

        assert result.pixels.dtype == np.uint8
        assert result.size == (4, 3)
        assert result.pixel(2, 1) == GRAY

    def test_inputs_not_modified(self):
        bottom = ImageData.solid(2, 2, GRAY)
        top = ImageData.solid(2, 2, WHITE)
        before = bottom.pixels.copy(), top.pixels.copy()

        blend(bottom, top, BlendMode.SCREEN, 0.5)

        assert np.array_equal(bottom.pixels, before[0])
        assert np.array_equal(top.pixels, before[1])

    def test_mismatched_sizes_use_overlap(self):
        bottom = ImageData.solid(4, 2, GRAY)
        top = ImageData.solid(2, 3, WHITE)

        result = blend(bottom, top)

        assert result.size == (2, 2)
        assert result.pixel(1, 1) == WHITE

    def test_opacity_is_clamped(self):
        bottom = ImageData.solid(1, 1, BLACK)
        top = ImageData.solid(1, 1, WHITE)
        assert blend(bottom, top, opacity=2.0).pixel(0, 0) == WHITE
        assert blend(bottom, top, opacity=-1.0).pixel(0, 0) == BLACK

    def test_matches_pixel_blend(self):
        rng = np.random.default_rng(7)
        bottom = ImageData(pixels=rng.integers(0, 256, (3, 3, 4), dtype=np.uint8))
        top = ImageData(pixels=rng.integers(0, 256, (3, 3, 4), dtype=np.uint8))

        for mode in BlendMode:
            result = blend(bottom, top, mode, 0.7)
            assert result.pixel(1, 2) == blend_pixel(bottom.pixel(1, 2), top.pixel(1, 2), mode, 0.7)
