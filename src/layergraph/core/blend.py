"""
Blend Modes - Per-pixel layer compositing.

Each mode combines bottom and top RGB in [0, 1]; the result is then
composited over the bottom with straight alpha:

    result.alpha = top.alpha * opacity
    out.alpha    = result.alpha + bottom.alpha * (1 - result.alpha)
    out.rgb      = (result.rgb * result.alpha
                    + bottom.rgb * bottom.alpha * (1 - result.alpha)) / out.alpha

with out.rgb = 0 wherever out.alpha is 0.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from layergraph.core.data_types import Color, ImageData, to_uint8


FloatArray = NDArray[np.float64]


class BlendMode(Enum):
    """Blend modes for combining a layer with the layers below it."""
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color_dodge"
    COLOR_BURN = "color_burn"
    HARD_LIGHT = "hard_light"
    SOFT_LIGHT = "soft_light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"

    @property
    def label(self) -> str:
        """Display name, e.g. "Color Dodge"."""
        return self.value.replace("_", " ").title()

    @classmethod
    def from_name(cls, name: str) -> BlendMode:
        """
        Look up a mode by value, member name or label.

        "color_dodge", "COLOR_DODGE", "Color Dodge" and "ColorDodge" all
        resolve to COLOR_DODGE.
        """
        key = name.strip().lower().replace(" ", "").replace("_", "")
        for mode in cls:
            if mode.value.replace("_", "") == key:
                return mode
        raise ValueError(f"Unknown blend mode: {name}")


# --- Mode functions (b = bottom, t = top, RGB only) ---


def _normal(b: FloatArray, t: FloatArray) -> FloatArray:
    return t


def _multiply(b: FloatArray, t: FloatArray) -> FloatArray:
    return b * t


def _screen(b: FloatArray, t: FloatArray) -> FloatArray:
    return 1.0 - (1.0 - b) * (1.0 - t)


def _overlay(b: FloatArray, t: FloatArray) -> FloatArray:
    return np.where(b < 0.5, 2.0 * b * t, 1.0 - 2.0 * (1.0 - b) * (1.0 - t))


def _darken(b: FloatArray, t: FloatArray) -> FloatArray:
    return np.minimum(b, t)


def _lighten(b: FloatArray, t: FloatArray) -> FloatArray:
    return np.maximum(b, t)


def _color_dodge(b: FloatArray, t: FloatArray) -> FloatArray:
    with np.errstate(divide="ignore", invalid="ignore"):
        dodged = np.minimum(b / (1.0 - t), 1.0)
    return np.where(t == 1.0, 1.0, dodged)


def _color_burn(b: FloatArray, t: FloatArray) -> FloatArray:
    with np.errstate(divide="ignore", invalid="ignore"):
        burned = 1.0 - np.minimum((1.0 - b) / t, 1.0)
    return np.where(t == 0.0, 0.0, burned)


def _hard_light(b: FloatArray, t: FloatArray) -> FloatArray:
    return np.where(t < 0.5, 2.0 * b * t, 1.0 - 2.0 * (1.0 - b) * (1.0 - t))


def _soft_light(b: FloatArray, t: FloatArray) -> FloatArray:
    d = np.where(b <= 0.25, ((16.0 * b - 12.0) * b + 4.0) * b, np.sqrt(b))
    return np.where(
        t < 0.5,
        b - (1.0 - 2.0 * t) * b * (1.0 - b),
        b + (2.0 * t - 1.0) * (d - b),
    )


def _difference(b: FloatArray, t: FloatArray) -> FloatArray:
    return np.abs(b - t)


def _exclusion(b: FloatArray, t: FloatArray) -> FloatArray:
    return b + t - 2.0 * b * t


_MODE_FUNCTIONS: dict[BlendMode, Callable[[FloatArray, FloatArray], FloatArray]] = {
    BlendMode.NORMAL: _normal,
    BlendMode.MULTIPLY: _multiply,
    BlendMode.SCREEN: _screen,
    BlendMode.OVERLAY: _overlay,
    BlendMode.DARKEN: _darken,
    BlendMode.LIGHTEN: _lighten,
    BlendMode.COLOR_DODGE: _color_dodge,
    BlendMode.COLOR_BURN: _color_burn,
    BlendMode.HARD_LIGHT: _hard_light,
    BlendMode.SOFT_LIGHT: _soft_light,
    BlendMode.DIFFERENCE: _difference,
    BlendMode.EXCLUSION: _exclusion,
}


def blend_arrays(
    bottom: FloatArray,
    top: FloatArray,
    mode: BlendMode,
    opacity: float,
) -> FloatArray:
    """
    Blend two float RGBA arrays of identical shape (..., 4) in [0, 1].

    Returns a float array; callers convert back to 8-bit.
    """
    b_rgb, b_a = bottom[..., :3], bottom[..., 3:4]
    t_rgb, t_a = top[..., :3], top[..., 3:4]

    rgb = _MODE_FUNCTIONS[mode](b_rgb, t_rgb)
    r_a = t_a * opacity

    out_a = r_a + b_a * (1.0 - r_a)
    with np.errstate(divide="ignore", invalid="ignore"):
        out_rgb = (rgb * r_a + b_rgb * b_a * (1.0 - r_a)) / out_a
    out_rgb = np.where(out_a > 0.0, out_rgb, 0.0)

    return np.concatenate([out_rgb, out_a], axis=-1)


def blend(
    bottom: ImageData,
    top: ImageData,
    mode: BlendMode = BlendMode.NORMAL,
    opacity: float = 1.0,
) -> ImageData:
    """
    Composite `top` over `bottom`.

    Images of different sizes are composited over their overlapping
    top-left region; the result has that size.
    """
    width = min(bottom.width, top.width)
    height = min(bottom.height, top.height)
    opacity = min(max(float(opacity), 0.0), 1.0)

    b = bottom.pixels[:height, :width].astype(np.float64) / 255.0
    t = top.pixels[:height, :width].astype(np.float64) / 255.0

    out = blend_arrays(b, t, mode, opacity)
    return ImageData(pixels=to_uint8(out), metadata=bottom.metadata.copy())


def blend_pixel(
    bottom: Sequence[int],
    top: Sequence[int],
    mode: BlendMode = BlendMode.NORMAL,
    opacity: float = 1.0,
) -> Color:
    """Blend a single pair of RGBA pixels (8-bit channels)."""
    b = np.asarray(bottom, dtype=np.float64).reshape(1, 4) / 255.0
    t = np.asarray(top, dtype=np.float64).reshape(1, 4) / 255.0
    out = to_uint8(blend_arrays(b, t, mode, min(max(float(opacity), 0.0), 1.0)))[0]
    r, g, bl, a = (int(v) for v in out)
    return (r, g, bl, a)
