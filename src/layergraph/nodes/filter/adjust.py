"""
Colour Adjustment Nodes - Per-pixel tonal and colour changes.

All adjustments work on straight RGB in [0, 1] and leave alpha untouched.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from layergraph.core.data_types import ImageData, to_uint8
from layergraph.core.node_types import NodeCategory, ParameterDefinition, node_factory
from layergraph.nodes.base import require_image


# Rec. 601 luma weights
_LUMA = np.array([0.299, 0.587, 0.114])


def _with_rgb(image: ImageData, rgb: NDArray[np.float64]) -> ImageData:
    pixels = image.pixels.copy()
    pixels[..., :3] = to_uint8(rgb)
    return ImageData(pixels=pixels, metadata=image.metadata.copy())


class ColorAdjustNode:
    """Multiplicative brightness, contrast and saturation (1.0 = unchanged)."""

    def __init__(self, brightness: float = 1.0, contrast: float = 1.0, saturation: float = 1.0):
        self.brightness = float(brightness)
        self.contrast = float(contrast)
        self.saturation = float(saturation)

    def compute(self, inputs: list[Any]) -> ImageData:
        image = require_image(inputs)
        rgb = image.to_float()[..., :3]

        rgb = rgb * self.brightness
        rgb = (rgb - 0.5) * self.contrast + 0.5
        gray = (rgb @ _LUMA)[..., np.newaxis]
        rgb = gray + (rgb - gray) * self.saturation

        return _with_rgb(image, np.clip(rgb, 0.0, 1.0))


class BrightnessContrastNode:
    """Offsets in [-1, 1]; 0 leaves the image unchanged."""

    def __init__(self, brightness: float = 0.0, contrast: float = 0.0):
        self.brightness = min(max(float(brightness), -1.0), 1.0)
        self.contrast = min(max(float(contrast), -1.0), 1.0)

    def compute(self, inputs: list[Any]) -> ImageData:
        image = require_image(inputs)
        rgb = image.to_float()[..., :3]
        rgb = rgb * (1.0 + self.brightness)
        rgb = (rgb - 0.5) * (1.0 + self.contrast) + 0.5
        return _with_rgb(image, np.clip(rgb, 0.0, 1.0))


def rgb_to_hsl(rgb: NDArray[np.float64]) -> tuple[NDArray, NDArray, NDArray]:
    """Hue in degrees [0, 360), saturation and lightness in [0, 1]."""
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    d = mx - mn
    l = (mx + mn) / 2.0

    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.where(l > 0.5, d / (2.0 - mx - mn), d / (mx + mn))
        h = np.where(
            mx == r,
            (g - b) / d,
            np.where(mx == g, 2.0 + (b - r) / d, 4.0 + (r - g) / d),
        )
    gray = d == 0.0
    s = np.where(gray, 0.0, s)
    h = np.where(gray, 0.0, h * 60.0)
    h = np.where(h < 0.0, h + 360.0, h)
    return h, s, l


def hsl_to_rgb(h: NDArray, s: NDArray, l: NDArray) -> NDArray[np.float64]:
    """Inverse of rgb_to_hsl(); returns an (..., 3) array."""
    q = np.where(l < 0.5, l * (1.0 + s), l + s - l * s)
    p = 2.0 * l - q
    hk = h / 360.0

    def channel(t: NDArray) -> NDArray:
        t = np.where(t < 0.0, t + 1.0, np.where(t > 1.0, t - 1.0, t))
        return np.select(
            [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
            [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
            default=p,
        )

    rgb = np.stack([channel(hk + 1.0 / 3.0), channel(hk), channel(hk - 1.0 / 3.0)], axis=-1)
    return np.where((s == 0.0)[..., np.newaxis], l[..., np.newaxis], rgb)


class HSLNode:
    """Rotate hue (degrees) and scale saturation/lightness by (1 + amount)."""

    def __init__(self, hue: float = 0.0, saturation: float = 0.0, lightness: float = 0.0):
        self.hue = min(max(float(hue), -180.0), 180.0)
        self.saturation = min(max(float(saturation), -1.0), 1.0)
        self.lightness = min(max(float(lightness), -1.0), 1.0)

    def compute(self, inputs: list[Any]) -> ImageData:
        image = require_image(inputs)
        h, s, l = rgb_to_hsl(image.to_float()[..., :3])

        h = np.mod(h + self.hue, 360.0)
        s = np.clip(s * (1.0 + self.saturation), 0.0, 1.0)
        l = np.clip(l * (1.0 + self.lightness), 0.0, 1.0)

        return _with_rgb(image, np.clip(hsl_to_rgb(h, s, l), 0.0, 1.0))


# --- Factories ---


@node_factory(
    "ColorAdjust",
    NodeCategory.FILTER,
    "Scale brightness, contrast and saturation",
    parameters=[
        ParameterDefinition.float_param("brightness", default=1.0, min_value=0.0),
        ParameterDefinition.float_param("contrast", default=1.0, min_value=0.0),
        ParameterDefinition.float_param("saturation", default=1.0, min_value=0.0),
    ],
)
def color_adjust(params: dict[str, Any]) -> ColorAdjustNode:
    return ColorAdjustNode(params["brightness"], params["contrast"], params["saturation"])


@node_factory(
    "BrightnessContrast",
    NodeCategory.FILTER,
    "Shift brightness and contrast",
    parameters=[
        ParameterDefinition.float_param("brightness", default=0.0, min_value=-1.0, max_value=1.0),
        ParameterDefinition.float_param("contrast", default=0.0, min_value=-1.0, max_value=1.0),
    ],
)
def brightness_contrast(params: dict[str, Any]) -> BrightnessContrastNode:
    return BrightnessContrastNode(params["brightness"], params["contrast"])


@node_factory(
    "HSL",
    NodeCategory.FILTER,
    "Adjust hue, saturation and lightness",
    parameters=[
        ParameterDefinition.float_param("hue", default=0.0, min_value=-180.0, max_value=180.0),
        ParameterDefinition.float_param("saturation", default=0.0, min_value=-1.0, max_value=1.0),
        ParameterDefinition.float_param("lightness", default=0.0, min_value=-1.0, max_value=1.0),
    ],
)
def hsl(params: dict[str, Any]) -> HSLNode:
    return HSLNode(params["hue"], params["saturation"], params["lightness"])
