"""
Blur and Sharpen Nodes - Convolution filters backed by Pillow.
"""

from __future__ import annotations

from typing import Any

from PIL import Image, ImageFilter

from layergraph.core.data_types import ImageData
from layergraph.core.node_types import NodeCategory, ParameterDefinition, node_factory
from layergraph.nodes.base import require_image


class GaussianBlurNode:
    """Gaussian blur with standard deviation `sigma` (pixels)."""

    MIN_SIGMA = 0.1

    def __init__(self, sigma: float = 1.0):
        self.sigma = max(float(sigma), self.MIN_SIGMA)

    def compute(self, inputs: list[Any]) -> ImageData:
        image = require_image(inputs)
        blurred = image.to_pil().filter(ImageFilter.GaussianBlur(radius=self.sigma))
        return ImageData.from_pil(blurred, image.metadata.copy())


class SharpenNode:
    """
    3x3 sharpen: centre weight 8 * amount + 1, neighbours -amount.

    The kernel sums to 1, so flat regions are unchanged. Alpha is kept.
    """

    def __init__(self, amount: float = 1.0):
        self.amount = min(max(float(amount), 0.0), 10.0)

    def kernel(self) -> ImageFilter.Kernel:
        a = self.amount
        weights = [-a, -a, -a,
                   -a, 8.0 * a + 1.0, -a,
                   -a, -a, -a]
        return ImageFilter.Kernel((3, 3), weights, scale=1)

    def compute(self, inputs: list[Any]) -> ImageData:
        image = require_image(inputs)
        pil = image.to_pil()
        # Kernel filters only accept L and RGB images.
        rgb = pil.convert("RGB").filter(self.kernel())
        r, g, b = rgb.split()
        merged = Image.merge("RGBA", (r, g, b, pil.getchannel("A")))
        return ImageData.from_pil(merged, image.metadata.copy())


@node_factory(
    "GaussianBlur",
    NodeCategory.FILTER,
    "Gaussian blur",
    parameters=[
        ParameterDefinition.float_param("sigma", default=1.0, min_value=0.0,
                                        description="Standard deviation in pixels"),
    ],
)
def gaussian_blur(params: dict[str, Any]) -> GaussianBlurNode:
    return GaussianBlurNode(params["sigma"])


@node_factory(
    "Sharpen",
    NodeCategory.FILTER,
    "Sharpen edges with a 3x3 kernel",
    parameters=[
        ParameterDefinition.float_param("amount", default=1.0, min_value=0.0, max_value=10.0),
    ],
)
def sharpen(params: dict[str, Any]) -> SharpenNode:
    return SharpenNode(params["amount"])
