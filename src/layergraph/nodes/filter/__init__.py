"""
Filter nodes - Colour adjustments, blur and sharpen.
"""

from layergraph.core.node_types import NodeRegistry
from layergraph.nodes.filter.adjust import (
    BrightnessContrastNode,
    ColorAdjustNode,
    HSLNode,
    brightness_contrast,
    color_adjust,
    hsl,
)
from layergraph.nodes.filter.blur import GaussianBlurNode, SharpenNode, gaussian_blur, sharpen


def register_filter_nodes(registry: NodeRegistry) -> None:
    """Register all filter node types."""
    for factory in (color_adjust, brightness_contrast, hsl, gaussian_blur, sharpen):
        registry.register(factory())


__all__ = [
    "BrightnessContrastNode",
    "ColorAdjustNode",
    "GaussianBlurNode",
    "HSLNode",
    "SharpenNode",
    "register_filter_nodes",
]
