"""
Nodes package - Built-in node implementations.

This package contains node implementations organized by category:
- input: Image (file or solid colour)
- filter: ColorAdjust, BrightnessContrast, HSL, GaussianBlur, Sharpen
- utility: Blend

Nothing is registered on import; pass a registry to register_all_nodes().
"""

from layergraph.core.node_types import NodeRegistry
from layergraph.nodes.filter import register_filter_nodes
from layergraph.nodes.input import register_input_nodes
from layergraph.nodes.utility import register_utility_nodes


def register_all_nodes(registry: NodeRegistry) -> NodeRegistry:
    """Register all built-in nodes on `registry` and return it."""
    register_input_nodes(registry)
    register_filter_nodes(registry)
    register_utility_nodes(registry)
    return registry


__all__ = [
    "register_all_nodes",
    "register_filter_nodes",
    "register_input_nodes",
    "register_utility_nodes",
]
