"""
Input nodes - Sources of image data.
"""

from layergraph.core.node_types import NodeRegistry
from layergraph.nodes.input.image import ImageNode, ImageNodeFactory


def register_input_nodes(registry: NodeRegistry) -> None:
    """Register all input node types."""
    registry.register(ImageNodeFactory())


__all__ = ["ImageNode", "ImageNodeFactory", "register_input_nodes"]
