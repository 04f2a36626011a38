"""
Utility nodes - Graph-level compositing.
"""

from layergraph.core.node_types import NodeRegistry
from layergraph.nodes.utility.blend import BlendNode, BlendNodeFactory


def register_utility_nodes(registry: NodeRegistry) -> None:
    """Register all utility node types."""
    registry.register(BlendNodeFactory())


__all__ = ["BlendNode", "BlendNodeFactory", "register_utility_nodes"]
