"""
Layers - A node graph plus the attributes used to composite its output.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, NewType
from uuid import UUID, uuid4

from layergraph.core.blend import BlendMode
from layergraph.core.errors import MissingInputError, NodeNotFoundError
from layergraph.core.graph import Node, NodeGraph, NodeId
from layergraph.core.locks import ReadWriteLock


LayerId = NewType("LayerId", UUID)


def new_layer_id() -> LayerId:
    """Generate a new unique layer ID."""
    return LayerId(uuid4())


def _clamp_opacity(opacity: float) -> float:
    return min(max(float(opacity), 0.0), 1.0)


@dataclass(slots=True, eq=False)
class Layer:
    """A single layer of a document; owns its node graph for its whole life."""

    id: LayerId
    name: str
    visible: bool = True
    opacity: float = 1.0
    blend_mode: BlendMode = BlendMode.NORMAL
    graph: NodeGraph = field(default_factory=NodeGraph)
    output_node: NodeId | None = None
    lock: ReadWriteLock = field(default_factory=ReadWriteLock, repr=False)

    def __post_init__(self) -> None:
        self.opacity = _clamp_opacity(self.opacity)

    @classmethod
    def create(
        cls,
        name: str = "Layer",
        *,
        visible: bool = True,
        opacity: float = 1.0,
        blend_mode: BlendMode = BlendMode.NORMAL,
        max_depth: int = NodeGraph.DEFAULT_MAX_DEPTH,
        layer_id: LayerId | None = None,
    ) -> Layer:
        return cls(
            id=layer_id if layer_id is not None else new_layer_id(),
            name=name,
            visible=bool(visible),
            opacity=opacity,
            blend_mode=blend_mode,
            graph=NodeGraph(name=name, max_depth=max_depth),
        )

    # --- Guarded access ---

    def read(self) -> AbstractContextManager[None]:
        """Shared access for the duration of a with-block."""
        return self.lock.read()

    def write(self) -> AbstractContextManager[None]:
        """Exclusive access for the duration of a with-block."""
        return self.lock.write()

    # --- Attributes ---

    def set_name(self, name: str) -> None:
        with self.write():
            self.name = name

    def set_visible(self, visible: bool) -> None:
        with self.write():
            self.visible = bool(visible)

    def set_opacity(self, opacity: float) -> None:
        """Set opacity, clamped to [0, 1]."""
        with self.write():
            self.opacity = _clamp_opacity(opacity)

    def set_blend_mode(self, mode: BlendMode) -> None:
        with self.write():
            self.blend_mode = mode

    def set_output_node(self, node_id: NodeId | None) -> None:
        """
        Designate the node whose artifact this layer contributes.

        Raises:
            NodeNotFoundError: If the node is not in this layer's graph
        """
        with self.write():
            if node_id is not None and node_id not in self.graph:
                raise NodeNotFoundError(node_id)
            self.output_node = node_id

    # --- Graph edits ---
    #
    # NodeGraph is unsynchronized: edit a layer's graph through these
    # methods or while holding write().

    def add_node(self, node: Node) -> NodeId:
        with self.write():
            return self.graph.add_node(node)

    def remove_node(self, node_id: NodeId) -> Node:
        """Remove a node; clears the output designation if it pointed there."""
        with self.write():
            node = self.graph.remove_node(node_id)
            if self.output_node == node_id:
                self.output_node = None
            return node

    def connect(self, from_id: NodeId, to_id: NodeId, input_name: str) -> None:
        with self.write():
            self.graph.connect(from_id, to_id, input_name)

    def disconnect(self, to_id: NodeId, input_name: str) -> NodeId | None:
        with self.write():
            return self.graph.disconnect(to_id, input_name)

    @property
    def has_output(self) -> bool:
        return self.output_node is not None

    # --- Evaluation ---

    def evaluate(self, cache: dict[NodeId, Any] | None = None) -> Any:
        """
        Evaluate the designated output node.

        Raises:
            MissingInputError: If no output node is designated
            NodeError: Any failure raised while evaluating the graph
        """
        with self.read():
            if self.output_node is None:
                raise MissingInputError(f"Layer '{self.name}' has no output node")
            return self.graph.evaluate(self.output_node, cache)
