"""
Commands - Reversible document edits for use with History.

Every command captures whatever it needs to restore the prior state at the
moment it executes, so redo after undo replays the same edit.
"""

from __future__ import annotations

from typing import Any

from layergraph.core.blend import BlendMode
from layergraph.core.document import Document
from layergraph.core.errors import NodeNotFoundError
from layergraph.core.graph import NodeId
from layergraph.core.history import Command
from layergraph.core.layers import Layer, LayerId
from layergraph.core.node_types import NodeRegistry


# --- Layer attribute commands ---


class SetLayerVisibilityCommand(Command):
    """Show or hide a layer."""

    def __init__(self, layer: Layer, visible: bool):
        self.layer = layer
        self.visible = bool(visible)
        self._previous: bool | None = None

    def execute(self) -> None:
        self._previous = self.layer.visible
        self.layer.set_visible(self.visible)

    def undo(self) -> None:
        if self._previous is not None:
            self.layer.set_visible(self._previous)

    @property
    def description(self) -> str:
        return f"{'Show' if self.visible else 'Hide'} layer '{self.layer.name}'"


class SetLayerOpacityCommand(Command):
    """Change a layer's opacity (clamped to [0, 1])."""

    def __init__(self, layer: Layer, opacity: float):
        self.layer = layer
        self.opacity = opacity
        self._previous: float | None = None

    def execute(self) -> None:
        self._previous = self.layer.opacity
        self.layer.set_opacity(self.opacity)

    def undo(self) -> None:
        if self._previous is not None:
            self.layer.set_opacity(self._previous)

    @property
    def description(self) -> str:
        return f"Set opacity of '{self.layer.name}'"


class RenameLayerCommand(Command):
    def __init__(self, layer: Layer, name: str):
        self.layer = layer
        self.name = name
        self._previous: str | None = None

    def execute(self) -> None:
        self._previous = self.layer.name
        self.layer.set_name(self.name)

    def undo(self) -> None:
        if self._previous is not None:
            self.layer.set_name(self._previous)

    @property
    def description(self) -> str:
        return f"Rename layer to '{self.name}'"


class SetBlendModeCommand(Command):
    def __init__(self, layer: Layer, mode: BlendMode):
        self.layer = layer
        self.mode = mode
        self._previous: BlendMode | None = None

    def execute(self) -> None:
        self._previous = self.layer.blend_mode
        self.layer.set_blend_mode(self.mode)

    def undo(self) -> None:
        if self._previous is not None:
            self.layer.set_blend_mode(self._previous)

    @property
    def description(self) -> str:
        return f"Set blend mode of '{self.layer.name}' to {self.mode.label}"


class SetOutputNodeCommand(Command):
    """Designate which node's artifact a layer contributes."""

    _UNSET = object()

    def __init__(self, layer: Layer, node_id: NodeId | None):
        self.layer = layer
        self.node_id = node_id
        self._previous: Any = self._UNSET

    def execute(self) -> None:
        previous = self.layer.output_node
        self.layer.set_output_node(self.node_id)
        self._previous = previous

    def undo(self) -> None:
        if self._previous is not self._UNSET:
            self.layer.set_output_node(self._previous)


# --- Layer structure commands ---


class AddLayerCommand(Command):
    """Append a layer to a document."""

    def __init__(self, document: Document, layer: Layer):
        self.document = document
        self.layer = layer

    @property
    def layer_id(self) -> LayerId:
        return self.layer.id

    def execute(self) -> None:
        self.document.add_layer(self.layer)

    def undo(self) -> None:
        self.document.remove_layer(self.layer.id)

    @property
    def description(self) -> str:
        return f"Add layer '{self.layer.name}'"


class RemoveLayerCommand(Command):
    """Remove a layer; undo puts it back at its old position."""

    def __init__(self, document: Document, layer_id: LayerId):
        self.document = document
        self.layer_id = layer_id
        self._removed: Layer | None = None
        self._index = 0

    def execute(self) -> None:
        index = self.document.index_of(self.layer_id)
        self._removed = self.document.remove_layer(self.layer_id)
        self._index = index

    def undo(self) -> None:
        if self._removed is not None:
            self.document.insert_layer(self._removed, self._index)
            self._removed = None

    @property
    def description(self) -> str:
        return "Remove layer"


class MoveLayerCommand(Command):
    def __init__(self, document: Document, layer_id: LayerId, new_index: int):
        self.document = document
        self.layer_id = layer_id
        self.new_index = new_index
        self._old_index: int | None = None

    def execute(self) -> None:
        old_index = self.document.index_of(self.layer_id)
        self.document.move_layer(self.layer_id, self.new_index)
        self._old_index = old_index

    def undo(self) -> None:
        if self._old_index is not None:
            self.document.move_layer(self.layer_id, self._old_index)

    @property
    def description(self) -> str:
        return "Move layer"


# --- Graph commands ---


class AddNodeCommand(Command):
    """
    Add a registry-built node to a layer's graph.

    The node is created when the command is constructed, so `node_id` is
    known before execute() and stays the same across undo/redo. A rejected
    type or parameter set raises here and nothing is recorded.
    """

    def __init__(
        self,
        layer: Layer,
        registry: NodeRegistry,
        type_name: str,
        parameters: Any = None,
    ):
        self.layer = layer
        self.node = registry.create_node(type_name, parameters)

    @property
    def node_id(self) -> NodeId:
        return self.node.id

    def execute(self) -> None:
        with self.layer.write():
            # Bindings made outside this command do not survive an undo.
            self.node.inputs.clear()
            self.layer.add_node(self.node)

    def undo(self) -> None:
        self.layer.remove_node(self.node.id)

    @property
    def description(self) -> str:
        return f"Add {self.node.type_name} node"


class ConnectNodesCommand(Command):
    """Bind a node input; undo restores whatever was bound before."""

    def __init__(self, layer: Layer, from_id: NodeId, to_id: NodeId, input_name: str):
        self.layer = layer
        self.from_id = from_id
        self.to_id = to_id
        self.input_name = input_name
        self._previous: NodeId | None = None

    def execute(self) -> None:
        with self.layer.write():
            consumer = self.layer.graph.get_node(self.to_id)
            if consumer is None:
                raise NodeNotFoundError(self.to_id)
            previous = consumer.get_input(self.input_name)
            self.layer.connect(self.from_id, self.to_id, self.input_name)
            self._previous = previous

    def undo(self) -> None:
        if self._previous is None:
            self.layer.disconnect(self.to_id, self.input_name)
        else:
            self.layer.connect(self._previous, self.to_id, self.input_name)

    @property
    def description(self) -> str:
        return f"Connect input '{self.input_name}'"
