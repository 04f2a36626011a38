"""
Core module - Node graphs, layers, documents and persistence.

This module provides the fundamental building blocks for layergraph:
- Graph: Nodes, connections and demand-driven evaluation
- Node Types: Factories and the registry that builds nodes
- Layers / Document: Ordered layers composited with blend modes
- History / Commands: Bounded undo/redo
- Workspace / Project: JSON persistence and settings
"""

from layergraph.core.blend import BlendMode, blend, blend_pixel
from layergraph.core.commands import (
    AddLayerCommand,
    AddNodeCommand,
    ConnectNodesCommand,
    MoveLayerCommand,
    RemoveLayerCommand,
    RenameLayerCommand,
    SetBlendModeCommand,
    SetLayerOpacityCommand,
    SetLayerVisibilityCommand,
    SetOutputNodeCommand,
)
from layergraph.core.data_types import Color, ImageData, ImageMetadata, ParameterValue
from layergraph.core.document import Document
from layergraph.core.errors import (
    ComputationError,
    CycleDetectedError,
    DocumentError,
    EvaluationDepthError,
    HistoryError,
    InvalidInputTypeError,
    InvalidOperationError,
    InvalidParameterError,
    LayerGraphError,
    LayerNotFoundError,
    MissingInputError,
    NodeError,
    NodeNotFoundError,
    NodeValidationError,
    NoRedoAvailableError,
    NoUndoAvailableError,
    SerializationError,
)
from layergraph.core.graph import (
    Connection,
    Node,
    NodeCapability,
    NodeGraph,
    NodeId,
    new_node_id,
)
from layergraph.core.history import Command, History
from layergraph.core.layers import Layer, LayerId, new_layer_id
from layergraph.core.locks import ReadWriteLock
from layergraph.core.node_types import (
    NodeCategory,
    NodeFactory,
    NodeRegistry,
    ParameterDefinition,
    ParameterType,
    node_factory,
)
from layergraph.core.project import Project, ProjectSettings
from layergraph.core.workspace import (
    document_from_dict,
    document_to_dict,
    dumps,
    load_document,
    loads,
    save_document,
)


__all__ = [
    # blend.py
    "BlendMode",
    "blend",
    "blend_pixel",
    # commands.py
    "AddLayerCommand",
    "AddNodeCommand",
    "ConnectNodesCommand",
    "MoveLayerCommand",
    "RemoveLayerCommand",
    "RenameLayerCommand",
    "SetBlendModeCommand",
    "SetLayerOpacityCommand",
    "SetLayerVisibilityCommand",
    "SetOutputNodeCommand",
    # data_types.py
    "Color",
    "ImageData",
    "ImageMetadata",
    "ParameterValue",
    # document.py
    "Document",
    # errors.py
    "ComputationError",
    "CycleDetectedError",
    "DocumentError",
    "EvaluationDepthError",
    "HistoryError",
    "InvalidInputTypeError",
    "InvalidOperationError",
    "InvalidParameterError",
    "LayerGraphError",
    "LayerNotFoundError",
    "MissingInputError",
    "NodeError",
    "NodeNotFoundError",
    "NodeValidationError",
    "NoRedoAvailableError",
    "NoUndoAvailableError",
    "SerializationError",
    # graph.py
    "Connection",
    "Node",
    "NodeCapability",
    "NodeGraph",
    "NodeId",
    "new_node_id",
    # history.py
    "Command",
    "History",
    # layers.py
    "Layer",
    "LayerId",
    "new_layer_id",
    # locks.py
    "ReadWriteLock",
    # node_types.py
    "NodeCategory",
    "NodeFactory",
    "NodeRegistry",
    "ParameterDefinition",
    "ParameterType",
    "node_factory",
    # project.py
    "Project",
    "ProjectSettings",
    # workspace.py
    "document_from_dict",
    "document_to_dict",
    "dumps",
    "load_document",
    "loads",
    "save_document",
]
