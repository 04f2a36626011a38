"""
Errors - Exception hierarchy for graph, document, history and persistence.

Every error raised by LayerGraph derives from LayerGraphError:
- NodeError: structural, contract and operational failures in a node graph
- DocumentError: layer lookups and invalid document operations
- HistoryError: undo/redo stack exhausted
- SerializationError: malformed persisted documents
"""

from __future__ import annotations

from typing import Any


class LayerGraphError(Exception):
    """Base for all LayerGraph errors."""


# --- Node graph ---


class NodeError(LayerGraphError):
    """Base for node and node graph errors."""


class NodeNotFoundError(NodeError):
    """A node id is not present in the graph."""

    def __init__(self, node_id: Any):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class CycleDetectedError(NodeError):
    """Connecting two nodes would create a cycle."""

    def __init__(self, from_id: Any, to_id: Any):
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(f"Cycle detected: connecting {from_id} -> {to_id}")


class MissingInputError(NodeError):
    """A required input is not connected."""

    def __init__(self, message: str = "Missing required input"):
        super().__init__(message)


class InvalidInputTypeError(NodeError):
    """An input artifact has an unexpected type."""

    def __init__(self, expected: str, got: Any):
        self.expected = expected
        self.got = got
        super().__init__(f"Invalid input type: expected {expected}, got {type(got).__name__}")


class InvalidParameterError(NodeError):
    """A node parameter failed validation."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid parameter '{name}': {reason}")


class ComputationError(NodeError):
    """A capability failed while computing its artifact."""


class NodeValidationError(NodeError):
    """A node type is unknown or a constructed node is malformed."""


class EvaluationDepthError(NodeError):
    """Evaluation recursed deeper than the graph allows."""

    def __init__(self, node_id: Any, max_depth: int):
        self.node_id = node_id
        self.max_depth = max_depth
        super().__init__(f"Evaluation depth limit ({max_depth}) exceeded at node {node_id}")


# --- Document ---


class DocumentError(LayerGraphError):
    """Base for document errors."""


class LayerNotFoundError(DocumentError):
    """A layer id is not present in the document."""

    def __init__(self, layer_id: Any):
        self.layer_id = layer_id
        super().__init__(f"Layer not found: {layer_id}")


class InvalidOperationError(DocumentError):
    """The requested document operation is not valid in the current state."""


# --- History ---


class HistoryError(LayerGraphError):
    """Base for undo/redo errors."""


class NoUndoAvailableError(HistoryError):
    def __init__(self):
        super().__init__("No more undo steps available")


class NoRedoAvailableError(HistoryError):
    def __init__(self):
        super().__init__("No more redo steps available")


# --- Persistence ---


class SerializationError(LayerGraphError):
    """A persisted document could not be written or read."""

    def __init__(self, message: str, context: str | None = None):
        self.context = context
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
