"""
Document Persistence - Save and load documents to/from disk.

This module serializes a Document to a versioned JSON structure and
rebuilds it through an explicit NodeRegistry. Node ids are reassigned on
load; layer ids and layer order are kept.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any
from uuid import UUID

from layergraph.core.blend import BlendMode
from layergraph.core.document import Document
from layergraph.core.errors import SerializationError
from layergraph.core.graph import DEFAULT_OUTPUT_SLOT, NodeGraph, NodeId
from layergraph.core.layers import Layer, LayerId
from layergraph.core.node_types import NodeRegistry

logger = logging.getLogger(__name__)


FORMAT_VERSION = 1


# --- Writing ---


def _graph_to_dict(graph: NodeGraph) -> dict[str, Any]:
    return {
        "nodes": [
            {
                "id": str(node.id),
                "type_name": node.type_name,
                "parameters": node.parameters,
            }
            for node in graph
        ],
        "connections": [
            {
                "from_node": str(conn.source),
                "from_slot": conn.output_name,
                "to_node": str(conn.target),
                "to_slot": conn.input_name,
            }
            for conn in graph.connections
        ],
    }


def _layer_to_dict(layer: Layer) -> dict[str, Any]:
    with layer.read():
        return {
            "id": str(layer.id),
            "name": layer.name,
            "visible": layer.visible,
            "opacity": layer.opacity,
            "blend_mode": layer.blend_mode.value,
            "output_node": str(layer.output_node) if layer.output_node is not None else None,
            "node_graph": _graph_to_dict(layer.graph),
        }


def document_to_dict(document: Document) -> dict[str, Any]:
    """Convert a document to a JSON-compatible dictionary."""
    layers = document.layers
    return {
        "version": FORMAT_VERSION,
        "layers": [_layer_to_dict(layer) for layer in layers],
        "layer_order": [str(layer.id) for layer in layers],
    }


def dumps(document: Document, indent: int | None = 2) -> str:
    """Serialize a document to a JSON string."""
    try:
        return json.dumps(document_to_dict(document), indent=indent)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Document is not serializable: {e}") from e


def save_document(document: Document, path: Path | str) -> Path:
    """
    Save a document to disk.

    Returns:
        Path where the document was saved
    """
    path = Path(path)
    text = dumps(document)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.info("Saved document with %d layer(s) to %s", len(document), path)
    return path


# --- Reading ---


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, dict):
        raise SerializationError(f"Expected an object, got {type(data).__name__}", context)
    if key not in data:
        raise SerializationError(f"Missing key '{key}'", context)
    return data[key]


def _require_str(data: Any, key: str, context: str) -> str:
    value = _require(data, key, context)
    if not isinstance(value, str):
        raise SerializationError(f"Expected a string, got {type(value).__name__}", f"{context}.{key}")
    return value


def _require_bool(data: Any, key: str, context: str) -> bool:
    value = _require(data, key, context)
    if not isinstance(value, bool):
        raise SerializationError(f"Expected true or false, got {value!r}", f"{context}.{key}")
    return value


def _require_number(data: Any, key: str, context: str) -> float:
    value = _require(data, key, context)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise SerializationError(f"Expected a finite number, got {value!r}", f"{context}.{key}")
    return float(value)


def _parse_uuid(value: Any, context: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        raise SerializationError(f"Invalid id: {value!r}", context) from None


def _layer_from_dict(
    data: dict[str, Any],
    registry: NodeRegistry,
    max_depth: int,
) -> Layer:
    layer_id = LayerId(_parse_uuid(_require(data, "id", "layer"), "layer.id"))
    name = _require_str(data, "name", f"layer {layer_id}")
    context = f"layer '{name}'"

    mode_name = _require(data, "blend_mode", context)
    try:
        blend_mode = BlendMode.from_name(str(mode_name))
    except ValueError:
        raise SerializationError(f"Unknown blend mode: {mode_name!r}", f"{context}.blend_mode") from None

    layer = Layer.create(
        name,
        visible=_require_bool(data, "visible", context),
        opacity=_require_number(data, "opacity", context),
        blend_mode=blend_mode,
        max_depth=max_depth,
        layer_id=layer_id,
    )

    graph_data = _require(data, "node_graph", context)
    id_map: dict[str, NodeId] = {}
    for node_data in _require(graph_data, "nodes", f"{context}.node_graph"):
        saved_id = str(_require(node_data, "id", f"{context}.node_graph.nodes"))
        type_name = _require_str(node_data, "type_name", f"{context}.node_graph.nodes")
        node = registry.create_node(type_name, node_data.get("parameters"))
        id_map[saved_id] = layer.add_node(node)

    for conn in _require(graph_data, "connections", f"{context}.node_graph"):
        conn_context = f"{context}.node_graph.connections"
        from_saved = str(_require(conn, "from_node", conn_context))
        to_saved = str(_require(conn, "to_node", conn_context))
        for saved in (from_saved, to_saved):
            if saved not in id_map:
                raise SerializationError(f"Connection refers to unknown node {saved}", conn_context)
        from_slot = conn.get("from_slot", DEFAULT_OUTPUT_SLOT)
        if from_slot != DEFAULT_OUTPUT_SLOT:
            raise SerializationError(f"Unknown output slot: {from_slot!r}", conn_context)
        layer.connect(id_map[from_saved], id_map[to_saved], _require_str(conn, "to_slot", conn_context))

    output = data.get("output_node")
    if output is not None:
        if str(output) not in id_map:
            raise SerializationError(f"Output node {output} is not in the graph", f"{context}.output_node")
        layer.set_output_node(id_map[str(output)])

    return layer


def document_from_dict(
    data: dict[str, Any],
    registry: NodeRegistry,
    **document_options: Any,
) -> Document:
    """
    Rebuild a document from a dictionary produced by document_to_dict().

    Nodes are created through `registry` and connections re-run the
    acyclicity check. Extra keyword arguments are passed to Document().

    Raises:
        SerializationError: If the structure is malformed
        NodeError: If a node cannot be created or a connection is rejected
    """
    version = _require(data, "version", "document")
    if version != FORMAT_VERSION:
        raise SerializationError(f"Unsupported format version: {version!r}", "document.version")

    document = Document(**document_options)
    layers: dict[LayerId, Layer] = {}
    for layer_data in _require(data, "layers", "document"):
        layer = _layer_from_dict(layer_data, registry, document.max_evaluation_depth)
        if layer.id in layers:
            raise SerializationError(f"Duplicate layer id {layer.id}", "document.layers")
        layers[layer.id] = layer

    order = [
        LayerId(_parse_uuid(value, "document.layer_order"))
        for value in _require(data, "layer_order", "document")
    ]
    if len(order) != len(layers) or set(order) != set(layers):
        raise SerializationError(
            "layer_order must list every layer exactly once", "document.layer_order"
        )

    for layer_id in order:
        document.add_layer(layers[layer_id])
    return document


def loads(text: str, registry: NodeRegistry, **document_options: Any) -> Document:
    """Deserialize a document from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Invalid JSON: {e}") from e
    return document_from_dict(data, registry, **document_options)


def load_document(path: Path | str, registry: NodeRegistry, **document_options: Any) -> Document:
    """
    Load a document from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SerializationError: If the file format is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        document = loads(f.read(), registry, **document_options)
    logger.info("Loaded document with %d layer(s) from %s", len(document), path)
    return document
