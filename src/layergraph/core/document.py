"""
Document - Ordered layers, undo history, and the final composite.

The document owns its layers outright; callers reach a layer through
get_layer() and route structural edits (add/remove/move) through the
document so layer_order stays a permutation of the layer ids.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from layergraph.core.blend import BlendMode, blend
from layergraph.core.data_types import ImageData
from layergraph.core.errors import (
    InvalidInputTypeError,
    InvalidOperationError,
    LayerGraphError,
    LayerNotFoundError,
)
from layergraph.core.graph import NodeGraph, NodeId
from layergraph.core.history import Command, History
from layergraph.core.layers import Layer, LayerId
from layergraph.core.locks import ReadWriteLock

logger = logging.getLogger(__name__)


class Document:
    """
    A multi-layer document.

    Layers are composited in layer_order, first to last: the first
    contributing layer is the base and each later one is blended on top.
    """

    def __init__(
        self,
        max_history_steps: int = History.DEFAULT_MAX_STEPS,
        max_evaluation_depth: int = NodeGraph.DEFAULT_MAX_DEPTH,
        memoize_render: bool = True,
    ):
        self._layers: dict[LayerId, Layer] = {}
        self._layer_order: list[LayerId] = []
        self._lock = ReadWriteLock()
        self.history = History(max_history_steps)
        self.max_evaluation_depth = max_evaluation_depth
        self.memoize_render = memoize_render

    # --- History ---

    def execute_command(self, command: Command) -> None:
        self.history.execute(command)

    def undo(self) -> Command:
        return self.history.undo()

    def redo(self) -> Command:
        return self.history.redo()

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # --- Layer collection ---

    def new_layer(self, name: str | None = None) -> Layer:
        """Build a layer using this document's settings; it is not added."""
        if name is None:
            name = f"Layer {len(self._layers) + 1}"
        return Layer.create(name, max_depth=self.max_evaluation_depth)

    def add_layer(self, layer: Layer) -> LayerId:
        """Append a layer on top of the stack."""
        with self._lock.write():
            if layer.id in self._layers:
                raise InvalidOperationError(f"Layer {layer.id} is already in the document")
            self._layers[layer.id] = layer
            self._layer_order.append(layer.id)
        logger.debug("Added layer %s (%s)", layer.id, layer.name)
        return layer.id

    def insert_layer(self, layer: Layer, index: int) -> LayerId:
        """Insert a layer at a position in layer_order."""
        with self._lock.write():
            if layer.id in self._layers:
                raise InvalidOperationError(f"Layer {layer.id} is already in the document")
            if not 0 <= index <= len(self._layer_order):
                raise InvalidOperationError(f"Invalid layer index: {index}")
            self._layers[layer.id] = layer
            self._layer_order.insert(index, layer.id)
        return layer.id

    def remove_layer(self, layer_id: LayerId) -> Layer:
        """
        Remove a layer and return it.

        Raises:
            LayerNotFoundError: If the layer is not in the document
        """
        with self._lock.write():
            layer = self._layers.pop(layer_id, None)
            if layer is None:
                raise LayerNotFoundError(layer_id)
            self._layer_order.remove(layer_id)
        logger.debug("Removed layer %s", layer_id)
        return layer

    def move_layer(self, layer_id: LayerId, new_index: int) -> None:
        """
        Move a layer to a new position in layer_order.

        Raises:
            LayerNotFoundError: If the layer is not in the document
            InvalidOperationError: If new_index is out of range
        """
        with self._lock.write():
            if layer_id not in self._layers:
                raise LayerNotFoundError(layer_id)
            if not 0 <= new_index < len(self._layer_order):
                raise InvalidOperationError(f"Invalid layer index: {new_index}")
            self._layer_order.remove(layer_id)
            self._layer_order.insert(new_index, layer_id)

    def get_layer(self, layer_id: LayerId) -> Layer | None:
        with self._lock.read():
            return self._layers.get(layer_id)

    def require_layer(self, layer_id: LayerId) -> Layer:
        """Like get_layer(), but raises LayerNotFoundError."""
        layer = self.get_layer(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        return layer

    def index_of(self, layer_id: LayerId) -> int:
        with self._lock.read():
            try:
                return self._layer_order.index(layer_id)
            except ValueError:
                raise LayerNotFoundError(layer_id) from None

    @property
    def layer_ids(self) -> list[LayerId]:
        """Layer ids in compositing order (copy)."""
        with self._lock.read():
            return self._layer_order.copy()

    @property
    def layers(self) -> list[Layer]:
        """Layers in compositing order."""
        with self._lock.read():
            return [self._layers[lid] for lid in self._layer_order]

    @property
    def visible_layers(self) -> list[Layer]:
        return [layer for layer in self.layers if layer.visible]

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self._layers

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    # --- Compositing ---

    def _contributions(self, strict: bool) -> list[tuple[LayerId, BlendMode, float, ImageData]]:
        """Evaluate visible layers with an output node, in layer order."""
        results: list[tuple[LayerId, BlendMode, float, ImageData]] = []
        with self._lock.read():
            for layer_id in self._layer_order:
                layer = self._layers[layer_id]
                with layer.read():
                    if not layer.visible or layer.output_node is None:
                        continue
                    mode, opacity = layer.blend_mode, layer.opacity
                    cache = {} if self.memoize_render else None
                    try:
                        artifact = layer.evaluate(cache)
                    except LayerGraphError as e:
                        if strict:
                            raise
                        logger.warning("Skipping layer '%s': %s", layer.name, e)
                        continue
                if not isinstance(artifact, ImageData):
                    if strict:
                        raise InvalidInputTypeError("ImageData", artifact)
                    logger.warning(
                        "Skipping layer '%s': output is %s, not an image",
                        layer.name, type(artifact).__name__,
                    )
                    continue
                results.append((layer_id, mode, opacity, artifact))
        return results

    def evaluate_all(self) -> list[tuple[LayerId, ImageData]]:
        """
        Evaluate every visible layer with an output node, in layer order.

        Layers that fail or produce something other than an image are
        skipped (and logged).
        """
        return [(layer_id, image) for layer_id, _, _, image in self._contributions(strict=False)]

    def render(self, strict: bool = False) -> ImageData | None:
        """
        Composite visible layers into one image.

        The first contributing layer seeds the result as-is; each later one
        is blended on top with its blend mode and opacity. Returns None when
        no layer contributes. With strict=True any layer evaluation failure
        propagates, and a non-image output raises InvalidInputTypeError.
        """
        accumulator: ImageData | None = None
        for _, mode, opacity, image in self._contributions(strict):
            if accumulator is None:
                accumulator = image.copy()
            else:
                accumulator = blend(accumulator, image, mode, opacity)
        return accumulator

    def export(self) -> ImageData:
        """
        Strict render for export.

        Raises:
            InvalidOperationError: If no layer contributes an image
            LayerGraphError: Any layer evaluation failure
        """
        image = self.render(strict=True)
        if image is None:
            raise InvalidOperationError("Nothing to export: no visible layer has an output")
        return image
