"""
Tests for the document module: layer collection and compositing.
"""

import logging
import sys

import numpy as np
import pytest

from layergraph.core.blend import BlendMode
from layergraph.core.data_types import ImageData
from layergraph.core.document import Document
from layergraph.core.errors import (
    ComputationError,
    EvaluationDepthError,
    InvalidInputTypeError,
    InvalidOperationError,
    LayerNotFoundError,
)
from layergraph.core.graph import Node
from layergraph.core.layers import Layer, new_layer_id


class Solid:
    def __init__(self, color, size=(2, 2)):
        self.color = color
        self.size = size
        self.calls = 0

    def compute(self, inputs):
        self.calls += 1
        return ImageData.solid(*self.size, self.color)


class Passthrough:
    def compute(self, inputs):
        return inputs[0]


class Boom:
    def compute(self, inputs):
        raise RuntimeError("kaboom")


class Text:
    def compute(self, inputs):
        return "not an image"


def layer_with(capability, name="Layer", **kwargs):
    layer = Layer.create(name, **kwargs)
    node_id = layer.graph.add_node(Node.create(type(capability).__name__, capability))
    layer.set_output_node(node_id)
    return layer


class TestLayerCollection:
    """Tests for adding, removing and ordering layers."""

    def test_empty_document(self):
        document = Document()
        assert len(document) == 0
        assert document.layer_ids == []
        assert document.render() is None

    def test_new_layer_is_not_added(self):
        document = Document(max_evaluation_depth=12)
        layer = document.new_layer()
        assert layer.name == "Layer 1"
        assert layer.graph.max_depth == 12
        assert layer.id not in document

    def test_add_layer(self):
        document = Document()
        layer = Layer.create("a")

        layer_id = document.add_layer(layer)

        assert layer_id == layer.id
        assert document.layer_ids == [layer.id]
        assert document.get_layer(layer.id) is layer
        assert document.layer_count == 1

    def test_add_layer_twice_fails(self):
        document = Document()
        layer = Layer.create()
        document.add_layer(layer)
        with pytest.raises(InvalidOperationError):
            document.add_layer(layer)

    def test_insert_layer(self):
        document = Document()
        a, b, c = Layer.create("a"), Layer.create("b"), Layer.create("c")
        document.add_layer(a)
        document.add_layer(c)

        document.insert_layer(b, 1)

        assert [layer.name for layer in document.layers] == ["a", "b", "c"]
        with pytest.raises(InvalidOperationError):
            document.insert_layer(Layer.create(), 5)

    def test_remove_layer(self):
        document = Document()
        layer = Layer.create()
        document.add_layer(layer)

        assert document.remove_layer(layer.id) is layer
        assert len(document) == 0
        with pytest.raises(LayerNotFoundError):
            document.remove_layer(layer.id)

    def test_move_layer(self):
        document = Document()
        a, b, c = Layer.create("a"), Layer.create("b"), Layer.create("c")
        for layer in (a, b, c):
            document.add_layer(layer)

        document.move_layer(a.id, 2)

        assert document.layer_ids == [b.id, c.id, a.id]
        assert document.index_of(a.id) == 2

    def test_move_layer_errors(self):
        document = Document()
        layer = Layer.create()
        document.add_layer(layer)
        with pytest.raises(LayerNotFoundError):
            document.move_layer(new_layer_id(), 0)
        with pytest.raises(InvalidOperationError):
            document.move_layer(layer.id, 1)

    def test_get_and_require_layer(self):
        document = Document()
        missing = new_layer_id()
        assert document.get_layer(missing) is None
        with pytest.raises(LayerNotFoundError):
            document.require_layer(missing)
        with pytest.raises(LayerNotFoundError):
            document.index_of(missing)

    def test_layer_ids_is_a_copy(self):
        document = Document()
        document.add_layer(Layer.create())
        document.layer_ids.clear()
        assert len(document.layer_ids) == 1

    def test_visible_layers(self):
        document = Document()
        shown, hidden = Layer.create("shown"), Layer.create("hidden", visible=False)
        document.add_layer(shown)
        document.add_layer(hidden)
        assert document.visible_layers == [shown]
        assert list(document) == [shown, hidden]


class TestCompositing:
    """Tests for evaluate_all(), render() and export()."""

    def test_single_layer_renders_as_is(self):
        document = Document()
        document.add_layer(layer_with(Solid((10, 20, 30, 40)), opacity=0.1))

        image = document.render()

        assert image.pixel(0, 0) == (10, 20, 30, 40)

    def test_layers_blend_in_order(self):
        document = Document()
        document.add_layer(layer_with(Solid((128, 128, 128, 255)), "base"))
        document.add_layer(layer_with(Solid((255, 255, 255, 255)), "top", blend_mode=BlendMode.MULTIPLY))

        assert document.render().pixel(1, 1) == (128, 128, 128, 255)

        document.move_layer(document.layer_ids[1], 0)
        # White base, gray normal on top
        assert document.render().pixel(1, 1) == (128, 128, 128, 255)

    def test_opacity_applies_to_upper_layers(self):
        document = Document()
        document.add_layer(layer_with(Solid((0, 0, 0, 255))))
        document.add_layer(layer_with(Solid((255, 255, 255, 255)), opacity=0.5))

        assert document.render().pixel(0, 0) == (128, 128, 128, 255)

    def test_render_does_not_alias_layer_output(self):
        image = ImageData.solid(1, 1, (1, 2, 3, 255))

        class Fixed:
            def compute(self, inputs):
                return image

        document = Document()
        document.add_layer(layer_with(Fixed()))

        result = document.render()
        result.pixels[...] = 0

        assert image.pixel(0, 0) == (1, 2, 3, 255)

    def test_hidden_and_outputless_layers_are_skipped(self):
        document = Document()
        document.add_layer(layer_with(Solid((255, 0, 0, 255)), visible=False))
        document.add_layer(Layer.create("no output"))
        document.add_layer(layer_with(Solid((0, 255, 0, 255))))

        assert document.render().pixel(0, 0) == (0, 255, 0, 255)
        assert len(document.evaluate_all()) == 1

    def test_evaluate_all_pairs_ids_with_images(self):
        document = Document()
        a = layer_with(Solid((1, 1, 1, 255)))
        b = layer_with(Solid((2, 2, 2, 255)))
        document.add_layer(a)
        document.add_layer(b)

        results = document.evaluate_all()

        assert [layer_id for layer_id, _ in results] == [a.id, b.id]
        assert results[1][1].pixel(0, 0) == (2, 2, 2, 255)

    def test_tolerant_render_skips_failing_layers(self, caplog):
        document = Document()
        document.add_layer(layer_with(Solid((9, 9, 9, 255))))
        document.add_layer(layer_with(Boom(), "broken"))
        document.add_layer(layer_with(Text(), "text"))

        with caplog.at_level(logging.WARNING, logger="layergraph.core.document"):
            image = document.render()

        assert image.pixel(0, 0) == (9, 9, 9, 255)
        assert "broken" in caplog.text
        assert "text" in caplog.text

    def test_strict_render_propagates(self):
        document = Document()
        document.add_layer(layer_with(Solid((9, 9, 9, 255))))
        document.add_layer(layer_with(Boom()))

        with pytest.raises(ComputationError):
            document.render(strict=True)

    def test_strict_render_rejects_non_images(self):
        document = Document()
        document.add_layer(layer_with(Text()))

        with pytest.raises(InvalidInputTypeError):
            document.render(strict=True)

    def test_export(self):
        document = Document()
        document.add_layer(layer_with(Solid((5, 6, 7, 255))))
        assert document.export().pixel(0, 0) == (5, 6, 7, 255)

    def test_export_empty_document_fails(self):
        with pytest.raises(InvalidOperationError):
            Document().export()

    def test_render_memoizes_shared_producers(self):
        source = Solid((50, 50, 50, 255))
        layer = Layer.create()
        src = layer.graph.add_node(Node.create("Solid", source))
        left = layer.graph.add_node(Node.create("Passthrough", Passthrough()))
        right = layer.graph.add_node(Node.create("Passthrough", Passthrough()))

        class Pick:
            def compute(self, inputs):
                return inputs[0]

        out = layer.graph.add_node(Node.create("Pick", Pick()))
        layer.graph.connect(src, left, "in")
        layer.graph.connect(src, right, "in")
        layer.graph.connect(left, out, "a")
        layer.graph.connect(right, out, "b")
        layer.set_output_node(out)

        memoized = Document()
        memoized.add_layer(layer)
        memoized.render()
        assert source.calls == 1

        memoized.remove_layer(layer.id)
        plain = Document(memoize_render=False)
        plain.add_layer(layer)
        plain.render()
        assert source.calls == 3

    def test_deep_chain_renders_with_high_depth_limit(self):
        length = sys.getrecursionlimit() + 500
        document = Document(max_evaluation_depth=length + 10)
        layer = document.new_layer()
        previous = layer.add_node(Node.create("Solid", Solid((7, 8, 9, 255))))
        for _ in range(length):
            current = layer.add_node(Node.create("Passthrough", Passthrough()))
            layer.connect(previous, current, "in")
            previous = current
        layer.set_output_node(previous)
        document.add_layer(layer)

        assert document.render().pixel(0, 0) == (7, 8, 9, 255)

    def test_deep_chain_over_limit_is_skipped(self):
        document = Document(max_evaluation_depth=2)
        layer = document.new_layer()
        previous = layer.add_node(Node.create("Solid", Solid((7, 8, 9, 255))))
        for _ in range(3):
            current = layer.add_node(Node.create("Passthrough", Passthrough()))
            layer.connect(previous, current, "in")
            previous = current
        layer.set_output_node(previous)
        document.add_layer(layer)

        assert document.render() is None
        with pytest.raises(EvaluationDepthError):
            document.render(strict=True)

    def test_mismatched_layer_sizes(self):
        document = Document()
        document.add_layer(layer_with(Solid((0, 0, 0, 255), size=(4, 4))))
        document.add_layer(layer_with(Solid((255, 255, 255, 255), size=(2, 3))))

        image = document.render()

        assert image.size == (2, 3)
        assert np.all(image.pixels == 255)


class TestHistoryDelegation:
    def test_document_history(self):
        document = Document(max_history_steps=3)
        assert document.history.max_steps == 3
        assert not document.can_undo()
        assert not document.can_redo()
