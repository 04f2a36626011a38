"""
Blend Node - Composite two images inside a graph.

Input order follows binding order: the first bound input is the bottom
image, the second is blended on top of it.
"""

from __future__ import annotations

from typing import Any

from layergraph.core.blend import BlendMode, blend
from layergraph.core.data_types import ImageData
from layergraph.core.node_types import NodeCategory, NodeFactory, ParameterDefinition
from layergraph.nodes.base import require_image


class BlendNode:
    def __init__(self, mode: BlendMode = BlendMode.NORMAL, opacity: float = 1.0):
        self.mode = mode
        self.opacity = min(max(float(opacity), 0.0), 1.0)

    def compute(self, inputs: list[Any]) -> ImageData:
        bottom = require_image(inputs, 0)
        top = require_image(inputs, 1)
        return blend(bottom, top, self.mode, self.opacity)


class BlendNodeFactory(NodeFactory):
    type_name = "Blend"
    category = NodeCategory.UTILITY
    description = "Blend the second input over the first"
    parameter_definitions = [
        ParameterDefinition.enum("mode", [m.value for m in BlendMode], default=BlendMode.NORMAL.value),
        ParameterDefinition.float_param("opacity", default=1.0, min_value=0.0, max_value=1.0),
    ]

    def create(self, parameters: Any) -> BlendNode:
        params = self.resolve_parameters(parameters)
        return BlendNode(BlendMode(params["mode"]), params["opacity"])
