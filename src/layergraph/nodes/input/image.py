"""
Image Input Node - Provides a source image to the graph.

The node either loads a file (when `path` is set) or produces a solid
colour image of the configured size.
"""

from __future__ import annotations

import logging
from typing import Any

from layergraph.core.data_types import ImageData
from layergraph.core.node_types import NodeCategory, NodeFactory, ParameterDefinition

logger = logging.getLogger(__name__)


class ImageNode:
    """Source node; ignores any bound inputs."""

    def __init__(self, width: int, height: int, color: list[int], path: str = ""):
        self.width = int(width)
        self.height = int(height)
        self.color = list(color)
        self.path = path

    def compute(self, inputs: list[Any]) -> ImageData:
        if self.path:
            logger.debug("Loading image from %s", self.path)
            return ImageData.from_file(self.path)
        return ImageData.solid(self.width, self.height, self.color)


class ImageNodeFactory(NodeFactory):
    """Factory for image source nodes."""

    type_name = "Image"
    category = NodeCategory.INPUT
    description = "Load an image from file, or fill one with a solid colour"
    parameter_definitions = [
        ParameterDefinition.integer("width", default=64, min_value=1,
                                    description="Width of the solid image"),
        ParameterDefinition.integer("height", default=64, min_value=1,
                                    description="Height of the solid image"),
        ParameterDefinition.color("color", default=[0, 0, 0, 255],
                                  description="Fill colour of the solid image"),
        ParameterDefinition.file_path("path", description="Image file to load instead"),
    ]

    def create(self, parameters: Any) -> ImageNode:
        params = self.resolve_parameters(parameters)
        return ImageNode(params["width"], params["height"], params["color"], params["path"])
