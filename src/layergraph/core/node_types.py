"""
Node Type System - Factories and the registry that builds nodes.

This module defines how node types are made available:
- ParameterDefinition: Describes a configurable parameter
- NodeFactory: Builds a capability instance from opaque parameters
- NodeRegistry: Name-keyed collection of factories; the only way to create nodes

Registries are explicit objects. Build one, register the factories you need,
and pass it to every create_node() and deserialization call.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, ClassVar

from layergraph.core.data_types import ParameterValue
from layergraph.core.errors import InvalidParameterError, NodeError, NodeValidationError
from layergraph.core.graph import Node

logger = logging.getLogger(__name__)


class ParameterType(Enum):
    """Types of node parameters."""
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ENUM = "enum"
    COLOR = "color"          # [r, g, b] or [r, g, b, a], 0-255
    FILE_PATH = "file_path"


class NodeCategory(Enum):
    """Categories for organizing node types."""
    INPUT = "input"
    FILTER = "filter"
    UTILITY = "utility"
    CUSTOM = "custom"


@dataclass
class ParameterDefinition:
    """
    Definition of a configurable parameter on a node type.

    Attributes:
        name: Parameter identifier
        param_type: Type of parameter
        default: Value used when the parameter is omitted
        min_value: Minimum value (for numeric types)
        max_value: Maximum value (for numeric types)
        options: Allowed values (for enum type)
        required: If True, the parameter must be supplied
        description: Short description
    """
    name: str
    param_type: ParameterType
    default: ParameterValue = None
    min_value: float | None = None
    max_value: float | None = None
    options: list[str] = field(default_factory=list)
    required: bool = False
    description: str = ""

    @classmethod
    def text(cls, name: str, default: str = "", required: bool = False,
             description: str = "") -> ParameterDefinition:
        """Factory for text parameter."""
        return cls(name=name, param_type=ParameterType.TEXT, default=default,
                   required=required, description=description)

    @classmethod
    def integer(cls, name: str, default: int = 0, min_value: int | None = None,
                max_value: int | None = None, description: str = "") -> ParameterDefinition:
        """Factory for integer parameter."""
        return cls(name=name, param_type=ParameterType.INTEGER, default=default,
                   min_value=min_value, max_value=max_value, description=description)

    @classmethod
    def float_param(cls, name: str, default: float = 0.0, min_value: float | None = None,
                    max_value: float | None = None, description: str = "") -> ParameterDefinition:
        """Factory for float parameter."""
        return cls(name=name, param_type=ParameterType.FLOAT, default=default,
                   min_value=min_value, max_value=max_value, description=description)

    @classmethod
    def boolean(cls, name: str, default: bool = False, description: str = "") -> ParameterDefinition:
        """Factory for boolean parameter."""
        return cls(name=name, param_type=ParameterType.BOOLEAN, default=default,
                   description=description)

    @classmethod
    def enum(cls, name: str, options: list[str], default: str | None = None,
             description: str = "") -> ParameterDefinition:
        """Factory for enum parameter."""
        return cls(name=name, param_type=ParameterType.ENUM,
                   default=default or (options[0] if options else None),
                   options=list(options), description=description)

    @classmethod
    def color(cls, name: str, default: list[int] | None = None,
              description: str = "") -> ParameterDefinition:
        """Factory for RGBA colour parameter."""
        return cls(name=name, param_type=ParameterType.COLOR,
                   default=default if default is not None else [0, 0, 0, 255],
                   description=description)

    @classmethod
    def file_path(cls, name: str, default: str = "", required: bool = False,
                  description: str = "") -> ParameterDefinition:
        """Factory for file path parameter."""
        return cls(name=name, param_type=ParameterType.FILE_PATH, default=default,
                   required=required, description=description)

    def validate(self, value: Any) -> None:
        """Raise InvalidParameterError if `value` does not fit this definition."""
        kind = self.param_type
        if kind in (ParameterType.TEXT, ParameterType.FILE_PATH):
            if not isinstance(value, str):
                raise InvalidParameterError(self.name, "expected a string")
        elif kind == ParameterType.BOOLEAN:
            if not isinstance(value, bool):
                raise InvalidParameterError(self.name, "expected a boolean")
        elif kind in (ParameterType.INTEGER, ParameterType.FLOAT):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameterError(self.name, "expected a number")
            if kind == ParameterType.INTEGER and not float(value).is_integer():
                raise InvalidParameterError(self.name, "expected an integer")
            if self.min_value is not None and value < self.min_value:
                raise InvalidParameterError(self.name, f"must be >= {self.min_value}")
            if self.max_value is not None and value > self.max_value:
                raise InvalidParameterError(self.name, f"must be <= {self.max_value}")
        elif kind == ParameterType.ENUM:
            if value not in self.options:
                raise InvalidParameterError(
                    self.name, f"must be one of {', '.join(self.options)}"
                )
        elif kind == ParameterType.COLOR:
            if (
                not isinstance(value, (list, tuple))
                or len(value) not in (3, 4)
                or any(isinstance(c, bool) or not isinstance(c, int) or not 0 <= c <= 255
                       for c in value)
            ):
                raise InvalidParameterError(self.name, "expected 3 or 4 integers in 0-255")


class NodeFactory(ABC):
    """
    Builds capability instances for one node type.

    Subclasses set `type_name` and implement create(). Declaring
    `parameter_definitions` makes the default validate_parameters() check
    them; with no declarations every parameter value is accepted.
    """

    type_name: ClassVar[str]
    category: ClassVar[NodeCategory] = NodeCategory.CUSTOM
    description: ClassVar[str] = ""
    parameter_definitions: ClassVar[list[ParameterDefinition]] = []

    @abstractmethod
    def create(self, parameters: Any) -> Any:
        """Build a capability instance from (already validated) parameters."""

    def validate_parameters(self, parameters: Any) -> None:
        """Raise InvalidParameterError if the parameters are unusable."""
        logger.debug("Validating parameters for node type: %s", self.type_name)
        if not self.parameter_definitions:
            return
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            raise InvalidParameterError("parameters", "expected an object")
        for definition in self.parameter_definitions:
            if definition.name in parameters:
                definition.validate(parameters[definition.name])
            elif definition.required:
                raise InvalidParameterError(definition.name, "missing required parameter")

    def resolve_parameters(self, parameters: Any) -> dict[str, Any]:
        """Declared defaults overlaid with the supplied values."""
        resolved = {d.name: d.default for d in self.parameter_definitions}
        if isinstance(parameters, dict):
            resolved.update(parameters)
        return resolved

    def get_debug_info(self) -> str:
        return f"Factory type: {self.type_name}"


class NodeRegistry:
    """
    Registry of available node factories.

    Nodes are created only through create_node(), so parameter validation
    and node self-validation always run.
    """

    def __init__(self, debug_mode: bool = False):
        self._factories: dict[str, NodeFactory] = {}
        self.debug_mode = debug_mode

    def register(self, factory: NodeFactory) -> None:
        """Register a factory; an existing factory with the same name is replaced."""
        logger.debug("Registering factory for node type: %s", factory.type_name)
        self._factories[factory.type_name] = factory

    def unregister(self, type_name: str) -> NodeFactory | None:
        """Unregister a factory."""
        return self._factories.pop(type_name, None)

    def get(self, type_name: str) -> NodeFactory | None:
        """Get a factory by type name."""
        return self._factories.get(type_name)

    def has_factory(self, type_name: str) -> bool:
        return type_name in self._factories

    def available_node_types(self) -> list[str]:
        """Registered type names, sorted."""
        return sorted(self._factories)

    def list_by_category(self, category: NodeCategory) -> list[NodeFactory]:
        """Get all factories in a category."""
        return [f for f in self._factories.values() if f.category == category]

    def search(self, query: str) -> list[NodeFactory]:
        """Search factories by type name or description."""
        query = query.lower()
        return [
            f for f in self._factories.values()
            if query in f.type_name.lower() or query in f.description.lower()
        ]

    def create_node(self, type_name: str, parameters: Any = None) -> Node:
        """
        Build a node of the given type.

        Stages: factory lookup, parameter validation, capability construction,
        node self-validation. A failure at any stage aborts construction.

        Raises:
            NodeValidationError: If no factory is registered for `type_name`
                (the message lists the registered types) or the node fails
                self-validation
            InvalidParameterError: If the parameters are rejected
            NodeError: Any other failure raised by the factory
        """
        logger.debug("Creating node of type: %s", type_name)

        factory = self._factories.get(type_name)
        if factory is None:
            available = ", ".join(self.available_node_types())
            message = f"No factory registered for node type: {type_name}. Available types: {available}"
            logger.error(message)
            raise NodeValidationError(message)

        try:
            factory.validate_parameters(parameters)
        except NodeError as e:
            logger.error("Parameter validation failed: %s", e)
            raise

        try:
            capability = factory.create(parameters)
        except NodeError as e:
            logger.error("Node creation failed: %s", e)
            raise
        except Exception as e:
            logger.error("Node creation failed: %s", e)
            raise NodeValidationError(f"Factory '{type_name}' failed: {e}") from e

        node = Node.create(type_name, capability, parameters)

        if self.debug_mode:
            node.add_debug_info("created_at", datetime.now(timezone.utc).isoformat())
            node.add_debug_info("parameters", json.dumps(parameters, default=str))

        try:
            node.validate()
        except NodeError as e:
            logger.error("Node validation failed: %s", e)
            raise
        except Exception as e:
            logger.error("Node validation failed: %s", e)
            raise NodeValidationError(f"Node of type '{type_name}' failed validation: {e}") from e

        logger.debug("Node %s created successfully", node.id)
        return node

    def dump_registry_info(self) -> str:
        """Human-readable summary of registered factories."""
        lines = [
            "Node Registry Information:",
            f"Total registered factories: {len(self._factories)}",
            "",
            "Registered Node Types:",
        ]
        for type_name in self.available_node_types():
            lines.append(f"- {type_name}")
            lines.append(f"  Debug Info: {self._factories[type_name].get_debug_info()}")
        return "\n".join(lines) + "\n"

    def clear(self) -> None:
        """Remove all registered factories."""
        self._factories.clear()

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._factories


def node_factory(
    type_name: str,
    category: NodeCategory = NodeCategory.CUSTOM,
    description: str = "",
    parameters: list[ParameterDefinition] | None = None,
) -> Callable[[Callable[[dict[str, Any]], Any]], type[NodeFactory]]:
    """
    Decorator to build a NodeFactory class from a constructor function.

    The function receives the declared defaults overlaid with the supplied
    parameters.

    Usage:
        @node_factory("Invert", NodeCategory.FILTER)
        def invert(params):
            return InvertNode()

        registry.register(invert())
    """
    def decorator(build: Callable[[dict[str, Any]], Any]) -> type[NodeFactory]:
        class _BuiltFactory(NodeFactory):
            def create(self, params: Any) -> Any:
                return build(self.resolve_parameters(params))

        _BuiltFactory.type_name = type_name
        _BuiltFactory.category = category
        _BuiltFactory.description = description or (build.__doc__ or "").strip()
        _BuiltFactory.parameter_definitions = list(parameters or [])
        _BuiltFactory.__name__ = _BuiltFactory.__qualname__ = (
            f"{build.__name__.title().replace('_', '')}Factory"
        )
        return _BuiltFactory
    return decorator
