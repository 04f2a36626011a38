"""
Project Model - Project structure and settings.

This module defines the project data structure that bundles a document
with the settings it was created under, so both can be saved and loaded
together.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from layergraph.core.document import Document
from layergraph.core.errors import SerializationError
from layergraph.core.graph import NodeGraph
from layergraph.core.history import History
from layergraph.core.layers import Layer
from layergraph.core.node_types import NodeRegistry
from layergraph.core.workspace import document_from_dict, document_to_dict

logger = logging.getLogger(__name__)


@dataclass
class ProjectSettings:
    """
    Project-level settings.

    These settings affect the entire project and are saved with it.
    """
    # History
    max_history_steps: int = History.DEFAULT_MAX_STEPS

    # Evaluation
    max_evaluation_depth: int = NodeGraph.DEFAULT_MAX_DEPTH
    memoize_render: bool = True

    # Registry
    debug_registry: bool = False

    # Layers
    default_layer_name: str = "Layer"

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "max_history_steps": self.max_history_steps,
            "max_evaluation_depth": self.max_evaluation_depth,
            "memoize_render": self.memoize_render,
            "debug_registry": self.debug_registry,
            "default_layer_name": self.default_layer_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectSettings:
        """Create settings from dictionary."""
        return cls(
            max_history_steps=data.get("max_history_steps", History.DEFAULT_MAX_STEPS),
            max_evaluation_depth=data.get("max_evaluation_depth", NodeGraph.DEFAULT_MAX_DEPTH),
            memoize_render=data.get("memoize_render", True),
            debug_registry=data.get("debug_registry", False),
            default_layer_name=data.get("default_layer_name", "Layer"),
        )

    def document_options(self) -> dict[str, Any]:
        """Keyword arguments for Document()."""
        return {
            "max_history_steps": self.max_history_steps,
            "max_evaluation_depth": self.max_evaluation_depth,
            "memoize_render": self.memoize_render,
        }


@dataclass
class Project:
    """
    A complete project containing the document and settings.

    Projects can be saved to and loaded from disk.
    """
    id: UUID
    name: str
    document: Document
    settings: ProjectSettings = field(default_factory=ProjectSettings)

    # File location (None for unsaved projects)
    path: Path | None = None

    # Timestamps
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)

    # State
    is_modified: bool = False

    @classmethod
    def create(cls, name: str = "Untitled", settings: ProjectSettings | None = None) -> Project:
        """Create a new empty project."""
        settings = settings or ProjectSettings()
        return cls(
            id=uuid4(),
            name=name,
            document=Document(**settings.document_options()),
            settings=settings,
        )

    def create_registry(self) -> NodeRegistry:
        """An empty registry configured from the project settings."""
        return NodeRegistry(debug_mode=self.settings.debug_registry)

    def new_layer(self) -> Layer:
        """Build a layer named from the settings; it is not added."""
        return self.document.new_layer(
            f"{self.settings.default_layer_name} {len(self.document) + 1}"
        )

    def mark_modified(self) -> None:
        """Mark the project as having unsaved changes."""
        self.is_modified = True
        self.modified_at = datetime.now()

    def mark_saved(self, path: Path | None = None) -> None:
        """Mark the project as saved."""
        self.is_modified = False
        if path:
            self.path = path

    @property
    def display_name(self) -> str:
        """Get the display name with modified indicator."""
        modified = "* " if self.is_modified else ""
        return f"{modified}{self.name}"

    @property
    def is_saved(self) -> bool:
        """Check if this project has been saved to disk."""
        return self.path is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert project to dictionary for serialization."""
        return {
            "id": str(self.id),
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "settings": self.settings.to_dict(),
            "document": document_to_dict(self.document),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], registry: NodeRegistry) -> Project:
        """Create a project from dictionary."""
        try:
            settings = ProjectSettings.from_dict(data.get("settings", {}))
            document = document_from_dict(
                data["document"], registry, **settings.document_options()
            )
            return cls(
                id=UUID(data["id"]),
                name=data["name"],
                document=document,
                settings=settings,
                created_at=datetime.fromisoformat(data["created_at"]),
                modified_at=datetime.fromisoformat(data["modified_at"]),
            )
        except KeyError as e:
            raise SerializationError(f"Missing key {e}", "project") from e
        except ValueError as e:
            raise SerializationError(str(e), "project") from e

    def save(self, path: Path | str | None = None) -> Path:
        """
        Save the project to `path`, or to where it was last saved.

        Raises:
            ValueError: If no path is given and the project was never saved
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("Project has no path; pass one to save()")

        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        self.mark_saved(target)
        logger.info("Saved project '%s' to %s", self.name, target)
        return target

    @classmethod
    def load(cls, path: Path | str, registry: NodeRegistry) -> Project:
        """
        Load a project from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
            SerializationError: If the file format is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Project not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SerializationError(f"Invalid JSON: {e}", str(path)) from e

        project = cls.from_dict(data, registry)
        project.path = path
        logger.info("Loaded project '%s' from %s", project.name, path)
        return project
