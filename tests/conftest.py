from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """
    Ensure `src/` is on sys.path so tests can import `layergraph`
    without requiring an editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"
    sys.path.insert(0, str(src_root))


@pytest.fixture
def registry():
    """A registry with every built-in node type registered."""
    from layergraph.core.node_types import NodeRegistry
    from layergraph.nodes import register_all_nodes

    return register_all_nodes(NodeRegistry())
