"""
Node Graph Model - Core data structures for layer dataflow graphs.

This module defines the fundamental building blocks:
- NodeCapability: The compute contract a node payload implements
- Node: A capability with a stable identity and named input bindings
- Connection: A producer -> consumer binding, as persisted
- NodeGraph: Owns nodes and edges, keeps them acyclic, evaluates on demand
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, NewType, Protocol, runtime_checkable
from uuid import UUID, uuid4

from layergraph.core.errors import (
    ComputationError,
    CycleDetectedError,
    EvaluationDepthError,
    NodeError,
    NodeNotFoundError,
    NodeValidationError,
)
from layergraph.core.locks import ReadWriteLock

logger = logging.getLogger(__name__)


# Type aliases for clarity
NodeId = NewType("NodeId", UUID)

# Nodes expose a single output; persisted connections name it explicitly.
DEFAULT_OUTPUT_SLOT = "output"


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(uuid4())


@runtime_checkable
class NodeCapability(Protocol):
    """Protocol for node payloads."""

    def compute(self, inputs: list[Any]) -> Any:
        """
        Produce this node's artifact.

        Args:
            inputs: Artifacts of the node's inputs, in binding order

        Returns:
            The artifact. Failures are raised as NodeError subclasses.
        """
        ...


@dataclass
class Connection:
    """
    A connection (wire) between two nodes.

    Connects the output of one node to a named input of another.
    """
    source: NodeId
    target: NodeId
    input_name: str
    output_name: str = DEFAULT_OUTPUT_SLOT


@dataclass(eq=False)
class Node:
    """
    A single node in a processing graph.

    Nodes have:
    - A unique ID, stable for the node's lifetime
    - The registered type name and the parameters it was built from
    - A capability instance that performs the computation
    - A map of input name -> producer node ID
    """
    id: NodeId
    type_name: str
    capability: Any
    parameters: Any = None
    inputs: dict[str, NodeId] = field(default_factory=dict)
    debug_info: dict[str, str] = field(default_factory=dict, repr=False)
    lock: ReadWriteLock = field(default_factory=ReadWriteLock, repr=False)

    @classmethod
    def create(cls, type_name: str, capability: Any, parameters: Any = None) -> Node:
        """Factory method to create a new node with a fresh ID."""
        return cls(
            id=new_node_id(),
            type_name=type_name,
            capability=capability,
            parameters=parameters,
        )

    def get_input(self, name: str) -> NodeId | None:
        """Get the producer bound to an input name."""
        return self.inputs.get(name)

    def add_debug_info(self, key: str, value: str) -> None:
        self.debug_info[key] = value

    def validate(self) -> None:
        """
        Self-validation run after construction.

        Raises:
            NodeValidationError: If the capability does not implement compute()
        """
        if not isinstance(self.capability, NodeCapability):
            raise NodeValidationError(
                f"Node type '{self.type_name}' produced {type(self.capability).__name__}, "
                "which has no compute() method"
            )
        check = getattr(self.capability, "validate", None)
        if callable(check):
            check()

    def compute(self, inputs: list[Any]) -> Any:
        """Run the capability under this node's read lock."""
        with self.lock.read():
            try:
                return self.capability.compute(inputs)
            except NodeError:
                raise
            except Exception as e:
                raise ComputationError(f"Node '{self.type_name}' ({self.id}) failed: {e}") from e


@dataclass
class _Frame:
    """A node whose inputs are still being evaluated."""
    node: Node
    producers: list[NodeId]
    depth: int
    inputs: list[Any] = field(default_factory=list)


class NodeGraph:
    """
    A directed acyclic graph of nodes.

    Edges run producer -> consumer. Every committed mutation leaves the
    edge set acyclic, and the node index map stays bijective with the
    node set.
    """

    DEFAULT_MAX_DEPTH = 256

    def __init__(self, name: str = "Untitled", max_depth: int = DEFAULT_MAX_DEPTH):
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.id: UUID = uuid4()
        self.name: str = name
        self.max_depth: int = max_depth
        self._nodes: dict[NodeId, Node] = {}
        self._edges: set[tuple[NodeId, NodeId]] = set()
        self._ids: list[NodeId] = []
        self._index: dict[NodeId, int] = {}

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view)."""
        return self._nodes.copy()

    def add_node(self, node: Node) -> NodeId:
        """Add a node to the graph and return its ID."""
        if node.id in self._nodes:
            raise NodeValidationError(f"Node {node.id} is already in the graph")
        self._nodes[node.id] = node
        self._index[node.id] = len(self._ids)
        self._ids.append(node.id)
        logger.debug("Added node %s (%s) to graph '%s'", node.id, node.type_name, self.name)
        return node.id

    def remove_node(self, node_id: NodeId) -> Node:
        """
        Remove a node, its edges, and every input binding that refers to it.

        Returns the removed node.
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            raise NodeNotFoundError(node_id)

        self._edges = {
            (src, dst) for src, dst in self._edges
            if src != node_id and dst != node_id
        }
        for consumer in self._nodes.values():
            stale = [name for name, src in consumer.inputs.items() if src == node_id]
            if stale:
                with consumer.lock.write():
                    for name in stale:
                        del consumer.inputs[name]

        self._ids.remove(node_id)
        self._index = {nid: i for i, nid in enumerate(self._ids)}
        logger.debug("Removed node %s from graph '%s'", node_id, self.name)
        return node

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def node_index(self, node_id: NodeId) -> int:
        """Dense index of a node, in insertion order."""
        try:
            return self._index[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def node_at(self, index: int) -> NodeId:
        """Inverse of node_index()."""
        return self._ids[index]

    # --- Connection operations ---

    @property
    def edges(self) -> frozenset[tuple[NodeId, NodeId]]:
        """Producer -> consumer pairs."""
        return frozenset(self._edges)

    @property
    def connections(self) -> list[Connection]:
        """Input bindings as connections, in node and binding order."""
        return [
            Connection(source=src, target=node_id, input_name=name)
            for node_id in self._ids
            for name, src in self._nodes[node_id].inputs.items()
        ]

    def connect(self, from_id: NodeId, to_id: NodeId, input_name: str) -> None:
        """
        Bind input `input_name` of `to_id` to the output of `from_id`.

        Rebinding an input replaces the old producer; the old edge is dropped
        when no other input of the consumer still uses it.

        Raises:
            NodeNotFoundError: If either node is absent
            CycleDetectedError: If the edge would close a cycle. The graph is
                left exactly as it was.
        """
        for nid in (from_id, to_id):
            if nid not in self._nodes:
                raise NodeNotFoundError(nid)

        edge = (from_id, to_id)
        if edge not in self._edges:
            self._edges.add(edge)
            if self._reaches(to_id, from_id):
                self._edges.discard(edge)
                logger.debug("Rejected connection %s -> %s: cycle", from_id, to_id)
                raise CycleDetectedError(from_id, to_id)

        consumer = self._nodes[to_id]
        with consumer.lock.write():
            previous = consumer.inputs.get(input_name)
            consumer.inputs[input_name] = from_id
        if previous is not None and previous != from_id:
            self._drop_edge_if_unused(previous, to_id)

        logger.debug("Connected %s -> %s.%s", from_id, to_id, input_name)

    def disconnect(self, to_id: NodeId, input_name: str) -> NodeId | None:
        """
        Remove the binding of `input_name` on `to_id`.

        Returns the producer that was bound, or None if the input was unbound.
        """
        consumer = self._nodes.get(to_id)
        if consumer is None:
            raise NodeNotFoundError(to_id)
        with consumer.lock.write():
            previous = consumer.inputs.pop(input_name, None)
        if previous is not None:
            self._drop_edge_if_unused(previous, to_id)
        return previous

    def get_input_connection(self, node_id: NodeId, input_name: str) -> Connection | None:
        """Get the connection feeding into a specific input."""
        node = self._nodes.get(node_id)
        if node is None or input_name not in node.inputs:
            return None
        return Connection(source=node.inputs[input_name], target=node_id, input_name=input_name)

    def _drop_edge_if_unused(self, producer: NodeId, consumer_id: NodeId) -> None:
        consumer = self._nodes[consumer_id]
        if producer not in consumer.inputs.values():
            self._edges.discard((producer, consumer_id))

    # --- Evaluation ---

    def evaluate(self, node_id: NodeId, cache: dict[NodeId, Any] | None = None) -> Any:
        """
        Evaluate a node, evaluating its inputs first (depth-first).

        Without a cache every call recomputes from scratch, including nodes
        reached through more than one consumer. Passing a dict memoizes
        results by node ID for the lifetime of that dict.

        Raises:
            NodeNotFoundError: If the node or a bound producer is absent
            EvaluationDepthError: If the producer chain exceeds max_depth
            NodeError: Any failure raised by a capability
        """
        return self._evaluate(node_id, cache, 0)

    def _evaluate(self, node_id: NodeId, cache: dict[NodeId, Any] | None, depth: int) -> Any:
        # Explicit stack: chains deeper than the interpreter's recursion
        # limit must still end in a result or EvaluationDepthError.
        root = self._open_frame(node_id, cache, depth)
        if root is None:
            return cache[node_id]

        stack = [root]
        result: Any = None
        while stack:
            frame = stack[-1]
            if len(frame.inputs) < len(frame.producers):
                src = frame.producers[len(frame.inputs)]
                child = self._open_frame(src, cache, frame.depth + 1)
                if child is None:
                    frame.inputs.append(cache[src])
                else:
                    stack.append(child)
                continue

            stack.pop()
            result = frame.node.compute(frame.inputs)
            if cache is not None:
                cache[frame.node.id] = result
            if stack:
                stack[-1].inputs.append(result)
        return result

    def _open_frame(
        self,
        node_id: NodeId,
        cache: dict[NodeId, Any] | None,
        depth: int,
    ) -> _Frame | None:
        """A pending evaluation of `node_id`, or None when the cache holds it."""
        if depth > self.max_depth:
            raise EvaluationDepthError(node_id, self.max_depth)

        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        if cache is not None and node_id in cache:
            return None

        with node.lock.read():
            producers = list(node.inputs.values())
        return _Frame(node=node, producers=producers, depth=depth)

    def validate(self) -> None:
        """
        Check that every input binding refers to a node in this graph.

        Raises:
            NodeNotFoundError: For the first dangling producer reference
        """
        for node in self._nodes.values():
            for producer in node.inputs.values():
                if producer not in self._nodes:
                    raise NodeNotFoundError(producer)
        if set(self._index) != set(self._nodes) or len(self._ids) != len(self._nodes):
            raise NodeValidationError(f"Node index of graph '{self.name}' is out of sync")

    # --- Graph analysis ---

    def _successors(self) -> dict[NodeId, list[NodeId]]:
        succ: dict[NodeId, list[NodeId]] = {nid: [] for nid in self._nodes}
        for src, dst in self._edges:
            succ[src].append(dst)
        return succ

    def _reaches(self, start: NodeId, target: NodeId) -> bool:
        """True if `target` is reachable from `start` (a node reaches itself)."""
        succ = self._successors()
        visited: set[NodeId] = set()
        to_visit = [start]
        while to_visit:
            current = to_visit.pop()
            if current == target:
                return True
            if current in visited:
                continue
            visited.add(current)
            to_visit.extend(succ.get(current, ()))
        return False

    def get_execution_order(self) -> list[NodeId]:
        """
        Get nodes in topological order.

        Producers come before their consumers; ties keep insertion order.
        """
        indegree = {nid: 0 for nid in self._ids}
        for _, dst in self._edges:
            indegree[dst] += 1
        succ = self._successors()

        result: list[NodeId] = []
        ready = [nid for nid in self._ids if indegree[nid] == 0]
        while ready:
            node_id = ready.pop(0)
            result.append(node_id)
            for nid in sorted(succ[node_id], key=self._index.__getitem__):
                indegree[nid] -= 1
                if indegree[nid] == 0:
                    ready.append(nid)

        if len(result) != len(self._nodes):
            # Unreachable while connect() guards every edge.
            raise NodeValidationError(f"Graph '{self.name}' contains a cycle")
        return result

    def get_output_nodes(self) -> list[Node]:
        """Nodes with no outgoing edges."""
        producers = {src for src, _ in self._edges}
        return [self._nodes[nid] for nid in self._ids if nid not in producers]

    def get_upstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that this node depends on (directly or indirectly)."""
        upstream: set[NodeId] = set()
        to_visit = [node_id]
        while to_visit:
            current = to_visit.pop()
            for src, dst in self._edges:
                if dst == current and src not in upstream:
                    upstream.add(src)
                    to_visit.append(src)
        return upstream

    def get_downstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that depend on this node (directly or indirectly)."""
        downstream: set[NodeId] = set()
        to_visit = [node_id]
        while to_visit:
            current = to_visit.pop()
            for src, dst in self._edges:
                if src == current and dst not in downstream:
                    downstream.add(dst)
                    to_visit.append(dst)
        return downstream

    # --- Utility ---

    def clear(self) -> None:
        """Remove all nodes and edges."""
        self._nodes.clear()
        self._edges.clear()
        self._ids.clear()
        self._index.clear()

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        """Iterate nodes in insertion order."""
        return (self._nodes[nid] for nid in self._ids)
