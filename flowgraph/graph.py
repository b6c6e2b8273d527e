"""Processor graphs: nodes, typed edges, validation and execution."""

from __future__ import annotations

import uuid as _uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, NamedTuple, Optional, Union

from flowgraph.processor import (
    ConstantProcessor,
    IOData,
    ProcessorValues,
    TypeId,
    shallow_clone,
)

ProcessorIdLike = Union[_uuid.UUID, str, bytes]


def _to_uuid(value: ProcessorIdLike) -> _uuid.UUID:
    if isinstance(value, _uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)):
        return _uuid.UUID(bytes=bytes(value))
    if isinstance(value, str):
        return _uuid.UUID(value)
    raise TypeError(f"cannot use {type(value).__name__} as a processor id")


@dataclass(frozen=True, order=True)
class NodeId:
    """Identifies a node within a graph."""

    value: int

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class NodeEdge:
    """A connection from an output of one node to an input of another."""

    from_node: NodeId
    from_arg: int
    to_node: NodeId
    to_arg: int

    def to_dict(self) -> dict[str, list[int]]:
        return {
            "from": [self.from_node.value, self.from_arg],
            "to": [self.to_node.value, self.to_arg],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeEdge":
        try:
            from_node, from_arg = data["from"]
            to_node, to_arg = data["to"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"malformed edge: {data!r}") from exc
        return cls(NodeId(int(from_node)), int(from_arg), NodeId(int(to_node)), int(to_arg))


class GraphError(Exception):
    """Base class for graph construction errors."""

    description = "Graph error"

    def __init__(self) -> None:
        super().__init__(self.description)


class SelfReferenceError(GraphError):
    description = "Node referenced itself"

    def __init__(self, edge: NodeEdge) -> None:
        super().__init__()
        self.edge = edge


class ArgNotFoundError(GraphError):
    description = "Node argument not found"

    def __init__(self, edge: NodeEdge) -> None:
        super().__init__()
        self.edge = edge


class NodeNotFoundError(GraphError):
    description = "Node not found"

    def __init__(self, edge: NodeEdge) -> None:
        super().__init__()
        self.edge = edge


class TypeMismatchError(GraphError):
    description = "Node argument type mismatch"

    def __init__(self, edge: NodeEdge, from_type: TypeId, to_type: TypeId) -> None:
        super().__init__()
        self.edge = edge
        self.from_type = from_type
        self.to_type = to_type


class GraphCycleError(GraphError):
    description = "Node argument type mismatch"

    def __init__(self, node_id: NodeId) -> None:
        super().__init__()
        self.node_id = node_id


class ArgNameNotFoundError(GraphError):
    description = "Node argument name not found"

    def __init__(self, node_id: NodeId, name: str) -> None:
        super().__init__()
        self.node_id = node_id
        self.name = name


class ProcessorNotFoundError(GraphError):
    description = "Processor not found for node"

    def __init__(self, processor_id: _uuid.UUID, node_id: NodeId) -> None:
        super().__init__()
        self.processor_id = processor_id
        self.node_id = node_id


@dataclass
class Node:
    """A graph node: an id and the processor it runs."""

    id: NodeId
    processor: Any

    @classmethod
    def from_constants(cls, node_id: NodeId, values: Iterable[IOData]) -> "Node":
        return cls(node_id, ConstantProcessor(list(values)))

    @classmethod
    def from_processor(cls, node_id: NodeId, processor_class: Callable[[], Any]) -> "Node":
        return cls(node_id, processor_class())

    @staticmethod
    def make_edge(from_node: "Node", from_arg: str, to_node: "Node", to_arg: str) -> NodeEdge:
        """Build an edge between named arguments of two nodes."""
        from_idx = _last_index(from_node.processor.output_names(), from_arg)
        if from_idx is None:
            raise ArgNameNotFoundError(from_node.id, from_arg)
        to_idx = _last_index(to_node.processor.input_names(), to_arg)
        if to_idx is None:
            raise ArgNameNotFoundError(to_node.id, to_arg)
        return NodeEdge(from_node.id, from_idx, to_node.id, to_idx)


def _last_index(names: Iterable[str], wanted: str) -> Optional[int]:
    found = None
    for idx, name in enumerate(names):
        if name == wanted:
            found = idx
    return found


class Graph:
    """A validated, topologically ordered processor graph."""

    def __init__(self, nodes: list[Node], edges: list[NodeEdge]) -> None:
        self._nodes = nodes
        self._edges = edges
        self._index = {node.id: idx for idx, node in enumerate(nodes)}
        self._incoming: list[list[NodeEdge]] = [[] for _ in nodes]
        for edge in edges:
            self._incoming[self._index[edge.to_node]].append(edge)
        self._order = self._toposort()

    def _toposort(self) -> list[int]:
        indegree = [len(incoming) for incoming in self._incoming]
        outgoing: list[list[int]] = [[] for _ in self._nodes]
        for edge in self._edges:
            outgoing[self._index[edge.from_node]].append(self._index[edge.to_node])
        ready = deque(idx for idx, deg in enumerate(indegree) if deg == 0)
        order: list[int] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for target in outgoing[current]:
                indegree[target] -= 1
                if indegree[target] == 0:
                    ready.append(target)
        if len(order) != len(self._nodes):
            stuck = next(idx for idx, deg in enumerate(indegree) if deg > 0)
            raise GraphCycleError(self._nodes[stuck].id)
        return order

    @property
    def execution_order(self) -> list[NodeId]:
        return [self._nodes[idx].id for idx in self._order]

    def execute(self, root: NodeId) -> dict[NodeId, list[Any]]:
        """Run every node in dependency order and return each node's outputs."""
        outputs: dict[NodeId, list[Any]] = {}
        for idx in self._order:
            inputs: list[Any] = []
            for edge in self._incoming[idx]:
                if len(inputs) <= edge.to_arg:
                    inputs.extend([None] * (edge.to_arg + 1 - len(inputs)))
                inputs[edge.to_arg] = shallow_clone(outputs[edge.from_node][edge.from_arg])
            values = ProcessorValues(inputs)
            node = self._nodes[idx]
            node.processor.run(values)
            outputs[node.id] = values.drain_outputs()
        return outputs


class GraphBuilder:
    """Collects nodes and edges and validates them into a Graph."""

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self.edges: list[NodeEdge] = []

    def add_node(self, node: Node) -> "GraphBuilder":
        self.nodes.append(node)
        return self

    def add_edge(self, edge: NodeEdge) -> "GraphBuilder":
        self.edges.append(edge)
        return self

    def build(self) -> Graph:
        nodes_by_id = {node.id: node for node in self.nodes}
        for edge in self.edges:
            from_node = nodes_by_id.get(edge.from_node)
            if from_node is None:
                raise NodeNotFoundError(edge)
            to_node = nodes_by_id.get(edge.to_node)
            if to_node is None:
                raise NodeNotFoundError(edge)
            if from_node.id == to_node.id:
                raise SelfReferenceError(edge)
            outputs = from_node.processor.outputs()
            inputs = to_node.processor.inputs()
            if edge.from_arg >= len(outputs) or edge.to_arg >= len(inputs):
                raise ArgNotFoundError(edge)
            if outputs[edge.from_arg] != inputs[edge.to_arg]:
                raise TypeMismatchError(edge, outputs[edge.from_arg], inputs[edge.to_arg])
        return Graph(list(self.nodes), list(self.edges))


class ProcessorRegistry:
    """Maps processor uuids to factories that create processors."""

    def __init__(self) -> None:
        self._processors: dict[_uuid.UUID, Callable[[], Any]] = {}

    def register(self, processor_class: Callable[[], Any]) -> None:
        processor_id = getattr(processor_class, "UUID", None)
        if processor_id is None:
            raise ValueError(f"{processor_class!r} has no UUID")
        self._processors[_to_uuid(processor_id)] = processor_class

    def get_processor(self, processor_id: ProcessorIdLike) -> Optional[Any]:
        factory = self._processors.get(_to_uuid(processor_id))
        return factory() if factory is not None else None


class _SerdeNode(NamedTuple):
    id: NodeId
    processor_id: _uuid.UUID


@dataclass
class SerdeGraph:
    """A serialisable description of a graph: node processors and edges."""

    nodes: list[_SerdeNode] = field(default_factory=list)
    edges: list[NodeEdge] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.nodes = [
            _SerdeNode(node_id, _to_uuid(processor_id)) for node_id, processor_id in self.nodes
        ]
        self.edges = list(self.edges)

    def instantiate(self, registry: ProcessorRegistry) -> Graph:
        builder = GraphBuilder()
        for node in self.nodes:
            processor = registry.get_processor(node.processor_id)
            if processor is None:
                raise ProcessorNotFoundError(node.processor_id, node.id)
            builder.add_node(Node(node.id, processor))
        for edge in self.edges:
            builder.add_edge(edge)
        return builder.build()

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [
                {"id": node.id.value, "processor_id": str(node.processor_id)}
                for node in self.nodes
            ],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SerdeGraph":
        try:
            nodes = [
                (NodeId(int(item["id"])), _to_uuid(item["processor_id"]))
                for item in data["nodes"]
            ]
            edges = [NodeEdge.from_dict(item) for item in data["edges"]]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed graph description: {exc}") from exc
        return cls(nodes, edges)