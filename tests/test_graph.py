import uuid

import pytest

from flowgraph.graph import (
    ArgNameNotFoundError,
    ArgNotFoundError,
    GraphBuilder,
    GraphCycleError,
    Node,
    NodeEdge,
    NodeId,
    NodeNotFoundError,
    ProcessorNotFoundError,
    ProcessorRegistry,
    SelfReferenceError,
    SerdeGraph,
    TypeMismatchError,
)
from flowgraph.processor import Arg, IOData, Processor, TypeId, Val

U32 = uuid.UUID("11111111-1111-4111-8111-111111111111")
U16 = uuid.UUID("22222222-2222-4222-8222-222222222222")


class First(Processor):
    UUID = "5b148b19-161e-4997-9156-962055396491"
    NAME = "First"
    INPUT_NAMES = ("i",)
    OUTPUT_NAMES = ("g", "c")
    INPUTS = (TypeId.of_type(U32),)
    OUTPUTS = (TypeId.of_type(U32), TypeId.vec(TypeId.of_type(U16)))

    def compute(self, i):
        return Val(i.value, U32), [Val(88, U16)]


class Second(Processor):
    UUID = "c3d53b0c-2466-4e33-9cc6-530f69a130f8"
    NAME = "Second"
    INPUT_NAMES = ("f", "b")
    OUTPUT_NAMES = ("g", "c")
    INPUTS = (TypeId.of_type(U32), TypeId.vec(TypeId.of_type(U16)))
    OUTPUTS = (TypeId.of_type(U32), TypeId.of_type(U16))

    def compute(self, i, _f):
        return Val(i.value, U32), Val(88, U16)


def _nodes():
    constants = Node.from_constants(NodeId(0), [IOData("a", Arg(15, U32))])
    first = Node.from_processor(NodeId(1), First)
    second = Node.from_processor(NodeId(2), Second)
    return constants, first, second


def _build():
    constants, first, second = _nodes()
    edge0 = Node.make_edge(constants, "a", first, "i")
    edge1 = Node.make_edge(first, "g", second, "f")
    edge2 = Node.make_edge(first, "c", second, "b")
    return (
        GraphBuilder()
        .add_node(constants)
        .add_edge(edge0)
        .add_edge(edge1)
        .add_edge(edge2)
        .add_node(first)
        .add_node(second)
        .build()
    )


def test_execute_source_graph():
    graph = _build()
    outputs = graph.execute(NodeId(0))
    assert outputs[NodeId(1)][0].value == 15
    assert [a.value for a in outputs[NodeId(1)][1]] == [88]
    assert outputs[NodeId(2)][0].value == 15
    assert outputs[NodeId(2)][1].value == 88


def test_execution_order_respects_edges():
    order = _build().execution_order
    assert order.index(NodeId(0)) < order.index(NodeId(1)) < order.index(NodeId(2))


def test_make_edge_indices():
    constants, first, second = _nodes()
    assert Node.make_edge(first, "c", second, "b") == NodeEdge(NodeId(1), 1, NodeId(2), 1)
    assert Node.make_edge(constants, "a", first, "i") == NodeEdge(NodeId(0), 0, NodeId(1), 0)


def test_make_edge_unknown_output_name():
    _, first, second = _nodes()
    with pytest.raises(ArgNameNotFoundError) as info:
        Node.make_edge(first, "missing", second, "f")
    assert info.value.node_id == NodeId(1)
    assert info.value.name == "missing"


def test_make_edge_unknown_input_name():
    _, first, second = _nodes()
    with pytest.raises(ArgNameNotFoundError) as info:
        Node.make_edge(first, "g", second, "nope")
    assert info.value.node_id == NodeId(2)


def test_node_not_found():
    _, first, _ = _nodes()
    edge = NodeEdge(NodeId(1), 0, NodeId(9), 0)
    with pytest.raises(NodeNotFoundError) as info:
        GraphBuilder().add_node(first).add_edge(edge).build()
    assert info.value.edge == edge


def test_self_reference():
    _, first, _ = _nodes()
    edge = NodeEdge(NodeId(1), 0, NodeId(1), 0)
    with pytest.raises(SelfReferenceError):
        GraphBuilder().add_node(first).add_edge(edge).build()


def test_arg_not_found():
    _, first, second = _nodes()
    edge = NodeEdge(NodeId(1), 5, NodeId(2), 0)
    with pytest.raises(ArgNotFoundError):
        GraphBuilder().add_node(first).add_node(second).add_edge(edge).build()


def test_type_mismatch():
    _, first, second = _nodes()
    edge = NodeEdge(NodeId(1), 1, NodeId(2), 0)
    with pytest.raises(TypeMismatchError) as info:
        GraphBuilder().add_node(first).add_node(second).add_edge(edge).build()
    assert info.value.from_type == TypeId.vec(TypeId.of_type(U16))
    assert info.value.to_type == TypeId.of_type(U32)


def test_cycle_detected():
    a = Node.from_processor(NodeId(1), First)
    b = Node.from_processor(NodeId(2), First)
    builder = (
        GraphBuilder()
        .add_node(a)
        .add_node(b)
        .add_edge(Node.make_edge(a, "g", b, "i"))
        .add_edge(Node.make_edge(b, "g", a, "i"))
    )
    with pytest.raises(GraphCycleError) as info:
        builder.build()
    assert info.value.node_id in (NodeId(1), NodeId(2))


def test_registry_creates_fresh_instances():
    registry = ProcessorRegistry()
    registry.register(First)
    one = registry.get_processor(First.UUID)
    two = registry.get_processor(uuid.UUID(First.UUID))
    assert isinstance(one, First)
    assert one is not two
    assert registry.get_processor(Second.UUID) is None


def _serde():
    return SerdeGraph(
        nodes=[(NodeId(1), First.UUID), (NodeId(2), Second.UUID)],
        edges=[NodeEdge(NodeId(1), 0, NodeId(2), 0), NodeEdge(NodeId(1), 1, NodeId(2), 1)],
    )


def test_serde_instantiate():
    registry = ProcessorRegistry()
    registry.register(First)
    registry.register(Second)
    graph = _serde().instantiate(registry)
    assert graph.execution_order == [NodeId(1), NodeId(2)]


def test_serde_instantiate_missing_processor():
    registry = ProcessorRegistry()
    registry.register(First)
    with pytest.raises(ProcessorNotFoundError) as info:
        _serde().instantiate(registry)
    assert info.value.node_id == NodeId(2)
    assert info.value.processor_id == uuid.UUID(Second.UUID)


def test_serde_round_trip():
    original = _serde()
    data = original.to_dict()
    assert data["edges"][0] == {"from": [1, 0], "to": [2, 0]}
    assert data["nodes"][0] == {"id": 1, "processor_id": First.UUID}
    assert SerdeGraph.from_dict(data) == original


def test_edge_dict_round_trip():
    edge = NodeEdge(NodeId(3), 1, NodeId(4), 2)
    assert NodeEdge.from_dict(edge.to_dict()) == edge


def test_edge_from_malformed_dict():
    with pytest.raises(ValueError):
        NodeEdge.from_dict({"from": [1]})