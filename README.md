# flowgraph

flowgraph lets you define small units of computation, called *processors*,
and connect them into a directed graph. Each processor declares named, typed
inputs and outputs. The graph is checked when it is built. When it runs, the
nodes execute in topological order, and each node's outputs are passed to the
nodes that consume them.

The package has no dependencies outside the standard library.

## Installation

```
pip install flowgraph
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install "flowgraph[test]"
pytest
```

## Values and types (`flowgraph.processor`)

- `TypeId` describes the type of a value. `TypeId.of_type(uuid)` makes a
  concrete type from a `uuid.UUID`, a UUID string or 16 bytes.
  `TypeId.vec(inner)` and `TypeId.optional(inner)` make wrapped types.
  Two `TypeId`s are equal when their shapes and uuids are equal.
- `Arg(value, type_uuid)` is a read-only input value tagged with its type.
  `Arg.shallow_clone()` returns a new `Arg` that holds the same object.
  `Arg.processor_type()` returns its `TypeId`.
- `Val(value, type_uuid)` is an output value. `Val.into_arg()` turns it into
  an `Arg`.
- `processor_type(value)` returns the `TypeId` of an `Arg`, a `Val` or a
  non-empty list of them. A list gives a `vec` type, and an empty list raises
  `ValueError`.
- `shallow_clone(value)` clones an `Arg`, a list of `Arg`s, or `None`.

## Processors

To define a processor, subclass `Processor`. Declare its signature in the
class attributes `NAME`, `UUID`, `INPUT_NAMES`, `OUTPUT_NAMES`, `INPUTS` and
`OUTPUTS`, and implement `compute(*args)`:

- `compute` receives one argument per input: an `Arg`, a list of `Arg`s for a
  `vec` input, or `None` for a missing `optional` input.
- It returns one `Val` per output, or a list of `Val`s for a `vec` output.
  For more than one output, return a tuple.

`run(values)` (or `run_now(processor, values)`) does the following:

1. Reads the inputs from a `ProcessorValues`.
2. Calls `compute`.
3. Checks the results against `OUTPUTS`. A result that does not match raises
   `TypeError`.
4. Stores the results as `Arg`s with `ProcessorValues.put_val` and
   `ProcessorValues.put_vec`.

`ProcessorValues.get_input(index, expected)` raises `ProcessorInputError` (a
`LookupError`) if the input is missing or does not match `expected`.
`ProcessorValues.drain_outputs()` returns the outputs and empties the
container.

`ConstantProcessor` takes a list of `IOData(name, value)` entries. It has no
inputs. Its outputs are named after the entries, and their types come from the
entries' values; entries whose value is `None` do not count towards the output
types. When it runs, it emits its values and then empties its list, so it
produces them only once.

```python
import uuid

from flowgraph.processor import Processor, TypeId, Val

INT = uuid.UUID("6f1c0a52-0000-4000-8000-000000000001")


class Double(Processor):
    NAME = "Double"
    UUID = "6f1c0a52-0000-4000-8000-000000000002"
    INPUT_NAMES = ("x",)
    OUTPUT_NAMES = ("y",)
    INPUTS = (TypeId.of_type(INT),)
    OUTPUTS = (TypeId.of_type(INT),)

    def compute(self, x):
        return Val(x.value * 2, INT)
```

## Building and running a graph (`flowgraph.graph`)

```python
from flowgraph.graph import GraphBuilder, Node, NodeId
from flowgraph.processor import Arg, IOData

constants = Node.from_constants(NodeId(0), [IOData("a", Arg(15, INT))])
double = Node.from_processor(NodeId(1), Double)

graph = (
    GraphBuilder()
    .add_node(constants)
    .add_node(double)
    .add_edge(Node.make_edge(constants, "a", double, "x"))
    .build()
)
outputs = graph.execute(NodeId(0))
assert outputs[NodeId(1)][0].value == 30
```

`Node.make_edge(from_node, from_arg, to_node, to_arg)` turns argument names
into a `NodeEdge(from_node, from_arg, to_node, to_arg)` of node ids and
argument indices.

`Graph.execute(root)` runs every node in the graph, whatever `root` is. It
returns a dict that maps each `NodeId` to that node's list of outputs.
`Graph.execution_order` lists the node ids in the order they run.

Both `Node.make_edge` and `GraphBuilder.build()` check their arguments, and
both raise subclasses of `GraphError` when a check fails:

| Error                    | Raised when                                                |
|--------------------------|------------------------------------------------------------|
| `NodeNotFoundError`      | an edge names a node that was never added                  |
| `SelfReferenceError`     | an edge connects a node to itself                          |
| `ArgNotFoundError`       | an edge uses an argument index that is out of range        |
| `TypeMismatchError`      | the output's `TypeId` differs from the input's `TypeId`    |
| `GraphCycleError`        | the graph contains a cycle                                 |
| `ArgNameNotFoundError`   | `Node.make_edge` is given an unknown argument name         |
| `ProcessorNotFoundError` | `SerdeGraph.instantiate` meets an unregistered processor id |

## Describing a graph as data

`ProcessorRegistry.register(cls)` stores a processor class under its `UUID`.
`ProcessorRegistry.get_processor(processor_id)` creates a new instance of the
registered class, or returns `None` if no class is registered under that id.

`SerdeGraph` describes a graph as a list of `(NodeId, processor_id)` pairs
plus a list of `NodeEdge`s. `to_dict()` and `from_dict()` convert it to and
from plain dicts and lists. `instantiate(registry)` builds a validated `Graph`.

```python
from flowgraph.graph import ProcessorRegistry, SerdeGraph

registry = ProcessorRegistry()
registry.register(Double)

data = {
    "nodes": [{"id": 1, "processor_id": "6f1c0a52-0000-4000-8000-000000000002"}],
    "edges": [],
}
graph = SerdeGraph.from_dict(data).instantiate(registry)
```

`NodeEdge.to_dict()` produces `{"from": [node, arg], "to": [node, arg]}`, and
`NodeEdge.from_dict()` reads the same shape back.

## What it does not do

flowgraph works only in memory:

- It has no command-line tool.
- It does not read or write files. `to_dict()` returns plain data, and writing
  that data out, for example with `json`, is up to you.
- It cannot serialise constant values.
- Nodes run one after another in a single thread.