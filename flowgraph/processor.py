"""Typed processors and the value containers they exchange."""

from __future__ import annotations

import enum
import uuid as _uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Sequence, Union

UuidLike = Union[_uuid.UUID, str, bytes]


def _as_uuid(value: UuidLike) -> _uuid.UUID:
    if isinstance(value, _uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 16:
            raise ValueError(f"type uuid must be 16 bytes, got {len(value)}")
        return _uuid.UUID(bytes=bytes(value))
    if isinstance(value, str):
        return _uuid.UUID(value)
    raise TypeError(f"cannot use {type(value).__name__} as a type uuid")


class TypeKind(enum.Enum):
    """The shape of a processor value type."""

    TYPE = "type"
    VEC = "vec"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class TypeId:
    """Identifies the type of a value passed between processors."""

    kind: TypeKind
    uuid: Optional[_uuid.UUID] = None
    inner: Optional["TypeId"] = None

    @classmethod
    def of_type(cls, uuid: UuidLike) -> "TypeId":
        return cls(TypeKind.TYPE, uuid=_as_uuid(uuid))

    @classmethod
    def vec(cls, inner: "TypeId") -> "TypeId":
        return cls(TypeKind.VEC, inner=inner)

    @classmethod
    def optional(cls, inner: "TypeId") -> "TypeId":
        return cls(TypeKind.OPTIONAL, inner=inner)

    def __repr__(self) -> str:
        if self.kind is TypeKind.TYPE:
            return f"TypeId.of_type({str(self.uuid)!r})"
        return f"TypeId.{self.kind.value}({self.inner!r})"


@dataclass(frozen=True)
class Arg:
    """A shared, read-only input value tagged with its type uuid."""

    value: Any
    type_uuid: _uuid.UUID

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_uuid", _as_uuid(self.type_uuid))

    def shallow_clone(self) -> "Arg":
        """Return a new handle that shares the same underlying value."""
        return Arg(self.value, self.type_uuid)

    def processor_type(self) -> TypeId:
        return TypeId.of_type(self.type_uuid)


@dataclass(frozen=True)
class Val:
    """An owned output value tagged with its type uuid."""

    value: Any
    type_uuid: _uuid.UUID

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_uuid", _as_uuid(self.type_uuid))

    def into_arg(self) -> Arg:
        return Arg(self.value, self.type_uuid)


def processor_type(value: Any) -> TypeId:
    """Return the TypeId of an Arg, Val or non-empty list of them."""
    if isinstance(value, (Arg, Val)):
        return TypeId.of_type(value.type_uuid)
    if isinstance(value, list):
        if not value:
            raise ValueError("cannot determine the type of an empty list")
        return TypeId.vec(processor_type(value[0]))
    raise TypeError(f"{type(value).__name__} is not a processor value")


def shallow_clone(value: Any) -> Any:
    """Clone a processor value, sharing the wrapped data."""
    if isinstance(value, Arg):
        return value.shallow_clone()
    if isinstance(value, list):
        return [shallow_clone(item) for item in value]
    if value is None:
        return None
    raise TypeError(f"{type(value).__name__} is not a processor value")


def _matches(value: Any, expected: TypeId) -> bool:
    if expected.kind is TypeKind.TYPE:
        return isinstance(value, Arg) and value.type_uuid == expected.uuid
    if expected.kind is TypeKind.VEC:
        return isinstance(value, list) and all(_matches(item, expected.inner) for item in value)
    return value is None or _matches(value, expected.inner)


class ProcessorInputError(LookupError):
    """Raised when a processor input is missing or has the wrong type."""


class ProcessorValues:
    """The inputs handed to a processor and the outputs it produces."""

    def __init__(self, inputs: Sequence[Any] = ()) -> None:
        self.inputs: list[Any] = list(inputs)
        self.outputs: list[Any] = []

    def get_input(self, index: int, expected: TypeId) -> Any:
        """Return a shallow clone of input ``index``, checked against ``expected``."""
        value = self.inputs[index] if 0 <= index < len(self.inputs) else None
        if value is None:
            if expected.kind is TypeKind.OPTIONAL:
                return None
            raise ProcessorInputError(f"expected input at argument index {index}")
        if not _matches(value, expected):
            raise ProcessorInputError(f"failed to downcast type for argument {index}")
        return shallow_clone(value)

    def _insert(self, index: int, value: Any) -> None:
        if not 0 <= index <= len(self.outputs):
            raise IndexError(
                f"output index {index} is out of range for {len(self.outputs)} outputs"
            )
        self.outputs.insert(index, value)

    def put_val(self, index: int, value: Val) -> None:
        self._insert(index, value.into_arg())

    def put_vec(self, index: int, values: Sequence[Val]) -> None:
        self._insert(index, [v.into_arg() for v in values])

    def drain_outputs(self) -> list[Any]:
        """Take the outputs, leaving this container empty."""
        outputs, self.outputs = self.outputs, []
        return outputs


class Processor(ABC):
    """A node operation with typed, named inputs and outputs.

    Subclasses declare their signature in class attributes and implement
    :meth:`compute`, which receives one argument per input and returns one
    Val (or list of Val) per output.
    """

    NAME: ClassVar[Optional[str]] = None
    UUID: ClassVar[Optional[UuidLike]] = None
    INPUT_NAMES: ClassVar[Sequence[str]] = ()
    OUTPUT_NAMES: ClassVar[Sequence[str]] = ()
    INPUTS: ClassVar[Sequence[TypeId]] = ()
    OUTPUTS: ClassVar[Sequence[TypeId]] = ()

    def name(self) -> str:
        return self.NAME if self.NAME is not None else type(self).__name__

    def input_names(self) -> list[str]:
        return list(self.INPUT_NAMES)

    def output_names(self) -> list[str]:
        return list(self.OUTPUT_NAMES)

    def inputs(self) -> list[TypeId]:
        return list(self.INPUTS)

    def outputs(self) -> list[TypeId]:
        return list(self.OUTPUTS)

    @abstractmethod
    def compute(self, *args: Any) -> Any:
        """Produce the outputs from the inputs."""

    def run(self, values: ProcessorValues) -> None:
        run_now(self, values)


def run_now(processor: Processor, values: ProcessorValues) -> None:
    """Read the processor's inputs from ``values``, compute, and store its outputs."""
    input_types = processor.inputs()
    output_types = processor.outputs()
    args = [values.get_input(i, t) for i, t in enumerate(input_types)]
    result = processor.compute(*args)
    if not isinstance(result, tuple):
        result = () if result is None and not output_types else (result,)
    if len(result) != len(output_types):
        raise TypeError(
            f"{processor.name()} returned {len(result)} outputs, expected {len(output_types)}"
        )
    for index, (declared, out) in enumerate(zip(output_types, result)):
        if declared.kind is TypeKind.VEC:
            if not isinstance(out, list) or not all(
                isinstance(v, Val) and TypeId.of_type(v.type_uuid) == declared.inner
                for v in out
            ):
                raise TypeError(f"output {index} of {processor.name()} does not match {declared!r}")
            values.put_vec(index, out)
        else:
            if not isinstance(out, Val) or TypeId.of_type(out.type_uuid) != declared:
                raise TypeError(f"output {index} of {processor.name()} does not match {declared!r}")
            values.put_val(index, out)


@dataclass
class IOData:
    """A named constant value."""

    name: str
    value: Any = None


@dataclass
class ConstantProcessor:
    """A processor that emits a fixed set of values once."""

    UUID: ClassVar[_uuid.UUID] = _uuid.UUID("d44e76e6-f00f-416e-9de9-3f16f5b70b49")

    values: list[IOData] = field(default_factory=list)

    def name(self) -> str:
        return "Constants"

    def input_names(self) -> list[str]:
        return []

    def output_names(self) -> list[str]:
        return [d.name for d in self.values]

    def inputs(self) -> list[TypeId]:
        return []

    def outputs(self) -> list[TypeId]:
        return [processor_type(d.value) for d in self.values if d.value is not None]

    def run(self, values: ProcessorValues) -> None:
        drained, self.values = self.values, []
        values.outputs = [d.value for d in drained]