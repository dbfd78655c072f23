"""Tagged argument values.

Every argument of a remote call is resolved exactly once, at the call
boundary, into one of the variants below.  The codec then dispatches on the
variant type instead of re-inspecting Python values per call.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Tuple, Union

from .errors import UnsupportedTypeError
from .types import ProtocolTag, ValueKind

_SMALL_KINDS = frozenset(
    {
        ValueKind.BOOL,
        ValueKind.BYTE,
        ValueKind.INT16,
        ValueKind.UINT16,
        ValueKind.INT32,
        ValueKind.UINT32,
    }
)


@dataclass(frozen=True)
class SmallInt:
    """bool, byte or 16/32-bit integer; travels as ``INT``."""

    value: int
    kind: ValueKind = ValueKind.INT32
    tag: ClassVar[ProtocolTag] = ProtocolTag.INT


@dataclass(frozen=True)
class Float:
    value: float
    kind: ValueKind = ValueKind.DOUBLE
    tag: ClassVar[ProtocolTag] = ProtocolTag.FLOAT


@dataclass(frozen=True)
class Bytes:
    data: bytes
    tag: ClassVar[ProtocolTag] = ProtocolTag.BYTE_ARRAY


@dataclass(frozen=True)
class IntSequence:
    """32-bit integers; signed and unsigned elements may be mixed."""

    values: Tuple[int, ...]
    tag: ClassVar[ProtocolTag] = ProtocolTag.BYTE_ARRAY


@dataclass(frozen=True)
class FloatSequence:
    """Floats sent as 4-byte IEEE singles."""

    values: Tuple[float, ...]
    tag: ClassVar[ProtocolTag] = ProtocolTag.BYTE_ARRAY


@dataclass(frozen=True)
class Text:
    text: str
    tag: ClassVar[ProtocolTag] = ProtocolTag.BYTE_ARRAY


@dataclass(frozen=True)
class Wide:
    """Catch-all: anything else travels as a 64-bit unsigned pattern."""

    value: Union[int, float]
    kind: ValueKind = ValueKind.UINT64
    tag: ClassVar[ProtocolTag] = ProtocolTag.UINT64


TaggedValue = Union[SmallInt, Float, Bytes, IntSequence, FloatSequence, Text, Wide]
TAGGED_TYPES = (SmallInt, Float, Bytes, IntSequence, FloatSequence, Text, Wide)


def _check_range(value: int, kind: ValueKind) -> int:
    value = operator.index(value)
    bits = kind.width * 8
    low = -(1 << (bits - 1)) if kind.signed else 0
    high = (1 << (bits - 1)) - 1 if kind.signed else (1 << bits) - 1
    if not low <= value <= high:
        raise ValueError(f"{value} does not fit in {kind.label}")
    return value


def _integer(kind: ValueKind, value: int) -> TaggedValue:
    value = _check_range(value, kind)
    if kind in _SMALL_KINDS:
        return SmallInt(value, kind)
    return Wide(value, kind)


def boolean(value: bool) -> SmallInt:
    return SmallInt(1 if value else 0, ValueKind.BOOL)


def byte(value: int) -> TaggedValue:
    return _integer(ValueKind.BYTE, value)


def sbyte(value: int) -> TaggedValue:
    return _integer(ValueKind.SBYTE, value)


def int16(value: int) -> TaggedValue:
    return _integer(ValueKind.INT16, value)


def uint16(value: int) -> TaggedValue:
    return _integer(ValueKind.UINT16, value)


def int32(value: int) -> TaggedValue:
    return _integer(ValueKind.INT32, value)


def uint32(value: int) -> TaggedValue:
    return _integer(ValueKind.UINT32, value)


def int64(value: int) -> TaggedValue:
    return _integer(ValueKind.INT64, value)


def uint64(value: int) -> TaggedValue:
    return _integer(ValueKind.UINT64, value)


def single(value: float) -> Float:
    return Float(float(value), ValueKind.FLOAT)


def double(value: float) -> Float:
    return Float(float(value), ValueKind.DOUBLE)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _tag_sequence(items: Iterable[Any]) -> TaggedValue:
    values = tuple(items)
    if all(_is_int(item) for item in values):
        for item in values:
            if not -(1 << 31) <= item <= 0xFFFFFFFF:
                raise ValueError(f"{item} does not fit in a 32-bit integer sequence")
        return IntSequence(values)
    if all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in values):
        return FloatSequence(tuple(float(item) for item in values))
    raise UnsupportedTypeError(f"cannot marshal sequence of {sorted({type(v).__name__ for v in values})}")


def tag_value(value: Any) -> TaggedValue:
    """Resolve a plain Python value into its tagged variant.

    ``bool`` -> bool ``SmallInt``; ``int`` -> int32/uint32 ``SmallInt`` when it
    fits in 32 bits, otherwise ``Wide``; ``float`` -> double; ``bytes`` ->
    ``Bytes``; ``str`` -> ``Text``; lists/tuples of ints or floats -> the
    matching sequence.  Other objects that implement ``__index__`` or
    ``__float__`` are treated as integers or doubles.
    """
    if isinstance(value, TAGGED_TYPES):
        return value
    if isinstance(value, bool):
        return boolean(value)
    if _is_int(value):
        if -(1 << 31) <= value <= 0x7FFFFFFF:
            return SmallInt(value, ValueKind.INT32)
        if 0 <= value <= 0xFFFFFFFF:
            return SmallInt(value, ValueKind.UINT32)
        return Wide(value, ValueKind.INT64 if value < 0 else ValueKind.UINT64)
    if isinstance(value, float):
        return Float(value, ValueKind.DOUBLE)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Bytes(bytes(value))
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, (list, tuple)):
        return _tag_sequence(value)
    if hasattr(value, "__index__"):
        return tag_value(operator.index(value))
    if hasattr(value, "__float__"):
        return Wide(float(value), ValueKind.DOUBLE)
    raise UnsupportedTypeError(f"cannot marshal argument of type {type(value).__name__}")
