"""Wire type discriminants and host value kinds.

The JRPC extension identifies every value on the wire by a small integer tag
(``ProtocolTag``).  Host code talks about *kinds* instead (``ValueKind``):
the semantic width/signedness of a value, independent of how it travels.
``resolve_tag`` maps one to the other and ``validate_return_type`` guards the
set of return kinds the extension knows how to marshal back.
"""

from __future__ import annotations

import math
import struct
from enum import Enum, IntEnum
from typing import Any, FrozenSet

from .errors import UnsupportedTypeError

PROTOCOL_VERSION = 2
MAX_ARGUMENTS = 37


class ProtocolTag(IntEnum):
    VOID = 0
    INT = 1
    STRING = 2
    FLOAT = 3
    BYTE = 4
    INT_ARRAY = 5
    FLOAT_ARRAY = 6
    BYTE_ARRAY = 7
    UINT64 = 8
    UINT64_ARRAY = 9

    @property
    def is_array(self) -> bool:
        return self in _ARRAY_TAGS


_ARRAY_TAGS = frozenset(
    {ProtocolTag.INT_ARRAY, ProtocolTag.FLOAT_ARRAY, ProtocolTag.BYTE_ARRAY, ProtocolTag.UINT64_ARRAY}
)


class ThreadType(Enum):
    """Which console thread runs a remote call."""

    SYSTEM = "system"
    TITLE = "title"


class ValueKind(Enum):
    """Semantic host type: (name, byte width, signed, struct code)."""

    VOID = ("void", 0, False, "")
    BOOL = ("bool", 1, False, "?")
    BYTE = ("byte", 1, False, "B")
    SBYTE = ("sbyte", 1, True, "b")
    CHAR = ("char", 1, False, "B")
    INT16 = ("int16", 2, True, "h")
    UINT16 = ("uint16", 2, False, "H")
    INT32 = ("int32", 4, True, "i")
    UINT32 = ("uint32", 4, False, "I")
    INT64 = ("int64", 8, True, "q")
    UINT64 = ("uint64", 8, False, "Q")
    FLOAT = ("float", 4, True, "f")
    DOUBLE = ("double", 8, True, "d")
    STRING = ("string", 0, False, "")
    CHARS = ("chars", 0, False, "")

    def __init__(self, label: str, width: int, signed: bool, code: str) -> None:
        self.label = label
        self.width = width
        self.signed = signed
        self.code = code

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_KINDS

    @property
    def is_float(self) -> bool:
        return self in (ValueKind.FLOAT, ValueKind.DOUBLE)

    @property
    def is_text(self) -> bool:
        return self in (ValueKind.STRING, ValueKind.CHARS)

    def default(self) -> Any:
        """Zero value for this kind (what an unfilled array slot holds)."""
        if self is ValueKind.BOOL:
            return False
        if self.is_float:
            return 0.0
        if self is ValueKind.CHAR:
            return "\x00"
        if self.is_text:
            return ""
        if self is ValueKind.VOID:
            return None
        return 0


_INTEGER_KINDS = frozenset(
    {
        ValueKind.BYTE,
        ValueKind.SBYTE,
        ValueKind.INT16,
        ValueKind.UINT16,
        ValueKind.INT32,
        ValueKind.UINT32,
        ValueKind.INT64,
        ValueKind.UINT64,
    }
)

_INT_FAMILY = frozenset({ValueKind.INT16, ValueKind.UINT16, ValueKind.INT32, ValueKind.UINT32})
_FLOAT_FAMILY = frozenset({ValueKind.FLOAT, ValueKind.DOUBLE})
_BYTE_FAMILY = frozenset({ValueKind.BYTE, ValueKind.CHAR})

RETURN_KINDS: FrozenSet[ValueKind] = frozenset(
    {
        ValueKind.VOID,
        ValueKind.BOOL,
        ValueKind.BYTE,
        ValueKind.INT16,
        ValueKind.INT32,
        ValueKind.INT64,
        ValueKind.UINT16,
        ValueKind.UINT32,
        ValueKind.UINT64,
        ValueKind.FLOAT,
        ValueKind.DOUBLE,
        ValueKind.STRING,
    }
)


def resolve_tag(kind: ValueKind, is_array: bool = False) -> ProtocolTag:
    """Map a host kind to its wire discriminant.

    The 64-bit integers map to ``UINT64``, and so does every kind outside the
    int, float, byte and text families (bool, sbyte).  The resolver never
    rejects a kind.
    """
    if kind in _INT_FAMILY:
        return ProtocolTag.INT_ARRAY if is_array else ProtocolTag.INT
    if kind.is_text:
        return ProtocolTag.STRING
    if kind in _FLOAT_FAMILY:
        return ProtocolTag.FLOAT_ARRAY if is_array else ProtocolTag.FLOAT
    if kind in _BYTE_FAMILY:
        return ProtocolTag.BYTE_ARRAY if is_array else ProtocolTag.BYTE
    # 64-bit integers and everything else
    return ProtocolTag.UINT64_ARRAY if is_array else ProtocolTag.UINT64


def validate_return_type(kind: ValueKind, is_array: bool = False) -> None:
    if kind not in RETURN_KINDS or (is_array and kind is ValueKind.VOID):
        shape = f"{kind.label}[]" if is_array else kind.label
        supported = ", ".join(sorted(k.label for k in RETURN_KINDS))
        raise UnsupportedTypeError(f"Invalid type {shape}; JRPC only supports: {supported} and their arrays")


def reinterpret(value: int, kind: ValueKind) -> Any:
    """Narrow an unsigned wire integer to ``kind``'s width and signedness."""
    if kind is ValueKind.BOOL:
        return value != 0
    if kind is ValueKind.CHAR:
        return chr(value & 0xFF)
    width = kind.width if kind.is_integer else 8
    bits = width * 8
    value &= (1 << bits) - 1
    if kind.signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def to_single(value: float) -> float:
    """Round a Python float to the nearest IEEE-754 single."""
    try:
        return struct.unpack(">f", struct.pack(">f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)

