"""Raw memory codec.

Console memory is big-endian.  A read of ``count`` values of width W takes
exactly ``W * count`` bytes and interprets each W-byte group most
significant byte first; writes produce the same layout.
"""

from __future__ import annotations

import struct
from typing import Any, Iterable, List

from .arguments import narrow_text
from .errors import UnsupportedTypeError
from .types import ValueKind, reinterpret, to_single


def fixed_width(kind: ValueKind) -> int:
    if kind.width == 0:
        raise UnsupportedTypeError(f"{kind.label} has no fixed memory width")
    return kind.width


def decode_values(data: bytes, kind: ValueKind, count: int) -> List[Any]:
    width = fixed_width(kind)
    if len(data) != width * count:
        raise ValueError(f"expected {width * count} bytes for {count} x {kind.label}, got {len(data)}")
    if kind is ValueKind.BOOL:
        return [b != 0 for b in data]
    if kind is ValueKind.CHAR:
        return [chr(b) for b in data]
    return list(struct.unpack(f">{count}{kind.code}", data))


def _coerce(value: Any, kind: ValueKind) -> Any:
    if kind is ValueKind.BOOL:
        return 1 if value else 0
    if kind is ValueKind.CHAR:
        return ord(value) & 0xFF if isinstance(value, str) else int(value) & 0xFF
    if kind.is_float:
        return to_single(float(value)) if kind is ValueKind.FLOAT else float(value)
    value = int(value)
    bits = kind.width * 8
    if not -(1 << (bits - 1)) <= value < 1 << bits:
        raise ValueError(f"{value} does not fit in {kind.label}")
    # signed and unsigned patterns of the same width are both accepted
    return reinterpret(value & ((1 << bits) - 1), kind)


def encode_values(values: Iterable[Any], kind: ValueKind) -> bytes:
    fixed_width(kind)
    items = [_coerce(value, kind) for value in values]
    code = "B" if kind in (ValueKind.BOOL, ValueKind.CHAR) else kind.code
    return struct.pack(f">{len(items)}{code}", *items)


def decode_string(data: bytes) -> str:
    """UTF-8 text of the whole buffer; trailing zero bytes are kept."""
    return data.decode("utf-8", errors="replace")


def encode_string(text: str) -> bytes:
    """One byte per character plus a zero terminator."""
    return narrow_text(text) + b"\x00"


def encode_wide_string(text: str) -> bytes:
    """Two bytes per character (high byte zero) plus a two-byte terminator."""
    buffer = bytearray(len(text) * 2 + 2)
    for index, ch in enumerate(text):
        buffer[index * 2 + 1] = ord(ch) & 0xFF
    return bytes(buffer)
