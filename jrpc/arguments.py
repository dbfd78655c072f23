"""Argument codec: tagged values -> ``params`` wire fragments.

Scalar fragments are ``<tag>\\<payload>\\``; block fragments are
``<tag>/<length>\\<HEX>\\``.  Block payloads are uppercase hex and every
multi-byte element is written most-significant byte first, which is the
byte order the console expects regardless of the host.
"""

from __future__ import annotations

import math
import struct
from decimal import Decimal
from typing import Callable, Dict, Iterable, List

from .errors import UnsupportedTypeError
from .types import ProtocolTag, ValueKind, reinterpret, to_single
from .values import Bytes, Float, FloatSequence, IntSequence, SmallInt, TaggedValue, Text, Wide, tag_value

SEP = "\\"
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_POSITIONAL_MIN_EXP = -5
_POSITIONAL_MAX_EXP = 15


def _shortest_digits(value: float, kind: ValueKind) -> Decimal:
    if kind is not ValueKind.FLOAT:
        return Decimal(repr(float(value)))
    target = to_single(value)
    for precision in range(1, 10):
        text = f"{target:.{precision}g}"
        if to_single(float(text)) == target:
            return Decimal(text)
    return Decimal(repr(target))


def format_float(value: float, kind: ValueKind = ValueKind.DOUBLE) -> str:
    """Shortest decimal text that parses back to the same value at ``kind``'s width.

    Positional notation (``200``, ``0.0001``) unless the leading digit sits
    at 1e15 or above, or at 1e-5 or below, where the console's
    ``1.5E+20`` / ``1E-05`` exponent form is used.
    """
    if math.isnan(value) or math.isinf(value):
        return repr(value)
    number = _shortest_digits(value, kind).normalize()
    exponent = number.adjusted()
    if _POSITIONAL_MIN_EXP < exponent < _POSITIONAL_MAX_EXP:
        return format(number, "f")
    sign, digits, _ = number.as_tuple()
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(d) for d in digits[1:])
    return f"{'-' if sign else ''}{mantissa}E{'+' if exponent >= 0 else '-'}{abs(exponent):02d}"


def narrow_text(text: str) -> bytes:
    """One byte per character; code points above 0xFF keep their low byte."""
    return bytes(ord(ch) & 0xFF for ch in text)


def _scalar(tag: ProtocolTag, payload: object) -> str:
    return f"{int(tag)}{SEP}{payload}{SEP}"


def _block(length: int, data: bytes) -> str:
    return f"{int(ProtocolTag.BYTE_ARRAY)}/{length}{SEP}{data.hex().upper()}{SEP}"


def _encode_small_int(value: SmallInt) -> str:
    return _scalar(ProtocolTag.INT, reinterpret(value.value & _MASK32, ValueKind.INT32))


def _encode_float(value: Float) -> str:
    return _scalar(ProtocolTag.FLOAT, format_float(value.value, value.kind))


def _encode_bytes(value: Bytes) -> str:
    return _block(len(value.data), value.data)


def _encode_int_sequence(value: IntSequence) -> str:
    data = b"".join(struct.pack(">I", item & _MASK32) for item in value.values)
    return _block(4 * len(value.values), data)


def _encode_float_sequence(value: FloatSequence) -> str:
    data = b"".join(struct.pack(">f", to_single(item)) for item in value.values)
    return _block(4 * len(value.values), data)


def _encode_text(value: Text) -> str:
    return _block(len(value.text), narrow_text(value.text))


def wide_pattern(value: Wide) -> int:
    """64-bit unsigned reinterpretation of a catch-all value."""
    raw = value.value
    if isinstance(raw, float):
        if value.kind is ValueKind.FLOAT:
            return struct.unpack(">I", struct.pack(">f", to_single(raw)))[0]
        return struct.unpack(">Q", struct.pack(">d", raw))[0]
    return int(raw) & _MASK64


def _encode_wide(value: Wide) -> str:
    return _scalar(ProtocolTag.UINT64, wide_pattern(value))


_ENCODERS: Dict[type, Callable[..., str]] = {
    SmallInt: _encode_small_int,
    Float: _encode_float,
    Bytes: _encode_bytes,
    IntSequence: _encode_int_sequence,
    FloatSequence: _encode_float_sequence,
    Text: _encode_text,
    Wide: _encode_wide,
}


def encode_argument(value: TaggedValue) -> str:
    encoder = _ENCODERS.get(type(value))
    if encoder is None:
        raise UnsupportedTypeError(f"no wire encoding for {type(value).__name__}")
    return encoder(value)


def encode_arguments(values: Iterable[TaggedValue]) -> str:
    return "".join(encode_argument(value) for value in values)


def tag_arguments(arguments: Iterable[object]) -> List[TaggedValue]:
    return [tag_value(argument) for argument in arguments]
