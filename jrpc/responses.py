"""Response decoder.

Replies look like ``<status> <payload>``.  The payload starts after the
first space character and its format depends only on the tag of the request
that produced it; nothing in the reply says what it contains.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Union

from .errors import ExtensionNotInstalled, RemoteError, ResponseFormatError
from .types import ProtocolTag, ValueKind, reinterpret, to_single

ERROR_MARKER = "error="
EXTENSION_MISSING_MARKER = "DEBUG"
INT_ARRAY_CAPACITY = 8

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def payload_of(response: str) -> str:
    """Text after the first space (the whole reply when there is none)."""
    return response[response.find(" ") + 1 :]


def payload_int(response: str, base: int = 16) -> int:
    text = payload_of(response).strip()
    try:
        return int(text, base)
    except ValueError as exc:
        raise ResponseFormatError(f"expected a base-{base} integer, got {text!r}") from exc


def check_response(response: str) -> str:
    """Raise for error and missing-extension markers, else return ``response``."""
    index = response.find(ERROR_MARKER)
    if index >= 0:
        raise RemoteError(response[index + len(ERROR_MARKER) :], response)
    if EXTENSION_MISSING_MARKER in response:
        raise ExtensionNotInstalled()
    return response


def split_elements(payload: str) -> List[str]:
    """Split ``a,b,c;`` into tokens; anything after ``;`` is ignored.

    Text after the last delimiter is dropped when no ``;`` closes the list.
    """
    tokens: List[str] = []
    current: List[str] = []
    for ch in payload:
        if ch not in ",;":
            current.append(ch)
            continue
        token = "".join(current).strip()
        current = []
        if ch == ";" and not token and not tokens:
            break
        if not token:
            raise ResponseFormatError(f"empty array element in {payload!r}")
        tokens.append(token)
        if ch == ";":
            break
    return tokens


def _parse_hex(text: str, mask: int, tag: ProtocolTag) -> int:
    try:
        value = int(text.strip(), 16)
    except ValueError as exc:
        raise ResponseFormatError(f"cannot decode {tag.name} payload {text!r}") from exc
    if value < 0 or value > mask:
        raise ResponseFormatError(f"{tag.name} payload {text!r} out of range")
    return value


def _parse_decimal(text: str, mask: int, tag: ProtocolTag) -> int:
    try:
        value = int(text.strip(), 10)
    except ValueError as exc:
        raise ResponseFormatError(f"cannot decode {tag.name} element {text!r}") from exc
    if value < 0 or value > mask:
        raise ResponseFormatError(f"{tag.name} element {text!r} out of range")
    return value


def _parse_float(text: str, kind: ValueKind, tag: ProtocolTag) -> float:
    try:
        value = float(text.strip())
    except ValueError as exc:
        raise ResponseFormatError(f"cannot decode {tag.name} payload {text!r}") from exc
    return to_single(value) if kind is ValueKind.FLOAT else value


def _sized(values: List[Any], size: int, default: Any, tag: ProtocolTag) -> List[Any]:
    if not size:
        return values
    if len(values) > size:
        raise ResponseFormatError(f"{tag.name} reply has {len(values)} elements, expected at most {size}")
    return values + [default] * (size - len(values))


def _element_kind(kind: ValueKind, fallback: ValueKind) -> ValueKind:
    return kind if kind is not ValueKind.VOID else fallback


def _decode_int_array(payload: str, kind: ValueKind, size: int) -> List[Any]:
    tag = ProtocolTag.INT_ARRAY
    kind = _element_kind(kind, ValueKind.UINT32)
    values = [reinterpret(_parse_hex(token, _MASK32, tag), kind) for token in split_elements(payload)]
    slots = _sized(values, INT_ARRAY_CAPACITY, kind.default(), tag)
    return slots[:size] if size else slots


def _decode_array(
    payload: str,
    tag: ProtocolTag,
    size: int,
    default: Any,
    convert: Callable[[str], Any],
) -> List[Any]:
    return _sized([convert(token) for token in split_elements(payload)], size, default, tag)


def decode_response(
    response: str,
    tag: Union[ProtocolTag, int],
    kind: ValueKind = ValueKind.VOID,
    array_size: Optional[int] = None,
) -> Any:
    """Decode ``response`` for a request tagged ``tag`` returning ``kind``.

    ``tag`` may be a ``ProtocolTag`` or its plain wire number.
    """
    try:
        tag = ProtocolTag(tag)
    except ValueError as exc:
        raise ResponseFormatError(f"unknown protocol tag {tag!r}") from exc
    check_response(response)
    if tag is ProtocolTag.VOID:
        return None
    payload = payload_of(response)
    size = array_size or 0

    if tag is ProtocolTag.INT:
        return reinterpret(_parse_hex(payload, _MASK32, tag), _element_kind(kind, ValueKind.UINT32))
    if tag is ProtocolTag.STRING:
        return list(payload) if kind is ValueKind.CHARS or array_size else payload
    if tag is ProtocolTag.FLOAT:
        return _parse_float(payload, kind, tag)
    if tag is ProtocolTag.BYTE:
        value = _parse_hex(payload, 0xFF, tag)
        return chr(value) if kind is ValueKind.CHAR else value
    if tag is ProtocolTag.UINT64:
        return reinterpret(_parse_hex(payload, _MASK64, tag), _element_kind(kind, ValueKind.UINT64))
    if tag is ProtocolTag.INT_ARRAY:
        return _decode_int_array(payload, kind, size)
    if tag is ProtocolTag.FLOAT_ARRAY:
        return _decode_array(payload, tag, size, 0.0, lambda token: _parse_float(token, kind, tag))
    if tag is ProtocolTag.BYTE_ARRAY:
        as_char = kind is ValueKind.CHAR
        return _decode_array(
            payload,
            tag,
            size,
            "\x00" if as_char else 0,
            lambda token: chr(_parse_decimal(token, 0xFF, tag)) if as_char else _parse_decimal(token, 0xFF, tag),
        )
    if tag is ProtocolTag.UINT64_ARRAY:
        element = _element_kind(kind, ValueKind.UINT64)
        return _decode_array(
            payload,
            tag,
            size,
            element.default(),
            lambda token: reinterpret(_parse_decimal(token, _MASK64, tag), element),
        )
    raise ResponseFormatError(f"unknown protocol tag {tag!r}")
