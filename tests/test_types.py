import pytest

from jrpc import ProtocolTag, UnsupportedTypeError, ValueKind
from jrpc.types import reinterpret, resolve_tag, to_single, validate_return_type


def test_protocol_tag_values_are_fixed():
    assert [int(tag) for tag in ProtocolTag] == list(range(10))
    assert ProtocolTag.UINT64 == 8
    assert ProtocolTag.UINT64_ARRAY == 9
    assert ProtocolTag.INT_ARRAY.is_array
    assert not ProtocolTag.STRING.is_array


@pytest.mark.parametrize(
    "kind, scalar, array",
    [
        (ValueKind.INT16, ProtocolTag.INT, ProtocolTag.INT_ARRAY),
        (ValueKind.UINT16, ProtocolTag.INT, ProtocolTag.INT_ARRAY),
        (ValueKind.INT32, ProtocolTag.INT, ProtocolTag.INT_ARRAY),
        (ValueKind.UINT32, ProtocolTag.INT, ProtocolTag.INT_ARRAY),
        (ValueKind.FLOAT, ProtocolTag.FLOAT, ProtocolTag.FLOAT_ARRAY),
        (ValueKind.DOUBLE, ProtocolTag.FLOAT, ProtocolTag.FLOAT_ARRAY),
        (ValueKind.BYTE, ProtocolTag.BYTE, ProtocolTag.BYTE_ARRAY),
        (ValueKind.CHAR, ProtocolTag.BYTE, ProtocolTag.BYTE_ARRAY),
        (ValueKind.INT64, ProtocolTag.UINT64, ProtocolTag.UINT64_ARRAY),
        (ValueKind.UINT64, ProtocolTag.UINT64, ProtocolTag.UINT64_ARRAY),
        (ValueKind.STRING, ProtocolTag.STRING, ProtocolTag.STRING),
        (ValueKind.CHARS, ProtocolTag.STRING, ProtocolTag.STRING),
    ],
)
def test_resolve_tag_families(kind, scalar, array):
    assert resolve_tag(kind) is scalar
    assert resolve_tag(kind, is_array=True) is array


def test_resolve_tag_falls_back_to_uint64():
    assert resolve_tag(ValueKind.BOOL) is ProtocolTag.UINT64
    assert resolve_tag(ValueKind.SBYTE) is ProtocolTag.UINT64
    assert resolve_tag(ValueKind.SBYTE, is_array=True) is ProtocolTag.UINT64_ARRAY


def test_validate_return_type_accepts_whitelist():
    for kind in (ValueKind.VOID, ValueKind.BOOL, ValueKind.UINT64, ValueKind.DOUBLE, ValueKind.STRING):
        validate_return_type(kind)
    validate_return_type(ValueKind.INT16, is_array=True)


@pytest.mark.parametrize("kind", [ValueKind.CHAR, ValueKind.SBYTE, ValueKind.CHARS])
def test_validate_return_type_rejects_unlisted(kind):
    with pytest.raises(UnsupportedTypeError):
        validate_return_type(kind)


def test_validate_return_type_rejects_void_array():
    with pytest.raises(UnsupportedTypeError):
        validate_return_type(ValueKind.VOID, is_array=True)


def test_reinterpret_narrows_and_signs():
    assert reinterpret(0xFFFFFFFF, ValueKind.INT32) == -1
    assert reinterpret(0xFFFFFFFF, ValueKind.UINT32) == 0xFFFFFFFF
    assert reinterpret(0xFFFF8000, ValueKind.INT16) == -32768
    assert reinterpret(0x1FF, ValueKind.BYTE) == 0xFF
    assert reinterpret(0xFFFFFFFFFFFFFFFF, ValueKind.INT64) == -1
    assert reinterpret(2, ValueKind.BOOL) is True
    assert reinterpret(0x41, ValueKind.CHAR) == "A"


def test_kind_defaults():
    assert ValueKind.INT32.default() == 0
    assert ValueKind.FLOAT.default() == 0.0
    assert ValueKind.BOOL.default() is False
    assert ValueKind.STRING.default() == ""


def test_to_single_rounds_and_saturates():
    assert to_single(0.1) != 0.1
    assert to_single(1.5) == 1.5
    assert to_single(1e300) == float("inf")
    assert to_single(-1e300) == float("-inf")
