import pytest

from jrpc import ExtensionNotInstalled, ProtocolTag, RemoteError, ResponseFormatError, ValueKind, decode_response
from jrpc.responses import check_response, payload_int, payload_of, split_elements
from jrpc.types import to_single


def test_payload_starts_after_first_space():
    assert payload_of("200- hello world") == "hello world"
    assert payload_of("200 1A") == "1A"
    assert payload_of("nospace") == "nospace"


def test_payload_int():
    assert payload_int("200- 80067F48") == 0x80067F48
    assert payload_int("200- 17559", base=10) == 17559
    with pytest.raises(ResponseFormatError):
        payload_int("200- nope")


def test_check_response_markers():
    assert check_response("200- 1") == "200- 1"
    with pytest.raises(RemoteError) as excinfo:
        check_response("200- error=bad pointer")
    assert excinfo.value.message == "bad pointer"
    assert excinfo.value.response == "200- error=bad pointer"
    with pytest.raises(ExtensionNotInstalled):
        check_response("200- DEBUG build required")


@pytest.mark.parametrize(
    "kind, expected",
    [
        (ValueKind.INT32, -1),
        (ValueKind.UINT32, 0xFFFFFFFF),
        (ValueKind.INT16, -1),
        (ValueKind.UINT16, 0xFFFF),
    ],
)
def test_decode_int(kind, expected):
    assert decode_response("200- FFFFFFFF", ProtocolTag.INT, kind) == expected


def test_decode_scalars():
    assert decode_response("200- 0", ProtocolTag.VOID) is None
    assert decode_response("200- 1.5", ProtocolTag.FLOAT, ValueKind.DOUBLE) == 1.5
    assert decode_response("200- 0.1", ProtocolTag.FLOAT, ValueKind.FLOAT) == to_single(0.1)
    assert decode_response("200- 41", ProtocolTag.BYTE, ValueKind.BYTE) == 0x41
    assert decode_response("200- FFFFFFFFFFFFFFFF", ProtocolTag.UINT64, ValueKind.INT64) == -1
    assert decode_response("200- FFFFFFFFFFFFFFFF", ProtocolTag.UINT64, ValueKind.UINT64) == (1 << 64) - 1
    assert decode_response("200- 1", ProtocolTag.UINT64, ValueKind.BOOL) is True


def test_decode_string():
    assert decode_response("200- hello world", ProtocolTag.STRING, ValueKind.STRING) == "hello world"
    assert decode_response("200- abc", ProtocolTag.STRING, ValueKind.CHARS) == ["a", "b", "c"]


def test_decode_int_array_by_requested_size():
    result = decode_response("200 1A,2B,3C;", ProtocolTag.INT_ARRAY, ValueKind.UINT32, 3)
    assert result == [0x1A, 0x2B, 0x3C]


def test_int_array_is_signed_per_kind_and_padded():
    result = decode_response("200- FFFFFFFF;", ProtocolTag.INT_ARRAY, ValueKind.INT32, 3)
    assert result == [-1, 0, 0]


def test_int_array_overflow_rejected():
    payload = ",".join("1" for _ in range(9)) + ";"
    with pytest.raises(ResponseFormatError):
        decode_response("200- " + payload, ProtocolTag.INT_ARRAY, ValueKind.INT32, 9)


def test_decode_other_arrays():
    assert decode_response("200- 1.5,-2.25;", ProtocolTag.FLOAT_ARRAY, ValueKind.FLOAT, 3) == [1.5, -2.25, 0.0]
    assert decode_response("200- 1,255;", ProtocolTag.BYTE_ARRAY, ValueKind.BYTE, 2) == [1, 255]
    result = decode_response("200- 18446744073709551615,5;", ProtocolTag.UINT64_ARRAY, ValueKind.INT64, 2)
    assert result == [-1, 5]


def test_array_longer_than_size_rejected():
    with pytest.raises(ResponseFormatError):
        decode_response("200- 1,2,3;", ProtocolTag.BYTE_ARRAY, ValueKind.BYTE, 2)


def test_malformed_payload_rejected():
    with pytest.raises(ResponseFormatError):
        decode_response("200- zz", ProtocolTag.INT, ValueKind.INT32)
    with pytest.raises(ResponseFormatError):
        decode_response("200- 1,,2;", ProtocolTag.BYTE_ARRAY, ValueKind.BYTE, 3)


def test_plain_int_tags_are_accepted():
    assert decode_response("200- 2A", 1, ValueKind.INT32) == 0x2A
    assert decode_response("200 1A,2B,3C;", 5, ValueKind.UINT32, 3) == [0x1A, 0x2B, 0x3C]
    assert decode_response("200- 0", 0) is None


def test_unknown_tag_rejected():
    with pytest.raises(ResponseFormatError):
        decode_response("200- 2A", 42, ValueKind.INT32)


def test_error_marker_wins_over_decoding():
    with pytest.raises(RemoteError):
        decode_response("200- error=no such export", ProtocolTag.INT, ValueKind.INT32)


def test_split_elements():
    assert split_elements("1,2,3;trailing") == ["1", "2", "3"]
    assert split_elements("1,2") == ["1"]
    assert split_elements(";") == []
    assert split_elements("") == []
