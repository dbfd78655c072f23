import pytest

from jrpc import ArgumentLimitExceeded, CallDescriptor, CallTarget, ProtocolTag, ThreadType, ValueKind, values
from jrpc.commands import encode_call, feature_command, int_fragment, poll_command, text_fragment


def _descriptor(*args, **kwargs):
    kwargs.setdefault("target", CallTarget.at(0x82000000))
    return CallDescriptor(arguments=tuple(values.tag_value(a) for a in args), **kwargs)


def test_encode_void_call_on_system_thread():
    assert encode_call(_descriptor()) == 'consolefeatures ver=2 type=0 system as=0 params="A\\82000000\\A\\0\\"'


def test_encode_export_call_on_title_thread():
    descriptor = _descriptor(
        1,
        "a",
        target=CallTarget.export("xam.xex", 526),
        return_kind=ValueKind.INT32,
        thread=ThreadType.TITLE,
    )
    assert encode_call(descriptor) == (
        'consolefeatures ver=2 type=1 module="xam.xex" ord=526 as=0 params="A\\0\\A\\2\\1\\1\\7/1\\61\\"'
    )


def test_encode_array_call_carries_size():
    descriptor = _descriptor(return_kind=ValueKind.FLOAT, is_array=True, array_size=4)
    assert descriptor.return_tag is ProtocolTag.FLOAT_ARRAY
    assert encode_call(descriptor).startswith("consolefeatures ver=2 type=6 system as=4 ")


def test_address_is_uppercase_hex_without_prefix():
    descriptor = _descriptor(target=CallTarget.at(0x8007ab10), return_kind=ValueKind.UINT64)
    assert 'type=8 system as=0 params="A\\8007AB10\\A\\0\\"' in encode_call(descriptor)


def test_protocol_version_is_configurable():
    assert encode_call(_descriptor(), version=3).startswith("consolefeatures ver=3 ")


def test_argument_limit():
    encode_call(_descriptor(*range(37)))
    with pytest.raises(ArgumentLimitExceeded) as excinfo:
        encode_call(_descriptor(*range(38)))
    assert excinfo.value.count == 38
    assert excinfo.value.limit == 37


def test_poll_command_format():
    assert poll_command(0x1000) == "consolefeatures buf_addr=0x1000"
    assert poll_command(0xDEADBEEF) == "consolefeatures buf_addr=0xDEADBEEF"


def test_feature_command_has_no_array_size():
    fragments = [int_fragment(state) for state in (8, 0, 128, 136)]
    assert feature_command(14, fragments) == (
        'consolefeatures ver=2 type=14 params="A\\0\\A\\4\\1\\8\\1\\0\\1\\128\\1\\136\\"'
    )


def test_text_fragments():
    assert text_fragment("Hi") == "2/2\\4869\\"
    assert text_fragment("Hi", tag=None) == "2\\4869\\"


def test_call_target_str():
    assert str(CallTarget.at(0x1234)) == "0x00001234"
    assert str(CallTarget.export("xboxkrnl.exe", 12)) == "xboxkrnl.exe@12"
