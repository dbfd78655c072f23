import importlib


def test_jrpc_package_exports():
    module = importlib.import_module("jrpc")
    assert hasattr(module, "JRPCClient")
    assert hasattr(module, "XBDMTransport")
    assert hasattr(module, "ConsoleFeatures")
    assert hasattr(module, "DeferredPolicy")
    assert hasattr(module, "decode_response")
    for name in module.__all__:
        assert hasattr(module, name)
    assert module.__version__.startswith("0.")
