"""
jrpc - client bridge for the JRPC debug-monitor extension.

Invoke functions and read/write raw memory on a console through the
extension's ``consolefeatures`` text command:

    types.py      → wire tags, host value kinds, return-type whitelist
    values.py     → tagged argument values
    arguments.py  → argument fragments
    commands.py   → call descriptors and command strings
    responses.py  → response decoding
    deferred.py   → ``buf_addr=`` polling
    memory.py     → big-endian memory codec
    transport.py  → TCP connection to the debug monitor
    client.py     → connection handle (calls, memory)
    console.py    → console helpers
"""

from .client import JRPCClient, as_target  # noqa: F401
from .commands import CallDescriptor, CallTarget, encode_call, poll_command  # noqa: F401
from .console import ConsoleFeatures, LEDState, TemperatureType  # noqa: F401
from .deferred import DeferredPolicy, resolve_deferred  # noqa: F401
from .errors import (  # noqa: F401
    ArgumentLimitExceeded,
    CommandError,
    ExtensionNotInstalled,
    JRPCError,
    RemoteError,
    ResponseFormatError,
    Timeout,
    TransportError,
    UnsupportedTypeError,
)
from .responses import decode_response  # noqa: F401
from .transport import TransportConfig, XBDMTransport  # noqa: F401
from .types import ProtocolTag, ThreadType, ValueKind  # noqa: F401
from . import values  # noqa: F401

__all__ = [
    "JRPCClient",
    "as_target",
    "CallDescriptor",
    "CallTarget",
    "encode_call",
    "poll_command",
    "ConsoleFeatures",
    "LEDState",
    "TemperatureType",
    "DeferredPolicy",
    "resolve_deferred",
    "ArgumentLimitExceeded",
    "CommandError",
    "ExtensionNotInstalled",
    "JRPCError",
    "RemoteError",
    "ResponseFormatError",
    "Timeout",
    "TransportError",
    "UnsupportedTypeError",
    "decode_response",
    "TransportConfig",
    "XBDMTransport",
    "ProtocolTag",
    "ThreadType",
    "ValueKind",
    "values",
]

__version__ = "0.1.0"
