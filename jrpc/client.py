"""Remote call and memory client built on top of a debug-monitor transport."""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from .arguments import SEP, tag_arguments
from .commands import CallDescriptor, CallTarget, check_argument_count, encode_call, feature_command, text_fragment
from .deferred import DeferredPolicy, resolve_deferred
from .errors import CommandError, ExtensionNotInstalled, RemoteError
from .memory import decode_string, decode_values, encode_string, encode_values, fixed_width
from .responses import ERROR_MARKER, EXTENSION_MISSING_MARKER, check_response, decode_response, payload_int
from .transport import STATUS_UNKNOWN_COMMAND, TransportConfig, XBDMTransport
from .types import PROTOCOL_VERSION, ThreadType, ValueKind, validate_return_type

logger = logging.getLogger(__name__)

Target = Union[CallTarget, int, Tuple[str, int]]

FEATURE_RESOLVE_FUNCTION = 9


def as_target(target: Target) -> CallTarget:
    """Accept a ``CallTarget``, an address, or a ``(module, ordinal)`` pair."""
    if isinstance(target, CallTarget):
        return target
    if isinstance(target, tuple):
        module, ordinal = target
        return CallTarget.export(module, ordinal)
    return CallTarget.at(int(target))


class JRPCClient:
    """Connection handle for remote calls and memory access.

    The handle owns its transport, its timeout configuration (through the
    transport) and its deferred-poll policy.  Calls are serialized on the
    transport, so one handle may be shared between threads.
    """

    def __init__(
        self,
        transport: Optional[Any] = None,
        *,
        transport_config: Optional[TransportConfig] = None,
        deferred: Optional[DeferredPolicy] = None,
        protocol_version: int = PROTOCOL_VERSION,
    ) -> None:
        self.transport = transport or XBDMTransport(transport_config or TransportConfig())
        self.deferred = deferred or DeferredPolicy()
        self.protocol_version = protocol_version

    def connect(self) -> "JRPCClient":
        self.transport.connect()
        return self

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "JRPCClient":
        return self.connect()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def send_command(self, text: str) -> str:
        """Send a raw command; extension errors become typed exceptions."""
        try:
            response = self.transport.send_command(text)
        except CommandError as exc:
            index = exc.message.find(ERROR_MARKER)
            if index >= 0:
                raise RemoteError(exc.message[index + len(ERROR_MARKER) :], exc.response) from exc
            if exc.status == STATUS_UNKNOWN_COMMAND or EXTENSION_MISSING_MARKER in exc.message:
                raise ExtensionNotInstalled() from exc
            raise
        return check_response(response)

    @contextlib.contextmanager
    def _call_scope(self) -> Iterator[None]:
        with contextlib.ExitStack() as stack:
            for name in ("exclusive", "widened_timeouts"):
                scope = getattr(self.transport, name, None)
                if scope is not None:
                    stack.enter_context(scope())
            yield

    def _invoke(
        self,
        descriptor: CallDescriptor,
        deferred: Optional[DeferredPolicy],
        cancel: Optional[threading.Event],
    ) -> Any:
        command = encode_call(descriptor, version=self.protocol_version)
        logger.debug("call %s returning %s", descriptor.target, descriptor.return_tag.name)
        with self._call_scope():
            response = self.send_command(command)
            response = resolve_deferred(response, self.send_command, deferred or self.deferred, cancel=cancel)
        return decode_response(response, descriptor.return_tag, descriptor.return_kind, descriptor.array_size)

    def _descriptor(
        self,
        kind: ValueKind,
        target: Target,
        arguments: Tuple[Any, ...],
        thread: ThreadType,
        *,
        array_size: int = 0,
        is_array: bool = False,
    ) -> CallDescriptor:
        check_argument_count(len(arguments))
        return CallDescriptor(
            target=as_target(target),
            return_kind=kind,
            arguments=tuple(tag_arguments(arguments)),
            thread=thread,
            array_size=array_size,
            is_array=is_array,
        )

    def call(
        self,
        kind: ValueKind,
        target: Target,
        *arguments: Any,
        thread: ThreadType = ThreadType.SYSTEM,
        deferred: Optional[DeferredPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Call the function at ``target`` and decode its result as ``kind``."""
        validate_return_type(kind)
        descriptor = self._descriptor(kind, target, arguments, thread)
        return self._invoke(descriptor, deferred, cancel)

    def call_void(
        self,
        target: Target,
        *arguments: Any,
        thread: ThreadType = ThreadType.SYSTEM,
        deferred: Optional[DeferredPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.call(ValueKind.VOID, target, *arguments, thread=thread, deferred=deferred, cancel=cancel)

    def call_string(
        self,
        target: Target,
        *arguments: Any,
        thread: ThreadType = ThreadType.SYSTEM,
        deferred: Optional[DeferredPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        return self.call(ValueKind.STRING, target, *arguments, thread=thread, deferred=deferred, cancel=cancel)

    def call_array(
        self,
        kind: ValueKind,
        target: Target,
        size: int,
        *arguments: Any,
        thread: ThreadType = ThreadType.SYSTEM,
        deferred: Optional[DeferredPolicy] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[Any]:
        """Call ``target`` and decode ``size`` elements of ``kind``.

        A size of zero yields a one-element array holding the kind's default
        without sending anything.
        """
        validate_return_type(kind, is_array=True)
        if size == 0:
            return [kind.default()]
        descriptor = self._descriptor(kind, target, arguments, thread, array_size=size, is_array=True)
        return self._invoke(descriptor, deferred, cancel)

    def resolve_function(self, module: str, ordinal: int) -> int:
        """Address of export ``ordinal`` in ``module``."""
        command = feature_command(
            FEATURE_RESOLVE_FUNCTION,
            [text_fragment(module, tag=None), f"{ordinal}{SEP}"],
            version=self.protocol_version,
        )
        response = self.send_command(command)
        return payload_int(response)

    # ------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------
    def get_memory(self, address: int, length: int) -> bytes:
        return self.transport.read_raw_bytes(address, length)

    def set_memory(self, address: int, data: bytes) -> None:
        self.transport.write_raw_bytes(address, bytes(data))

    def read_value(self, kind: ValueKind, address: int) -> Any:
        return self.read_array(kind, address, 1)[0]

    def read_array(self, kind: ValueKind, address: int, count: int) -> List[Any]:
        width = fixed_width(kind)
        return decode_values(self.get_memory(address, width * count), kind, count)

    def write_value(self, kind: ValueKind, address: int, value: Any) -> None:
        self.write_array(kind, address, [value])

    def write_array(self, kind: ValueKind, address: int, values: Iterable[Any]) -> None:
        self.set_memory(address, encode_values(values, kind))

    def read_string(self, address: int, size: int) -> str:
        return decode_string(self.get_memory(address, size))

    def write_string(self, address: int, text: str) -> None:
        self.set_memory(address, encode_string(text))

    def read_bool(self, address: int) -> bool:
        return self.read_value(ValueKind.BOOL, address)

    def read_byte(self, address: int) -> int:
        return self.read_value(ValueKind.BYTE, address)

    def read_int32(self, address: int) -> int:
        return self.read_value(ValueKind.INT32, address)

    def read_uint32(self, address: int) -> int:
        return self.read_value(ValueKind.UINT32, address)

    def read_float(self, address: int) -> float:
        return self.read_value(ValueKind.FLOAT, address)

    def write_bool(self, address: int, value: bool) -> None:
        self.write_value(ValueKind.BOOL, address, value)

    def write_byte(self, address: int, value: int) -> None:
        self.write_value(ValueKind.BYTE, address, value)

    def write_int32(self, address: int, value: int) -> None:
        self.write_value(ValueKind.INT32, address, value)

    def write_uint32(self, address: int, value: int) -> None:
        self.write_value(ValueKind.UINT32, address, value)

    def write_float(self, address: int, value: float) -> None:
        self.write_value(ValueKind.FLOAT, address, value)
