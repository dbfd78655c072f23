"""Command encoder for ``consolefeatures`` requests.

A remote call becomes a single text line::

    consolefeatures ver=2 type=<T>[ system][ module="<name>" ord=<n>] as=<size> params="A\\<ADDR>\\A\\<argc>\\<fragments>"

Building is a pure function of the descriptor; nothing here touches the
transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .arguments import SEP, encode_arguments, narrow_text
from .errors import ArgumentLimitExceeded
from .types import MAX_ARGUMENTS, PROTOCOL_VERSION, ProtocolTag, ThreadType, ValueKind, resolve_tag
from .values import TaggedValue

COMMAND = "consolefeatures"
BUFFER_MARKER = "buf_addr="


@dataclass(frozen=True)
class CallTarget:
    """Where a call lands: an absolute address or a module export."""

    address: int = 0
    module: Optional[str] = None
    ordinal: int = 0

    @classmethod
    def at(cls, address: int) -> "CallTarget":
        return cls(address=address & 0xFFFFFFFF)

    @classmethod
    def export(cls, module: str, ordinal: int) -> "CallTarget":
        return cls(module=module, ordinal=ordinal)

    def __str__(self) -> str:
        if self.module is not None:
            return f"{self.module}@{self.ordinal}"
        return f"0x{self.address:08X}"


@dataclass
class CallDescriptor:
    target: CallTarget
    return_kind: ValueKind = ValueKind.VOID
    arguments: Sequence[TaggedValue] = field(default_factory=tuple)
    thread: ThreadType = ThreadType.SYSTEM
    array_size: int = 0
    is_array: bool = False

    @property
    def return_tag(self) -> ProtocolTag:
        if self.return_kind is ValueKind.VOID:
            return ProtocolTag.VOID
        return resolve_tag(self.return_kind, self.is_array)


def check_argument_count(count: int) -> None:
    if count > MAX_ARGUMENTS:
        raise ArgumentLimitExceeded(count, MAX_ARGUMENTS)


def encode_call(descriptor: CallDescriptor, *, version: int = PROTOCOL_VERSION) -> str:
    arguments = list(descriptor.arguments)
    check_argument_count(len(arguments))
    target = descriptor.target
    parts = [f"{COMMAND} ver={version} type={int(descriptor.return_tag)}"]
    if descriptor.thread is ThreadType.SYSTEM:
        parts.append(" system")
    if target.module is not None:
        parts.append(f' module="{target.module}" ord={target.ordinal}')
    parts.append(
        f' as={descriptor.array_size} params="A{SEP}{target.address:X}{SEP}A{SEP}{len(arguments)}{SEP}'
    )
    parts.append(encode_arguments(arguments))
    parts.append('"')
    return "".join(parts)


def poll_command(address: int) -> str:
    """Follow-up request for a deferred result parked at ``address``."""
    return f"{COMMAND} {BUFFER_MARKER}0x{address:X}"


def feature_command(feature: int, fragments: Iterable[str] = (), *, version: int = PROTOCOL_VERSION) -> str:
    """Fixed-feature request (notify, LEDs, CPU key ...) with pre-built fragments."""
    fragments = list(fragments)
    body = "".join(fragments)
    return f'{COMMAND} ver={version} type={feature} params="A{SEP}0{SEP}A{SEP}{len(fragments)}{SEP}{body}"'


def text_fragment(text: str, tag: Optional[ProtocolTag] = ProtocolTag.STRING) -> str:
    """``<tag>/<len>\\<HEX>\\`` for a string; no tag prefix when ``tag`` is None."""
    prefix = f"{int(tag)}/" if tag is not None else ""
    return f"{prefix}{len(text)}{SEP}{narrow_text(text).hex().upper()}{SEP}"


def int_fragment(value: int) -> str:
    return f"{int(ProtocolTag.INT)}{SEP}{value}{SEP}"
