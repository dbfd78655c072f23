"""
Transport layer for jrpc.

Responsibilities:
    * Manage the TCP connection to the console's debug monitor.
    * Send text commands and read ``<status>- <text>`` replies, including
      multi-line (202) bodies.
    * Provide raw memory peek/poke through ``getmem``/``setmem``.
    * Own the conversation timeout, widened for the duration of remote calls.
"""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from .errors import CommandError, TransportError

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_MULTILINE = 202
STATUS_UNKNOWN_COMMAND = 407
_TRANSIENT_ERRORS = (ConnectionRefusedError, ConnectionResetError, socket.timeout)


@dataclass
class TransportConfig:
    host: str = "127.0.0.1"
    port: int = 730
    connect_timeout: float = 5.0
    conversation_timeout: float = 2.0
    call_timeout: float = 4000.0
    connect_retries: int = 3
    connect_backoff: float = 0.1
    retry_statuses: Tuple[int, ...] = (401,)
    encoding: str = "latin-1"
    max_setmem_chunk: int = 128


def parse_status(line: str) -> Tuple[int, str]:
    """Split ``"200- text"`` into ``(200, "text")``."""
    head = line[:3]
    if len(head) != 3 or not head.isdigit():
        raise TransportError(f"malformed reply: {line!r}")
    rest = line[3:]
    if rest.startswith("-"):
        rest = rest[1:]
    return int(head), rest.lstrip(" ")


@dataclass
class XBDMTransport:
    """Synchronous line-oriented client for the debug monitor."""

    config: TransportConfig = field(default_factory=TransportConfig)

    _sock: Optional[socket.socket] = field(init=False, default=None)
    _buffer: bytes = field(init=False, default=b"")
    _lock: threading.RLock = field(init=False, default_factory=threading.RLock)
    _state: str = field(init=False, default="disconnected")
    _timeout: Optional[float] = field(init=False, default=None)
    _connect_timeout: Optional[float] = field(init=False, default=None)
    _on_connect: list[Callable[[str], None]] = field(init=False, default_factory=list)
    _on_disconnect: list[Callable[[str], None]] = field(init=False, default_factory=list)

    #
    # Connection lifecycle helpers
    #
    @property
    def state(self) -> str:
        return self._state

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else self.config.conversation_timeout

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout if self._connect_timeout is not None else self.config.connect_timeout

    def register_on_connect(self, callback: Callable[[str], None]) -> None:
        self._on_connect.append(callback)

    def register_on_disconnect(self, callback: Callable[[str], None]) -> None:
        self._on_disconnect.append(callback)

    def connect(self, *, retry: bool = True) -> None:
        """Open the TCP connection and consume the monitor's banner."""
        with self._lock:
            if self._sock:
                return
            self._set_state("connecting")
            try:
                self._connect_with_retry(retry=retry)
            except TransportError:
                self._set_state("disconnected")
                raise
            self._set_state("connected")

    def close(self) -> None:
        with self._lock:
            if self._sock:
                try:
                    self._send_line("bye")
                except TransportError as exc:
                    logger.debug("bye failed: %s", exc)
            self._handle_disconnect()

    @contextlib.contextmanager
    def exclusive(self) -> Iterator["XBDMTransport"]:
        """Hold the transport for a multi-command exchange."""
        with self._lock:
            yield self

    @contextlib.contextmanager
    def widened_timeouts(self) -> Iterator["XBDMTransport"]:
        """Use ``call_timeout`` for both connect and conversation inside the block.

        The configured timeouts are restored on exit, even on error.
        """
        with self._lock:
            self._connect_timeout = self.config.call_timeout
            self._apply_timeout(self.config.call_timeout)
            try:
                yield self
            finally:
                self._connect_timeout = None
                self._apply_timeout(self.config.conversation_timeout)

    #
    # Commands
    #
    def send_command(self, text: str) -> str:
        """Send ``text`` and return the status line of the reply."""
        line, _ = self._exchange(text)
        return line

    def send_multiline(self, text: str) -> List[str]:
        """Send ``text`` and return the body of a 202 multi-line reply."""
        line, body = self._exchange(text)
        if body is None:
            raise TransportError(f"expected multi-line reply to {text.split(' ', 1)[0]!r}, got {line!r}")
        return body

    def read_raw_bytes(self, address: int, length: int) -> bytes:
        if length <= 0:
            return b""
        lines = self.send_multiline(f"getmem addr=0x{address:X} length={length}")
        hex_text = "".join(line.strip() for line in lines)
        if "??" in hex_text:
            raise TransportError(f"memory at 0x{address:08X} (+{length}) is not mapped")
        try:
            data = bytes.fromhex(hex_text)
        except ValueError as exc:
            raise TransportError(f"getmem returned invalid hex: {hex_text[:32]!r}") from exc
        if len(data) != length:
            raise TransportError(f"getmem returned {len(data)} bytes, expected {length}")
        return data

    def write_raw_bytes(self, address: int, data: bytes) -> None:
        chunk = max(1, self.config.max_setmem_chunk)
        with self._lock:
            for offset in range(0, len(data), chunk):
                piece = data[offset : offset + chunk]
                self.send_command(f"setmem addr=0x{address + offset:X} data={piece.hex().upper()}")

    #
    # Internal helpers
    #
    def _ensure_connected(self) -> None:
        if self._sock:
            return
        self.connect()

    def _open_socket(self) -> socket.socket:
        sock = socket.create_connection(
            (self.config.host, self.config.port),
            timeout=self.connect_timeout,
        )
        sock.settimeout(self.timeout)
        return sock

    def _connect_with_retry(self, *, retry: bool) -> None:
        attempts = 1 + (max(0, self.config.connect_retries) if retry else 0)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            logger.debug("connecting to %s:%d (attempt %d)", self.config.host, self.config.port, attempt)
            try:
                sock = self._open_socket()
            except _TRANSIENT_ERRORS as exc:
                last_error = exc
            except OSError as exc:
                raise TransportError(f"connect failed: {exc}") from exc
            else:
                self._sock = sock
                self._buffer = b""
                try:
                    status, message = parse_status(self._read_line())
                except TransportError as exc:
                    self._handle_disconnect()
                    last_error = exc
                else:
                    if STATUS_OK <= status < 300:
                        return
                    self._handle_disconnect()
                    last_error = CommandError(status, message)
                    if status not in self.config.retry_statuses:
                        raise last_error
            if attempt < attempts:
                logger.warning("connect to %s failed (%s); retrying", self.config.host, last_error)
                time.sleep(self.config.connect_backoff)
        raise TransportError(f"connect failed: {last_error}") from last_error

    def _exchange(self, text: str) -> Tuple[str, Optional[List[str]]]:
        with self._lock:
            self._ensure_connected()
            logger.debug("-> %s", text)
            self._send_line(text)
            line = self._read_line()
            logger.debug("<- %s", line)
            status, message = parse_status(line)
            if status >= 400:
                raise CommandError(status, message, text)
            if status != STATUS_MULTILINE:
                return line, None
            body: List[str] = []
            while True:
                entry = self._read_line()
                if entry == ".":
                    return line, body
                body.append(entry)

    def _send_line(self, text: str) -> None:
        sock = self._sock
        if sock is None:
            raise TransportError("not connected")
        try:
            sock.sendall(text.encode(self.config.encoding) + b"\r\n")
        except OSError as exc:
            self._handle_disconnect()
            raise TransportError(f"send failed: {exc}") from exc

    def _read_line(self) -> str:
        sock = self._sock
        if sock is None:
            raise TransportError("not connected")
        while b"\n" not in self._buffer:
            try:
                chunk = sock.recv(4096)
            except socket.timeout as exc:
                self._handle_disconnect()
                raise TransportError(f"timed out after {self.timeout}s waiting for reply") from exc
            except OSError as exc:
                self._handle_disconnect()
                raise TransportError(f"receive failed: {exc}") from exc
            if not chunk:
                self._handle_disconnect()
                raise TransportError("connection closed")
            self._buffer += chunk
        line, self._buffer = self._buffer.split(b"\n", 1)
        return line.rstrip(b"\r").decode(self.config.encoding)

    def _apply_timeout(self, value: float) -> None:
        self._timeout = value
        if self._sock:
            self._sock.settimeout(value)

    def _handle_disconnect(self) -> None:
        sock = self._sock
        if sock:
            try:
                sock.close()
            except OSError:
                pass
        self._sock = None
        self._buffer = b""
        self._set_state("disconnected")

    def _set_state(self, new_state: str) -> None:
        if self._state == new_state:
            return
        self._state = new_state
        callbacks: list[Callable[[str], None]]
        if new_state == "connected":
            callbacks = list(self._on_connect)
        elif new_state == "disconnected":
            callbacks = list(self._on_disconnect)
        else:
            callbacks = []
        for callback in callbacks:
            try:
                callback(new_state)
            except Exception:
                logger.exception("transport state callback failed")
