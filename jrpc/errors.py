"""Error taxonomy for the jrpc client."""

from __future__ import annotations

from typing import Optional


class JRPCError(RuntimeError):
    """Base class for every error raised by jrpc."""


class UnsupportedTypeError(JRPCError, TypeError):
    """Requested return type is outside the set the extension can marshal."""


class ArgumentLimitExceeded(JRPCError, ValueError):
    """A call carried more positional arguments than the wire allows."""

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"cannot use more than {limit} arguments in a call (got {count})")
        self.count = count
        self.limit = limit


class RemoteError(JRPCError):
    """The extension reported an application error (``error=`` marker)."""

    def __init__(self, message: str, response: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response


class ExtensionNotInstalled(JRPCError):
    """The debug monitor answered but the JRPC extension is not loaded."""

    def __init__(self, message: str = "JRPC is not installed on the current console") -> None:
        super().__init__(message)


class ResponseFormatError(JRPCError, ValueError):
    """A response payload could not be decoded for the requested tag."""


class TransportError(JRPCError):
    """Raised when the transport cannot complete an operation."""


class CommandError(TransportError):
    """The debug monitor rejected a command with a 4xx status."""

    def __init__(self, status: int, message: str, command: Optional[str] = None) -> None:
        super().__init__(f"{status}- {message}")
        self.status = status
        self.message = message
        self.command = command

    @property
    def response(self) -> str:
        return f"{self.status}- {self.message}"


class Timeout(JRPCError, TimeoutError):
    """A deferred result did not resolve before its deadline."""

    def __init__(self, message: str, polls: int = 0) -> None:
        super().__init__(message)
        self.polls = polls
