"""Deferred result polling.

A call the console cannot finish synchronously answers with
``buf_addr=<hex>`` instead of a result.  The client then waits a fixed
interval and asks for ``consolefeatures buf_addr=0x<HEX>`` until the marker
disappears from the reply.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .commands import BUFFER_MARKER, poll_command
from .errors import ResponseFormatError, Timeout

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.25

_BUFFER_RE = re.compile(re.escape(BUFFER_MARKER) + r"(?:0[xX])?([0-9A-Fa-f]+)")


@dataclass
class DeferredPolicy:
    interval: float = POLL_INTERVAL
    timeout: Optional[float] = 30.0
    max_polls: Optional[int] = None


def find_buffer_address(response: str) -> Optional[int]:
    if BUFFER_MARKER not in response:
        return None
    match = _BUFFER_RE.search(response)
    if match is None:
        raise ResponseFormatError(f"deferred reply without a buffer address: {response!r}")
    return int(match.group(1), 16)


def resolve_deferred(
    response: str,
    send: Callable[[str], str],
    policy: Optional[DeferredPolicy] = None,
    *,
    cancel: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Poll until ``response`` no longer carries a buffer address.

    ``policy.timeout`` bounds the total wait and ``policy.max_polls`` the
    number of follow-up requests; both raise ``Timeout``.  Setting ``cancel``
    aborts the wait at the next interval.
    """
    policy = policy or DeferredPolicy()
    deadline = None if policy.timeout is None else clock() + policy.timeout
    polls = 0
    address = find_buffer_address(response)
    while address is not None:
        if policy.max_polls is not None and polls >= policy.max_polls:
            raise Timeout(f"deferred result at 0x{address:X} still pending after {polls} polls", polls)
        if cancel is not None:
            if cancel.wait(policy.interval):
                raise Timeout(f"deferred result at 0x{address:X} cancelled", polls)
        else:
            sleep(policy.interval)
        if deadline is not None and clock() >= deadline:
            raise Timeout(f"deferred result at 0x{address:X} not ready after {policy.timeout}s", polls)
        polls += 1
        logger.debug("polling deferred result at 0x%X (attempt %d)", address, polls)
        response = send(poll_command(address))
        address = find_buffer_address(response)
    return response
