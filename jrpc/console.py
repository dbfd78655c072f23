"""Console helpers composed from the call core and plain monitor commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

from .client import JRPCClient
from .commands import feature_command, int_fragment, text_fragment
from .errors import TransportError
from .responses import payload_int, payload_of
from .transport import parse_status

logger = logging.getLogger(__name__)

FEATURE_CPU_KEY = 10
FEATURE_SHUTDOWN = 11
FEATURE_NOTIFY = 12
FEATURE_KERNEL_VERSION = 13
FEATURE_LEDS = 14
FEATURE_TEMPERATURE = 15
FEATURE_TITLE_ID = 16
FEATURE_CONSOLE_TYPE = 17


class LEDState(IntEnum):
    OFF = 0
    RED = 8
    GREEN = 128
    ORANGE = 136


class TemperatureType(IntEnum):
    CPU = 0
    GPU = 1
    EDRAM = 2
    MOTHERBOARD = 3


@dataclass
class ConsoleFeatures:
    client: JRPCClient

    def _feature(self, feature: int, *fragments: str) -> str:
        command = feature_command(feature, fragments, version=self.client.protocol_version)
        return self.client.send_command(command)

    def xnotify(self, message: str, logo: int = 0) -> None:
        """Pop a system notification with ``message``."""
        self._feature(FEATURE_NOTIFY, text_fragment(message), int_fragment(int(logo)))

    def get_cpu_key(self) -> str:
        return payload_of(self._feature(FEATURE_CPU_KEY)).strip()

    def get_kernel_version(self) -> int:
        return payload_int(self._feature(FEATURE_KERNEL_VERSION), base=10)

    def get_temperature(self, sensor: TemperatureType = TemperatureType.CPU) -> int:
        return payload_int(self._feature(FEATURE_TEMPERATURE, int_fragment(int(sensor))))

    def current_title_id(self) -> int:
        return payload_int(self._feature(FEATURE_TITLE_ID))

    def console_type(self) -> str:
        return payload_of(self._feature(FEATURE_CONSOLE_TYPE)).strip()

    def set_leds(
        self,
        top_left: LEDState,
        top_right: LEDState,
        bottom_left: LEDState,
        bottom_right: LEDState,
    ) -> None:
        self._feature(
            FEATURE_LEDS,
            *(int_fragment(int(state)) for state in (top_left, top_right, bottom_left, bottom_right)),
        )

    def shutdown(self) -> None:
        # the console drops the connection instead of replying
        try:
            self._feature(FEATURE_SHUTDOWN)
        except TransportError as exc:
            logger.debug("shutdown: connection dropped (%s)", exc)

    # ------------------------------------------------------------------
    # Plain monitor commands
    # ------------------------------------------------------------------
    def dm_version(self) -> str:
        return payload_of(self.client.send_command("dmversion")).strip()

    def xuid(self) -> str:
        return payload_of(self.client.send_command("xuid")).strip()

    def freeze(self) -> None:
        self.client.send_command("stop")

    def unfreeze(self) -> None:
        self.client.send_command("go")

    def set_default_profile(self, xuid: int) -> None:
        self.client.send_command(f"autoprof xuid={xuid}")

    def launch_xex(self, path: str, directory: str) -> bool:
        """Boot the title at ``path``; True when the monitor accepted it."""
        response = self.client.send_command(f'magicboot Title="{path}" Directory="{directory}"')
        status, _ = parse_status(response)
        return 200 <= status < 300 and status != 203
