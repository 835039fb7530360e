"""Final destination for decoded records.

Records are emitted through the ``wirelog.relay`` logger with the device
and category attached, either to the OS syslog facility (when an address
is configured) or to stdout.
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass
from typing import Optional, Union

from wirelog.models import DecodedRecord

RELAY_LOGGER = "wirelog.relay"

RECORD_FORMAT = "%(device)s %(category)s: %(message)s"
CONSOLE_FORMAT = "%(asctime)s " + RECORD_FORMAT


@dataclass
class SinkConfig:
    """Configuration for the log sink."""

    syslog_address: str = ""  # "/dev/log", "host" or "host:port"; empty = stdout
    facility: str = "user"


def parse_syslog_address(address: str) -> Union[str, tuple[str, int]]:
    """Turn a configured syslog address into a SysLogHandler address.

    Paths are used as unix sockets; anything else is "host" or "host:port"
    over UDP.
    """
    if address.startswith("/"):
        return address
    host, sep, port = address.rpartition(":")
    if sep and host and port.isdigit():
        return (host.strip("[]"), int(port))
    return (address, logging.handlers.SYSLOG_UDP_PORT)


class LogSink:
    """Emits decoded records as log lines."""

    def __init__(self, config: Optional[SinkConfig] = None, logger_name: str = RELAY_LOGGER) -> None:
        self.config = config or SinkConfig()
        self.logger = logging.getLogger(logger_name)
        self.handler = self._make_handler()
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.emitted = 0

    def _make_handler(self) -> logging.Handler:
        if not self.config.syslog_address:
            handler: logging.Handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            return handler

        facility = logging.handlers.SysLogHandler.facility_names.get(self.config.facility)
        if facility is None:
            raise ValueError(f"Unknown syslog facility: {self.config.facility!r}")

        handler = logging.handlers.SysLogHandler(
            address=parse_syslog_address(self.config.syslog_address),
            facility=facility,
        )
        handler.setFormatter(logging.Formatter(RECORD_FORMAT))
        return handler

    def emit(self, record: DecodedRecord) -> None:
        """Write one record: "[timestamp] message", or just "message"."""
        self.logger.info(
            record.render(),
            extra={"device": record.host, "category": record.category or "-"},
        )
        self.emitted += 1

    def close(self) -> None:
        self.logger.removeHandler(self.handler)
        self.handler.close()
