"""Syslog reception and message decoding."""

from wirelog.collectors.decoder import decode_message
from wirelog.collectors.relay import LogConnection, RelayConfig, RelayStats, SyslogRelay

__all__ = [
    "LogConnection",
    "RelayConfig",
    "RelayStats",
    "SyslogRelay",
    "decode_message",
]
