"""wirelog - syslog relay with per-device extraction rules."""

__version__ = "0.1.0"
