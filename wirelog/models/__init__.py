"""Data models for wirelog rules and records."""

from wirelog.models.records import (
    DEFAULT_RULE,
    DecodedRecord,
    DecodeFailure,
    DecodeFailureReason,
    ExtractionRule,
    HostKey,
    HostName,
    Target,
)

__all__ = [
    "DEFAULT_RULE",
    "DecodedRecord",
    "DecodeFailure",
    "DecodeFailureReason",
    "ExtractionRule",
    "HostKey",
    "HostName",
    "Target",
]
