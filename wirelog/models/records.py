"""Core data types shared by the rules compiler, resolvers and decoder."""

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Target(Enum):
    """Field a capture group of an extraction rule is bound to."""

    TIMESTAMP = "timestamp"
    HOST = "host"
    CATEGORY = "category"
    MESSAGE = "message"

    @classmethod
    def from_token(cls, token: str) -> Optional["Target"]:
        """Map a rules-file keyword to a Target (case-sensitive).

        Returns:
            The matching Target, or None for an unrecognized token
        """
        try:
            return cls(token)
        except ValueError:
            return None


@dataclass(frozen=True)
class ExtractionRule:
    """A compiled pattern plus the target of each of its capture groups.

    Capture group ``i`` (1-indexed) is bound to ``captures[i - 1]``.
    Two rules are equal when their pattern source and capture lists are equal.
    """

    pattern: re.Pattern
    captures: tuple[Target, ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExtractionRule):
            return NotImplemented
        return (
            self.pattern.pattern == other.pattern.pattern
            and self.captures == other.captures
        )

    def __hash__(self) -> int:
        return hash((self.pattern.pattern, self.captures))

    @property
    def source(self) -> str:
        """The regular expression text the rule was compiled from."""
        return self.pattern.pattern

    @property
    def captures_message(self) -> bool:
        return Target.MESSAGE in self.captures


DEFAULT_RULE = ExtractionRule(
    pattern=re.compile(r"<\d+>\s*(.+)"),
    captures=(Target.MESSAGE,),
)


@dataclass(frozen=True)
class HostName:
    """Symbolic (non-address) host identity."""

    name: str

    def __str__(self) -> str:
        return self.name


# Identity used to select a rule for a device
HostKey = Union[ipaddress.IPv4Address, ipaddress.IPv6Address, HostName]


@dataclass(frozen=True)
class DecodedRecord:
    """One raw message split into fields, ready for the log sink."""

    host: str
    category: str = ""
    timestamp: Optional[str] = None
    message: Optional[str] = None

    def render(self) -> str:
        """Text handed to the sink: "[timestamp] message" or "message"."""
        if self.timestamp is not None:
            return f"[{self.timestamp}] {self.message}"
        return self.message or ""


class DecodeFailureReason(Enum):
    """Why a raw payload could not be decoded."""

    INVALID_ENCODING = "invalid_encoding"
    NO_MATCH = "no_match"


class DecodeFailure(Exception):
    """A single message could not be decoded; the message is dropped."""

    def __init__(self, reason: DecodeFailureReason, payload: bytes) -> None:
        self.reason = reason
        self.payload = payload
        super().__init__(f"{reason.value}: {payload[:120]!r}")
