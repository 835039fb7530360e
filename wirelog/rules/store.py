"""Rule and nickname tables produced by compiling a rules file."""

import ipaddress
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from wirelog.models import DEFAULT_RULE, ExtractionRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigurationStore:
    """Read-only snapshot of everything the rules file configured.

    Built once at startup and then shared by every connection handler.
    Nothing can modify it after construction, so it is safe to read from
    any task or thread without locking.
    """

    ipv4_rules: Mapping[ipaddress.IPv4Address, ExtractionRule] = field(
        default_factory=lambda: MappingProxyType({})
    )
    ipv6_rules: Mapping[ipaddress.IPv6Address, ExtractionRule] = field(
        default_factory=lambda: MappingProxyType({})
    )
    named_rules: Mapping[str, ExtractionRule] = field(
        default_factory=lambda: MappingProxyType({})
    )
    default_rule: ExtractionRule = DEFAULT_RULE
    nicknames: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def rule_count(self) -> int:
        """Number of host-specific rule entries."""
        return len(self.ipv4_rules) + len(self.ipv6_rules) + len(self.named_rules)


class StoreBuilder:
    """Mutable staging area filled in while a rules file is compiled.

    Later assignments overwrite earlier ones for the same key.
    """

    def __init__(self) -> None:
        self.ipv4_rules: dict[ipaddress.IPv4Address, ExtractionRule] = {}
        self.ipv6_rules: dict[ipaddress.IPv6Address, ExtractionRule] = {}
        self.named_rules: dict[str, ExtractionRule] = {}
        self.default_rule = DEFAULT_RULE
        self.nicknames: dict[str, str] = {}

    def add_nickname(self, host: str, alias: str) -> None:
        if host in self.nicknames:
            logger.debug(f"Nickname for {host!r} redefined: {self.nicknames[host]!r} -> {alias!r}")
        self.nicknames[host] = alias

    def assign(self, host, rule: ExtractionRule) -> None:
        """Bind ``rule`` to a host literal.

        Args:
            host: "*" for the default rule, an ``ipaddress`` object, or a
                symbolic host name
            rule: The rule to assign
        """
        if host == "*":
            self.default_rule = rule
            logger.info("Assigned default rule")
        elif isinstance(host, ipaddress.IPv4Address):
            self.ipv4_rules[host] = rule
            logger.info(f"Assigned rule for host: {host}")
        elif isinstance(host, ipaddress.IPv6Address) and host.ipv4_mapped is not None:
            # Senders with mapped addresses are looked up by their IPv4 form
            self.ipv4_rules[host.ipv4_mapped] = rule
            logger.info(f"Assigned rule for host: {host} (as {host.ipv4_mapped})")
        elif isinstance(host, ipaddress.IPv6Address):
            self.ipv6_rules[host] = rule
            logger.info(f"Assigned rule for host: {host}")
        else:
            self.named_rules[str(host)] = rule
            logger.info(f"Assigned rule for host: {host}")

    def freeze(self) -> ConfigurationStore:
        """Copy the staged tables into an immutable store."""
        return ConfigurationStore(
            ipv4_rules=MappingProxyType(dict(self.ipv4_rules)),
            ipv6_rules=MappingProxyType(dict(self.ipv6_rules)),
            named_rules=MappingProxyType(dict(self.named_rules)),
            default_rule=self.default_rule,
            nicknames=MappingProxyType(dict(self.nicknames)),
        )
