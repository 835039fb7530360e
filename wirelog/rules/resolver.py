"""Lookups against a compiled ConfigurationStore.

Two separate identities are involved for every message:

1. The transport identity of the sending device (its socket address)
   selects the extraction rule, via HostSpecResolver.
2. The host name found inside the message (or the transport identity when
   the rule captures none) labels the record, and NicknameResolver swaps it
   for the operator's alias when one is configured.
"""

import ipaddress
import logging
from typing import Optional

from wirelog.models import ExtractionRule, HostKey, HostName
from wirelog.rules.store import ConfigurationStore

logger = logging.getLogger(__name__)


def host_key(address: Optional[str]) -> Optional[HostKey]:
    """Turn a socket peer address into a HostKey.

    IPv4-mapped IPv6 addresses (as reported by dual-stack sockets) are
    folded to their IPv4 address so IPv4 rules still apply. The scope of a
    link-local address ("fe80::1%eth0") is dropped.

    Returns:
        An address, a HostName for anything that is not an IP literal, or
        None when there is no address at all
    """
    if not address:
        return None
    try:
        addr = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return HostName(address)
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def default_host_label(identity: object) -> str:
    """Label used for records whose rule does not capture a host."""
    if isinstance(identity, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return f"local.address({identity})"
    if isinstance(identity, HostName):
        return identity.name
    return "<unknown>"


class HostSpecResolver:
    """Picks the extraction rule for a device.

    Usage:
        resolver = HostSpecResolver(store)
        rule = resolver.resolve(ipaddress.ip_address("10.10.250.1"))
    """

    def __init__(self, store: ConfigurationStore) -> None:
        self.store = store

    def resolve(self, identity: object) -> ExtractionRule:
        """Return the rule for ``identity``, or the default rule.

        Never fails: identities of an unknown kind get the default rule and
        a warning.
        """
        if isinstance(identity, ipaddress.IPv4Address):
            return self.store.ipv4_rules.get(identity, self.store.default_rule)
        if isinstance(identity, ipaddress.IPv6Address):
            return self.store.ipv6_rules.get(identity, self.store.default_rule)
        if isinstance(identity, HostName):
            return self.store.named_rules.get(identity.name, self.store.default_rule)

        logger.warning(f"Unknown host type: {identity!r}, using default rule")
        return self.store.default_rule

    @property
    def default_rule(self) -> ExtractionRule:
        return self.store.default_rule


class NicknameResolver:
    """Maps host names found in messages to operator-chosen aliases."""

    def __init__(self, store: ConfigurationStore) -> None:
        self.store = store

    def alias(self, host: str) -> str:
        """Alias for ``host``, or ``host`` itself when none is configured."""
        return self.store.nicknames.get(host, host)
