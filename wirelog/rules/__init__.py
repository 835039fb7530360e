"""Rules file compilation and lookup."""

from wirelog.rules.compiler import build_rule, compile_config, load_rules
from wirelog.rules.errors import (
    ConfigError,
    ConfigSyntaxError,
    InvalidPatternError,
    InvalidTargetError,
    MalformedRuleError,
    UnmatchedBraceError,
    UnreadableConfigError,
)
from wirelog.rules.resolver import (
    HostSpecResolver,
    NicknameResolver,
    default_host_label,
    host_key,
)
from wirelog.rules.store import ConfigurationStore

__all__ = [
    "ConfigError",
    "ConfigSyntaxError",
    "ConfigurationStore",
    "HostSpecResolver",
    "InvalidPatternError",
    "InvalidTargetError",
    "MalformedRuleError",
    "NicknameResolver",
    "UnmatchedBraceError",
    "UnreadableConfigError",
    "build_rule",
    "compile_config",
    "default_host_label",
    "host_key",
    "load_rules",
]
