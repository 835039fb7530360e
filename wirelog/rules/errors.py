"""Fatal rules-file errors.

Each class carries the process exit code the CLI uses for it, so operators
can tell failure classes apart from the exit status alone.
"""

from typing import Optional

from wirelog.grammar import Cursor


class ConfigError(Exception):
    """The rules file cannot be used; the daemon must not start."""

    exit_code = 1

    def __init__(self, message: str, position: Optional[Cursor] = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} ({position})"
        super().__init__(message)


class UnreadableConfigError(ConfigError):
    exit_code = 2


class UnmatchedBraceError(ConfigError):
    exit_code = 3


class MalformedRuleError(ConfigError):
    exit_code = 4


class InvalidTargetError(ConfigError):
    exit_code = 5


class InvalidPatternError(ConfigError):
    exit_code = 6


class ConfigSyntaxError(ConfigError):
    exit_code = 7
