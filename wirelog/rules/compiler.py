"""Compiler for the wirelog rules file.

The rules file holds two kinds of block, in any order and any number::

    NICKNAMES {
        "Real host name" "Alias"
    }

    FORMAT {
        <\\d+>\\s?.{15}\\s(\\w+)\\s([^\\s:]+)\\s?:?\\s?(.+) host category message
    }
    10.10.250.1
    2600:6f64:cc08:40::1
    "printer.lan"
    *

A FORMAT block holds one regular expression followed by the target of each
of its capture groups, and applies to the host literals after the closing
brace: IPv4/IPv6 addresses, quoted host names, or ``*`` for the default
rule. Later definitions replace earlier ones.

Compilation is all-or-nothing: either the whole document parses and a new
ConfigurationStore is returned, or a ConfigError is raised and nothing is
applied.
"""

import ipaddress
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from wirelog.grammar import (
    Address,
    AddressLiteral,
    Built,
    Cursor,
    Group,
    Identifier,
    Keyword,
    Literal,
    Options,
    Parser,
    QuotedString,
    Repeating,
    Sequence,
    Text,
    Value,
)
from wirelog.models import ExtractionRule, HostName, Target
from wirelog.rules.errors import (
    ConfigSyntaxError,
    InvalidPatternError,
    InvalidTargetError,
    MalformedRuleError,
    UnmatchedBraceError,
    UnreadableConfigError,
)
from wirelog.rules.store import ConfigurationStore, StoreBuilder

logger = logging.getLogger(__name__)

HostLiteral = Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address, HostName]


@dataclass(frozen=True)
class NicknameBlock:
    pairs: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class FormatBlock:
    rule: ExtractionRule
    hosts: tuple[HostLiteral, ...]


def build_rule(pattern: str, targets: Iterable[str]) -> ExtractionRule:
    """Compile a pattern and its capture targets into an ExtractionRule.

    Raises:
        InvalidPatternError: The pattern is not a valid regular expression
        InvalidTargetError: A target token is not a known field name
        MalformedRuleError: The number of targets differs from the number
            of capture groups in the pattern
    """
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(f"Unable to compile pattern {pattern!r}: {e}") from e

    captures = []
    for token in targets:
        target = Target.from_token(token)
        if target is None:
            raise InvalidTargetError(f"Invalid log target: {token!r}")
        captures.append(target)

    if regex.groups != len(captures):
        raise MalformedRuleError(
            f"Pattern {pattern!r} has {regex.groups} capture group(s) "
            f"but {len(captures)} target(s)"
        )

    return ExtractionRule(pattern=regex, captures=tuple(captures))


def _host_literal(value: Value) -> HostLiteral:
    if isinstance(value, Address):
        return value.value
    if isinstance(value, Built):
        return value.value
    if isinstance(value, Text):
        return value.value
    raise TypeError(f"Unexpected host literal result: {value!r}")


def _nickname_block(group: Group) -> NicknameBlock:
    _keyword, _open, lines, _close = group
    return NicknameBlock(tuple((host.value, alias.value) for host, alias in lines))


def _format_block(group: Group) -> FormatBlock:
    _keyword, _open, pattern, targets, _close, hosts = group
    rule = build_rule(pattern.value, (target.value for target in targets))
    return FormatBlock(rule=rule, hosts=tuple(_host_literal(host) for host in hosts))


def _keyword(word: str) -> Keyword:
    return Keyword(word, boundary=str.isupper)


def build_grammar() -> Parser:
    """Build the parser for a whole rules document.

    The result of parsing is a Group of ``Built`` values, each wrapping a
    NicknameBlock or FormatBlock in document order.
    """
    nickname_line = Sequence(QuotedString(), QuotedString())
    nickname_block = Sequence(
        _keyword("NICKNAMES"),
        Literal("{"),
        Repeating(nickname_line),
        Literal("}"),
        action=_nickname_block,
    )

    pattern = Identifier(lambda c: not c.isspace())
    target = Identifier(lambda c: not c.isspace() and c != "}")
    host_literal = Options(
        Literal("*"),
        AddressLiteral(ipaddress.IPv4Address),
        AddressLiteral(ipaddress.IPv6Address),
        Sequence(QuotedString(), action=lambda group: HostName(group[0].value)),
    )
    format_block = Sequence(
        _keyword("FORMAT"),
        Literal("{"),
        pattern,
        Repeating(target),
        Literal("}"),
        Repeating(host_literal),
        action=_format_block,
    )

    return Repeating(Options(nickname_block, format_block))


DOCUMENT = build_grammar()

BLOCK_HEADER = Sequence(Options(_keyword("NICKNAMES"), _keyword("FORMAT")), Literal("{"))


def _diagnose(cursor: Cursor) -> Exception:
    """Explain why parsing stopped at ``cursor``."""
    start = cursor.skip_whitespace()
    header = BLOCK_HEADER.parse(start)

    if header is None:
        if start.peek() == "{" and "}" not in start.remainder():
            return UnmatchedBraceError('Unmatched "{"', start)
        snippet = start.remainder().split("\n", 1)[0][:40]
        return ConfigSyntaxError(f"Unexpected content {snippet!r}", start)

    block = header.value[0].value
    if "}" not in header.cursor.remainder():
        return UnmatchedBraceError(f'Unmatched "{{" in {block} block', start)
    return MalformedRuleError(f"Malformed {block} block", start)


def compile_config(text: str) -> ConfigurationStore:
    """Compile rules-file text into a ConfigurationStore.

    Raises:
        ConfigError: Any problem with the document; nothing is applied
    """
    result = DOCUMENT.parse_text(text)
    rest = result.cursor.skip_whitespace()
    if not rest.at_end:
        raise _diagnose(rest)

    builder = StoreBuilder()
    for built in result.value:
        block = built.value
        if isinstance(block, NicknameBlock):
            for host, alias in block.pairs:
                builder.add_nickname(host, alias)
        else:
            for host in block.hosts:
                builder.assign(host, block.rule)

    store = builder.freeze()
    logger.info(
        f"Compiled {store.rule_count} host rule(s) and {len(store.nicknames)} nickname(s)"
    )
    return store


def load_rules(path: Path) -> ConfigurationStore:
    """Read and compile a rules file.

    Raises:
        UnreadableConfigError: The file cannot be read as UTF-8 text
        ConfigError: The file contents do not compile
    """
    logger.info(f"Reading rules file {path}")
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadableConfigError(f"Unable to read rules file {path}: {e}") from e
    return compile_config(text)
