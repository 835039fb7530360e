"""Backtracking parser combinators.

A parser is an object with ``parse(cursor)``. On success it returns a
``Success`` holding the advanced cursor and a result value; on failure it
returns None. Since cursors are immutable a failed parse never consumes
input, which is what lets ``Options`` retry every alternative from the same
start position.

Result values are one of:

- ``Text``: the characters a leaf parser matched
- ``Address``: an ``ipaddress`` object from ``AddressLiteral``
- ``Group``: the ordered child results of ``Sequence`` or ``Repeating``
- ``Built``: whatever a ``Sequence`` action returned
"""

import ipaddress
import string
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Union

from wirelog.grammar.cursor import Cursor

ADDRESS_CHARS = frozenset(string.hexdigits + ".:")


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Address:
    value: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class Group:
    items: tuple

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> "Value":
        return self.items[index]


@dataclass(frozen=True)
class Built:
    value: Any


Value = Union[Text, Address, Group, Built]


class Success(NamedTuple):
    cursor: Cursor
    value: Value


class Parser:
    """Base class for all grammar nodes."""

    children: tuple["Parser", ...] = ()

    def parse(self, cursor: Cursor) -> Optional[Success]:
        raise NotImplementedError

    def parse_text(self, text: str) -> Optional[Success]:
        """Parse from the start of ``text``."""
        return self.parse(Cursor(text))


class Literal(Parser):
    """A single exact character."""

    def __init__(self, char: str, skip_whitespace: bool = True) -> None:
        if len(char) != 1:
            raise ValueError(f"Literal matches one character, got {char!r}")
        self.char = char
        self.skip_whitespace = skip_whitespace

    def parse(self, cursor: Cursor) -> Optional[Success]:
        start = cursor.skip_whitespace() if self.skip_whitespace else cursor
        if start.peek() != self.char:
            return None
        return Success(start.advance(), Text(self.char))

    def __repr__(self) -> str:
        return f"Literal({self.char!r})"


class Keyword(Parser):
    """A fixed word that must not run on into an identifier.

    ``boundary`` is tested against the character right after the word; if
    it returns True the keyword is only a prefix of a longer token and the
    match fails. With ``boundary=str.isupper``, "FORMATX" does not satisfy
    ``Keyword("FORMAT", str.isupper)``.
    """

    def __init__(self, word: str, boundary: Callable[[str], bool]) -> None:
        self.word = word
        self.boundary = boundary

    def parse(self, cursor: Cursor) -> Optional[Success]:
        start = cursor.skip_whitespace()
        if not start.startswith(self.word):
            return None
        after = start.advance(len(self.word))
        following = after.peek()
        if following and self.boundary(following):
            return None
        return Success(after, Text(self.word))

    def __repr__(self) -> str:
        return f"Keyword({self.word!r})"


class Identifier(Parser):
    """The longest non-empty run of characters satisfying ``predicate``."""

    def __init__(self, predicate: Callable[[str], bool], skip_whitespace: bool = True) -> None:
        self.predicate = predicate
        self.skip_whitespace = skip_whitespace

    def parse(self, cursor: Cursor) -> Optional[Success]:
        start = cursor.skip_whitespace() if self.skip_whitespace else cursor
        run = start.take_while(self.predicate)
        if not run:
            return None
        return Success(start.advance(len(run)), Text(run))


class QuotedString(Parser):
    """Text between double quotes. No escape sequences."""

    def parse(self, cursor: Cursor) -> Optional[Success]:
        start = cursor.skip_whitespace()
        if start.peek() != '"':
            return None
        close = start.text.find('"', start.pos + 1)
        if close == -1:
            return None
        value = start.text[start.pos + 1:close]
        return Success(Cursor(start.text, close + 1), Text(value))


class AddressLiteral(Parser):
    """A bare IPv4 or IPv6 address token.

    Args:
        family: ``ipaddress.IPv4Address`` or ``ipaddress.IPv6Address``
    """

    def __init__(self, family: type) -> None:
        self.family = family

    def parse(self, cursor: Cursor) -> Optional[Success]:
        start = cursor.skip_whitespace()
        token = start.take_while(lambda c: c in ADDRESS_CHARS)
        if not token:
            return None
        after = start.advance(len(token))
        if not after.at_end and not after.peek().isspace():
            return None
        try:
            address = self.family(token)
        except ValueError:
            return None
        return Success(after, Address(address))

    def __repr__(self) -> str:
        return f"AddressLiteral({self.family.__name__})"


class Sequence(Parser):
    """All children in order, or nothing.

    ``action`` is called with the children's ``Group`` only once every child
    has matched; its return value becomes the result (wrapped in ``Built``).
    Exceptions raised by an action propagate to the caller of ``parse``.
    """

    def __init__(self, *children: Parser, action: Optional[Callable[[Group], Any]] = None) -> None:
        self.children = children
        self.action = action

    def parse(self, cursor: Cursor) -> Optional[Success]:
        current = cursor
        items = []
        for child in self.children:
            result = child.parse(current)
            if result is None:
                return None
            items.append(result.value)
            current = result.cursor

        group = Group(tuple(items))
        if self.action is None:
            return Success(current, group)
        return Success(current, Built(self.action(group)))


class Options(Parser):
    """First alternative that matches, each tried from the same position."""

    def __init__(self, *alternatives: Parser) -> None:
        self.children = alternatives

    def parse(self, cursor: Cursor) -> Optional[Success]:
        for alternative in self.children:
            result = alternative.parse(cursor)
            if result is not None:
                return result
        return None


class Repeating(Parser):
    """Zero or more matches of ``child``, greedily.

    Always succeeds. A repetition that consumes no input ends the loop so a
    child that can match the empty string cannot spin forever.
    """

    def __init__(self, child: Parser, separator: Optional[Parser] = None) -> None:
        self.children = (child,) if separator is None else (child, separator)
        self.child = child
        self.separator = separator

    def parse(self, cursor: Cursor) -> Optional[Success]:
        current = cursor
        items = []
        while True:
            attempt = current
            if items and self.separator is not None:
                sep = self.separator.parse(current)
                if sep is None:
                    break
                attempt = sep.cursor

            result = self.child.parse(attempt)
            if result is None or result.cursor.pos == attempt.pos:
                break
            items.append(result.value)
            current = result.cursor

        return Success(current, Group(tuple(items)))
