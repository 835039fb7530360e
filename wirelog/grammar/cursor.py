"""Immutable position into a text buffer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Cursor:
    """A read position into ``text``.

    Cursors are never mutated; every movement returns a new cursor, so a
    parser that fails simply hands back nothing and its caller still holds
    the position it started from.
    """

    text: str
    pos: int = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        """Next character, or "" at end of input."""
        return self.text[self.pos:self.pos + 1]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.pos)

    def advance(self, count: int = 1) -> "Cursor":
        return Cursor(self.text, min(self.pos + count, len(self.text)))

    def skip_whitespace(self) -> "Cursor":
        pos = self.pos
        while pos < len(self.text) and self.text[pos].isspace():
            pos += 1
        if pos == self.pos:
            return self
        return Cursor(self.text, pos)

    def take_while(self, predicate) -> str:
        """Maximal run of characters from here that satisfy ``predicate``."""
        end = self.pos
        while end < len(self.text) and predicate(self.text[end]):
            end += 1
        return self.text[self.pos:end]

    def remainder(self) -> str:
        return self.text[self.pos:]

    @property
    def line(self) -> int:
        return self.text.count("\n", 0, self.pos) + 1

    @property
    def column(self) -> int:
        return self.pos - (self.text.rfind("\n", 0, self.pos) + 1) + 1

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"
