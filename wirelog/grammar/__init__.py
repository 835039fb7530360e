"""Parser-combinator engine used to read the rules file."""

from wirelog.grammar.combinators import (
    Address,
    AddressLiteral,
    Built,
    Group,
    Identifier,
    Keyword,
    Literal,
    Options,
    Parser,
    QuotedString,
    Repeating,
    Sequence,
    Success,
    Text,
    Value,
)
from wirelog.grammar.cursor import Cursor

__all__ = [
    "Address",
    "AddressLiteral",
    "Built",
    "Cursor",
    "Group",
    "Identifier",
    "Keyword",
    "Literal",
    "Options",
    "Parser",
    "QuotedString",
    "Repeating",
    "Sequence",
    "Success",
    "Text",
    "Value",
]
