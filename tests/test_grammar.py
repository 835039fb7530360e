"""Tests for the parser-combinator engine."""

import ipaddress

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
    QuotedString,
    Repeating,
    Sequence,
    Text,
)


class TestCursor:
    """Tests for the immutable cursor."""

    def test_skip_whitespace(self) -> None:
        """Test whitespace skipping returns a new cursor."""
        cursor = Cursor("  \n\tabc")
        skipped = cursor.skip_whitespace()
        assert skipped.pos == 4
        assert cursor.pos == 0
        assert skipped.peek() == "a"

    def test_peek_at_end(self) -> None:
        """Test peek returns empty string at end of input."""
        cursor = Cursor("a").advance()
        assert cursor.at_end
        assert cursor.peek() == ""

    def test_line_and_column(self) -> None:
        """Test position rendering for error messages."""
        cursor = Cursor("ab\ncd\nef", 4)
        assert cursor.line == 2
        assert cursor.column == 2
        assert str(cursor) == "line 2, column 2"


class TestLeafParsers:
    """Tests for Literal, Keyword, Identifier and QuotedString."""

    def test_literal_skips_whitespace(self) -> None:
        """Test Literal skips leading whitespace by default."""
        result = Literal("{").parse_text("   {x")
        assert result is not None
        assert result.value == Text("{")
        assert result.cursor.remainder() == "x"

    def test_literal_without_whitespace_skip(self) -> None:
        """Test Literal can be made whitespace-sensitive."""
        assert Literal("{", skip_whitespace=False).parse_text(" {") is None

    def test_literal_mismatch(self) -> None:
        """Test Literal fails on a different character."""
        assert Literal("{").parse_text("}") is None

    def test_keyword_match(self) -> None:
        """Test Keyword matches followed by a non-identifier character."""
        result = Keyword("FORMAT", str.isupper).parse_text("\nFORMAT {")
        assert result is not None
        assert result.value == Text("FORMAT")
        assert result.cursor.remainder() == " {"

    def test_keyword_rejects_longer_identifier(self) -> None:
        """Test FORMATX does not satisfy the FORMAT keyword."""
        assert Keyword("FORMAT", str.isupper).parse_text("FORMATX {") is None

    def test_keyword_at_end_of_input(self) -> None:
        """Test Keyword matches at the very end of input."""
        assert Keyword("FORMAT", str.isupper).parse_text("FORMAT") is not None

    def test_identifier_maximal_run(self) -> None:
        """Test Identifier consumes the longest matching run."""
        result = Identifier(str.isdigit).parse_text("  1234abc")
        assert result is not None
        assert result.value == Text("1234")
        assert result.cursor.remainder() == "abc"

    def test_identifier_empty_fails(self) -> None:
        """Test Identifier fails when nothing matches."""
        assert Identifier(str.isdigit).parse_text("abc") is None

    def test_quoted_string(self) -> None:
        """Test QuotedString returns the text between quotes."""
        result = QuotedString().parse_text('  "Alias 1" rest')
        assert result is not None
        assert result.value == Text("Alias 1")
        assert result.cursor.remainder() == " rest"

    def test_quoted_string_empty(self) -> None:
        """Test an empty quoted string is allowed."""
        result = QuotedString().parse_text('""')
        assert result is not None
        assert result.value == Text("")

    def test_quoted_string_unterminated(self) -> None:
        """Test QuotedString fails without a closing quote."""
        assert QuotedString().parse_text('"no end') is None

    def test_quoted_string_requires_opening_quote(self) -> None:
        """Test QuotedString fails on bare text."""
        assert QuotedString().parse_text("bare") is None


class TestAddressLiteral:
    """Tests for IPv4/IPv6 address tokens."""

    def test_ipv4(self) -> None:
        """Test parsing an IPv4 address followed by a newline."""
        result = AddressLiteral(ipaddress.IPv4Address).parse_text(" 10.10.250.1\n")
        assert result is not None
        assert result.value == Address(ipaddress.IPv4Address("10.10.250.1"))
        assert result.cursor.remainder() == "\n"

    def test_ipv6(self) -> None:
        """Test parsing an IPv6 address at end of input."""
        result = AddressLiteral(ipaddress.IPv6Address).parse_text("2600:6f64:cc08:40::1")
        assert result is not None
        assert result.value.value == ipaddress.ip_address("2600:6f64:cc08:40::1")
        assert result.cursor.at_end

    def test_wrong_family(self) -> None:
        """Test an IPv4 token is not accepted as IPv6."""
        assert AddressLiteral(ipaddress.IPv6Address).parse_text("10.10.250.1") is None

    def test_invalid_address(self) -> None:
        """Test an out-of-range octet fails."""
        assert AddressLiteral(ipaddress.IPv4Address).parse_text("10.10.250.256") is None

    def test_requires_whitespace_after(self) -> None:
        """Test an address glued to other text fails."""
        assert AddressLiteral(ipaddress.IPv4Address).parse_text("10.10.250.1x") is None

    def test_keyword_is_not_an_address(self) -> None:
        """Test a block keyword starting with a hex letter is rejected."""
        assert AddressLiteral(ipaddress.IPv6Address).parse_text("FORMAT {") is None


class TestCombinators:
    """Tests for Sequence, Options and Repeating."""

    def test_sequence_success(self) -> None:
        """Test Sequence collects child results in order."""
        result = Sequence(Literal("a"), Literal("b")).parse_text("a b")
        assert result is not None
        assert result.value == Group((Text("a"), Text("b")))

    def test_sequence_all_or_nothing(self) -> None:
        """Test a failing Sequence consumes nothing."""
        cursor = Cursor("ac")
        assert Sequence(Literal("a"), Literal("b")).parse(cursor) is None
        assert cursor.pos == 0

    def test_sequence_action_only_on_success(self) -> None:
        """Test the action runs only when every child matched."""
        calls = []

        def action(group: Group) -> str:
            calls.append(group)
            return "".join(item.value for item in group)

        parser = Sequence(Literal("a"), Literal("b"), action=action)
        assert parser.parse_text("ac") is None
        assert calls == []

        result = parser.parse_text("ab")
        assert result is not None
        assert result.value == Built("ab")
        assert len(calls) == 1

    def test_sequence_exposes_children(self) -> None:
        """Test composite parsers expose their children."""
        a, b = Literal("a"), Literal("b")
        assert Sequence(a, b).children == (a, b)
        assert Options(a, b).children == (a, b)

    def test_options_backtracks(self) -> None:
        """Test Options retries each alternative from the same position."""
        parser = Options(
            Sequence(Literal("a"), Literal("b")),
            Sequence(Literal("a"), Literal("c")),
        )
        result = parser.parse_text("ac")
        assert result is not None
        assert result.value == Group((Text("a"), Text("c")))

    def test_options_first_match_wins(self) -> None:
        """Test the first matching alternative is used."""
        parser = Options(Identifier(str.isalpha), Literal("a"))
        result = parser.parse_text("abc")
        assert result is not None
        assert result.value == Text("abc")

    def test_options_all_fail(self) -> None:
        """Test Options fails when no alternative matches."""
        assert Options(Literal("a"), Literal("b")).parse_text("c") is None

    def test_repeating_zero_times(self) -> None:
        """Test Repeating succeeds with no matches."""
        result = Repeating(Literal("a")).parse_text("bbb")
        assert result is not None
        assert len(result.value) == 0
        assert result.cursor.pos == 0

    def test_repeating_greedy(self) -> None:
        """Test Repeating collects every match."""
        result = Repeating(QuotedString()).parse_text('"a" "b"\n"c" rest')
        assert result is not None
        assert [item.value for item in result.value] == ["a", "b", "c"]
        assert result.cursor.remainder() == " rest"

    def test_repeating_with_separator(self) -> None:
        """Test a trailing separator is not consumed."""
        parser = Repeating(Identifier(str.isdigit), separator=Literal(","))
        result = parser.parse_text("1,2,")
        assert result is not None
        assert [item.value for item in result.value] == ["1", "2"]
        assert result.cursor.remainder() == ","

    def test_repeating_stops_on_empty_match(self) -> None:
        """Test a child matching the empty string cannot loop forever."""
        result = Repeating(Repeating(Literal("a"))).parse_text("bbb")
        assert result is not None
        assert len(result.value) == 0
