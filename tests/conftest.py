"""Shared fixtures for wirelog tests."""

from pathlib import Path

import pytest

BASIC_CONFIG = r"""
NICKNAMES {
    "local.U7HD,abcdef123456" "Alias 1"
    "$$$Real host name$$$" "$$$Alias2$$$"
}

FORMAT {
    <\d+>\s?.{15}\s(\w+)\s([^\s:]+)\s?:?\s?(.+) host category message
}
10.10.250.1
10.10.250.2
2600:6f64:cc08:40::1
2600:6f64:cc08:40::2

FORMAT {
    <\d+>\s?.{15}\s(\w+,\w+)[^:]*:\s([^\s:]*):\s?(.+)
    host
    category
    message
}
10.10.250.27
10.10.250.54
"""


@pytest.fixture()
def basic_config() -> str:
    """Rules text with nicknames and two FORMAT blocks."""
    return BASIC_CONFIG


@pytest.fixture()
def rules_file(tmp_path: Path) -> Path:
    """BASIC_CONFIG written to a temporary rules file."""
    path = tmp_path / "wirelog.conf"
    path.write_text(BASIC_CONFIG, encoding="utf-8")
    return path
