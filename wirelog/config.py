"""Daemon settings for wirelog.

Loads listener, rules-file, sink and logging settings from a TOML file with
CLI override support. The extraction rules themselves live in a separate
rules file (see wirelog.rules.compiler).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli

logger = logging.getLogger(__name__)


def get_default_config_path() -> Path:
    """Get the default settings file path."""
    return Path.home() / ".config" / "wirelog" / "wirelog.toml"


def get_config_search_paths() -> list[Path]:
    """Get list of paths to search for the settings file."""
    return [
        Path("wirelog.toml"),  # Current directory
        get_default_config_path(),
        Path("/etc/wirelog/wirelog.toml"),
    ]


def find_config_file() -> Optional[Path]:
    """Find the first existing settings file."""
    for path in get_config_search_paths():
        if path.exists():
            return path
    return None


@dataclass
class Config:
    """Loaded settings with all sections."""

    # Listener
    listen_port: int = 514
    listen_protocol: str = "udp"
    listen_bind_address: str = "0.0.0.0"
    listen_allowed_ips: list[str] = field(default_factory=list)
    listen_idle_timeout: int = 300
    listen_max_connections: int = 4096

    # Rules
    rules_path: Path = field(default_factory=lambda: Path("/etc/wirelog/wirelog.conf"))

    # Sink
    sink_syslog_address: str = ""
    sink_facility: str = "user"

    # Logging
    log_level: str = "INFO"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load settings from a TOML file.

    Args:
        config_path: Explicit path to the settings file, or None to search

    Returns:
        Config object with loaded values (defaults when no file is usable)
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        logger.debug("No settings file found, using defaults")
        return config

    logger.info(f"Loading settings from {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning(f"Failed to load settings file: {e}")
        return config

    # Listener section
    if "listener" in data:
        listener = data["listener"]
        if "port" in listener:
            config.listen_port = listener["port"]
        if "protocol" in listener:
            config.listen_protocol = listener["protocol"]
        if "bind_address" in listener:
            config.listen_bind_address = listener["bind_address"]
        if "allowed_ips" in listener:
            config.listen_allowed_ips = listener["allowed_ips"]
        if "idle_timeout" in listener:
            config.listen_idle_timeout = listener["idle_timeout"]
        if "max_connections" in listener:
            config.listen_max_connections = listener["max_connections"]

    # Rules section
    if "rules" in data:
        rules = data["rules"]
        if "path" in rules:
            config.rules_path = Path(rules["path"]).expanduser()

    # Sink section
    if "sink" in data:
        sink = data["sink"]
        if "syslog_address" in sink:
            config.sink_syslog_address = sink["syslog_address"]
        if "facility" in sink:
            config.sink_facility = sink["facility"]

    # Logging section
    if "logging" in data:
        log_section = data["logging"]
        if "level" in log_section:
            config.log_level = str(log_section["level"]).upper()

    return config


def merge_cli_options(config: Config, **cli_options: Any) -> Config:
    """Merge CLI options into config (CLI takes precedence).

    Args:
        config: Base config from file
        **cli_options: CLI option overrides (None values are ignored)

    Returns:
        Config with CLI overrides applied
    """
    mappings = {
        "port": "listen_port",
        "protocol": "listen_protocol",
        "bind": "listen_bind_address",
        "allow": "listen_allowed_ips",
        "rules": "rules_path",
        "syslog_address": "sink_syslog_address",
    }

    for cli_name, config_name in mappings.items():
        if cli_name in cli_options:
            value = cli_options[cli_name]
            # Only override if CLI value is meaningful
            if value is not None and value != () and value != "":
                if cli_name == "allow" and isinstance(value, tuple):
                    value = list(value)
                if cli_name == "rules":
                    value = Path(value)
                setattr(config, config_name, value)

    return config
