"""Command-line interface for wirelog."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wirelog.collectors import LogConnection, RelayConfig, RelayStats, SyslogRelay
from wirelog.config import find_config_file, load_config, merge_cli_options
from wirelog.models import DecodeFailure, ExtractionRule
from wirelog.rules import (
    ConfigError,
    ConfigurationStore,
    HostSpecResolver,
    NicknameResolver,
    load_rules,
)
from wirelog.sink import LogSink, SinkConfig

console = Console()


def setup_logging(level: str | int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def compile_rules_or_exit(path: Path) -> ConfigurationStore:
    """Compile the rules file; exit with the error's code if it is unusable."""
    try:
        return load_rules(path)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(e.exit_code)


def describe_rule(rule: ExtractionRule) -> str:
    targets = " ".join(target.value for target in rule.captures) or "-"
    return f"{escape(rule.source)}  [dim]→ {targets}[/dim]"


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to settings file (default: searches standard locations)",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None) -> None:
    """wirelog - syslog relay with per-device extraction rules."""
    ctx.ensure_object(dict)

    cfg = load_config(config)
    ctx.obj["config"] = cfg

    config_path = config or find_config_file()
    if config_path:
        ctx.obj["config_path"] = config_path


@main.command()
@click.argument("rules", type=click.Path(path_type=Path), required=False)
@click.option("--port", type=int, default=None, help="Port to listen on (default: 514)")
@click.option(
    "--protocol",
    type=click.Choice(["udp", "tcp", "both"]),
    default=None,
    help="Protocol to use (default: udp)",
)
@click.option("--bind", type=str, default=None, help="Address to bind to (default: 0.0.0.0)")
@click.option("--allow", type=str, multiple=True, help="Allowed source IPs (can specify multiple)")
@click.option("--syslog-address", type=str, default=None, help="Forward records to this syslog socket or host[:port]")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output (show each record)")
@click.pass_context
def listen(
    ctx: click.Context,
    rules: Path | None,
    port: int | None,
    protocol: str | None,
    bind: str | None,
    allow: tuple[str, ...],
    syslog_address: str | None,
    verbose: bool,
) -> None:
    """Relay syslog messages using the extraction rules in RULES.

    The rules file is compiled before the listener starts; any error in it
    stops the daemon with a non-zero exit code.

    Example:
        wirelog listen /etc/wirelog/wirelog.conf --port 1514 --protocol both
    """
    cfg = merge_cli_options(
        ctx.obj["config"],
        rules=rules,
        port=port,
        protocol=protocol,
        bind=bind,
        allow=allow,
        syslog_address=syslog_address,
    )

    setup_logging(logging.DEBUG if verbose else cfg.log_level)

    if "config_path" in ctx.obj:
        console.print(f"[dim]Settings: {ctx.obj['config_path']}[/dim]")

    store = compile_rules_or_exit(cfg.rules_path)

    try:
        sink = LogSink(SinkConfig(syslog_address=cfg.sink_syslog_address, facility=cfg.sink_facility))
    except (OSError, ValueError) as e:
        console.print(f"[red]Unable to open log sink: {e}[/red]")
        sys.exit(1)

    def handle_record(record) -> None:
        if verbose:
            console.print(
                f"[cyan]{escape(record.host)}[/cyan] "
                f"[yellow]{escape(record.category or '-')}[/yellow]: {escape(record.render()[:120])}"
            )
        sink.emit(record)

    relay_config = RelayConfig(
        port=cfg.listen_port,
        protocol=cfg.listen_protocol,
        bind_address=cfg.listen_bind_address,
        allowed_ips=cfg.listen_allowed_ips,
        idle_timeout=cfg.listen_idle_timeout,
        max_connections=cfg.listen_max_connections,
    )
    relay = SyslogRelay(relay_config, store, handle_record)

    def print_stats() -> None:
        stats = relay.stats
        console.print()
        console.print("[green]Syslog relay stopped[/green]")
        console.print(f"  Connections: {stats.connections:,}")
        console.print(f"  Messages received: {stats.messages_received:,}")
        console.print(f"  Records emitted: {stats.records_emitted:,}")
        console.print(f"  Suppressed: {stats.suppressed:,}")
        console.print(f"  Decode failures: {stats.decode_failures:,}")

    async def run() -> None:
        console.print(
            f"[green]Starting syslog relay on "
            f"{relay_config.bind_address}:{relay_config.port} ({relay_config.protocol})[/green]"
        )
        console.print(
            f"[cyan]Rules: {store.rule_count} host rule(s), "
            f"{len(store.nicknames)} nickname(s)[/cyan]"
        )
        if relay_config.allowed_ips:
            console.print(f"[cyan]Allowed IPs: {', '.join(relay_config.allowed_ips)}[/cyan]")
        console.print("[dim]Press Ctrl+C to stop[/dim]")
        console.print()

        await relay.run_forever()

    try:
        asyncio.run(run())
    except OSError as e:
        console.print(f"[red]Unable to start listener: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    finally:
        sink.close()
        print_stats()


@main.command()
@click.argument("rules", type=click.Path(path_type=Path))
def check(rules: Path) -> None:
    """Compile RULES and show the resulting tables."""
    setup_logging(logging.WARNING)
    store = compile_rules_or_exit(rules)

    table = Table(title="Extraction Rules")
    table.add_column("Host", no_wrap=True)
    table.add_column("Rule")

    for addr, rule in store.ipv4_rules.items():
        table.add_row(str(addr), describe_rule(rule))
    for addr, rule in store.ipv6_rules.items():
        table.add_row(str(addr), describe_rule(rule))
    for name, rule in store.named_rules.items():
        table.add_row(escape(f'"{name}"'), describe_rule(rule))
    table.add_row("*", describe_rule(store.default_rule))

    console.print(table)

    if store.nicknames:
        nick_table = Table(title="Nicknames")
        nick_table.add_column("Host name")
        nick_table.add_column("Alias")
        for host, alias in store.nicknames.items():
            nick_table.add_row(escape(host), escape(alias))
        console.print(nick_table)

    console.print("[green]Rules OK[/green]")


@main.command()
@click.argument("rules", type=click.Path(path_type=Path))
@click.argument("message", type=str)
@click.option("--source", type=str, default=None, help="Sending device address or name")
def decode(rules: Path, message: str, source: str | None) -> None:
    """Decode MESSAGE as if it were received from --source.

    Example:
        wirelog decode wirelog.conf --source 10.10.250.1 "<14>Jan 26 14:32:15 nas kernel: hi"
    """
    setup_logging(logging.WARNING)
    store = compile_rules_or_exit(rules)

    connection = LogConnection(
        (source, 0) if source else None,
        HostSpecResolver(store),
        NicknameResolver(store),
        lambda record: None,
        RelayStats(),
    )
    console.print(f"[dim]Rule: {describe_rule(connection.rule)}[/dim]")

    try:
        record = connection.decode(message.encode("utf-8"))
    except DecodeFailure as e:
        console.print(f"[red]Decode failed: {e.reason.value}[/red]")
        sys.exit(1)

    if record is None:
        console.print("[yellow]Suppressed: rule captures no message[/yellow]")
        return

    console.print(f"  Host: {escape(record.host)}")
    console.print(f"  Category: {escape(record.category)}")
    if record.timestamp is not None:
        console.print(f"  Timestamp: {escape(record.timestamp)}")
    console.print(f"  Message: {escape(record.message)}")


if __name__ == "__main__":
    main()
