"""Syslog relay listener.

Receives syslog messages from devices over UDP (and optionally TCP), picks
each device's extraction rule once per connection, decodes every message
with it and hands the resulting records to a callback (normally
LogSink.emit).

UDP has no connections, so every remote (address, port) pair is treated as
one: its state is created on the first datagram and forgotten after
``idle_timeout`` seconds without traffic. Within a connection messages are
decoded in arrival order; a message that fails to decode is logged and
dropped without affecting the next one.
"""

import asyncio
import logging
import signal
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from cachetools import TTLCache

from wirelog.collectors.decoder import decode_message
from wirelog.models import DecodedRecord, DecodeFailure, DecodeFailureReason
from wirelog.rules import (
    ConfigurationStore,
    HostSpecResolver,
    NicknameResolver,
    default_host_label,
    host_key,
)

logger = logging.getLogger(__name__)


@dataclass
class RelayConfig:
    """Configuration for the relay listener."""

    port: int = 514
    protocol: str = "udp"  # "udp", "tcp", or "both"
    bind_address: str = "0.0.0.0"
    allowed_ips: list[str] = field(default_factory=list)  # Empty = allow all
    idle_timeout: int = 300  # Seconds before an idle UDP endpoint is forgotten
    max_connections: int = 4096


@dataclass
class RelayStats:
    """Counters reported when the relay stops."""

    connections: int = 0
    messages_received: int = 0
    records_emitted: int = 0
    suppressed: int = 0
    decode_failures: int = 0


# Type alias for record handler callback
RecordHandler = Callable[[DecodedRecord], None]


class LogConnection:
    """Decoding state for one remote endpoint.

    The rule and the fallback host label are fixed when the connection is
    opened and used for every message it receives.
    """

    def __init__(
        self,
        peer: tuple | None,
        resolver: HostSpecResolver,
        nicknames: NicknameResolver,
        handler: RecordHandler,
        stats: RelayStats,
    ) -> None:
        self.peer = peer
        self.nicknames = nicknames
        self.handler = handler
        self.stats = stats

        identity = host_key(peer[0]) if peer else None
        if identity is None:
            logger.warning(f"Non-network endpoint {peer!r}, using default rule")
            self.rule = resolver.default_rule
        else:
            self.rule = resolver.resolve(identity)
        self.default_host = default_host_label(identity)

    def describe(self) -> str:
        if not self.peer:
            return "<unknown>"
        return f"{self.peer[0]}:{self.peer[1]}"

    def decode(self, data: bytes) -> DecodedRecord | None:
        """Decode one message with this connection's rule and apply the alias.

        Raises:
            DecodeFailure: The payload is not UTF-8 or does not match the rule
        """
        record = decode_message(data, self.rule, self.default_host)
        if record is None:
            return None
        return replace(record, host=self.nicknames.alias(record.host))

    def receive(self, data: bytes) -> None:
        """Decode one message and pass the record on."""
        self.stats.messages_received += 1

        try:
            record = self.decode(data)
        except DecodeFailure as e:
            self.stats.decode_failures += 1
            if e.reason is DecodeFailureReason.NO_MATCH:
                text = data.decode("utf-8", errors="replace")
                logger.warning(f"Unmatched msg from [{self.describe()}]: {text}")
            else:
                logger.warning(f"Invalid UTF-8 msg from [{self.describe()}]: {data[:80]!r}")
            return

        if record is None:
            self.stats.suppressed += 1
            return

        try:
            self.handler(record)
            self.stats.records_emitted += 1
        except Exception as e:
            logger.error(f"Error handling record from [{self.describe()}]: {e}")


class UDPRelayProtocol(asyncio.DatagramProtocol):
    """UDP protocol handler; one LogConnection per remote endpoint."""

    def __init__(self, relay: "SyslogRelay") -> None:
        self.relay = relay
        self.transport: asyncio.DatagramTransport | None = None
        self.connections: TTLCache = TTLCache(
            maxsize=relay.config.max_connections,
            ttl=relay.config.idle_timeout,
        )

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:  # type: ignore[override]
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        source_ip = addr[0]

        if not self.relay.is_allowed(source_ip):
            logger.debug(f"Rejected syslog from {source_ip} (not in allowlist)")
            return

        key = (addr[0], addr[1])
        connection = self.connections.get(key)
        if connection is None:
            connection = self.relay.open_connection(key)
        # Re-inserting restarts the idle timer
        self.connections[key] = connection
        connection.receive(data)


class TCPRelayProtocol(asyncio.Protocol):
    """TCP protocol handler for newline-delimited syslog messages."""

    def __init__(self, relay: "SyslogRelay") -> None:
        self.relay = relay
        self.transport: asyncio.Transport | None = None
        self.buffer = b""
        self.connection: LogConnection | None = None

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self.transport = transport
        peer = transport.get_extra_info("peername")

        if peer and not self.relay.is_allowed(peer[0]):
            logger.debug(f"Rejected TCP connection from {peer[0]} (not in allowlist)")
            transport.close()
            return

        self.connection = self.relay.open_connection(peer)

    def data_received(self, data: bytes) -> None:
        if self.connection is None:
            return
        self.buffer += data

        while b"\n" in self.buffer:
            line, self.buffer = self.buffer.split(b"\n", 1)
            line = line.rstrip(b"\r")
            if line:
                self.connection.receive(line)

    def connection_lost(self, exc: Exception | None) -> None:
        if self.connection is not None:
            logger.debug(f"TCP connection closed from {self.connection.describe()}")


class SyslogRelay:
    """Async syslog relay supporting UDP and TCP."""

    def __init__(
        self,
        config: RelayConfig,
        store: ConfigurationStore,
        handler: RecordHandler,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Listener configuration
            store: Compiled rules; never modified after this point
            handler: Callback for each decoded record
        """
        self.config = config
        self.resolver = HostSpecResolver(store)
        self.nicknames = NicknameResolver(store)
        self.handler = handler
        self.stats = RelayStats()
        self._udp_transport: asyncio.DatagramTransport | None = None
        self._tcp_server: asyncio.Server | None = None
        self._running = False

    def is_allowed(self, source_ip: str) -> bool:
        allowed = self.config.allowed_ips
        if not allowed or source_ip in allowed:
            return True
        return str(host_key(source_ip)) in allowed

    def open_connection(self, peer: tuple | None) -> LogConnection:
        """Create the per-endpoint state for a new connection."""
        logger.info(f"New connection from: {peer[0] if peer else '<unknown>'}")
        self.stats.connections += 1
        return LogConnection(peer, self.resolver, self.nicknames, self.handler, self.stats)

    async def start(self) -> None:
        """Start listening."""
        loop = asyncio.get_running_loop()
        self._running = True

        if self.config.protocol in ("udp", "both"):
            transport, _protocol = await loop.create_datagram_endpoint(
                lambda: UDPRelayProtocol(self),
                local_addr=(self.config.bind_address, self.config.port),
            )
            self._udp_transport = transport
            logger.info(f"Syslog UDP listening on {self.config.bind_address}:{self.config.port}")

        if self.config.protocol in ("tcp", "both"):
            self._tcp_server = await loop.create_server(
                lambda: TCPRelayProtocol(self),
                self.config.bind_address,
                self.config.port,
            )
            logger.info(f"Syslog TCP listening on {self.config.bind_address}:{self.config.port}")

    async def stop(self) -> None:
        """Stop listening."""
        self._running = False

        if self._udp_transport:
            self._udp_transport.close()
            self._udp_transport = None
            logger.info("Syslog UDP stopped")

        if self._tcp_server:
            self._tcp_server.close()
            await self._tcp_server.wait_closed()
            self._tcp_server = None
            logger.info("Syslog TCP stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_forever(self) -> None:
        """Run the relay until interrupted."""
        await self.start()

        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        def signal_handler() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler)
            except NotImplementedError:
                # Not supported on this platform (e.g., Windows)
                pass

        try:
            await stop_event.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.remove_signal_handler(sig)
                except (NotImplementedError, ValueError):
                    pass
            await self.stop()
