"""MPD transport: the source interfaces the monitor polls and an asyncio client implementing them.

MPD speaks a line protocol over TCP. On connect the server greets with
``OK MPD <version>``. Each command is a single line; the reply is a sequence
of ``key: value`` lines terminated by ``OK``, or a single
``ACK [error@command_listNum] {command} message`` line on failure.
"""

from abc import ABC, abstractmethod
import asyncio
import logging
import re
from typing import Optional

from pympdmonitor.exceptions import MPDConnectionError, MPDResponseError
from pympdmonitor.response import OutputEntry, parse_outputs

DEFAULT_PORT = 6600
DEFAULT_COMMAND_TIMEOUT = 10.0

GREETING = re.compile(r"^OK MPD (\S+)$")
# ACK [50@0] {play} song doesn't exist: "10"
ACK_RESPONSE = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)$")
OK_RESPONSE = "OK"


class StatusSource(ABC):

    @abstractmethod
    async def fetch_status(self) -> list[str]:
        """Return the raw ``status`` reply lines.

        Raises MPDConnectionError when the transport is down and
        MPDResponseError on a malformed reply.
        """

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check connectivity. Must not raise for a dead transport."""


class OutputSource(ABC):

    @abstractmethod
    async def fetch_outputs(self) -> list[OutputEntry]:
        """Return the configured audio outputs in server order."""


class MPDProtocol(asyncio.Protocol):
    """Splits received data into lines and resolves one pending reply at a time."""

    _buffer: bytes
    _lines: list[str]
    _reply: Optional[asyncio.Future]

    def __init__(self, on_connection_lost=None):
        self._logger = logging.getLogger(__name__)
        self._loop = asyncio.get_running_loop()
        self._on_connection_lost = on_connection_lost
        self._transport = None
        self._connected = False
        self._buffer = b""
        self._lines = []
        self._reply = None
        self.version: Optional[str] = None
        self.greeting: asyncio.Future = self._loop.create_future()

    @property
    def connected(self) -> bool:
        return self._connected

    def connection_made(self, transport):
        """Method from asyncio.Protocol"""
        self._transport = transport
        self._connected = True
        self._logger.info(f"Connection Made: {transport.get_extra_info('peername')}")

    def connection_lost(self, exc):
        """Method from asyncio.Protocol"""
        self._connected = False
        self._transport = None
        reason = str(exc) if exc else "Connection closed"
        error = MPDConnectionError(reason)
        if not self.greeting.done():
            self.greeting.set_exception(error)
        if self._reply is not None and not self._reply.done():
            self._reply.set_exception(error)
        self._reply = None
        if self._on_connection_lost is not None:
            self._on_connection_lost(reason)

    def data_received(self, data):
        """Method from asyncio.Protocol"""
        self._logger.debug(f"data_received client: {data}")
        # Decode whole lines only, a UTF-8 sequence may span two reads
        self._buffer += data
        while b"\n" in self._buffer:
            line, self._buffer = self._buffer.split(b"\n", 1)
            self._process_line(line.decode("utf-8", errors="replace").rstrip("\r"))

    def _process_line(self, line: str):
        if not self.greeting.done():
            greeting_match = GREETING.match(line)
            if greeting_match:
                self.version = greeting_match.group(1)
                self.greeting.set_result(self.version)
            else:
                self.greeting.set_exception(MPDResponseError(f"Unexpected greeting: {line!r}"))
            return

        if self._reply is None or self._reply.done():
            self._logger.warning(f"Ignoring unsolicited line: {line!r}")
            return

        if line == OK_RESPONSE:
            lines, self._lines = self._lines, []
            self._reply.set_result(lines)
            return

        ack_match = ACK_RESPONSE.match(line)
        if ack_match:
            self._lines = []
            self._reply.set_exception(MPDResponseError(ack_match.group(4), ack_match.group(3)))
            return

        self._lines.append(line)

    def send_command(self, command: str) -> asyncio.Future:
        """Write ``command`` and return a future resolving to its reply lines."""
        if not self._connected or self._transport is None:
            raise MPDConnectionError("Not connected")
        if self._reply is not None and not self._reply.done():
            raise MPDResponseError(f"Command already in progress, cannot send {command!r}", command)
        self._lines = []
        self._reply = self._loop.create_future()
        self._logger.debug(f"SEND: {command}")
        self._transport.write(f"{command}\n".encode("utf-8"))
        return self._reply

    def close(self):
        if self._transport is not None:
            self._transport.close()


class MPDConnection(StatusSource, OutputSource):
    """Minimal MPD client providing the status and outputs the monitor polls."""

    def __init__(self, hostname, port=DEFAULT_PORT, command_timeout=DEFAULT_COMMAND_TIMEOUT):
        """Initialize connection.

        Args:
            hostname: MPD server hostname or IP
            port: TCP port (MPD default 6600)
            command_timeout: Seconds to wait for a reply before treating the connection as dead
        """
        self._hostname = hostname
        self._port = port
        self._command_timeout = command_timeout
        self._logger = logging.getLogger(__name__)
        self._protocol: Optional[MPDProtocol] = None
        self._lock: Optional[asyncio.Lock] = None
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._protocol is not None and self._protocol.connected

    @property
    def version(self) -> Optional[str]:
        return self._protocol.version if self._protocol else None

    async def async_connect(self):
        """Connect and wait for the server greeting."""
        self._closing = False
        loop = asyncio.get_running_loop()
        try:
            _, protocol = await asyncio.wait_for(
                loop.create_connection(
                    lambda: MPDProtocol(self._on_connection_lost), host=self._hostname, port=self._port
                ),
                timeout=self._command_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise MPDConnectionError(f"Unable to connect to {self._hostname}:{self._port}: {e}") from e
        try:
            await asyncio.wait_for(protocol.greeting, timeout=self._command_timeout)
        except asyncio.TimeoutError as e:
            protocol.close()
            raise MPDConnectionError(f"No greeting from {self._hostname}:{self._port}") from e
        except MPDResponseError:
            protocol.close()
            raise
        self._protocol = protocol
        self._logger.info(f"Connected to MPD {protocol.version} at {self._hostname}:{self._port}")

    def close(self):
        self._closing = True
        if self._protocol is not None:
            self._protocol.close()
            self._protocol = None

    def _on_connection_lost(self, reason: str):
        if self._closing:
            # Only info in here as close has been called.
            self._logger.info(f"Disconnected from {self._hostname}")
        else:
            self._logger.error(f"Disconnected from {self._hostname}: {reason}")

    async def command(self, command: str) -> list[str]:
        """Send one command and return its reply lines."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if not self.connected:
                raise MPDConnectionError(f"Not connected to {self._hostname}:{self._port}")
            protocol = self._protocol
            try:
                return await asyncio.wait_for(protocol.send_command(command), timeout=self._command_timeout)
            except asyncio.TimeoutError as e:
                # A reply that never comes leaves the line protocol out of sync
                protocol.close()
                raise MPDConnectionError(f"No reply to {command!r} within {self._command_timeout}s") from e

    async def fetch_status(self) -> list[str]:
        return await self.command("status")

    async def fetch_outputs(self) -> list[OutputEntry]:
        return parse_outputs(await self.command("outputs"))

    async def is_connected(self) -> bool:
        try:
            if not self.connected:
                await self.async_connect()
            await self.command("ping")
        except (MPDConnectionError, MPDResponseError) as e:
            self._logger.debug(f"Connectivity check failed: {e}")
            return False
        return True

    def __repr__(self):
        return f"MPDConnection({self._hostname!r}, {self._port})"
