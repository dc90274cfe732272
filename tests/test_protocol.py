"""Tests for the asyncio MPD client against a local fake server."""

import asyncio

import pytest

from pympdmonitor.exceptions import MPDConnectionError, MPDResponseError
from pympdmonitor.monitor import MPDStandAloneMonitor
from pympdmonitor.protocol import MPDConnection, MPDProtocol
from pympdmonitor.response import OutputEntry

REPLIES = {
    "status": "volume: 35\nplaylist: 4\nplaylistlength: 2\nstate: pause\nsong: 0\nsongid: 1\nOK\n",
    "outputs": (
        "outputid: 0\noutputname: ALSA\nplugin: alsa\noutputenabled: 1\n"
        "outputid: 1\noutputname: HTTP stream\nplugin: httpd\noutputenabled: 0\nOK\n"
    ),
    "ping": "OK\n",
    # never answered
    "idle": None,
}


def _run(coro):
    """Run async client scenario from sync test functions."""
    return asyncio.run(coro)


async def _start_server(greeting: str = "OK MPD 0.23.5\n", drop_on: str = None):
    """Start a fake MPD server on a free port; ``drop_on`` closes the connection on that command."""
    connections = []

    async def handle(reader, writer):
        connections.append(writer)
        writer.write(greeting.encode())
        await writer.drain()
        while True:
            line = await reader.readline()
            if not line:
                break
            command = line.decode().strip()
            if command == drop_on:
                break
            reply = REPLIES.get(command, f"ACK [5@0] {{{command}}} unknown command \"{command}\"\n")
            if reply is not None:
                writer.write(reply.encode())
                await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port, connections


async def _stop_server(server) -> None:
    server.close()
    await server.wait_closed()


def test_fetch_status_and_outputs() -> None:
    async def run() -> None:
        server, port, _ = await _start_server()
        connection = MPDConnection("127.0.0.1", port)
        await connection.async_connect()

        assert connection.connected
        assert connection.version == "0.23.5"
        assert await connection.fetch_status() == [
            "volume: 35",
            "playlist: 4",
            "playlistlength: 2",
            "state: pause",
            "song: 0",
            "songid: 1",
        ]
        assert await connection.fetch_outputs() == [
            OutputEntry(0, True, "ALSA"),
            OutputEntry(1, False, "HTTP stream"),
        ]
        assert await connection.is_connected()

        connection.close()
        await _stop_server(server)

    _run(run())


def test_ack_raises_response_error() -> None:
    async def run() -> None:
        server, port, _ = await _start_server()
        connection = MPDConnection("127.0.0.1", port)
        await connection.async_connect()

        with pytest.raises(MPDResponseError) as excinfo:
            await connection.command("bogus")
        assert excinfo.value.command == "bogus"
        assert "unknown command" in str(excinfo.value)

        # connection still usable after an ACK
        assert await connection.command("ping") == []

        connection.close()
        await _stop_server(server)

    _run(run())


def test_connect_refused_raises_connection_error() -> None:
    async def run() -> None:
        server, port, _ = await _start_server()
        await _stop_server(server)

        connection = MPDConnection("127.0.0.1", port, command_timeout=1.0)
        with pytest.raises(MPDConnectionError):
            await connection.async_connect()
        assert not await connection.is_connected()

    _run(run())


def test_unexpected_greeting_rejected() -> None:
    async def run() -> None:
        server, port, _ = await _start_server(greeting="HELLO\n")
        connection = MPDConnection("127.0.0.1", port)

        with pytest.raises(MPDResponseError, match="greeting"):
            await connection.async_connect()
        assert not connection.connected

        await _stop_server(server)

    _run(run())


def test_fetch_without_connection_raises_connection_error() -> None:
    async def run() -> None:
        connection = MPDConnection("127.0.0.1", 1)
        with pytest.raises(MPDConnectionError):
            await connection.fetch_status()

    _run(run())


def test_dropped_connection_raises_and_connectivity_check_reconnects() -> None:
    async def run() -> None:
        server, port, connections = await _start_server(drop_on="status")
        connection = MPDConnection("127.0.0.1", port)
        await connection.async_connect()

        with pytest.raises(MPDConnectionError):
            await connection.fetch_status()
        assert not connection.connected

        assert await connection.is_connected()
        assert connection.connected
        assert len(connections) == 2

        connection.close()
        await _stop_server(server)

    _run(run())


def test_unanswered_command_times_out_as_connection_error() -> None:
    async def run() -> None:
        server, port, _ = await _start_server()
        connection = MPDConnection("127.0.0.1", port, command_timeout=0.1)
        await connection.async_connect()

        with pytest.raises(MPDConnectionError, match="No reply"):
            await connection.command("idle")

        connection.close()
        await _stop_server(server)

    _run(run())


def test_monitor_against_fake_server() -> None:
    async def run() -> None:
        server, port, _ = await _start_server()
        connection = MPDConnection("127.0.0.1", port)
        await connection.async_connect()

        events = []
        monitor = MPDStandAloneMonitor(connection, poll_interval=0.01)
        monitor.add_player_change_listener(lambda event: events.append(event.status))
        monitor.add_connection_change_listener(lambda event: events.append(event.connected))
        monitor.start()
        await asyncio.sleep(0.2)
        monitor.stop()
        await monitor.wait_closed()

        # stopped -> paused has no event, and the connection never dropped
        assert events == []
        assert monitor.status.name == "PAUSED"

        connection.close()
        await _stop_server(server)

    _run(run())


class _Transport:
    """Collects what the protocol writes."""

    def __init__(self):
        self.written = []

    def write(self, data):
        self.written.append(data)

    def get_extra_info(self, name, default=None):
        return ("127.0.0.1", 6600) if name == "peername" else default

    def close(self):
        pass


def test_multibyte_character_split_across_reads() -> None:
    async def run() -> None:
        protocol = MPDProtocol()
        protocol.connection_made(_Transport())
        protocol.data_received(b"OK MPD 0.23.5\n")
        assert await protocol.greeting == "0.23.5"

        reply = protocol.send_command("outputs")
        name = "outputname: Küche\n".encode("utf-8")
        split_at = name.index("ü".encode("utf-8")) + 1
        protocol.data_received(b"outputid: 0\n" + name[:split_at])
        protocol.data_received(name[split_at:] + b"outputenabled: 1\nOK\n")

        assert await reply == ["outputid: 0", "outputname: Küche", "outputenabled: 1"]

    _run(run())
