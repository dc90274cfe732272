"""
Main command-line interface for pympdmonitor.

This script provides a CLI to watch an MPD server for changes.
"""

import argparse
import asyncio
import logging

from pympdmonitor.exceptions import MPDError
from pympdmonitor.listener import ListenerKind, LoggingListener
from pympdmonitor.monitor import DEFAULT_POLL_INTERVAL_SECONDS, MPDStandAloneMonitor
from pympdmonitor.protocol import DEFAULT_PORT, MPDConnection
from pympdmonitor.response import parse_status


async def show_status(hostname: str, port: int):
    """Query and display the current status and outputs."""
    print(f"Connecting to MPD at {hostname}:{port}...")

    connection = MPDConnection(hostname, port)
    await connection.async_connect()
    try:
        snapshot = parse_status(await connection.fetch_status())
        outputs = await connection.fetch_outputs()
    finally:
        connection.close()

    print(f"\nMPD {connection.version} Status:")
    print("-" * 60)
    print(f"{'State:':20s} {snapshot.state}")
    print(f"{'Volume:':20s} {snapshot.volume}")
    print(f"{'Playlist version:':20s} {snapshot.playlist_version}")
    print(f"{'Playlist length:':20s} {snapshot.playlist_length}")
    print(f"{'Song:':20s} {snapshot.current_song_index} (id {snapshot.current_song_id})")
    print(f"{'Elapsed:':20s} {snapshot.elapsed_time_seconds}s")
    print(f"{'Bitrate:':20s} {snapshot.bitrate} kbps")
    if snapshot.error:
        print(f"{'Error:':20s} {snapshot.error}")

    print("\nOutputs:")
    print("-" * 60)
    for output in outputs:
        status = "ENABLED " if output.enabled else "DISABLED"
        print(f"Output {output.id}: [{status}] {output.name}")
    print("-" * 60)


async def monitor(hostname: str, port: int, interval: float):
    """Run the monitor and log every event until interrupted."""
    print(f"Connecting to MPD at {hostname}:{port}...")

    connection = MPDConnection(hostname, port)
    await connection.async_connect()

    mpd_monitor = MPDStandAloneMonitor(connection, poll_interval=interval)
    listener = LoggingListener(logging.getLogger("pympdmonitor.events"))
    for kind in ListenerKind:
        mpd_monitor.add_listener(kind, listener)

    mpd_monitor.start()
    print("Monitoring, press Ctrl-C to stop")
    try:
        await mpd_monitor.wait_closed()
    finally:
        mpd_monitor.stop()
        connection.close()


def main():
    parser = argparse.ArgumentParser(description="Monitor an MPD server for changes")
    parser.add_argument("--host", default="localhost", help="MPD hostname or IP (default: localhost)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"MPD port (default: {DEFAULT_PORT})")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Status command
    subparsers.add_parser("status", help="Show the current status and outputs")

    # Monitor command
    monitor_parser = subparsers.add_parser("monitor", help="Log change events until interrupted")
    monitor_parser.add_argument(
        "--interval", type=float, default=DEFAULT_POLL_INTERVAL_SECONDS,
        help=f"Seconds between polls (default: {DEFAULT_POLL_INTERVAL_SECONDS})"
    )

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    try:
        if args.command == "status":
            asyncio.run(show_status(args.host, args.port))
        elif args.command == "monitor":
            asyncio.run(monitor(args.host, args.port, args.interval))
        else:
            parser.print_help()
    except MPDError as e:
        print(f"Error: {e}")
    except KeyboardInterrupt:
        print("Stopped")


if __name__ == "__main__":
    main()
