"""Stand-alone MPD monitor.

Polls the server status at a fixed interval, feeds each snapshot to the
ChangeDetector and lets it fire events to the registered listeners:

- error and player state are compared on every poll
- playlist every 3rd, outputs every 4th, volume every 6th, bitrate every 8th poll
- a lost connection is reported once, then checked every RECONNECT_DELAY_SECONDS
  until the server answers again; baselines and poll counters survive the outage

The loop runs as a single task on the event loop that called ``start()``.
Listeners are invoked synchronously on that task.
"""

import asyncio
import logging
from typing import Any, Optional

from pympdmonitor.detector import ChangeDetector, PlayerState
from pympdmonitor.exceptions import MPDConnectionError, MPDError, MPDResponseError
from pympdmonitor.listener import (
    ConnectionChangeListener,
    ErrorListener,
    ListenerKind,
    ListenerRegistry,
    OutputChangeListener,
    PlayerChangeListener,
    PlaylistChangeListener,
    VolumeChangeListener,
)
from pympdmonitor.protocol import OutputSource, StatusSource
from pympdmonitor.response import parse_status

DEFAULT_POLL_INTERVAL_SECONDS = 1.0
RECONNECT_DELAY_SECONDS = 5.0


class MPDStandAloneMonitor:
    """Monitors an MPD connection and fires change events.

    Usage::

        connection = MPDConnection("localhost")
        await connection.async_connect()
        monitor = MPDStandAloneMonitor(connection)
        monitor.add_volume_change_listener(my_listener)
        monitor.start()
        ...
        monitor.stop()
        await monitor.wait_closed()
    """

    def __init__(self, status_source: StatusSource, output_source: Optional[OutputSource] = None,
                 poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS):
        """Initialize monitor.

        Args:
            status_source: Provides ``status`` replies and the connectivity check
            output_source: Provides the output list, defaults to status_source
            poll_interval: Seconds between polls
        """
        self._logger = logging.getLogger(__name__)
        self._status_source = status_source
        self._output_source = output_source if output_source is not None else status_source
        self._poll_interval = poll_interval

        self._registry = ListenerRegistry()
        self._detector = ChangeDetector(self._registry, source=self)

        self._stopped = True
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._wake_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task[Any]] = None

    # ========== Lifecycle ==========

    def start(self):
        """Start polling on the running event loop. Must not be called while running."""
        self._loop = asyncio.get_running_loop()
        self._wake_event = asyncio.Event()
        self._stopped = False
        self._task = self._loop.create_task(self._run())

    def stop(self):
        """Stop polling. Safe to call from any thread; wakes a pending sleep."""
        self._stopped = True
        if self._loop is None or self._wake_event is None:
            return
        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None
        if running_loop is self._loop:
            self._wake_event.set()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._wake_event.set)

    def is_running(self) -> bool:
        return not self._stopped

    async def wait_closed(self):
        """Wait for the loop task to finish after ``stop()``."""
        if self._task is not None:
            await self._task

    @property
    def status(self) -> PlayerState:
        """Player state as of the last poll."""
        return self._detector.status

    @property
    def elapsed_time(self) -> int:
        """Elapsed seconds of the current song as of the last poll."""
        return self._detector.elapsed_time

    # ========== Listeners ==========

    def add_listener(self, kind: ListenerKind, listener):
        self._registry.add(kind, listener)

    def remove_listener(self, kind: ListenerKind, listener):
        self._registry.remove(kind, listener)

    def clear_listeners(self):
        self._registry.clear()

    def add_player_change_listener(self, listener: PlayerChangeListener):
        self.add_listener(ListenerKind.PLAYER, listener)

    def remove_player_change_listener(self, listener: PlayerChangeListener):
        self.remove_listener(ListenerKind.PLAYER, listener)

    def add_playlist_change_listener(self, listener: PlaylistChangeListener):
        self.add_listener(ListenerKind.PLAYLIST, listener)

    def remove_playlist_change_listener(self, listener: PlaylistChangeListener):
        self.remove_listener(ListenerKind.PLAYLIST, listener)

    def add_volume_change_listener(self, listener: VolumeChangeListener):
        self.add_listener(ListenerKind.VOLUME, listener)

    def remove_volume_change_listener(self, listener: VolumeChangeListener):
        self.remove_listener(ListenerKind.VOLUME, listener)

    def add_output_change_listener(self, listener: OutputChangeListener):
        self.add_listener(ListenerKind.OUTPUT, listener)

    def remove_output_change_listener(self, listener: OutputChangeListener):
        self.remove_listener(ListenerKind.OUTPUT, listener)

    def add_error_listener(self, listener: ErrorListener):
        self.add_listener(ListenerKind.ERROR, listener)

    def remove_error_listener(self, listener: ErrorListener):
        self.remove_listener(ListenerKind.ERROR, listener)

    def add_connection_change_listener(self, listener: ConnectionChangeListener):
        self.add_listener(ListenerKind.CONNECTION, listener)

    def remove_connection_change_listener(self, listener: ConnectionChangeListener):
        self.remove_listener(ListenerKind.CONNECTION, listener)

    # ========== Poll loop ==========

    async def _run(self):
        self._logger.info(f"Monitor started, polling every {self._poll_interval}s")
        await self._initial_load()
        while not self._stopped:
            try:
                await self._poll()
            except MPDConnectionError as e:
                await self._wait_to_reconnect(str(e))
                continue
            except MPDResponseError as e:
                self._logger.warning(f"Skipping poll, bad response: {e}")
            except Exception as e:
                self._logger.error(f"Error during poll: {e}", exc_info=True)
            await self._sleep(self._poll_interval)
        self._logger.info("Monitor stopped")

    async def _initial_load(self):
        """Take the current server values as baselines so start-up fires no events."""
        try:
            snapshot = parse_status(await self._status_source.fetch_status())
            outputs = await self._output_source.fetch_outputs()
        except MPDError as e:
            self._logger.error(f"Problem with initialization: {e}")
            return
        except Exception as e:
            self._logger.error(f"Problem with initialization: {e}", exc_info=True)
            return
        self._detector.prime(snapshot, outputs)

    async def _poll(self):
        detector = self._detector
        lines = await self._status_source.fetch_status()
        detector.update(parse_status(lines, detector.snapshot))

        detector.check_error()
        detector.check_player()
        detector.check_playlist()
        detector.check_track_position()
        detector.check_volume()
        detector.check_bitrate()
        await self._check_connection()
        if detector.outputs_due():
            detector.compare_outputs(await self._output_source.fetch_outputs())

    async def _check_connection(self):
        if not await self._status_source.is_connected():
            raise MPDConnectionError("Connectivity check failed")
        self._detector.check_connection(True)

    async def _sleep(self, delay: float):
        """Sleep ``delay`` seconds or until ``stop()`` is called."""
        try:
            await asyncio.wait_for(self._wake_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # ========== Connection management ==========

    async def _wait_to_reconnect(self, reason: str):
        """Report the loss once, then check at a fixed interval until the server answers."""
        self._logger.error(f"Connection lost: {reason}, will try to reconnect in {RECONNECT_DELAY_SECONDS} seconds")
        self._detector.connection_lost(reason)

        while not self._stopped:
            await self._sleep(RECONNECT_DELAY_SECONDS)
            if self._stopped:
                return
            try:
                connected = await self._status_source.is_connected()
            except Exception as e:
                self._logger.warning(f"Reconnect attempt failed: {e}")
                continue
            if connected:
                self._logger.info("Connection restored, resuming polling")
                self._detector.check_connection(True)
                return
            self._logger.warning("Reconnect attempt failed")
