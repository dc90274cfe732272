from abc import ABC, abstractmethod
from enum import Enum
import logging
import threading
from typing import Any

from pympdmonitor.events import (
    ConnectionChangeEvent,
    ErrorEvent,
    OutputChangeEvent,
    PlayerChangeEvent,
    PlaylistChangeEvent,
    VolumeChangeEvent,
)


class PlayerChangeListener(ABC):

    @abstractmethod
    def player_changed(self, event: PlayerChangeEvent):
        pass


class PlaylistChangeListener(ABC):

    @abstractmethod
    def playlist_changed(self, event: PlaylistChangeEvent):
        pass


class VolumeChangeListener(ABC):

    @abstractmethod
    def volume_changed(self, event: VolumeChangeEvent):
        pass


class OutputChangeListener(ABC):

    @abstractmethod
    def output_changed(self, event: OutputChangeEvent):
        pass


class ErrorListener(ABC):

    @abstractmethod
    def error_received(self, event: ErrorEvent):
        pass


class ConnectionChangeListener(ABC):

    @abstractmethod
    def connection_changed(self, event: ConnectionChangeEvent):
        pass


class ListenerKind(Enum):
    """Listener categories. The value is the callback invoked on listener objects."""
    PLAYER = "player_changed"
    PLAYLIST = "playlist_changed"
    VOLUME = "volume_changed"
    OUTPUT = "output_changed"
    ERROR = "error_received"
    CONNECTION = "connection_changed"

    @property
    def callback_name(self) -> str:
        return self.value


class ListenerRegistry:
    """Ordered listener lists, one per ListenerKind.

    Registration may happen from any thread. ``dispatch`` iterates a copy taken
    under the lock, so listeners can add or remove listeners while being
    notified. A listener that raises is logged and skipped; the remaining
    listeners are still called.

    Listeners are either objects implementing the kind's listener interface or
    plain callables taking the event.
    """

    _listeners: dict[ListenerKind, list[Any]]

    def __init__(self):
        self._logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._listeners = self._empty()

    @staticmethod
    def _empty() -> dict[ListenerKind, list[Any]]:
        return {kind: [] for kind in ListenerKind}

    def add(self, kind: ListenerKind, listener):
        with self._lock:
            self._listeners[kind].append(listener)

    def remove(self, kind: ListenerKind, listener):
        with self._lock:
            if listener in self._listeners[kind]:
                self._listeners[kind].remove(listener)
                return
        self._logger.info("Listener isn't registered")

    def clear(self):
        """Replace every listener list with an empty one."""
        with self._lock:
            self._listeners = self._empty()

    def listeners(self, kind: ListenerKind) -> list[Any]:
        with self._lock:
            return list(self._listeners[kind])

    def dispatch(self, kind: ListenerKind, event):
        for listener in self.listeners(kind):
            callback = getattr(listener, kind.callback_name, listener)
            try:
                callback(event)
            except Exception as e:
                self._logger.error(f"Exception in {kind.callback_name}() listener {listener!r}: {e}", exc_info=True)


class LoggingListener(PlayerChangeListener, PlaylistChangeListener, VolumeChangeListener,
                      OutputChangeListener, ErrorListener, ConnectionChangeListener):

    def __init__(self, logger = logging):
        self.logger = logger

    def player_changed(self, event: PlayerChangeEvent):
        self.logger.info(f"Player: {event.status.value}")

    def playlist_changed(self, event: PlaylistChangeEvent):
        self.logger.info(f"Playlist: {event.event.value}")

    def volume_changed(self, event: VolumeChangeEvent):
        self.logger.info(f"Volume changed to: {event.volume}")

    def output_changed(self, event: OutputChangeEvent):
        if event.output is not None:
            state = "enabled" if event.output.enabled else "disabled"
            self.logger.info(f"Output {event.output.id} ({event.output.name}) {event.kind.value}: {state}")
        else:
            self.logger.info(f"Output {event.kind.value}")

    def error_received(self, event: ErrorEvent):
        self.logger.error(f"MPD error: {event.message}")

    def connection_changed(self, event: ConnectionChangeEvent):
        if event.connected:
            self.logger.info("Connected")
        else:
            self.logger.info(f"Disconnected: {event.reason}")
