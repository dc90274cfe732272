"""Change events fired by the stand-alone monitor."""

from enum import Enum
from typing import Any, Optional

from pympdmonitor.response import OutputEntry


class PlayerChangeStatus(Enum):
    PLAYER_STARTED = "started"
    PLAYER_STOPPED = "stopped"
    PLAYER_PAUSED = "paused"
    PLAYER_UNPAUSED = "unpaused"
    PLAYER_BITRATE_CHANGE = "bitrate-changed"


class PlaylistChangeKind(Enum):
    PLAYLIST_CHANGED = "changed"
    SONG_ADDED = "song-added"
    SONG_DELETED = "song-deleted"
    SONG_CHANGED = "song-changed"
    PLAYLIST_ENDED = "ended"


class OutputChangeKind(Enum):
    OUTPUT_ADDED = "added"
    OUTPUT_DELETED = "deleted"
    OUTPUT_CHANGED = "changed"


class MonitorEvent:
    """Base for all events; ``source`` is the object that fired it."""
    def __init__(self, source: Any):
        self._source = source

    @property
    def source(self) -> Any:
        return self._source


class PlayerChangeEvent(MonitorEvent):
    def __init__(self, source: Any, status: PlayerChangeStatus):
        super().__init__(source)
        self._status = status

    @property
    def status(self) -> PlayerChangeStatus:
        return self._status

    def __repr__(self):
        return f"PlayerChangeEvent({self._status.name})"


class PlaylistChangeEvent(MonitorEvent):
    def __init__(self, source: Any, event: PlaylistChangeKind):
        super().__init__(source)
        self._event = event

    @property
    def event(self) -> PlaylistChangeKind:
        return self._event

    def __repr__(self):
        return f"PlaylistChangeEvent({self._event.name})"


class VolumeChangeEvent(MonitorEvent):
    def __init__(self, source: Any, volume: int):
        super().__init__(source)
        self._volume = volume

    @property
    def volume(self) -> int:
        """New volume, 0-100 (MPD reports -1 when there is no mixer)."""
        return self._volume

    def __repr__(self):
        return f"VolumeChangeEvent({self._volume})"


class OutputChangeEvent(MonitorEvent):
    """Output added, deleted or changed.

    ``output`` is the affected output for OUTPUT_CHANGED and None for
    OUTPUT_ADDED / OUTPUT_DELETED, which only signal that the set changed.
    """
    def __init__(self, source: Any, kind: OutputChangeKind, output: Optional[OutputEntry] = None):
        super().__init__(source)
        self._kind = kind
        self._output = output

    @property
    def kind(self) -> OutputChangeKind:
        return self._kind

    @property
    def output(self) -> Optional[OutputEntry]:
        return self._output

    def __repr__(self):
        return f"OutputChangeEvent({self._kind.name}, {self._output!r})"


class ErrorEvent(MonitorEvent):
    def __init__(self, source: Any, message: str):
        super().__init__(source)
        self._message = message

    @property
    def message(self) -> str:
        return self._message

    def __repr__(self):
        return f"ErrorEvent({self._message!r})"


class ConnectionChangeEvent(MonitorEvent):
    def __init__(self, source: Any, connected: bool, reason: str = ""):
        super().__init__(source)
        self._connected = connected
        self._reason = reason

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def reason(self) -> str:
        return self._reason

    def __repr__(self):
        return f"ConnectionChangeEvent(connected={self._connected}, reason={self._reason!r})"
