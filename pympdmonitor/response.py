"""Parsing of MPD ``status`` and ``outputs`` replies.

MPD replies are ``key: value`` lines, e.g.::

    volume: 50
    playlist: 12
    playlistlength: 4
    state: play
    song: 1
    songid: 2
    time: 43:215
    bitrate: 320
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from pympdmonitor.exceptions import MPDResponseError

VOLUME = "volume"
PLAYLIST = "playlist"
PLAYLIST_LENGTH = "playlistlength"
STATE = "state"
CURRENT_SONG = "song"
CURRENT_SONG_ID = "songid"
TIME = "time"
BITRATE = "bitrate"
ERROR = "error"

OUTPUT_ID = "outputid"
OUTPUT_NAME = "outputname"
OUTPUT_ENABLED = "outputenabled"

# Reported when the reply has no song/songid line (nothing queued or stopped at end)
NO_SONG = -1


@dataclass(frozen=True)
class StatusSnapshot:
    volume: int = 0
    playlist_version: int = 0
    playlist_length: int = 0
    current_song_index: int = NO_SONG
    current_song_id: int = NO_SONG
    elapsed_time_seconds: int = 0
    bitrate: int = 0
    state: str = "stop"
    error: Optional[str] = None


@dataclass(frozen=True)
class OutputEntry:
    id: int
    enabled: bool
    name: str = ""


def split_line(line: str) -> tuple[str, str]:
    """Split a ``key: value`` line. Lines without a separator give an empty value."""
    key, _, value = line.partition(":")
    return key.strip().lower(), value.strip()


def _to_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise MPDResponseError(f"Invalid value for {key}: {value!r}")


def parse_status(lines: Iterable[str], previous: Optional[StatusSnapshot] = None) -> StatusSnapshot:
    """Build a snapshot from ``status`` reply lines.

    Song index, song id, elapsed time and error are reset on every reply
    because MPD omits those lines when they do not apply (no time while
    stopped). Other fields missing from the reply keep their value from
    ``previous``.
    """
    previous = previous or StatusSnapshot()
    values = {
        "volume": previous.volume,
        "playlist_version": previous.playlist_version,
        "playlist_length": previous.playlist_length,
        "current_song_index": NO_SONG,
        "current_song_id": NO_SONG,
        "elapsed_time_seconds": 0,
        "bitrate": previous.bitrate,
        "state": previous.state,
        "error": None,
    }

    for line in lines:
        key, value = split_line(line)
        if key == VOLUME:
            values["volume"] = _to_int(key, value)
        elif key == PLAYLIST:
            values["playlist_version"] = _to_int(key, value)
        elif key == PLAYLIST_LENGTH:
            values["playlist_length"] = _to_int(key, value)
        elif key == STATE:
            values["state"] = value
        elif key == CURRENT_SONG:
            values["current_song_index"] = _to_int(key, value)
        elif key == CURRENT_SONG_ID:
            values["current_song_id"] = _to_int(key, value)
        elif key == TIME:
            # elapsed:total
            values["elapsed_time_seconds"] = _to_int(key, value.split(":")[0])
        elif key == BITRATE:
            values["bitrate"] = _to_int(key, value)
        elif key == ERROR:
            values["error"] = value

    return StatusSnapshot(**values)


def parse_outputs(lines: Iterable[str]) -> list[OutputEntry]:
    """Build output entries from an ``outputs`` reply, in reply order.

    Each output starts with an ``outputid`` line; other keys (plugin,
    attribute, ...) are ignored.
    """
    outputs = []
    current = None
    for line in lines:
        key, value = split_line(line)
        if key == OUTPUT_ID:
            if current is not None:
                outputs.append(_build_output(current))
            current = {"id": _to_int(key, value), "enabled": False, "name": ""}
        elif current is None:
            continue
        elif key == OUTPUT_NAME:
            current["name"] = value
        elif key == OUTPUT_ENABLED:
            current["enabled"] = value == "1"
    if current is not None:
        outputs.append(_build_output(current))
    return outputs


def _build_output(values: dict) -> OutputEntry:
    return OutputEntry(id=values["id"], enabled=values["enabled"], name=values["name"])
