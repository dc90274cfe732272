"""Change detection between consecutive MPD status polls.

The detector keeps the last reported value (baseline) of every watched field
and compares it with the latest snapshot. Player state and errors are checked
on every poll; the other categories only every Nth poll, controlled by a
DebounceCounter, to limit event volume and ``outputs`` round trips.
"""

from enum import Enum
import logging
from typing import Any, Iterable, Optional

from pympdmonitor.events import (
    ConnectionChangeEvent,
    ErrorEvent,
    OutputChangeEvent,
    OutputChangeKind,
    PlayerChangeEvent,
    PlayerChangeStatus,
    PlaylistChangeEvent,
    PlaylistChangeKind,
    VolumeChangeEvent,
)
from pympdmonitor.listener import ListenerKind, ListenerRegistry
from pympdmonitor.response import NO_SONG, OutputEntry, StatusSnapshot

# Polls between comparisons, per category
VOLUME_CHECK_POLLS = 6
PLAYLIST_CHECK_POLLS = 3
BITRATE_CHECK_POLLS = 8
OUTPUT_CHECK_POLLS = 4


class PlayerState(Enum):
    PLAYING = "play"
    PAUSED = "pause"
    STOPPED = "stop"

    @classmethod
    def from_state_string(cls, state: Optional[str]) -> "PlayerState":
        """Map an MPD ``state`` value by prefix; anything unrecognised is STOPPED."""
        state = state or ""
        for player_state in (cls.PLAYING, cls.PAUSED, cls.STOPPED):
            if state.startswith(player_state.value):
                return player_state
        return cls.STOPPED


class DebounceCounter:
    """Counts polls and reports when a category is due for comparison."""

    def __init__(self, threshold: int):
        if threshold < 1:
            raise ValueError(f"Invalid threshold {threshold}, must be >= 1")
        self._threshold = threshold
        self._count = 0

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def count(self) -> int:
        return self._count

    def tick(self) -> bool:
        """Advance one poll. True on every ``threshold``-th call, which also wraps to 0."""
        self._count += 1
        if self._count >= self._threshold:
            self._count = 0
            return True
        return False


class ChangeDetector:
    """Compares snapshots against baselines and fires events into a ListenerRegistry.

    Not thread safe: every method must be called from the monitor's loop task.
    """

    def __init__(self, registry: ListenerRegistry, source: Any = None):
        self._logger = logging.getLogger(__name__)
        self._registry = registry
        self._source = source if source is not None else self

        self._snapshot = StatusSnapshot()

        # Baselines: last reported value per field
        self._volume = 0
        self._playlist_version = 0
        self._playlist_length = 0
        self._song_index = NO_SONG
        self._song_id = NO_SONG
        self._bitrate = 0
        self._status = PlayerState.STOPPED
        self._connected = True
        self._outputs: dict[int, OutputEntry] = {}

        self._elapsed_time = 0

        self._volume_counter = DebounceCounter(VOLUME_CHECK_POLLS)
        self._playlist_counter = DebounceCounter(PLAYLIST_CHECK_POLLS)
        self._bitrate_counter = DebounceCounter(BITRATE_CHECK_POLLS)
        self._output_counter = DebounceCounter(OUTPUT_CHECK_POLLS)

    @property
    def status(self) -> PlayerState:
        return self._status

    @property
    def elapsed_time(self) -> int:
        return self._elapsed_time

    @property
    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def outputs(self) -> dict[int, OutputEntry]:
        return dict(self._outputs)

    def prime(self, snapshot: StatusSnapshot, outputs: Optional[Iterable[OutputEntry]] = None):
        """Adopt the current server values as baselines without firing events.

        The player state baseline stays as it is, so a server that is already
        playing is reported as started on the first poll.
        """
        self.update(snapshot)
        self._volume = snapshot.volume
        self._playlist_version = snapshot.playlist_version
        self._playlist_length = snapshot.playlist_length
        self._song_index = snapshot.current_song_index
        self._song_id = snapshot.current_song_id
        self._bitrate = snapshot.bitrate
        if outputs is not None:
            self._load_outputs(outputs)

    def update(self, snapshot: StatusSnapshot):
        """Take the latest snapshot as the "new" side of every comparison."""
        self._snapshot = snapshot
        self._elapsed_time = snapshot.elapsed_time_seconds

    # ========== Dispatch helpers ==========

    def _fire_player(self, status: PlayerChangeStatus):
        self._registry.dispatch(ListenerKind.PLAYER, PlayerChangeEvent(self._source, status))

    def _fire_playlist(self, event: PlaylistChangeKind):
        self._registry.dispatch(ListenerKind.PLAYLIST, PlaylistChangeEvent(self._source, event))

    def _fire_output(self, kind: OutputChangeKind, output: Optional[OutputEntry] = None):
        self._registry.dispatch(ListenerKind.OUTPUT, OutputChangeEvent(self._source, kind, output))

    # ========== Checks ==========

    def check_error(self):
        if self._snapshot.error:
            self._registry.dispatch(ListenerKind.ERROR, ErrorEvent(self._source, self._snapshot.error))

    def check_player(self):
        new_status = PlayerState.from_state_string(self._snapshot.state)
        if new_status == self._status:
            return

        self._logger.debug(f"Player state {self._status.name} -> {new_status.name}")
        if new_status == PlayerState.PLAYING:
            if self._status == PlayerState.PAUSED:
                self._fire_player(PlayerChangeStatus.PLAYER_UNPAUSED)
            elif self._status == PlayerState.STOPPED:
                self._fire_player(PlayerChangeStatus.PLAYER_STARTED)
        elif new_status == PlayerState.STOPPED:
            # No time line while stopped
            self._elapsed_time = 0
            self._fire_player(PlayerChangeStatus.PLAYER_STOPPED)
            if self._snapshot.current_song_id == NO_SONG:
                self._fire_playlist(PlaylistChangeKind.PLAYLIST_ENDED)
        elif new_status == PlayerState.PAUSED:
            # PAUSED -> PAUSED cannot get here past the equality guard above
            if self._status == PlayerState.PAUSED:
                self._fire_player(PlayerChangeStatus.PLAYER_UNPAUSED)
            elif self._status == PlayerState.PLAYING:
                self._fire_player(PlayerChangeStatus.PLAYER_PAUSED)
        self._status = new_status

    def check_playlist(self):
        if not self._playlist_counter.tick():
            return

        snapshot = self._snapshot
        if self._playlist_version != snapshot.playlist_version:
            self._fire_playlist(PlaylistChangeKind.PLAYLIST_CHANGED)
            self._playlist_version = snapshot.playlist_version

        if self._playlist_length != snapshot.playlist_length:
            if self._playlist_length < snapshot.playlist_length:
                self._fire_playlist(PlaylistChangeKind.SONG_ADDED)
            else:
                self._fire_playlist(PlaylistChangeKind.SONG_DELETED)
            self._playlist_length = snapshot.playlist_length

        if self._status == PlayerState.PLAYING:
            if self._song_index != snapshot.current_song_index:
                self._fire_playlist(PlaylistChangeKind.SONG_CHANGED)
                self._song_index = snapshot.current_song_index
            elif self._song_id != snapshot.current_song_id:
                self._fire_playlist(PlaylistChangeKind.SONG_CHANGED)
                self._song_id = snapshot.current_song_id

    def check_track_position(self):
        # Seek detection is not implemented; elapsed time is only tracked.
        pass

    def check_volume(self):
        if not self._volume_counter.tick():
            return
        if self._volume != self._snapshot.volume:
            self._volume = self._snapshot.volume
            self._registry.dispatch(ListenerKind.VOLUME, VolumeChangeEvent(self._source, self._volume))

    def check_bitrate(self):
        if not self._bitrate_counter.tick():
            return
        if self._bitrate != self._snapshot.bitrate:
            self._fire_player(PlayerChangeStatus.PLAYER_BITRATE_CHANGE)
            self._bitrate = self._snapshot.bitrate

    def check_connection(self, connected: bool, reason: str = ""):
        """Fire a connection event when ``connected`` differs from the last known state."""
        if connected == self._connected:
            return
        self._connected = connected
        self._registry.dispatch(ListenerKind.CONNECTION, ConnectionChangeEvent(self._source, connected, reason))

    def connection_lost(self, reason: str):
        """Record a transport failure and fire connection_changed(False) unconditionally."""
        self._connected = False
        self._registry.dispatch(ListenerKind.CONNECTION, ConnectionChangeEvent(self._source, False, reason))

    def outputs_due(self) -> bool:
        """Advance the output counter; True when outputs must be fetched and compared."""
        return self._output_counter.tick()

    def compare_outputs(self, outputs: Iterable[OutputEntry]):
        outputs = list(outputs)
        if len(outputs) > len(self._outputs):
            self._fire_output(OutputChangeKind.OUTPUT_ADDED)
            self._load_outputs(outputs)
        elif len(outputs) < len(self._outputs):
            self._fire_output(OutputChangeKind.OUTPUT_DELETED)
            self._load_outputs(outputs)
        else:
            for output in outputs:
                cached = self._outputs.get(output.id)
                if cached is None or cached.enabled != output.enabled:
                    self._fire_output(OutputChangeKind.OUTPUT_CHANGED, output)
                    self._load_outputs(outputs)
                    return

    def _load_outputs(self, outputs: Iterable[OutputEntry]):
        self._outputs = {output.id: output for output in outputs}
