"""Shared fakes for monitor tests."""

from pympdmonitor.exceptions import MPDConnectionError, MPDResponseError
from pympdmonitor.listener import (
    ConnectionChangeListener,
    ErrorListener,
    OutputChangeListener,
    PlayerChangeListener,
    PlaylistChangeListener,
    VolumeChangeListener,
)
from pympdmonitor.protocol import OutputSource, StatusSource
from pympdmonitor.response import OutputEntry


class RecordingListener(PlayerChangeListener, PlaylistChangeListener, VolumeChangeListener,
                        OutputChangeListener, ErrorListener, ConnectionChangeListener):
    """Records every event as a short tuple."""

    def __init__(self):
        self.events = []

    def player_changed(self, event):
        self.events.append(("player", event.status))

    def playlist_changed(self, event):
        self.events.append(("playlist", event.event))

    def volume_changed(self, event):
        self.events.append(("volume", event.volume))

    def output_changed(self, event):
        self.events.append(("output", event.kind, event.output))

    def error_received(self, event):
        self.events.append(("error", event.message))

    def connection_changed(self, event):
        self.events.append(("connection", event.connected))

    def of(self, category):
        return [event for event in self.events if event[0] == category]


class FakeMPD(StatusSource, OutputSource):
    """In-memory server whose status and outputs tests mutate between polls."""

    def __init__(self, **status):
        self.status = {
            "volume": 50,
            "playlist": 1,
            "playlistlength": 3,
            "state": "stop",
            "bitrate": 0,
        }
        self.status.update(status)
        self.outputs = [OutputEntry(0, True, "ALSA"), OutputEntry(1, True, "HTTP stream")]
        self.connected = True
        self.bad_response = False
        self.fetch_count = 0
        self.check_count = 0
        # Connectivity checks to fail before the server comes back on its own
        self.reconnect_after_checks = None

    async def fetch_status(self):
        self.fetch_count += 1
        if not self.connected:
            raise MPDConnectionError("Connection refused")
        if self.bad_response:
            raise MPDResponseError("Invalid value for volume: 'loud'")
        return [f"{key}: {value}" for key, value in self.status.items()]

    async def fetch_outputs(self):
        if not self.connected:
            raise MPDConnectionError("Connection refused")
        return list(self.outputs)

    async def is_connected(self):
        self.check_count += 1
        if not self.connected and self.reconnect_after_checks is not None:
            if self.reconnect_after_checks <= 0:
                self.connected = True
            else:
                self.reconnect_after_checks -= 1
        return self.connected
