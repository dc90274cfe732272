"""Tests for status and outputs reply parsing."""

import pytest

from pympdmonitor.exceptions import MPDResponseError
from pympdmonitor.response import NO_SONG, OutputEntry, StatusSnapshot, parse_outputs, parse_status

STATUS_PLAYING = [
    "volume: 65",
    "repeat: 0",
    "playlist: 12",
    "playlistlength: 4",
    "state: play",
    "song: 1",
    "songid: 2",
    "time: 43:215",
    "elapsed: 43.512",
    "bitrate: 320",
    "audio: 44100:24:2",
]


def test_parse_status_reads_every_field() -> None:
    snapshot = parse_status(STATUS_PLAYING)

    assert snapshot == StatusSnapshot(
        volume=65,
        playlist_version=12,
        playlist_length=4,
        current_song_index=1,
        current_song_id=2,
        elapsed_time_seconds=43,
        bitrate=320,
        state="play",
        error=None,
    )


def test_parse_status_resets_song_and_error_but_carries_other_fields() -> None:
    previous = parse_status(STATUS_PLAYING + ["error: Failed to open output"])
    assert previous.error == "Failed to open output"

    snapshot = parse_status(["state: stop", "playlist: 13"], previous)

    assert snapshot.current_song_index == NO_SONG
    assert snapshot.current_song_id == NO_SONG
    assert snapshot.error is None
    assert snapshot.state == "stop"
    assert snapshot.playlist_version == 13
    assert snapshot.volume == 65
    assert snapshot.playlist_length == 4
    assert snapshot.bitrate == 320


def test_parse_status_resets_elapsed_when_time_missing() -> None:
    previous = parse_status(STATUS_PLAYING)
    assert previous.elapsed_time_seconds == 43

    snapshot = parse_status(["state: stop"], previous)

    assert snapshot.elapsed_time_seconds == 0


def test_parse_status_defaults_on_empty_reply() -> None:
    assert parse_status([]) == StatusSnapshot()


def test_playlist_prefix_does_not_match_playlistlength() -> None:
    snapshot = parse_status(["playlistlength: 9"])
    assert snapshot.playlist_length == 9
    assert snapshot.playlist_version == 0


def test_parse_status_rejects_non_numeric_values() -> None:
    with pytest.raises(MPDResponseError, match="volume"):
        parse_status(["volume: loud"])


def test_parse_outputs_in_reply_order() -> None:
    outputs = parse_outputs([
        "outputid: 1",
        "outputname: HTTP stream",
        "plugin: httpd",
        "outputenabled: 0",
        "outputid: 0",
        "outputname: ALSA",
        "plugin: alsa",
        "outputenabled: 1",
        "attribute: dop=0",
    ])

    assert outputs == [OutputEntry(1, False, "HTTP stream"), OutputEntry(0, True, "ALSA")]


def test_parse_outputs_empty() -> None:
    assert parse_outputs([]) == []
