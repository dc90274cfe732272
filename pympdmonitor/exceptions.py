"""Exceptions raised while talking to an MPD server."""


class MPDError(Exception):
    """Base class for all MPD related failures."""


class MPDConnectionError(MPDError):
    """The transport to the server is unavailable."""


class MPDResponseError(MPDError):
    """The server sent a malformed or error reply."""

    def __init__(self, message: str, command: str = None):
        super().__init__(message)
        self.command = command
