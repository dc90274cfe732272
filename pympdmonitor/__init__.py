"""pympdmonitor Python Package

Python library for monitoring an MPD (Music Player Daemon) server and
receiving player, playlist, volume, output and connection change events.
"""

from pympdmonitor.monitor import MPDStandAloneMonitor
from pympdmonitor.protocol import MPDConnection

__all__ = ["MPDStandAloneMonitor", "MPDConnection"]
