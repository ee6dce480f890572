"""The server node: shared managers and host statistics."""

from __future__ import annotations

import time
from typing import Any

import psutil

from aelira.config import Config
from aelira.route_planner import RoutePlannerManager
from aelira.sessions import SessionManager
from aelira.sources.local import LocalSource
from aelira.sources.manager import SourceManager
from aelira.stats import StatsManager


class Aelira:
    """State shared by every request handler and background task."""

    def __init__(self, config: Config, version: str) -> None:
        self.version = version
        self.password: str | None = config.server.password
        self.sessions = SessionManager()
        self.sources = SourceManager()
        self.sources.register(LocalSource())
        self.stats = StatsManager()
        self.route_planner = RoutePlannerManager()
        # The first CPU sample only sets a baseline for later readings.
        psutil.cpu_percent(interval=None)

    def memory_stats(self) -> dict[str, int]:
        """System memory figures in bytes."""
        memory = psutil.virtual_memory()
        return {
            "free": memory.free,
            "used": memory.used,
            "allocated": memory.used,
            "reservable": memory.total,
        }

    def cpu_stats(self) -> dict[str, Any]:
        """CPU core count and system load since the previous reading."""
        return {
            "cores": psutil.cpu_count(logical=True) or 0,
            "systemLoad": psutil.cpu_percent(interval=None),
            "aeliraLoad": 0.0,
        }

    def uptime_ms(self) -> int:
        """System uptime in whole seconds, expressed in milliseconds."""
        seconds = max(0, int(time.time() - psutil.boot_time()))
        return seconds * 1000

    def count_players(self) -> tuple[int, int]:
        """Return (all players, players that are unpaused with a track)."""
        total = playing = 0
        for session in self.sessions.sessions.values():
            for player in session.players.players.values():
                total += 1
                if not player.paused and player.track is not None:
                    playing += 1
        return total, playing