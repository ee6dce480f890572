"""Counters for API requests and player totals."""

from __future__ import annotations

import threading
from collections import Counter


class StatsManager:
    """Thread-safe statistics shared across the server."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.api_requests: Counter[str] = Counter()
        self.api_errors: Counter[str] = Counter()
        self.players = 0
        self.playing_players = 0

    def increment_api_request(self, endpoint: str) -> None:
        with self._lock:
            self.api_requests[endpoint] += 1

    def increment_api_error(self, endpoint: str) -> None:
        with self._lock:
            self.api_errors[endpoint] += 1

    def set_players(self, count: int) -> None:
        self.players = count

    def set_playing_players(self, count: int) -> None:
        self.playing_players = count

    def api_stats(self) -> dict[str, int]:
        """Snapshot of request counts per endpoint."""
        with self._lock:
            return dict(self.api_requests)