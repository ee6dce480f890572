"""Tracking of failing outbound addresses."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _format_time(timestamp_ms: int) -> str:
    try:
        moment = (_EPOCH + timedelta(milliseconds=timestamp_ms)).astimezone()
    except (OverflowError, OSError, ValueError):
        moment = datetime.now().astimezone()
    timespec = "milliseconds" if moment.microsecond else "seconds"
    return moment.isoformat(timespec=timespec)


@dataclass
class FailingAddress:
    address: str
    timestamp: int
    time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "failingAddress": self.address,
            "failingTimestamp": self.timestamp,
            "failingTime": self.time,
        }


@dataclass
class RoutePlannerStatus:
    """Route planner state; ``class_name`` is None when nothing is failing."""

    class_name: str | None = None
    failing_addresses: list[FailingAddress] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        if self.class_name is None:
            return {"class": None, "details": None}
        return {
            "class": self.class_name,
            "details": {
                "ipBlock": {"type": "Inet4Address", "size": "1"},
                "failingAddresses": [a.to_dict() for a in self.failing_addresses],
                "rotateIndex": "0",
                "ipIndex": "0",
                "currentAddress": "0.0.0.0",
            },
        }


class RoutePlannerManager:
    """Holds banned addresses keyed to the millisecond time they failed."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.banned_ips: dict[str, int] = {}

    def get_status(self) -> RoutePlannerStatus:
        with self._lock:
            failing = [
                FailingAddress(address=ip, timestamp=ts, time=_format_time(ts))
                for ip, ts in self.banned_ips.items()
            ]
        if not failing:
            return RoutePlannerStatus()
        return RoutePlannerStatus(class_name="RotatingIpRoutePlanner", failing_addresses=failing)

    def unmark_address(self, address: str) -> None:
        with self._lock:
            self.banned_ips.pop(address, None)

    def unmark_all_addresses(self) -> None:
        with self._lock:
            self.banned_ips.clear()