"""Endpoints describing the server: info, stats and version."""

from __future__ import annotations

import platform
import re
from typing import Any

from aiohttp import web

from aelira.api.auth import NODE_KEY, require_auth
from aelira.core import Aelira

_INTEGER = re.compile(r"[+-]?[0-9]+")
_I32_MIN, _I32_MAX = -(1 << 31), (1 << 31) - 1


def _parse_part(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        return 0
    value = int(text)
    return value if _I32_MIN <= value <= _I32_MAX else 0


def parse_semver(version: str) -> tuple[int, int, int]:
    """Split ``major.minor.patch``; missing or invalid parts count as 0."""
    parts = version.split(".")
    padded = parts + ["0"] * (3 - len(parts))
    major, minor, patch = (_parse_part(part) for part in padded[:3])
    return major, minor, patch


def build_info(node: Aelira) -> dict[str, Any]:
    """The body of the info endpoint."""
    major, minor, patch = parse_semver(node.version)
    return {
        "version": {
            "semver": node.version,
            "major": major,
            "minor": minor,
            "patch": patch,
            "prerelease": None,
            "build": None,
        },
        "buildTime": -1,
        "git": {"branch": "unknown", "commit": "unknown", "commitTime": -1},
        "runtime": {
            "version": platform.python_version(),
            "os": platform.system() or "unknown",
            "arch": platform.machine() or "unknown",
        },
        "voice": {"name": "aelira-voice", "version": "1.0.0"},
        "sourceManagers": ["local"],
        "filters": [],
        "plugins": [],
    }


def build_stats(node: Aelira) -> dict[str, Any]:
    """The body of the stats endpoint."""
    return {
        "players": node.stats.players,
        "playingPlayers": node.stats.playing_players,
        "uptime": node.uptime_ms(),
        "memory": node.memory_stats(),
        "cpu": node.cpu_stats(),
        "frameStats": None,
    }


async def info_handler(request: web.Request) -> web.Response:
    node = request.app[NODE_KEY]
    node.stats.increment_api_request("/v4/info")
    return web.json_response(build_info(node))


@require_auth
async def stats_handler(request: web.Request) -> web.Response:
    return web.json_response(build_stats(request.app[NODE_KEY]))


async def version_handler(request: web.Request) -> web.Response:
    return web.Response(text=request.app[NODE_KEY].version)


def routes() -> list[web.RouteDef]:
    return [
        web.get("/version", version_handler),
        web.get("/v4/stats", stats_handler),
        web.get("/v4/info", info_handler),
    ]