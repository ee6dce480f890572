"""Command-line entry point: load settings, start the server and stats broadcasts."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import ipaddress
import json
import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

from aiohttp import web

from aelira.api.app import create_app
from aelira.config import Config, ConfigError
from aelira.core import Aelira
from aelira.log import Level, log
from aelira.players import Player

DEFAULT_CONFIG = "config.toml"
DEFAULT_MANIFEST = "pyproject.toml"
STATS_INTERVAL = 1.0


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


def read_version(path: str = DEFAULT_MANIFEST) -> str:
    """Version from the first ``version = "..."`` line; raises OSError if unreadable."""
    text = Path(path).read_text(encoding="utf-8")
    for line in text.splitlines():
        if line.startswith("version = "):
            parts = line.split('"')
            return parts[1] if len(parts) > 1 else "unknown"
    return "unknown"


def stats_payload(node: Aelira) -> dict[str, Any]:
    """The stats message broadcast to every session."""
    return {
        "op": "stats",
        "players": node.stats.players,
        "playingPlayers": node.stats.playing_players,
        "uptime": node.uptime_ms(),
        "memory": node.memory_stats(),
        "cpu": node.cpu_stats(),
    }


def player_update_payload(player: Player) -> dict[str, Any]:
    """The playerUpdate message for one player."""
    return {
        "op": "playerUpdate",
        "guildId": player.guild_id,
        "state": {
            "time": int(time.time() * 1000),
            "position": player.state.position,
            "connected": player.connection is not None,
            "ping": player.state.ping,
        },
    }


def broadcast_stats(node: Aelira) -> int:
    """Refresh player counts and queue stats and player updates; return messages queued."""
    total, playing = node.count_players()
    node.stats.set_players(total)
    node.stats.set_playing_players(playing)

    stats = _dumps(stats_payload(node))
    sent = 0
    for session in list(node.sessions.sessions.values()):
        session.send(stats)
        sent += 1
        for player in list(session.players.players.values()):
            if player.track is not None:
                session.send(_dumps(player_update_payload(player)))
                sent += 1
    return sent


async def stats_loop(node: Aelira, interval: float = STATS_INTERVAL) -> None:
    """Broadcast stats immediately and then every ``interval`` seconds."""
    while True:
        broadcast_stats(node)
        await asyncio.sleep(interval)


def _stats_context(node: Aelira) -> Callable[[web.Application], AsyncIterator[None]]:
    async def context(app: web.Application) -> AsyncIterator[None]:
        task = asyncio.create_task(stats_loop(node))
        yield
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    return context


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="aelira", description="Run the audio node server.")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="path of the TOML configuration")
    parser.add_argument(
        "--manifest", default=DEFAULT_MANIFEST, help="file holding the version line"
    )
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config)
    except ConfigError as exc:
        raise SystemExit(f"Failed to load configuration: {exc}") from exc

    try:
        version = read_version(args.manifest)
    except OSError as exc:
        raise SystemExit(f"Failed to read {args.manifest}: {exc}") from exc

    host, port = config.server.host, config.server.port
    try:
        ipaddress.ip_address(host)
    except ValueError as exc:
        raise SystemExit(f"Invalid address: {host}:{port}") from exc

    node = Aelira(config, version)
    app = create_app(node)
    app.cleanup_ctx.append(_stats_context(node))

    log(Level.INFO, "Server", f"Aelira v{node.version} started on http://{host}:{port}")
    web.run_app(app, host=host, port=port, print=None)
    return 0