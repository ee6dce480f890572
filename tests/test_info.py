import contextlib

import pytest
from aiohttp import test_utils, web

from aelira.api.auth import NODE_KEY, error_middleware
from aelira.api.info import build_info, build_stats, parse_semver, routes
from aelira.config import Config, ServerConfig
from aelira.core import Aelira


def _node(password=None, version="1.0.0"):
    return Aelira(Config(server=ServerConfig(host="127.0.0.1", port=0, password=password)), version)


@contextlib.asynccontextmanager
async def _serve(node):
    app = web.Application(middlewares=[error_middleware])
    app[NODE_KEY] = node
    app.add_routes(routes())
    async with test_utils.TestClient(test_utils.TestServer(app)) as client:
        yield client


def test_parse_semver_full():
    assert parse_semver("1.0.0") == (1, 0, 0)
    assert parse_semver("3.14.15") == (3, 14, 15)


def test_parse_semver_invalid_parts_are_zero():
    assert parse_semver("unknown") == (0, 0, 0)
    assert parse_semver("2.x") == (2, 0, 0)
    assert parse_semver(" 4.5.6") == (0, 5, 6)


def test_build_info_version_block():
    node = _node(version="3.14.15")
    info = build_info(node)
    assert info["version"]["semver"] == "3.14.15"
    assert (info["version"]["major"], info["version"]["minor"], info["version"]["patch"]) == parse_semver(
        "3.14.15"
    )
    assert info["version"]["prerelease"] is None
    assert info["buildTime"] == -1
    assert info["sourceManagers"] == ["local"]
    assert info["voice"] == {"name": "aelira-voice", "version": "1.0.0"}
    assert info["filters"] == [] and info["plugins"] == []


def test_build_stats_reflects_counters():
    node = _node()
    node.stats.set_players(3)
    node.stats.set_playing_players(2)
    stats = build_stats(node)
    assert stats["players"] == 3
    assert stats["playingPlayers"] == 2
    assert stats["frameStats"] is None
    assert stats["memory"]["allocated"] == stats["memory"]["used"]
    assert stats["cpu"]["aeliraLoad"] == 0.0


@pytest.mark.asyncio
async def test_version_endpoint_returns_text():
    async with _serve(_node(version="2.5.1")) as client:
        resp = await client.get("/version")
        assert resp.status == 200
        assert await resp.text() == "2.5.1"


@pytest.mark.asyncio
async def test_info_endpoint_counts_requests():
    node = _node()
    async with _serve(node) as client:
        resp = await client.get("/v4/info")
        assert resp.status == 200
        body = await resp.json()
    assert body["version"]["semver"] == "1.0.0"
    assert node.stats.api_stats() == {"/v4/info": 1}


@pytest.mark.asyncio
async def test_stats_endpoint_open_without_password():
    node = _node()
    node.stats.set_players(5)
    async with _serve(node) as client:
        resp = await client.get("/v4/stats")
        assert resp.status == 200
        body = await resp.json()
    assert body["players"] == 5
    assert set(body) == {"players", "playingPlayers", "uptime", "memory", "cpu", "frameStats"}


@pytest.mark.asyncio
async def test_stats_endpoint_requires_password():
    password = "password"
    async with _serve(_node(password=password)) as client:
        denied = await client.get("/v4/stats")
        assert denied.status == 401
        assert await denied.text() == "Unauthorized"
        allowed = await client.get("/v4/stats", headers={"Authorization": "password"})
        assert allowed.status == 200