import asyncio
import json

import pytest

from aelira.config import Config, ServerConfig
from aelira.core import Aelira
from aelira.encoding import DecodedInfo
from aelira.main import (
    broadcast_stats,
    main,
    player_update_payload,
    read_version,
    stats_loop,
    stats_payload,
)
from aelira.players import Player, TrackData


def _node():
    return Aelira(Config(server=ServerConfig(host="127.0.0.1", port=2333)), "1.0.0")


def _track():
    info = DecodedInfo("Song", "Artist", 1000, "id", False, None, None, None, "local", 0)
    return TrackData(encoded="encoded", info=info)


def _drain(queue):
    messages = []
    while not queue.empty():
        messages.append(json.loads(queue.get_nowait()))
    return messages


def test_read_version(tmp_path):
    path = tmp_path / "manifest.toml"
    path.write_text('[project]\nname = "x"\nversion = "2.5.1"\n', encoding="utf-8")
    assert read_version(str(path)) == "2.5.1"


def test_read_version_without_line(tmp_path):
    path = tmp_path / "manifest.toml"
    path.write_text('[project]\n  version = "2.5.1"\nversion = 3\n', encoding="utf-8")
    assert read_version(str(path)) == "unknown"


def test_read_version_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_version(str(tmp_path / "absent.toml"))


def test_stats_payload_shape():
    node = _node()
    payload = stats_payload(node)
    assert payload["op"] == "stats"
    assert payload["players"] == 0
    assert set(payload["memory"]) == {"free", "used", "allocated", "reservable"}
    assert payload["cpu"]["aeliraLoad"] == 0.0


def test_player_update_payload():
    player = Player("42")
    payload = player_update_payload(player)
    assert payload["op"] == "playerUpdate"
    assert payload["guildId"] == "42"
    assert payload["state"]["position"] == 0
    assert payload["state"]["connected"] is False
    assert payload["state"]["ping"] == -1


def test_broadcast_sends_stats_and_updates():
    node = _node()
    queue = asyncio.Queue()
    session = node.sessions.create("1", "client", queue)
    session.players.get_or_create("7").track = _track()
    session.players.get_or_create("8")

    assert broadcast_stats(node) == 2
    messages = _drain(queue)
    assert messages[0]["op"] == "stats"
    assert messages[0]["players"] == 2
    assert messages[0]["playingPlayers"] == 1
    assert messages[1]["op"] == "playerUpdate"
    assert messages[1]["guildId"] == "7"
    assert node.stats.players == 2
    assert node.stats.playing_players == 1


def test_broadcast_paused_player_not_playing():
    node = _node()
    queue = asyncio.Queue()
    session = node.sessions.create("1", "client", queue)
    player = session.players.get_or_create("7")
    player.track = _track()
    player.paused = True

    broadcast_stats(node)
    messages = _drain(queue)
    assert messages[0]["playingPlayers"] == 0
    assert [message["op"] for message in messages] == ["stats", "playerUpdate"]


@pytest.mark.asyncio
async def test_stats_loop_broadcasts_repeatedly():
    node = _node()
    queue = asyncio.Queue()
    node.sessions.create("1", "client", queue)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(stats_loop(node, 0.01), 0.1)
    messages = _drain(queue)
    assert len(messages) >= 2
    assert all(message["op"] == "stats" for message in messages)


def test_main_missing_config(tmp_path):
    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path / "missing.toml")])


def test_main_invalid_address(tmp_path):
    config = tmp_path / "config.toml"
    config.write_text('[server]\nhost = "localhost"\nport = 2333\n', encoding="utf-8")
    manifest = tmp_path / "manifest.toml"
    manifest.write_text('version = "1.0.0"\n', encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        main(["--config", str(config), "--manifest", str(manifest)])
    assert "Invalid address" in str(info.value)