"""Endpoints for sessions and the players they hold."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aiohttp import web

from aelira.api.auth import NODE_KEY
from aelira.encoding import DecodedTrack, TrackDecodeError, decode_track
from aelira.log import Level, log
from aelira.players import Player, TrackData, VoiceState

_U16_MAX = 0xFFFF
_U64_MAX = (1 << 64) - 1
_DEFAULT_TIMEOUT = 60


@dataclass
class _TrackUpdate:
    encoded: str | None
    identifier: str | None


@dataclass
class _PlayerUpdate:
    track: _TrackUpdate | None
    encoded_track: str | None
    volume: int | None
    paused: bool | None
    voice: VoiceState | None


def _session_not_found() -> web.Response:
    return web.Response(status=404, text="Session not found")


async def _json_object(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"invalid JSON body: {exc}") from exc
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(text="body must be an object")
    return body


def _optional_bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is not None and not isinstance(value, bool):
        raise ValueError(f"field `{key}` must be a boolean")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _optional_uint(data: dict[str, Any], key: str, maximum: int) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ValueError(f"field `{key}` must be an integer between 0 and {maximum}")
    return value


def _parse_player_update(body: dict[str, Any]) -> _PlayerUpdate:
    track = None
    raw_track = body.get("track")
    if raw_track is not None:
        if not isinstance(raw_track, dict):
            raise ValueError("field `track` must be an object")
        track = _TrackUpdate(
            encoded=_optional_str(raw_track, "encoded"),
            identifier=_optional_str(raw_track, "identifier"),
        )
    raw_voice = body.get("voice")
    return _PlayerUpdate(
        track=track,
        encoded_track=_optional_str(body, "encodedTrack"),
        volume=_optional_uint(body, "volume", _U16_MAX),
        paused=_optional_bool(body, "paused"),
        voice=VoiceState.from_dict(raw_voice) if raw_voice is not None else None,
    )


def _play_encoded(player: Player, encoded: str) -> None:
    try:
        decoded = decode_track(encoded)
    except TrackDecodeError:
        return
    player.track = TrackData(encoded=encoded, info=decoded.info)
    player.play()


async def update_session_handler(request: web.Request) -> web.Response:
    body = await _json_object(request)
    try:
        resuming = _optional_bool(body, "resuming")
        timeout = _optional_uint(body, "timeout", _U64_MAX)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc

    node = request.app[NODE_KEY]
    if node.sessions.get(request.match_info["session_id"]) is None:
        return _session_not_found()
    return web.json_response(
        {
            "resuming": resuming if resuming is not None else False,
            "timeout": timeout if timeout is not None else _DEFAULT_TIMEOUT,
        }
    )


async def get_players_handler(request: web.Request) -> web.Response:
    session = request.app[NODE_KEY].sessions.get(request.match_info["session_id"])
    if session is None:
        return _session_not_found()
    return web.json_response([player.to_dict() for player in session.players.players.values()])


async def get_player_handler(request: web.Request) -> web.Response:
    session = request.app[NODE_KEY].sessions.get(request.match_info["session_id"])
    if session is None:
        return _session_not_found()
    player = session.players.get_or_create(request.match_info["guild_id"])
    return web.json_response(player.to_dict())


async def patch_player_handler(request: web.Request) -> web.Response:
    session_id = request.match_info["session_id"]
    guild_id = request.match_info["guild_id"]
    log(Level.DEBUG, "API", f"PATCH Player Session: {session_id}, Guild: {guild_id}")

    body = await _json_object(request)
    try:
        update = _parse_player_update(body)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"invalid player update: {exc}") from exc

    node = request.app[NODE_KEY]
    session = node.sessions.get(session_id)
    if session is None:
        return _session_not_found()

    player = session.players.get_or_create(guild_id)
    if update.voice is not None and player.voice != update.voice:
        player.connect(update.voice, session.user_id)
    if update.paused is not None:
        player.paused = update.paused
    if update.volume is not None:
        player.volume = update.volume

    identifier = None
    if update.track is not None:
        if update.track.encoded is not None:
            _play_encoded(player, update.track.encoded)
        else:
            identifier = update.track.identifier
    elif update.encoded_track is not None:
        _play_encoded(player, update.encoded_track)

    if identifier is not None:
        response = await node.sources.load_tracks(identifier)
        if not isinstance(response.data, DecodedTrack):
            return web.Response(status=400, text="Track resolution failed")
        current = node.sessions.get(session_id)
        resolved_player = current.players.get(guild_id) if current is not None else None
        if resolved_player is not None:
            resolved_player.track = TrackData(encoded=response.data.encoded, info=response.data.info)
            resolved_player.play()

    current = node.sessions.get(session_id)
    final = current.players.get(guild_id) if current is not None else None
    if final is None:
        return _session_not_found()
    return web.json_response(final.to_dict())


async def delete_player_handler(request: web.Request) -> web.Response:
    session = request.app[NODE_KEY].sessions.get(request.match_info["session_id"])
    if session is None:
        return _session_not_found()
    if session.players.remove(request.match_info["guild_id"]) is None:
        return web.Response(status=404, text="Player not found")
    return web.Response(status=204)


def routes() -> list[web.RouteDef]:
    players = "/v4/sessions/{session_id}/players"
    return [
        web.patch("/v4/sessions/{session_id}", update_session_handler),
        web.get(players, get_players_handler),
        web.get(players + "/{guild_id}", get_player_handler),
        web.patch(players + "/{guild_id}", patch_player_handler),
        web.delete(players + "/{guild_id}", delete_player_handler),
    ]