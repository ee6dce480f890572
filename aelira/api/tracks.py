"""Endpoints for encoding, decoding and loading tracks."""

from __future__ import annotations

import json
import time
from typing import Any

from aiohttp import web

from aelira.api.auth import NODE_KEY
from aelira.encoding import DecodedInfo, TrackDecodeError, decode_track, encode_track


def error_body(message: str, path: str) -> dict[str, Any]:
    """The JSON body of a 400 response."""
    return {
        "timestamp": int(time.time() * 1000),
        "status": 400,
        "error": "Bad Request",
        "message": message,
        "path": path,
    }


def _bad_request(message: str, path: str) -> web.Response:
    return web.json_response(error_body(message, path), status=400)


def _query(request: web.Request, name: str) -> str:
    value = request.query.get(name)
    if value is None:
        raise web.HTTPBadRequest(text=f"missing query parameter `{name}`")
    return value


async def _json_body(request: web.Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"invalid JSON body: {exc}") from exc


async def decode_track_handler(request: web.Request) -> web.Response:
    encoded = _query(request, "encodedTrack").replace(" ", "+")
    try:
        decoded = decode_track(encoded)
    except TrackDecodeError as exc:
        return _bad_request(f"Failed to decode track: {exc}", "/v4/decodetrack")
    return web.json_response(decoded.to_dict())


async def decode_tracks_handler(request: web.Request) -> web.Response:
    body = await _json_body(request)
    if not isinstance(body, list) or not all(isinstance(item, str) for item in body):
        raise web.HTTPBadRequest(text="body must be a list of strings")
    decoded = []
    for encoded in body:
        try:
            decoded.append(decode_track(encoded.replace(" ", "+")))
        except TrackDecodeError as exc:
            return _bad_request(f"Failed to decode track: {exc}", "/v4/decodetracks")
    return web.json_response([track.to_dict() for track in decoded])


async def encode_track_handler(request: web.Request) -> web.Response:
    raw = _query(request, "track")
    try:
        encoded = encode_track(DecodedInfo.from_dict(json.loads(raw)))
    except ValueError as exc:
        return _bad_request(f"Failed to parse track info: {exc}", "/v4/encodetrack")
    return web.json_response(encoded)


async def encode_tracks_handler(request: web.Request) -> web.Response:
    body = await _json_body(request)
    if not isinstance(body, list):
        raise web.HTTPBadRequest(text="body must be a list of track infos")
    try:
        encoded = [encode_track(DecodedInfo.from_dict(item)) for item in body]
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"invalid track info: {exc}") from exc
    return web.json_response(encoded)


async def load_tracks_handler(request: web.Request) -> web.Response:
    identifier = _query(request, "identifier")
    node = request.app[NODE_KEY]
    node.stats.increment_api_request("/v4/loadtracks")
    response = await node.sources.load_tracks(identifier)
    return web.json_response(response.to_dict())


def routes() -> list[web.RouteDef]:
    return [
        web.get("/v4/loadtracks", load_tracks_handler),
        web.get("/v4/decodetrack", decode_track_handler),
        web.post("/v4/decodetracks", decode_tracks_handler),
        web.get("/v4/encodetrack", encode_track_handler),
        web.post("/v4/encodetracks", encode_tracks_handler),
    ]