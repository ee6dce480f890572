"""Client websocket: session setup and delivery of queued messages."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from aiohttp import WSMsgType, web

from aelira.api.auth import NODE_KEY
from aelira.core import Aelira
from aelira.log import Level, log


def ready_payload(resumed: bool, session_id: str) -> dict[str, Any]:
    return {"op": "ready", "resumed": resumed, "sessionId": session_id}


async def _pump(ws: web.WebSocketResponse, queue: asyncio.Queue[str], session_id: str) -> None:
    while True:
        text = await queue.get()
        try:
            await ws.send_str(text)
        except (ConnectionError, RuntimeError) as exc:
            log(Level.DEBUG, "Socket", f"Error sending to websocket {session_id}: {exc}")
            return


async def _receive(ws: web.WebSocketResponse, client_name: str, session_id: str) -> None:
    async for message in ws:
        if message.type is WSMsgType.ERROR:
            log(Level.ERROR, "Socket", f"Websocket error for {session_id}: {ws.exception()}")
            return
    log(Level.INFO, "Socket", f"WebSocket closed by client: {client_name}, session: {session_id}")


async def handle_socket(
    ws: web.WebSocketResponse,
    client_name: str,
    user_id: str,
    session_id: str | None,
    node: Aelira,
) -> None:
    """Attach the socket to a new or resumed session and serve it until it closes."""
    queue: asyncio.Queue[str] = asyncio.Queue()
    session = node.sessions.resume(session_id, queue) if session_id is not None else None
    resumed = session is not None
    if session is None:
        session = node.sessions.create(user_id, client_name, queue)
    sid = session.id

    state = "Resumed" if resumed else "New"
    log(Level.INFO, "Socket", f"{state} connected: {client_name} ({user_id}) session: {sid}")

    try:
        await ws.send_str(json.dumps(ready_payload(resumed, sid), separators=(",", ":")))
    except (ConnectionError, RuntimeError) as exc:
        log(Level.ERROR, "Socket", f"Failed to send ready op to {sid}: {exc}")
        return

    pump = asyncio.create_task(_pump(ws, queue, sid))
    receive = asyncio.create_task(_receive(ws, client_name, sid))
    try:
        await asyncio.wait({pump, receive}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (pump, receive):
            task.cancel()
        await asyncio.gather(pump, receive, return_exceptions=True)


async def websocket_handler(request: web.Request) -> web.StreamResponse:
    ws = web.WebSocketResponse()
    if not ws.can_prepare(request).ok:
        raise web.HTTPBadRequest(text="expected a websocket upgrade")

    headers = request.headers
    auth = headers.get("Authorization")
    user_id = headers.get("User-Id")
    client_name = headers.get("Client-Name")
    if auth is None or user_id is None or client_name is None:
        raise web.HTTPBadRequest(text="missing Authorization, User-Id or Client-Name header")

    node = request.app[NODE_KEY]
    if node.password is not None and node.password != auth:
        return web.Response(status=401, text="Unauthorized")
    if not all(char.isnumeric() for char in user_id):
        return web.Response(status=400, text="Invalid User ID")

    await ws.prepare(request)
    await handle_socket(ws, client_name, user_id, headers.get("Session-Id"), node)
    return ws


def routes() -> list[web.RouteDef]:
    return [web.get("/v4/websocket", websocket_handler)]