"""Endpoints for inspecting and clearing failing addresses."""

from __future__ import annotations

from aiohttp import web

from aelira.api.auth import NODE_KEY


async def status_handler(request: web.Request) -> web.Response:
    status = request.app[NODE_KEY].route_planner.get_status()
    if status.class_name is None:
        return web.Response(status=204)
    return web.json_response(status.to_dict())


async def free_address_handler(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError as exc:
        raise web.HTTPBadRequest(text=f"invalid JSON body: {exc}") from exc
    if not isinstance(body, dict) or not isinstance(body.get("address"), str):
        raise web.HTTPBadRequest(text="field `address` must be a string")
    request.app[NODE_KEY].route_planner.unmark_address(body["address"])
    return web.Response(status=204)


async def free_all_handler(request: web.Request) -> web.Response:
    request.app[NODE_KEY].route_planner.unmark_all_addresses()
    return web.Response(status=204)


def routes() -> list[web.RouteDef]:
    return [
        web.get("/v4/routeplanner/status", status_handler),
        web.post("/v4/routeplanner/free/address", free_address_handler),
        web.post("/v4/routeplanner/free/all", free_all_handler),
    ]