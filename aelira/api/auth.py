"""Password checking and translation of request failures into responses."""

from __future__ import annotations

import functools
import sys
from collections.abc import Awaitable, Callable

from aiohttp import web

from aelira.core import Aelira

NODE_KEY: web.AppKey[Aelira] = web.AppKey("node", Aelira)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class AuthError(Exception):
    """Raised when a request lacks the configured password."""


def is_authorized(password: str | None, header: str | None) -> bool:
    """True when no password is set or the header equals it."""
    if password is None:
        return True
    return header is not None and header == password


def require_auth(handler: Handler) -> Handler:
    """Wrap a handler so it raises AuthError unless the request is authorised."""

    @functools.wraps(handler)
    async def guarded(request: web.Request) -> web.StreamResponse:
        node = request.app[NODE_KEY]
        if not is_authorized(node.password, request.headers.get("Authorization")):
            raise AuthError()
        return await handler(request)

    return guarded


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map missing routes to 404, auth failures to 401 and other failures to 500."""
    try:
        return await handler(request)
    except AuthError:
        return web.Response(status=401, text="Unauthorized")
    except web.HTTPNotFound:
        return web.Response(status=404, text="Not Found")
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        print(f"Unhandled rejection: {exc!r}", file=sys.stderr)
        return web.Response(status=500, text="Internal Server Error")
    except Exception as exc:
        print(f"Unhandled rejection: {exc!r}", file=sys.stderr)
        return web.Response(status=500, text="Internal Server Error")