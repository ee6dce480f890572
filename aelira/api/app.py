"""Assembly of the HTTP application."""

from __future__ import annotations

from aiohttp import web

from aelira import socket as client_socket
from aelira.api import info, routeplanner, sessions, tracks
from aelira.api.auth import NODE_KEY, error_middleware
from aelira.core import Aelira


def create_app(node: Aelira) -> web.Application:
    """Build the application serving every endpoint for ``node``."""
    app = web.Application(middlewares=[error_middleware])
    app[NODE_KEY] = node
    app.add_routes(info.routes())
    app.add_routes(client_socket.routes())
    app.add_routes(sessions.routes())
    app.add_routes(tracks.routes())
    app.add_routes(routeplanner.routes())
    return app