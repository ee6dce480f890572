"""Messages sent to the voice gateway."""

from __future__ import annotations

import json
from typing import Any

from websockets.exceptions import ConnectionClosed

ENCRYPTION_MODE = "aead_aes256_gcm_rtpsize"


def identify_payload(guild_id: str, user_id: str, session_id: str, token: str) -> dict[str, Any]:
    return {
        "op": 0,
        "d": {
            "server_id": guild_id,
            "user_id": user_id,
            "session_id": session_id,
            "token": token,
        },
    }


def select_protocol_payload(ip: str, port: int) -> dict[str, Any]:
    return {
        "op": 1,
        "d": {
            "protocol": "udp",
            "data": {"address": ip, "port": port, "mode": ENCRYPTION_MODE},
        },
    }


async def _send_json(ws: Any, payload: dict[str, Any]) -> None:
    try:
        await ws.send(json.dumps(payload, separators=(",", ":")))
    except (ConnectionClosed, OSError):
        pass


async def identify(ws: Any, guild_id: str, user_id: str, session_id: str, token: str) -> None:
    """Send the identify message; send failures are ignored."""
    await _send_json(ws, identify_payload(guild_id, user_id, session_id, token))


async def select_protocol(ws: Any, ip: str, port: int) -> None:
    """Send the select-protocol message; send failures are ignored."""
    await _send_json(ws, select_protocol_payload(ip, port))