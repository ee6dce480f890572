"""Client sessions and their players."""

from __future__ import annotations

import asyncio
import secrets
import string
from dataclasses import dataclass, field

from aelira.players import PlayerManager

_ID_ALPHABET = string.ascii_letters + string.digits
_ID_LENGTH = 16


@dataclass
class Session:
    """A connected client with its outgoing message queue."""

    id: str
    user_id: str
    client_name: str
    sender: asyncio.Queue[str]
    players: PlayerManager = field(default_factory=PlayerManager)

    def send(self, message: str) -> None:
        """Queue a text message for the client."""
        self.sender.put_nowait(message)


def _new_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class SessionManager:
    """All sessions, keyed by session id."""

    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    def create(self, user_id: str, client_name: str, sender: asyncio.Queue[str]) -> Session:
        """Create a session with a fresh 16-character alphanumeric id."""
        session_id = _new_id()
        while session_id in self.sessions:
            session_id = _new_id()
        session = Session(session_id, user_id, client_name, sender)
        self.sessions[session_id] = session
        return session

    def resume(self, session_id: str, new_sender: asyncio.Queue[str]) -> Session | None:
        """Attach a new queue to an existing session, or return None."""
        session = self.sessions.get(session_id)
        if session is not None:
            session.sender = new_sender
        return session

    def get(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)