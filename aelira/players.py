"""Per-guild players and their playback."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from dataclasses import dataclass, field
from typing import Any

from aelira.encoding import DecodedInfo
from aelira.log import Level, log
from aelira.playback.processor import AudioProcessor
from aelira.sources.local import LocalSource
from aelira.voice.connection import VoiceConnection
from aelira.voice.stream import AudioStream

_CONNECT_ATTEMPTS = 50
_CONNECT_POLL = 0.1


@dataclass
class TrackData:
    encoded: str
    info: DecodedInfo

    def to_dict(self) -> dict[str, Any]:
        return {"encoded": self.encoded, "info": self.info.to_dict()}


@dataclass
class PlayerState:
    time: int = 0
    position: int = 0
    connected: bool = False
    ping: int = -1

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "position": self.position,
            "connected": self.connected,
            "ping": self.ping,
        }


@dataclass
class VoiceState:
    token: str
    endpoint: str
    session_id: str

    @classmethod
    def from_dict(cls, data: Any) -> VoiceState:
        """Build from a camelCase mapping; raises ValueError on bad input."""
        if not isinstance(data, dict):
            raise ValueError("voice state must be an object")
        values = {}
        for key in ("token", "endpoint", "sessionId"):
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"field `{key}` must be a string")
            values[key] = value
        return cls(values["token"], values["endpoint"], values["sessionId"])

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "endpoint": self.endpoint, "sessionId": self.session_id}


async def _frames(processor: AudioProcessor) -> AsyncIterator[bytes]:
    while True:
        try:
            packet = await processor.next_packet()
        except OSError as exc:
            log(Level.ERROR, "Player", f"Error reading packet: {exc}")
            raise
        if packet is None:
            return
        yield packet


@dataclass
class Player:
    """Playback state for one guild."""

    guild_id: str
    track: TrackData | None = None
    volume: int = 100
    paused: bool = False
    state: PlayerState = field(default_factory=PlayerState)
    voice: VoiceState | None = None
    connection: VoiceConnection | None = field(default=None, repr=False, compare=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, repr=False, compare=False)

    def _spawn(self, make: Any, *args: Any) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        coro: Coroutine[Any, Any, Any] = make(*args)
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def connect(self, voice: VoiceState, user_id: str) -> asyncio.Task:
        """Open a voice connection in the background and return its task."""
        log(Level.INFO, "Player", f"Connecting to voice: {voice.endpoint} (Session: {voice.session_id})")
        connection = VoiceConnection(
            self.guild_id, voice.session_id, voice.token, voice.endpoint, user_id
        )
        self.connection = connection
        self.voice = voice
        return self._spawn(connection.run)

    def play(self) -> asyncio.Task | None:
        """Start playing the current track; return the playback task if started."""
        if self.track is None:
            log(Level.WARN, "Player", "Attempted to play without track")
            return None
        identifier = self.track.info.identifier
        log(Level.DEBUG, "Player", f"Play request for track: {identifier}")
        if self.connection is None:
            log(Level.WARN, "Player", "No active voice connection to play on")
            return None
        return self._spawn(self._playback, self.connection, identifier)

    @staticmethod
    async def _playback(connection: VoiceConnection, identifier: str) -> None:
        attempts = 0
        while connection.udp is None or connection.crypto is None:
            if attempts > _CONNECT_ATTEMPTS:
                log(Level.ERROR, "Player", "Timeout waiting for voice connection")
                return
            await asyncio.sleep(_CONNECT_POLL)
            attempts += 1
        stream_handler = AudioStream(connection.udp.copy(), connection.crypto)

        stream = await LocalSource().load_stream(identifier)
        if stream is None:
            log(Level.ERROR, "Player", f"Failed to load stream for: {identifier}")
            return

        with stream:
            log(Level.INFO, "Player", f"Stream loaded for: {identifier}")
            await connection.set_speaking(True)
            processor = AudioProcessor(stream, "webm/opus")
            await stream_handler.play(_frames(processor))
        await connection.set_speaking(False)
        await connection.send_silence()
        log(Level.INFO, "Player", "Playback finished")

    def to_dict(self) -> dict[str, Any]:
        return {
            "guildId": self.guild_id,
            "track": self.track.to_dict() if self.track is not None else None,
            "volume": self.volume,
            "paused": self.paused,
            "state": self.state.to_dict(),
            "voice": self.voice.to_dict() if self.voice is not None else None,
        }


class PlayerManager:
    """The players of one session, keyed by guild id."""

    def __init__(self) -> None:
        self.players: dict[str, Player] = {}

    def get_or_create(self, guild_id: str) -> Player:
        player = self.players.get(guild_id)
        if player is None:
            player = self.players[guild_id] = Player(guild_id)
        return player

    def get(self, guild_id: str) -> Player | None:
        return self.players.get(guild_id)

    def remove(self, guild_id: str) -> Player | None:
        """Remove and return a player, or None if there was none."""
        return self.players.pop(guild_id, None)