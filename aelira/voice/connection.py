"""A voice gateway session: websocket signalling plus UDP transport."""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from aelira.log import Level, log
from aelira.voice import gateway
from aelira.voice.crypto import VoiceCrypto
from aelira.voice.udp import VoiceUdp

OPUS_SILENCE_FRAME = b"\xf8\xff\xfe"
_SILENCE_FRAMES = 5
_DEFAULT_HEARTBEAT_MS = 30_000


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


async def _send_text(ws: Any, text: str) -> None:
    try:
        await ws.send(text)
    except (ConnectionClosed, OSError):
        pass


class VoiceConnection:
    """Connects to a voice server and holds its UDP socket and crypto."""

    def __init__(
        self,
        guild_id: str,
        session_id: str,
        token: str,
        endpoint: str,
        user_id: str,
        *,
        scheme: str = "wss",
    ) -> None:
        self.guild_id = guild_id
        self.session_id = session_id
        self.token = token
        self.endpoint = endpoint
        self.user_id = user_id
        self.scheme = scheme
        self.crypto: VoiceCrypto | None = None
        self.udp: VoiceUdp | None = None
        self.sender: asyncio.Queue[str] = asyncio.Queue()
        self.ssrc = 0
        self.speaking = False
        self.heartbeat_interval_ms = _DEFAULT_HEARTBEAT_MS
        self._heartbeat_reset = asyncio.Event()
        self._started = False

    def speaking_payload(self, speaking: bool) -> dict[str, Any]:
        return {
            "op": 5,
            "d": {"speaking": 1 if speaking else 0, "delay": 0, "ssrc": self.ssrc},
        }

    async def set_speaking(self, speaking: bool) -> None:
        """Record the speaking state and queue the notice for the gateway."""
        payload = self.speaking_payload(speaking)
        self.speaking = speaking
        self.sender.put_nowait(_dumps(payload))

    async def send_silence(self) -> None:
        """Send five silence frames, 20 ms apart, if the transport is ready."""
        if self.udp is None or self.crypto is None:
            return
        udp = self.udp.copy()
        crypto = self.crypto
        for _ in range(_SILENCE_FRAMES):
            await udp.send_opus(OPUS_SILENCE_FRAME, crypto)
            await asyncio.sleep(0.020)

    async def handle_message(self, ws: Any, text: str) -> None:
        """Act on one gateway text message; raises ValueError when malformed."""
        try:
            message = json.loads(text)
            op = message["op"]
            data = message["d"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ValueError(f"malformed voice message: {exc}") from exc

        try:
            if op == 2:
                ip = data["ip"]
                port = int(data["port"]) & 0xFFFF
                ssrc = int(data["ssrc"]) & 0xFFFFFFFF
                if not isinstance(ip, str):
                    raise TypeError("ip must be a string")
            elif op == 4:
                key = bytes(int(value) & 0xFF for value in data["secret_key"])
            elif op == 8:
                interval_ms = int(data["heartbeat_interval"])
            else:
                return
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"malformed voice op {op}: {exc}") from exc

        if op == 2:
            self.ssrc = ssrc
            udp = await VoiceUdp.open((ip, port), ssrc)
            ext_ip, ext_port = await udp.discover_ip()
            log(Level.DEBUG, "Voice", f"UDP Socket ready, IP discovered: {ext_ip}:{ext_port}")
            self.udp = udp
            await gateway.select_protocol(ws, ext_ip, ext_port)
        elif op == 4:
            self.crypto = VoiceCrypto(key)
            log(Level.INFO, "Voice", "Voice crypto setup complete")
        else:
            self.heartbeat_interval_ms = interval_ms
            self._heartbeat_reset.set()

    async def _heartbeat(self, ws: Any) -> None:
        while True:
            self._heartbeat_reset.clear()
            await _send_text(ws, _dumps({"op": 3, "d": int(time.time() * 1000)}))
            try:
                await asyncio.wait_for(
                    self._heartbeat_reset.wait(), self.heartbeat_interval_ms / 1000
                )
            except asyncio.TimeoutError:
                pass

    async def _pump(self, ws: Any) -> None:
        while True:
            text = await self.sender.get()
            await _send_text(ws, text)

    async def run(self) -> None:
        """Connect, identify, and serve the gateway until it closes."""
        url = f"{self.scheme}://{self.endpoint}/?v=8"
        log(Level.DEBUG, "Voice", f"Connecting to voice WS: {url}")
        try:
            ws = await websockets.connect(url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
            log(Level.ERROR, "Voice", f"Failed to connect voice WS: {exc}")
            return

        log(Level.INFO, "Voice", "Voice WS Connected")
        if self._started:
            await ws.close()
            raise RuntimeError("voice connection already running")
        self._started = True

        await gateway.identify(ws, self.guild_id, self.user_id, self.session_id, self.token)
        tasks = [
            asyncio.create_task(self._heartbeat(ws)),
            asyncio.create_task(self._pump(ws)),
        ]
        try:
            async for message in ws:
                if isinstance(message, str):
                    await self.handle_message(ws, message)
        except ConnectionClosed:
            pass
        except ValueError as exc:
            log(Level.ERROR, "Voice", f"Invalid voice message: {exc}")
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await ws.close()

        log(Level.INFO, "Voice", "Voice WS Loop Ended")