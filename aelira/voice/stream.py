"""Paced delivery of Opus frames over UDP."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable

from aelira.log import Level, log
from aelira.voice.crypto import VoiceCrypto
from aelira.voice.udp import VoiceUdp

FRAME_DURATION = 0.020


class AudioStream:
    """Sends one frame every 20 ms, catching up in bursts when late."""

    def __init__(self, udp: VoiceUdp, crypto: VoiceCrypto) -> None:
        self.udp = udp
        self.crypto = crypto

    async def play(self, source: AsyncIterable[bytes]) -> int:
        """Send frames until the source ends or fails; return frames sent."""
        loop = asyncio.get_running_loop()
        frames = aiter(source)
        next_tick = loop.time()
        count = 0
        while True:
            delay = next_tick - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            next_tick += FRAME_DURATION

            try:
                frame = await anext(frames)
            except StopAsyncIteration:
                log(Level.DEBUG, "AudioStream", "Source reached EOF")
                break
            except OSError as exc:
                log(Level.ERROR, "AudioStream", f"Error reading frame: {exc}")
                break

            await self.udp.send_opus(frame, self.crypto)
            count += 1
            if count % 500 == 0:
                log(Level.DEBUG, "AudioStream", f"Sent {count} frames")
        return count