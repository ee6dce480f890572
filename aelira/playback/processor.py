"""Turns an audio source into a sequence of Opus packets."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import BinaryIO

from aelira.playback.webm import iter_packets

WEBM_OPUS = "webm/opus"


class AudioProcessor:
    """Async source of Opus packets read from a binary stream.

    WebM/Opus input is demuxed directly. Any other format is read to its end
    and then produces no packets, as no Opus encoder is available for it.
    """

    def __init__(self, source: BinaryIO, format: str = WEBM_OPUS, chunk_size: int = 8192) -> None:
        self.format = format
        self._source = source
        self._chunk_size = chunk_size
        self._packets: Iterator[bytes] | None = None
        if format == WEBM_OPUS:
            self._packets = iter_packets(source, chunk_size)

    async def next_packet(self) -> bytes | None:
        """Return the next packet, or None at the end; raises OSError on bad input."""
        if self._packets is None:
            try:
                await asyncio.to_thread(self._source.read)
            except OSError:
                pass
            self._packets = iter_packets(self._source, self._chunk_size)
        return await asyncio.to_thread(next, self._packets, None)

    def __aiter__(self) -> AudioProcessor:
        return self

    async def __anext__(self) -> bytes:
        packet = await self.next_packet()
        if packet is None:
            raise StopAsyncIteration
        return packet