"""Source serving audio files from the local filesystem."""

from __future__ import annotations

import asyncio
import os
import struct
from pathlib import Path
from typing import BinaryIO

from aelira.encoding import DecodedInfo, DecodedTrack, encode_track
from aelira.models import LoadTracksResponse
from aelira.sources.manager import Source

_PREFIXES = ("local:", "file:")


def strip_prefix(identifier: str) -> str:
    """Remove a leading ``local:`` or ``file:`` scheme."""
    for prefix in _PREFIXES:
        if identifier.startswith(prefix):
            return identifier[len(prefix):]
    return identifier


def _whole_seconds_ms(frames: int, rate: int) -> int:
    if rate <= 0:
        return 0
    return frames // rate * 1000


def _wav_duration(handle: BinaryIO) -> int | None:
    rate = block_align = None
    data_size = None
    while True:
        header = handle.read(8)
        if len(header) < 8:
            break
        chunk_id, size = header[:4], struct.unpack("<I", header[4:])[0]
        if chunk_id == b"fmt ":
            body = handle.read(size)
            if len(body) < 14:
                return None
            _, _, rate, _, block_align = struct.unpack("<HHIIH", body[:14])
            if size % 2:
                handle.seek(1, os.SEEK_CUR)
        elif chunk_id == b"data":
            data_size = size
            if rate is not None:
                break
            handle.seek(size + size % 2, os.SEEK_CUR)
        else:
            handle.seek(size + size % 2, os.SEEK_CUR)
    if rate is None or data_size is None:
        return None
    if not block_align:
        return 0
    return _whole_seconds_ms(data_size // block_align, rate)


def _flac_duration(handle: BinaryIO) -> int | None:
    header = handle.read(4)
    if len(header) < 4 or header[0] & 0x7F != 0:
        return None
    info = handle.read(34)
    if len(info) < 34:
        return None
    packed = int.from_bytes(info[10:18], "big")
    rate = packed >> 44
    total = packed & ((1 << 36) - 1)
    return _whole_seconds_ms(total, rate)


def probe_duration(path: str | os.PathLike[str]) -> int | None:
    """Duration in whole seconds as milliseconds; 0 if unknown, None if not audio.

    Raises OSError when the file cannot be read.
    """
    with open(path, "rb") as handle:
        head = handle.read(12)
        if head[:4] == b"RIFF" and head[8:12] == b"WAVE":
            return _wav_duration(handle)
        if head[:4] == b"fLaC":
            handle.seek(4)
            return _flac_duration(handle)
        if (
            head.startswith(b"\x1a\x45\xdf\xa3")
            or head.startswith(b"OggS")
            or head[4:8] == b"ftyp"
            or head.startswith(b"ID3")
            or (len(head) >= 2 and head[0] == 0xFF and head[1] & 0xE0 == 0xE0)
        ):
            return 0
    return None


class LocalSource(Source):
    """Resolves and streams files given by path."""

    name = "local"
    priority = 20
    search_terms = ("local", "file")
    patterns = (r"^(local|file):",)

    async def search(self, query: str, search_type: str) -> LoadTracksResponse:
        return await self.resolve(query)

    async def resolve(self, url: str) -> LoadTracksResponse:
        clean_path = strip_prefix(url)
        try:
            duration = await asyncio.to_thread(probe_duration, clean_path)
        except (OSError, ValueError):
            return LoadTracksResponse.empty()
        if duration is None:
            return LoadTracksResponse.empty()

        info = DecodedInfo(
            title=Path(clean_path).name,
            author="unknown",
            length=duration,
            identifier=clean_path,
            is_stream=False,
            uri=clean_path,
            artwork_url=None,
            isrc=None,
            source_name="local",
            position=0,
        )
        return LoadTracksResponse.track(DecodedTrack(encoded=encode_track(info), info=info))

    async def load_stream(self, identifier: str) -> BinaryIO | None:
        try:
            return open(strip_prefix(identifier), "rb")
        except (OSError, ValueError):
            return None