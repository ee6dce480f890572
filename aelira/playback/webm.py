"""Incremental WebM demuxer that extracts Opus frames."""

from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

from aelira.log import Level, log

OPUS_HEAD = b"OpusHead"

EBML_HEADER = 0x1A45DFA3
SEGMENT = 0x18538067
CLUSTER = 0x1F43B675
TRACKS = 0x1654AE6B
TRACK_ENTRY = 0xAE
TRACK_NUMBER = 0xD7
TRACK_TYPE = 0x83
SIMPLE_BLOCK = 0xA3
CODEC_PRIVATE = 0x63A2
VOID = 0xEC

_CONTAINERS = frozenset({EBML_HEADER, SEGMENT, CLUSTER, TRACKS, TRACK_ENTRY})
_AUDIO_TRACK_TYPE = 2
_U64_MASK = (1 << 64) - 1


def read_vint(buf: bytes, keep_marker: bool) -> tuple[int, int] | None:
    """Read an EBML variable-length integer; return (value, width) or None."""
    if not buf:
        return None
    first = buf[0]
    width = 9 - first.bit_length()
    if width > 8 or len(buf) < width:
        return None
    value = first if keep_marker else first & ((1 << (8 - width)) - 1)
    for byte in buf[1:width]:
        value = (value << 8) | byte
    return value, width


class WebmOpusDemuxer:
    """Feed WebM bytes in and take Opus packets of the audio track out."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.current_track_number: int | None = None
        self._pending_track_number = 0
        self._pending_track_type = 0
        self._skip_len = 0

    def feed(self, data: bytes) -> None:
        self._buffer += data

    def packets(self) -> Iterator[bytes]:
        """Yield every packet decodable from the data fed so far."""
        while (packet := self._decode()) is not None:
            yield packet

    def _decode(self) -> bytes | None:
        buf = self._buffer
        while True:
            if self._skip_len:
                if len(buf) >= self._skip_len:
                    del buf[: self._skip_len]
                    self._skip_len = 0
                else:
                    self._skip_len -= len(buf)
                    buf.clear()
                    return None

            head = read_vint(bytes(buf[:8]), True)
            if head is None:
                return None
            element_id, id_len = head
            size_info = read_vint(bytes(buf[id_len : id_len + 8]), False)
            if size_info is None:
                return None
            size, size_len = size_info
            header_len = id_len + size_len

            if element_id in _CONTAINERS:
                del buf[:header_len]
                if element_id == TRACK_ENTRY:
                    self._pending_track_number = 0
                    self._pending_track_type = 0
                continue

            if element_id in (TRACK_NUMBER, TRACK_TYPE, CODEC_PRIVATE, SIMPLE_BLOCK):
                if len(buf) < header_len + size:
                    return None
                del buf[:header_len]

                if element_id == SIMPLE_BLOCK:
                    track = read_vint(bytes(buf[:8]), False)
                    if track is None:
                        del buf[:size]
                        continue
                    track_num, track_len = track
                    if track_num == self.current_track_number:
                        payload = bytes(buf[track_len + 3 : size])
                        del buf[:size]
                        return payload
                    del buf[:size]
                    continue

                body = bytes(buf[:size])
                del buf[:size]
                if element_id == TRACK_NUMBER:
                    self._pending_track_number = int.from_bytes(body, "big") & _U64_MASK
                elif element_id == TRACK_TYPE:
                    self._pending_track_type = int.from_bytes(body, "big") & _U64_MASK
                    if self._pending_track_type == _AUDIO_TRACK_TYPE:
                        self.current_track_number = self._pending_track_number
                        log(
                            Level.DEBUG,
                            "WebmDemuxer",
                            f"Audio track selected: {self._pending_track_number}",
                        )
                elif size >= 8 and body[:8] == OPUS_HEAD:
                    log(Level.DEBUG, "WebmDemuxer", "Opus private data found")
                continue

            # Void and unknown elements: skip their payload, however large.
            del buf[:header_len]
            self._skip_len = size


def iter_packets(stream: BinaryIO, chunk_size: int = 8192) -> Iterator[bytes]:
    """Yield Opus packets read from a binary stream.

    Raises OSError when the stream ends in the middle of an element.
    """
    demuxer = WebmOpusDemuxer()
    while chunk := stream.read(chunk_size):
        demuxer.feed(chunk)
        yield from demuxer.packets()
    if demuxer._buffer:
        raise OSError("bytes remaining on stream")