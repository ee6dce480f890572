"""Binary track encoding shared with clients as base64 strings."""

from __future__ import annotations

import base64
import binascii
import struct
from dataclasses import dataclass, field
from typing import Any

_SIZE_MASK = 0x3FFFFFFF
_VERSIONED_FLAG = 1 << 30
_MAX_U64 = (1 << 64) - 1


class TrackDecodeError(ValueError):
    """Raised when an encoded track cannot be decoded."""


@dataclass
class DecodedInfo:
    """Metadata describing a track."""

    title: str
    author: str
    length: int
    identifier: str
    is_stream: bool
    uri: str | None
    artwork_url: str | None
    isrc: str | None
    source_name: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "length": self.length,
            "identifier": self.identifier,
            "isStream": self.is_stream,
            "uri": self.uri,
            "artworkUrl": self.artwork_url,
            "isrc": self.isrc,
            "sourceName": self.source_name,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Any) -> DecodedInfo:
        """Build from a camelCase mapping; raises ValueError on bad input."""
        if not isinstance(data, dict):
            raise ValueError("track info must be an object")
        return cls(
            title=_required_str(data, "title"),
            author=_required_str(data, "author"),
            length=_required_u64(data, "length"),
            identifier=_required_str(data, "identifier"),
            is_stream=_required_bool(data, "isStream"),
            uri=_optional_str(data, "uri"),
            artwork_url=_optional_str(data, "artworkUrl"),
            isrc=_optional_str(data, "isrc"),
            source_name=_required_str(data, "sourceName"),
            position=_required_u64(data, "position"),
        )


@dataclass
class DecodedTrack:
    """An encoded track string together with its decoded metadata."""

    encoded: str
    info: DecodedInfo
    plugin_info: dict[str, Any] = field(default_factory=dict)
    user_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "encoded": self.encoded,
            "info": self.info.to_dict(),
            "pluginInfo": self.plugin_info,
            "userData": self.user_data,
        }


def _field(data: dict, key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _required_str(data: dict, key: str) -> str:
    value = _field(data, key)
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string or null")
    return value


def _required_bool(data: dict, key: str) -> bool:
    value = _field(data, key)
    if not isinstance(value, bool):
        raise ValueError(f"field `{key}` must be a boolean")
    return value


def _required_u64(data: dict, key: str) -> int:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _MAX_U64:
        raise ValueError(f"field `{key}` must be an unsigned 64-bit integer")
    return value


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise TrackDecodeError(
                f"unexpected end of data: needed {count} bytes at offset {self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return struct.unpack(">H", self.take(2))[0]

    def i32(self) -> int:
        return struct.unpack(">i", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack(">Q", self.take(8))[0]

    def utf(self) -> str:
        raw = self.take(self.u16())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TrackDecodeError(f"invalid UTF-8 text: {exc}") from exc

    def nullable_text(self) -> str | None:
        return self.utf() if self.u8() != 0 else None


def decode_track(encoded: str) -> DecodedTrack:
    """Decode a base64 track string; raises TrackDecodeError on failure."""
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TrackDecodeError(f"invalid base64: {exc}") from exc

    outer = _Reader(raw)
    size = outer.i32() & _SIZE_MASK
    msg = _Reader(outer.take(size))

    version = msg.u8()
    title = msg.utf()
    author = msg.utf()
    length = msg.u64()
    identifier = msg.utf()
    is_stream = msg.u8() != 0
    uri = msg.nullable_text() if version >= 2 else None
    artwork_url = msg.nullable_text() if version >= 3 else None
    isrc = msg.nullable_text() if version >= 3 else None
    source_name = msg.utf()
    position = msg.u64()

    info = DecodedInfo(
        title=title,
        author=author,
        length=length,
        identifier=identifier,
        is_stream=is_stream,
        uri=uri,
        artwork_url=artwork_url,
        isrc=isrc,
        source_name=source_name,
        position=position,
    )
    return DecodedTrack(encoded=encoded, info=info)


def _write_utf(buf: bytearray, text: str) -> None:
    raw = text.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise ValueError("text field longer than 65535 bytes")
    buf += struct.pack(">H", len(raw))
    buf += raw


def _write_nullable_text(buf: bytearray, text: str | None) -> None:
    if text is None:
        buf.append(0)
    else:
        buf.append(1)
        _write_utf(buf, text)


def _pack_u64(value: int) -> bytes:
    try:
        return struct.pack(">Q", value)
    except struct.error as exc:
        raise ValueError(f"value {value!r} does not fit an unsigned 64-bit integer") from exc


def encode_track(info: DecodedInfo) -> str:
    """Encode track metadata into a base64 string."""
    if info.artwork_url is not None or info.isrc is not None:
        version = 3
    elif info.uri is not None:
        version = 2
    else:
        version = 1

    body = bytearray([version])
    _write_utf(body, info.title)
    _write_utf(body, info.author)
    body += _pack_u64(info.length)
    _write_utf(body, info.identifier)
    body.append(1 if info.is_stream else 0)
    if version >= 2:
        _write_nullable_text(body, info.uri)
    if version >= 3:
        _write_nullable_text(body, info.artwork_url)
        _write_nullable_text(body, info.isrc)
    _write_utf(body, info.source_name)
    body += _pack_u64(info.position)

    header = (len(body) & _SIZE_MASK) | _VERSIONED_FLAG
    return base64.b64encode(struct.pack(">I", header) + bytes(body)).decode("ascii")