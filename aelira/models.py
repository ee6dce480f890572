"""Response models for track loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from aelira.encoding import DecodedTrack


class LoadType(Enum):
    """Kind of result returned by a track load."""

    TRACK = "track"
    PLAYLIST = "playlist"
    SEARCH = "search"
    EMPTY = "empty"
    ERROR = "error"


@dataclass
class PlaylistInfo:
    name: str
    selected_track: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "selectedTrack": self.selected_track}


@dataclass
class PlaylistData:
    info: PlaylistInfo
    plugin_info: dict[str, Any] = field(default_factory=dict)
    tracks: list[DecodedTrack] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "info": self.info.to_dict(),
            "pluginInfo": self.plugin_info,
            "tracks": [track.to_dict() for track in self.tracks],
        }


@dataclass
class ErrorData:
    message: str
    severity: str
    cause: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "severity": self.severity, "cause": self.cause}


LoadResultData = Union[DecodedTrack, PlaylistData, list[DecodedTrack], dict[str, Any], ErrorData]


@dataclass
class LoadTracksResponse:
    """Outcome of resolving or searching for tracks."""

    load_type: LoadType
    data: LoadResultData

    @classmethod
    def empty(cls) -> LoadTracksResponse:
        return cls(LoadType.EMPTY, {})

    @classmethod
    def track(cls, track: DecodedTrack) -> LoadTracksResponse:
        return cls(LoadType.TRACK, track)

    @classmethod
    def search(cls, tracks: list[DecodedTrack]) -> LoadTracksResponse:
        return cls(LoadType.SEARCH, list(tracks))

    def to_dict(self) -> dict[str, Any]:
        data = self.data
        if isinstance(data, list):
            rendered: Any = [track.to_dict() for track in data]
        elif isinstance(data, dict):
            rendered = data
        else:
            rendered = data.to_dict()
        return {"loadType": self.load_type.value, "data": rendered}