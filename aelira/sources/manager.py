"""Registry of track sources and routing of load requests."""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

from aelira.encoding import DecodedTrack
from aelira.models import LoadTracksResponse, LoadType


class Source(ABC):
    """A provider that can resolve, search and stream tracks."""

    name: str = ""
    priority: int = 10
    search_terms: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()

    def matches(self, query: str) -> bool:
        """True when any of the source's patterns matches ``query``."""
        for pattern in self.patterns:
            try:
                if re.search(pattern, query):
                    return True
            except re.error:
                continue
        return False

    @abstractmethod
    async def search(self, query: str, search_type: str) -> LoadTracksResponse:
        """Search the source for ``query``."""

    @abstractmethod
    async def resolve(self, url: str) -> LoadTracksResponse:
        """Resolve a URL or identifier into tracks."""

    @abstractmethod
    async def load_stream(self, identifier: str) -> BinaryIO | None:
        """Open the audio stream of a track, or return None."""


@dataclass
class _SourcePattern:
    regex: re.Pattern[str]
    source_name: str
    priority: int


def _path_exists(identifier: str) -> bool:
    try:
        return os.path.exists(identifier)
    except (OSError, ValueError):
        return False


class SourceManager:
    """Routes identifiers to the registered sources."""

    def __init__(self) -> None:
        self._sources: dict[str, Source] = {}
        self._search_terms: dict[str, str] = {}
        self._patterns: list[_SourcePattern] = []

    def register(self, source: Source) -> None:
        """Add a source; its patterns are ordered by descending priority."""
        name = source.name
        for term in source.search_terms:
            self._search_terms[term] = name
        for pattern in source.patterns:
            try:
                regex = re.compile(pattern)
            except re.error:
                continue
            self._patterns.append(_SourcePattern(regex, name, source.priority))
        self._patterns.sort(key=lambda entry: entry.priority, reverse=True)
        self._sources[name] = source

    def _matching_sources(self, identifier: str):
        for entry in self._patterns:
            if entry.regex.search(identifier):
                source = self._sources.get(entry.source_name)
                if source is not None:
                    yield source

    async def load_tracks(self, identifier: str) -> LoadTracksResponse:
        """Resolve by local path, then by pattern, then by search prefix, then search all."""
        if _path_exists(identifier):
            local = self._sources.get("local")
            if local is not None:
                response = await local.resolve(identifier)
                if response.load_type is not LoadType.EMPTY:
                    return response

        for source in self._matching_sources(identifier):
            response = await source.resolve(identifier)
            if response.load_type is not LoadType.EMPTY:
                return response

        prefix, sep, query = identifier.partition(":")
        if sep and len(prefix.encode("utf-8")) > 1:
            source_name = self._search_terms.get(prefix)
            if source_name is not None and source_name in self._sources:
                return await self._sources[source_name].search(query, "track")

        results = await self.unified_search(identifier)
        if not results:
            return LoadTracksResponse.empty()
        return LoadTracksResponse.search(results)

    async def unified_search(self, query: str) -> list[DecodedTrack]:
        """Search every source and collect the tracks they return."""
        results: list[DecodedTrack] = []
        for source in self._sources.values():
            response = await source.search(query, "track")
            if isinstance(response.data, list):
                results.extend(response.data)
            elif isinstance(response.data, DecodedTrack):
                results.append(response.data)
        return results

    async def load_stream(self, identifier: str) -> BinaryIO | None:
        """Open a stream through the first source that claims ``identifier``."""
        for source in self._matching_sources(identifier):
            return await source.load_stream(identifier)

        prefix, sep, _ = identifier.partition(":")
        if sep:
            source_name = self._search_terms.get(prefix)
            if source_name is not None and source_name in self._sources:
                return await self._sources[source_name].load_stream(identifier)
        return None

    def names(self) -> list[str]:
        """Names of the registered sources."""
        return list(self._sources)