import io

import pytest

from aelira.encoding import DecodedInfo, DecodedTrack, encode_track
from aelira.models import LoadTracksResponse, LoadType
from aelira.sources.manager import Source, SourceManager


def _track(identifier, source_name="fake"):
    info = DecodedInfo(
        title=identifier,
        author="someone",
        length=0,
        identifier=identifier,
        is_stream=False,
        uri=None,
        artwork_url=None,
        isrc=None,
        source_name=source_name,
        position=0,
    )
    return DecodedTrack(encode_track(info), info)


class FakeSource(Source):
    def __init__(self, name, priority=10, terms=(), patterns=(), resolve_result=None, search_result=None):
        self.name = name
        self.priority = priority
        self.search_terms = tuple(terms)
        self.patterns = tuple(patterns)
        self.resolve_result = resolve_result
        self.search_result = search_result
        self.resolved = []
        self.searched = []

    async def search(self, query, search_type):
        self.searched.append((query, search_type))
        return self.search_result or LoadTracksResponse.empty()

    async def resolve(self, url):
        self.resolved.append(url)
        return self.resolve_result or LoadTracksResponse.empty()

    async def load_stream(self, identifier):
        return io.BytesIO(self.name.encode())


@pytest.mark.asyncio
async def test_pattern_routes_to_resolve():
    source = FakeSource("alpha", patterns=[r"^alpha:"],
                        resolve_result=LoadTracksResponse.track(_track("alpha:x")))
    manager = SourceManager()
    manager.register(source)
    result = await manager.load_tracks("alpha:x")
    assert result.load_type is LoadType.TRACK
    assert result.data.info.identifier == "alpha:x"
    assert source.resolved == ["alpha:x"]


@pytest.mark.asyncio
async def test_higher_priority_pattern_wins():
    low = FakeSource("low", priority=5, patterns=[r"^x:"],
                     resolve_result=LoadTracksResponse.track(_track("low")))
    high = FakeSource("high", priority=30, patterns=[r"^x:"],
                      resolve_result=LoadTracksResponse.track(_track("high")))
    manager = SourceManager()
    manager.register(low)
    manager.register(high)
    result = await manager.load_tracks("x:song")
    assert result.data.info.identifier == "high"
    assert low.resolved == []


@pytest.mark.asyncio
async def test_empty_resolution_falls_through_to_next_pattern():
    high = FakeSource("high", priority=30, patterns=[r"^x:"])
    low = FakeSource("low", priority=5, patterns=[r"^x:"],
                     resolve_result=LoadTracksResponse.track(_track("low")))
    manager = SourceManager()
    manager.register(high)
    manager.register(low)
    result = await manager.load_tracks("x:song")
    assert result.data.info.identifier == "low"
    assert high.resolved == ["x:song"]


@pytest.mark.asyncio
async def test_search_prefix_routes_to_search():
    source = FakeSource("fake", terms=["fk"],
                        search_result=LoadTracksResponse.search([_track("hit")]))
    manager = SourceManager()
    manager.register(source)
    result = await manager.load_tracks("fk:hello")
    assert source.searched == [("hello", "track")]
    assert result.load_type is LoadType.SEARCH
    assert [t.info.identifier for t in result.data] == ["hit"]


@pytest.mark.asyncio
async def test_single_character_prefix_is_not_a_search_term():
    source = FakeSource("fake", terms=["f"])
    manager = SourceManager()
    manager.register(source)
    result = await manager.load_tracks("f:hello")
    assert source.searched == [("f:hello", "track")]
    assert result.load_type is LoadType.EMPTY


@pytest.mark.asyncio
async def test_unified_search_collects_lists_and_single_tracks():
    many = FakeSource("many", search_result=LoadTracksResponse.search([_track("a"), _track("b")]))
    one = FakeSource("one", search_result=LoadTracksResponse.track(_track("c")))
    manager = SourceManager()
    manager.register(many)
    manager.register(one)
    result = await manager.load_tracks("anything")
    assert result.load_type is LoadType.SEARCH
    assert sorted(t.info.identifier for t in result.data) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_no_results_is_empty():
    manager = SourceManager()
    manager.register(FakeSource("nothing"))
    result = await manager.load_tracks("anything")
    assert result.to_dict() == {"loadType": "empty", "data": {}}


@pytest.mark.asyncio
async def test_existing_path_goes_to_local_source(tmp_path):
    file = tmp_path / "song.webm"
    file.write_bytes(b"data")
    local = FakeSource("local", resolve_result=LoadTracksResponse.track(_track(str(file), "local")))
    manager = SourceManager()
    manager.register(local)
    result = await manager.load_tracks(str(file))
    assert local.resolved == [str(file)]
    assert result.data.info.identifier == str(file)


@pytest.mark.asyncio
async def test_missing_path_skips_local_resolve(tmp_path):
    local = FakeSource("local")
    manager = SourceManager()
    manager.register(local)
    await manager.load_tracks(str(tmp_path / "absent.webm"))
    assert local.resolved == []


def test_invalid_pattern_is_ignored():
    source = FakeSource("broken", patterns=["(", r"^ok:"])
    manager = SourceManager()
    manager.register(source)
    assert manager.names() == ["broken"]
    assert source.matches("ok:1") is True
    assert source.matches("nope") is False


@pytest.mark.asyncio
async def test_load_stream_routing():
    by_pattern = FakeSource("pat", patterns=[r"^pat:"])
    by_term = FakeSource("term", terms=["tm"])
    manager = SourceManager()
    manager.register(by_pattern)
    manager.register(by_term)
    assert (await manager.load_stream("pat:1")).read() == b"pat"
    assert (await manager.load_stream("tm:1")).read() == b"term"
    assert await manager.load_stream("other:1") is None
    assert await manager.load_stream("plain") is None