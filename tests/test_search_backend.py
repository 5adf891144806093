import asyncio

import pytest

from models import LoadType, SearchResult, SearchTimeout, Track
from retry_ledger import RetryLedger
from search_backend import MusicSearch, YouTubeSearch
from search_resolver import SearchResolver, Single


class FakeYouTube:
    def __init__(self, result=None, delay: float = 0) -> None:
        self.result = result or SearchResult.empty()
        self.delay = delay
        self.calls = []

    async def search(self, query, requester=None):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result


class FakeSpotify:
    def __init__(self, result=None) -> None:
        self.result = result or SearchResult.empty()
        self.calls = []

    def is_spotify_url(self, url):
        return url.startswith("spsearch:") or "open.spotify.com/" in url or "spotify:" in url

    async def search(self, query, requester=None):
        self.calls.append(query)
        return self.result


def test_build_target_for_search_and_links() -> None:
    youtube = YouTubeSearch(results_per_search=5)

    assert youtube.build_target("ytsearch:foo") == ("ytsearch5:foo", LoadType.SEARCH)
    url = "https://www.youtube.com/watch?v=abc"
    assert youtube.build_target(url) == (url, None)
    assert youtube.build_target("foo bar") == ("ytsearch5:foo bar", LoadType.SEARCH)


def test_plain_queries_go_to_youtube() -> None:
    youtube, spotify = FakeYouTube(), FakeSpotify()
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)

    asyncio.run(music_search.search("ytsearch:daft punk"))

    assert youtube.calls == ["ytsearch:daft punk"]
    assert spotify.calls == []


def test_spotify_links_go_to_spotify() -> None:
    youtube, spotify = FakeYouTube(), FakeSpotify()
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)

    asyncio.run(music_search.search("https://open.spotify.com/album/xyz"))

    assert spotify.calls == ["https://open.spotify.com/album/xyz"]
    assert youtube.calls == []


def test_spotify_track_uri_is_mirrored_to_youtube() -> None:
    reference = Track("abc", "Believer", "Imagine Dragons", 204_000, source_name="spotify")
    cover = Track("c", "Believer (Cover)", "Some Guy", 204_000)
    official = Track("o", "Imagine Dragons - Believer (Official Audio)", "Imagine Dragons", 205_000)
    spotify = FakeSpotify(SearchResult(LoadType.TRACK, [reference]))
    youtube = FakeYouTube(SearchResult(LoadType.SEARCH, [cover, official]))
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)

    result = asyncio.run(music_search.search("spotify:track:abc"))

    assert result.load_type is LoadType.TRACK
    assert result.tracks == [official]
    assert youtube.calls == ["ytsearch:Imagine Dragons - Believer"]


def test_mirror_passes_through_spotify_errors() -> None:
    spotify = FakeSpotify(SearchResult.failed("Spotify integration is not configured"))
    youtube = FakeYouTube()
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)

    result = asyncio.run(music_search.search("spotify:track:abc"))

    assert result.is_error
    assert youtube.calls == []


def test_slow_search_raises_search_timeout() -> None:
    music_search = MusicSearch(youtube=FakeYouTube(delay=1), spotify=FakeSpotify(), timeout=0.01)

    with pytest.raises(SearchTimeout) as excinfo:
        asyncio.run(music_search.search("ytsearch:slow"))

    assert excinfo.value.query == "ytsearch:slow"


def test_metadata_view_never_mirrors() -> None:
    reference = Track("abc", "Believer", "Imagine Dragons", 204_000, source_name="spotify")
    spotify = FakeSpotify(SearchResult(LoadType.TRACK, [reference]))
    youtube = FakeYouTube()
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)

    result = asyncio.run(music_search.metadata_view().search("spotify:track:abc"))

    assert result.tracks == [reference]
    assert youtube.calls == []


def test_bare_spotify_uri_is_annotated_with_spotify_metadata() -> None:
    reference = Track("abc", "Believer", "Imagine Dragons", 204_000, uri="spotify:track:abc",
                      source_name="spotify", album="Evolve", isrc="USUM71700626")
    official = Track("yt1", "Imagine Dragons - Believer (Official Audio)", "ImagineDragonsVEVO", 205_000,
                     uri="https://www.youtube.com/watch?v=yt1")
    spotify = FakeSpotify(SearchResult(LoadType.TRACK, [reference]))
    youtube = FakeYouTube(SearchResult(LoadType.SEARCH, [official]))
    music_search = MusicSearch(youtube=youtube, spotify=spotify, timeout=0)
    resolver = SearchResolver(music_search, retry_ledger=RetryLedger(),
                              metadata_search=music_search.metadata_view())

    outcome = asyncio.run(resolver.resolve("spotify:track:abc"))

    assert isinstance(outcome, Single)
    assert outcome.track is official
    annotation = outcome.track.annotation
    assert annotation.isrc == "USUM71700626"
    assert annotation.album == "Evolve"
    assert annotation.external_id == "abc"
    assert annotation.uri == "spotify:track:abc"
    assert youtube.calls == ["ytsearch:Imagine Dragons - Believer"]
