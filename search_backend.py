"""
Search Backend - yt-dlp and Spotify search exposed as one search capability
"""

import asyncio
import logging
import re
from typing import Any, Dict, Optional

import yt_dlp

from candidate_scorer import best_cross_catalog_match
from config import SEARCH_CONFIG, YTDL_CONFIG, YTDL_SEARCH_CONFIG
from models import LoadType, SearchResult, SearchTimeout, Track
from spotify_handler import SpotifyCatalog

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r'^https?://', re.IGNORECASE)
SPOTIFY_TRACK_URI = re.compile(r'^spotify:track:[A-Za-z0-9]+$')


class YouTubeSearch:
    """Searches and link lookups through yt-dlp."""

    def __init__(self, ytdl_opts: Optional[Dict[str, Any]] = None,
                 results_per_search: Optional[int] = None):
        self.ytdl_opts = ytdl_opts or YTDL_SEARCH_CONFIG
        self.results_per_search = results_per_search or SEARCH_CONFIG['results_per_search']

    def build_target(self, query: str):
        """Map a query to the yt-dlp input and the load type a hit implies."""
        prefix = SEARCH_CONFIG['search_prefix']
        if query.startswith(prefix):
            query = query[len(prefix):].strip()
        elif URL_PATTERN.match(query):
            return query, None
        return f"ytsearch{self.results_per_search}:{query}", LoadType.SEARCH

    async def search(self, query: str, requester=None) -> SearchResult:
        target, load_type = self.build_target(query)
        loop = asyncio.get_running_loop()
        try:
            info = await loop.run_in_executor(None, lambda: self._extract(target))
        except yt_dlp.utils.DownloadError as e:
            logger.warning(f"yt-dlp could not load '{query}': {e}")
            return SearchResult.failed(str(e))

        if not info:
            return SearchResult.empty()

        if 'entries' in info:
            tracks = [Track.from_ytdl(entry, requester=requester) for entry in info['entries'] if entry]
            if not tracks:
                return SearchResult.empty()
            if load_type is LoadType.SEARCH:
                return SearchResult(LoadType.SEARCH, tracks)
            return SearchResult(LoadType.PLAYLIST, tracks, playlist_name=info.get('title'))

        return SearchResult(LoadType.TRACK, [Track.from_ytdl(info, requester=requester)])

    async def get_stream_url(self, track: Track) -> str:
        """Fetch a fresh stream URL for a track; raises ``DownloadError`` on failure."""
        loop = asyncio.get_running_loop()

        def extract():
            with yt_dlp.YoutubeDL(YTDL_CONFIG) as ytdl:
                return ytdl.extract_info(track.uri, download=False)

        info = await loop.run_in_executor(None, extract)
        if info and 'entries' in info:
            info = next((entry for entry in info['entries'] if entry), None)
        if not info or not info.get('url'):
            raise yt_dlp.utils.DownloadError(f"No playable stream for {track.title}")
        return info['url']

    def _extract(self, target: str):
        with yt_dlp.YoutubeDL(self.ytdl_opts) as ytdl:
            return ytdl.extract_info(target, download=False)


class MusicSearch:
    """Routes each query to Spotify or yt-dlp, optionally bounded by a timeout.

    A bare ``spotify:track:<id>`` URI is mirrored: its Spotify metadata is
    looked up on YouTube and the closest match is returned instead. With
    ``mirror_tracks=False`` Spotify queries always return Spotify metadata.
    """

    def __init__(self, youtube: Optional[YouTubeSearch] = None,
                 spotify: Optional[SpotifyCatalog] = None,
                 timeout: Optional[float] = None, mirror_tracks: bool = True):
        self.youtube = youtube or YouTubeSearch()
        self.spotify = spotify or SpotifyCatalog()
        self.timeout = timeout if timeout is not None else SEARCH_CONFIG['search_timeout']
        self.mirror_tracks = mirror_tracks

    def metadata_view(self) -> 'MusicSearch':
        """Same backends and timeout, but Spotify links are never mirrored."""
        return MusicSearch(self.youtube, self.spotify, timeout=self.timeout, mirror_tracks=False)

    async def search(self, query: str, requester=None) -> SearchResult:
        if not self.timeout:
            return await self._route(query, requester)
        try:
            return await asyncio.wait_for(self._route(query, requester), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise SearchTimeout(query, self.timeout) from e

    async def _route(self, query: str, requester) -> SearchResult:
        if self.mirror_tracks and SPOTIFY_TRACK_URI.match(query):
            return await self.mirror(query, requester)
        if self.spotify.is_spotify_url(query):
            return await self.spotify.search(query, requester)
        return await self.youtube.search(query, requester)

    async def mirror(self, uri: str, requester=None) -> SearchResult:
        metadata = await self.spotify.search(uri, requester)
        if metadata.is_error or not metadata.tracks:
            return metadata

        reference = metadata.tracks[0]
        query = f"{SEARCH_CONFIG['search_prefix']}{reference.author} - {reference.title}"
        candidates = await self.youtube.search(query, requester)
        if candidates.is_error or not candidates.tracks:
            return candidates

        best = best_cross_catalog_match(
            candidates.tracks, reference.title, reference.author, reference.duration_ms
        )
        logger.info(f"Mirrored {uri} to '{best.title}' by '{best.author}'")
        return SearchResult(LoadType.TRACK, [best])
