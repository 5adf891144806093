"""
Spotify Integration - Load Spotify tracks, albums, playlists and searches as Tracks
"""

import asyncio
import logging
import re
from typing import List, Optional, Tuple

import spotipy
from spotipy.oauth2 import SpotifyClientCredentials

from config import SEARCH_CONFIG, SPOTIFY_CONFIG, BOT_CONFIG
from models import LoadType, SearchResult, Track

logger = logging.getLogger(__name__)


class SpotifyCatalog:
    """Spotify Web API access returning metadata-only tracks."""

    def __init__(self, client_id: Optional[str] = None, client_secret: Optional[str] = None,
                 client: Optional[spotipy.Spotify] = None):
        self.client_id = client_id if client_id is not None else SPOTIFY_CONFIG['client_id']
        self.client_secret = client_secret if client_secret is not None else SPOTIFY_CONFIG['client_secret']
        self.spotify = client

        if self.spotify is None and self.client_id and self.client_secret:
            try:
                credentials = SpotifyClientCredentials(
                    client_id=self.client_id,
                    client_secret=self.client_secret
                )
                self.spotify = spotipy.Spotify(
                    client_credentials_manager=credentials,
                    requests_timeout=SPOTIFY_CONFIG['requests_timeout'],
                    retries=SPOTIFY_CONFIG['retries'],
                )
                logger.info("Spotify client initialized successfully")
            except Exception as e:
                logger.error(f"Failed to initialize Spotify client: {e}")
        elif self.spotify is None:
            logger.warning("Spotify credentials not found. Spotify links will not resolve.")

    @property
    def enabled(self) -> bool:
        return self.spotify is not None

    def is_spotify_url(self, url: str) -> bool:
        """Check if the query is a Spotify URL, URI or search."""
        spotify_patterns = [
            r'open\.spotify\.com/',
            r'spotify:',
        ]
        return (url.startswith(SEARCH_CONFIG['cross_catalog_search_prefix'])
                or any(re.search(pattern, url) for pattern in spotify_patterns))

    def extract_spotify_id(self, url: str) -> Optional[Tuple[str, str]]:
        """Extract Spotify ID and type (track, playlist, album) from URL."""
        patterns = {
            'track': r'(?:track[/:]([a-zA-Z0-9]+))',
            'playlist': r'(?:playlist[/:]([a-zA-Z0-9]+))',
            'album': r'(?:album[/:]([a-zA-Z0-9]+))'
        }

        for content_type, pattern in patterns.items():
            match = re.search(pattern, url)
            if match:
                return content_type, match.group(1)

        return None

    async def search(self, query: str, requester=None) -> SearchResult:
        """Load a Spotify link or ``spsearch:`` query."""
        if not self.spotify:
            return SearchResult.failed("Spotify integration is not configured")

        loop = asyncio.get_running_loop()
        prefix = SEARCH_CONFIG['cross_catalog_search_prefix']
        if query.startswith(prefix):
            terms = query[len(prefix):].strip()
            return await loop.run_in_executor(None, lambda: self.search_tracks(terms, requester))

        spotify_info = self.extract_spotify_id(query)
        if not spotify_info:
            return SearchResult.failed("Unsupported Spotify link")

        content_type, content_id = spotify_info
        try:
            if content_type == 'track':
                return await loop.run_in_executor(None, lambda: self.get_track(content_id, requester))
            if content_type == 'album':
                return await loop.run_in_executor(None, lambda: self.get_album_tracks(content_id, requester))
            return await loop.run_in_executor(None, lambda: self.get_playlist_tracks(content_id, requester))
        except spotipy.SpotifyException as e:
            logger.error(f"Spotify rejected {content_type} {content_id}: {e}")
            return SearchResult.failed(e.msg or str(e))

    def get_track(self, track_id: str, requester=None) -> SearchResult:
        track = self.spotify.track(track_id, market=SPOTIFY_CONFIG['market'])
        return SearchResult(LoadType.TRACK, [Track.from_spotify(track, requester=requester)])

    def get_album_tracks(self, album_id: str, requester=None) -> SearchResult:
        album = self.spotify.album(album_id, market=SPOTIFY_CONFIG['market'])
        logger.info(f"Processing Spotify album: {album['name']}")

        tracks = [
            Track.from_spotify(item, album=album, requester=requester)
            for item in album['tracks']['items']
        ]
        logger.info(f"Extracted {len(tracks)} tracks from Spotify album")
        return SearchResult(LoadType.PLAYLIST, tracks, playlist_name=album['name'])

    def get_playlist_tracks(self, playlist_id: str, requester=None) -> SearchResult:
        limit = BOT_CONFIG['max_playlist_size']
        playlist = self.spotify.playlist(playlist_id, fields='name')
        logger.info(f"Processing Spotify playlist: {playlist['name']}")

        tracks: List[Track] = []
        offset = 0
        while len(tracks) < limit:
            results = self.spotify.playlist_items(
                playlist_id,
                offset=offset,
                limit=min(50, limit - len(tracks)),
                additional_types=('track',),
            )
            if not results['items']:
                break

            for item in results['items']:
                track = item.get('track')
                if track and track.get('type') == 'track':
                    tracks.append(Track.from_spotify(track, requester=requester))

            offset += len(results['items'])
            if not results['next']:
                break

        logger.info(f"Extracted {len(tracks)} tracks from Spotify playlist")
        return SearchResult(LoadType.PLAYLIST, tracks, playlist_name=playlist['name'])

    def search_tracks(self, query: str, requester=None) -> SearchResult:
        """Search for tracks on Spotify."""
        results = self.spotify.search(q=query, type='track', limit=SPOTIFY_CONFIG['search_limit'])
        tracks = [Track.from_spotify(item, requester=requester) for item in results['tracks']['items']]
        return SearchResult(LoadType.SEARCH if tracks else LoadType.EMPTY, tracks)
