"""
Models - Canonical track and search result values

Tracks enter the bot as yt-dlp info dicts or Spotify Web API track objects.
Each is normalized once here so the resolver and the player never repeat the
field fallbacks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_TITLE = 'Unknown Title'
UNKNOWN_ARTIST = 'Unknown Artist'


def track_key(identifier: Optional[str], title: Optional[str]) -> str:
    """Identity used for retry bookkeeping: ``<identifier>_<title>``."""
    return f"{identifier or 'unknown'}_{title or 'unknown'}"


class SearchTimeout(Exception):
    """A search call did not answer within the configured timeout."""

    def __init__(self, query: str, timeout: float):
        super().__init__(f"Search timed out after {timeout}s: {query}")
        self.query = query
        self.timeout = timeout


@dataclass
class SourceAnnotation:
    """Where a substituted track originally came from."""
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    isrc: Optional[str] = None
    external_id: Optional[str] = None
    uri: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'isrc': self.isrc,
            'external_id': self.external_id,
            'uri': self.uri,
        }


class Track:
    """A single playable audio item."""

    def __init__(self, identifier: Optional[str], title: Optional[str] = None,
                 author: Optional[str] = None, duration_ms: Optional[int] = None,
                 uri: Optional[str] = None, source_name: Optional[str] = None,
                 album: Optional[str] = None, isrc: Optional[str] = None,
                 thumbnail: Optional[str] = None, requester=None,
                 annotation: Optional[SourceAnnotation] = None):
        self.identifier = identifier
        self.title = title or UNKNOWN_TITLE
        self.author = author or UNKNOWN_ARTIST
        self.duration_ms = _clean_duration(duration_ms)
        self.uri = uri
        self.source_name = source_name
        self.album = album
        self.isrc = isrc
        self.thumbnail = thumbnail
        self.requester = requester
        self.annotation = annotation
        # Keyed on the raw values so a missing title stays "unknown"
        self.key = track_key(identifier, title)
        self.has_title = bool(title)
        self.has_author = bool(author)

    @property
    def duration_seconds(self) -> int:
        return (self.duration_ms or 0) // 1000

    def search_terms(self) -> str:
        """Known title and author joined for a rebuilt search query."""
        parts = []
        if self.has_title:
            parts.append(self.title)
        if self.has_author:
            parts.append(self.author)
        return ' '.join(parts).strip()

    def __repr__(self):
        return f"<Track {self.identifier!r} {self.title!r} by {self.author!r}>"

    @classmethod
    def from_ytdl(cls, entry: Dict[str, Any], requester=None) -> 'Track':
        """Build a track from a yt-dlp info dict (full or flat entry)."""
        duration = entry.get('duration')
        uri = entry.get('webpage_url') or entry.get('url')
        if not uri and entry.get('id'):
            uri = f"https://www.youtube.com/watch?v={entry['id']}"
        thumbnail = entry.get('thumbnail')
        if not thumbnail and entry.get('thumbnails'):
            thumbnail = entry['thumbnails'][-1].get('url')
        return cls(
            identifier=entry.get('id'),
            title=entry.get('title'),
            author=entry.get('uploader') or entry.get('channel') or entry.get('artist'),
            duration_ms=int(duration * 1000) if duration else None,
            uri=uri,
            source_name=entry.get('extractor_key', 'youtube').lower(),
            album=entry.get('album'),
            thumbnail=thumbnail,
            requester=requester,
        )

    @classmethod
    def from_spotify(cls, item: Dict[str, Any], album: Optional[Dict[str, Any]] = None,
                     requester=None) -> 'Track':
        """Build a track from a Spotify Web API track object."""
        album = album or item.get('album') or {}
        images = album.get('images') or []
        artists = ', '.join(artist['name'] for artist in item.get('artists', []) if artist.get('name'))
        return cls(
            identifier=item.get('id'),
            title=item.get('name'),
            author=artists,
            duration_ms=item.get('duration_ms'),
            uri=item.get('uri'),
            source_name='spotify',
            album=album.get('name'),
            isrc=(item.get('external_ids') or {}).get('isrc'),
            thumbnail=images[0]['url'] if images else None,
            requester=requester,
        )


class LoadType(Enum):
    TRACK = 'track'
    PLAYLIST = 'playlist'
    SEARCH = 'search'
    EMPTY = 'empty'
    ERROR = 'error'


@dataclass
class SearchResult:
    """What one call to a search capability returned."""
    load_type: LoadType
    tracks: List[Track] = field(default_factory=list)
    error: Optional[str] = None
    playlist_name: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.load_type is LoadType.ERROR

    @classmethod
    def empty(cls) -> 'SearchResult':
        return cls(LoadType.EMPTY)

    @classmethod
    def failed(cls, message: str) -> 'SearchResult':
        return cls(LoadType.ERROR, error=message)


def _clean_duration(value) -> Optional[int]:
    if value is None:
        return None
    try:
        duration = int(value)
    except (TypeError, ValueError):
        return None
    return duration if duration >= 0 else None
