"""
Query Expander - Build the ordered list of fallback search queries
"""

import re
from typing import List, Optional, Sequence

from config import SEARCH_CONFIG

CROSS_CATALOG_PATTERN = re.compile(r'spotify\.com|spotify:')
VIDEO_URL_PATTERN = re.compile(r'youtube\.com|youtu\.be')

# Marks the "first few words only" variant inside the suffix ladder
TRUNCATED = object()

DEFAULT_SUFFIXES = ('official', 'audio', 'music', TRUNCATED, 'topic', 'lyrics')


def is_cross_catalog_query(query: str) -> bool:
    """Check if the query names a Spotify track, album, playlist or URI."""
    return bool(CROSS_CATALOG_PATTERN.search(query))


def is_video_url(query: str) -> bool:
    """Check if the query is a YouTube link."""
    return bool(VIDEO_URL_PATTERN.search(query))


def extract_video_title(url: str) -> str:
    # Title extraction is not implemented; a broad term keeps the ladder moving.
    return SEARCH_CONFIG['video_fallback_term']


def strip_search_prefix(query: str, prefix: str) -> str:
    return query.replace(prefix, '').strip()


def expand(original_query: str, prefix: Optional[str] = None,
           suffixes: Sequence = DEFAULT_SUFFIXES,
           truncate_words: Optional[int] = None) -> List[str]:
    """Turn one query into candidate queries, most faithful first.

    The first element is always ``original_query`` itself. A YouTube link adds
    a broad fallback search, then every suffix in ``suffixes`` is appended to
    the prefix-stripped query and re-prefixed. ``TRUNCATED`` in the suffix list
    stands for the query cut down to its first ``truncate_words`` words.
    """
    prefix = SEARCH_CONFIG['search_prefix'] if prefix is None else prefix
    truncate_words = SEARCH_CONFIG['truncate_words'] if truncate_words is None else truncate_words

    queries = [original_query]
    if is_video_url(original_query):
        queries.append(f"{prefix}{extract_video_title(original_query)}")

    base = strip_search_prefix(original_query, prefix)
    for suffix in suffixes:
        if suffix is TRUNCATED:
            terms = ' '.join(base.split()[:truncate_words])
        else:
            terms = ' '.join(part for part in (base, suffix) if part)
        if not terms:
            continue
        queries.append(f"{prefix}{terms}")

    return queries
