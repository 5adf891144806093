"""
Search Resolver - Turn a query into one playable track or a defined failure

Queries are tried one at a time in the order the expander produced them and
the first non-empty result wins. Spotify links take a two-step path: load
the Spotify item, then look up the same recording on the playback catalog.
Provider exceptions never escape; every failure becomes an outcome value.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from candidate_scorer import best_cross_catalog_match, rank_candidates
from config import MATCH_CONFIG, SEARCH_CONFIG
from models import LoadType, SearchResult, SearchTimeout, SourceAnnotation, Track
from query_expander import expand, is_cross_catalog_query, strip_search_prefix
from retry_ledger import RetryLedger

logger = logging.getLogger(__name__)


@dataclass
class Single:
    track: Track
    query: Optional[str] = None
    attempts: int = 0


@dataclass
class Multi:
    tracks: List[Track]
    playlist_name: Optional[str] = None
    query: Optional[str] = None
    attempts: int = 0


@dataclass
class NotFound:
    attempts: int = 0
    timed_out: bool = False
    reason: Optional[str] = None


@dataclass
class ProviderError:
    message: str
    attempts: int = 0


@dataclass
class GiveUp:
    """The track was already retried inside the retry window."""
    key: str


@dataclass
class _Attempts:
    count: int = 0
    timeouts: int = 0
    last_error: Optional[str] = None

    def not_found(self, reason: Optional[str] = None) -> NotFound:
        return NotFound(attempts=self.count, timed_out=self.timeouts > 0, reason=reason)


class SearchResolver:
    """Resolve user queries and failed tracks through a search capability.

    ``search`` is any object with ``async search(query, requester)`` returning
    a ``SearchResult`` (or ``None``) and possibly raising. ``metadata_search``
    has the same shape and loads the Spotify item of a cross-catalog query
    as-is; it defaults to ``search``.
    """

    def __init__(self, search, retry_ledger: Optional[RetryLedger] = None,
                 search_prefix: Optional[str] = None,
                 ranking_weights: Optional[Dict[str, int]] = None,
                 match_weights: Optional[Dict[str, int]] = None,
                 thresholds: Optional[Dict[str, float]] = None,
                 metadata_search=None):
        self.search = search
        self.metadata_search = metadata_search if metadata_search is not None else search
        self.retry_ledger = retry_ledger if retry_ledger is not None else RetryLedger()
        self.search_prefix = SEARCH_CONFIG['search_prefix'] if search_prefix is None else search_prefix
        self.ranking_weights = ranking_weights
        self.match_weights = match_weights
        self.thresholds = MATCH_CONFIG if thresholds is None else thresholds

    async def resolve(self, query: str, requester=None):
        """Resolve a user query to ``Single``, ``Multi``, ``NotFound`` or ``ProviderError``."""
        if is_cross_catalog_query(query):
            return await self._resolve_cross_catalog(query, requester)
        return await self._resolve_ladder(expand(query, prefix=self.search_prefix), requester)

    async def resolve_replacement(self, failed_track: Track, requester=None):
        """Find a different, similar-length version of a track that failed to play.

        Returns ``GiveUp`` when the same track was already retried recently.
        """
        key = failed_track.key
        if self.retry_ledger.was_recently_retried(key):
            logger.warning(f"⚠️ '{failed_track.title}' was retried recently, giving up to avoid a loop")
            return GiveUp(key)
        self.retry_ledger.mark_retried(key)

        terms = failed_track.search_terms()
        if len(terms) < SEARCH_CONFIG['min_replacement_query_length']:
            logger.info(f"❌ Cannot build a search query from {failed_track!r}")
            return NotFound(reason='insufficient_info')

        query = f"{self.search_prefix}{terms}"
        logger.info(f"🔍 Searching for alternatives to: '{query}'")
        return await self._resolve_ladder(
            expand(query, prefix=self.search_prefix),
            requester if requester is not None else failed_track.requester,
            accept=lambda candidate: self.is_acceptable_replacement(failed_track, candidate),
        )

    async def find_alternatives(self, query: str, requester=None) -> List[Track]:
        """Collect the top result of several version-flavoured searches, without duplicates."""
        base = strip_search_prefix(query, self.search_prefix)
        attempts = _Attempts()
        alternatives = []
        seen = set()
        for suffix in SEARCH_CONFIG['alternative_suffixes']:
            result = await self._attempt(f"{self.search_prefix}{base} {suffix}", requester, attempts)
            if result is None or result.is_error or not result.tracks:
                continue
            track = result.tracks[0]
            if track.identifier in seen:
                continue
            seen.add(track.identifier)
            alternatives.append(track)
        return alternatives

    def is_acceptable_replacement(self, failed_track: Track, candidate: Track) -> bool:
        if failed_track.identifier and candidate.identifier == failed_track.identifier:
            logger.debug("⏭️ Skipping same track identifier")
            return False
        if failed_track.duration_ms and candidate.duration_ms:
            diff = abs(failed_track.duration_ms - candidate.duration_ms)
            tolerance = max(self.thresholds['replacement_min_duration_diff_ms'],
                            failed_track.duration_ms * self.thresholds['replacement_duration_ratio'])
            if diff > tolerance:
                logger.debug(f"⏭️ Skipping track with very different duration: {diff}ms difference")
                return False
        return True

    async def _attempt(self, query: str, requester, attempts: _Attempts,
                       provider=None) -> Optional[SearchResult]:
        """Run one search; failures are logged and reported as ``None``."""
        provider = self.search if provider is None else provider
        attempts.count += 1
        try:
            return await provider.search(query, requester)
        except (SearchTimeout, asyncio.TimeoutError):
            attempts.timeouts += 1
            logger.warning(f"⏱️ Search timed out for '{query}'")
        except Exception as e:
            logger.warning(f"❌ Search failed for '{query}': {e}")
        return None

    async def _resolve_ladder(self, queries: Sequence[str], requester,
                              accept: Optional[Callable[[Track], bool]] = None):
        attempts = _Attempts()
        for index, query in enumerate(queries):
            logger.info(f"🔍 Search strategy {index + 1}: '{query}'")
            result = await self._attempt(query, requester, attempts)
            if result is None:
                continue
            if result.is_error:
                attempts.last_error = result.error or 'Unknown error'
                logger.warning(f"❌ Provider reported an error for '{query}': {attempts.last_error}")
                continue
            if not result.tracks:
                logger.debug(f"No results for '{query}'")
                continue

            if result.load_type is LoadType.PLAYLIST and accept is None:
                return Multi(list(result.tracks), result.playlist_name, query, attempts.count)

            track = self._select(result.tracks, index, accept)
            if track is None:
                logger.info(f"❌ No suitable candidate among {len(result.tracks)} result(s) for '{query}'")
                return attempts.not_found('no_suitable_candidate')
            return Single(track, query, attempts.count)

        if attempts.last_error is not None:
            return ProviderError(attempts.last_error, attempts.count)
        return attempts.not_found()

    def _select(self, tracks: Sequence[Track], index: int,
                accept: Optional[Callable[[Track], bool]]) -> Optional[Track]:
        # The most faithful query's own ordering is trusted as-is
        if index > 0 and len(tracks) > 1:
            ranked = rank_candidates(tracks, self.ranking_weights)
            top, score = ranked[0]
            logger.info(f"📊 Top ranked track '{top.title}' with score {score}")
            ordered = [track for track, _ in ranked]
        else:
            ordered = list(tracks)

        for track in ordered:
            if accept is None or accept(track):
                return track
        return None

    async def _resolve_cross_catalog(self, query: str, requester):
        logger.info(f"🎵 Spotify link detected: '{query}'")
        attempts = _Attempts()
        result = await self._attempt(query, requester, attempts, provider=self.metadata_search)
        if result is None:
            return attempts.not_found()
        if result.is_error:
            return ProviderError(result.error or 'Unknown error', attempts.count)
        if not result.tracks:
            logger.info(f"❌ No Spotify results for '{query}'")
            return attempts.not_found()

        reference = result.tracks[0]
        logger.info(f"🎵 Found Spotify track: '{reference.title}' by '{reference.author}'")
        substitute = await self._find_on_playback_catalog(reference, requester, attempts)
        if substitute is None:
            logger.warning(f"⚠️ Could not find a playable version of '{reference.title}', returning original result")
            if result.load_type is LoadType.PLAYLIST:
                return Multi(list(result.tracks), result.playlist_name, query, attempts.count)
            return Single(reference, query, attempts.count)

        logger.info(f"✅ Found: '{substitute.title}' by '{substitute.author}'")
        return Single(substitute, query, attempts.count)

    async def _find_on_playback_catalog(self, reference: Track, requester,
                                        attempts: _Attempts) -> Optional[Track]:
        if reference.uri:
            query = reference.uri
        elif reference.search_terms():
            query = f"{self.search_prefix}{reference.search_terms()}"
        else:
            return None

        result = await self._attempt(query, requester, attempts)
        if result is None or result.is_error or not result.tracks:
            return None

        track = best_cross_catalog_match(
            result.tracks, reference.title, reference.author, reference.duration_ms,
            weights=self.match_weights, thresholds=self.thresholds,
        )
        track.annotation = SourceAnnotation(
            title=reference.title,
            artist=reference.author,
            album=reference.album,
            isrc=reference.isrc,
            external_id=reference.identifier,
            uri=reference.uri,
        )
        return track
