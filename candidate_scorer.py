"""
Candidate Scorer - Heuristic ranking of search results

Both scoring functions are folds over declarative ``(weight name, predicate)``
tables. Weights live in ``config.RANKING_WEIGHTS`` and
``config.MATCH_WEIGHTS`` and can be overridden per call.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from config import MATCH_CONFIG, MATCH_WEIGHTS, RANKING_WEIGHTS
from models import Track

logger = logging.getLogger(__name__)

# Predicates take the lower-cased title and author
RANKING_RULES = (
    ('title_official', lambda title, author: 'official' in title),
    ('title_audio', lambda title, author: 'audio' in title),
    ('title_music', lambda title, author: 'music' in title),
    ('author_topic', lambda title, author: 'topic' in author),
    ('title_lyrics', lambda title, author: 'lyrics' in title),
    ('title_live', lambda title, author: 'live' in title),
    ('title_stream', lambda title, author: 'stream' in title),
    ('title_radio', lambda title, author: 'radio' in title),
    ('title_unofficial_remix', lambda title, author: 'remix' in title and 'official' not in title),
)

MATCH_KEYWORD_RULES = (
    ('title_official', lambda title, author: 'official' in title),
    ('title_audio', lambda title, author: 'audio' in title),
    ('author_topic', lambda title, author: 'topic' in author),
    ('title_live', lambda title, author: 'live' in title),
    ('title_cover', lambda title, author: 'cover' in title),
    ('title_unofficial_remix', lambda title, author: 'remix' in title and 'official' not in title),
    ('title_karaoke', lambda title, author: 'karaoke' in title),
)


def _fold(rules, weights: Dict[str, int], title: str, author: str) -> int:
    return sum(weights[name] for name, applies in rules if applies(title, author))


def score_for_ranking(track: Track, weights: Optional[Dict[str, int]] = None) -> int:
    """Score how likely a search result is the clean, playable version."""
    weights = RANKING_WEIGHTS if weights is None else weights
    return _fold(RANKING_RULES, weights, track.title.lower(), track.author.lower())


def rank_candidates(tracks: Sequence[Track],
                    weights: Optional[Dict[str, int]] = None) -> List[Tuple[Track, int]]:
    """Return ``(track, score)`` pairs, best first; ties keep input order."""
    scored = [(track, score_for_ranking(track, weights)) for track in tracks]
    # sorted() is stable, so the first-seen track wins a tie
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def normalize_text(value: Optional[str]) -> str:
    """Lower-case and drop everything that is not alphanumeric or whitespace."""
    if not value:
        return ''
    return ''.join(ch for ch in value.lower() if ch.isalnum() or ch.isspace()).strip()


def _overlaps(left: str, right: str) -> bool:
    # An empty side would match everything, so it never counts
    return bool(left and right) and (left in right or right in left)


def score_cross_catalog_match(candidate: Track, reference_title: str, reference_artist: str,
                              reference_duration_ms: Optional[int] = None,
                              weights: Optional[Dict[str, int]] = None,
                              thresholds: Optional[Dict[str, int]] = None) -> int:
    """Score how likely ``candidate`` is the same recording as the reference."""
    weights = MATCH_WEIGHTS if weights is None else weights
    thresholds = MATCH_CONFIG if thresholds is None else thresholds

    title = normalize_text(candidate.title)
    author = normalize_text(candidate.author)
    score = 0

    if _overlaps(title, normalize_text(reference_title)):
        score += weights['title_match']
    if _overlaps(author, normalize_text(reference_artist)):
        score += weights['artist_match']

    if reference_duration_ms is not None and candidate.duration_ms is not None:
        diff = abs(candidate.duration_ms - reference_duration_ms)
        if diff <= thresholds['close_duration_ms']:
            score += weights['duration_close']
        elif diff <= thresholds['near_duration_ms']:
            score += weights['duration_near']
        elif diff > thresholds['far_duration_ms']:
            score += weights['duration_far']

    return score + _fold(MATCH_KEYWORD_RULES, weights, title, author)


def best_cross_catalog_match(candidates: Sequence[Track], reference_title: str,
                             reference_artist: str, reference_duration_ms: Optional[int] = None,
                             weights: Optional[Dict[str, int]] = None,
                             thresholds: Optional[Dict[str, int]] = None) -> Track:
    """Pick the candidate that best matches a track from another catalog.

    When no candidate scores above ``min_confident_score`` the first candidate
    is returned as-is. Callers must not pass an empty list.
    """
    if not candidates:
        raise ValueError("best_cross_catalog_match requires at least one candidate")
    thresholds = MATCH_CONFIG if thresholds is None else thresholds

    best, best_score = candidates[0], None
    for candidate in candidates:
        score = score_cross_catalog_match(
            candidate, reference_title, reference_artist, reference_duration_ms,
            weights=weights, thresholds=thresholds,
        )
        if best_score is None or score > best_score:
            best, best_score = candidate, score

    if best_score <= thresholds['min_confident_score']:
        logger.debug(
            f"No confident match for '{reference_title}' by '{reference_artist}' "
            f"(best score {best_score}), using first candidate"
        )
        return candidates[0]

    logger.debug(f"Matched '{reference_title}' by '{reference_artist}' to {best!r} (score {best_score})")
    return best
