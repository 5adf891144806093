"""
Track Recovery - React to playback failures by finding a replacement version
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from config import ERROR_MESSAGES, SUCCESS_MESSAGES
from models import Track
from search_resolver import GiveUp, NotFound, SearchResolver, Single

logger = logging.getLogger(__name__)

SIGN_IN_MARKERS = ('Please sign in', 'Sign in to confirm')
DECODING_MARKERS = ('AacDecoder', 'Expected decoding to halt', 'decoding')


class PlaybackErrorKind(Enum):
    SIGN_IN = 'sign_in'
    DECODING = 'decoding'
    OTHER = 'other'


def classify_playback_error(message: Optional[str]) -> PlaybackErrorKind:
    text = message or ''
    if any(marker in text for marker in SIGN_IN_MARKERS):
        return PlaybackErrorKind.SIGN_IN
    if any(marker in text for marker in DECODING_MARKERS):
        return PlaybackErrorKind.DECODING
    return PlaybackErrorKind.OTHER


class TrackRecovery:
    """Looks for a working alternative when a track fails and reports progress.

    ``notify`` is an async callable taking ``(destination, text)``.
    """

    def __init__(self, resolver: SearchResolver, notify: Callable[[object, str], Awaitable[None]]):
        self.resolver = resolver
        self.notify = notify

    async def handle(self, track: Track, error_message: Optional[str], destination=None) -> Optional[Track]:
        """Return a replacement track to enqueue, or ``None`` to just move on."""
        kind = classify_playback_error(error_message)
        logger.info(f"❌ Track error ({kind.value}): '{track.title}': {error_message}")

        if kind is PlaybackErrorKind.OTHER:
            await self.notify(destination, ERROR_MESSAGES['playback_failed'].format(
                title=track.title, reason=error_message or 'Unknown error'))
            return None

        if not self.resolver.retry_ledger.was_recently_retried(track.key):
            progress = 'recovering_sign_in' if kind is PlaybackErrorKind.SIGN_IN else 'recovering_decoding'
            await self.notify(destination, SUCCESS_MESSAGES[progress].format(title=track.title))

        outcome = await self.resolver.resolve_replacement(track)

        if isinstance(outcome, GiveUp):
            message = 'sign_in_blocked' if kind is PlaybackErrorKind.SIGN_IN else 'gave_up'
            await self.notify(destination, ERROR_MESSAGES[message].format(title=track.title))
            return None

        if isinstance(outcome, Single):
            replacement = outcome.track
            replacement.requester = track.requester
            await self.notify(destination, SUCCESS_MESSAGES['alternative_found'].format(
                title=replacement.title, author=replacement.author))
            return replacement

        if isinstance(outcome, NotFound) and outcome.reason == 'insufficient_info':
            await self.notify(destination, ERROR_MESSAGES['insufficient_info'].format(title=track.title))
        else:
            await self.notify(destination, ERROR_MESSAGES['no_alternative'].format(title=track.title))
        return None
