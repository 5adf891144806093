"""
Retry Ledger - Remember which tracks were recently retried

A playback failure triggers one search for a replacement. If the same logical
track fails again inside the retry window the bot gives up on it instead of
searching forever. Entries are keyed by ``Track.key`` and expire on sweep.
"""

import logging
import time
from typing import Callable, Dict, Optional

from config import RETRY_CONFIG

logger = logging.getLogger(__name__)


class RetryLedger:
    """Time-windowed record of retry attempts, one entry per track key."""

    def __init__(self, retry_window: Optional[float] = None, entry_expiry: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.retry_window = RETRY_CONFIG['retry_window'] if retry_window is None else retry_window
        self.entry_expiry = RETRY_CONFIG['entry_expiry'] if entry_expiry is None else entry_expiry
        self._clock = clock
        self._entries: Dict[str, float] = {}

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def was_recently_retried(self, key: str) -> bool:
        retried_at = self._entries.get(key)
        if retried_at is None:
            return False
        return self._clock() - retried_at < self.retry_window

    def mark_retried(self, key: str):
        self._entries[key] = self._clock()

    def clear(self, key: str) -> bool:
        """Forget one key so the next failure retries again."""
        return self._entries.pop(key, None) is not None

    def clear_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop entries older than ``entry_expiry``; returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [key for key, retried_at in self._entries.items()
                   if now - retried_at >= self.entry_expiry]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired retry record(s)")
        return len(expired)
