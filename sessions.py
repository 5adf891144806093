"""
Alternative Sessions - Pending /alt results per guild and channel
"""

from typing import Dict, List, Optional, Tuple

from models import Track


class AlternativeSessions:
    """Holds the last list of alternatives offered in each channel."""

    def __init__(self):
        self._sessions: Dict[Tuple[int, int], List[Track]] = {}

    def store(self, guild_id: int, channel_id: int, tracks: List[Track]):
        self._sessions[(guild_id, channel_id)] = list(tracks)

    def get(self, guild_id: int, channel_id: int) -> List[Track]:
        return list(self._sessions.get((guild_id, channel_id), []))

    def pop(self, guild_id: int, channel_id: int, number: int) -> Optional[Track]:
        """Take the 1-based ``number`` choice and close the session.

        An out-of-range choice returns ``None`` and leaves the session open.
        """
        tracks = self._sessions.get((guild_id, channel_id))
        if not tracks or not 1 <= number <= len(tracks):
            return None
        del self._sessions[(guild_id, channel_id)]
        return tracks[number - 1]

    def clear(self, guild_id: int, channel_id: Optional[int] = None):
        """Drop one channel's session, or every session of the guild."""
        if channel_id is not None:
            self._sessions.pop((guild_id, channel_id), None)
            return
        for key in [key for key in self._sessions if key[0] == guild_id]:
            del self._sessions[key]
