"""
Utility Functions - Formatting, embeds and message sending for the music bot
"""

import discord
import logging
from typing import Optional

from config import DISCORD_CONFIG

logger = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """Format duration in seconds to MM:SS or HH:MM:SS format."""
    if seconds <= 0:
        return "00:00"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    seconds = seconds % 60

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    else:
        return f"{minutes:02d}:{seconds:02d}"


def format_track_line(track) -> str:
    """One-line track description: title, author and duration."""
    return f"**{track.title}** by {track.author} `{format_duration(track.duration_seconds)}`"


def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text to a maximum length with ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


async def safe_send(channel, message: str) -> Optional[discord.Message]:
    """Send to a channel, logging instead of raising when Discord refuses."""
    if channel is None or not hasattr(channel, 'send'):
        logger.warning("Could not send message - no valid channel found.")
        return None
    try:
        return await channel.send(truncate_text(message, DISCORD_CONFIG['max_message_length']))
    except (discord.Forbidden, discord.HTTPException) as e:
        logger.warning(f"Failed to send message (channel: {getattr(channel, 'id', '?')}): {e}")
        return None


ANNOTATION_LABELS = (
    ('album', 'Album'),
    ('isrc', 'ISRC'),
    ('uri', 'Spotify URI'),
)


def format_annotation(annotation: dict) -> str:
    """Render a source annotation dict; unknown fields are left out."""
    lines = [f"**{annotation.get('title') or 'Unknown Title'}** by {annotation.get('artist') or 'Unknown Artist'}"]
    for key, label in ANNOTATION_LABELS:
        if annotation.get(key):
            lines.append(f"{label}: {annotation[key]}")
    return "\n".join(lines)


def create_status_embed(music_player) -> discord.Embed:
    """Create an embed showing current player status."""
    embed = discord.Embed(
        title="🎵 Player Status",
        color=discord.Color.blue()
    )

    track = music_player.current_track
    if track:
        status = "⏸️ Paused" if music_player.is_paused else "▶️ Playing"
        embed.add_field(
            name=status,
            value=format_track_line(track),
            inline=False
        )

        # Cross-catalog provenance
        if track.annotation:
            embed.add_field(
                name="Original Spotify Track",
                value=format_annotation(track.annotation.to_dict()),
                inline=False
            )

        if track.requester:
            embed.add_field(
                name="Requested by",
                value=getattr(track.requester, 'display_name', str(track.requester)),
                inline=True
            )
    else:
        embed.add_field(
            name="Status",
            value="No track currently playing",
            inline=False
        )

    queue_count = len(music_player.queue)
    embed.add_field(
        name="Queue",
        value=f"{queue_count} track{'s' if queue_count != 1 else ''} in queue",
        inline=True
    )

    if music_player.voice_client and music_player.voice_client.channel:
        embed.add_field(
            name="Voice Channel",
            value=music_player.voice_client.channel.name,
            inline=True
        )

    return embed


def create_error_embed(title: str, description: str) -> discord.Embed:
    """Create a standardized error embed."""
    embed = discord.Embed(
        title=f"❌ {title}",
        description=description,
        color=discord.Color.red()
    )
    return embed


def create_success_embed(title: str, description: str) -> discord.Embed:
    """Create a standardized success embed."""
    embed = discord.Embed(
        title=f"✅ {title}",
        description=description,
        color=discord.Color.green()
    )
    return embed


def create_info_embed(title: str, description: str) -> discord.Embed:
    """Create a standardized info embed."""
    embed = discord.Embed(
        title=f"ℹ️ {title}",
        description=description,
        color=discord.Color.blue()
    )
    return embed


class Logger:
    """Custom logger wrapper with bot-specific formatting."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def info(self, message: str, guild_id: Optional[int] = None):
        """Log info message with optional guild context."""
        if guild_id:
            self.logger.info(f"[Guild {guild_id}] {message}")
        else:
            self.logger.info(message)

    def error(self, message: str, guild_id: Optional[int] = None):
        """Log error message with optional guild context."""
        if guild_id:
            self.logger.error(f"[Guild {guild_id}] {message}")
        else:
            self.logger.error(message)

    def warning(self, message: str, guild_id: Optional[int] = None):
        """Log warning message with optional guild context."""
        if guild_id:
            self.logger.warning(f"[Guild {guild_id}] {message}")
        else:
            self.logger.warning(message)
