"""
Music Commands - Discord slash commands for music control
"""

import discord
from discord.ext import commands, tasks
from discord import app_commands
import logging
from typing import List

from config import BOT_CONFIG, ERROR_MESSAGES, RETRY_CONFIG, SUCCESS_MESSAGES
from models import Track
from search_resolver import Multi, NotFound, ProviderError, Single
from utils import (create_error_embed, create_info_embed, create_status_embed,
                   create_success_embed, format_track_line, truncate_text)

logger = logging.getLogger(__name__)


class MusicCommands(commands.Cog):
    """Discord slash commands for music functionality."""

    def __init__(self, bot):
        self.bot = bot

    async def cog_load(self):
        """Called when the cog is loaded."""
        self.sweep_retries.change_interval(seconds=RETRY_CONFIG['sweep_interval'])
        self.sweep_retries.start()
        logger.info("Music commands cog loaded")

    async def cog_unload(self):
        self.sweep_retries.cancel()

    @tasks.loop(seconds=RETRY_CONFIG['sweep_interval'])
    async def sweep_retries(self):
        """Background task: drop expired retry records."""
        removed = self.bot.retry_ledger.sweep()
        if removed:
            logger.info(f"Cleaned up {removed} old retry record(s)")

    def get_music_player(self, guild_id):
        """Get the music player for a guild."""
        return self.bot.get_music_player(guild_id)

    async def _join_caller(self, interaction: discord.Interaction):
        """Connect the guild player to the caller's voice channel; replies on failure."""
        if not getattr(interaction.user, 'voice', None) or not interaction.user.voice.channel:
            await interaction.followup.send(
                embed=create_error_embed("Error", ERROR_MESSAGES['not_in_voice']), ephemeral=True)
            return None

        music_player = self.get_music_player(interaction.guild_id)
        if not music_player or not await music_player.connect_to_voice(interaction.user.voice.channel):
            await interaction.followup.send(
                embed=create_error_embed("Voice Connection Failed", ERROR_MESSAGES['connection_failed']),
                ephemeral=True)
            return None

        music_player.text_channel = interaction.channel
        return music_player

    async def _start_if_idle(self, music_player):
        if not music_player.is_playing and not music_player.current_track:
            await music_player.play_next()

    @app_commands.command(name="play", description="Play music from a search, YouTube link or Spotify link")
    @app_commands.describe(query="Song name, YouTube URL, or Spotify URL")
    async def play(self, interaction: discord.Interaction, query: str):
        """Play music command."""
        await interaction.response.defer()

        music_player = await self._join_caller(interaction)
        if not music_player:
            return

        outcome = await self.bot.resolver.resolve(query, requester=interaction.user)

        if isinstance(outcome, ProviderError):
            embed = create_error_embed("Error", ERROR_MESSAGES['provider_error'].format(message=outcome.message))
            return await interaction.followup.send(embed=embed, ephemeral=True)

        if isinstance(outcome, NotFound):
            key = 'not_found_timeout' if outcome.timed_out else 'not_found'
            embed = create_error_embed("Not Found", ERROR_MESSAGES[key].format(query=query))
            return await interaction.followup.send(embed=embed, ephemeral=True)

        if isinstance(outcome, Multi):
            tracks = outcome.tracks[:BOT_CONFIG['max_playlist_size']]
        else:
            tracks = [outcome.track]

        for track in tracks:
            if track.requester is None:
                track.requester = interaction.user

        added = music_player.enqueue(tracks)
        if not added:
            embed = create_error_embed(
                "Error", ERROR_MESSAGES['queue_full'].format(max_size=BOT_CONFIG['max_queue_size']))
            return await interaction.followup.send(embed=embed, ephemeral=True)

        if isinstance(outcome, Single):
            track = outcome.track
            embed = create_success_embed("Track Added", SUCCESS_MESSAGES['track_added'].format(
                title=track.title, author=track.author))
            if track.thumbnail:
                embed.set_thumbnail(url=track.thumbnail)
        else:
            embed = create_success_embed("Playlist Added", SUCCESS_MESSAGES['playlist_added'].format(
                name=outcome.playlist_name or 'Unknown Playlist', count=added))

        await interaction.followup.send(embed=embed)
        await self._start_if_idle(music_player)

    @app_commands.command(name="alt", description="Find alternative versions of a song")
    @app_commands.describe(query="Song name")
    async def alt(self, interaction: discord.Interaction, query: str):
        """List alternative versions to pick from with /playalt."""
        await interaction.response.defer()
        await interaction.followup.send(SUCCESS_MESSAGES['searching_alternatives'].format(query=query))

        alternatives: List[Track] = await self.bot.resolver.find_alternatives(query, requester=interaction.user)
        if not alternatives:
            embed = create_error_embed("Not Found", ERROR_MESSAGES['no_alternatives_found'].format(query=query))
            return await interaction.followup.send(embed=embed, ephemeral=True)

        self.bot.alternative_sessions.store(interaction.guild_id, interaction.channel_id, alternatives)

        lines = [f"{i + 1}. {format_track_line(track)}" for i, track in enumerate(alternatives)]
        lines.append("\n💡 Use `/playalt <number>` to select an alternative")
        embed = create_info_embed(
            f"Found {len(alternatives)} alternative versions",
            truncate_text("\n".join(lines), 4096)
        )
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="playalt", description="Queue one of the alternatives found by /alt")
    @app_commands.describe(number="Number from the /alt list")
    async def playalt(self, interaction: discord.Interaction, number: int):
        """Queue a stored alternative."""
        await interaction.response.defer()

        pending = self.bot.alternative_sessions.get(interaction.guild_id, interaction.channel_id)
        if not pending:
            embed = create_error_embed("Error", ERROR_MESSAGES['no_alternatives_stored'])
            return await interaction.followup.send(embed=embed, ephemeral=True)

        track = self.bot.alternative_sessions.pop(interaction.guild_id, interaction.channel_id, number)
        if not track:
            embed = create_error_embed("Error", ERROR_MESSAGES['invalid_alternative'].format(count=len(pending)))
            return await interaction.followup.send(embed=embed, ephemeral=True)

        music_player = await self._join_caller(interaction)
        if not music_player:
            return

        track.requester = interaction.user
        music_player.enqueue([track])
        embed = create_success_embed("Track Added", SUCCESS_MESSAGES['alternative_added'].format(
            title=track.title, author=track.author))
        await interaction.followup.send(embed=embed)
        await self._start_if_idle(music_player)

    @app_commands.command(name="pause", description="Pause the current track")
    async def pause(self, interaction: discord.Interaction):
        """Pause playback."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or not music_player.current_track:
            embed = create_error_embed("Error", ERROR_MESSAGES['no_track_playing'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        await music_player.pause()

        embed = create_info_embed("Paused", SUCCESS_MESSAGES['paused'])
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="resume", description="Resume the current track")
    async def resume(self, interaction: discord.Interaction):
        """Resume playback."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or not music_player.current_track:
            embed = create_error_embed("Error", ERROR_MESSAGES['no_track_playing'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        if not music_player.is_paused:
            embed = create_error_embed("Error", ERROR_MESSAGES['not_paused'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        await music_player.resume()

        embed = create_info_embed("Resumed", SUCCESS_MESSAGES['resumed'])
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="skip", description="Skip the current track")
    async def skip(self, interaction: discord.Interaction):
        """Skip current track."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or not music_player.current_track:
            embed = create_error_embed("Error", ERROR_MESSAGES['no_track_playing'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        skipped_track = music_player.current_track.title
        await music_player.skip()

        embed = create_info_embed("Skipped", SUCCESS_MESSAGES['track_skipped'].format(title=skipped_track))
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="stop", description="Stop playback and clear the queue")
    async def stop(self, interaction: discord.Interaction):
        """Stop playback and clear queue."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or not music_player.current_track:
            embed = create_error_embed("Error", ERROR_MESSAGES['no_track_playing'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        await music_player.stop()
        embed = create_info_embed("Stopped", SUCCESS_MESSAGES['playback_stopped'])
        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="queue", description="Show the current music queue")
    async def queue(self, interaction: discord.Interaction):
        """Display the current queue."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or (not music_player.queue and not music_player.current_track):
            embed = create_error_embed("Error", ERROR_MESSAGES['queue_empty'])
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        embed = discord.Embed(
            title="📋 Music Queue",
            color=discord.Color.blue()
        )

        if music_player.current_track:
            status = "⏸️ Paused" if music_player.is_paused else "▶️ Playing"
            embed.add_field(
                name="Now Playing",
                value=f"{status} {format_track_line(music_player.current_track)}",
                inline=False
            )

        if music_player.queue:
            queue_text = ""
            for i, track in enumerate(list(music_player.queue)[:10]):  # Show first 10
                queue_text += f"{i+1}. {format_track_line(track)}\n"

            if len(music_player.queue) > 10:
                queue_text += f"\n... and {len(music_player.queue) - 10} more tracks"

            embed.add_field(
                name=f"Up Next ({len(music_player.queue)} tracks)",
                value=truncate_text(queue_text, 1024),
                inline=False
            )

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="status", description="Show player status and track origin")
    async def status(self, interaction: discord.Interaction):
        """Show what is playing, including the Spotify track it was matched from."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player:
            embed = create_error_embed("Error", "No player found for this guild.")
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        await interaction.response.send_message(embed=create_status_embed(music_player), ephemeral=True)

    @app_commands.command(name="retry", description="Forget the retry record of the current track and play it again")
    async def retry(self, interaction: discord.Interaction):
        """Force a retry of the current track."""
        music_player = self.get_music_player(interaction.guild_id)

        if not music_player or not music_player.current_track:
            embed = create_error_embed("Error", "Nothing is currently playing to retry.")
            return await interaction.response.send_message(embed=embed, ephemeral=True)

        track = music_player.current_track
        self.bot.retry_ledger.clear(track.key)

        embed = create_info_embed("Retry", SUCCESS_MESSAGES['force_retry'].format(title=track.title))
        await interaction.response.send_message(embed=embed)
        await music_player.replay_current()

    @app_commands.command(name="clearretries", description="Clear all retry records")
    async def clearretries(self, interaction: discord.Interaction):
        """Let every track be retried again."""
        count = self.bot.retry_ledger.clear_all()
        embed = create_info_embed("Retries Cleared", SUCCESS_MESSAGES['retries_cleared'].format(count=count))
        await interaction.response.send_message(embed=embed)

    async def cog_app_command_error(self, interaction: discord.Interaction,
                                    error: app_commands.AppCommandError):
        """Error handler for this cog's slash commands."""
        logger.error(f"Command error in {interaction.command.name if interaction.command else '?'}: {error}")

        embed = create_error_embed("Error", ERROR_MESSAGES['unexpected'])
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error message to user")
