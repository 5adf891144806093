"""
Discord Music Bot - Main Bot Class
Handles bot initialization, events, and wiring of the search components.
"""

import discord
from discord.ext import commands
import logging

from config import BOT_CONFIG, DISCORD_CONFIG
from music_commands import MusicCommands
from music_player import MusicPlayer
from retry_ledger import RetryLedger
from search_backend import MusicSearch
from search_resolver import SearchResolver
from sessions import AlternativeSessions
from track_recovery import TrackRecovery
from utils import safe_send

logger = logging.getLogger(__name__)


class MusicBot(commands.Bot):
    """Main Discord music bot class with slash commands."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=BOT_CONFIG['prefix'],
            intents=intents,
            description=BOT_CONFIG['description']
        )

        # Shared search state; the retry ledger is process-wide
        self.music_search = MusicSearch()
        self.retry_ledger = RetryLedger()
        self.resolver = SearchResolver(
            self.music_search,
            retry_ledger=self.retry_ledger,
            metadata_search=self.music_search.metadata_view(),
        )
        self.track_recovery = TrackRecovery(self.resolver, notify=safe_send)
        self.alternative_sessions = AlternativeSessions()

        # Initialize music players for each guild
        self.music_players = {}

    async def setup_hook(self):
        """Called when the bot is starting up."""
        logger.info("Setting up bot...")

        await self.add_cog(MusicCommands(self))

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} command(s)")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync commands: {e}")

    async def on_ready(self):
        """Called when the bot is ready and connected to Discord."""
        logger.info(f"{self.user} has connected to Discord!")
        logger.info(f"Bot is in {len(self.guilds)} guild(s)")

        activity = discord.Activity(
            type=discord.ActivityType.listening,
            name=DISCORD_CONFIG['activity_name']
        )
        await self.change_presence(activity=activity)

    async def on_guild_join(self, guild):
        """Called when the bot joins a new guild."""
        logger.info(f"Joined guild: {guild.name} (ID: {guild.id})")
        self.music_players[guild.id] = MusicPlayer(self, guild)

    async def on_guild_remove(self, guild):
        """Called when the bot leaves a guild."""
        logger.info(f"Left guild: {guild.name} (ID: {guild.id})")

        if guild.id in self.music_players:
            await self.music_players[guild.id].cleanup()
            del self.music_players[guild.id]
        self.alternative_sessions.clear(guild.id)

    async def on_voice_state_update(self, member, before, after):
        """Disconnect when the bot is left alone in a voice channel."""
        if member == self.user:
            return

        voice_client = discord.utils.get(self.voice_clients, guild=member.guild)
        if voice_client and voice_client.channel:
            if len([m for m in voice_client.channel.members if not m.bot]) == 0:
                logger.info("Bot is alone in voice channel, disconnecting...")
                if member.guild.id in self.music_players:
                    await self.music_players[member.guild.id].stop_and_disconnect()

    def get_music_player(self, guild_id):
        """Get or create a music player for a guild."""
        if guild_id not in self.music_players:
            guild = self.get_guild(guild_id)
            if guild:
                self.music_players[guild_id] = MusicPlayer(self, guild)

        return self.music_players.get(guild_id)
