"""
Music Player - Per-guild queue, voice connection and playback
Failed tracks are handed to the bot's TrackRecovery for a replacement.
"""

import discord
import asyncio
from collections import deque
from typing import Iterable, Optional

from config import BOT_CONFIG, FFMPEG_CONFIG, SUCCESS_MESSAGES
from models import Track
from utils import Logger, safe_send

logger = Logger(__name__)


class MusicPlayer:
    """Handles music playback, queue management, and voice connections."""

    def __init__(self, bot, guild):
        self.bot = bot
        self.guild = guild
        self.voice_client: Optional[discord.VoiceClient] = None
        self.text_channel = None

        # Queue and playback state
        self.queue = deque()
        self.current_track: Optional[Track] = None
        self.is_playing = False
        self.is_paused = False
        self.volume = BOT_CONFIG['default_volume']
        self._idle_task: Optional[asyncio.Task] = None

    async def connect_to_voice(self, channel: discord.VoiceChannel) -> bool:
        """Connect to a voice channel."""
        try:
            if self.voice_client and self.voice_client.is_connected():
                if self.voice_client.channel == channel:
                    return True
                await self.voice_client.move_to(channel)
            else:
                self.voice_client = await asyncio.wait_for(
                    channel.connect(timeout=15.0, self_deaf=True),
                    timeout=20.0
                )

            logger.info(f"Connected to voice channel: {channel.name}", self.guild.id)
            return True

        except asyncio.TimeoutError:
            logger.error(f"Voice connection timed out for channel: {channel.name}", self.guild.id)
            return False
        except discord.ClientException as e:
            logger.error(f"Failed to connect to voice channel: {e}", self.guild.id)
            return False

    async def disconnect(self):
        """Disconnect from voice channel and cleanup."""
        self._cancel_idle_disconnect()
        if self.voice_client:
            await self.voice_client.disconnect()
            self.voice_client = None

        self.is_playing = False
        self.is_paused = False
        self.current_track = None

    def enqueue(self, tracks: Iterable[Track], front: bool = False) -> int:
        """Add tracks to the queue; returns how many fit."""
        added = 0
        for track in tracks:
            if len(self.queue) >= BOT_CONFIG['max_queue_size']:
                break
            if front:
                self.queue.appendleft(track)
            else:
                self.queue.append(track)
            added += 1
        logger.info(f"Queued {added} track(s)", self.guild.id)
        return added

    async def play_next(self):
        """Play the next track in the queue."""
        if not self.queue:
            finished = self.current_track is not None
            self.is_playing = False
            self.current_track = None
            if finished:
                await safe_send(self.text_channel, SUCCESS_MESSAGES['queue_ended'].format(
                    minutes=BOT_CONFIG['inactivity_timeout'] // 60))
                self._schedule_idle_disconnect()
            return

        track = self.queue.popleft()
        await self.play_track(track)

    async def play_track(self, track: Track):
        """Play a specific track."""
        if not self.voice_client or not self.voice_client.is_connected():
            logger.error("Not connected to voice channel", self.guild.id)
            return

        if self.voice_client.is_playing():
            self.voice_client.stop()

        self._cancel_idle_disconnect()
        self.current_track = track
        try:
            playable = await self._playable(track)
            stream_url = await self.bot.music_search.youtube.get_stream_url(playable)
        except Exception as e:
            await self._playback_failed(track, str(e))
            return

        source = discord.PCMVolumeTransformer(
            discord.FFmpegPCMAudio(stream_url, **FFMPEG_CONFIG),
            volume=self.volume
        )

        self.is_playing = True
        self.is_paused = False
        self.voice_client.play(
            source,
            after=lambda e: asyncio.run_coroutine_threadsafe(
                self._playback_finished(track, e), self.bot.loop
            )
        )

        logger.info(f"Now playing: {track.title}", self.guild.id)
        await safe_send(self.text_channel, SUCCESS_MESSAGES['now_playing'].format(
            title=track.title, author=track.author))

    async def _playable(self, track: Track) -> Track:
        """Spotify tracks carry metadata only; swap in their YouTube mirror."""
        if track.source_name != 'spotify' or not track.uri:
            return track
        result = await self.bot.music_search.mirror(track.uri, track.requester)
        if result.is_error or not result.tracks:
            raise LookupError(result.error or f"No playable version of {track.title}")
        return result.tracks[0]

    async def _playback_finished(self, track: Track, error):
        """Called when playback finishes."""
        if error:
            await self._playback_failed(track, str(error))
            return
        await self.play_next()

    async def _playback_failed(self, track: Track, message: str):
        logger.error(f"Playback error for {track.title}: {message}", self.guild.id)
        self.is_playing = False

        replacement = await self.bot.track_recovery.handle(track, message, self.text_channel)
        if replacement:
            self.enqueue([replacement], front=True)

        await asyncio.sleep(BOT_CONFIG['skip_delay'])
        await self.play_next()

    def _schedule_idle_disconnect(self):
        self._cancel_idle_disconnect()
        self._idle_task = asyncio.create_task(self._disconnect_when_idle())

    def _cancel_idle_disconnect(self):
        if self._idle_task and not self._idle_task.done():
            self._idle_task.cancel()
        self._idle_task = None

    async def _disconnect_when_idle(self):
        """Leave voice if nothing was queued during the inactivity timeout."""
        await asyncio.sleep(BOT_CONFIG['inactivity_timeout'])
        # Cleared first so disconnect() does not cancel this task
        self._idle_task = None
        if self.current_track or self.queue:
            return

        logger.info("Leaving voice channel after inactivity", self.guild.id)
        await self.disconnect()
        await safe_send(self.text_channel, SUCCESS_MESSAGES['left_inactive'])

    async def pause(self):
        """Pause playback."""
        if self.voice_client and self.voice_client.is_playing():
            self.voice_client.pause()
            self.is_paused = True

    async def resume(self):
        """Resume playback."""
        if self.voice_client and self.voice_client.is_paused():
            self.voice_client.resume()
            self.is_paused = False

    async def stop(self):
        """Stop playback and clear queue."""
        self.queue.clear()
        self.current_track = None
        self.is_playing = False
        self.is_paused = False

        if self.voice_client and (self.voice_client.is_playing() or self.voice_client.is_paused()):
            self.voice_client.stop()

    async def skip(self):
        """Skip current track."""
        if self.voice_client and (self.voice_client.is_playing() or self.voice_client.is_paused()):
            self.voice_client.stop()
        # play_next will be called automatically by _playback_finished

    async def replay_current(self):
        """Start the current track again from the top of the queue."""
        if not self.current_track:
            return
        self.enqueue([self.current_track], front=True)
        if self.voice_client and (self.voice_client.is_playing() or self.voice_client.is_paused()):
            self.voice_client.stop()
        else:
            await self.play_next()

    async def stop_and_disconnect(self):
        """Stop playback and disconnect from voice."""
        await self.stop()
        await self.disconnect()

    async def cleanup(self):
        """Cleanup when bot leaves guild."""
        await self.stop_and_disconnect()
