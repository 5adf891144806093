import asyncio
from types import SimpleNamespace

import discord
import pytest

from config import BOT_CONFIG
from models import Track
from music_player import MusicPlayer


class FakeVoiceClient:
    def __init__(self) -> None:
        self.played = []
        self.playing = False
        self.paused = False
        self.disconnected = False
        self.channel = None

    def is_connected(self):
        return not self.disconnected

    def is_playing(self):
        return self.playing and not self.paused

    def is_paused(self):
        return self.paused

    def play(self, source, after=None):
        self.played.append(source)
        self.playing = True

    def stop(self):
        self.playing = False
        self.paused = False

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    async def disconnect(self):
        self.disconnected = True


class FakeStreams:
    async def get_stream_url(self, track):
        return f"https://stream/{track.identifier}"


class FakeRecovery:
    def __init__(self, replacement=None) -> None:
        self.replacement = replacement
        self.calls = []

    async def handle(self, track, error_message, destination=None):
        self.calls.append((track, error_message))
        return self.replacement


class FakeChannel:
    id = 7

    def __init__(self) -> None:
        self.sent = []

    async def send(self, message):
        self.sent.append(message)


@pytest.fixture(autouse=True)
def _no_audio(monkeypatch):
    # Audio sources would spawn ffmpeg; the stream URL stands in for them
    monkeypatch.setattr(discord, "FFmpegPCMAudio", lambda url, **kwargs: url)
    monkeypatch.setattr(discord, "PCMVolumeTransformer", lambda original, volume: original)
    monkeypatch.setitem(BOT_CONFIG, "skip_delay", 0)


def _player(recovery=None):
    bot = SimpleNamespace(
        music_search=SimpleNamespace(youtube=FakeStreams()),
        track_recovery=recovery or FakeRecovery(),
        loop=None,
    )
    player = MusicPlayer(bot, SimpleNamespace(id=1))
    player.voice_client = FakeVoiceClient()
    player.text_channel = FakeChannel()
    return player


def test_replacement_is_played_before_the_rest_of_the_queue() -> None:
    failed = Track("bad", "Song", "Band", 200_000)
    replacement = Track("ok", "Song", "Band", 201_000)
    upcoming = Track("next", "Other", "Band")
    recovery = FakeRecovery(replacement)
    player = _player(recovery)
    player.current_track = failed
    player.queue.append(upcoming)

    asyncio.run(player._playback_failed(failed, "AacDecoder: bad frame"))

    assert recovery.calls == [(failed, "AacDecoder: bad frame")]
    assert player.current_track is replacement
    assert player.voice_client.played == ["https://stream/ok"]
    assert list(player.queue) == [upcoming]


def test_failure_without_replacement_moves_on() -> None:
    failed = Track("bad", "Song", "Band")
    upcoming = Track("next", "Other", "Band")
    player = _player()
    player.current_track = failed
    player.queue.append(upcoming)

    asyncio.run(player._playback_failed(failed, "HTTP Error 403"))

    assert player.current_track is upcoming
    assert player.voice_client.played == ["https://stream/next"]


def test_stream_failure_goes_to_recovery() -> None:
    class BrokenStreams:
        async def get_stream_url(self, track):
            raise RuntimeError("Sign in to confirm you're not a bot")

    recovery = FakeRecovery()
    player = _player(recovery)
    player.bot.music_search.youtube = BrokenStreams()
    track = Track("bad", "Song", "Band")

    asyncio.run(player.play_track(track))

    assert recovery.calls == [(track, "Sign in to confirm you're not a bot")]
    assert player.current_track is None


def test_idle_player_leaves_voice(monkeypatch) -> None:
    monkeypatch.setitem(BOT_CONFIG, "inactivity_timeout", 0)
    player = _player()
    voice = player.voice_client
    player.current_track = Track("done", "Song", "Band")

    async def scenario():
        await player.play_next()
        await player._idle_task

    asyncio.run(scenario())

    assert voice.disconnected
    assert player.voice_client is None
    assert "Queue ended" in player.text_channel.sent[0]
    assert "inactivity" in player.text_channel.sent[-1]


def test_new_track_cancels_idle_disconnect(monkeypatch) -> None:
    monkeypatch.setitem(BOT_CONFIG, "inactivity_timeout", 300)
    player = _player()
    player.current_track = Track("done", "Song", "Band")

    async def scenario():
        await player.play_next()
        idle = player._idle_task
        await player.play_track(Track("new", "Other", "Band"))
        with pytest.raises(asyncio.CancelledError):
            await idle

    asyncio.run(scenario())

    assert player._idle_task is None
    assert not player.voice_client.disconnected


def test_pause_and_resume_track_state() -> None:
    player = _player()
    player.voice_client.playing = True

    asyncio.run(player.pause())
    assert player.is_paused
    assert player.voice_client.is_paused()

    asyncio.run(player.resume())
    assert not player.is_paused
    assert player.voice_client.is_playing()
