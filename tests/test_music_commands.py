import asyncio
from types import SimpleNamespace

from config import RETRY_CONFIG, SUCCESS_MESSAGES
from models import Track
from music_commands import MusicCommands
from retry_ledger import RetryLedger
from sessions import AlternativeSessions


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_retry_sweeper_runs_every_ten_minutes() -> None:
    cog = MusicCommands(SimpleNamespace(retry_ledger=RetryLedger()))
    loop = cog.sweep_retries

    interval = loop.hours * 3600 + loop.minutes * 60 + loop.seconds

    assert interval == RETRY_CONFIG['sweep_interval'] == 600


def test_retry_sweeper_drops_expired_records() -> None:
    clock = FakeClock()
    ledger = RetryLedger(retry_window=300, entry_expiry=600, clock=clock)
    ledger.mark_retried("old_Song")
    clock.now = 300
    ledger.mark_retried("new_Song")
    clock.now = 601
    cog = MusicCommands(SimpleNamespace(retry_ledger=ledger))

    asyncio.run(cog.sweep_retries.coro(cog))

    assert "old_Song" not in ledger
    assert "new_Song" in ledger


class FakeResponse:
    def __init__(self) -> None:
        self.deferred = False

    async def defer(self):
        self.deferred = True


class FakeFollowup:
    def __init__(self) -> None:
        self.sent = []

    async def send(self, content=None, **kwargs):
        self.sent.append((content, kwargs))


class FakeResolver:
    def __init__(self, alternatives) -> None:
        self.alternatives = alternatives

    async def find_alternatives(self, query, requester=None):
        return self.alternatives


def _interaction():
    return SimpleNamespace(
        response=FakeResponse(),
        followup=FakeFollowup(),
        user="tester",
        guild_id=1,
        channel_id=2,
    )


def test_alt_announces_the_search_before_listing_results() -> None:
    track = Track("1", "Song (Official)", "Band")
    bot = SimpleNamespace(
        retry_ledger=RetryLedger(),
        resolver=FakeResolver([track]),
        alternative_sessions=AlternativeSessions(),
    )
    cog = MusicCommands(bot)
    interaction = _interaction()

    asyncio.run(cog.alt.callback(cog, interaction, "Song"))

    assert interaction.response.deferred
    first, _ = interaction.followup.sent[0]
    assert first == SUCCESS_MESSAGES['searching_alternatives'].format(query="Song")
    assert interaction.followup.sent[-1][1]["embed"].title.endswith("Found 1 alternative versions")
    assert bot.alternative_sessions.get(1, 2) == [track]
