from models import Track
from sessions import AlternativeSessions


def _tracks():
    return [Track("a", "Song A", "Band"), Track("b", "Song B", "Band")]


def test_pop_returns_choice_and_closes_session() -> None:
    sessions = AlternativeSessions()
    sessions.store(1, 10, _tracks())

    track = sessions.pop(1, 10, 2)

    assert track.identifier == "b"
    assert sessions.get(1, 10) == []


def test_pop_out_of_range_keeps_session() -> None:
    sessions = AlternativeSessions()
    sessions.store(1, 10, _tracks())

    assert sessions.pop(1, 10, 0) is None
    assert sessions.pop(1, 10, 3) is None
    assert len(sessions.get(1, 10)) == 2


def test_sessions_are_scoped_per_channel() -> None:
    sessions = AlternativeSessions()
    sessions.store(1, 10, _tracks())

    assert sessions.get(1, 11) == []
    assert sessions.get(2, 10) == []
    assert sessions.pop(1, 11, 1) is None


def test_get_returns_a_copy() -> None:
    sessions = AlternativeSessions()
    sessions.store(1, 10, _tracks())

    sessions.get(1, 10).clear()

    assert len(sessions.get(1, 10)) == 2


def test_clear_single_channel_or_whole_guild() -> None:
    sessions = AlternativeSessions()
    sessions.store(1, 10, _tracks())
    sessions.store(1, 11, _tracks())
    sessions.store(2, 10, _tracks())

    sessions.clear(1, 10)
    assert sessions.get(1, 10) == []
    assert sessions.get(1, 11)

    sessions.clear(1)
    assert sessions.get(1, 11) == []
    assert sessions.get(2, 10)
