import pytest

from candidate_scorer import (
    best_cross_catalog_match,
    normalize_text,
    rank_candidates,
    score_cross_catalog_match,
    score_for_ranking,
)
from models import Track


def _track(title, author=None, duration_ms=None, identifier=None):
    return Track(identifier or title, title, author, duration_ms)


def test_score_for_ranking_official_audio_example() -> None:
    track = _track("Imagine Dragons - Believer (Official Audio)", "Imagine Dragons")

    assert score_for_ranking(track) == 5


def test_score_for_ranking_penalties() -> None:
    assert score_for_ranking(_track("Song (Live at Wembley)")) == -2
    assert score_for_ranking(_track("Song 24/7 Stream Radio")) == -3
    assert score_for_ranking(_track("Song Remix")) == -1
    assert score_for_ranking(_track("Song Remix (Official)")) == 3


def test_score_for_ranking_topic_channel_and_lyrics() -> None:
    assert score_for_ranking(_track("Song", "Artist - Topic")) == 2
    assert score_for_ranking(_track("Song (Lyrics)", "Lyric Channel")) == 1


def test_score_for_ranking_is_case_insensitive_and_pure() -> None:
    track = _track("SONG OFFICIAL MUSIC VIDEO")

    assert score_for_ranking(track) == 5
    assert score_for_ranking(track) == score_for_ranking(_track("song official music video"))


def test_score_for_ranking_weight_override() -> None:
    weights = {name: 0 for name in (
        'title_official', 'title_audio', 'title_music', 'author_topic', 'title_lyrics',
        'title_live', 'title_stream', 'title_radio', 'title_unofficial_remix',
    )}
    weights['title_live'] = 10

    assert score_for_ranking(_track("Song (Live)"), weights) == 10


def test_rank_candidates_keeps_first_seen_on_ties() -> None:
    first = _track("Song A", identifier="a")
    second = _track("Song B", identifier="b")
    best = _track("Song (Official)", identifier="c")

    ranked = rank_candidates([first, second, best])

    assert [track.identifier for track, _ in ranked] == ["c", "a", "b"]
    assert ranked[0][1] == 3


def test_normalize_text_strips_punctuation() -> None:
    assert normalize_text("Beyoncé - Halo (Live!)") == "beyoncé  halo live"
    assert normalize_text(None) == ""


def test_score_cross_catalog_match_duration_bands() -> None:
    def score(duration_ms):
        return score_cross_catalog_match(_track("Song", "Band", duration_ms), "Song", "Band", 200_000)

    assert score(205_000) == 100
    assert score(220_000) == 90
    assert score(260_000) == 80
    assert score(330_000) == 60
    assert score(None) == 80


def test_score_cross_catalog_match_keyword_penalties() -> None:
    assert score_cross_catalog_match(_track("Song Karaoke", "Band"), "Song", "Band") == 60
    assert score_cross_catalog_match(_track("Song (Cover)", "Band"), "Song", "Band") == 65
    assert score_cross_catalog_match(_track("Song Remix", "Band"), "Song", "Band") == 70
    assert score_cross_catalog_match(_track("Song", "Band - Topic"), "Song", "Band") == 85


def test_best_cross_catalog_match_prefers_official_same_length() -> None:
    cover = _track("Believer (Cover)", "Some Guy", 204_000)
    official = _track("Imagine Dragons - Believer (Official Audio)", "Imagine Dragons", 205_000)

    best = best_cross_catalog_match([cover, official], "Believer", "Imagine Dragons", 204_000)

    assert best is official


def test_best_cross_catalog_match_falls_back_to_first_when_unsure() -> None:
    candidates = [_track("X"), _track("Y")]

    best = best_cross_catalog_match(candidates, "Abc", "Def", None)

    assert best is candidates[0]


def test_best_cross_catalog_match_score_of_twenty_is_not_enough() -> None:
    weak = _track("zzz", "nobody")
    length_only = _track("qqq", "nobody", 200_000)

    assert best_cross_catalog_match([weak, length_only], "Song", "Band", 200_000) is weak

    official_length = _track("qqq official", "nobody", 200_000)
    assert best_cross_catalog_match([weak, official_length], "Song", "Band", 200_000) is official_length


def test_best_cross_catalog_match_rejects_empty_list() -> None:
    with pytest.raises(ValueError):
        best_cross_catalog_match([], "Song", "Band")
