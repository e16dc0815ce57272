from __future__ import annotations

import numpy as np

from tunesmith.harmony import pick_tempo, select_tempo_and_progression
from tunesmith.profiles import GENRE_PROFILES, MOOD_PROFILES
from tunesmith.schema import GENRES, MOODS


def test_tempo_and_progression_for_every_pair() -> None:
    rng = np.random.default_rng(7)
    for genre in GENRES:
        for mood in MOODS:
            tempo, progression = select_tempo_and_progression(genre, mood, rng=rng)
            low, high = MOOD_PROFILES[mood].tempo_range
            assert low <= tempo <= high
            assert progression in GENRE_PROFILES[genre].progressions


def test_explicit_tempo_wins() -> None:
    tempo, _ = select_tempo_and_progression("jazz", "relaxed", 200, rng=np.random.default_rng(0))
    assert tempo == 200


def test_non_positive_tempo_is_ignored() -> None:
    rng = np.random.default_rng(1)
    for explicit in (0, -10, None):
        tempo = pick_tempo("dreamy", explicit, rng)
        assert 60 <= tempo <= 80


def test_tempo_range_is_inclusive() -> None:
    rng = np.random.default_rng(3)
    seen = {pick_tempo("dreamy", None, rng) for _ in range(2000)}
    assert 60 in seen
    assert 80 in seen


def test_unknown_names_use_defaults() -> None:
    tempo, progression = select_tempo_and_progression(
        "unknown", "unknown", rng=np.random.default_rng(0)
    )
    assert 120 <= tempo <= 160
    assert progression in GENRE_PROFILES["pop"].progressions


def test_same_seed_same_selection() -> None:
    first = select_tempo_and_progression("rock", "dark", rng=np.random.default_rng(42))
    second = select_tempo_and_progression("rock", "dark", rng=np.random.default_rng(42))
    assert first == second


def test_all_progressions_reachable() -> None:
    rng = np.random.default_rng(5)
    seen = {select_tempo_and_progression("pop", "uplifting", rng=rng)[1] for _ in range(200)}
    assert seen == set(GENRE_PROFILES["pop"].progressions)
