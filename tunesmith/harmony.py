from __future__ import annotations

import logging

import numpy as np

from .profiles import genre_profile, mood_profile
from .schema import ChordSymbol

_LOGGER = logging.getLogger("tunesmith.harmony")

Progression = tuple[ChordSymbol, ...]


def pick_tempo(mood: str | None, explicit_tempo: int | None, rng: np.random.Generator) -> int:
    """Explicit tempo wins when positive; otherwise draw from the mood's inclusive range."""
    if explicit_tempo is not None and explicit_tempo > 0:
        return int(explicit_tempo)
    low, high = mood_profile(mood).tempo_range
    return int(rng.integers(low, high + 1))


def pick_progression(genre: str | None, rng: np.random.Generator) -> Progression:
    pool = genre_profile(genre).progressions
    return pool[int(rng.integers(len(pool)))]


def select_tempo_and_progression(
    genre: str | None,
    mood: str | None,
    explicit_tempo: int | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> tuple[int, Progression]:
    """
    Resolve the tempo and chord progression for a piece.

    Unknown genres and moods resolve to the default profiles, so this always
    returns a usable pair.

    Args:
        genre: Genre name (free-form; unknown values fall back to ``pop``).
        mood: Mood name (free-form; unknown values fall back to ``energetic``).
        explicit_tempo: BPM override, used verbatim when positive.
        rng: Optional RNG for deterministic selection.
    """
    local_rng = rng or np.random.default_rng()
    tempo = pick_tempo(mood, explicit_tempo, local_rng)
    progression = pick_progression(genre, local_rng)
    _LOGGER.debug("Selected %d BPM, progression %s", tempo, "-".join(progression))
    return tempo, progression
