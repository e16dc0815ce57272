"""Static genre/mood/chord tables.

All tables are read-only (``MappingProxyType`` over frozen models) and total
over the vocabularies in :mod:`tunesmith.schema`. Lookups by free-form name
never raise: unknown genres resolve to ``pop``, unknown moods to
``energetic`` and unknown chord symbols to the tonic ``I``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, model_validator

from .schema import (
    DEFAULT_GENRE,
    DEFAULT_MOOD,
    GENRES,
    MOODS,
    Articulation,
    ChordSymbol,
    DynamicsLevel,
    Genre,
    HarmonyComplexity,
    Mood,
)

_LOGGER = logging.getLogger("tunesmith.profiles")

Triad = tuple[int, int, int]


class GenreProfile(BaseModel):
    scales: tuple[str, ...]
    progressions: tuple[tuple[ChordSymbol, ...], ...]

    model_config = ConfigDict(frozen=True, extra="forbid")


class MoodProfile(BaseModel):
    tempo_range: tuple[int, int]
    dynamics: DynamicsLevel
    articulation: Articulation
    harmony_complexity: HarmonyComplexity

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_range(self) -> "MoodProfile":
        low, high = self.tempo_range
        if not 0 < low <= high:
            raise ValueError(f"tempo_range must satisfy 0 < min <= max, got {self.tempo_range}")
        return self


GENRE_PROFILES: Mapping[Genre, GenreProfile] = MappingProxyType(
    {
        "pop": GenreProfile(
            scales=("major", "major pentatonic"),
            progressions=(("I", "V", "vi", "IV"), ("I", "IV", "V"), ("vi", "IV", "I", "V")),
        ),
        "rock": GenreProfile(
            scales=("minor", "minor pentatonic", "blues"),
            progressions=(("I", "IV", "V"), ("i", "VII", "VI", "V"), ("i", "VI", "III", "VII")),
        ),
        "hiphop": GenreProfile(
            scales=("minor", "minor pentatonic", "dorian"),
            progressions=(("ii", "V", "I"), ("vi", "IV", "I", "V"), ("i", "VI", "III", "VII")),
        ),
        "jazz": GenreProfile(
            scales=("major", "minor", "dorian", "mixolydian", "lydian"),
            progressions=(("ii", "V", "I"), ("I", "vi", "ii", "V"), ("iii", "VI", "ii", "V")),
        ),
        "electronic": GenreProfile(
            scales=("minor", "phrygian", "locrian"),
            progressions=(("i", "VI", "VII"), ("i", "VII", "VI", "VII"), ("IV", "I", "V", "vi")),
        ),
        "classical": GenreProfile(
            scales=("major", "minor", "harmonic minor", "melodic minor"),
            progressions=(
                ("I", "IV", "V"),
                ("I", "vi", "IV", "V"),
                ("I", "V", "vi", "iii", "IV", "I", "IV", "V"),
            ),
        ),
        "rnb": GenreProfile(
            scales=("minor", "minor pentatonic", "dorian"),
            progressions=(("ii", "V", "I"), ("I", "vi", "IV", "V"), ("i", "iv", "VII", "III")),
        ),
        "country": GenreProfile(
            scales=("major", "major pentatonic", "mixolydian"),
            progressions=(("I", "IV", "V"), ("I", "V", "vi", "IV"), ("vi", "iii", "IV", "V")),
        ),
        "ambient": GenreProfile(
            scales=("major", "minor", "whole tone", "lydian"),
            progressions=(("I", "vi"), ("I", "iii", "vi"), ("I", "V", "vi")),
        ),
        "folk": GenreProfile(
            scales=("major", "dorian", "mixolydian"),
            progressions=(("I", "V", "I"), ("I", "IV", "I", "V"), ("i", "VII", "VI", "V")),
        ),
        "metal": GenreProfile(
            scales=("minor", "phrygian", "locrian"),
            progressions=(("i", "VII", "VI"), ("i", "V", "VI", "VII"), ("i", "iv", "VII", "III")),
        ),
        "indie": GenreProfile(
            scales=("major", "minor", "lydian", "mixolydian"),
            progressions=(("I", "V", "vi", "IV"), ("vi", "IV", "I", "V"), ("I", "iii", "vi", "IV")),
        ),
    }
)

MOOD_PROFILES: Mapping[Mood, MoodProfile] = MappingProxyType(
    {
        "energetic": MoodProfile(
            tempo_range=(120, 160),
            dynamics="loud",
            articulation="staccato",
            harmony_complexity="moderate",
        ),
        "relaxed": MoodProfile(
            tempo_range=(60, 90),
            dynamics="soft",
            articulation="legato",
            harmony_complexity="simple",
        ),
        "melancholic": MoodProfile(
            tempo_range=(65, 85),
            dynamics="soft",
            articulation="legato",
            harmony_complexity="moderate",
        ),
        "uplifting": MoodProfile(
            tempo_range=(100, 130),
            dynamics="medium",
            articulation="normal",
            harmony_complexity="simple",
        ),
        "dark": MoodProfile(
            tempo_range=(70, 100),
            dynamics="medium",
            articulation="normal",
            harmony_complexity="complex",
        ),
        "dreamy": MoodProfile(
            tempo_range=(60, 80),
            dynamics="soft",
            articulation="legato",
            harmony_complexity="moderate",
        ),
        "angry": MoodProfile(
            tempo_range=(140, 180),
            dynamics="loud",
            articulation="staccato",
            harmony_complexity="complex",
        ),
        "peaceful": MoodProfile(
            tempo_range=(50, 75),
            dynamics="soft",
            articulation="legato",
            harmony_complexity="simple",
        ),
        "nostalgic": MoodProfile(
            tempo_range=(65, 95),
            dynamics="medium",
            articulation="legato",
            harmony_complexity="moderate",
        ),
        "dramatic": MoodProfile(
            tempo_range=(75, 110),
            dynamics="loud",
            articulation="normal",
            harmony_complexity="complex",
        ),
    }
)

# Triads voiced around C4 (MIDI 60); minor-key chords borrow from C minor.
CHORD_TONES: Mapping[ChordSymbol, Triad] = MappingProxyType(
    {
        "I": (60, 64, 67),
        "ii": (62, 65, 69),
        "iii": (64, 67, 71),
        "IV": (65, 69, 72),
        "V": (67, 71, 74),
        "vi": (69, 72, 76),
        "vii°": (71, 74, 77),
        "i": (60, 63, 67),
        "III": (63, 67, 70),
        "iv": (65, 68, 72),
        "v": (67, 70, 74),
        "VI": (68, 72, 75),
        "VII": (70, 74, 77),
    }
)

# Bass roots in octave 2
CHORD_BASS: Mapping[ChordSymbol, int] = MappingProxyType(
    {
        "I": 36,
        "ii": 38,
        "iii": 40,
        "IV": 41,
        "V": 43,
        "vi": 45,
        "vii°": 47,
        "i": 36,
        "III": 39,
        "iv": 41,
        "v": 43,
        "VI": 44,
        "VII": 46,
    }
)

_CHORD_ALIASES: Mapping[str, ChordSymbol] = MappingProxyType({"vii0": "vii°", "viio": "vii°"})

_NOTE_NAMES = ("C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B")


def _normalize(name: str | None) -> str:
    return (name or "").strip().lower()


def resolve_genre(name: str | None) -> Genre:
    """Return the canonical genre used for ``name``, falling back to ``pop``."""
    key = _normalize(name)
    for genre in GENRES:
        if genre == key:
            return genre
    _LOGGER.debug("Unknown genre %r; using %s profile", name, DEFAULT_GENRE)
    return DEFAULT_GENRE


def resolve_mood(name: str | None) -> Mood:
    """Return the canonical mood used for ``name``, falling back to ``energetic``."""
    key = _normalize(name)
    for mood in MOODS:
        if mood == key:
            return mood
    _LOGGER.debug("Unknown mood %r; using %s profile", name, DEFAULT_MOOD)
    return DEFAULT_MOOD


def genre_profile(name: str | None) -> GenreProfile:
    return GENRE_PROFILES[resolve_genre(name)]


def mood_profile(name: str | None) -> MoodProfile:
    return MOOD_PROFILES[resolve_mood(name)]


def resolve_chord(symbol: str) -> ChordSymbol:
    """Canonical chord symbol for ``symbol``; unknown symbols become the tonic."""
    if symbol in CHORD_TONES:
        return symbol  # type: ignore[return-value]
    alias = _CHORD_ALIASES.get(symbol)
    if alias is not None:
        return alias
    _LOGGER.debug("Unknown chord symbol %r; using tonic", symbol)
    return "I"


def chord_tones(symbol: str) -> Triad:
    return CHORD_TONES[resolve_chord(symbol)]


def chord_bass(symbol: str) -> int:
    return CHORD_BASS[resolve_chord(symbol)]


def note_name(pitch: int) -> str:
    """MIDI pitch to scientific pitch name (60 -> ``C4``)."""
    return f"{_NOTE_NAMES[pitch % 12]}{pitch // 12 - 1}"


def midi_to_freq(pitch: float) -> float:
    """Equal-tempered frequency for a MIDI pitch (A4 = 69 = 440 Hz)."""
    return 440.0 * (2 ** ((pitch - 69) / 12))
