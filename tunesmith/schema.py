"""Shared label vocabularies for the composition engine.

Single source of truth for the genre, mood and chord vocabularies used by the
profile tables, the sequencer and the voice builder.
"""

from __future__ import annotations

from typing import Literal, get_args

Genre = Literal[
    "pop",
    "rock",
    "hiphop",
    "jazz",
    "electronic",
    "classical",
    "rnb",
    "country",
    "ambient",
    "folk",
    "metal",
    "indie",
]
Mood = Literal[
    "energetic",
    "relaxed",
    "melancholic",
    "uplifting",
    "dark",
    "dreamy",
    "angry",
    "peaceful",
    "nostalgic",
    "dramatic",
]
DynamicsLevel = Literal["soft", "medium", "loud"]
Articulation = Literal["staccato", "legato", "normal"]
HarmonyComplexity = Literal["simple", "moderate", "complex"]

ChordSymbol = Literal["I", "ii", "iii", "IV", "V", "vi", "vii°", "i", "III", "iv", "v", "VI", "VII"]

# Tone-style note lengths: sixteenth, eighth, quarter, half
NoteLength = Literal["16n", "8n", "4n", "2n"]

InstrumentFocus = Literal["balanced", "vocals_only", "instrumental_only"]
OscillatorShape = Literal["sine", "triangle", "sawtooth", "square"]
EffectKind = Literal["reverb", "distortion", "delay"]
VoiceRole = Literal["lead", "accompaniment", "bass", "percussion"]

GENRES: tuple[Genre, ...] = get_args(Genre)
MOODS: tuple[Mood, ...] = get_args(Mood)
CHORD_SYMBOLS: tuple[ChordSymbol, ...] = get_args(ChordSymbol)
NOTE_LENGTHS: tuple[NoteLength, ...] = get_args(NoteLength)
INSTRUMENT_FOCUSES: tuple[InstrumentFocus, ...] = get_args(InstrumentFocus)

DEFAULT_GENRE: Genre = "pop"
DEFAULT_MOOD: Mood = "energetic"
