"""
Chord progression -> beat-resolved note events.

The sequencer walks quarter-note beats in 4/4. Each beat may carry a primary
chord-tone note and, at higher complexity, an ornament one sixteenth later.
Complexity drives both the note probability and the harmonic rhythm.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from types import MappingProxyType

import numpy as np

from .profiles import Triad, chord_bass, chord_tones
from .schema import NoteLength

BEATS_PER_BAR = 4
SECONDS_PER_BAR_HEURISTIC = 15.0
MIN_BARS = 4
ORNAMENT_OFFSET_BEATS = 0.25
ORNAMENT_THRESHOLD = 50

NOTE_LENGTH_BEATS: Mapping[NoteLength, float] = MappingProxyType(
    {"16n": 0.25, "8n": 0.5, "4n": 1.0, "2n": 2.0}
)


@dataclass(frozen=True)
class NoteEvent:
    """A sequenced note with the harmony it should be accompanied by."""

    start_beat: float
    pitch: int
    length: NoteLength
    velocity: float
    chord: Triad
    bass: int

    @property
    def duration_beats(self) -> float:
        return NOTE_LENGTH_BEATS[self.length]


def _clamp_complexity(complexity: float) -> float:
    return float(np.clip(complexity, 0.0, 100.0))


def bar_count(duration_seconds: float) -> int:
    """~15 seconds of music per bar, never fewer than four bars."""
    duration = max(0.0, float(duration_seconds))
    return max(MIN_BARS, math.ceil(duration / SECONDS_PER_BAR_HEURISTIC))


def note_variety(complexity: float) -> float:
    """Map complexity 0..100 onto a probability in [0.2, 1.0]."""
    return 0.2 + 0.8 * (_clamp_complexity(complexity) / 100.0)


def chords_per_bar(complexity: float) -> int:
    value = _clamp_complexity(complexity)
    if value < 30:
        return 1
    if value < 60:
        return 2
    return 4


def expand_progression(progression: Sequence[str], slots: int) -> tuple[str, ...]:
    """Repeat ``progression`` whole until it covers at least ``slots`` chords."""
    chords = tuple(progression) or ("I",)
    repeats = max(1, math.ceil(slots / len(chords)))
    return chords * repeats


def pick_length(draw: float, rhythmic_variety: float) -> NoteLength:
    """Weighted length draw; higher variety shifts weight towards shorter notes."""
    if draw < 0.4 - 0.2 * rhythmic_variety:
        return "4n"
    if draw < 0.7 - 0.1 * rhythmic_variety:
        return "8n"
    if draw < 0.85:
        return "2n"
    return "16n"


def generate_notes(
    progression: Sequence[str],
    complexity: float,
    duration_seconds: float,
    *,
    rng: np.random.Generator | None = None,
) -> list[NoteEvent]:
    """
    Expand a chord progression into an ordered list of note events.

    Args:
        progression: Roman-numeral chord symbols; unknown symbols play as the tonic.
        complexity: 0..100 (clamped). Controls note probability, harmonic rhythm
                    and ornaments (only above 50).
        duration_seconds: Target piece length; clamped at zero, and the
                          four-bar floor keeps the walk non-empty.
        rng: Optional RNG for deterministic generation.
    """
    local_rng = rng or np.random.default_rng()
    level = _clamp_complexity(complexity)
    bars = bar_count(duration_seconds)
    rhythmic_variety = note_variety(level)
    ornament_variety = note_variety(level)

    per_bar = chords_per_bar(level)
    beats_per_chord = BEATS_PER_BAR // per_bar
    expanded = expand_progression(progression, bars * per_bar)

    notes: list[NoteEvent] = []
    for beat in range(bars * BEATS_PER_BAR):
        symbol = expanded[(beat // beats_per_chord) % len(expanded)]
        tones = chord_tones(symbol)
        bass = chord_bass(symbol)

        if local_rng.random() >= rhythmic_variety:
            continue

        index = int(local_rng.integers(len(tones)))
        length = pick_length(float(local_rng.random()), rhythmic_variety)
        velocity = float(local_rng.uniform(0.5, 1.0))
        notes.append(
            NoteEvent(
                start_beat=float(beat),
                pitch=tones[index],
                length=length,
                velocity=velocity,
                chord=tones,
                bass=bass,
            )
        )

        if level > ORNAMENT_THRESHOLD and local_rng.random() < ornament_variety * 0.4:
            notes.append(
                NoteEvent(
                    start_beat=beat + ORNAMENT_OFFSET_BEATS,
                    pitch=tones[(index + 2) % len(tones)],
                    length="16n",
                    velocity=velocity * 0.8,
                    chord=tones,
                    bass=bass,
                )
            )

    return notes


def transpose_notes(notes: Iterable[NoteEvent], semitones: int) -> list[NoteEvent]:
    """Shift every pitch, chord tone and bass pitch by ``semitones``."""
    shift = int(semitones)
    if shift == 0:
        return list(notes)
    return [
        replace(
            note,
            pitch=note.pitch + shift,
            chord=(note.chord[0] + shift, note.chord[1] + shift, note.chord[2] + shift),
            bass=note.bass + shift,
        )
        for note in notes
    ]


def total_beats(duration_seconds: float) -> int:
    return bar_count(duration_seconds) * BEATS_PER_BAR
