from __future__ import annotations

import numpy as np
import pytest

from tunesmith.profiles import CHORD_BASS, CHORD_TONES
from tunesmith.sequencer import (
    NoteEvent,
    bar_count,
    chords_per_bar,
    expand_progression,
    generate_notes,
    note_variety,
    pick_length,
    total_beats,
    transpose_notes,
)


def test_bar_count_heuristic() -> None:
    assert bar_count(0) == 4
    assert bar_count(60) == 4
    assert bar_count(61) == 5
    assert bar_count(120) == 8
    assert bar_count(-5) == 4
    assert total_beats(120) == 32


def test_harmonic_rhythm() -> None:
    assert chords_per_bar(0) == 1
    assert chords_per_bar(29) == 1
    assert chords_per_bar(30) == 2
    assert chords_per_bar(59) == 2
    assert chords_per_bar(60) == 4
    assert chords_per_bar(150) == 4


def test_note_variety_range() -> None:
    assert note_variety(0) == pytest.approx(0.2)
    assert note_variety(100) == pytest.approx(1.0)
    assert note_variety(-20) == pytest.approx(0.2)


def test_expand_progression_repeats_whole() -> None:
    assert expand_progression(("I", "V", "vi"), 8) == ("I", "V", "vi") * 3
    assert expand_progression((), 2) == ("I", "I")


def test_pick_length_thresholds() -> None:
    assert pick_length(0.0, 0.2) == "4n"
    assert pick_length(0.5, 0.2) == "8n"
    assert pick_length(0.8, 0.2) == "2n"
    assert pick_length(0.9, 0.2) == "16n"
    # higher variety shrinks the quarter-note window
    assert pick_length(0.3, 1.0) == "8n"


def test_scenario_sixteen_beat_walk() -> None:
    progression = ("I", "V", "vi", "IV")
    notes = generate_notes(progression, 50, 60, rng=np.random.default_rng(0))
    assert notes
    assert all(0 <= note.start_beat < 16 for note in notes)
    # 2 chords per bar: I I V V ... beats 0-1 are the tonic
    for note in notes:
        if note.start_beat < 2:
            assert note.chord == CHORD_TONES["I"]
            assert note.bass == CHORD_BASS["I"]
            assert note.pitch in CHORD_TONES["I"]
    # complexity 50 never ornaments
    assert all(float(note.start_beat).is_integer() for note in notes)


def test_notes_are_ordered_and_well_formed() -> None:
    notes = generate_notes(("ii", "V", "I"), 90, 90, rng=np.random.default_rng(11))
    starts = [note.start_beat for note in notes]
    assert starts == sorted(starts)
    for note in notes:
        assert isinstance(note, NoteEvent)
        assert 0.0 < note.velocity <= 1.0
        assert note.pitch in note.chord
        assert note.length in ("16n", "8n", "4n", "2n")


def test_ornaments_only_above_threshold() -> None:
    low = generate_notes(("I",), 50, 240, rng=np.random.default_rng(2))
    high = generate_notes(("I",), 100, 240, rng=np.random.default_rng(2))
    assert not [n for n in low if not float(n.start_beat).is_integer()]
    ornaments = [n for n in high if not float(n.start_beat).is_integer()]
    assert ornaments
    for note in ornaments:
        assert note.start_beat % 1 == pytest.approx(0.25)
        assert note.length == "16n"


def test_full_complexity_fills_every_beat() -> None:
    notes = generate_notes(("I", "IV"), 100, 60, rng=np.random.default_rng(4))
    primary = {note.start_beat for note in notes if float(note.start_beat).is_integer()}
    assert primary == {float(beat) for beat in range(16)}


def test_event_count_grows_with_complexity() -> None:
    def mean_count(complexity: float) -> float:
        rng = np.random.default_rng(123)
        counts = [len(generate_notes(("I", "V"), complexity, 120, rng=rng)) for _ in range(40)]
        return float(np.mean(counts))

    means = [mean_count(level) for level in (0, 25, 50, 75, 100)]
    assert means == sorted(means)
    assert means[0] < means[-1]


def test_same_seed_same_notes() -> None:
    first = generate_notes(("I", "vi"), 70, 30, rng=np.random.default_rng(9))
    second = generate_notes(("I", "vi"), 70, 30, rng=np.random.default_rng(9))
    assert first == second


def test_unknown_chord_plays_tonic() -> None:
    notes = generate_notes(("XIII",), 100, 10, rng=np.random.default_rng(0))
    assert notes
    assert all(note.chord == CHORD_TONES["I"] for note in notes)


def test_transpose_shifts_everything() -> None:
    notes = generate_notes(("I",), 100, 10, rng=np.random.default_rng(0))
    shifted = transpose_notes(notes, -3)
    for before, after in zip(notes, shifted):
        assert after.pitch == before.pitch - 3
        assert after.bass == before.bass - 3
        assert after.chord == tuple(p - 3 for p in before.chord)
        assert after.start_beat == before.start_beat
    assert transpose_notes(notes, 0) == notes
