from __future__ import annotations

import pytest

from tunesmith.voices import (
    _LEAD_GENRE_OVERRIDES,
    PERCUSSION_SUPPORTED,
    Effect,
    VoiceConfig,
    build_accompaniment_voice,
    build_bass_voice,
    build_lead_voice,
    build_voices,
    mix_level,
    wants_percussion,
)


def _kinds(voice: VoiceConfig) -> list[str]:
    return [effect.kind for effect in voice.effects]


def test_build_voices_is_idempotent() -> None:
    mix = {"synth": 80.0, "pad": 40.0, "bass": 55.0}
    assert build_voices("jazz", "relaxed", mix) == build_voices("jazz", "relaxed", mix)


def test_baseline_lead_and_default_gain() -> None:
    lead = build_lead_voice("country", "uplifting", {})
    assert lead.oscillator == "triangle"
    assert lead.envelope.attack == pytest.approx(0.1)
    assert lead.envelope.decay == pytest.approx(0.2)
    assert lead.envelope.sustain == pytest.approx(0.5)
    assert lead.envelope.release == pytest.approx(1.0)
    assert lead.effects == ()
    # default level 70 -> -12 + 20 * 0.25
    assert lead.gain_db == pytest.approx(-7.0)


def test_electronic_dreamy_lead() -> None:
    lead = build_lead_voice("electronic", "dreamy", {"synth": 80})
    assert lead.oscillator == "sawtooth"
    # slow mood doubles the electronic attack/release
    assert lead.envelope.attack == pytest.approx(0.02)
    assert lead.envelope.release == pytest.approx(1.0)
    assert _kinds(lead) == ["reverb", "delay"]
    assert lead.gain_db == pytest.approx(-4.5)


def test_fast_mood_halves_with_floor() -> None:
    lead = build_lead_voice("electronic", "angry", {})
    assert lead.envelope.attack == pytest.approx(0.01)
    assert lead.envelope.release == pytest.approx(0.25)


def test_slow_mood_caps_envelope() -> None:
    lead = build_lead_voice("ambient", "peaceful", {})
    assert lead.oscillator == "sine"
    assert lead.envelope.attack == pytest.approx(0.5)
    assert lead.envelope.release == pytest.approx(3.0)


def test_rock_lead_has_distortion() -> None:
    lead = build_lead_voice("rock", "dark", {})
    assert lead.oscillator == "square"
    assert lead.envelope.sustain == pytest.approx(0.3)
    assert _kinds(lead) == ["distortion"]


def test_energetic_pop_lead_effect_order() -> None:
    lead = build_lead_voice("pop", "energetic", {})
    assert _kinds(lead) == ["distortion", "delay"]


def test_accompaniment_overrides_and_mix_slots() -> None:
    piano = build_accompaniment_voice("classical", "nostalgic", {})
    assert piano.oscillator == "triangle"
    assert _kinds(piano) == ["reverb"]
    assert piano.gain_db == pytest.approx(-12.0)

    pad = build_accompaniment_voice("metal", "dramatic", {"strings": 90, "piano": 10})
    assert pad.oscillator == "sawtooth"
    assert pad.envelope.attack == pytest.approx(0.3)
    assert pad.gain_db == pytest.approx(-15.0 + 40 * 0.3)


def test_bass_voice_fixed_timbre() -> None:
    bass = build_bass_voice({})
    assert bass.oscillator == "triangle"
    assert bass.envelope.sustain == pytest.approx(0.8)
    assert bass.gain_db == pytest.approx(-15.0)
    assert build_bass_voice({"bass": 100}).gain_db == pytest.approx(0.0)


def test_mix_level_first_slot_wins() -> None:
    assert mix_level({"lead": 20, "synth": 90}, ("synth", "lead"), 70) == 90
    assert mix_level({"lead": 20}, ("synth", "lead"), 70) == 20
    assert mix_level({}, ("synth", "lead"), 70) == 70
    assert mix_level({"synth": 0}, ("synth", "lead"), 70) == 0


def test_focus_vocals_only_keeps_lead() -> None:
    voices = build_voices("pop", "energetic", {}, "vocals_only")
    assert voices.accompaniment is None
    assert voices.bass is None
    assert len(voices.active()) == 1


def test_instrumental_focus_matches_balanced() -> None:
    assert build_voices("folk", "sad", {}, "instrumental_only") == build_voices(
        "folk", "sad", {}, "balanced"
    )


def test_unknown_names_keep_baseline() -> None:
    voices = build_voices("polka", "whimsical", {})
    assert voices.lead.oscillator == "triangle"
    assert voices.lead.effects == ()
    assert voices.percussion is None


def test_percussion_request_is_genre_based() -> None:
    assert wants_percussion("rock")
    assert not wants_percussion("ambient")
    assert PERCUSSION_SUPPORTED is False


def test_voice_configs_are_hashable_and_immutable() -> None:
    lead = build_lead_voice("electronic", "dreamy", {})
    assert hash(lead) == hash(build_lead_voice("electronic", "dreamy", {}))
    assert len({lead, build_lead_voice("electronic", "dreamy", {})}) == 1

    reverb = lead.effects[0]
    assert reverb.params == (("decay", 3.0), ("wet", 0.35))
    with pytest.raises(TypeError):
        reverb.params[0] = ("decay", 99.0)  # type: ignore[index]
    assert build_lead_voice("electronic", "dreamy", {}).effects[0].param("decay", 0.0) == 3.0


def test_effect_params_accept_mappings_and_pairs() -> None:
    from_dict = Effect(kind="delay", params={"wet": 0.3, "time": 0.25})
    from_pairs = Effect(kind="delay", params=[("time", 0.25), ("wet", 0.3)])
    assert from_dict == from_pairs
    assert from_dict.param("time", 0.0) == 0.25
    assert from_dict.param("feedback", 0.5) == 0.5


def test_genre_override_tables_are_read_only() -> None:
    with pytest.raises(TypeError):
        _LEAD_GENRE_OVERRIDES["electronic"]["attack"] = 1.0  # type: ignore[index]
    with pytest.raises(TypeError):
        _LEAD_GENRE_OVERRIDES["pop"] = {}  # type: ignore[index]
