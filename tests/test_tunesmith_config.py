from __future__ import annotations

import pytest
from pydantic import ValidationError

from tunesmith.config import EngineSettings, GenerationOptions
from tunesmith.errors import InvalidConfigError


def test_defaults() -> None:
    options = GenerationOptions()
    assert options.genre == "pop"
    assert options.mood == "energetic"
    assert options.tempo is None
    assert options.instrument_focus == "balanced"
    assert options.pitch == 0
    assert options.complexity == 50.0
    assert options.instrument_mix == {}


def test_numeric_fields_are_clamped() -> None:
    options = GenerationOptions(
        duration=-3,
        complexity=250,
        pitch=-40,
        instrument_mix={"Synth": 140, "bass": -5},
    )
    assert options.duration == 0.0
    assert options.complexity == 100.0
    assert options.pitch == -12
    assert options.instrument_mix == {"synth": 100.0, "bass": 0.0}


def test_non_positive_tempo_means_unset() -> None:
    assert GenerationOptions(tempo=0).tempo is None
    assert GenerationOptions(tempo=-90).tempo is None
    assert GenerationOptions(tempo=96.4).tempo == 96


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("vocalsOnly", "vocals_only"),
        ("vocals", "vocals_only"),
        ("instrumentalOnly", "instrumental_only"),
        ("instrumental-only", "instrumental_only"),
        ("balanced", "balanced"),
        ("karaoke", "balanced"),
    ],
)
def test_instrument_focus_aliases(raw: str, expected: str) -> None:
    assert GenerationOptions(instrument_focus=raw).instrument_focus == expected


def test_labels_are_normalised() -> None:
    options = GenerationOptions(genre="  HipHop ", mood="Dreamy")
    assert options.genre == "hiphop"
    assert options.mood == "dreamy"


def test_rejects_nonsense() -> None:
    with pytest.raises(ValidationError):
        GenerationOptions(duration=float("nan"))
    with pytest.raises(ValidationError):
        GenerationOptions(duration=float("inf"))
    with pytest.raises(ValidationError):
        GenerationOptions(complexity="lots")
    with pytest.raises(ValidationError):
        GenerationOptions(instrument_mix=[("synth", 10)])
    with pytest.raises(ValidationError):
        GenerationOptions(unknown_field=1)


def test_options_are_frozen() -> None:
    options = GenerationOptions()
    with pytest.raises(ValidationError):
        options.genre = "rock"  # type: ignore[misc]


def test_keywords_accept_strings_and_iterables() -> None:
    assert GenerationOptions(keywords="a, b,,c").keywords == ("a", "b", "c")
    assert GenerationOptions(keywords=["x", " y "]).keywords == ("x", "y")


def test_settings_from_env() -> None:
    settings = EngineSettings.from_env(
        {"TUNESMITH_SAMPLE_RATE": "22050", "TUNESMITH_CHANNELS": "1", "TUNESMITH_RENDER_SPEED": ""}
    )
    assert settings.sample_rate == 22_050
    assert settings.channels == 1
    assert settings.render_speed == 0.5
    assert EngineSettings.from_env({}) == EngineSettings()


def test_settings_from_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUNESMITH_CHUNK_SIZE", "4")
    assert EngineSettings.from_env().chunk_size == 4


@pytest.mark.parametrize(
    "env",
    [
        {"TUNESMITH_SAMPLE_RATE": "fast"},
        {"TUNESMITH_CHANNELS": "0"},
        {"TUNESMITH_RENDER_SPEED": "-1"},
    ],
)
def test_bad_settings_raise(env: dict[str, str]) -> None:
    with pytest.raises(InvalidConfigError):
        EngineSettings.from_env(env)
