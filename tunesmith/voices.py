"""
Timbre configuration for the synthesis voices.

Voices are pure functions of (genre, mood, instrument mix): no randomness, so
identical inputs always produce equal configs. Unknown genres and moods simply
match no override and keep the baseline.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .schema import EffectKind, Genre, InstrumentFocus, Mood, OscillatorShape, VoiceRole

LEAD_BASE_DB = -12.0
LEAD_SLOPE = 0.25
LEAD_DEFAULT_LEVEL = 70.0
ACCOMPANIMENT_BASE_DB = -15.0
ACCOMPANIMENT_SLOPE = 0.3
ACCOMPANIMENT_DEFAULT_LEVEL = 60.0
BASS_BASE_DB = -15.0
BASS_SLOPE = 0.3
BASS_DEFAULT_LEVEL = 50.0

MIN_ATTACK = 0.01
MAX_ATTACK = 0.5
MIN_RELEASE = 0.1
MAX_RELEASE = 3.0

# Drum scheduling is not implemented yet; genres listed here only log the request.
PERCUSSION_GENRES: frozenset[Genre] = frozenset(
    {"pop", "rock", "hiphop", "electronic", "metal", "rnb"}
)
PERCUSSION_SUPPORTED = False

_FAST_MOODS: frozenset[Mood] = frozenset({"energetic", "angry"})
_SLOW_MOODS: frozenset[Mood] = frozenset({"relaxed", "peaceful", "dreamy"})
_REVERB_GENRES: frozenset[Genre] = frozenset({"electronic", "ambient"})
_REVERB_MOODS: frozenset[Mood] = frozenset({"dreamy", "melancholic"})
_DISTORTION_GENRES: frozenset[Genre] = frozenset({"rock", "metal", "hiphop"})
_DISTORTION_MOODS: frozenset[Mood] = frozenset({"energetic", "angry"})
_DELAY_GENRES: frozenset[Genre] = frozenset({"electronic", "pop", "rnb"})

# Mix slots consulted in order; first one present wins.
LEAD_SLOTS = ("synth", "lead")
ACCOMPANIMENT_SLOTS = ("pad", "strings", "piano")
BASS_SLOTS = ("bass",)
DRUM_SLOTS = ("drums",)


class Envelope(BaseModel):
    attack: float = Field(ge=0.0)
    decay: float = Field(ge=0.0)
    sustain: float = Field(ge=0.0, le=1.0)
    release: float = Field(ge=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class Effect(BaseModel):
    """One effect stage; ``params`` is stored as sorted ``(name, value)`` pairs."""

    kind: EffectKind
    params: tuple[tuple[str, float], ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("params", mode="before")
    @classmethod
    def _freeze_params(cls, value: object) -> tuple[tuple[str, float], ...]:
        if value is None:
            return ()
        items = value.items() if isinstance(value, Mapping) else value
        return tuple(sorted((str(name), float(level)) for name, level in items))  # type: ignore[union-attr]

    def param(self, name: str, default: float) -> float:
        return dict(self.params).get(name, default)


class VoiceConfig(BaseModel):
    role: VoiceRole
    oscillator: OscillatorShape
    envelope: Envelope
    effects: tuple[Effect, ...] = ()
    gain_db: float = 0.0

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def gain(self) -> float:
        """Linear amplitude for ``gain_db``."""
        return float(10 ** (self.gain_db / 20.0))


class VoiceSet(BaseModel):
    lead: VoiceConfig
    accompaniment: Optional[VoiceConfig] = None
    bass: Optional[VoiceConfig] = None
    # Reserved for drum voices once percussion scheduling exists.
    percussion: Optional[VoiceConfig] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def active(self) -> tuple[VoiceConfig, ...]:
        voices = (self.lead, self.accompaniment, self.bass, self.percussion)
        return tuple(voice for voice in voices if voice is not None)


class _Timbre(BaseModel):
    oscillator: OscillatorShape
    attack: float
    decay: float
    sustain: float
    release: float

    model_config = ConfigDict(frozen=True, extra="forbid")


_LEAD_BASELINE = _Timbre(oscillator="triangle", attack=0.1, decay=0.2, sustain=0.5, release=1.0)

_LEAD_GENRE_OVERRIDES: Mapping[Genre, Mapping[str, object]] = MappingProxyType(
    {
        "electronic": MappingProxyType({"oscillator": "sawtooth", "attack": 0.01, "release": 0.5}),
        "ambient": MappingProxyType({"oscillator": "sine", "attack": 0.4, "release": 3.0}),
        "rock": MappingProxyType({"oscillator": "square", "attack": 0.05, "sustain": 0.3}),
        "metal": MappingProxyType({"oscillator": "square", "attack": 0.05, "sustain": 0.3}),
        "jazz": MappingProxyType({"oscillator": "triangle", "attack": 0.08, "release": 0.8}),
        "classical": MappingProxyType({"oscillator": "sine", "attack": 0.1, "release": 1.5}),
    }
)

_ACCOMPANIMENT_BASELINE = _Timbre(
    oscillator="sine", attack=0.2, decay=0.3, sustain=0.4, release=1.2
)

_ACCOMPANIMENT_GENRE_OVERRIDES: Mapping[Genre, Mapping[str, object]] = MappingProxyType(
    {
        # piano-like
        "classical": MappingProxyType({"oscillator": "triangle"}),
        "jazz": MappingProxyType({"oscillator": "triangle"}),
        # pad-like
        "rock": MappingProxyType({"oscillator": "sawtooth", "attack": 0.3, "release": 2.0}),
        "metal": MappingProxyType({"oscillator": "sawtooth", "attack": 0.3, "release": 2.0}),
        "electronic": MappingProxyType({"oscillator": "sawtooth", "attack": 0.3, "release": 2.0}),
    }
)

_BASS_TIMBRE = _Timbre(oscillator="triangle", attack=0.05, decay=0.2, sustain=0.8, release=0.5)

_LEAD_REVERB = Effect(kind="reverb", params={"decay": 3.0, "wet": 0.35})
_ACCOMPANIMENT_REVERB = Effect(kind="reverb", params={"decay": 2.0, "wet": 0.3})
_DISTORTION = Effect(kind="distortion", params={"amount": 0.2})
_DELAY = Effect(kind="delay", params={"time": 0.25, "feedback": 0.3, "wet": 0.3})


def mix_level(instrument_mix: Mapping[str, float], slots: tuple[str, ...], default: float) -> float:
    """Level of the first mix slot present, else ``default``."""
    for slot in slots:
        if slot in instrument_mix:
            return float(instrument_mix[slot])
    return default


def _apply_genre(base: _Timbre, overrides: Mapping[str, Mapping[str, object]], genre: str) -> _Timbre:
    update = overrides.get(genre)
    if not update:
        return base
    return base.model_copy(update=dict(update))


def _apply_mood(timbre: _Timbre, mood: str) -> _Timbre:
    if mood in _FAST_MOODS:
        return timbre.model_copy(
            update={
                "attack": max(MIN_ATTACK, timbre.attack / 2),
                "release": max(MIN_RELEASE, timbre.release / 2),
            }
        )
    if mood in _SLOW_MOODS:
        return timbre.model_copy(
            update={
                "attack": min(MAX_ATTACK, timbre.attack * 2),
                "release": min(MAX_RELEASE, timbre.release * 2),
            }
        )
    return timbre


def _envelope(timbre: _Timbre) -> Envelope:
    return Envelope(
        attack=timbre.attack,
        decay=timbre.decay,
        sustain=timbre.sustain,
        release=timbre.release,
    )


def _lead_effects(genre: str, mood: str) -> tuple[Effect, ...]:
    effects: list[Effect] = []
    if genre in _REVERB_GENRES or mood in _REVERB_MOODS:
        effects.append(_LEAD_REVERB)
    if genre in _DISTORTION_GENRES or mood in _DISTORTION_MOODS:
        effects.append(_DISTORTION)
    if genre in _DELAY_GENRES:
        effects.append(_DELAY)
    return tuple(effects)


def build_lead_voice(genre: str, mood: str, instrument_mix: Mapping[str, float]) -> VoiceConfig:
    timbre = _apply_mood(_apply_genre(_LEAD_BASELINE, _LEAD_GENRE_OVERRIDES, genre), mood)
    level = mix_level(instrument_mix, LEAD_SLOTS, LEAD_DEFAULT_LEVEL)
    return VoiceConfig(
        role="lead",
        oscillator=timbre.oscillator,
        envelope=_envelope(timbre),
        effects=_lead_effects(genre, mood),
        gain_db=LEAD_BASE_DB + (level - 50) * LEAD_SLOPE,
    )


def build_accompaniment_voice(
    genre: str, mood: str, instrument_mix: Mapping[str, float]
) -> VoiceConfig:
    timbre = _apply_mood(
        _apply_genre(_ACCOMPANIMENT_BASELINE, _ACCOMPANIMENT_GENRE_OVERRIDES, genre), mood
    )
    level = mix_level(instrument_mix, ACCOMPANIMENT_SLOTS, ACCOMPANIMENT_DEFAULT_LEVEL)
    return VoiceConfig(
        role="accompaniment",
        oscillator=timbre.oscillator,
        envelope=_envelope(timbre),
        effects=(_ACCOMPANIMENT_REVERB,),
        gain_db=ACCOMPANIMENT_BASE_DB + (level - 50) * ACCOMPANIMENT_SLOPE,
    )


def build_bass_voice(instrument_mix: Mapping[str, float]) -> VoiceConfig:
    level = mix_level(instrument_mix, BASS_SLOTS, BASS_DEFAULT_LEVEL)
    return VoiceConfig(
        role="bass",
        oscillator=_BASS_TIMBRE.oscillator,
        envelope=_envelope(_BASS_TIMBRE),
        gain_db=BASS_BASE_DB + (level - 50) * BASS_SLOPE,
    )


def build_voices(
    genre: str,
    mood: str,
    instrument_mix: Mapping[str, float],
    instrument_focus: InstrumentFocus = "balanced",
) -> VoiceSet:
    """Build every voice the focus calls for; vocals-only keeps just the lead."""
    lead = build_lead_voice(genre, mood, instrument_mix)
    if instrument_focus == "vocals_only":
        return VoiceSet(lead=lead)
    return VoiceSet(
        lead=lead,
        accompaniment=build_accompaniment_voice(genre, mood, instrument_mix),
        bass=build_bass_voice(instrument_mix),
    )


def wants_percussion(genre: str) -> bool:
    return genre in PERCUSSION_GENRES
