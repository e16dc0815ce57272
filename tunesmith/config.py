from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .audio import SAMPLE_RATE
from .errors import InvalidConfigError
from .schema import DEFAULT_GENRE, DEFAULT_MOOD, InstrumentFocus

_LOGGER = logging.getLogger("tunesmith.config")

ProgressSink = Callable[[int], None]

MAX_COMPLEXITY = 100.0
MAX_MIX_LEVEL = 100.0
MAX_PITCH_OFFSET = 12

_FOCUS_ALIASES: Mapping[str, InstrumentFocus] = MappingProxyType(
    {
        "balanced": "balanced",
        "vocals": "vocals_only",
        "vocals_only": "vocals_only",
        "vocalsonly": "vocals_only",
        "instrumental": "instrumental_only",
        "instrumental_only": "instrumental_only",
        "instrumentalonly": "instrumental_only",
    }
)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _finite(value: Any, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number, got {value!r}") from exc
    if math.isnan(number):
        raise ValueError(f"{field} must not be NaN")
    return number


class GenerationOptions(BaseModel):
    """Caller-supplied parameters for a single generation.

    Numeric fields are clamped into range rather than rejected; genre and mood
    are free strings so that unknown values can fall back to default profiles.
    """

    genre: str = DEFAULT_GENRE
    mood: str = DEFAULT_MOOD
    tempo: Optional[int] = None
    duration: float = 30.0
    instrument_focus: InstrumentFocus = "balanced"
    pitch: int = 0
    complexity: float = 50.0
    instrument_mix: Mapping[str, float] = Field(default_factory=dict)
    theme: Optional[str] = None
    keywords: tuple[str, ...] = ()
    lyrics: bool = False
    on_progress: Optional[ProgressSink] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @field_validator("genre", "mood", mode="before")
    @classmethod
    def _normalize_label(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip().lower()

    @field_validator("tempo", mode="before")
    @classmethod
    def _explicit_tempo(cls, value: object) -> int | None:
        if value is None:
            return None
        tempo = _finite(value, "tempo")
        if tempo <= 0:
            return None
        return int(round(tempo))

    @field_validator("duration", mode="before")
    @classmethod
    def _clamp_duration(cls, value: object) -> float:
        duration = _finite(value, "duration")
        if math.isinf(duration):
            raise ValueError("duration must be finite")
        return max(0.0, duration)

    @field_validator("complexity", mode="before")
    @classmethod
    def _clamp_complexity(cls, value: object) -> float:
        return _clamp(_finite(value, "complexity"), 0.0, MAX_COMPLEXITY)

    @field_validator("pitch", mode="before")
    @classmethod
    def _clamp_pitch(cls, value: object) -> int:
        pitch = _finite(value, "pitch")
        return int(_clamp(round(pitch), -MAX_PITCH_OFFSET, MAX_PITCH_OFFSET))

    @field_validator("instrument_focus", mode="before")
    @classmethod
    def _focus_alias(cls, value: object) -> InstrumentFocus:
        key = str(value or "").strip().replace("-", "_").lower()
        focus = _FOCUS_ALIASES.get(key) or _FOCUS_ALIASES.get(key.replace("_", ""))
        if focus is None:
            _LOGGER.debug("Unknown instrument focus %r; using balanced", value)
            return "balanced"
        return focus

    @field_validator("instrument_mix", mode="before")
    @classmethod
    def _clamp_mix(cls, value: object) -> Mapping[str, float]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ValueError("instrument_mix must be a mapping of instrument name to level")
        levels: dict[str, float] = {}
        for name, level in value.items():
            number = _finite(level, f"instrument_mix[{name!r}]")
            levels[str(name).strip().lower()] = _clamp(number, 0.0, MAX_MIX_LEVEL)
        return levels

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        words = value.split(",") if isinstance(value, str) else list(value)  # type: ignore[call-overload]
        return tuple(str(word).strip() for word in words if str(word).strip())


class EngineSettings(BaseModel):
    """Rendering knobs, overridable through ``TUNESMITH_*`` environment variables."""

    sample_rate: int = Field(default=SAMPLE_RATE, ge=1000, le=192_000)
    channels: int = Field(default=2, ge=1, le=8)
    # Target wall-clock budget as a fraction of the piece length (0.5 = half real time)
    render_speed: float = Field(default=0.5, gt=0.0)
    # Scheduled hits processed between progress checkpoints
    chunk_size: int = Field(default=16, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineSettings":
        env = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for field in ("sample_rate", "channels", "render_speed", "chunk_size"):
            raw = env.get(f"TUNESMITH_{field.upper()}")
            if raw is not None and raw.strip():
                overrides[field] = raw.strip()
        try:
            settings = cls.model_validate(overrides)
        except ValidationError as exc:
            raise InvalidConfigError(f"Invalid TUNESMITH_* environment settings: {exc}") from exc
        if overrides:
            _LOGGER.debug("Engine settings from environment: %s", overrides)
        return settings
