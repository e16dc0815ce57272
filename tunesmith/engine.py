from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator

from .audio import FloatArray, write_wav
from .config import EngineSettings, GenerationOptions
from .errors import RenderCancelledError, RenderFailedError
from .harmony import select_tempo_and_progression
from .logging_utils import debug_enabled, log_exception
from .profiles import genre_profile, resolve_genre, resolve_mood
from .renderer import OfflineRenderer
from .schema import Genre, InstrumentFocus, Mood
from .sequencer import NoteEvent, bar_count, generate_notes, transpose_notes
from .voices import DRUM_SLOTS, VoiceSet, build_voices, mix_level, wants_percussion
from .waveform import WAVEFORM_POINTS, reduce_waveform

_LOGGER = logging.getLogger("tunesmith.engine")

DEFAULT_DRUM_LEVEL = 70.0


class TrackMetadata(BaseModel):
    """Descriptive data stored alongside a rendered track; never fed back into composition."""

    title: str
    genre: Genre
    mood: Mood
    requested_genre: str
    requested_mood: str
    tempo: int
    progression: tuple[str, ...]
    bars: int
    scales: tuple[str, ...]
    pitch_offset: int = 0
    instrument_focus: InstrumentFocus = "balanced"
    percussion_requested: bool = False
    theme: Optional[str] = None
    keywords: tuple[str, ...] = ()
    lyrics: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


class RenderResult(BaseModel):
    samples: FloatArray
    waveform: tuple[float, ...]
    sample_rate: int
    notes: tuple[NoteEvent, ...] = ()
    voices: VoiceSet
    metadata: TrackMetadata

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @field_validator("waveform")
    @classmethod
    def _validate_waveform(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != WAVEFORM_POINTS:
            raise ValueError(f"waveform must have {WAVEFORM_POINTS} points, got {len(value)}")
        return value

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0]) if self.samples.ndim == 2 else 1

    @property
    def duration(self) -> float:
        return float(self.samples.shape[-1]) / self.sample_rate

    def save(self, path: str | Path) -> Path:
        return write_wav(path, self.samples, sample_rate=self.sample_rate)


def _log_exception(context: str, exc: Exception) -> None:
    _LOGGER.warning("%s failed: %s", context, exc, exc_info=debug_enabled())
    log_exception(context, exc)


class MusicEngine:
    """
    Composition pipeline owned by the caller.

    Runs chord selection, note sequencing, voice building, offline rendering
    and waveform reduction for one generation at a time. Starting a new
    generation (or calling ``stop()``) cancels the one in flight; cancelled
    generations return ``None`` and never report progress afterwards.
    """

    def __init__(
        self,
        *,
        settings: EngineSettings | None = None,
        seed: int | None = None,
        renderer: OfflineRenderer | None = None,
    ) -> None:
        self.settings = settings or EngineSettings.from_env()
        self._rng = np.random.default_rng(seed)
        self._renderer = renderer or OfflineRenderer(
            sample_rate=self.settings.sample_rate,
            channels=self.settings.channels,
            speed=self.settings.render_speed,
            chunk_size=self.settings.chunk_size,
        )
        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._epoch = 0
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

    @property
    def busy(self) -> bool:
        return self._run_lock.locked()

    @property
    def sample_rate(self) -> int:
        return self._renderer.sample_rate

    def generate(
        self,
        options: GenerationOptions,
        *,
        rng: np.random.Generator | None = None,
    ) -> RenderResult | None:
        """Run the whole pipeline on the calling thread.

        Returns ``None`` if the generation was cancelled. Raises
        ``RenderFailedError`` if synthesis failed.
        """
        epoch = self._supersede()
        return self._run_exclusive(options, rng, epoch)

    def submit(
        self,
        options: GenerationOptions,
        *,
        rng: np.random.Generator | None = None,
    ) -> Future[RenderResult | None]:
        """Run :meth:`generate` on the engine's worker thread."""
        if self._closed:
            raise RuntimeError("engine is closed")
        epoch = self._supersede()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tunesmith")
        return self._executor.submit(self._run_exclusive, options, rng, epoch)

    def stop(self) -> None:
        """Cancel the active or queued generation. Synchronous and idempotent."""
        with self._state_lock:
            self._epoch += 1
        self._renderer.stop()

    def close(self) -> None:
        self.stop()
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "MusicEngine":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def _supersede(self) -> int:
        self.stop()
        with self._state_lock:
            return self._epoch

    def _stale(self, epoch: int) -> bool:
        with self._state_lock:
            return epoch != self._epoch

    def _progress_sink(
        self, options: GenerationOptions, epoch: int
    ) -> Callable[[int], None] | None:
        sink = options.on_progress
        if sink is None:
            return None

        def _report(value: int) -> None:
            if self._stale(epoch):
                return
            sink(value)

        return _report

    def _run_exclusive(
        self,
        options: GenerationOptions,
        rng: np.random.Generator | None,
        epoch: int,
    ) -> RenderResult | None:
        with self._run_lock:
            if self._stale(epoch):
                _LOGGER.debug("Generation superseded before it started")
                return None
            return self._run(options, rng or self._rng, epoch)

    def _run(
        self,
        options: GenerationOptions,
        rng: np.random.Generator,
        epoch: int,
    ) -> RenderResult | None:
        genre = resolve_genre(options.genre)
        mood = resolve_mood(options.mood)
        tempo, progression = select_tempo_and_progression(genre, mood, options.tempo, rng=rng)
        notes = generate_notes(progression, options.complexity, options.duration, rng=rng)
        notes = transpose_notes(notes, options.pitch)
        voices = build_voices(genre, mood, options.instrument_mix, options.instrument_focus)
        _LOGGER.debug(
            "Generating %s/%s at %d BPM: %d notes over %d bars, %d voices",
            genre,
            mood,
            tempo,
            len(notes),
            bar_count(options.duration),
            len(voices.active()),
        )

        try:
            samples = self._renderer.render(
                notes,
                voices,
                tempo,
                options.duration,
                self._progress_sink(options, epoch),
                genre=genre,
                mood=mood,
                drum_level=mix_level(options.instrument_mix, DRUM_SLOTS, DEFAULT_DRUM_LEVEL),
                should_continue=lambda: not self._stale(epoch),
            )
        except RenderCancelledError:
            _LOGGER.debug("Generation cancelled")
            return None
        except RenderFailedError as exc:
            _log_exception("render", exc)
            raise
        if self._stale(epoch):
            return None

        metadata = TrackMetadata(
            title=f"{genre} {mood} track",
            genre=genre,
            mood=mood,
            requested_genre=options.genre,
            requested_mood=options.mood,
            tempo=tempo,
            progression=tuple(progression),
            bars=bar_count(options.duration),
            scales=genre_profile(genre).scales,
            pitch_offset=options.pitch,
            instrument_focus=options.instrument_focus,
            percussion_requested=wants_percussion(genre),
            theme=options.theme,
            keywords=options.keywords,
            lyrics=options.lyrics,
        )
        return RenderResult(
            samples=samples,
            waveform=tuple(reduce_waveform(samples)),
            sample_rate=self._renderer.sample_rate,
            notes=tuple(notes),
            voices=voices,
            metadata=metadata,
        )


def generate(
    options: GenerationOptions | None = None,
    *,
    seed: int | None = None,
    settings: EngineSettings | None = None,
    **overrides: Any,
) -> RenderResult:
    """One-shot convenience: build an engine, render once, return the result."""
    resolved = options or GenerationOptions(**overrides)
    if options is not None and overrides:
        resolved = GenerationOptions(**{**options.model_dump(), **overrides})
    with MusicEngine(settings=settings, seed=seed) as engine:
        result = engine.generate(resolved)
    if result is None:
        raise RenderCancelledError("generation was cancelled")
    return result
