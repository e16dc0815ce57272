"""
Offline (faster than real time) rendering of a note stream to a sample buffer.

Notes are expanded into scheduled hits per voice role, rendered chunk by chunk
into one bus per role, then each bus goes through its effect chain and gain
before the buses are summed. Progress is reported at chunk checkpoints.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from .audio import SAMPLE_RATE, ensure_audio_contract
from .errors import RenderCancelledError, RenderFailedError
from .sequencer import NoteEvent
from .synth import FloatArray, add_note, apply_effect_chain, render_tone
from .voices import VoiceConfig, VoiceSet, wants_percussion

_LOGGER = logging.getLogger("tunesmith.renderer")

ProgressSink = Callable[[int], None]

ACCOMPANIMENT_VELOCITY = 0.7
BASS_VELOCITY = 0.9
BASS_LENGTH = 1.5
MAX_PROGRESS_BEFORE_DONE = 98


@dataclass(frozen=True)
class ScheduledHit:
    """One voice trigger: all ``pitches`` start together and share a length."""

    role: str
    start: float
    hold: float
    pitches: tuple[int, ...]
    velocity: float


def schedule_hits(
    notes: Iterable[NoteEvent],
    voices: VoiceSet,
    tempo: float,
    duration: float,
) -> list[ScheduledHit]:
    """Place every note on the transport; hits at or past the end are dropped."""
    seconds_per_beat = 60.0 / max(float(tempo), 1e-6)
    hits: list[ScheduledHit] = []
    for note in notes:
        start = note.start_beat * seconds_per_beat
        if start >= duration:
            continue
        hold = note.duration_beats * seconds_per_beat
        hits.append(ScheduledHit("lead", start, hold, (note.pitch,), note.velocity))
        if voices.accompaniment is not None:
            hits.append(
                ScheduledHit(
                    "accompaniment",
                    start,
                    hold,
                    tuple(note.chord),
                    note.velocity * ACCOMPANIMENT_VELOCITY,
                )
            )
        if voices.bass is not None:
            hits.append(
                ScheduledHit(
                    "bass",
                    start,
                    hold * BASS_LENGTH,
                    (note.bass,),
                    note.velocity * BASS_VELOCITY,
                )
            )
    return hits


@dataclass
class _RenderJob:
    frames: int
    pending: deque[ScheduledHit]
    should_continue: Callable[[], bool] | None = None
    buses: dict[str, FloatArray] = field(default_factory=dict)
    cancelled: bool = False
    last_progress: int = -1


class OfflineRenderer:
    """Renders one piece at a time; ``stop()`` cancels the piece in flight."""

    def __init__(
        self,
        *,
        sample_rate: int = SAMPLE_RATE,
        channels: int = 2,
        speed: float = 0.5,
        chunk_size: int = 16,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = max(1, channels)
        self._speed = speed
        self._chunk_size = max(1, chunk_size)
        self._clock = clock
        self._lock = threading.RLock()
        self._job: _RenderJob | None = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._job is not None

    def render(
        self,
        notes: Sequence[NoteEvent],
        voices: VoiceSet,
        tempo: float,
        duration: float,
        on_progress: ProgressSink | None = None,
        *,
        genre: str | None = None,
        mood: str | None = None,
        drum_level: float = 70.0,
        should_continue: Callable[[], bool] | None = None,
    ) -> NDArray[np.float32]:
        """
        Render ``notes`` against ``voices`` into a ``(channels, frames)`` buffer.

        ``should_continue`` is polled at every checkpoint; once it returns False
        the render is cancelled as if ``stop()`` had been called.

        Raises:
            RenderCancelledError: ``stop()`` was called (or ``should_continue``
                returned False) while rendering.
            RenderFailedError: synthesis failed; the renderer stays usable.
        """
        duration = max(0.0, float(duration))
        frames = int(round(duration * self.sample_rate))
        job = self._begin(schedule_hits(notes, voices, tempo, duration), frames, should_continue)
        try:
            self._emit(job, on_progress, 0)
            if genre is not None:
                job.pending.extend(self._schedule_percussion(genre, mood, tempo, drum_level))

            budget = max(duration * self._speed, 1e-9)
            started = self._clock()
            while chunk := self._next_chunk(job):
                for hit in chunk:
                    self._render_hit(job, voices, hit)
                elapsed = self._clock() - started
                progress = min(MAX_PROGRESS_BEFORE_DONE, int(elapsed / budget * 100))
                self._emit(job, on_progress, progress)

            mix = self._mixdown(job, voices)
            self._emit(job, on_progress, 100)
            return mix
        except RenderCancelledError:
            _LOGGER.debug("Render cancelled")
            raise
        except Exception as exc:
            raise RenderFailedError(f"Rendering failed: {exc}") from exc
        finally:
            self._finish(job)

    def stop(self) -> None:
        """Cancel the render in flight, dropping its schedule and buses. Idempotent."""
        with self._lock:
            job = self._job
            if job is None:
                return
            job.cancelled = True
            job.pending.clear()
            job.buses.clear()
            self._job = None
        _LOGGER.debug("Stopped active render")

    def _begin(
        self,
        hits: list[ScheduledHit],
        frames: int,
        should_continue: Callable[[], bool] | None,
    ) -> _RenderJob:
        # A new render supersedes any render still in flight.
        self.stop()
        job = _RenderJob(frames=frames, pending=deque(hits), should_continue=should_continue)
        with self._lock:
            self._job = job
        return job

    def _finish(self, job: _RenderJob) -> None:
        with self._lock:
            job.pending.clear()
            job.buses.clear()
            if self._job is job:
                self._job = None

    def _check(self, job: _RenderJob) -> None:
        if job.should_continue is not None and not job.should_continue():
            job.cancelled = True
        if job.cancelled:
            raise RenderCancelledError("render was stopped")

    def _next_chunk(self, job: _RenderJob) -> list[ScheduledHit]:
        with self._lock:
            self._check(job)
            count = min(self._chunk_size, len(job.pending))
            return [job.pending.popleft() for _ in range(count)]

    def _emit(self, job: _RenderJob, sink: ProgressSink | None, value: int) -> None:
        with self._lock:
            self._check(job)
            if sink is None or value <= job.last_progress:
                return
            job.last_progress = value
        # The sink runs unlocked: it may block on the thread calling stop().
        try:
            sink(value)
        except Exception as exc:
            _LOGGER.warning("Progress callback failed: %s", exc, exc_info=True)

    def _render_hit(self, job: _RenderJob, voices: VoiceSet, hit: ScheduledHit) -> None:
        self._check(job)
        voice = _voice_for(voices, hit.role)
        if voice is None:
            return
        bus = job.buses.get(hit.role)
        if bus is None:
            bus = np.zeros(job.frames)
            job.buses[hit.role] = bus
        start_index = int(round(hit.start * self.sample_rate))
        for pitch in hit.pitches:
            tone = render_tone(
                voice.oscillator,
                pitch,
                hit.hold,
                voice.envelope,
                hit.velocity,
                self.sample_rate,
            )
            add_note(bus, tone, start_index, self.sample_rate)

    def _mixdown(self, job: _RenderJob, voices: VoiceSet) -> NDArray[np.float32]:
        with self._lock:
            self._check(job)
            buses = dict(job.buses)
        mono = np.zeros(job.frames)
        for role, bus in buses.items():
            voice = _voice_for(voices, role)
            if voice is None:
                continue
            processed = apply_effect_chain(bus, voice.effects, self.sample_rate)
            mono += processed * voice.gain
        normalized = ensure_audio_contract(mono, sample_rate=self.sample_rate)
        return np.tile(normalized, (self.channels, 1)).astype(np.float32)

    def _schedule_percussion(
        self, genre: str, mood: str | None, tempo: float, drum_level: float
    ) -> list[ScheduledHit]:
        if not wants_percussion(genre):
            return []
        # TODO: schedule a drum voice once sample-based percussion lands.
        _LOGGER.info(
            "Adding drum pattern for %s in %s mood at %d BPM (level %.0f): not implemented yet",
            genre,
            mood,
            int(tempo),
            drum_level,
        )
        return []


def _voice_for(voices: VoiceSet, role: str) -> VoiceConfig | None:
    match role:
        case "lead":
            return voices.lead
        case "accompaniment":
            return voices.accompaniment
        case "bass":
            return voices.bass
        case "percussion":
            return voices.percussion
        case _:
            return None
