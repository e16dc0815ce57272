# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false
# pyright: reportUnknownArgumentType=false

"""
Synthesis primitives: oscillators, envelopes, effects.

Everything here is deterministic numpy: the same arguments always produce the
same samples. Oscillators never exceed ``amp``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Callable, TypeAlias

import numpy as np
from numpy.typing import NDArray
from scipy.signal import decimate, fftconvolve  # type: ignore[import]

from .audio import SAMPLE_RATE
from .profiles import midi_to_freq
from .schema import OscillatorShape
from .voices import Effect, Envelope

FloatArray: TypeAlias = NDArray[np.float64]
OscFn: TypeAlias = Callable[[float, float, int, float], FloatArray]

# Minimum times to prevent clicks (5ms attack, 10ms release)
MIN_ATTACK_SEC = 0.005
MIN_RELEASE_SEC = 0.01
TAIL_FADE_SEC = 0.01

OVERSAMPLE = 2
# Echoes quieter than this are not rendered
DELAY_FLOOR = 1e-4
# Reverb tails are shaped to fall 60 dB over the decay time
RT60_DB = 60.0
_REVERB_SEED = 0x7E5


def _phase(freq: float, num_samples: int, rate: float) -> FloatArray:
    """Normalised oscillator phase in [0, 1) for ``num_samples`` ticks at ``rate``."""
    return (np.arange(num_samples, dtype=np.float64) * (freq / rate)) % 1.0


def _poly_blep(phase: FloatArray, dt: float) -> FloatArray:
    """Band-limited step residual around each phase wrap (2-point PolyBLEP)."""
    residual = np.zeros_like(phase)
    if dt <= 0.0:
        return residual
    dt = min(dt, 0.5)

    rising = phase < dt
    x = phase[rising] / dt
    residual[rising] = 2.0 * x - x * x - 1.0

    falling = phase > 1.0 - dt
    x = (phase[falling] - 1.0) / dt
    residual[falling] = x * x + 2.0 * x + 1.0
    return residual


def _downsample(signal_high: FloatArray, num_samples: int, amp: float) -> FloatArray:
    signal = np.asarray(decimate(signal_high, OVERSAMPLE, ftype="fir", zero_phase=True))
    signal = signal[:num_samples]
    if len(signal) < num_samples:
        signal = np.pad(signal, (0, num_samples - len(signal)))
    # decimation ringing can push the band-limited edge past full scale
    peak = float(np.max(np.abs(signal), initial=0.0))
    if peak > 1.0:
        signal = signal / peak
    return amp * signal


def generate_sine(
    freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 0.3
) -> FloatArray:
    phase = _phase(freq, max(0, int(sr * duration)), sr)
    return amp * np.sin(2.0 * np.pi * phase)


def generate_triangle(
    freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 0.3
) -> FloatArray:
    phase = _phase(freq, max(0, int(sr * duration)), sr)
    return amp * (1.0 - 4.0 * np.abs(phase - 0.5))


def generate_sawtooth(
    freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 0.3
) -> FloatArray:
    """Rising sawtooth, PolyBLEP-corrected at 2x oversampling."""
    num_samples = max(0, int(sr * duration))
    if num_samples == 0:
        return np.zeros(0)
    rate = sr * OVERSAMPLE
    phase = _phase(freq, num_samples * OVERSAMPLE, rate)
    naive = 2.0 * phase - 1.0
    return _downsample(naive - _poly_blep(phase, freq / rate), num_samples, amp)


def generate_square(
    freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 0.3
) -> FloatArray:
    """50% duty square, PolyBLEP-corrected on both edges at 2x oversampling."""
    num_samples = max(0, int(sr * duration))
    if num_samples == 0:
        return np.zeros(0)
    rate = sr * OVERSAMPLE
    dt = freq / rate
    phase = _phase(freq, num_samples * OVERSAMPLE, rate)
    naive = np.where(phase < 0.5, 1.0, -1.0)
    edges = _poly_blep(phase, dt) - _poly_blep((phase + 0.5) % 1.0, dt)
    return _downsample(naive + edges, num_samples, amp)


OSC_FUNCTIONS: Mapping[OscillatorShape, OscFn] = MappingProxyType(
    {
        "sine": generate_sine,
        "triangle": generate_triangle,
        "sawtooth": generate_sawtooth,
        "square": generate_square,
    }
)


def apply_adsr(
    signal: FloatArray,
    envelope: Envelope,
    hold: float,
    sr: int = SAMPLE_RATE,
) -> FloatArray:
    """
    Apply an ADSR envelope with note-off after ``hold`` seconds.

    Attack and decay run from note-on; the sustain level is held until
    note-off, then the release ramps from wherever the envelope got to.
    ``signal`` is expected to be ``hold + release`` seconds long.
    """
    attack = max(envelope.attack, MIN_ATTACK_SEC)
    release = max(envelope.release, MIN_RELEASE_SEC)
    total = len(signal)
    if total == 0:
        return signal

    t = np.arange(total, dtype=np.float64) / sr
    decay = max(envelope.decay, 1e-6)
    sustain = envelope.sustain

    gate = np.where(
        t < attack,
        t / attack,
        np.where(
            t < attack + decay,
            1.0 + (sustain - 1.0) * (t - attack) / decay,
            sustain,
        ),
    )

    hold_index = min(total, int(hold * sr))
    level_at_release = float(gate[hold_index - 1]) if hold_index > 0 else 0.0
    env = gate.copy()
    if hold_index < total:
        tail_t = t[hold_index:] - hold
        env[hold_index:] = np.clip(level_at_release * (1.0 - tail_t / release), 0.0, None)

    return signal * env


def apply_delay(
    signal: FloatArray, delay_time: float, feedback: float, wet: float, sr: int = SAMPLE_RATE
) -> FloatArray:
    """
    Feedback echo mixed with the dry signal.

    The wet path holds echoes ``k * delay_time`` late at ``feedback ** (k - 1)``;
    the output is ``(1 - wet) * dry + wet * echoes``.
    """
    wet = float(np.clip(wet, 0.0, 1.0))
    step = int(delay_time * sr)
    if step <= 0 or wet == 0.0:
        return signal
    echoes = np.zeros_like(signal)
    gain = 1.0
    offset = step
    while offset < len(signal) and gain >= DELAY_FLOOR:
        echoes[offset:] += signal[:-offset] * gain
        gain *= feedback
        offset += step
    return (1.0 - wet) * signal + wet * echoes


def reverb_impulse(decay: float, sr: int = SAMPLE_RATE) -> FloatArray:
    """Unit-energy noise burst whose envelope falls 60 dB over ``decay`` seconds."""
    length = max(1, int(decay * sr))
    t = np.arange(length, dtype=np.float64) / sr
    envelope = 10.0 ** (-(RT60_DB / 20.0) * t / max(decay, 1e-6))
    noise = np.random.default_rng(_REVERB_SEED).standard_normal(length)
    impulse = noise * envelope
    return impulse / np.sqrt(np.sum(impulse * impulse))


def apply_reverb(signal: FloatArray, decay: float, wet: float, sr: int = SAMPLE_RATE) -> FloatArray:
    """Convolution reverb with a ``decay``-second (RT60) tail, ``wet`` 0..1 mix."""
    wet = float(np.clip(wet, 0.0, 1.0))
    if wet == 0.0 or signal.size == 0 or decay <= 0.0:
        return signal
    tail = fftconvolve(signal, reverb_impulse(decay, sr))[: len(signal)]
    return (1.0 - wet) * signal + wet * tail


def apply_distortion(signal: FloatArray, amount: float) -> FloatArray:
    """Soft-clip waveshaper; ``amount`` 0..1 sets the drive."""
    amount = float(np.clip(amount, 0.0, 1.0))
    if amount <= 0.0 or signal.size == 0:
        return signal
    drive = 1.0 + 20.0 * amount
    return np.tanh(signal * drive) / np.tanh(drive)


def apply_effect(signal: FloatArray, effect: Effect, sr: int = SAMPLE_RATE) -> FloatArray:
    match effect.kind:
        case "reverb":
            return apply_reverb(
                signal,
                decay=effect.param("decay", 2.0),
                wet=effect.param("wet", 0.3),
                sr=sr,
            )
        case "distortion":
            return apply_distortion(signal, effect.param("amount", 0.2))
        case "delay":
            return apply_delay(
                signal,
                delay_time=effect.param("time", 0.25),
                feedback=effect.param("feedback", 0.3),
                wet=effect.param("wet", 0.3),
                sr=sr,
            )
        case _:
            raise ValueError(f"Unknown effect kind: {effect.kind!r}")


def apply_effect_chain(
    signal: FloatArray, effects: Iterable[Effect], sr: int = SAMPLE_RATE
) -> FloatArray:
    output = signal
    for effect in effects:
        output = apply_effect(output, effect, sr)
    return output


def db_to_gain(db: float) -> float:
    return float(10 ** (db / 20.0))


def render_tone(
    shape: OscillatorShape,
    pitch: float,
    hold: float,
    envelope: Envelope,
    velocity: float,
    sr: int = SAMPLE_RATE,
) -> FloatArray:
    """One enveloped note: ``hold`` seconds gated, plus the release tail."""
    osc = OSC_FUNCTIONS.get(shape, generate_sine)
    length = max(0.0, hold) + max(envelope.release, MIN_RELEASE_SEC)
    signal = osc(midi_to_freq(pitch), length, sr, float(np.clip(velocity, 0.0, 1.0)))
    return apply_adsr(signal, envelope, hold, sr)


def add_note(bus: FloatArray, tone: FloatArray, start_index: int, sr: int = SAMPLE_RATE) -> None:
    """Mix ``tone`` into ``bus`` in place; a tone running past the end is cut with a short fade."""
    if not 0 <= start_index < len(bus):
        return
    room = len(bus) - start_index
    if len(tone) > room:
        tone = tone[:room].copy()
        fade = min(int(sr * TAIL_FADE_SEC), room // 4)
        if fade > 1:
            tone[-fade:] *= np.linspace(1.0, 0.0, fade)
    bus[start_index : start_index + len(tone)] += tone
