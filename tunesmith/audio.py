from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Callable, cast

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .errors import InvalidConfigError

FloatArray = NDArray[np.float32]
AudioNumbers = NDArray[np.floating[Any]] | Sequence[float] | FloatArray

SAMPLE_RATE = 44_100


def ensure_audio_contract(
    audio: AudioNumbers,
    *,
    sample_rate: int = SAMPLE_RATE,
) -> FloatArray:
    """Normalize dtype/range to the audio contract, keeping the channel layout."""

    _ = sample_rate
    samples: FloatArray = np.asarray(audio, dtype=np.float32)
    if samples.ndim == 0:
        samples = samples.reshape(-1)
    if samples.size == 0:
        return samples
    peak = float(np.max(np.abs(samples)))
    if peak > 1.0:
        samples = samples / peak
    return samples


def _looks_like_samples(sequence: Sequence[object]) -> bool:
    match sequence:
        case []:
            return True
        case [int() | float() | np.floating(), *_]:
            return True
        case _:
            return False


def _to_frames(samples: FloatArray) -> FloatArray:
    # soundfile expects (frames, channels); buffers here are (channels, frames)
    if samples.ndim == 2:
        return np.ascontiguousarray(samples.T)
    return samples


def write_wav(
    path: str | Path,
    audio: AudioNumbers,
    *,
    sample_rate: int = SAMPLE_RATE,
) -> Path:
    """Write a mono array, a (channels, samples) array or a sample list to a wav file."""

    target = Path(path)
    audio_obj: object = audio
    match audio_obj:
        case np.ndarray():
            array_float: FloatArray = np.asarray(audio_obj, dtype=np.float32)
        case str() | bytes():  # type: ignore[reportUnnecessaryComparison]
            raise InvalidConfigError("audio must be audio samples")
        case Sequence() as sequence if _looks_like_samples(sequence):
            array_float = np.asarray(sequence, dtype=np.float32)
        case _:
            raise InvalidConfigError("audio must be audio samples")

    if array_float.ndim > 2:
        raise InvalidConfigError(f"audio must be 1-D or (channels, samples), got {array_float.shape}")

    write_fn = getattr(sf, "write", None)
    assert callable(write_fn)
    write_audio = cast(Callable[[Path | str, AudioNumbers, int], None], write_fn)
    normalized = ensure_audio_contract(array_float, sample_rate=sample_rate)
    write_audio(target, _to_frames(normalized), sample_rate)  # type: ignore[reportUnknownMemberType]
    return target
