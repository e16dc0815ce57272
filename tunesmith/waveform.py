from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

WAVEFORM_POINTS = 100


def first_channel(buffer: NDArray[Any] | list[float]) -> NDArray[np.float64]:
    """Channel 0 of a ``(channels, samples)`` buffer, or the buffer itself if mono."""
    samples = np.asarray(buffer, dtype=np.float64)
    if samples.ndim >= 2:
        if samples.shape[0] == 0:
            return np.zeros(0)
        return samples[0].reshape(-1)
    return samples.reshape(-1)


def reduce_waveform(
    buffer: NDArray[Any] | list[float], points: int = WAVEFORM_POINTS
) -> list[float]:
    """
    Peak-magnitude summary of a rendered buffer for display.

    The first channel is cut into ``points`` contiguous blocks of
    ``len // points`` samples (any remainder tail is ignored) and each block
    contributes ``max(|x|) * 100``, clipped to [0, 100].

    Buffers shorter than ``points`` samples have no full block; there each
    sample becomes one point and the remaining points are 0. An empty buffer
    therefore reduces to all zeros. The result always has ``points`` entries.
    """
    if points <= 0:
        raise ValueError(f"points must be positive, got {points}")
    samples = np.abs(first_channel(buffer))
    samples = np.nan_to_num(samples, nan=0.0, posinf=1.0)
    waveform = np.zeros(points)

    block_size = len(samples) // points
    if block_size == 0:
        count = min(len(samples), points)
        waveform[:count] = samples[:count]
    else:
        blocks = samples[: block_size * points].reshape(points, block_size)
        waveform = blocks.max(axis=1)

    return [float(value) for value in np.clip(waveform * 100.0, 0.0, 100.0)]
