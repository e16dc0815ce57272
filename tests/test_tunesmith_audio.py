from pathlib import Path

import numpy as np
import pytest
import soundfile as sf  # type: ignore[import]

from tunesmith.audio import ensure_audio_contract, write_wav
from tunesmith.errors import InvalidConfigError


def test_write_wav_accepts_sequence(tmp_path: Path) -> None:
    target = tmp_path / "seq.wav"
    samples = [0.0, 0.1, -0.1, 0.0]

    write_wav(target, samples, sample_rate=22_050)

    assert target.exists()
    assert target.stat().st_size > 0


def test_write_wav_channels_first(tmp_path: Path) -> None:
    target = tmp_path / "stereo.wav"
    stereo = np.zeros((2, 800), dtype=np.float32)
    stereo[1] = 0.5

    write_wav(target, stereo, sample_rate=8_000)

    data, rate = sf.read(str(target), dtype="float32")
    assert rate == 8_000
    assert data.shape == (800, 2)
    assert np.allclose(data[:, 1], 0.5, atol=1e-4)


def test_write_wav_rejects_non_audio(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigError):
        write_wav(tmp_path / "bad.wav", "not audio")  # type: ignore[arg-type]
    with pytest.raises(InvalidConfigError):
        write_wav(tmp_path / "bad.wav", np.zeros((1, 2, 3)))


def test_ensure_audio_contract_normalizes_peak() -> None:
    audio = np.array([[2.0, -1.0], [0.5, 0.0]])
    out = ensure_audio_contract(audio)
    assert out.dtype == np.float32
    assert out.shape == (2, 2)
    assert float(np.max(np.abs(out))) == pytest.approx(1.0)


def test_ensure_audio_contract_keeps_quiet_audio() -> None:
    audio = np.array([0.25, -0.5], dtype=np.float32)
    assert np.array_equal(ensure_audio_contract(audio), audio)
    assert ensure_audio_contract(np.zeros(0)).size == 0
