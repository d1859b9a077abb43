from __future__ import annotations

import shutil

import numpy as np
import pytest

from loudqc.cli.main import analyze_file
from loudqc.types import QCConfig, Verdict

pytestmark = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)


def test_real_ffmpeg_measures_sine(tmp_path):
    sf = pytest.importorskip("soundfile")
    fs = 48000
    t = np.arange(0, 5.0, 1.0 / fs)
    tone = 0.25 * np.sin(2.0 * np.pi * 1000.0 * t)
    path = tmp_path / "tone.wav"
    sf.write(path, np.stack([tone, tone], axis=1), fs, subtype="PCM_16")

    record = analyze_file(str(path), QCConfig(timeout_s=120.0))
    assert record.stream.sample_rate_hz == 48000
    assert record.stream.channels == 2
    assert record.stream.bit_depth == 16
    assert record.loudness.complete
    assert record.verdict in (Verdict.READY, Verdict.ADJUST)
    # -12.04 dBFS sine
    assert record.sample_peak_dbfs == pytest.approx(-12.04, abs=0.1)
    assert record.suggested_gain_db == pytest.approx(-14.0 - record.loudness.integrated_lufs, abs=0.01)
