"""
LoudQC - Loudness Compliance Batch Analyzer

Measures audio files with ffmpeg and classifies each one against
loudness delivery targets.
"""
from loudqc.version import __version__
from loudqc.types import (
    Verdict,
    StreamInfo,
    LoudnessMeasurement,
    QCConfig,
    MeasurementRecord,
)

__all__ = [
    "__version__",
    "Verdict",
    "StreamInfo",
    "LoudnessMeasurement",
    "QCConfig",
    "MeasurementRecord",
]
