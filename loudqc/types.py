from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Verdict(str, Enum):
    READY = "READY"
    ADJUST = "ADJUST"
    ERROR = "ERROR"


ISSUE_ANALYSIS_ERROR = "ANALYSIS ERROR"
ISSUE_LUFS_HIGH = "LUFS HIGH"
ISSUE_LUFS_LOW = "LUFS LOW"
ISSUE_TRUE_PEAK_HOT = "TRUE PEAK HOT"
ISSUE_SAMPLE_RATE = "SAMPLE RATE CHECK"

DEFAULT_EXTENSIONS = (
    ".wav", ".flac", ".mp3", ".m4a", ".aac", ".ogg", ".opus", ".aif", ".aiff",
)


@dataclass(frozen=True)
class StreamInfo:
    duration_s: float | None = None
    sample_rate_hz: int | None = None
    bit_depth: int | None = None
    channels: int | None = None
    codec: str | None = None
    bitrate_kbps: int | None = None


@dataclass(frozen=True)
class LoudnessMeasurement:
    integrated_lufs: float | None = None
    true_peak_dbtp: float | None = None
    lra_lu: float | None = None

    @property
    def complete(self) -> bool:
        return (
            self.integrated_lufs is not None
            and self.true_peak_dbtp is not None
            and self.lra_lu is not None
        )


@dataclass(frozen=True)
class QCConfig:
    """Thresholds and scan/tool settings for one run."""
    target_lufs: float = -14.0
    tolerance_lu: float = 0.5
    true_peak_ceiling_dbtp: float = -1.0
    allowed_sample_rates: tuple[int, ...] = (44100, 48000)
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    recursive: bool = True
    timeout_s: float | None = 600.0
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"
    name: str = "streaming"


@dataclass(frozen=True)
class MeasurementRecord:
    file_name: str
    path: str
    stream: StreamInfo
    loudness: LoudnessMeasurement
    sample_peak_dbfs: float | None
    suggested_gain_db: float | None
    verdict: Verdict
    issues: tuple[str, ...]
    warnings: tuple[str, ...] = field(default=())

    @property
    def issues_label(self) -> str:
        return "|".join(self.issues) if self.issues else "NONE"

    def to_dict(self) -> dict:
        return {
            "file": self.file_name,
            "path": self.path,
            "stream": {
                "duration_s": self.stream.duration_s,
                "sample_rate_hz": self.stream.sample_rate_hz,
                "bit_depth": self.stream.bit_depth,
                "channels": self.stream.channels,
                "codec": self.stream.codec,
                "bitrate_kbps": self.stream.bitrate_kbps,
            },
            "loudness": {
                "integrated_lufs": self.loudness.integrated_lufs,
                "true_peak_dbtp": self.loudness.true_peak_dbtp,
                "lra_lu": self.loudness.lra_lu,
                "sample_peak_dbfs": self.sample_peak_dbfs,
            },
            "suggested_gain_db": self.suggested_gain_db,
            "status": self.verdict.value,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
        }
