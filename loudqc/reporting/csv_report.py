from __future__ import annotations

import csv
import io
from typing import Iterable

from loudqc.types import MeasurementRecord

CSV_FIELDS = [
    "File",
    "Duration",
    "SampleRate_Hz",
    "Bitrate_kbps",
    "BitDepth",
    "Channels",
    "Codec",
    "IntegratedLUFS",
    "SuggestedGain_dB",
    "TruePeak_dBTP",
    "SamplePeak_dBFS",
    "LRA",
    "Status",
    "Issues",
    "Path",
]


def format_duration(seconds: float | None) -> str:
    """mm:ss, minutes unbounded; empty when unknown."""
    if seconds is None or seconds < 0:
        return ""
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def record_row(r: MeasurementRecord) -> dict[str, str]:
    """Flatten one record into CSV column values."""
    return {
        "File": r.file_name,
        "Duration": format_duration(r.stream.duration_s),
        "SampleRate_Hz": _cell(r.stream.sample_rate_hz),
        "Bitrate_kbps": _cell(r.stream.bitrate_kbps),
        "BitDepth": _cell(r.stream.bit_depth),
        "Channels": _cell(r.stream.channels),
        "Codec": _cell(r.stream.codec),
        "IntegratedLUFS": _cell(r.loudness.integrated_lufs),
        "SuggestedGain_dB": _cell(r.suggested_gain_db),
        "TruePeak_dBTP": _cell(r.loudness.true_peak_dbtp),
        "SamplePeak_dBFS": _cell(r.sample_peak_dbfs),
        "LRA": _cell(r.loudness.lra_lu),
        "Status": r.verdict.value,
        "Issues": r.issues_label,
        "Path": r.path,
    }


def render_csv(records: Iterable[MeasurementRecord]) -> str:
    """Render one row per record, in the order given."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for r in records:
        writer.writerow(record_row(r))
    return buffer.getvalue()
