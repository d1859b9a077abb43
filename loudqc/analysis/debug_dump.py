"""Troubleshooting artifacts for failed loudness extraction."""
from __future__ import annotations
from datetime import datetime
from pathlib import Path


def run_timestamp(now: datetime | None = None) -> str:
    """Timestamp tag shared by every artifact written in one run."""
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


def write_debug_dump(
    debug_dir: Path,
    audio_path: str,
    run_stamp: str,
    raw_output: str,
    span: str | None = None
) -> list[Path]:
    """
    Write the raw loudnorm output and the extracted JSON span (if any).

    Returns the written paths. Write failures propagate as OSError; the
    caller decides whether they matter.
    """
    debug_dir.mkdir(parents=True, exist_ok=True)
    base = Path(audio_path).stem
    written: list[Path] = []
    raw_path = debug_dir / f"{base}_{run_stamp}_loudnorm_raw.txt"
    raw_path.write_text(raw_output, encoding="utf-8")
    written.append(raw_path)
    if span is not None:
        span_path = debug_dir / f"{base}_{run_stamp}_loudnorm_span.json"
        span_path.write_text(span, encoding="utf-8")
        written.append(span_path)
    return written
