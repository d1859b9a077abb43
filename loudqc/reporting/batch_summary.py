from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable

import numpy as np

from loudqc.types import MeasurementRecord, QCConfig, Verdict


def _summary_stats(values: Iterable[float | None]) -> dict | None:
    vals = [float(v) for v in values if isinstance(v, (int, float))]
    if not vals:
        return None
    arr = np.asarray(vals, dtype=np.float64)
    return {
        "count": int(arr.size),
        "mean": float(np.mean(arr)),
        "min": float(np.min(arr)),
        "p50": float(np.percentile(arr, 50)),
        "p90": float(np.percentile(arr, 90)),
        "max": float(np.max(arr)),
    }


def _mean(values: Iterable[float | None]) -> float | None:
    stats = _summary_stats(values)
    return stats["mean"] if stats else None


def sort_records(records: Iterable[MeasurementRecord]) -> list[MeasurementRecord]:
    """Order records by file name (case-insensitive), then path."""
    return sorted(records, key=lambda r: (r.file_name.casefold(), r.file_name, r.path))


def build_batch_summary(
    records: list[MeasurementRecord],
    config: QCConfig,
    *,
    generated_utc: str | None = None
) -> dict:
    """Aggregate counts, averages and metric distributions across a run."""
    counts = {v.value: 0 for v in Verdict}
    issue_counts: Counter[str] = Counter()
    for r in records:
        counts[r.verdict.value] += 1
        issue_counts.update(r.issues)

    metrics = {
        "integrated_lufs": [r.loudness.integrated_lufs for r in records],
        "true_peak_dbtp": [r.loudness.true_peak_dbtp for r in records],
        "sample_peak_dbfs": [r.sample_peak_dbfs for r in records],
        "lra_lu": [r.loudness.lra_lu for r in records],
        "suggested_gain_db": [r.suggested_gain_db for r in records],
    }
    distributions = {k: _summary_stats(v) for k, v in metrics.items()}
    distributions = {k: v for k, v in distributions.items() if v is not None}

    generated_utc = generated_utc or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    return {
        "schema_version": "1.0",
        "generated_utc": generated_utc,
        "totals": {
            "files": len(records),
            "status_counts": counts,
        },
        "averages": {
            "integrated_lufs": _mean(metrics["integrated_lufs"]),
            "lra_lu": _mean(metrics["lra_lu"]),
        },
        "issue_counts": dict(sorted(issue_counts.items(), key=lambda kv: (-kv[1], kv[0]))),
        "distributions": distributions,
        "config": {
            "profile": config.name,
            "target_lufs": config.target_lufs,
            "tolerance_lu": config.tolerance_lu,
            "true_peak_ceiling_dbtp": config.true_peak_ceiling_dbtp,
            "allowed_sample_rates": list(config.allowed_sample_rates),
        },
    }
