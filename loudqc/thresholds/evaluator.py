from __future__ import annotations
from loudqc.types import (
    Verdict,
    QCConfig,
    ISSUE_ANALYSIS_ERROR,
    ISSUE_LUFS_HIGH,
    ISSUE_LUFS_LOW,
    ISSUE_TRUE_PEAK_HOT,
    ISSUE_SAMPLE_RATE,
)
from loudqc.utils.quantize import q2

# Loudness window only: absorbs binary representation error at the edges (-14.0 + 0.3 etc).
_EPS = 1e-9


def _lufs_issue(integrated_lufs: float, target: float, tolerance: float) -> str | None:
    """Return LUFS HIGH / LUFS LOW, or None inside the closed window."""
    diff = integrated_lufs - target
    if diff > tolerance + _EPS:
        return ISSUE_LUFS_HIGH
    if diff < -tolerance - _EPS:
        return ISSUE_LUFS_LOW
    return None


def true_peak_hot(true_peak_dbtp: float, ceiling_dbtp: float) -> bool:
    """Strictly above the ceiling is hot; equal to it is compliant."""
    return true_peak_dbtp > ceiling_dbtp


def sample_rate_allowed(sample_rate_hz: int | None, allowed: tuple[int, ...]) -> bool:
    """Unknown sample rates pass."""
    if sample_rate_hz is None:
        return True
    return int(sample_rate_hz) in {int(r) for r in allowed}


def suggested_gain_db(integrated_lufs: float | None, target_lufs: float) -> float | None:
    """Gain that would move the file onto the target, rounded to 0.01 dB."""
    if integrated_lufs is None:
        return None
    return q2(target_lufs - integrated_lufs)


def classify(
    integrated_lufs: float | None,
    true_peak_dbtp: float | None,
    lra_lu: float | None,
    sample_rate_hz: int | None,
    config: QCConfig
) -> tuple[Verdict, tuple[str, ...]]:
    """
    Derive the verdict and the full issue list for one file.

    Every check runs regardless of the others so the issue list names all
    failures. The verdict is ERROR whenever any loudness value is missing,
    otherwise READY only if all checks pass.

    Args:
        integrated_lufs: Integrated loudness (LUFS) or None
        true_peak_dbtp: True peak (dBTP) or None
        lra_lu: Loudness range (LU) or None
        sample_rate_hz: Stream sample rate or None
        config: Thresholds to compare against

    Returns:
        (verdict, issues) with issues in fixed order
    """
    issues: list[str] = []
    analysis_ok = (
        integrated_lufs is not None
        and true_peak_dbtp is not None
        and lra_lu is not None
    )
    if not analysis_ok:
        issues.append(ISSUE_ANALYSIS_ERROR)

    within_window = True
    if integrated_lufs is not None:
        lufs_issue = _lufs_issue(integrated_lufs, config.target_lufs, config.tolerance_lu)
        if lufs_issue:
            issues.append(lufs_issue)
            within_window = False

    peak_safe = True
    if true_peak_dbtp is not None and true_peak_hot(true_peak_dbtp, config.true_peak_ceiling_dbtp):
        issues.append(ISSUE_TRUE_PEAK_HOT)
        peak_safe = False

    rate_ok = sample_rate_allowed(sample_rate_hz, config.allowed_sample_rates)
    if not rate_ok:
        issues.append(ISSUE_SAMPLE_RATE)

    if not analysis_ok:
        return Verdict.ERROR, tuple(issues)
    if within_window and peak_safe and rate_ok:
        return Verdict.READY, tuple(issues)
    return Verdict.ADJUST, tuple(issues)
