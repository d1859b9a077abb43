from __future__ import annotations

import pytest

from loudqc.thresholds.evaluator import classify, suggested_gain_db, true_peak_hot
from loudqc.types import QCConfig, Verdict

CONFIG = QCConfig(
    target_lufs=-14.0,
    tolerance_lu=0.5,
    true_peak_ceiling_dbtp=-1.0,
    allowed_sample_rates=(44100, 48000),
)


def test_compliant_file_is_ready():
    verdict, issues = classify(-14.0, -1.0, 6.0, 48000, CONFIG)
    assert verdict == Verdict.READY
    assert issues == ()
    assert suggested_gain_db(-14.0, CONFIG.target_lufs) == 0.0


def test_all_failures_are_listed_in_order():
    verdict, issues = classify(-9.0, -0.3, 5.0, 96000, CONFIG)
    assert verdict == Verdict.ADJUST
    assert issues == ("LUFS HIGH", "TRUE PEAK HOT", "SAMPLE RATE CHECK")


def test_quiet_file_gets_lufs_low():
    verdict, issues = classify(-20.0, -3.0, 5.0, 44100, CONFIG)
    assert verdict == Verdict.ADJUST
    assert issues == ("LUFS LOW",)


@pytest.mark.parametrize("lufs", [-13.5, -14.5])
def test_window_boundaries_are_inside(lufs):
    verdict, issues = classify(lufs, -2.0, 5.0, 48000, CONFIG)
    assert verdict == Verdict.READY
    assert issues == ()


def test_window_boundary_with_inexact_tolerance():
    cfg = QCConfig(target_lufs=-14.0, tolerance_lu=0.3)
    verdict, issues = classify(-13.7, -2.0, 5.0, 48000, cfg)
    assert verdict == Verdict.READY
    verdict, issues = classify(-13.69, -2.0, 5.0, 48000, cfg)
    assert issues == ("LUFS HIGH",)


@pytest.mark.parametrize("lufs", [-13.49, -14.51, -30.0, 0.0])
def test_never_ready_outside_window(lufs):
    verdict, _ = classify(lufs, -2.0, 5.0, 48000, CONFIG)
    assert verdict != Verdict.READY


def test_true_peak_at_ceiling_is_compliant():
    assert not true_peak_hot(-1.0, -1.0)
    assert true_peak_hot(-0.99, -1.0)
    assert true_peak_hot(-1.0 + 1e-12, -1.0)
    verdict, issues = classify(-14.0, -1.0, 5.0, 48000, CONFIG)
    assert verdict == Verdict.READY
    assert "TRUE PEAK HOT" not in issues


def test_missing_loudness_range_is_error_but_keeps_other_tags():
    verdict, issues = classify(-14.0, 0.5, None, 48000, CONFIG)
    assert verdict == Verdict.ERROR
    assert issues == ("ANALYSIS ERROR", "TRUE PEAK HOT")


@pytest.mark.parametrize("values", [
    (None, -1.0, 5.0),
    (-14.0, None, 5.0),
    (-14.0, -1.0, None),
    (None, None, None),
])
def test_error_iff_any_loudness_value_missing(values):
    verdict, issues = classify(*values, 48000, CONFIG)
    assert verdict == Verdict.ERROR
    assert issues[0] == "ANALYSIS ERROR"


def test_all_missing_with_bad_rate_lists_rate_too():
    verdict, issues = classify(None, None, None, 22050, CONFIG)
    assert verdict == Verdict.ERROR
    assert issues == ("ANALYSIS ERROR", "SAMPLE RATE CHECK")


def test_unknown_sample_rate_does_not_degrade_verdict():
    verdict, issues = classify(-14.2, -1.5, 7.0, None, CONFIG)
    assert verdict == Verdict.READY
    assert issues == ()


def test_suggested_gain_rounding():
    assert suggested_gain_db(-18.3, -14.0) == 4.3
    assert suggested_gain_db(-9.004, -14.0) == -5.0
    assert suggested_gain_db(None, -14.0) is None
