from __future__ import annotations

import json

import pytest

from loudqc.profiles.loader import (
    BUILTIN_PROFILES,
    apply_overrides,
    load_profile,
    normalize_extension,
    profile_from_dict,
    profile_to_dict,
)
from loudqc.profiles.validator import validate_profile_dict
from loudqc.types import QCConfig


def test_default_profile_matches_streaming_defaults():
    cfg = load_profile(None)
    assert cfg.name == "streaming"
    assert cfg.target_lufs == -14.0
    assert cfg.tolerance_lu == 0.5
    assert cfg.true_peak_ceiling_dbtp == -1.0
    assert cfg.allowed_sample_rates == (44100, 48000)


@pytest.mark.parametrize("name", sorted(BUILTIN_PROFILES))
def test_builtin_profiles_validate(name):
    validate_profile_dict(BUILTIN_PROFILES[name])
    assert load_profile(name).name == name


def test_ebu_profile_thresholds():
    cfg = load_profile("ebu_r128")
    assert cfg.target_lufs == -23.0
    assert cfg.allowed_sample_rates == (48000,)


def test_file_profile_layers_over_default(tmp_path):
    path = tmp_path / "club.json"
    path.write_text(json.dumps({
        "loudness": {"target_lufs_i": -9.0},
        "scan": {"extensions": ["WAV", ".Flac"], "recursive": False},
        "tools": {"timeout_s": None},
    }), encoding="utf-8")
    cfg = load_profile(str(path))
    assert cfg.name == "club"
    assert cfg.target_lufs == -9.0
    assert cfg.true_peak_ceiling_dbtp == -1.0
    assert cfg.extensions == (".wav", ".flac")
    assert cfg.recursive is False
    assert cfg.timeout_s is None


def test_unknown_profile_name():
    with pytest.raises(ValueError, match="Unknown profile"):
        load_profile("does_not_exist")


def test_validator_collects_all_errors():
    bad = {
        "loudness": {"target_lufs_i": 3.0, "tolerance_lu": -1},
        "format": {"allowed_sample_rates_hz": [48000, "x"]},
        "scan": {"recursive": "yes"},
    }
    with pytest.raises(ValueError) as excinfo:
        validate_profile_dict(bad)
    msg = str(excinfo.value)
    assert "target_lufs_i must be <= 0" in msg
    assert "tolerance_lu must be a non-negative number" in msg
    assert "allowed_sample_rates_hz[1]" in msg
    assert "scan.recursive must be a boolean" in msg


def test_validator_rejects_unknown_keys():
    with pytest.raises(ValueError, match="unknown key: loudness.target"):
        validate_profile_dict({"loudness": {"target": -14}})
    with pytest.raises(ValueError, match="unknown section: thresholds"):
        validate_profile_dict({"thresholds": {}})


def test_overrides_and_round_trip():
    cfg = apply_overrides(
        QCConfig(),
        target_lufs=-16.0,
        allowed_sample_rates=[96000, 48000, 48000],
        extensions=["MP3"],
        recursive=None,
    )
    assert cfg.target_lufs == -16.0
    assert cfg.allowed_sample_rates == (48000, 96000)
    assert cfg.extensions == (".mp3",)
    assert cfg.recursive is True
    assert profile_from_dict(profile_to_dict(cfg)) == cfg


def test_normalize_extension():
    assert normalize_extension(" WAV ") == ".wav"
    assert normalize_extension(".aiff") == ".aiff"
