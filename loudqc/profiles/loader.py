from __future__ import annotations
import json
from dataclasses import replace
from pathlib import Path
from typing import Any

from loudqc.types import QCConfig
from loudqc.profiles.validator import validate_profile_dict

DEFAULT_PROFILE = "streaming"

BUILTIN_PROFILES: dict[str, dict] = {
    "streaming": {
        "profile": {"name": "streaming", "description": "Music streaming services (-14 LUFS, -1 dBTP)"},
        "loudness": {"target_lufs_i": -14.0, "tolerance_lu": 0.5, "max_true_peak_dbtp": -1.0},
        "format": {"allowed_sample_rates_hz": [44100, 48000]},
    },
    "apple_music": {
        "profile": {"name": "apple_music", "description": "Apple Music Sound Check (-16 LUFS, -1 dBTP)"},
        "loudness": {"target_lufs_i": -16.0, "tolerance_lu": 0.5, "max_true_peak_dbtp": -1.0},
        "format": {"allowed_sample_rates_hz": [44100, 48000]},
    },
    "podcast": {
        "profile": {"name": "podcast", "description": "Spoken-word podcast delivery (-16 LUFS, -1 dBTP)"},
        "loudness": {"target_lufs_i": -16.0, "tolerance_lu": 1.0, "max_true_peak_dbtp": -1.0},
        "format": {"allowed_sample_rates_hz": [44100, 48000]},
    },
    "ebu_r128": {
        "profile": {"name": "ebu_r128", "description": "EBU R128 broadcast (-23 LUFS, -1 dBTP)"},
        "loudness": {"target_lufs_i": -23.0, "tolerance_lu": 1.0, "max_true_peak_dbtp": -1.0},
        "format": {"allowed_sample_rates_hz": [48000]},
    },
    "atsc_a85": {
        "profile": {"name": "atsc_a85", "description": "ATSC A/85 broadcast (-24 LKFS, -2 dBTP)"},
        "loudness": {"target_lufs_i": -24.0, "tolerance_lu": 2.0, "max_true_peak_dbtp": -2.0},
        "format": {"allowed_sample_rates_hz": [48000]},
    },
}


def normalize_extension(ext: str) -> str:
    """'.WAV', 'wav' and ' .wav ' all become '.wav'."""
    e = ext.strip().lower()
    if not e.startswith("."):
        e = "." + e
    return e


def profile_from_dict(j: dict, base: QCConfig | None = None) -> QCConfig:
    """
    Build a QCConfig from a profile dictionary.

    Args:
        j: Profile dictionary (validated here)
        base: Values used for keys the profile omits

    Returns:
        QCConfig with the profile applied over base
    """
    validate_profile_dict(j)
    cfg = base or QCConfig()
    changes: dict[str, Any] = {}

    name = j.get("profile", {}).get("name")
    if name:
        changes["name"] = name.strip()

    loud = j.get("loudness", {})
    if "target_lufs_i" in loud:
        changes["target_lufs"] = float(loud["target_lufs_i"])
    if "tolerance_lu" in loud:
        changes["tolerance_lu"] = float(loud["tolerance_lu"])
    if "max_true_peak_dbtp" in loud:
        changes["true_peak_ceiling_dbtp"] = float(loud["max_true_peak_dbtp"])

    rates = j.get("format", {}).get("allowed_sample_rates_hz")
    if rates:
        changes["allowed_sample_rates"] = tuple(sorted({int(r) for r in rates}))

    scan = j.get("scan", {})
    if scan.get("extensions"):
        changes["extensions"] = tuple(dict.fromkeys(normalize_extension(e) for e in scan["extensions"]))
    if "recursive" in scan:
        changes["recursive"] = bool(scan["recursive"])

    tools = j.get("tools", {})
    if tools.get("ffmpeg"):
        changes["ffmpeg"] = tools["ffmpeg"]
    if tools.get("ffprobe"):
        changes["ffprobe"] = tools["ffprobe"]
    if "timeout_s" in tools:
        t = tools["timeout_s"]
        changes["timeout_s"] = float(t) if t is not None else None

    return replace(cfg, **changes)


def load_profile(name_or_path: str | None = None) -> QCConfig:
    """
    Resolve a built-in profile name or a JSON profile file to a QCConfig.

    A file profile is layered over the default built-in profile, so it only
    needs the keys it changes.
    """
    key = name_or_path or DEFAULT_PROFILE
    if key in BUILTIN_PROFILES:
        return profile_from_dict(BUILTIN_PROFILES[key])
    path = Path(key)
    if not path.is_file():
        known = ", ".join(sorted(BUILTIN_PROFILES))
        raise ValueError(f"Unknown profile '{key}' (built-in: {known}; or pass a JSON file path)")
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    base = profile_from_dict(BUILTIN_PROFILES[DEFAULT_PROFILE])
    cfg = profile_from_dict(j, base=base)
    if not j.get("profile", {}).get("name"):
        cfg = replace(cfg, name=path.stem)
    return cfg


def apply_overrides(config: QCConfig, **overrides: Any) -> QCConfig:
    """Apply command-line overrides; None means "not given"."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    if "extensions" in changes:
        changes["extensions"] = tuple(dict.fromkeys(normalize_extension(e) for e in changes["extensions"]))
    if "allowed_sample_rates" in changes:
        changes["allowed_sample_rates"] = tuple(sorted({int(r) for r in changes["allowed_sample_rates"]}))
    return replace(config, **changes)


def profile_to_dict(config: QCConfig) -> dict:
    """Render a resolved config in profile-file shape."""
    return {
        "profile": {"name": config.name},
        "loudness": {
            "target_lufs_i": config.target_lufs,
            "tolerance_lu": config.tolerance_lu,
            "max_true_peak_dbtp": config.true_peak_ceiling_dbtp,
        },
        "format": {"allowed_sample_rates_hz": list(config.allowed_sample_rates)},
        "scan": {"extensions": list(config.extensions), "recursive": config.recursive},
        "tools": {"ffmpeg": config.ffmpeg, "ffprobe": config.ffprobe, "timeout_s": config.timeout_s},
    }
