"""Compliance profile validation helpers."""
from __future__ import annotations
from typing import Any
import math

_SECTIONS = {
    "profile": {"name", "description"},
    "loudness": {"target_lufs_i", "tolerance_lu", "max_true_peak_dbtp"},
    "format": {"allowed_sample_rates_hz"},
    "scan": {"extensions", "recursive"},
    "tools": {"ffmpeg", "ffprobe", "timeout_s"},
}


def _is_number(v: Any) -> bool:
    return (
        isinstance(v, (int, float))
        and not isinstance(v, bool)
        and not math.isnan(v)
        and not math.isinf(v)
    )


def validate_profile_dict(j: Any) -> None:
    """Validate compliance profile structure; raise ValueError listing every problem."""
    errors: list[str] = []

    def err(msg: str) -> None:
        errors.append(msg)

    if not isinstance(j, dict):
        raise ValueError("profile must be a JSON object.")

    for section, value in j.items():
        if section not in _SECTIONS:
            err(f"unknown section: {section}")
            continue
        if not isinstance(value, dict):
            err(f"{section} must be an object.")
            continue
        for key in value:
            if key not in _SECTIONS[section]:
                err(f"unknown key: {section}.{key}")

    if errors:
        raise ValueError("; ".join(errors))

    meta = j.get("profile", {})
    name = meta.get("name")
    if name is not None and (not isinstance(name, str) or not name.strip()):
        err("profile.name must be a non-empty string.")
    desc = meta.get("description")
    if desc is not None and not isinstance(desc, str):
        err("profile.description must be a string.")

    loud = j.get("loudness", {})
    target = loud.get("target_lufs_i")
    if target is not None:
        if not _is_number(target):
            err("loudness.target_lufs_i must be a finite number.")
        elif target > 0:
            err("loudness.target_lufs_i must be <= 0.")
    tol = loud.get("tolerance_lu")
    if tol is not None and (not _is_number(tol) or tol < 0):
        err("loudness.tolerance_lu must be a non-negative number.")
    ceiling = loud.get("max_true_peak_dbtp")
    if ceiling is not None and not _is_number(ceiling):
        err("loudness.max_true_peak_dbtp must be a finite number.")

    rates = j.get("format", {}).get("allowed_sample_rates_hz")
    if rates is not None:
        if not isinstance(rates, list) or not rates:
            err("format.allowed_sample_rates_hz must be a non-empty list.")
        else:
            for i, r in enumerate(rates):
                if not isinstance(r, int) or isinstance(r, bool) or r <= 0:
                    err(f"format.allowed_sample_rates_hz[{i}] must be a positive integer.")
                    break

    scan = j.get("scan", {})
    exts = scan.get("extensions")
    if exts is not None:
        if not isinstance(exts, list) or not exts:
            err("scan.extensions must be a non-empty list.")
        else:
            for i, e in enumerate(exts):
                if not isinstance(e, str) or not e.strip(".").strip():
                    err(f"scan.extensions[{i}] must be a non-empty string.")
                    break
    recursive = scan.get("recursive")
    if recursive is not None and not isinstance(recursive, bool):
        err("scan.recursive must be a boolean.")

    tools = j.get("tools", {})
    for key in ("ffmpeg", "ffprobe"):
        v = tools.get(key)
        if v is not None and (not isinstance(v, str) or not v.strip()):
            err(f"tools.{key} must be a non-empty string.")
    if "timeout_s" in tools:
        timeout = tools["timeout_s"]
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            err("tools.timeout_s must be a positive number or null.")

    if errors:
        raise ValueError("; ".join(errors))
