"""Stream metadata extraction from ffprobe JSON."""
from __future__ import annotations
import json
import math
from typing import Any

from loudqc.types import StreamInfo


def _as_float(value: Any) -> float | None:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(x) or math.isinf(x):
        return None
    return x


def _as_positive_int(value: Any) -> int | None:
    x = _as_float(value)
    if x is None or x <= 0:
        return None
    return int(x)


def _as_kbps(value: Any) -> int | None:
    bps = _as_float(value)
    if bps is None or bps <= 0:
        return None
    return int(round(bps / 1000.0))


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def parse_probe_payload(payload: dict) -> StreamInfo:
    """
    Map an ffprobe JSON document to StreamInfo.

    Each field is parsed on its own; anything missing or malformed is None.
    Bit depth prefers bits_per_sample over bits_per_raw_sample (0 means
    "not applicable" and falls through). Bitrate prefers the stream value
    over the container value.
    """
    fmt = payload.get("format") if isinstance(payload, dict) else None
    fmt = fmt if isinstance(fmt, dict) else {}
    streams = payload.get("streams") if isinstance(payload, dict) else None
    stream = streams[0] if isinstance(streams, list) and streams and isinstance(streams[0], dict) else {}

    codec = stream.get("codec_name")
    return StreamInfo(
        duration_s=_as_float(fmt.get("duration")),
        sample_rate_hz=_as_positive_int(stream.get("sample_rate")),
        bit_depth=_first(
            _as_positive_int(stream.get("bits_per_sample")),
            _as_positive_int(stream.get("bits_per_raw_sample")),
        ),
        channels=_as_positive_int(stream.get("channels")),
        codec=str(codec) if isinstance(codec, str) and codec else None,
        bitrate_kbps=_first(
            _as_kbps(stream.get("bit_rate")),
            _as_kbps(fmt.get("bit_rate")),
        ),
    )


def parse_probe_output(text: str) -> StreamInfo:
    """Parse raw ffprobe stdout; unparseable output yields an empty StreamInfo."""
    try:
        payload = json.loads(text) if text else {}
    except json.JSONDecodeError:
        return StreamInfo()
    if not isinstance(payload, dict):
        return StreamInfo()
    return parse_probe_payload(payload)
