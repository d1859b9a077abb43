"""Measurement scraping from ffmpeg diagnostic output."""
from __future__ import annotations
import json
import math
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from loudqc.io.ffmpeg import PEAK_METADATA_KEY
from loudqc.types import LoudnessMeasurement
from loudqc.utils.quantize import q2

LOUDNORM_SIGNATURE = re.compile(r'"input_i"\s*:')
_PEAK_RE = re.compile(
    re.escape(PEAK_METADATA_KEY) + r"\s*=\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?|[-+]?inf|nan)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class LoudnormParse:
    measurement: LoudnessMeasurement
    span: str | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def output_lines(chunks: str | Iterable[str]) -> list[str]:
    """Treat output delivered in any number of chunks as one ordered line list."""
    if isinstance(chunks, str):
        text = chunks
    else:
        text = "".join(chunks)
    return text.splitlines()


def extract_json_block(lines: Sequence[str], signature: re.Pattern = LOUDNORM_SIGNATURE) -> str | None:
    """
    Return the JSON object surrounding the first line matching signature.

    Bounds are the nearest line at or above the match containing "{" and
    the nearest line at or below it containing "}". Text before the brace
    on the opening line and after it on the closing line is dropped.
    """
    hit = next((i for i, line in enumerate(lines) if signature.search(line)), None)
    if hit is None:
        return None
    start = next((i for i in range(hit, -1, -1) if "{" in lines[i]), None)
    end = next((i for i in range(hit, len(lines)) if "}" in lines[i]), None)
    if start is None or end is None:
        return None

    block = list(lines[start:end + 1])
    if start == end:
        line = block[0]
        return line[line.find("{"):line.rfind("}") + 1]
    block[0] = block[0][block[0].rfind("{"):]
    block[-1] = block[-1][:block[-1].find("}") + 1]
    return "\n".join(block)


def _finite(value) -> float | None:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(x) or math.isinf(x):
        return None
    return x


def parse_loudnorm_output(chunks: str | Iterable[str]) -> LoudnormParse:
    """Extract integrated loudness, true peak and LRA from loudnorm JSON output."""
    lines = output_lines(chunks)
    span = extract_json_block(lines)
    if span is None:
        if any(LOUDNORM_SIGNATURE.search(line) for line in lines):
            return LoudnormParse(LoudnessMeasurement(), None, "unbalanced braces around loudnorm JSON")
        return LoudnormParse(LoudnessMeasurement(), None, "loudnorm JSON not found in output")
    try:
        obj = json.loads(span)
    except json.JSONDecodeError as exc:
        return LoudnormParse(LoudnessMeasurement(), span, f"invalid loudnorm JSON: {exc.msg}")
    if not isinstance(obj, dict):
        return LoudnormParse(LoudnessMeasurement(), span, "loudnorm JSON is not an object")

    measurement = LoudnessMeasurement(
        integrated_lufs=_finite(obj.get("input_i")),
        true_peak_dbtp=_finite(obj.get("input_tp")),
        lra_lu=_finite(obj.get("input_lra")),
    )
    error = None if measurement.complete else "loudnorm JSON lacks finite input_i/input_tp/input_lra"
    return LoudnormParse(measurement, span, error)


def parse_peak_levels(chunks: str | Iterable[str]) -> list[float]:
    """Collect every finite overall peak level printed by astats, in order."""
    values: list[float] = []
    for line in output_lines(chunks):
        for m in _PEAK_RE.finditer(line):
            v = _finite(m.group(1))
            if v is not None:
                values.append(v)
    return values


def max_sample_peak(chunks: str | Iterable[str]) -> float | None:
    """Highest overall peak level seen across the whole output, 2 decimals."""
    values = parse_peak_levels(chunks)
    if not values:
        return None
    return q2(max(values))
