from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from loudqc.io.ffmpeg import ToolResult  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def loudnorm_text(input_i="-14.00", input_tp="-1.00", input_lra="6.00") -> str:
    """ffmpeg-style stderr with an embedded loudnorm JSON block."""
    return (
        "size=N/A time=00:00:10.00 bitrate=N/A speed= 250x\n"
        "[Parsed_loudnorm_0 @ 0x55d0c3a1f2c0] \n"
        "{\n"
        f'\t"input_i" : "{input_i}",\n'
        f'\t"input_tp" : "{input_tp}",\n'
        f'\t"input_lra" : "{input_lra}",\n'
        '\t"input_thresh" : "-24.00",\n'
        '\t"normalization_type" : "dynamic",\n'
        '\t"target_offset" : "0.00"\n'
        "}\n"
    )


def astats_text(peaks) -> str:
    lines = []
    for i, v in enumerate(peaks):
        lines.append(f"frame:{i}    pts:{i * 4096}    pts_time:{i * 0.0853:.4f}")
        lines.append(f"lavfi.astats.Overall.Peak_level={v:.6f}")
    return "\n".join(lines) + "\n"


def probe_text(sample_rate=48000, channels=2, codec="pcm_s16le", bits=16, duration=10.0, bit_rate=1536000) -> str:
    return json.dumps({
        "streams": [{
            "codec_name": codec,
            "sample_rate": str(sample_rate),
            "channels": channels,
            "bits_per_sample": bits,
            "bit_rate": str(bit_rate),
        }],
        "format": {"duration": f"{duration:.6f}", "bit_rate": str(bit_rate)},
    })


class FakeTools:
    """Stand-in for the three collaborator invocations, keyed by file name."""

    def __init__(self, probe=None, loudnorm=None, peaks=None):
        self.probe = probe or {}
        self.loudnorm = loudnorm or {}
        self.peaks = peaks or {}
        self.calls: list[tuple[str, str]] = []

    def _result(self, table: dict, path: str) -> ToolResult:
        name = Path(path).name
        value = table.get(name, table.get("*", ""))
        if isinstance(value, ToolResult):
            return value
        return ToolResult(returncode=0, output=value)

    def run_probe(self, path, *, ffprobe="ffprobe", timeout_s=None):
        self.calls.append(("probe", Path(path).name))
        return self._result(self.probe, path)

    def run_loudnorm(self, path, *, target_lufs, true_peak_ceiling_dbtp, ffmpeg="ffmpeg", timeout_s=None):
        self.calls.append(("loudnorm", Path(path).name))
        return self._result(self.loudnorm, path)

    def run_sample_peak(self, path, *, ffmpeg="ffmpeg", timeout_s=None):
        self.calls.append(("peak", Path(path).name))
        return self._result(self.peaks, path)

    def install(self, monkeypatch) -> "FakeTools":
        import loudqc.cli.main as cli
        monkeypatch.setattr(cli, "run_probe", self.run_probe)
        monkeypatch.setattr(cli, "run_loudnorm", self.run_loudnorm)
        monkeypatch.setattr(cli, "run_sample_peak", self.run_sample_peak)
        monkeypatch.setattr(cli, "resolve_tools", lambda ffmpeg, ffprobe: ("/usr/bin/ffmpeg", "/usr/bin/ffprobe"))
        return self
