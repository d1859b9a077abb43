from __future__ import annotations

import subprocess
from types import SimpleNamespace

import pytest

import loudqc.io.ffmpeg as ff
from loudqc.io.ffmpeg import (
    describe_failure,
    loudnorm_cmd,
    probe_cmd,
    resolve_tools,
    run_tool,
    sample_peak_cmd,
)


def test_loudnorm_cmd_filter_parameters():
    cmd = loudnorm_cmd("ffmpeg", "/a/b.wav", -14.0, -1.0)
    assert cmd[cmd.index("-af") + 1] == "loudnorm=I=-14:TP=-1:LRA=8:print_format=json"
    assert cmd[-3:] == ["-f", "null", "-"]
    assert cmd[cmd.index("-i") + 1] == "/a/b.wav"


def test_probe_cmd_requests_required_fields():
    cmd = probe_cmd("ffprobe", "x.flac")
    entries = cmd[cmd.index("-show_entries") + 1]
    for field in ("duration", "sample_rate", "bits_per_sample", "bits_per_raw_sample",
                  "channels", "codec_name", "bit_rate"):
        assert field in entries
    assert cmd[cmd.index("-of") + 1] == "json"
    assert cmd[cmd.index("-select_streams") + 1] == "a:0"


def test_sample_peak_cmd_uses_non_resetting_astats():
    cmd = sample_peak_cmd("ffmpeg", "x.wav")
    af = cmd[cmd.index("-af") + 1]
    assert "astats=metadata=1:reset=0" in af
    assert "ametadata=print:key=lavfi.astats.Overall.Peak_level" in af


def test_run_tool_merges_streams_and_decodes(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen.update(kwargs)
        return SimpleNamespace(returncode=0, stdout="café ok\n".encode("utf-8") + b"\xff")

    monkeypatch.setattr(ff.subprocess, "run", fake_run)
    result = run_tool(["ffmpeg"], timeout_s=3.0)
    assert result.ok
    assert result.output.startswith("café ok")
    assert seen["stderr"] is subprocess.STDOUT
    assert seen["timeout"] == 3.0


def test_run_tool_timeout_and_launch_error(monkeypatch):
    def fake_timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"], output=b"half")

    monkeypatch.setattr(ff.subprocess, "run", fake_timeout)
    result = run_tool(["ffmpeg"], timeout_s=1.0)
    assert result.timed_out and not result.ok
    assert result.output == "half"
    assert describe_failure("ffmpeg", result, 1.0) == "ffmpeg timed out after 1s"

    def fake_missing(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(ff.subprocess, "run", fake_missing)
    result = run_tool(["nope"])
    assert result.launch_error
    assert "could not be started" in describe_failure("nope", result, None)


def test_resolve_tools_reports_missing(monkeypatch):
    monkeypatch.setattr(ff.shutil, "which", lambda name: None if name == "ffprobe" else f"/bin/{name}")
    with pytest.raises(RuntimeError, match="ffprobe"):
        resolve_tools()
    monkeypatch.setattr(ff.shutil, "which", lambda name: f"/bin/{name}")
    assert resolve_tools() == ("/bin/ffmpeg", "/bin/ffprobe")
