"""ffmpeg / ffprobe invocation."""
from __future__ import annotations
import shutil
import subprocess
from dataclasses import dataclass

LOUDNORM_LRA_TARGET = 8
PEAK_METADATA_KEY = "lavfi.astats.Overall.Peak_level"
PROBE_ENTRIES = (
    "format=duration,bit_rate"
    ":stream=sample_rate,bits_per_sample,bits_per_raw_sample,"
    "channels,codec_name,bit_rate"
)


@dataclass(frozen=True)
class ToolResult:
    returncode: int | None
    output: str
    timed_out: bool = False
    launch_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


def resolve_tools(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> tuple[str, str]:
    """Return absolute (ffmpeg, ffprobe) paths or raise RuntimeError."""
    missing = []
    ffmpeg_path = shutil.which(ffmpeg)
    if not ffmpeg_path:
        missing.append(ffmpeg)
    ffprobe_path = shutil.which(ffprobe)
    if not ffprobe_path:
        missing.append(ffprobe)
    if missing:
        raise RuntimeError(f"Required tool(s) not found on PATH: {', '.join(missing)}")
    return ffmpeg_path, ffprobe_path


def run_tool(
    cmd: list[str],
    *,
    timeout_s: float | None = None,
    merge_stderr: bool = True
) -> ToolResult:
    """
    Run a collaborator command and capture its text output.

    With merge_stderr the diagnostic stream is interleaved into the
    returned output in emission order; otherwise only stdout is kept.
    Timeouts and launch failures are reported on the result, not raised.
    """
    stderr = subprocess.STDOUT if merge_stderr else subprocess.PIPE
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=stderr,
            stdin=subprocess.DEVNULL,
            timeout=timeout_s,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        return ToolResult(returncode=None, output=_decode(exc.output), timed_out=True)
    except OSError as exc:
        return ToolResult(returncode=None, output="", launch_error=str(exc))
    return ToolResult(returncode=proc.returncode, output=_decode(proc.stdout))


def describe_failure(tool: str, result: ToolResult, timeout_s: float | None) -> str | None:
    """Human-readable reason for a failed invocation, or None."""
    if result.timed_out:
        return f"{tool} timed out after {timeout_s:g}s"
    if result.launch_error:
        return f"{tool} could not be started: {result.launch_error}"
    if result.returncode != 0:
        return f"{tool} exited with code {result.returncode}"
    return None


def probe_cmd(ffprobe: str, path: str) -> list[str]:
    return [
        ffprobe,
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries", PROBE_ENTRIES,
        "-of", "json",
        path,
    ]


def loudnorm_filter(target_lufs: float, true_peak_ceiling_dbtp: float) -> str:
    return (
        f"loudnorm=I={target_lufs:g}:TP={true_peak_ceiling_dbtp:g}"
        f":LRA={LOUDNORM_LRA_TARGET}:print_format=json"
    )


def loudnorm_cmd(ffmpeg: str, path: str, target_lufs: float, true_peak_ceiling_dbtp: float) -> list[str]:
    return [
        ffmpeg,
        "-hide_banner",
        "-nostats",
        "-i", path,
        "-af", loudnorm_filter(target_lufs, true_peak_ceiling_dbtp),
        "-f", "null",
        "-",
    ]


def sample_peak_cmd(ffmpeg: str, path: str) -> list[str]:
    return [
        ffmpeg,
        "-hide_banner",
        "-nostats",
        "-i", path,
        "-af", f"astats=metadata=1:reset=0,ametadata=print:key={PEAK_METADATA_KEY}",
        "-f", "null",
        "-",
    ]


def run_probe(path: str, *, ffprobe: str = "ffprobe", timeout_s: float | None = None) -> ToolResult:
    """Run ffprobe; JSON arrives on stdout only."""
    return run_tool(probe_cmd(ffprobe, path), timeout_s=timeout_s, merge_stderr=False)


def run_loudnorm(
    path: str,
    *,
    target_lufs: float,
    true_peak_ceiling_dbtp: float,
    ffmpeg: str = "ffmpeg",
    timeout_s: float | None = None
) -> ToolResult:
    """Run the loudnorm analysis pass, discarding decoded audio."""
    cmd = loudnorm_cmd(ffmpeg, path, target_lufs, true_peak_ceiling_dbtp)
    return run_tool(cmd, timeout_s=timeout_s)


def run_sample_peak(path: str, *, ffmpeg: str = "ffmpeg", timeout_s: float | None = None) -> ToolResult:
    """Run astats with per-frame metadata printing of the overall peak."""
    return run_tool(sample_peak_cmd(ffmpeg, path), timeout_s=timeout_s)
