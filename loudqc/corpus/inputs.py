"""Input path expansion and audio file discovery."""
from __future__ import annotations
from pathlib import Path
from typing import Iterable

LIST_FILE_MARKER = "@"
PATH_SEPARATOR = ";"


def _read_list_file(path: Path) -> list[str]:
    """Read newline-separated paths; blank lines and '#' comments are skipped."""
    with open(path, "r", encoding="utf-8-sig") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith("#")]


def expand_path_args(args: Iterable[str] | None) -> list[str]:
    """
    Expand raw command-line path arguments.

    - "@list.txt" is replaced by the paths listed in that file
    - an argument containing ";" is split into several paths
    - no arguments at all means the current working directory
    """
    raw = [a for a in (args or []) if a is not None]
    out: list[str] = []
    for arg in raw:
        if arg.startswith(LIST_FILE_MARKER) and len(arg) > 1:
            list_path = Path(arg[len(LIST_FILE_MARKER):])
            if not list_path.is_file():
                raise ValueError(f"List file not found: {list_path}")
            entries = _read_list_file(list_path)
        else:
            entries = [arg]
        for entry in entries:
            for part in entry.split(PATH_SEPARATOR):
                part = part.strip().strip('"')
                if part:
                    out.append(part)
    if not raw:
        out.append(str(Path.cwd()))
    return out


def _is_supported(p: Path, extensions: Iterable[str]) -> bool:
    return p.suffix.lower() in {e.lower() for e in extensions}


def iter_audio_files(folder: Path, extensions: Iterable[str], recursive: bool) -> list[Path]:
    """Collect supported audio files from a folder."""
    if not folder.is_dir():
        raise ValueError(f"Folder not found: {folder}")
    exts = tuple(extensions)
    files = folder.rglob("*") if recursive else folder.glob("*")
    return [p for p in files if p.is_file() and _is_supported(p, exts)]


def collect_inputs(
    paths: Iterable[str],
    extensions: Iterable[str],
    recursive: bool
) -> tuple[list[Path], list[str]]:
    """
    Resolve files and directories to a de-duplicated list of audio files.

    Explicit files must have a supported extension too. Returns
    (files, warnings); missing paths and skipped files become warnings.
    """
    exts = tuple(extensions)
    found: list[Path] = []
    warnings: list[str] = []
    seen: set[Path] = set()

    def _add(p: Path) -> None:
        rp = p.resolve()
        if rp not in seen:
            seen.add(rp)
            found.append(rp)

    for raw in paths:
        p = Path(raw).expanduser()
        if p.is_dir():
            for f in iter_audio_files(p, exts, recursive):
                _add(f)
        elif p.is_file():
            if _is_supported(p, exts):
                _add(p)
            else:
                warnings.append(f"Skipping unsupported file type: {p}")
        else:
            warnings.append(f"Path not found: {p}")
    return found, warnings
