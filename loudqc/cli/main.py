"""LoudQC CLI - Loudness Compliance Batch Analyzer."""
from __future__ import annotations
import argparse
import json
import os
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path

from loudqc.version import __version__
from loudqc.types import (
    Verdict,
    StreamInfo,
    LoudnessMeasurement,
    QCConfig,
    MeasurementRecord,
)
from loudqc.io.ffmpeg import (
    resolve_tools,
    run_probe,
    run_loudnorm,
    run_sample_peak,
    describe_failure,
)
from loudqc.analysis.probe import parse_probe_output
from loudqc.analysis.scrape import parse_loudnorm_output, max_sample_peak
from loudqc.analysis.debug_dump import run_timestamp, write_debug_dump
from loudqc.thresholds.evaluator import classify, suggested_gain_db
from loudqc.profiles.loader import (
    BUILTIN_PROFILES,
    DEFAULT_PROFILE,
    apply_overrides,
    load_profile,
    profile_to_dict,
)
from loudqc.corpus.inputs import expand_path_args, collect_inputs
from loudqc.reporting.batch_summary import build_batch_summary, sort_records
from loudqc.reporting.csv_report import render_csv
from loudqc.reporting.html_report import render_html_report


EXIT_OK = 0
EXIT_ADJUST = 10
EXIT_ERROR = 20
EXIT_BAD_ARGS = 2
EXIT_TOOL_MISSING = 3
EXIT_PROFILE_ERROR = 4
EXIT_INTERNAL_ERROR = 5


def _probe_stage(path: str, config: QCConfig) -> tuple[StreamInfo, list[str]]:
    """Container/stream facts; failures leave fields None."""
    warnings: list[str] = []
    result = run_probe(path, ffprobe=config.ffprobe, timeout_s=config.timeout_s)
    failure = describe_failure("ffprobe", result, config.timeout_s)
    if failure:
        warnings.append(failure)
    info = parse_probe_output(result.output)
    if info == StreamInfo() and not failure:
        warnings.append("ffprobe returned no usable stream metadata")
    return info, warnings


def _loudness_stage(
    path: str,
    config: QCConfig,
    *,
    debug_dir: Path | None,
    run_stamp: str
) -> tuple[LoudnessMeasurement, list[str]]:
    """Integrated loudness, true peak and LRA from the loudnorm pass."""
    warnings: list[str] = []
    result = run_loudnorm(
        path,
        target_lufs=config.target_lufs,
        true_peak_ceiling_dbtp=config.true_peak_ceiling_dbtp,
        ffmpeg=config.ffmpeg,
        timeout_s=config.timeout_s,
    )
    failure = describe_failure("ffmpeg loudnorm", result, config.timeout_s)
    if failure:
        warnings.append(failure)
    parsed = parse_loudnorm_output(result.output)
    if parsed.ok:
        return parsed.measurement, warnings

    warnings.append(f"loudness extraction failed: {parsed.error}")
    if debug_dir is not None:
        try:
            written = write_debug_dump(debug_dir, path, run_stamp, result.output, parsed.span)
            warnings.append(f"debug output written to {written[0]}")
        except OSError as exc:
            warnings.append(f"could not write debug output: {exc}")
    return parsed.measurement, warnings


def _sample_peak_stage(path: str, config: QCConfig) -> tuple[float | None, list[str]]:
    """Maximum overall sample peak seen by astats."""
    warnings: list[str] = []
    result = run_sample_peak(path, ffmpeg=config.ffmpeg, timeout_s=config.timeout_s)
    failure = describe_failure("ffmpeg astats", result, config.timeout_s)
    if failure:
        warnings.append(failure)
    peak = max_sample_peak(result.output)
    if peak is None:
        warnings.append("no sample peak values found in astats output")
    return peak, warnings


def analyze_file(
    audio_path: str,
    config: QCConfig,
    *,
    debug_dir: Path | None = None,
    run_stamp: str | None = None
) -> MeasurementRecord:
    """
    Measure and classify one file.

    Returns a MeasurementRecord; per-stage problems are recorded as
    warnings and null fields, never raised.
    """
    p = Path(audio_path)
    path = str(p.resolve())
    run_stamp = run_stamp or run_timestamp()

    stream, probe_warnings = _probe_stage(path, config)
    loudness, loud_warnings = _loudness_stage(
        path, config, debug_dir=debug_dir, run_stamp=run_stamp
    )
    sample_peak, peak_warnings = _sample_peak_stage(path, config)

    verdict, issues = classify(
        loudness.integrated_lufs,
        loudness.true_peak_dbtp,
        loudness.lra_lu,
        stream.sample_rate_hz,
        config,
    )
    return MeasurementRecord(
        file_name=p.name,
        path=path,
        stream=stream,
        loudness=loudness,
        sample_peak_dbfs=sample_peak,
        suggested_gain_db=suggested_gain_db(loudness.integrated_lufs, config.target_lufs),
        verdict=verdict,
        issues=issues,
        warnings=tuple(probe_warnings + loud_warnings + peak_warnings),
    )


def _error_record(audio_path: str, config: QCConfig, message: str) -> MeasurementRecord:
    """Record for a file whose processing failed outside the measured stages."""
    p = Path(audio_path)
    verdict, issues = classify(None, None, None, None, config)
    return MeasurementRecord(
        file_name=p.name,
        path=str(p.resolve()),
        stream=StreamInfo(),
        loudness=LoudnessMeasurement(),
        sample_peak_dbfs=None,
        suggested_gain_db=None,
        verdict=verdict,
        issues=issues,
        warnings=(message,),
    )


def _batch_worker(
    args: tuple[str, QCConfig, str | None, str]
) -> MeasurementRecord:
    """Worker for batch analysis."""
    audio_path, config, debug_dir, run_stamp = args
    try:
        return analyze_file(
            audio_path,
            config,
            debug_dir=Path(debug_dir) if debug_dir else None,
            run_stamp=run_stamp,
        )
    except Exception as exc:
        return _error_record(audio_path, config, f"internal error: {exc}")


def _print_progress(record: MeasurementRecord) -> None:
    for w in record.warnings:
        print(f"[WARN] {record.file_name}: {w}", file=sys.stderr)
    if record.verdict == Verdict.READY:
        print(f"[READY] {record.file_name}")
    elif record.verdict == Verdict.ADJUST:
        print(f"[ADJUST] {record.file_name}: {record.issues_label}")
    else:
        print(f"[ERROR] {record.file_name}: {record.issues_label}", file=sys.stderr)


def _resolve_report_output_path(out_dir: Path, requested: str | None, default_name: str) -> Path:
    """Resolve report output path anchored to the output directory."""
    name = os.path.basename(requested) if requested else default_name
    return out_dir / (name or default_name)


def _parse_csv_list(value: str) -> list[str]:
    items = [v.strip() for v in value.split(",") if v.strip()]
    if not items:
        raise argparse.ArgumentTypeError("expected a comma-separated list")
    return items


def _parse_timeout(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value}") from exc
    if not seconds >= 0 or seconds == float("inf"):
        raise argparse.ArgumentTypeError("timeout must be a finite number >= 0 (0 disables it)")
    return seconds


def _parse_rate_list(value: str) -> list[int]:
    try:
        rates = [int(v) for v in _parse_csv_list(value)]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid sample rate list: {value}") from exc
    if any(r <= 0 for r in rates):
        raise argparse.ArgumentTypeError("sample rates must be positive")
    return rates


def _build_config(args) -> QCConfig:
    """Profile first, then command-line overrides."""
    config = load_profile(args.profile)
    config = apply_overrides(
        config,
        target_lufs=args.target_lufs,
        tolerance_lu=args.tolerance,
        true_peak_ceiling_dbtp=args.true_peak_ceiling,
        allowed_sample_rates=args.allowed_rates,
        extensions=getattr(args, "extensions", None),
        recursive=getattr(args, "recursive", None),
        ffmpeg=args.ffmpeg,
        ffprobe=args.ffprobe,
    )
    if args.timeout is not None:
        config = replace(config, timeout_s=args.timeout if args.timeout > 0 else None)
    if config.tolerance_lu < 0:
        raise ValueError("tolerance must be non-negative")
    return config


def _load_config_or_exit(args) -> tuple[QCConfig | None, int]:
    try:
        return _build_config(args), EXIT_OK
    except json.JSONDecodeError as e:
        print(f"Error: Invalid profile JSON - {e}", file=sys.stderr)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
    return None, EXIT_PROFILE_ERROR


def _resolve_tools_or_exit(config: QCConfig) -> tuple[QCConfig | None, int]:
    try:
        ffmpeg, ffprobe = resolve_tools(config.ffmpeg, config.ffprobe)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None, EXIT_TOOL_MISSING
    return replace(config, ffmpeg=ffmpeg, ffprobe=ffprobe), EXIT_OK


def _exit_code_for_verdict(verdict: Verdict) -> int:
    if verdict == Verdict.READY:
        return EXIT_OK
    if verdict == Verdict.ADJUST:
        return EXIT_ADJUST
    return EXIT_ERROR


def cmd_scan(args) -> int:
    """Handle scan command."""
    config, code = _load_config_or_exit(args)
    if config is None:
        return code
    config, code = _resolve_tools_or_exit(config)
    if config is None:
        return code

    try:
        paths = expand_path_args(args.paths)
        audio_paths, input_warnings = collect_inputs(paths, config.extensions, config.recursive)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    for w in input_warnings:
        print(f"[WARN] {w}", file=sys.stderr)
    if not audio_paths:
        exts = ", ".join(config.extensions)
        print(f"No matching audio files found (extensions: {exts}). Nothing to do.")
        return EXIT_OK

    try:
        out_dir = Path(args.out_dir) if args.out_dir else Path.cwd()
        out_dir.mkdir(parents=True, exist_ok=True)
        run_stamp = run_timestamp()
        debug_dir = str(Path(args.debug_dir)) if args.debug_dir else None

        print(
            f"Analyzing {len(audio_paths)} file(s) with profile '{config.name}' "
            f"(target {config.target_lufs:g} LUFS +/- {config.tolerance_lu:g}, "
            f"ceiling {config.true_peak_ceiling_dbtp:g} dBTP)"
        )
        max_workers = min(max(1, int(args.workers)), len(audio_paths))
        records: list[MeasurementRecord] = []
        jobs = [(str(p), config, debug_dir, run_stamp) for p in audio_paths]
        if max_workers == 1:
            for job in jobs:
                record = _batch_worker(job)
                records.append(record)
                _print_progress(record)
        else:
            with ProcessPoolExecutor(max_workers=max_workers) as ex:
                futures = {ex.submit(_batch_worker, job): job[0] for job in jobs}
                for fut in as_completed(futures):
                    try:
                        record = fut.result()
                    except Exception as exc:
                        record = _error_record(futures[fut], config, f"worker failed: {exc}")
                    records.append(record)
                    _print_progress(record)

        records = sort_records(records)
        summary = build_batch_summary(records, config)

        csv_path = _resolve_report_output_path(out_dir, args.csv, f"loudness_report_{run_stamp}.csv")
        csv_path.write_text(render_csv(records), encoding="utf-8")
        html_path = _resolve_report_output_path(out_dir, args.html, f"loudness_report_{run_stamp}.html")
        html_path.write_text(render_html_report(records, summary), encoding="utf-8")
        if args.summary_json:
            json_path = _resolve_report_output_path(out_dir, args.summary_json, "loudness_summary.json")
            json_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")

        counts = summary["totals"]["status_counts"]
        print(
            f"Done: {len(records)} file(s) - READY {counts['READY']}, "
            f"ADJUST {counts['ADJUST']}, ERROR {counts['ERROR']}"
        )
        print(f"CSV report written to: {csv_path}")
        print(f"HTML report written to: {html_path}")
        return EXIT_OK
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def cmd_analyze(args) -> int:
    """Handle analyze command."""
    config, code = _load_config_or_exit(args)
    if config is None:
        return code
    config, code = _resolve_tools_or_exit(config)
    if config is None:
        return code
    if not Path(args.audio_path).is_file():
        print(f"Error: File not found - {args.audio_path}", file=sys.stderr)
        return EXIT_BAD_ARGS
    try:
        debug_dir = Path(args.debug_dir) if args.debug_dir else None
        record = analyze_file(args.audio_path, config, debug_dir=debug_dir)
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR
    for w in record.warnings:
        print(f"[WARN] {record.file_name}: {w}", file=sys.stderr)
    print(json.dumps(record.to_dict(), indent=2))
    return _exit_code_for_verdict(record.verdict)


def cmd_profiles(args) -> int:
    """Handle profiles command."""
    if not args.name:
        for name in sorted(BUILTIN_PROFILES):
            desc = BUILTIN_PROFILES[name]["profile"].get("description", "")
            marker = " (default)" if name == DEFAULT_PROFILE else ""
            print(f"{name}{marker}: {desc}")
        return EXIT_OK
    try:
        config = load_profile(args.name)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid profile JSON - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    print(json.dumps(profile_to_dict(config), indent=2))
    return EXIT_OK


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--profile", "-p",
        default=None,
        help=f"Built-in profile name or profile JSON path (default: {DEFAULT_PROFILE})"
    )
    p.add_argument("--target-lufs", type=float, default=None, help="Integrated loudness target (LUFS)")
    p.add_argument("--tolerance", type=float, default=None, help="Allowed deviation from target (LU)")
    p.add_argument("--true-peak-ceiling", type=float, default=None, help="Maximum true peak (dBTP)")
    p.add_argument(
        "--allowed-rates",
        type=_parse_rate_list,
        default=None,
        help="Comma-separated allowed sample rates, e.g. 44100,48000"
    )
    p.add_argument("--ffmpeg", default=None, help="ffmpeg executable (default: ffmpeg on PATH)")
    p.add_argument("--ffprobe", default=None, help="ffprobe executable (default: ffprobe on PATH)")
    p.add_argument(
        "--timeout",
        type=_parse_timeout,
        default=None,
        help="Per-invocation timeout in seconds; 0 disables (default: 600)"
    )
    p.add_argument("--debug-dir", default=None, help="Write raw loudnorm output here when extraction fails")


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="loudqc",
        description="LoudQC - Loudness Compliance Batch Analyzer"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"loudqc {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Analyze files and folders, write CSV and HTML reports"
    )
    scan_parser.add_argument(
        "paths",
        nargs="*",
        help="Files or folders; '@list.txt' reads paths from a file; ';' separates paths (default: cwd)"
    )
    _add_config_args(scan_parser)
    scan_parser.add_argument(
        "--extensions",
        type=_parse_csv_list,
        default=None,
        help="Comma-separated file extensions to include"
    )
    scan_parser.add_argument(
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Recurse into subfolders (default: on)"
    )
    scan_parser.add_argument("--out-dir", "-o", default=None, help="Report directory (default: cwd)")
    scan_parser.add_argument("--csv", default=None, help="CSV report file name")
    scan_parser.add_argument("--html", default=None, help="HTML report file name")
    scan_parser.add_argument("--summary-json", default=None, help="Also write a JSON summary with this name")
    scan_parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Parallel workers (default: 1, sequential)"
    )
    scan_parser.set_defaults(func=cmd_scan)

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze one file and print its record as JSON"
    )
    analyze_parser.add_argument("audio_path", help="Path to audio file")
    _add_config_args(analyze_parser)
    analyze_parser.set_defaults(func=cmd_analyze)

    # profiles command
    profiles_parser = subparsers.add_parser(
        "profiles",
        help="List built-in profiles or show a resolved profile"
    )
    profiles_parser.add_argument("name", nargs="?", help="Profile name or JSON path")
    profiles_parser.set_defaults(func=cmd_profiles)

    args = parser.parse_args(argv)

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
