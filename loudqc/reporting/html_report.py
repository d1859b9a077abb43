from __future__ import annotations

from html import escape
from typing import Iterable

from loudqc.reporting.csv_report import CSV_FIELDS, record_row
from loudqc.types import MeasurementRecord

_LEGEND = [
    ("Integrated LUFS", "Loudness Units relative to Full Scale: perceived loudness averaged over the whole file."),
    ("Suggested Gain", "Gain in dB that would bring the integrated loudness onto the target."),
    ("True Peak (dBTP)", "Highest reconstructed (inter-sample) peak. Must stay at or below the ceiling."),
    ("Sample Peak (dBFS)", "Highest raw sample value relative to digital full scale."),
    ("LRA", "Loudness Range in LU: spread of short-term loudness across the file."),
    ("READY", "Loudness inside the target window, true peak at or below the ceiling, sample rate allowed."),
    ("ADJUST", "Measured successfully but at least one check failed; see Issues."),
    ("ERROR", "Loudness analysis did not produce all measurements."),
]


def _fmt(value: float | None, suffix: str = "") -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}{suffix}"


def _render_rows(records: Iterable[MeasurementRecord]) -> str:
    rows = []
    for r in records:
        row = record_row(r)
        cells = []
        for field in CSV_FIELDS:
            value = escape(row[field])
            if field == "Status":
                cells.append(f"<td class='status {r.verdict.value.lower()}'>{value}</td>")
            elif field in ("File", "Path"):
                cells.append(f"<td class='text' title='{escape(r.path)}'>{value}</td>")
            elif field in ("Issues", "Codec"):
                cells.append(f"<td class='text'>{value}</td>")
            else:
                cells.append(f"<td>{value}</td>")
        rows.append("<tr>" + "".join(cells) + "</tr>")
    return "".join(rows)


def render_html_report(
    records: list[MeasurementRecord],
    summary: dict,
    *,
    title: str = "Loudness Compliance Report"
) -> str:
    """Render a self-contained HTML page with summary, table and legend."""
    totals = summary.get("totals", {})
    counts = totals.get("status_counts", {})
    averages = summary.get("averages", {})
    cfg = summary.get("config", {})
    rates = ", ".join(str(r) for r in cfg.get("allowed_sample_rates", []))

    summary_html = (
        "<div class='section summary'><h2>Summary</h2><ul>"
        f"<li>Files analyzed: <b>{totals.get('files', 0)}</b></li>"
        f"<li class='ready'>READY: <b>{counts.get('READY', 0)}</b></li>"
        f"<li class='adjust'>ADJUST: <b>{counts.get('ADJUST', 0)}</b></li>"
        f"<li class='error'>ERROR: <b>{counts.get('ERROR', 0)}</b></li>"
        f"<li>Average integrated loudness: <b>{_fmt(averages.get('integrated_lufs'), ' LUFS')}</b></li>"
        f"<li>Average loudness range: <b>{_fmt(averages.get('lra_lu'), ' LU')}</b></li>"
        "</ul></div>"
    )
    target = cfg.get("target_lufs")
    tol = cfg.get("tolerance_lu")
    ceiling = cfg.get("true_peak_ceiling_dbtp")
    thresholds_html = (
        "<div class='section'><h2>Thresholds</h2><ul>"
        f"<li>Profile: <code>{escape(str(cfg.get('profile', '')))}</code></li>"
        f"<li>Target: {_fmt(target, ' LUFS')} &plusmn; {_fmt(tol, ' LU')}</li>"
        f"<li>True peak ceiling: {_fmt(ceiling, ' dBTP')}</li>"
        f"<li>Allowed sample rates: {escape(rates) or 'any'} Hz</li>"
        "</ul></div>"
    )
    header = "".join(f"<th>{escape(f)}</th>" for f in CSV_FIELDS)
    table_html = (
        "<div class='section'><h2>Files</h2>"
        f"<table><thead><tr>{header}</tr></thead><tbody>"
        f"{_render_rows(records)}"
        "</tbody></table></div>"
    )
    legend_html = (
        "<div class='section legend'><h2>Legend</h2><dl>"
        + "".join(f"<dt>{escape(k)}</dt><dd>{escape(v)}</dd>" for k, v in _LEGEND)
        + "</dl></div>"
    )

    return (
        "<!doctype html><html><head><meta charset='utf-8'>"
        f"<title>{escape(title)}</title>"
        "<style>"
        "body{font-family:Arial,Helvetica,sans-serif;margin:24px;color:#222}"
        "h1,h2{margin:0 0 12px 0}"
        ".meta{color:#555;margin-bottom:16px}"
        ".section{margin:20px 0}"
        ".summary ul{list-style:none;padding:0}"
        ".summary li{margin:4px 0}"
        ".summary li.ready b{color:#2e7d32}"
        ".summary li.adjust b{color:#f9a825}"
        ".summary li.error b{color:#c62828}"
        "table{border-collapse:collapse;width:100%;font-size:13px}"
        "th,td{border-bottom:1px solid #eee;padding:6px 8px;text-align:right;white-space:nowrap}"
        "td.text{text-align:left;max-width:420px;overflow:hidden;text-overflow:ellipsis}"
        "td.status{font-weight:bold;text-align:center;color:#fff}"
        "td.status.ready{background:#2e7d32}"
        "td.status.adjust{background:#f9a825;color:#222}"
        "td.status.error{background:#8d3b3b}"
        "dt{font-weight:bold;margin-top:8px}"
        "dd{margin:2px 0 0 18px;color:#444}"
        "</style></head><body>"
        f"<h1>{escape(title)}</h1>"
        f"<div class='meta'>Generated: {escape(str(summary.get('generated_utc', '')))}</div>"
        f"{summary_html}"
        f"{thresholds_html}"
        f"{table_html}"
        f"{legend_html}"
        "</body></html>"
    )
