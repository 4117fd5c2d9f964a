from __future__ import annotations

from ..models.report_result import ReportResult

"""SUMMARY line rendering.

Format:
SUMMARY key=<shift>/<date> rows=<merged> top=<n> bottom=<n>
<sheet>=<matched>/<rows> ... warnings=<n> elapsed_sec=<s>
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ReportResult) -> str:
    """Render the SUMMARY line for one run.

    Examples:
        >>> from shiftrecon.models.report_result import ReportKey, ReportResult
        >>> r = ReportResult(key=ReportKey("1", "28-Jan-2026"), sheets=[], diagnostics=[],
        ...                  top_rows=3, bottom_rows=3, merged_rows=2, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY key=1/28-Jan-2026 rows=2 top=3 bottom=3 warnings=0 elapsed_sec=2'
    """
    parts = [
        f"SUMMARY key={result.key.shift}/{result.key.date}",
        f"rows={result.merged_rows}",
        f"top={result.top_rows}",
        f"bottom={result.bottom_rows}",
    ]
    for stat in result.log_stats:
        parts.append(f"{stat.sheet_name}={stat.matched_rows}/{stat.total_rows}")
    parts.append(f"warnings={result.warning_count}")
    parts.append(f"elapsed_sec={_format_seconds(result.elapsed_seconds)}")
    return " ".join(parts)
