from __future__ import annotations

from roster_import.models.outcome import ImportReport

"""SUMMARY line rendering for a roster commit.

Format:
    SUMMARY rows={total} created={c} matched={m} skipped={s} invalid={v}
    failed={f} elapsed_sec={elapsed}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ImportReport) -> str:
    """Render the SUMMARY line for an ImportReport.

    >>> from roster_import.models.outcome import ImportReport
    >>> render_summary_line(ImportReport.from_outcomes([], elapsed_seconds=2.0))
    'SUMMARY rows=0 created=0 matched=0 skipped=0 invalid=0 failed=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={report.total} "
        f"created={report.created} "
        f"matched={report.matched_existing} "
        f"skipped={report.skipped_duplicates} "
        f"invalid={report.validation_errors} "
        f"failed={report.failed} "
        f"elapsed_sec={_format_number(report.elapsed_seconds)}"
    )
