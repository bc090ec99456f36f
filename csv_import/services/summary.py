from __future__ import annotations

from ..models.import_summary import ImportSummary

"""SUMMARY line rendering for CLI runs."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}"


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line of one import run.

    Format::

        SUMMARY rows={n} mapped_fields={n} errors={n} duplicates={n} step={step} committed={yes|no} elapsed_sec={s}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> render_summary_line(ImportSummary(
        ...     total_rows=3, mapped_fields=2, error_count=0, duplicate_rows=2,
        ...     step="confirmation", committed=True,
        ...     start_time=t, end_time=t, elapsed_seconds=0.0))
        'SUMMARY rows=3 mapped_fields=2 errors=0 duplicates=2 step=confirmation committed=yes elapsed_sec=0'
    """
    return (
        f"SUMMARY rows={summary.total_rows} "
        f"mapped_fields={summary.mapped_fields} "
        f"errors={summary.error_count} "
        f"duplicates={summary.duplicate_rows} "
        f"step={summary.step} "
        f"committed={'yes' if summary.committed else 'no'} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )
