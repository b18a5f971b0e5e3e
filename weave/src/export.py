"""Traceability matrix exporters.

Writes trace rows as the traceability table CSV: one line per row, the
same 11 columns the table view shows.
Quoting of commas, quotes and newlines is left to the csv module.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from weave.src.models import TABLE_COLUMNS, TraceRow

CSV_FILENAME = "traceability_matrix.csv"


def _write_rows(handle: TextIO, rows: Iterable[TraceRow]) -> None:
    writer = csv.writer(handle, lineterminator="\n")
    writer.writerow(TABLE_COLUMNS)
    for row in rows:
        writer.writerow(row.to_table_cells())


def rows_to_csv_text(rows: Iterable[TraceRow]) -> str:
    """Render trace rows as traceability-matrix CSV text.

    Args:
        rows: Trace rows in display order.

    Returns:
        CSV text with a header line.
    """
    buffer = io.StringIO()
    _write_rows(buffer, rows)
    return buffer.getvalue()


def export_rows_to_csv(rows: Iterable[TraceRow], output_path: str | Path) -> Path:
    """Write trace rows to a CSV file.

    Args:
        rows: Trace rows in display order.
        output_path: Destination file path; parent directories are created.

    Returns:
        Path to the written file.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        _write_rows(f, rows)
    return path

