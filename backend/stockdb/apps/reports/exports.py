from __future__ import annotations

import csv
import io
import re
import unicodedata

from . import schemas


def report_filename(table: schemas.ReportTable) -> str:
    ascii_title = unicodedata.normalize("NFKD", table.title).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_title.lower()).strip("-") or "report"
    return f"{slug}.csv"


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def table_to_csv(table: schemas.ReportTable, *, include_title: bool = True) -> str:
    """Render a report table as CSV text: optional title line, headers, rows."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if include_title:
        writer.writerow([table.title])
    writer.writerow(table.columns)
    for row in table.rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()
