"""CSV and Excel renderers for time entry exports.

Renderers take rows exactly as returned by the statements in ``queries`` and
turn them into file bytes. They never filter or reorder.
"""
import csv
import io
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Callable, Iterable

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from queries import hours_from_minutes

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ENTRIES_CSV_FILENAME = "time_entries.csv"
ENTRIES_XLSX_FILENAME = "time_entries.xlsx"
SUMMARY_XLSX_FILENAME = "time_summary.xlsx"


def format_hhmm(value: time | str) -> str:
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value)[:5]


def format_date(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


@dataclass(frozen=True)
class Column:
    header: str
    width: int
    value: Callable[[Any], Any]


def entry_columns(show_projects: bool = False, track_breaks: bool = False) -> list[Column]:
    """Export columns for the entry listing, depending on enabled features."""
    columns = [
        Column("Dato", 12, lambda r: r.work_date),
        Column("Person", 22, lambda r: r.user_name),
    ]
    if show_projects:
        columns.append(Column("Projekt", 20, lambda r: r.project_name))
    columns += [
        Column("Start", 10, lambda r: format_hhmm(r.start_time)),
        Column("Slut", 10, lambda r: format_hhmm(r.end_time)),
    ]
    if track_breaks:
        columns.append(Column("Pause", 10, lambda r: int(r.break_minutes or 0)))
    columns += [
        Column("Minutter", 10, lambda r: int(r.duration_minutes)),
        Column("Timer", 10, lambda r: hours_from_minutes(int(r.duration_minutes))),
        Column("Note", 50, lambda r: r.note or ""),
    ]
    return columns


def _csv_value(value: Any) -> Any:
    if isinstance(value, float):
        # Danish locale: comma as decimal separator
        return f"{value:.2f}".replace(".", ",")
    if isinstance(value, date):
        return format_date(value)
    return value


def _quoted(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def render_entries_csv(rows: Iterable[Any], columns: list[Column]) -> bytes:
    """Semicolon-separated UTF-8 with BOM.

    Fields are quoted only when needed, except the trailing note column which
    is always quoted.
    """
    fields = [column for column in columns if column.header != "Note"]
    note = next((column for column in columns if column.header == "Note"), None)

    out = io.StringIO()
    writer = csv.writer(out, delimiter=";", lineterminator="")
    lines = []

    def write_line(values: list[Any], note_text: str | None) -> None:
        out.seek(0)
        out.truncate()
        writer.writerow(values)
        line = out.getvalue()
        if note_text is not None:
            line += ";" + note_text
        lines.append(line)

    write_line([column.header for column in fields], note.header if note else None)
    for row in rows:
        write_line(
            [_csv_value(column.value(row)) for column in fields],
            _quoted(note.value(row)) if note else None,
        )
    return "\n".join(lines).encode("utf-8-sig")


def _write_header(ws, columns: list[Column]) -> None:
    header_font = Font(bold=True)
    for idx, column in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx, value=column.header)
        cell.font = header_font
        ws.column_dimensions[get_column_letter(idx)].width = column.width


def _save(wb) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def render_entries_xlsx(rows: Iterable[Any], columns: list[Column]) -> bytes:
    """Detailed entry sheet with a bold header row."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Tid (detaljer)"
    _write_header(ws, columns)

    for row_idx, row in enumerate(rows, start=2):
        for col_idx, column in enumerate(columns, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=column.value(row))
            if isinstance(cell.value, date):
                cell.number_format = "yyyy-mm-dd"

    return _save(wb)


SUMMARY_COLUMNS = [
    Column("Person", 24, lambda r: r.user_name),
    Column("Registreringer", 16, lambda r: int(r.entries or 0)),
    Column("Minutter", 12, lambda r: int(r.minutes or 0)),
    Column("Timer", 10, lambda r: hours_from_minutes(int(r.minutes or 0))),
]


def render_summary_xlsx(rows: Iterable[Any]) -> bytes:
    """Per-person summary sheet with a bold TOTAL row, all rows vertically centered."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Opsummering"
    _write_header(ws, SUMMARY_COLUMNS)

    total_entries = 0
    total_minutes = 0
    row_idx = 1
    for row_idx, row in enumerate(rows, start=2):
        values = [column.value(row) for column in SUMMARY_COLUMNS]
        total_entries += values[1]
        total_minutes += values[2]
        for col_idx, value in enumerate(values, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    total_row = row_idx + 1
    totals = ["TOTAL", total_entries, total_minutes, hours_from_minutes(total_minutes)]
    bold = Font(bold=True)
    for col_idx, value in enumerate(totals, start=1):
        ws.cell(row=total_row, column=col_idx, value=value).font = bold

    middle = Alignment(vertical="center")
    for ws_row in ws.iter_rows(min_row=1, max_row=total_row):
        for cell in ws_row:
            cell.alignment = middle

    return _save(wb)
