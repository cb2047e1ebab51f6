"""Excel report writer — produces Baby_Names.xlsx."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from babynames_tidy import __version__
from babynames_tidy.batch import BatchResult

REPORT_NAME = "Baby_Names.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
FAIL_FONT = Font(name="Calibri", bold=True, size=11, color="C00000")
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

INT_FMT = '#,##0'
YEAR_FMT = '0'

_COL_FORMATS: dict[str, str] = {
    "count": INT_FMT,
    "rank": YEAR_FMT,
    "year": YEAR_FMT,
    "rows in": INT_FMT,
    "names out": INT_FMT,
}

_SUMMARY_HEADERS = ["Year", "Source", "Sheet", "Status", "Rows in", "Names out", "Notes"]
_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int, row: int = 1) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet, *, max_width: int = 40) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)
    for c_idx in range(1, ws.max_column + 1):
        width = max(
            len(str(row[0].value or ""))
            for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx)
        )
        ws.column_dimensions[get_column_letter(c_idx)].width = min(width + 4, max_width)


def _apply_number_formats(ws: Worksheet, col_names: list[str], first_row: int) -> None:
    for c_idx, name in enumerate(col_names, 1):
        fmt = _COL_FORMATS.get(name.lower())
        if not fmt:
            continue
        for row in ws.iter_rows(min_row=first_row, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
            row[0].number_format = fmt


def _table_name(ws: Worksheet, name: str) -> str:
    """Excel table names must be identifier-like and unique per workbook."""
    base = re.sub(r"[^A-Za-z0-9_]", "_", name) or "Table"
    if not re.match(r"^[A-Za-z_]", base):
        base = f"T_{base}"
    existing: set[str] = set()
    if ws.parent is not None:
        for sheet in ws.parent.worksheets:
            existing.update(cast(Iterable[str], sheet.tables.keys()))
    candidate, suffix = base, 1
    while candidate in existing:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def _excel_value(val: Any) -> Any:
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val
    item = getattr(val, "item", None)
    if callable(item):
        val = item()
    if isinstance(val, str) and val.lstrip()[:1] in _EXCEL_FORMULA_PREFIXES:
        return f"'{val}"
    return val


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame) -> Worksheet:
    """Write *df* to a new sheet as a styled Excel Table."""
    ws = wb.create_sheet(title=name)
    col_names = [str(c) for c in df.columns]
    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    _apply_number_formats(ws, col_names, first_row=2)
    ws.freeze_panes = "A2"
    _auto_width(ws)
    if len(df) > 0 and col_names:
        table = Table(
            displayName=_table_name(ws, name),
            ref=f"A1:{get_column_letter(len(col_names))}{len(df) + 1}",
        )
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9", showFirstColumn=False,
            showLastColumn=False, showRowStripes=True, showColumnStripes=False,
        )
        ws.add_table(table)
    return ws


def _write_summary(wb: Workbook, batch: BatchResult) -> None:
    ws = wb.create_sheet(title="Summary")
    ws.cell(row=1, column=1, value="babynames-tidy: yearly tables").font = TITLE_FONT
    ws.merge_cells("A1:G1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated} by v{__version__}").font = SUBTITLE_FONT
    ws.merge_cells("A2:G2")

    header_row = 4
    for c_idx, label in enumerate(_SUMMARY_HEADERS, 1):
        ws.cell(row=header_row, column=c_idx, value=label)
    _style_header(ws, len(_SUMMARY_HEADERS), row=header_row)

    row = header_row + 1
    for result in batch.results:
        qc = result.qc
        notes = str(result.error) if result.error else "; ".join(qc.warnings if qc else [])
        values = [
            result.year,
            result.source.name,
            result.sheet or "",
            "OK" if result.ok else "FAILED",
            qc.rows_in if qc else None,
            qc.names_out if qc else None,
            notes,
        ]
        for c_idx, value in enumerate(values, 1):
            ws.cell(row=row, column=c_idx, value=_excel_value(value))
        if not result.ok:
            ws.cell(row=row, column=4).font = FAIL_FONT
            ws.cell(row=row, column=7).font = WARN_FONT
        row += 1

    if not batch.results:
        ws.cell(row=row, column=1, value="No years processed")

    _apply_number_formats(ws, _SUMMARY_HEADERS, first_row=header_row + 1)
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    _auto_width(ws, max_width=60)


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, batch: BatchResult) -> Path:
    """Write ``Baby_Names.xlsx`` (Summary, All_Years, one sheet per year)."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_NAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    _write_summary(wb, batch)
    _df_to_sheet(wb, "All_Years", batch.combined())
    for year, table in sorted(batch.tables.items()):
        _df_to_sheet(wb, str(year), table)

    tmp_path = out_dir / "Baby_Names.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
