"""Shared fixtures: small "Table 1" workbooks laid out like the ONS releases."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

TABLE_1 = "Table 1 - Top 100 boys, E&W"
SHEETS: tuple[str, ...] = ("Contents", TABLE_1, "Table 10 - Girls by month")

HEADER: list[Any] = [
    "Rank", "Name", "Count", "Change in rank", None,
    "Rank", "Name", "Count", "Change in rank",
]
BOYS: list[tuple[Any, ...]] = [
    (1, "OLIVER", 6941, 0, None, 4, "GEORGE", 4869, 2),
    (2, "JACK", 5371, 1, None, 5, "JACOB", 4850, 0),
    (3, "HARRY", 5308, -1, None, 6, "CHARLIE", 4831, 3),
]

MakeWorkbook = Callable[..., Path]


def _write_names_workbook(
    path: Path,
    *,
    sheet_names: Sequence[str],
    target_sheet: str | None,
    header: Sequence[Any],
    rows: Sequence[Sequence[Any]],
    footnote: bool,
) -> Path:
    wb = Workbook()
    default = wb.active
    if default is not None:
        wb.remove(default)
    for name in sheet_names:
        ws = wb.create_sheet(title=name)
        ws["A1"] = name
        if name != target_sheet:
            continue
        ws["A1"] = "Table 1: Top 100 baby names, England and Wales"
        ws["A3"] = "Boys"
        # header on row 7, row 8 left blank as the separator
        for c_idx, label in enumerate(header, 1):
            if label is not None:
                ws.cell(row=7, column=c_idx, value=label)
        for r_idx, row in enumerate(rows, 9):
            for c_idx, value in enumerate(row, 1):
                if value is not None:
                    ws.cell(row=r_idx, column=c_idx, value=value)
        if footnote:
            ws.cell(row=9 + len(rows) + 1, column=1, value="Source: Office for National Statistics")
    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path: Path) -> MakeWorkbook:
    def _make(
        name: str = "names.xlsx",
        *,
        sheet_names: Sequence[str] = SHEETS,
        target_sheet: str | None = TABLE_1,
        header: Sequence[Any] = tuple(HEADER),
        rows: Sequence[Sequence[Any]] = tuple(BOYS),
        footnote: bool = True,
    ) -> Path:
        return _write_names_workbook(
            tmp_path / name,
            sheet_names=sheet_names,
            target_sheet=target_sheet,
            header=header,
            rows=rows,
            footnote=footnote,
        )

    return _make


@pytest.fixture
def names_xlsx(make_workbook: MakeWorkbook) -> Path:
    return make_workbook()
