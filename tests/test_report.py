from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from babynames_tidy.batch import BatchResult, process_years
from babynames_tidy.report import write_report


def test_write_report_has_summary_all_years_and_year_sheets(
    make_workbook, tmp_path: Path  # type: ignore[no-untyped-def]
) -> None:
    batch = process_years(
        {
            2015: make_workbook("2015.xlsx"),
            2014: make_workbook("2014.xlsx"),
            2013: tmp_path / "missing.xlsx",
        }
    )

    path = write_report(tmp_path / "out", batch)

    assert path == tmp_path / "out" / "Baby_Names.xlsx"
    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "All_Years", "2014", "2015"]

    summary = wb["Summary"]
    assert [c.value for c in summary[4]] == [
        "Year", "Source", "Sheet", "Status", "Rows in", "Names out", "Notes",
    ]
    statuses = {summary.cell(row=r, column=1).value: summary.cell(row=r, column=4).value
                for r in range(5, 8)}
    assert statuses == {2013: "FAILED", 2014: "OK", 2015: "OK"}

    all_years = wb["All_Years"]
    assert [c.value for c in all_years[1]] == ["Name", "Count", "Rank", "Block", "Year"]
    assert all_years.max_row == 1 + 12
    assert all_years["A2"].value == "OLIVER"
    assert all_years["E2"].value == 2014
    assert "All_Years" in all_years.tables

    year_sheet = wb["2015"]
    assert year_sheet["A2"].value == "OLIVER"
    assert year_sheet["B2"].value == 6941
    assert year_sheet["B2"].number_format == "#,##0"


def test_write_report_with_no_years(tmp_path: Path) -> None:
    path = write_report(tmp_path, BatchResult())

    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "All_Years"]
    assert wb["Summary"]["A5"].value == "No years processed"
    assert not (tmp_path / "Baby_Names.tmp.xlsx").exists()
