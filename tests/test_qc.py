from __future__ import annotations

import json
from pathlib import Path

from babynames_tidy.models import QCReport
from babynames_tidy.qc import write_qc_report


def test_write_qc_report_writes_expected_contract(tmp_path: Path) -> None:
    qc = QCReport(
        rows_in=5,
        rows_kept=3,
        dropped_rows=2,
        names_out=6,
        dropped_columns=["Rank"],
        warnings=["warn"],
    )

    out = write_qc_report(tmp_path, qc)

    assert out == tmp_path / "qc_report.json"
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == {
        "dropped_columns": ["Rank"],
        "dropped_rows": 2,
        "names_out": 6,
        "rows_in": 5,
        "rows_kept": 3,
        "warnings": ["warn"],
    }


def test_write_qc_report_names_file_by_year(tmp_path: Path) -> None:
    out = write_qc_report(tmp_path, QCReport(), year=2015)

    assert out.name == "qc_report_2015.json"
