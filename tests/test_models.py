from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from babynames_tidy.models import (
    Block,
    Cell,
    CellKind,
    QCReport,
    RunManifest,
    TidyRow,
    coerce_count,
)


@pytest.mark.parametrize(
    ("raw", "kind", "value"),
    [
        (None, CellKind.EMPTY, None),
        (float("nan"), CellKind.EMPTY, None),
        (pd.NA, CellKind.EMPTY, None),
        ("", CellKind.EMPTY, None),
        ("  \t", CellKind.EMPTY, None),
        (" OLIVER ", CellKind.TEXT, "OLIVER"),
        (6941, CellKind.NUMBER, 6941),
        (np.int64(12), CellKind.NUMBER, 12),
        (12.5, CellKind.NUMBER, 12.5),
        (True, CellKind.TEXT, "True"),
    ],
)
def test_cell_of_tags_values(raw: object, kind: CellKind, value: object) -> None:
    cell = Cell.of(raw)

    assert cell.kind is kind
    assert cell.value == value


def test_cell_as_text_drops_integral_float_suffix() -> None:
    assert Cell.of(2015.0).as_text() == "2015"
    assert Cell.of(2.5).as_text() == "2.5"
    assert Cell.of(None).as_text() == ""


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (5, 5),
        (np.int64(5), 5),
        (5.0, 5),
        ("5", 5),
        (" 1,234 ", 1234),
        ("+7", 7),
        ("12.0", 12),
        (0, 0),
        (5.5, None),
        (-1, None),
        ("-1", None),
        ("1,23", None),
        ("12.5", None),
        ("n/a", None),
        ("", None),
        (None, None),
        (float("inf"), None),
        (True, None),
    ],
)
def test_coerce_count(raw: object, expected: int | None) -> None:
    assert coerce_count(raw) == expected


def test_coerce_count_accepts_a_cell() -> None:
    assert coerce_count(Cell(CellKind.NUMBER, 3)) == 3


def test_tidy_row_to_dict_uses_block_value() -> None:
    row = TidyRow(name="AMELIA", count=5327, rank=1, block=Block.SECOND)

    assert row.to_dict() == {"Name": "AMELIA", "Count": 5327, "Rank": 1, "Block": "second"}


def test_qcreport_to_dict_returns_list_copies() -> None:
    qc = QCReport(
        rows_in=10,
        rows_kept=8,
        dropped_rows=2,
        names_out=15,
        dropped_columns=["Rank"],
        warnings=["bad row"],
    )

    payload = qc.to_dict()
    payload["dropped_columns"].append("Rank_2")
    payload["warnings"].append("another")

    assert qc.dropped_columns == ["Rank"]
    assert qc.warnings == ["bad row"]


def test_qcreport_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="rows_in"):
        QCReport(rows_in=-1)

    with pytest.raises(ValueError, match="rows_kept"):
        QCReport(rows_kept=-1)

    with pytest.raises(ValueError, match="names_out"):
        QCReport(names_out=-1)


def test_qcreport_rejects_inconsistent_row_relationships() -> None:
    with pytest.raises(ValueError, match="rows_kept"):
        QCReport(rows_in=2, rows_kept=3)

    with pytest.raises(ValueError, match="dropped_rows"):
        QCReport(rows_in=5, rows_kept=4, dropped_rows=2)

    with pytest.raises(ValueError, match="names_out"):
        QCReport(rows_in=5, rows_kept=2, dropped_rows=3, names_out=5)


def test_qcreport_rejects_non_string_lists() -> None:
    with pytest.raises(TypeError, match="dropped_columns"):
        QCReport(dropped_columns=["Rank", 1])  # type: ignore[list-item]

    with pytest.raises(TypeError, match="warnings"):
        QCReport(warnings="warn")  # type: ignore[arg-type]


def test_run_manifest_validates_counts_and_status() -> None:
    with pytest.raises(TypeError, match="rows_in"):
        RunManifest(rows_in=True)  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="names_out"):
        RunManifest(names_out=-2)

    with pytest.raises(ValueError, match="status"):
        RunManifest(status="partial")


def test_run_manifest_to_dict_round_trips_fields() -> None:
    manifest = RunManifest(version="0.2.0", year=2015, sheet="Table 1", rows_in=6, names_out=6)

    payload = manifest.to_dict()

    assert payload["tool"] == "babynames-tidy"
    assert payload["year"] == 2015
    assert payload["sheet"] == "Table 1"
    assert payload["status"] == "success"
    assert payload["error_code"] is None
