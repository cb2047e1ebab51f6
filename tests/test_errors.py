from __future__ import annotations

import pytest

from babynames_tidy.errors import (
    AmbiguousWorksheet,
    MalformedCount,
    MissingWorksheet,
    SchemaMismatch,
    TidyError,
)


def test_message_without_context_is_plain() -> None:
    assert str(TidyError("boom")) == "boom"


def test_context_is_rendered_year_first() -> None:
    exc = TidyError("boom", source="2015.xls", year=2015)

    assert str(exc) == "boom [year 2015, 2015.xls]"


def test_with_context_keeps_existing_values() -> None:
    exc = TidyError("boom", source="a.xlsx")

    returned = exc.with_context(source="b.xlsx", year=2010)

    assert returned is exc
    assert exc.source == "a.xlsx"
    assert exc.year == 2010


@pytest.mark.parametrize(
    "exc",
    [
        MissingWorksheet("Table 1", ["Contents"]),
        AmbiguousWorksheet("Table 1", ["Table 1", "Table 1 (r)"]),
        SchemaMismatch(["Count_2"], ["Name", "Count", "Name_2"]),
        MalformedCount("x", column="Count", row=3),
    ],
)
def test_every_error_is_a_value_error(exc: TidyError) -> None:
    assert isinstance(exc, ValueError)
    assert isinstance(exc, TidyError)


def test_missing_worksheet_lists_available_sheets() -> None:
    exc = MissingWorksheet("Table 1", ["Contents", "Notes"])

    assert "'Contents', 'Notes'" in str(exc)
    assert exc.sheet_names == ["Contents", "Notes"]


def test_missing_worksheet_with_no_sheets() -> None:
    assert "available: none" in str(MissingWorksheet("Table 1", []))


def test_ambiguous_worksheet_counts_matches() -> None:
    exc = AmbiguousWorksheet("Table 1", ["Table 1 boys", "Table 1 girls"])

    assert str(exc).startswith("2 worksheets match 'Table 1'")


def test_malformed_count_reports_cell_position() -> None:
    exc = MalformedCount("n/a", column="Count_2", row=14, year=2012)

    assert str(exc) == "Count 'n/a' in column Count_2 (data row 14) is not an integer [year 2012]"
