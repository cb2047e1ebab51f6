"""Tidy many yearly files and join them."""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from babynames_tidy import DEFAULT_SHEET_PATTERN, DEFAULT_SKIP_ROWS
from babynames_tidy.errors import TidyError
from babynames_tidy.io import load_raw_table
from babynames_tidy.models import QCReport
from babynames_tidy.pipeline import combine_years, tidy_table

OnError = Literal["skip", "abort"]


def tidy_file(
    path: Path,
    *,
    year: int | None = None,
    sheet_pattern: str = DEFAULT_SHEET_PATTERN,
    skip_rows: int = DEFAULT_SKIP_ROWS,
) -> tuple[pd.DataFrame, QCReport, str | None]:
    """Load and tidy one file.  Returns ``(tidy_df, qc, sheet_name)``."""
    try:
        raw = load_raw_table(path, sheet_pattern=sheet_pattern, skip_rows=skip_rows)
    except TidyError as exc:
        raise exc.with_context(year=year)
    tidy, qc = tidy_table(raw, year=year)
    return tidy, qc, raw.sheet


@dataclass
class YearResult:
    year: int
    source: Path
    table: pd.DataFrame | None = None
    qc: QCReport | None = None
    sheet: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "source": str(self.source),
            "sheet": self.sheet,
            "status": "success" if self.ok else "failed",
            "error_type": type(self.error).__name__ if self.error else None,
            "error_message": str(self.error) if self.error else "",
            "qc": self.qc.to_dict() if self.qc else None,
        }


@dataclass
class BatchResult:
    results: list[YearResult] = field(default_factory=list)

    @property
    def tables(self) -> dict[int, pd.DataFrame]:
        return {r.year: r.table for r in self.results if r.ok and r.table is not None}

    @property
    def failures(self) -> list[YearResult]:
        return [r for r in self.results if not r.ok]

    def combined(self) -> pd.DataFrame:
        return combine_years(self.tables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "years": [r.to_dict() for r in self.results],
            "succeeded": sum(1 for r in self.results if r.ok),
            "failed": len(self.failures),
        }


def _process_one(
    year: int, path: Path, *, sheet_pattern: str, skip_rows: int
) -> YearResult:
    path = Path(path)
    try:
        table, qc, sheet = tidy_file(
            path, year=year, sheet_pattern=sheet_pattern, skip_rows=skip_rows
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        return YearResult(year=year, source=path, error=exc)
    return YearResult(year=year, source=path, table=table, qc=qc, sheet=sheet)


def process_years(
    year_map: Mapping[int, Path],
    *,
    sheet_pattern: str = DEFAULT_SHEET_PATTERN,
    skip_rows: int = DEFAULT_SKIP_ROWS,
    on_error: OnError = "skip",
    jobs: int = 1,
) -> BatchResult:
    """Tidy every ``{year: path}`` entry, results in ascending year order.

    Files are independent: with ``on_error="skip"`` a failing year is
    recorded and the rest carry on; with ``"abort"`` the first failure (in
    year order) is re-raised.
    """
    if on_error not in {"skip", "abort"}:
        raise ValueError(f"Invalid on_error: {on_error!r}. Use skip/abort.")
    if jobs < 1:
        raise ValueError(f"jobs must be >= 1, got {jobs}")

    years = sorted(year_map)
    result = BatchResult()

    def _run(year: int) -> YearResult:
        return _process_one(
            year, year_map[year], sheet_pattern=sheet_pattern, skip_rows=skip_rows
        )

    if jobs == 1:
        for year in years:
            outcome = _run(year)
            if outcome.error is not None and on_error == "abort":
                raise outcome.error
            result.results.append(outcome)
        return result

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        outcomes = list(pool.map(_run, years))
    for outcome in outcomes:
        if outcome.error is not None and on_error == "abort":
            raise outcome.error
        result.results.append(outcome)
    return result
