"""I/O helpers — pick the worksheet, load raw tables, write artifacts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Literal, cast

import pandas as pd

from babynames_tidy import DEFAULT_SHEET_PATTERN, DEFAULT_SKIP_ROWS
from babynames_tidy.errors import AmbiguousWorksheet, MissingWorksheet, TidyError
from babynames_tidy.models import Cell
from babynames_tidy.utils import atomic_write_text, tmp_sibling

_EXCEL_ENGINES: dict[str, str] = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xltx": "openpyxl",
    ".xltm": "openpyxl",
    ".xls": "xlrd",
}


@dataclass
class RawTable:
    """A raw sheet: header labels exactly as found, cells untouched."""

    frame: pd.DataFrame
    source: str
    sheet: str | None = None


# ── Worksheet selection ─────────────────────────────────────────


def select_worksheet(sheet_names: list[str], pattern: str = DEFAULT_SHEET_PATTERN) -> str:
    """Return the single sheet whose name contains *pattern*.

    A trailing digit after the pattern does not count as a match, so
    ``"Table 1"`` matches ``"Table 1 - Boys"`` but not ``"Table 10"``.
    """
    needle = re.compile(re.escape(pattern) + r"(?!\d)")
    matches = [name for name in sheet_names if needle.search(str(name))]
    if not matches:
        raise MissingWorksheet(pattern, [str(name) for name in sheet_names])
    if len(matches) > 1:
        raise AmbiguousWorksheet(pattern, matches)
    return matches[0]


# ── Loading ──────────────────────────────────────────────────────


def _raw_label(value: object) -> str:
    return Cell.of(value).as_text()


def _grid_to_raw(grid: pd.DataFrame) -> pd.DataFrame:
    """Promote the first row of a header-less grid to column labels."""
    if grid.empty:
        return pd.DataFrame()
    labels = [_raw_label(v) for v in grid.iloc[0].tolist()]
    body = grid.iloc[1:].reset_index(drop=True)
    body.columns = pd.Index(labels, dtype=object)
    return body


def _read_csv_grid(path: Path, *, skip_rows: int, delimiter: str | None) -> pd.DataFrame:
    last_exc: Exception | None = None
    sep = delimiter if delimiter else None
    engine: Literal["c", "python"] = "c" if delimiter else "python"
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return pd.read_csv(
                path,
                header=None,
                skiprows=skip_rows,
                dtype="string",
                sep=sep,
                engine=engine,
                encoding=encoding,
                encoding_errors="strict",
                na_filter=False,
                skip_blank_lines=False,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def _read_excel_grid(
    path: Path, *, engine: str, sheet_pattern: str, skip_rows: int
) -> tuple[pd.DataFrame, str]:
    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    try:
        book = pd.ExcelFile(path, engine=engine)
    except ImportError as exc:
        raise ValueError(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc
    with book:
        sheet = select_worksheet([str(name) for name in book.sheet_names], sheet_pattern)
        grid = read_excel(book, sheet_name=sheet, header=None, skiprows=skip_rows, dtype=object)
    return grid, sheet


def load_raw_table(
    path: Path,
    *,
    sheet_pattern: str = DEFAULT_SHEET_PATTERN,
    skip_rows: int = DEFAULT_SKIP_ROWS,
    delimiter: str | None = None,
) -> RawTable:
    """Load the raw "Table 1" grid from a spreadsheet (or a whole CSV).

    The row after the first *skip_rows* rows holds the header; its labels are
    kept verbatim, duplicates and blanks included.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the extension is not supported, *path* is a directory, or CSV
        decoding/parsing fails.
    MissingWorksheet, AmbiguousWorksheet
        If no single worksheet name contains *sheet_pattern*.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")
    if skip_rows < 0:
        raise ValueError(f"skip_rows must be >= 0, got {skip_rows}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            grid = _read_csv_grid(path, skip_rows=skip_rows, delimiter=delimiter)
            return RawTable(frame=_grid_to_raw(grid), source=str(path))

        engine = _EXCEL_ENGINES.get(suffix)
        if engine is None:
            raise ValueError(
                f"Unsupported file type: {suffix!r}. Use .xlsx, .xls, or .csv"
            )
        grid, sheet = _read_excel_grid(
            path, engine=engine, sheet_pattern=sheet_pattern, skip_rows=skip_rows
        )
    except TidyError as exc:
        raise exc.with_context(source=str(path))
    return RawTable(frame=_grid_to_raw(grid), source=str(path), sheet=sheet)


# ── Tidy tables ─────────────────────────────────────────────────


def write_tidy_csv(path: Path, df: pd.DataFrame) -> Path:
    """Write a tidy table as CSV (atomic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = tmp_sibling(path)
    df.to_csv(tmp_path, index=False, encoding="utf-8")
    tmp_path.replace(path)
    return path


def read_tidy_csv(path: Path) -> pd.DataFrame:
    """Read a CSV written by :func:`write_tidy_csv` back with tidy dtypes."""
    df = pd.read_csv(
        path,
        dtype={"Name": "string", "Block": "string"},
        na_filter=False,
        encoding="utf-8",
    )
    for col in ("Count", "Rank", "Year"):
        if col in df.columns:
            df[col] = df[col].astype("int64")
    return df


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return atomic_write_text(Path(path), payload)
