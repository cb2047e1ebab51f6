"""Data models used across the package."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral, Real
from typing import Any

import pandas as pd

_INTEGER_TEXT_RE = re.compile(r"^\+?(\d+|\d{1,3}(,\d{3})+)$")


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Cells ────────────────────────────────────────────────────────


class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


@dataclass(frozen=True)
class Cell:
    """A spreadsheet cell tagged as text, number or empty."""

    kind: CellKind
    value: str | int | float | None = None

    @classmethod
    def of(cls, raw: Any) -> Cell:
        if raw is None:
            return cls(CellKind.EMPTY)
        try:
            if pd.isna(raw):
                return cls(CellKind.EMPTY)
        except (TypeError, ValueError):
            pass
        if isinstance(raw, bool):
            return cls(CellKind.TEXT, str(raw))
        if isinstance(raw, Integral):
            return cls(CellKind.NUMBER, int(raw))
        if isinstance(raw, Real):
            return cls(CellKind.NUMBER, float(raw))
        text = str(raw).strip()
        if not text:
            return cls(CellKind.EMPTY)
        return cls(CellKind.TEXT, text)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def as_text(self) -> str:
        """Return the cell as a stripped string ("" when empty)."""
        if self.kind is CellKind.EMPTY:
            return ""
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


def coerce_count(raw: Any) -> int | None:
    """Coerce a raw count cell to ``int``.

    Accepts non-negative integers, integral floats (``12.0``) and integer
    text with ``,`` thousands separators (``"1,234"``).  Returns ``None`` for
    anything else, including empty cells and negative numbers.
    """
    cell = raw if isinstance(raw, Cell) else Cell.of(raw)
    result: int | None = None
    if cell.kind is CellKind.NUMBER:
        value = cell.value
        if isinstance(value, int):
            result = value
        elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
            result = int(value)
    elif cell.kind is CellKind.TEXT:
        text = str(cell.value)
        if _INTEGER_TEXT_RE.fullmatch(text):
            result = int(text.replace(",", ""))
        elif "." in text:
            # "12.0" from a CSV export of a numeric column
            try:
                number = float(text)
            except ValueError:
                number = math.nan
            if math.isfinite(number) and number.is_integer():
                result = int(number)
    if result is None or result < 0:
        return None
    return result


# ── Tidy rows ────────────────────────────────────────────────────


class Block(str, Enum):
    """Which side-by-side rank block a name came from."""

    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class TidyRow:
    name: str
    count: int
    rank: int
    block: Block

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Count": self.count,
            "Rank": self.rank,
            "Block": self.block.value,
        }


# ── Reports ──────────────────────────────────────────────────────


@dataclass
class QCReport:
    """Quality-control report for one tidied table.

    Contract invariants: ``dropped_rows == rows_in - rows_kept`` and
    ``names_out <= 2 * rows_kept`` (each kept row holds at most two names).
    """

    rows_in: int = 0
    rows_kept: int = 0
    dropped_rows: int = 0
    names_out: int = 0
    dropped_columns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_kept = _to_non_negative_int(self.rows_kept, "rows_kept")
        self.dropped_rows = _to_non_negative_int(self.dropped_rows, "dropped_rows")
        self.names_out = _to_non_negative_int(self.names_out, "names_out")
        self.dropped_columns = _to_string_list(self.dropped_columns, "dropped_columns")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_kept > self.rows_in:
            raise ValueError("rows_kept must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.rows_kept:
            raise ValueError("dropped_rows must equal rows_in - rows_kept")
        if self.names_out > 2 * self.rows_kept:
            raise ValueError("names_out must be <= 2 * rows_kept")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_kept": self.rows_kept,
            "dropped_rows": self.dropped_rows,
            "names_out": self.names_out,
            "dropped_columns": list(self.dropped_columns),
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single file."""

    tool: str = "babynames-tidy"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    sheet: str | None = None
    year: int | None = None
    output_path: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    names_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.names_out = _to_non_negative_int(self.names_out, "names_out")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "sheet": self.sheet,
            "year": self.year,
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "names_out": self.names_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
