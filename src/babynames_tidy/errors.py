"""Per-table errors raised while locating, loading or tidying a sheet."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class TidyError(ValueError):
    """Base class for every per-file / per-table failure.

    ``source`` and ``year`` are optional context filled in by whoever knows
    them (the loader knows the file, the caller knows the year).
    """

    def __init__(self, message: str, *, source: str | None = None, year: int | None = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.year = year

    def with_context(self, *, source: str | None = None, year: int | None = None) -> TidyError:
        """Attach file/year context without overwriting what is already set."""
        if self.source is None and source is not None:
            self.source = source
        if self.year is None and year is not None:
            self.year = year
        return self

    def __str__(self) -> str:
        context: list[str] = []
        if self.year is not None:
            context.append(f"year {self.year}")
        if self.source is not None:
            context.append(self.source)
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"


class MissingWorksheet(TidyError):
    def __init__(self, pattern: str, sheet_names: Sequence[str], **kwargs: Any):
        self.pattern = pattern
        self.sheet_names = list(sheet_names)
        available = ", ".join(repr(name) for name in self.sheet_names) or "none"
        super().__init__(
            f"No worksheet name contains {pattern!r} (available: {available})", **kwargs
        )


class AmbiguousWorksheet(TidyError):
    def __init__(self, pattern: str, matches: Sequence[str], **kwargs: Any):
        self.pattern = pattern
        self.matches = list(matches)
        found = ", ".join(repr(name) for name in self.matches)
        super().__init__(
            f"{len(self.matches)} worksheets match {pattern!r}: {found}", **kwargs
        )


class SchemaMismatch(TidyError):
    def __init__(self, missing_columns: Sequence[str], columns: Sequence[str], **kwargs: Any):
        self.missing_columns = list(missing_columns)
        self.columns = list(columns)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing_columns)} "
            f"(found: {', '.join(self.columns) or 'none'})",
            **kwargs,
        )


class MalformedCount(TidyError):
    def __init__(self, value: Any, *, column: str, row: int, **kwargs: Any):
        self.value = value
        self.column = column
        self.row = row
        super().__init__(
            f"Count {value!r} in column {column} (data row {row}) is not an integer",
            **kwargs,
        )
