"""Tidying pipeline — pure functions, no side effects.

A raw "Table 1" sheet holds two rank blocks side by side::

    Rank  Name  Count  Change  |  Rank  Name  Count  Change
      1   OLIVER  6941    0    |   51   ...

which is sanitized, filtered, narrowed to the name/count columns and stacked
into one long table (block 1 first, then block 2).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from numbers import Integral

import pandas as pd

from babynames_tidy import COUNT_COLUMNS, NAME_COLUMNS, REQUIRED_COLUMNS, TIDY_COLUMNS
from babynames_tidy.errors import MalformedCount, SchemaMismatch, TidyError
from babynames_tidy.io import RawTable
from babynames_tidy.models import Block, Cell, QCReport, TidyRow, coerce_count

# ── Header sanitizer ────────────────────────────────────────────

_INVALID_LABEL_RE = re.compile(r"[^A-Za-z0-9_.]+")
_LEADING_LETTER_RE = re.compile(r"^[A-Za-z]")


def sanitize_label(label: object) -> str:
    """Rewrite one label so it starts with a letter and uses ``[A-Za-z0-9_.]``."""
    text = _INVALID_LABEL_RE.sub("_", Cell.of(label).as_text())
    if not text:
        return "X"
    if not _LEADING_LETTER_RE.match(text):
        return f"X{text}"
    return text


def sanitize_headers(labels: Iterable[object]) -> list[str]:
    """Return unique, well-formed labels in the same order.

    Repeats get ``_2``, ``_3``, ... with the first occurrence left alone.
    A suffix never reuses a label that appears elsewhere in the header, so
    ``["Name", "Name", "Name_2"]`` becomes ``["Name", "Name_3", "Name_2"]``.
    """
    cleaned = [sanitize_label(label) for label in labels]
    reserved = set(cleaned)
    seen: set[str] = set()
    result: list[str] = []
    for base in cleaned:
        label = base
        if label in seen:
            k = 2
            while f"{base}_{k}" in seen or f"{base}_{k}" in reserved:
                k += 1
            label = f"{base}_{k}"
        seen.add(label)
        result.append(label)
    return result


def sanitize_frame(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = pd.Index(sanitize_headers(df.columns), dtype=object)
    return df


# ── Column lookup ───────────────────────────────────────────────


def _resolve_columns(
    columns: Sequence[str], wanted: Sequence[str]
) -> tuple[dict[str, str], list[str]]:
    """Map each wanted label to the frame's label (exact, then case-insensitive)."""
    by_lower: dict[str, str] = {}
    for col in columns:
        by_lower.setdefault(col.lower(), col)
    present = set(columns)
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for name in wanted:
        if name in present:
            resolved[name] = name
        elif name.lower() in by_lower:
            resolved[name] = by_lower[name.lower()]
        else:
            missing.append(name)
    return resolved, missing


def check_schema(df: pd.DataFrame) -> None:
    """Raise :class:`SchemaMismatch` unless both name/count pairs are present."""
    columns = [str(c) for c in df.columns]
    _resolved, missing = _resolve_columns(columns, REQUIRED_COLUMNS)
    if missing:
        raise SchemaMismatch(missing, columns)


def _is_rank_change(label: str) -> bool:
    lowered = label.lower()
    return "rank" in lowered and "change" in lowered


def _orphaned_second_names(df: pd.DataFrame) -> list[str]:
    """Second-block names on rows the row filter drops (blank primary ``Name``)."""
    columns = [str(c) for c in df.columns]
    resolved, missing = _resolve_columns(columns, list(NAME_COLUMNS))
    if missing:
        return []
    pairs = zip(df[resolved[NAME_COLUMNS[0]]].tolist(), df[resolved[NAME_COLUMNS[1]]].tolist())
    orphans: list[str] = []
    for primary, second in pairs:
        second_cell = Cell.of(second)
        if Cell.of(primary).is_empty and not second_cell.is_empty:
            orphans.append(second_cell.as_text())
    return orphans


# ── Row filter ──────────────────────────────────────────────────


def filter_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Keep rows whose primary ``Name`` is non-empty, in original order.

    Whitespace-only names count as empty and are dropped too.  The index is
    left untouched so callers can still point at the original data row.
    """
    columns = [str(c) for c in df.columns]
    resolved, missing = _resolve_columns(columns, [NAME_COLUMNS[0]])
    if missing:
        raise SchemaMismatch(missing, columns)
    names = df[resolved[NAME_COLUMNS[0]]]
    keep = [not Cell.of(value).is_empty for value in names.tolist()]
    if not keep:
        return df.copy()
    return df.loc[keep]


# ── Column selector ─────────────────────────────────────────────


def select_columns(df: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
    """Narrow *df* to ``Name, Count, Name_2, Count_2``.

    Returns ``(selected, dropped_labels)``; the selected columns carry the
    canonical spelling whatever case the sheet used.
    """
    columns = [str(c) for c in df.columns]
    resolved, missing = _resolve_columns(columns, REQUIRED_COLUMNS)
    if missing:
        raise SchemaMismatch(missing, columns)
    keep = [resolved[name] for name in REQUIRED_COLUMNS]
    dropped = [col for col in columns if col not in keep]
    selected = df[keep].copy()
    selected.columns = pd.Index(REQUIRED_COLUMNS, dtype=object)
    return selected, dropped


# ── Block merger ────────────────────────────────────────────────


def _block_rows(
    df: pd.DataFrame, *, block: Block, name_col: str, count_col: str, rank_offset: int
) -> list[TidyRow]:
    rows: list[TidyRow] = []
    triples = zip(df.index, df[name_col].tolist(), df[count_col].tolist())
    for position, (row_label, raw_name, raw_count) in enumerate(triples, start=1):
        name = Cell.of(raw_name)
        if name.is_empty:
            continue
        count = coerce_count(raw_count)
        if count is None:
            data_row = int(row_label) + 1 if isinstance(row_label, Integral) else position
            raise MalformedCount(Cell.of(raw_count).value, column=count_col, row=data_row)
        rows.append(
            TidyRow(name=name.as_text(), count=count, rank=rank_offset + position, block=block)
        )
    return rows


def merge_rows(df: pd.DataFrame) -> list[TidyRow]:
    """Stack block 1 then block 2 of a :func:`select_columns` table.

    Ranks follow row position: block 1 is ``1..n`` and the second block on
    the same rows is ``n+1..2n``.  Second-block rows with no name are
    skipped but still consume their rank.
    """
    n = len(df)
    first = _block_rows(
        df, block=Block.FIRST, name_col=NAME_COLUMNS[0], count_col=COUNT_COLUMNS[0],
        rank_offset=0,
    )
    second = _block_rows(
        df, block=Block.SECOND, name_col=NAME_COLUMNS[1], count_col=COUNT_COLUMNS[1],
        rank_offset=n,
    )
    return first + second


_TIDY_DTYPES = {"Name": "string", "Count": "int64", "Rank": "int64", "Block": "string"}


def rows_to_frame(rows: Sequence[TidyRow]) -> pd.DataFrame:
    frame = pd.DataFrame([r.to_dict() for r in rows], columns=TIDY_COLUMNS)
    return frame.astype(_TIDY_DTYPES)


def merge_blocks(df: pd.DataFrame) -> pd.DataFrame:
    """Return the tidy ``Name, Count, Rank, Block`` frame for *df*."""
    return rows_to_frame(merge_rows(df))


# ── Main entry point ────────────────────────────────────────────


def tidy_table(
    raw: RawTable | pd.DataFrame,
    *,
    source: str | None = None,
    year: int | None = None,
) -> tuple[pd.DataFrame, QCReport]:
    """Turn one raw sheet into a tidy table.

    Returns ``(tidy_df, qc_report)``.  Any :class:`TidyError` raised on the
    way carries *source* and *year* so the caller can skip or abort.
    """
    if isinstance(raw, RawTable):
        source = source or raw.source
        frame = raw.frame
    else:
        frame = raw

    try:
        df = sanitize_frame(frame)
        check_schema(df)
        filtered = filter_rows(df)
        selected, dropped_columns = select_columns(filtered)
        rows = merge_rows(selected)
    except TidyError as exc:
        raise exc.with_context(source=source, year=year)

    tidy = rows_to_frame(rows)
    qc = QCReport(
        rows_in=len(df),
        rows_kept=len(filtered),
        dropped_rows=len(df) - len(filtered),
        names_out=len(tidy),
        dropped_columns=dropped_columns,
    )

    orphans = _orphaned_second_names(df)
    unnamed_rows = qc.dropped_rows - len(orphans)
    if unnamed_rows:
        qc.warnings.append(
            f"Dropped {unnamed_rows} rows with no name (blank separators or notes)"
        )
    if orphans:
        qc.warnings.append(
            f"Dropped {len(orphans)} rows with a blank first-block name, losing "
            f"second-block names: {', '.join(orphans)}"
        )
    rank_change = [col for col in dropped_columns if _is_rank_change(col)]
    if rank_change:
        qc.warnings.append(f"Discarded rank-change columns: {', '.join(rank_change)}")
    unnamed_second = qc.rows_kept - sum(1 for r in rows if r.block is Block.SECOND)
    if unnamed_second:
        qc.warnings.append(f"Skipped {unnamed_second} second-block rows with no name")
    if tidy.empty:
        qc.warnings.append("Tidy table is empty; no named rows remain")

    return tidy, qc


# ── Joining years ───────────────────────────────────────────────


def combine_years(tables: Mapping[int, pd.DataFrame]) -> pd.DataFrame:
    """Stack yearly tidy tables (ascending year) with an added ``Year`` column."""
    for year in tables:
        if isinstance(year, bool) or not isinstance(year, Integral):
            raise TypeError(f"Year keys must be integers, got {year!r}")
    if not tables:
        empty = rows_to_frame([])
        empty["Year"] = pd.Series([], dtype="int64")
        return empty
    frames = [
        tables[year][TIDY_COLUMNS].assign(Year=int(year))
        for year in sorted(tables)
    ]
    combined = pd.concat(frames, ignore_index=True)
    combined["Year"] = combined["Year"].astype("int64")
    return combined
