"""CLI entry point for babynames-tidy."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from babynames_tidy import DEFAULT_SHEET_PATTERN, DEFAULT_SKIP_ROWS, REQUIRED_COLUMNS, __version__
from babynames_tidy.batch import BatchResult, process_years
from babynames_tidy.errors import SchemaMismatch, TidyError
from babynames_tidy.io import RawTable, load_raw_table, write_json, write_tidy_csv
from babynames_tidy.models import QCReport, RunManifest
from babynames_tidy.pipeline import tidy_table
from babynames_tidy.qc import write_qc_report
from babynames_tidy.report import write_report
from babynames_tidy.utils import sha256_file, utcnow_iso

app = typer.Typer(
    name="bntidy",
    help="babynames-tidy — Turn the UK baby-name spreadsheets into tidy tables.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class OnErrorOption(str, Enum):
    skip = "skip"
    abort = "abort"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"babynames-tidy v{__version__}")
        raise typer.Exit()


def _parse_year(text: str) -> int:
    try:
        year = int(text.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid year {text.strip()!r} (expected e.g. 2015)") from exc
    if year < 0:
        raise ValueError(f"Invalid year {year} (must be >= 0)")
    return year


def _parse_year_map(
    raw: list[str] | None, *, base_dir: Path | None = None, quiet: bool = False
) -> dict[int, Path]:
    """Parse ``year=path`` pairs into ``{year: path}``.

    Relative paths are resolved against *base_dir* when given.
    """
    if not raw:
        return {}
    mapping: dict[int, Path] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid --file value: {item!r}  (expected year=path)")
        year_text, path_text = item.split("=", 1)
        if not path_text.strip():
            raise ValueError(f"Missing path for year {year_text.strip()!r} (expected year=path)")
        year = _parse_year(year_text)
        path = Path(path_text.strip())
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        if year in mapping and not quiet:
            console.print(f"[yellow]![/yellow] Overriding file for year {year}")
        mapping[year] = path
    return mapping


def _load_years_file(years_file: Path | None) -> list[str]:
    """Return ``year=path`` lines from a years file (``#`` comments allowed)."""
    if not years_file:
        return []
    if not years_file.exists():
        raise ValueError(f"Years file not found: {years_file} (expected lines like 2015=2015.xls)")
    if years_file.is_dir():
        raise ValueError(f"Years file is a directory, not a file: {years_file}")
    try:
        text = years_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read years file {years_file}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return lines


def _tidy_csv_name(year: int | None) -> str:
    return "names.csv" if year is None else f"names_{year}.csv"


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    qc: QCReport,
    *,
    year: int | None = None,
    sheet: str | None = None,
    output_path: Path | None = None,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        pass

    manifest = RunManifest(
        version=__version__,
        run_id=run_id,
        input_path=str(input_file.resolve()),
        sheet=sheet,
        year=year,
        output_path=str(output_path.resolve()) if output_path else "",
        created_at_utc=created_at,
        rows_in=qc.rows_in,
        names_out=qc.names_out,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _write_failure_artifacts(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    *,
    message: str,
    year: int | None = None,
    sheet: str | None = None,
    rows_in: int = 0,
    error_code: int = 2,
) -> tuple[Path, Path]:
    qc = QCReport(rows_in=rows_in, rows_kept=0, dropped_rows=rows_in, warnings=[message])
    qc_path = write_qc_report(out_dir, qc)
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        run_id,
        created_at,
        qc,
        year=year,
        sheet=sheet,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    return qc_path, manifest_path


def _fail(
    out_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    *,
    message: str,
    year: int | None,
    raw: RawTable | None = None,
    error_code: int = 2,
) -> typer.Exit:
    qc_path, manifest_path = _write_failure_artifacts(
        out_dir,
        input_file,
        run_id,
        created_at,
        message=message,
        year=year,
        sheet=raw.sheet if raw else None,
        rows_in=len(raw.frame) if raw else 0,
        error_code=error_code,
    )
    _err(message)
    console.print(f"  QC report -> {qc_path}")
    console.print(f"  Manifest  -> {manifest_path}")
    return typer.Exit(code=error_code)


def _schema_hint(exc: TidyError) -> None:
    if isinstance(exc, SchemaMismatch):
        console.print(f"  Expected: {', '.join(REQUIRED_COLUMNS)}")
        console.print("  Hint: check --skip-rows points at the header row")


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """babynames-tidy CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the yearly XLSX/XLS workbook (or a CSV export of Table 1).",
        exists=True, readable=True,
    ),
    year: int | None = typer.Option(
        None, "--year", "-y",
        help="Year this file covers (used for naming and context only).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the tidy CSV + QC + manifest.",
    ),
    sheet_pattern: str = typer.Option(
        DEFAULT_SHEET_PATTERN, "--sheet-pattern",
        help="Text the worksheet name must contain.",
    ),
    skip_rows: int = typer.Option(
        DEFAULT_SKIP_ROWS, "--skip-rows", min=0,
        help="Rows above the header row.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Tidy one yearly spreadsheet into Name/Count/Rank/Block rows."""
    echo = _printer(quiet)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]babynames-tidy[/bold] v{__version__}\n"
            f"Input:  {input_file}\nYear:   {year if year is not None else '-'}\n"
            f"Output: {out_dir}",
            title="Tidy Start", border_style="blue",
        ))

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading worksheet …")
    try:
        raw = load_raw_table(input_file, sheet_pattern=sheet_pattern, skip_rows=skip_rows)
    except (FileNotFoundError, ValueError, OSError) as exc:
        if isinstance(exc, TidyError):
            exc.with_context(year=year)
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc), year=year)

    if raw.sheet:
        echo(f"  Sheet: {escape(raw.sheet)}")
    echo(f"  {len(raw.frame)} rows x {len(raw.frame.columns)} columns")

    try:
        # ── Tidy ─────────────────────────────────────────────────
        echo("[blue]>[/blue] Tidying …")
        try:
            tidy, qc = tidy_table(raw, year=year)
        except TidyError as exc:
            _schema_hint(exc)
            raise _fail(
                out_dir, input_file, run_id, created_at,
                message=str(exc), year=year, raw=raw,
            )

        for w in qc.warnings:
            echo(f"  [yellow]![/yellow] {escape(w)}")
        echo(f"  {qc.names_out} names from {qc.rows_kept} rows")

        # ── Write ────────────────────────────────────────────────
        csv_path = write_tidy_csv(out_dir / _tidy_csv_name(year), tidy)
        echo(f"  Tidy CSV  -> {csv_path}")
        qc_path = write_qc_report(out_dir, qc)
        echo(f"  QC report -> {qc_path}")
        manifest_path = _write_manifest(
            out_dir, input_file, run_id, created_at, qc,
            year=year, sheet=raw.sheet, output_path=csv_path,
        )
        echo(f"  Manifest  -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {qc.names_out} names -> {csv_path}",
                title="Tidy Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir, input_file, run_id, created_at,
            message=f"Unexpected internal error: {exc}", year=year, raw=raw, error_code=1,
        )


# ── validate command ─────────────────────────────────────────────


@app.command()
def validate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the yearly XLSX/XLS workbook (or a CSV export of Table 1).",
        exists=True, readable=True,
    ),
    year: int | None = typer.Option(
        None, "--year", "-y",
        help="Year this file covers (context only).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for QC + manifest.",
    ),
    sheet_pattern: str = typer.Option(
        DEFAULT_SHEET_PATTERN, "--sheet-pattern",
        help="Text the worksheet name must contain.",
    ),
    skip_rows: int = typer.Option(
        DEFAULT_SKIP_ROWS, "--skip-rows", min=0,
        help="Rows above the header row.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes QC + manifest.",
    ),
) -> None:
    """Check a file tidies cleanly without writing the tidy table.

    Writes qc_report.json + run_manifest.json only.
    Exit 0 = OK, exit 2 = worksheet/schema/count failure.
    """
    echo = _printer(quiet)
    created_at = utcnow_iso()
    run_id = created_at
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]babynames-tidy[/bold] v{__version__}  [dim]validate mode[/dim]\n"
            f"Input: {input_file}",
            title="Validate", border_style="cyan",
        ))

    try:
        raw = load_raw_table(input_file, sheet_pattern=sheet_pattern, skip_rows=skip_rows)
    except (FileNotFoundError, ValueError, OSError) as exc:
        if isinstance(exc, TidyError):
            exc.with_context(year=year)
        raise _fail(out_dir, input_file, run_id, created_at, message=str(exc), year=year)

    try:
        try:
            _, qc = tidy_table(raw, year=year)
        except TidyError as exc:
            _schema_hint(exc)
            raise _fail(
                out_dir, input_file, run_id, created_at,
                message=str(exc), year=year, raw=raw,
            )

        qc_path = write_qc_report(out_dir, qc)
        manifest_path = _write_manifest(
            out_dir, input_file, run_id, created_at, qc, year=year, sheet=raw.sheet,
        )

        # ── Summary table ────────────────────────────────────────
        if not quiet:
            tbl = RichTable(title="Validation Summary", show_lines=True)
            tbl.add_column("Check", style="bold")
            tbl.add_column("Result")

            tbl.add_row("Sheet", escape(raw.sheet) if raw.sheet else "(csv)")
            tbl.add_row("Rows in", str(qc.rows_in))
            tbl.add_row("Rows kept", str(qc.rows_kept))
            tbl.add_row("Names out", str(qc.names_out))
            tbl.add_row("Dropped columns", ", ".join(qc.dropped_columns) or "none")
            for w in qc.warnings:
                tbl.add_row("Warning", f"[yellow]{escape(w)}[/yellow]")
            tbl.add_row("Status", "[green]PASS[/green]")
            console.print(tbl)
        echo(f"  QC       -> {qc_path}")
        echo(f"  Manifest -> {manifest_path}")
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir, input_file, run_id, created_at,
            message=f"Unexpected internal error: {exc}", year=year, raw=raw, error_code=1,
        )


# ── combine command ──────────────────────────────────────────────


def _print_batch_table(batch: BatchResult) -> None:
    tbl = RichTable(title="Years", show_lines=False)
    tbl.add_column("Year", style="bold")
    tbl.add_column("File")
    tbl.add_column("Names", justify="right")
    tbl.add_column("Status")
    for result in batch.results:
        if result.ok and result.qc is not None:
            tbl.add_row(str(result.year), escape(result.source.name), str(result.qc.names_out),
                        "[green]OK[/green]")
        else:
            tbl.add_row(str(result.year), escape(result.source.name), "-",
                        f"[red]FAILED[/red] {escape(str(result.error))}")
    console.print(tbl)


@app.command()
def combine(
    files: list[str] | None = typer.Option(
        None, "--file", "-f",
        help="Yearly input as year=path. E.g. --file 2014=2014.xls --file 2015=2015.xlsx",
    ),
    years_file: Path | None = typer.Option(
        None, "--years-file",
        help="File of year=path lines (relative paths resolve against its folder).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for yearly CSVs, the combined CSV and the report.",
    ),
    sheet_pattern: str = typer.Option(
        DEFAULT_SHEET_PATTERN, "--sheet-pattern",
        help="Text the worksheet name must contain.",
    ),
    skip_rows: int = typer.Option(
        DEFAULT_SKIP_ROWS, "--skip-rows", min=0,
        help="Rows above the header row.",
    ),
    on_error: OnErrorOption = typer.Option(
        OnErrorOption.skip, "--on-error",
        help="skip: record the failing year and carry on; abort: stop at the first failure.",
    ),
    jobs: int = typer.Option(
        1, "--jobs", "-j", min=1,
        help="Number of files to process at once.",
    ),
    report: bool = typer.Option(
        True, "--report/--no-report",
        help="Also write Baby_Names.xlsx.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Tidy several yearly files and join them into one long table with a Year column."""
    echo = _printer(quiet)
    try:
        year_map = _parse_year_map(
            _load_years_file(years_file),
            base_dir=years_file.parent if years_file else None,
            quiet=quiet,
        )
        year_map.update(_parse_year_map(files, quiet=quiet))
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    if not year_map:
        _err("No input files given (use --file year=path or --years-file)")
        raise typer.Exit(code=2)

    out_dir.mkdir(parents=True, exist_ok=True)
    if not quiet:
        console.print(Panel(
            f"[bold]babynames-tidy[/bold] v{__version__}\n"
            f"Years:  {', '.join(str(y) for y in sorted(year_map))}\nOutput: {out_dir}",
            title="Combine Start", border_style="blue",
        ))

    echo("[blue]>[/blue] Tidying yearly files …")
    try:
        batch = process_years(
            year_map,
            sheet_pattern=sheet_pattern,
            skip_rows=skip_rows,
            on_error=on_error.value,
            jobs=jobs,
        )
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        console.print("  Aborted; no combined output written")
        raise typer.Exit(code=2)

    try:
        for result in batch.results:
            if result.ok and result.table is not None and result.qc is not None:
                write_tidy_csv(out_dir / _tidy_csv_name(result.year), result.table)
                write_qc_report(out_dir, result.qc, year=result.year)
            else:
                _err(str(result.error))

        combined: pd.DataFrame = batch.combined()
        combined_path = write_tidy_csv(out_dir / "names_all_years.csv", combined)
        echo(f"  Combined  -> {combined_path} ({len(combined)} rows)")
        summary_path = write_json(
            out_dir / "batch_summary.json",
            {"tool": "babynames-tidy", "version": __version__,
             "created_at_utc": utcnow_iso(), **batch.to_dict()},
        )
        echo(f"  Summary   -> {summary_path}")
        if report:
            report_path = write_report(out_dir, batch)
            echo(f"  Report    -> {report_path}")
    except OSError as exc:
        _err(f"Could not write outputs: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        _print_batch_table(batch)

    if batch.failures:
        _err(f"{len(batch.failures)} of {len(batch.results)} years failed")
        raise typer.Exit(code=2)
