"""QC report persistence."""

from __future__ import annotations

from pathlib import Path

from babynames_tidy.io import write_json
from babynames_tidy.models import QCReport


def qc_report_name(year: int | None = None) -> str:
    return "qc_report.json" if year is None else f"qc_report_{year}.json"


def write_qc_report(out_dir: Path, qc: QCReport, *, year: int | None = None) -> Path:
    """Write the QC report into *out_dir* and return the path."""
    return write_json(Path(out_dir) / qc_report_name(year), qc.to_dict())
