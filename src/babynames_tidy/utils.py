"""Shared helpers — hashing, timestamps, atomic writes."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def tmp_sibling(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".tmp")


def atomic_write_text(path: Path, text: str) -> Path:
    """Write *text* next to *path* and move it into place."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = tmp_sibling(path)
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)
    return path
