"""Atomic file I/O: text documents, the append-only JSONL ledger, parquet tables.

Every writer goes through :func:`_replacing`, which hands out a temporary
path next to the destination and moves it into place only once writing
succeeded, so readers never observe a partial file.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd


@contextlib.contextmanager
def _replacing(path: Path, suffix: str) -> Iterator[Path]:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=suffix)
    os.close(fd)
    try:
        yield Path(tmp)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise


def atomic_write_text(path: Path, text: str) -> Path:
    """Write *text* (UTF-8) to *path* atomically and return *path*."""
    path = Path(path)
    with _replacing(path, ".tmp") as tmp:
        tmp.write_text(text, "utf-8")
    return path


def append_jsonl(path: Path, record: dict[str, Any]) -> Path:
    """Append *record* as one compact, key-sorted JSON line.

    The whole file is rewritten through :func:`atomic_write_text`; ledgers
    stay small enough for that.
    """
    path = Path(path)
    existing = path.read_text("utf-8") if path.exists() else ""
    line = json.dumps(record, separators=(",", ":"), sort_keys=True)
    return atomic_write_text(path, f"{existing}{line}\n")


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    """Parse each non-blank line of *path*; a missing file reads as ``[]``."""
    path = Path(path)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text("utf-8").splitlines() if line.strip()]


def write_parquet(df: pd.DataFrame, path: Path) -> Path:
    """Write *df* to *path* as parquet (pyarrow engine, no index), atomically."""
    path = Path(path)
    with _replacing(path, ".parquet.tmp") as tmp:
        df.to_parquet(tmp, engine="pyarrow", index=False)
    return path


def read_parquet(path: Path) -> pd.DataFrame:
    return pd.read_parquet(path, engine="pyarrow")
