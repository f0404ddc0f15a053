"""Certificate export: CSV, Parquet, and JSON tables.

One row per certificate.  Breakdown sub-scores are flattened into
``breakdown_*`` columns.  Every export refuses content-bearing keys.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

import pandas as pd

from efforia.certify.assemble import certificate_to_dict
from efforia.core.defaults import CONTENT_KEYS
from efforia.core.store import atomic_write_text, write_parquet
from efforia.core.types import Certificate
from efforia.report.batch import BatchResult
from efforia.report.summary import CertificateSummary

CERTIFICATE_COLUMNS: Final[tuple[str, ...]] = (
    "source",
    "fingerprint_hash",
    "human_effort_score",
    "confidence_level",
    "timestamp",
    "session_duration_seconds",
    "author_address",
    "score_version",
    "breakdown_keystrokes",
    "breakdown_pace",
    "breakdown_edit_diversity",
    "breakdown_low_paste",
    "breakdown_active_ratio",
    "breakdown_duration",
)


def _check_no_sensitive_fields(data: dict[str, Any]) -> None:
    """Recursively check *data* for forbidden keys."""
    for key, value in data.items():
        if key in CONTENT_KEYS:
            raise ValueError(f"Sensitive field {key!r} must not appear in report output")
        if isinstance(value, dict):
            _check_no_sensitive_fields(value)


def _certificate_row(cert: Certificate, source: str | None) -> dict[str, Any]:
    row: dict[str, Any] = {
        "source": source,
        "fingerprint_hash": cert.fingerprint_hash,
        "human_effort_score": cert.human_effort_score,
        "confidence_level": cert.confidence_level.value,
        "timestamp": cert.timestamp,
        "session_duration_seconds": cert.session_duration_seconds,
        "author_address": cert.author_address,
        "score_version": cert.score_version,
    }
    breakdown = cert.score_breakdown.model_dump() if cert.score_breakdown else {}
    for name in ("keystrokes", "pace", "edit_diversity", "low_paste", "active_ratio", "duration"):
        row[f"breakdown_{name}"] = breakdown.get(name)
    return row


def certificates_to_frame(
    certificates: Sequence[Certificate],
    sources: Sequence[str] | None = None,
) -> pd.DataFrame:
    """Tabulate *certificates* with columns :data:`CERTIFICATE_COLUMNS`.

    Args:
        certificates: Certificates to tabulate.
        sources: Optional per-certificate source names (same length).

    Raises:
        ValueError: If *sources* and *certificates* differ in length.
    """
    if sources is not None and len(sources) != len(certificates):
        raise ValueError(
            f"sources has {len(sources)} entries for {len(certificates)} certificates"
        )
    names = sources if sources is not None else [None] * len(certificates)
    rows = [_certificate_row(c, s) for c, s in zip(certificates, names)]
    return pd.DataFrame(rows, columns=list(CERTIFICATE_COLUMNS))


def batch_to_frame(result: BatchResult) -> pd.DataFrame:
    return certificates_to_frame(
        result.certificates, [c.source for c in result.certified],
    )


def export_certificates_csv(df: pd.DataFrame, path: Path) -> Path:
    """Write a certificate table as CSV."""
    _check_no_sensitive_fields({c: None for c in df.columns})
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def export_certificates_parquet(df: pd.DataFrame, path: Path) -> Path:
    """Write a certificate table as Parquet (pyarrow engine, atomic)."""
    _check_no_sensitive_fields({c: None for c in df.columns})
    return write_parquet(df, Path(path))


def export_certificates_json(
    certificates: Sequence[Certificate],
    path: Path,
) -> Path:
    """Write certificates as a JSON array of wire documents."""
    docs = [certificate_to_dict(c) for c in certificates]
    for doc in docs:
        _check_no_sensitive_fields(doc)
    return atomic_write_text(Path(path), json.dumps(docs, indent=2) + "\n")


def export_summary_json(summary: CertificateSummary, path: Path) -> Path:
    """Write a :class:`CertificateSummary` as JSON."""
    data = summary.model_dump(exclude_none=True)
    _check_no_sensitive_fields(data)
    return atomic_write_text(Path(path), json.dumps(data, indent=2) + "\n")
