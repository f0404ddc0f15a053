"""Tests for batch certification, summary statistics, and table exports."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from efforia.certify.assemble import session_to_certificate
from efforia.core.store import read_parquet
from efforia.report.batch import certify_directory
from efforia.report.export import (
    CERTIFICATE_COLUMNS,
    batch_to_frame,
    certificates_to_frame,
    export_certificates_csv,
    export_certificates_json,
    export_certificates_parquet,
    export_summary_json,
)
from efforia.report.summary import summarize_certificates


@pytest.fixture()
def sessions_dir(tmp_path: Path, sample_session: dict[str, Any], zero_session: dict[str, Any]) -> Path:
    root = tmp_path / "sessions"
    root.mkdir()
    (root / "a_sample.json").write_text(json.dumps(sample_session), "utf-8")
    (root / "b_zero.json").write_text(json.dumps(zero_session), "utf-8")
    broken = copy.deepcopy(sample_session)
    del broken["idleActive"]
    (root / "c_broken.json").write_text(json.dumps(broken), "utf-8")
    (root / "notes.txt").write_text("ignored", "utf-8")
    return root


class TestCertifyDirectory:
    def test_certified_and_rejected(self, sessions_dir: Path) -> None:
        result = certify_directory(sessions_dir)
        assert [c.source for c in result.certified] == ["a_sample.json", "b_zero.json"]
        assert len(result.rejected) == 1
        assert result.rejected[0].source == "c_broken.json"
        assert result.rejected[0].reason.startswith("Session must have idleActive")

    def test_undecodable_file_is_rejected(self, sessions_dir: Path) -> None:
        (sessions_dir / "d_binary.json").write_bytes(b"\xff\xfe\x00garbage")
        result = certify_directory(sessions_dir)
        assert len(result.certified) == 2
        assert [r.source for r in result.rejected] == ["c_broken.json", "d_binary.json"]
        assert "not valid UTF-8" in result.rejected[1].reason

    def test_breakdown_included_by_default(self, sessions_dir: Path) -> None:
        result = certify_directory(sessions_dir)
        assert all(c.score_breakdown is not None for c in result.certificates)

    def test_author_propagates(self, sessions_dir: Path) -> None:
        result = certify_directory(sessions_dir, author_address="0xauthor")
        assert {c.author_address for c in result.certificates} == {"0xauthor"}

    def test_empty_directory(self, tmp_path: Path) -> None:
        result = certify_directory(tmp_path)
        assert result.certified == []
        assert result.rejected == []


class TestSummary:
    def test_empty(self) -> None:
        summary = summarize_certificates([], rejected=2)
        assert summary.total == 0
        assert summary.rejected == 2
        assert summary.score_stats is None
        assert summary.confidence_distribution == {"low": 0, "medium": 0, "high": 0}

    def test_two_certificates(self, sample_session: dict[str, Any], zero_session: dict[str, Any]) -> None:
        certs = [session_to_certificate(sample_session), session_to_certificate(zero_session)]
        summary = summarize_certificates(certs)
        assert summary.total == 2
        assert summary.score_stats is not None
        assert summary.score_stats.mean == pytest.approx(0.4735)
        assert summary.score_stats.min == 0.0
        assert summary.score_stats.max == 0.947
        assert summary.confidence_distribution == {"low": 1, "medium": 0, "high": 1}
        assert summary.mean_duration_seconds == 450.0
        assert summary.score_versions == ["v1"]


class TestExport:
    def test_frame_columns(self, sessions_dir: Path) -> None:
        df = batch_to_frame(certify_directory(sessions_dir))
        assert list(df.columns) == list(CERTIFICATE_COLUMNS)
        assert list(df["source"]) == ["a_sample.json", "b_zero.json"]
        assert df.loc[0, "breakdown_pace"] == 1.0

    def test_frame_without_breakdown(self, sample_session: dict[str, Any]) -> None:
        df = certificates_to_frame([session_to_certificate(sample_session)])
        assert df.loc[0, "source"] is None
        assert pd.isna(df.loc[0, "breakdown_keystrokes"])

    def test_sources_length_mismatch(self, sample_session: dict[str, Any]) -> None:
        with pytest.raises(ValueError, match="sources"):
            certificates_to_frame([session_to_certificate(sample_session)], ["a", "b"])

    def test_csv(self, tmp_path: Path, sessions_dir: Path) -> None:
        df = batch_to_frame(certify_directory(sessions_dir))
        path = export_certificates_csv(df, tmp_path / "out" / "certificates.csv")
        loaded = pd.read_csv(path)
        assert len(loaded) == 2
        assert loaded.loc[0, "confidence_level"] == "high"

    def test_parquet(self, tmp_path: Path, sessions_dir: Path) -> None:
        df = batch_to_frame(certify_directory(sessions_dir))
        path = export_certificates_parquet(df, tmp_path / "certificates.parquet")
        loaded = read_parquet(path)
        assert list(loaded.columns) == list(CERTIFICATE_COLUMNS)
        assert loaded.loc[0, "human_effort_score"] == 0.947

    def test_json(self, tmp_path: Path, sample_session: dict[str, Any]) -> None:
        path = export_certificates_json([session_to_certificate(sample_session)], tmp_path / "c.json")
        docs = json.loads(path.read_text("utf-8"))
        assert len(docs) == 1
        assert docs[0]["confidence_level"] == "high"

    def test_summary_json(self, tmp_path: Path, sample_session: dict[str, Any]) -> None:
        summary = summarize_certificates([session_to_certificate(sample_session)])
        data = json.loads(export_summary_json(summary, tmp_path / "summary.json").read_text("utf-8"))
        assert data["total"] == 1
        assert data["score_stats"]["median"] == 0.947

    def test_sensitive_column_refused(self, tmp_path: Path) -> None:
        df = pd.DataFrame({"fingerprint_hash": ["ab" * 32], "document_text": ["secret"]})
        with pytest.raises(ValueError, match="document_text"):
            export_certificates_csv(df, tmp_path / "bad.csv")
        assert not (tmp_path / "bad.csv").exists()
