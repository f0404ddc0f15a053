"""Tests for certificate verification."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from efforia.anchor.ledger import AnchorLedger
from efforia.certify.assemble import certificate_to_dict, session_to_certificate
from efforia.certify.verify import (
    CertificateError,
    certificate_matches_session,
    recompute_hash_from_session,
    validate_certificate,
    verify_certificate,
)

SAMPLE_FINGERPRINT = "5f7260dbcd7609e0bb15834d3af02649281dcbe0cad71e00d4bb896a8dba3090"


@pytest.fixture()
def cert_doc(sample_session: dict[str, Any]) -> dict[str, Any]:
    return certificate_to_dict(session_to_certificate(sample_session))


class TestValidateCertificate:
    def test_valid(self, cert_doc: dict[str, Any]) -> None:
        assert validate_certificate(cert_doc).fingerprint_hash == SAMPLE_FINGERPRINT

    def test_not_an_object(self) -> None:
        with pytest.raises(CertificateError, match="JSON object"):
            validate_certificate(["x"])  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [None, "abc", "a" * 63, "a" * 65])
    def test_fingerprint_length(self, cert_doc: dict[str, Any], value: object) -> None:
        cert_doc["fingerprint_hash"] = value
        with pytest.raises(CertificateError, match="64-character hex string"):
            validate_certificate(cert_doc)

    def test_fingerprint_not_hex(self, cert_doc: dict[str, Any]) -> None:
        cert_doc["fingerprint_hash"] = "z" * 64
        with pytest.raises(CertificateError, match="hexadecimal"):
            validate_certificate(cert_doc)

    @pytest.mark.parametrize("value", [-0.1, 1.01, "0.5", True, None])
    def test_score_range(self, cert_doc: dict[str, Any], value: object) -> None:
        cert_doc["human_effort_score"] = value
        with pytest.raises(CertificateError, match="human_effort_score"):
            validate_certificate(cert_doc)

    def test_confidence_label(self, cert_doc: dict[str, Any]) -> None:
        cert_doc["confidence_level"] = "certain"
        with pytest.raises(CertificateError, match="confidence_level"):
            validate_certificate(cert_doc)

    def test_empty_timestamp(self, cert_doc: dict[str, Any]) -> None:
        cert_doc["timestamp"] = ""
        with pytest.raises(CertificateError, match="timestamp"):
            validate_certificate(cert_doc)


class TestSessionMatch:
    def test_recompute(self, sample_session: dict[str, Any]) -> None:
        assert recompute_hash_from_session(sample_session) == SAMPLE_FINGERPRINT

    def test_matches(self, cert_doc: dict[str, Any], sample_session: dict[str, Any]) -> None:
        assert certificate_matches_session(cert_doc, sample_session)

    def test_uppercase_hash_matches(self, cert_doc: dict[str, Any], sample_session: dict[str, Any]) -> None:
        cert_doc["fingerprint_hash"] = cert_doc["fingerprint_hash"].upper()
        assert certificate_matches_session(cert_doc, sample_session)

    def test_altered_session_does_not_match(
        self, cert_doc: dict[str, Any], sample_session: dict[str, Any],
    ) -> None:
        sample_session["editOps"]["insert"] = 151
        assert not certificate_matches_session(cert_doc, sample_session)


class TestVerifyCertificate:
    def test_shape_only(self, cert_doc: dict[str, Any]) -> None:
        result = verify_certificate(cert_doc)
        assert result.valid
        assert result.message == "Certificate is well-formed."
        assert result.session_match is None
        assert result.on_chain is None

    def test_malformed_never_raises(self) -> None:
        result = verify_certificate({"fingerprint_hash": "nope"})
        assert not result.valid
        assert result.certificate is None

    def test_with_matching_session(self, cert_doc: dict[str, Any], sample_session: dict[str, Any]) -> None:
        result = verify_certificate(cert_doc, session=sample_session)
        assert result.valid
        assert result.session_match is True
        assert "Fingerprint matches the supplied session." in result.message

    def test_with_mismatched_session(self, cert_doc: dict[str, Any], zero_session: dict[str, Any]) -> None:
        result = verify_certificate(cert_doc, session=zero_session)
        assert not result.valid
        assert result.session_match is False
        assert "does NOT match" in result.message

    def test_with_invalid_session(self, cert_doc: dict[str, Any]) -> None:
        result = verify_certificate(cert_doc, session={"sessionStart": "x"})
        assert not result.valid
        assert result.message.startswith("Session is invalid:")

    def test_not_anchored(self, tmp_path: Path, cert_doc: dict[str, Any]) -> None:
        result = verify_certificate(cert_doc, ledger=AnchorLedger(tmp_path / "ledger.jsonl"))
        assert not result.valid
        assert "Fingerprint is not anchored." in result.message

    def test_anchored(self, tmp_path: Path, cert_doc: dict[str, Any], sample_session: dict[str, Any]) -> None:
        ledger = AnchorLedger(tmp_path / "ledger.jsonl")
        ledger.anchor(cert_doc["fingerprint_hash"], cert_doc["human_effort_score"], "0xauthor")
        result = verify_certificate(cert_doc, session=sample_session, ledger=ledger)
        assert result.valid
        assert result.on_chain is not None
        assert result.on_chain.score == 947
        assert "Fingerprint anchored with score 947." in result.message

    def test_corrupt_ledger_is_reported(self, tmp_path: Path, cert_doc: dict[str, Any]) -> None:
        path = tmp_path / "ledger.jsonl"
        path.write_text('{"key": "abc"\n', "utf-8")
        result = verify_certificate(cert_doc, ledger=AnchorLedger(path))
        assert not result.valid
        assert result.certificate is not None
        assert result.on_chain is None
        assert result.message.startswith("Certificate is well-formed.")
        assert "is unreadable" in result.message
