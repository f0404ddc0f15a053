"""Certificate verification: shape checks, re-derivation, and ledger lookup.

A verifier never sees document content.  Given a certificate it can check

* that the certificate is well-formed (:func:`validate_certificate`);
* that it was derived from a re-supplied session, by recomputing the
  fingerprint from the telemetry (:func:`certificate_matches_session`);
* that the fingerprint was anchored, via an :class:`AnchorLedger`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Final

from pydantic import BaseModel

from efforia.anchor.ledger import AnchorLedger, AnchorRecord
from efforia.core.defaults import FINGERPRINT_HEX_LEN
from efforia.core.hashing import fingerprint_hash
from efforia.core.numeric import is_number
from efforia.core.types import Certificate, ConfidenceLevel, SessionTelemetry
from efforia.core.validation import SchemaError, validate_session
from efforia.features.normalize import normalize

logger = logging.getLogger(__name__)

_HEX_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]+$")


class CertificateError(ValueError):
    """Raised when a certificate document is malformed."""


class VerificationResult(BaseModel):
    """Outcome of :func:`verify_certificate`."""

    valid: bool
    message: str
    certificate: Certificate | None = None
    session_match: bool | None = None
    on_chain: AnchorRecord | None = None


def validate_certificate(data: Certificate | Mapping[str, Any]) -> Certificate:
    """Check the certificate shape and return it as a :class:`Certificate`.

    Raises:
        CertificateError: With a field-level message on the first problem.
    """
    if isinstance(data, Certificate):
        return data
    if not isinstance(data, Mapping):
        raise CertificateError("Certificate must be a JSON object")

    fp = data.get("fingerprint_hash")
    if not isinstance(fp, str) or len(fp) != FINGERPRINT_HEX_LEN:
        raise CertificateError(
            f"Certificate fingerprint_hash must be a {FINGERPRINT_HEX_LEN}-character hex string"
        )
    if not _HEX_RE.match(fp):
        raise CertificateError("Certificate fingerprint_hash must be hexadecimal")

    score = data.get("human_effort_score")
    if not is_number(score) or score < 0 or score > 1:
        raise CertificateError("Certificate human_effort_score must be a number between 0 and 1")

    if data.get("confidence_level") not in {c.value for c in ConfidenceLevel}:
        raise CertificateError("Certificate confidence_level must be low, medium, or high")

    ts = data.get("timestamp")
    if not isinstance(ts, str) or not ts:
        raise CertificateError("Certificate timestamp must be a non-empty string")

    try:
        return Certificate.model_validate(dict(data))
    except ValueError as exc:
        raise CertificateError(f"Certificate is malformed: {exc}") from exc


def recompute_hash_from_session(session: SessionTelemetry | Any) -> str:
    """Fingerprint recomputed from raw or validated telemetry.

    Raises:
        SchemaError: If *session* fails validation.
    """
    return fingerprint_hash(normalize(validate_session(session)))


def certificate_matches_session(
    cert: Certificate | Mapping[str, Any],
    session: SessionTelemetry | Any,
) -> bool:
    """``True`` if *cert*'s fingerprint equals the one derived from *session*.

    The hex comparison is case-insensitive.
    """
    certificate = validate_certificate(cert)
    computed = recompute_hash_from_session(session)
    return computed.lower() == certificate.fingerprint_hash.lower()


def verify_certificate(
    cert: Certificate | Mapping[str, Any],
    *,
    session: SessionTelemetry | Any | None = None,
    ledger: AnchorLedger | None = None,
) -> VerificationResult:
    """Run every available check and summarise the outcome.

    Never raises for bad input; problems are reported in the result.

    Args:
        cert: Certificate object or parsed JSON.
        session: Optional telemetry to re-derive the fingerprint from.
        ledger: Optional ledger to look the fingerprint up in.

    Returns:
        A :class:`VerificationResult`.  ``valid`` is ``True`` only when the
        certificate is well-formed and every requested check passed.
    """
    try:
        certificate = validate_certificate(cert)
    except CertificateError as exc:
        return VerificationResult(valid=False, message=str(exc))

    messages: list[str] = ["Certificate is well-formed."]
    valid = True

    session_match: bool | None = None
    if session is not None:
        try:
            session_match = certificate_matches_session(certificate, session)
        except SchemaError as exc:
            return VerificationResult(
                valid=False,
                message=f"Session is invalid: {exc}",
                certificate=certificate,
            )
        if session_match:
            messages.append("Fingerprint matches the supplied session.")
        else:
            valid = False
            messages.append("Fingerprint does NOT match the supplied session.")

    on_chain: AnchorRecord | None = None
    if ledger is not None:
        try:
            on_chain = ledger.get_record(certificate.fingerprint_hash)
        except ValueError as exc:
            # JSON decode and record validation errors both land here.
            return VerificationResult(
                valid=False,
                message=" ".join([*messages, f"Ledger {ledger.path} is unreadable: {exc}"]),
                certificate=certificate,
                session_match=session_match,
            )
        if on_chain is None:
            valid = False
            messages.append("Fingerprint is not anchored.")
        else:
            messages.append(f"Fingerprint anchored with score {on_chain.score}.")

    logger.debug("Verification of %s: valid=%s", certificate.fingerprint_hash[:12], valid)
    return VerificationResult(
        valid=valid,
        message=" ".join(messages),
        certificate=certificate,
        session_match=session_match,
        on_chain=on_chain,
    )
