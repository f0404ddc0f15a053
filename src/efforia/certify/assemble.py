"""Certificate assembly: telemetry -> features -> fingerprint + score -> certificate."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from efforia.core.hashing import Digest, fingerprint_hash, sha256_hex
from efforia.core.store import atomic_write_text
from efforia.core.time import utc_now_iso
from efforia.core.types import Certificate, SessionTelemetry
from efforia.core.validation import validate_session
from efforia.features.normalize import normalize
from efforia.scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from efforia.scoring.heuristics import confidence_level, human_effort_score

logger = logging.getLogger(__name__)


def session_to_certificate(
    session: SessionTelemetry | Any,
    *,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    include_breakdown: bool = False,
    author_address: str | None = None,
    digest: Digest = sha256_hex,
    now: datetime | None = None,
) -> Certificate:
    """Produce a human-effort certificate for *session*.

    Everything except ``timestamp`` is a pure function of the telemetry:
    the same session always yields the same ``fingerprint_hash``,
    ``human_effort_score`` and ``confidence_level``.

    Args:
        session: Validated telemetry, or a raw mapping which is validated
            first.
        config: Scoring weights/thresholds; its ``version`` is recorded as
            ``score_version``.
        include_breakdown: Attach the six sub-scores for display.
        author_address: Optional author key to embed.
        digest: Fingerprint digest (SHA-256 by default).
        now: Override for the generation timestamp.

    Returns:
        The assembled :class:`Certificate`.

    Raises:
        SchemaError: If *session* is a raw value that fails validation.
    """
    telemetry = validate_session(session)
    features = normalize(telemetry)
    effort = human_effort_score(features, config)

    cert = Certificate(
        fingerprint_hash=fingerprint_hash(features, digest),
        human_effort_score=effort.score,
        confidence_level=confidence_level(features, effort.score, config),
        timestamp=utc_now_iso(now),
        session_duration_seconds=features.session_duration_seconds,
        author_address=author_address,
        score_breakdown=effort.breakdown if include_breakdown else None,
        score_version=config.version,
    )
    logger.debug(
        "Certificate %s... score=%s confidence=%s",
        cert.fingerprint_hash[:12], cert.human_effort_score, cert.confidence_level,
    )
    return cert


def certificate_to_dict(cert: Certificate) -> dict[str, Any]:
    """Wire representation of *cert*: JSON-safe, aliased, ``None`` fields omitted."""
    return cert.model_dump(mode="json", by_alias=True, exclude_none=True)


def certificate_to_json(cert: Certificate) -> str:
    return json.dumps(certificate_to_dict(cert), indent=2)


def write_certificate(cert: Certificate, path: Path) -> Path:
    """Write *cert* as pretty-printed JSON to *path*."""
    return atomic_write_text(Path(path), certificate_to_json(cert) + "\n")
