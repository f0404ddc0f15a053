"""Batch certification of a directory of session files."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from efforia.certify.assemble import session_to_certificate
from efforia.core.types import Certificate
from efforia.core.validation import SchemaError, load_session
from efforia.scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig

logger = logging.getLogger(__name__)


class CertifiedSession(BaseModel, frozen=True):
    source: str = Field(description="Session file name.")
    certificate: Certificate


class RejectedSession(BaseModel, frozen=True):
    source: str = Field(description="Session file name.")
    reason: str = Field(description="Validator message, unmodified.")


class BatchResult(BaseModel):
    certified: list[CertifiedSession] = Field(default_factory=list)
    rejected: list[RejectedSession] = Field(default_factory=list)

    @property
    def certificates(self) -> list[Certificate]:
        return [c.certificate for c in self.certified]


def certify_directory(
    sessions_dir: Path,
    *,
    pattern: str = "*.json",
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    include_breakdown: bool = True,
    author_address: str | None = None,
) -> BatchResult:
    """Certify every session file in *sessions_dir* matching *pattern*.

    Files that fail validation are collected in ``rejected`` with the
    validator message; they never abort the batch.  Files are processed in
    sorted name order.
    """
    result = BatchResult()
    for path in sorted(Path(sessions_dir).glob(pattern)):
        if not path.is_file():
            continue
        try:
            session = load_session(path)
        except SchemaError as exc:
            logger.warning("Rejected %s: %s", path.name, exc)
            result.rejected.append(RejectedSession(source=path.name, reason=str(exc)))
            continue
        cert = session_to_certificate(
            session,
            config=config,
            include_breakdown=include_breakdown,
            author_address=author_address,
        )
        result.certified.append(CertifiedSession(source=path.name, certificate=cert))

    logger.info(
        "Batch over %s: %d certified, %d rejected",
        sessions_dir, len(result.certified), len(result.rejected),
    )
    return result
