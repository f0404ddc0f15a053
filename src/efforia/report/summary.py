"""Aggregate statistics over a set of certificates."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import numpy as np
from pydantic import BaseModel, Field

from efforia.core.types import Certificate, ConfidenceLevel


class ScoreStats(BaseModel):
    """Distribution of ``human_effort_score`` values."""

    mean: float
    median: float
    p5: float
    p95: float
    std: float
    min: float
    max: float


class CertificateSummary(BaseModel):
    total: int
    rejected: int = 0
    score_stats: ScoreStats | None = None
    confidence_distribution: dict[str, int] = Field(default_factory=dict)
    mean_duration_seconds: float | None = None
    score_versions: list[str] = Field(default_factory=list)


def summarize_certificates(
    certificates: Sequence[Certificate],
    *,
    rejected: int = 0,
) -> CertificateSummary:
    """Summarise scores, confidence labels and durations of *certificates*.

    Args:
        certificates: Certificates to summarise (may be empty).
        rejected: Number of sessions that failed validation, for reporting.

    Returns:
        A :class:`CertificateSummary`; ``score_stats`` is ``None`` when
        there are no certificates.
    """
    counts = Counter(c.confidence_level.value for c in certificates)
    distribution = {level.value: counts.get(level.value, 0) for level in ConfidenceLevel}

    if not certificates:
        return CertificateSummary(
            total=0, rejected=rejected, confidence_distribution=distribution,
        )

    scores = np.asarray([c.human_effort_score for c in certificates], dtype=np.float64)
    stats = ScoreStats(
        mean=round(float(np.mean(scores)), 4),
        median=round(float(np.median(scores)), 4),
        p5=round(float(np.percentile(scores, 5)), 4),
        p95=round(float(np.percentile(scores, 95)), 4),
        std=round(float(np.std(scores)), 4),
        min=float(np.min(scores)),
        max=float(np.max(scores)),
    )

    durations = [c.session_duration_seconds for c in certificates if c.session_duration_seconds is not None]
    mean_duration = round(float(np.mean(durations)), 2) if durations else None

    return CertificateSummary(
        total=len(certificates),
        rejected=rejected,
        score_stats=stats,
        confidence_distribution=distribution,
        mean_duration_seconds=mean_duration,
        score_versions=sorted({c.score_version for c in certificates if c.score_version}),
    )
