"""Core data contracts: session telemetry, normalized features, and certificates.

Wire documents use camelCase keys for telemetry and features (the format
the capture component emits) and snake_case keys for certificates.  Python
attributes are always snake_case; aliases bridge the two, and every model
accepts either spelling on input.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import BaseModel, Field

Number = int | float

_HEX_64_PATTERN: Final[str] = r"^[0-9a-fA-F]{64}$"


# ---------------------------------------------------------------------------
# Session telemetry (input; produced by the capture component)
# ---------------------------------------------------------------------------


class KeystrokeSample(BaseModel, frozen=True, populate_by_name=True):
    """One pre-aggregated keystroke bucket -- never an individual key event."""

    count: Number = Field(description="Keystrokes in this bucket.")
    mean_interval_ms: Number = Field(alias="meanIntervalMs", description="Mean inter-key interval (ms).")
    variance_bucket: Number | None = Field(
        default=None, alias="varianceBucket", description="Coarse interval-variance class (0/1/2)."
    )


class EditOpCounts(BaseModel, frozen=True):
    insert: Number
    delete: Number
    replace: Number


class PasteBucket(BaseModel, frozen=True):
    """Paste events whose length fell into *bucket* (e.g. ``"201-500"``)."""

    bucket: str | None = None
    count: Number = 0


class IdleActiveSummary(BaseModel, frozen=True, populate_by_name=True):
    active_seconds: Number = Field(alias="activeSeconds")
    idle_seconds: Number = Field(alias="idleSeconds")


class SessionTelemetry(BaseModel, frozen=True, populate_by_name=True, extra="ignore"):
    """Aggregate, content-free statistics for one editing session.

    Carries only counts and timing buckets: no document text, file names,
    or identifiers.  Unknown keys in the source document are dropped on
    construction so nothing outside this shape can reach the normalizer.

    Build instances through :func:`efforia.core.validation.validate_session`
    rather than directly; the validator is the canonical input gate.
    """

    session_start: str = Field(alias="sessionStart", description="Session start (ISO-8601).")
    session_end: str = Field(alias="sessionEnd", description="Session end (ISO-8601).")
    keystrokes: tuple[KeystrokeSample, ...] = ()
    edit_ops: EditOpCounts = Field(alias="editOps")
    paste_buckets: tuple[PasteBucket, ...] = Field(default=(), alias="pasteBuckets")
    idle_active: IdleActiveSummary = Field(alias="idleActive")
    file_change_count: Number = Field(
        default=0, alias="fileChangeCount", description="Distinct documents touched (count only)."
    )


# ---------------------------------------------------------------------------
# Normalized features (privacy + determinism boundary)
# ---------------------------------------------------------------------------


class NormalizedFeatures(BaseModel, frozen=True, populate_by_name=True, extra="forbid"):
    """Ten-field numeric vector derived from :class:`SessionTelemetry`.

    The sole input to both fingerprinting and scoring.  Extra fields are
    forbidden so that no free-text value can ever be attached to it.
    """

    total_keystrokes: Number = Field(alias="totalKeystrokes")
    mean_keystroke_interval: Number = Field(alias="meanKeystrokeInterval")
    insert_count: Number = Field(alias="insertCount")
    delete_count: Number = Field(alias="deleteCount")
    replace_count: Number = Field(alias="replaceCount")
    paste_count: Number = Field(alias="pasteCount")
    paste_long_bucket_ratio: float = Field(alias="pasteLongBucketRatio")
    active_ratio: float = Field(alias="activeRatio")
    session_duration_seconds: int = Field(ge=0, alias="sessionDurationSeconds")
    file_change_count: Number = Field(alias="fileChangeCount")


# ---------------------------------------------------------------------------
# Certificate (output)
# ---------------------------------------------------------------------------


class ConfidenceLevel(StrEnum):
    """Coarse reliability label attached to an effort score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoreBreakdown(BaseModel, frozen=True, populate_by_name=True):
    """The six weighted sub-scores behind a score, for display only.

    Never part of the fingerprint payload.
    """

    keystrokes: float = Field(ge=0.0, le=1.0)
    pace: float = Field(ge=0.0, le=1.0)
    edit_diversity: float = Field(ge=0.0, le=1.0, alias="editDiversity")
    low_paste: float = Field(ge=0.0, le=1.0, alias="lowPaste")
    active_ratio: float = Field(ge=0.0, le=1.0, alias="activeRatio")
    duration: float = Field(ge=0.0, le=1.0)


class Certificate(BaseModel, frozen=True):
    """Human-effort certificate for one session.

    ``timestamp`` is informational wall-clock time; compare certificates on
    ``fingerprint_hash`` and ``human_effort_score`` only.
    """

    fingerprint_hash: str = Field(pattern=_HEX_64_PATTERN, description="SHA-256 hex of the normalized features.")
    human_effort_score: float = Field(ge=0.0, le=1.0, description="Effort score, 3 decimals.")
    confidence_level: ConfidenceLevel
    timestamp: str = Field(min_length=1, description="Generation time (ISO-8601 UTC).")
    session_duration_seconds: int | None = Field(default=None, ge=0)
    author_address: str | None = Field(default=None, description="Author key, set when preparing to anchor.")
    score_breakdown: ScoreBreakdown | None = None
    score_version: str | None = Field(default=None, description="Scoring config version that produced the score.")
