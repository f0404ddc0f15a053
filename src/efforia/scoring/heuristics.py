"""Explainable human-effort scoring (no ML).

The score is a weighted sum of six independent sub-scores, each in [0, 1]:

1. keystrokes -- log-scaled keystroke volume, capped at 1
2. pace -- mean keystroke interval inside a human-plausible band
3. edit diversity -- share of insert/delete/replace kinds that occur
4. low paste -- complement of the long-paste ratio
5. active ratio -- share of the session spent active
6. duration -- session length relative to a cap

The confidence label is decided by volume and duration gates applied in
strict priority order (``low`` overrides everything, then ``high``,
otherwise ``medium``).

All weights and thresholds come from a
:class:`~efforia.scoring.config.ScoringConfig`; nothing is hard-coded here.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from efforia.core.defaults import SCORE_DECIMALS
from efforia.core.numeric import round_to
from efforia.core.types import ConfidenceLevel, NormalizedFeatures, ScoreBreakdown
from efforia.scoring.config import DEFAULT_SCORING_CONFIG, PaceThresholds, ScoringConfig


class EffortScore(BaseModel, frozen=True):
    """Final score plus the sub-scores that produced it."""

    score: float
    breakdown: ScoreBreakdown


def _unit(value: float) -> float:
    """Clamp *value* into [0, 1]; ``nan`` maps to 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def keystroke_score(total_keystrokes: float, log_divisor: float) -> float:
    """``min(1, log10(total + 1) / log_divisor)``; 0 unless ``total + 1 > 1``."""
    shifted = total_keystrokes + 1
    if not shifted > 1:
        return 0.0
    return min(1.0, math.log10(shifted) / log_divisor)


def pace_score(interval_ms: float, pace: PaceThresholds) -> float:
    """Score a mean keystroke interval against the human-plausible band.

    Too fast reads as automated input, too slow as idle time.
    """
    if not pace.min_ms <= interval_ms <= pace.max_ms:
        return 0.0
    if pace.ideal_low_ms <= interval_ms <= pace.ideal_high_ms:
        return 1.0
    if interval_ms < pace.ideal_low_ms:
        return pace.ramp_floor + (interval_ms / pace.ideal_low_ms) * pace.ramp_span
    return max(pace.decay_floor, 1 - (interval_ms - pace.ideal_high_ms) / pace.decay_span_ms)


def edit_diversity_score(
    insert_count: float,
    delete_count: float,
    replace_count: float,
    *,
    min_ops: float,
    partial: float,
) -> float:
    """Fraction of edit kinds present once there are at least *min_ops* operations.

    With ``0 < total < min_ops`` the score is the fixed *partial* value; with
    no operations it is 0.
    """
    total_ops = insert_count + delete_count + replace_count
    if total_ops >= min_ops:
        kinds = (insert_count > 0) + (delete_count > 0) + (replace_count > 0)
        return kinds / 3
    if total_ops > 0:
        return partial
    return 0.0


def compute_breakdown(
    features: NormalizedFeatures,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoreBreakdown:
    """Compute the six sub-scores for *features*, each clamped to [0, 1].

    A session with no keystrokes, edits, or pastes carries no evidence of
    manual work, so its low-paste sub-score is 0 rather than 1.
    """
    has_evidence = total_activity(features) > 0 or features.paste_count > 0
    return ScoreBreakdown(
        keystrokes=_unit(keystroke_score(features.total_keystrokes, config.keystroke_log_divisor)),
        pace=_unit(pace_score(features.mean_keystroke_interval, config.pace)),
        edit_diversity=_unit(edit_diversity_score(
            features.insert_count,
            features.delete_count,
            features.replace_count,
            min_ops=config.edit_diversity_min_ops,
            partial=config.edit_diversity_partial,
        )),
        low_paste=_unit(1 - features.paste_long_bucket_ratio) if has_evidence else 0.0,
        active_ratio=_unit(features.active_ratio),
        duration=_unit(features.session_duration_seconds / config.duration_cap_seconds),
    )


def human_effort_score(
    features: NormalizedFeatures,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> EffortScore:
    """Weighted human-effort score in [0, 1], rounded to 3 decimals.

    Args:
        features: Normalized feature vector.
        config: Weights and thresholds (defaults to the ``v1`` set).

    Returns:
        An :class:`EffortScore` carrying the score and its breakdown.
    """
    breakdown = compute_breakdown(features, config)
    weights = config.weights
    raw = (
        weights.keystrokes * breakdown.keystrokes
        + weights.pace * breakdown.pace
        + weights.edit_diversity * breakdown.edit_diversity
        + weights.low_paste * breakdown.low_paste
        + weights.active_ratio * breakdown.active_ratio
        + weights.duration * breakdown.duration
    )
    return EffortScore(score=_unit(round_to(raw, SCORE_DECIMALS)), breakdown=breakdown)


def total_activity(features: NormalizedFeatures) -> float:
    """Keystrokes plus all edit operations."""
    return (
        features.total_keystrokes
        + features.insert_count
        + features.delete_count
        + features.replace_count
    )


def confidence_level(
    features: NormalizedFeatures,
    score: float,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ConfidenceLevel:
    """Classify how much the score can be trusted.

    Evaluated on the raw feature values, in priority order:

    * ``low`` -- activity below ``min_activity`` or duration below
      ``min_duration_seconds``;
    * ``high`` -- activity, duration and score all at or above their
      ``high_*`` gates;
    * ``medium`` -- everything else.
    """
    gates = config.confidence
    activity = total_activity(features)
    duration = features.session_duration_seconds

    if activity < gates.min_activity or duration < gates.min_duration_seconds:
        return ConfidenceLevel.LOW
    if (
        activity >= gates.high_activity
        and duration >= gates.high_duration_seconds
        and score >= gates.high_min_score
    ):
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.MEDIUM
