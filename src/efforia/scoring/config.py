"""Versioned scoring configuration: weights, thresholds, and confidence rules.

Every constant the scorer uses lives in one immutable :class:`ScoringConfig`.
Changing any value changes the meaning of previously issued certificates,
so any revision must come with a new ``version`` tag.  The tag is written
into each certificate as ``score_version``.

Overrides can be loaded from YAML::

    version: v1-custom
    weights:
      keystrokes: 0.25
      pace: 0.20
      ...
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Final

import yaml
from pydantic import BaseModel, Field, model_validator

_WEIGHT_SUM_TOLERANCE: Final[float] = 1e-9


class ScoreWeights(BaseModel, frozen=True):
    """Linear weights of the six sub-scores.  Must sum to 1.0."""

    keystrokes: float = Field(default=0.25, ge=0.0, le=1.0)
    pace: float = Field(default=0.20, ge=0.0, le=1.0)
    edit_diversity: float = Field(default=0.20, ge=0.0, le=1.0)
    low_paste: float = Field(default=0.15, ge=0.0, le=1.0)
    active_ratio: float = Field(default=0.10, ge=0.0, le=1.0)
    duration: float = Field(default=0.10, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> ScoreWeights:
        total = (
            self.keystrokes + self.pace + self.edit_diversity
            + self.low_paste + self.active_ratio + self.duration
        )
        if not math.isclose(total, 1.0, abs_tol=_WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"Score weights must sum to 1.0, got {total!r}")
        return self


class PaceThresholds(BaseModel, frozen=True):
    """Mean keystroke interval bands (ms).

    Outside ``[min_ms, max_ms]`` the pace score is 0; inside
    ``[ideal_low_ms, ideal_high_ms]`` it is 1.  Below the ideal band it
    ramps linearly, ``ramp_floor + (x / ideal_low_ms) * ramp_span``; above
    it decays by ``1 / decay_span_ms`` per ms down to ``decay_floor``.

    ``ramp_span`` is stored rather than derived as ``1 - ramp_floor`` so the
    float constant is exactly the published ``0.7``.
    """

    min_ms: float = 80
    ideal_low_ms: float = 150
    ideal_high_ms: float = 800
    max_ms: float = 2000
    ramp_floor: float = 0.3
    ramp_span: float = 0.7
    decay_span_ms: float = 2000
    decay_floor: float = 0.2

    @model_validator(mode="after")
    def _check_order(self) -> PaceThresholds:
        if not (self.min_ms <= self.ideal_low_ms <= self.ideal_high_ms <= self.max_ms):
            raise ValueError(
                "Pace thresholds must satisfy min_ms <= ideal_low_ms <= ideal_high_ms <= max_ms"
            )
        if self.ideal_low_ms <= 0 or self.decay_span_ms <= 0:
            raise ValueError("ideal_low_ms and decay_span_ms must be positive")
        if not math.isclose(self.ramp_floor + self.ramp_span, 1.0, abs_tol=_WEIGHT_SUM_TOLERANCE):
            raise ValueError("ramp_floor + ramp_span must equal 1.0")
        return self


class ConfidenceThresholds(BaseModel, frozen=True):
    """Activity/duration gates for the ``low`` / ``medium`` / ``high`` label.

    ``low`` when activity < ``min_activity`` or duration < ``min_duration_seconds``;
    ``high`` when activity >= ``high_activity``, duration >=
    ``high_duration_seconds`` and score >= ``high_min_score``; otherwise
    ``medium``.
    """

    min_activity: float = 20
    min_duration_seconds: float = 60
    high_activity: float = 100
    high_duration_seconds: float = 300
    high_min_score: float = 0.4


class ScoringConfig(BaseModel, frozen=True):
    """Complete, versioned parameter set for effort scoring."""

    version: str = Field(default="v1", min_length=1)
    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    keystroke_log_divisor: float = Field(default=2.5, gt=0.0)
    pace: PaceThresholds = Field(default_factory=PaceThresholds)
    edit_diversity_min_ops: float = Field(default=5, gt=0.0)
    edit_diversity_partial: float = Field(default=0.5, ge=0.0, le=1.0)
    duration_cap_seconds: float = Field(default=300, gt=0.0)
    confidence: ConfidenceThresholds = Field(default_factory=ConfidenceThresholds)


DEFAULT_SCORING_CONFIG: Final[ScoringConfig] = ScoringConfig()


def load_scoring_config(path: Path) -> ScoringConfig:
    """Load a :class:`ScoringConfig` from a YAML file.

    Missing keys fall back to the ``v1`` defaults.

    Args:
        path: YAML file whose keys match :class:`ScoringConfig` fields.

    Returns:
        A validated config instance.
    """
    raw = yaml.safe_load(Path(path).read_text()) or {}
    return ScoringConfig.model_validate(raw)


def dump_scoring_config(config: ScoringConfig, path: Path) -> Path:
    """Write *config* as YAML to *path* (for versioning alongside certificates)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False))
    return path
