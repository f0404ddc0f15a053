"""Telemetry normalization: reduce a session to a bounded numeric feature vector.

All functions are pure -- the output depends only on the input values,
never on wall-clock time -- and total over validated telemetry.  Sums,
means and ratios follow double arithmetic, so values past the double range
surface as ``inf`` or ``nan`` instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from efforia.core.defaults import LONG_PASTE_BUCKETS, RATIO_DECIMALS
from efforia.core.numeric import exact_or_double, round_half_up, round_to, to_double
from efforia.core.time import session_duration_seconds
from efforia.core.types import (
    IdleActiveSummary,
    KeystrokeSample,
    NormalizedFeatures,
    PasteBucket,
    SessionTelemetry,
)

logger = logging.getLogger(__name__)


def _total(values: Iterable[int | float]) -> int | float:
    """Sum exactly while every value is an int, otherwise on doubles."""
    items = list(values)
    if all(isinstance(v, int) for v in items):
        return exact_or_double(sum(items))
    return sum((to_double(v) for v in items), 0.0)


def weighted_mean_interval(samples: Iterable[KeystrokeSample]) -> int | float:
    """Count-weighted mean of ``mean_interval_ms``, rounded half-up.

    Returns ``0`` when the total weight is not positive.  Weights beyond
    the double range yield ``nan`` or ``inf``.
    """
    weighted = 0.0
    total_weight = 0.0
    for sample in samples:
        count = to_double(sample.count)
        weighted += to_double(sample.mean_interval_ms) * count
        total_weight += count
    if total_weight <= 0:
        return 0
    return exact_or_double(round_half_up(weighted / total_weight))


def long_paste_ratio(buckets: Iterable[PasteBucket]) -> tuple[int | float, float]:
    """Total paste count and the share that fell in long buckets.

    Long buckets are ``"201-500"`` and ``"501+"``.

    Returns:
        ``(paste_count, ratio)`` with *ratio* rounded to 3 decimals, or
        ``0.0`` when *paste_count* is zero.
    """
    buckets = list(buckets)
    total = _total(b.count for b in buckets)
    long_total = _total(b.count for b in buckets if b.bucket in LONG_PASTE_BUCKETS)
    ratio = to_double(long_total) / to_double(total) if total > 0 else 0.0
    return total, round_to(ratio, RATIO_DECIMALS)


def active_ratio(summary: IdleActiveSummary) -> float:
    """``active / (active + idle)`` rounded to 3 decimals; ``0.0`` for an empty span."""
    active = to_double(summary.active_seconds)
    total = active + to_double(summary.idle_seconds)
    ratio = active / total if total > 0 else 0.0
    return round_to(ratio, RATIO_DECIMALS)


def normalize(session: SessionTelemetry) -> NormalizedFeatures:
    """Derive the :class:`NormalizedFeatures` vector from *session*.

    Args:
        session: Validated telemetry (see
            :func:`~efforia.core.validation.validate_session`).

    Returns:
        The ten-field feature vector; the only value that is hashed and
        scored downstream.  Ints beyond ``±2**53`` are carried as doubles.
    """
    paste_count, paste_ratio = long_paste_ratio(session.paste_buckets)

    features = NormalizedFeatures(
        total_keystrokes=_total(k.count for k in session.keystrokes),
        mean_keystroke_interval=weighted_mean_interval(session.keystrokes),
        insert_count=exact_or_double(session.edit_ops.insert),
        delete_count=exact_or_double(session.edit_ops.delete),
        replace_count=exact_or_double(session.edit_ops.replace),
        paste_count=paste_count,
        paste_long_bucket_ratio=paste_ratio,
        active_ratio=active_ratio(session.idle_active),
        session_duration_seconds=session_duration_seconds(
            session.session_start, session.session_end,
        ),
        file_change_count=exact_or_double(session.file_change_count),
    )
    logger.debug(
        "Normalized session: keystrokes=%s duration=%ss",
        features.total_keystrokes, features.session_duration_seconds,
    )
    return features
