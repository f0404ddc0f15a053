"""Bucketing rules used when aggregating raw editor events into telemetry.

These functions reduce raw observations (paste lengths, inter-key
intervals) to coarse buckets so no individual event survives into the
exported session.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from efforia.core.defaults import (
    CAPTURE_INTERVAL_BUCKETS_MS,
    CAPTURE_VARIANCE_LOW_STD_MS,
    CAPTURE_VARIANCE_MID_STD_MS,
    PASTE_BUCKET_LABELS,
)


def paste_bucket(length: int) -> str:
    """Map a pasted text length to its bucket label.

    ``<= 50`` -> ``"0-50"``, ``<= 200`` -> ``"51-200"``,
    ``<= 500`` -> ``"201-500"``, otherwise ``"501+"``.
    """
    short, medium, long_, huge = PASTE_BUCKET_LABELS
    if length <= 50:
        return short
    if length <= 200:
        return medium
    if length <= 500:
        return long_
    return huge


def bucket_mean_interval(ms: float) -> int:
    """Floor *ms* to the nearest interval bucket edge (0 for negatives)."""
    for edge in reversed(CAPTURE_INTERVAL_BUCKETS_MS):
        if ms >= edge:
            return edge
    return 0


def variance_bucket(intervals: Sequence[float]) -> int:
    """Classify the spread of *intervals* by population standard deviation.

    Returns:
        ``0`` for fewer than two intervals or std < 100 ms, ``1`` for
        std < 400 ms, ``2`` otherwise.
    """
    if len(intervals) < 2:
        return 0
    mean = sum(intervals) / len(intervals)
    variance = sum((x - mean) ** 2 for x in intervals) / len(intervals)
    std = math.sqrt(variance)
    if std < CAPTURE_VARIANCE_LOW_STD_MS:
        return 0
    if std < CAPTURE_VARIANCE_MID_STD_MS:
        return 1
    return 2
