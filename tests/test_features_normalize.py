"""Tests for telemetry normalization."""

from __future__ import annotations

import math
from typing import Any

import pytest

from efforia.core.hashing import fingerprint_payload
from efforia.core.types import IdleActiveSummary, KeystrokeSample, PasteBucket
from efforia.core.validation import validate_session
from efforia.features.normalize import active_ratio, long_paste_ratio, normalize, weighted_mean_interval


class TestNormalize:
    def test_sample_session(self, sample_session: dict[str, Any]) -> None:
        features = normalize(validate_session(sample_session))
        assert features.total_keystrokes == 200
        # (80 * 180 + 120 * 250) / 200 = 222
        assert features.mean_keystroke_interval == 222
        assert features.insert_count == 150
        assert features.delete_count == 30
        assert features.replace_count == 12
        assert features.paste_count == 2
        assert features.paste_long_bucket_ratio == 0.0
        assert features.active_ratio == 0.667
        assert features.session_duration_seconds == 900
        assert features.file_change_count == 3

    def test_zero_session(self, zero_session: dict[str, Any]) -> None:
        features = normalize(validate_session(zero_session))
        assert features.model_dump() == {
            "total_keystrokes": 0,
            "mean_keystroke_interval": 0,
            "insert_count": 0,
            "delete_count": 0,
            "replace_count": 0,
            "paste_count": 0,
            "paste_long_bucket_ratio": 0.0,
            "active_ratio": 0.0,
            "session_duration_seconds": 0,
            "file_change_count": 0,
        }

    def test_deterministic(self, sample_session: dict[str, Any]) -> None:
        session = validate_session(sample_session)
        assert normalize(session) == normalize(session)

    def test_negative_span_has_zero_duration(self, sample_session: dict[str, Any]) -> None:
        sample_session["sessionEnd"] = "2025-02-07T09:00:00.000Z"
        assert normalize(validate_session(sample_session)).session_duration_seconds == 0

    def test_camel_case_dump(self, sample_session: dict[str, Any]) -> None:
        dumped = normalize(validate_session(sample_session)).model_dump(by_alias=True)
        assert set(dumped) == {
            "totalKeystrokes",
            "meanKeystrokeInterval",
            "insertCount",
            "deleteCount",
            "replaceCount",
            "pasteCount",
            "pasteLongBucketRatio",
            "activeRatio",
            "sessionDurationSeconds",
            "fileChangeCount",
        }


class TestCountsBeyondDoubleRange:
    def test_keystroke_sum_overflows(self, sample_session: dict[str, Any]) -> None:
        sample_session["keystrokes"] = [{"count": 1e308, "meanIntervalMs": 200}] * 2
        features = normalize(validate_session(sample_session))
        assert features.total_keystrokes == math.inf
        assert math.isnan(features.mean_keystroke_interval)
        assert fingerprint_payload(features) == "Infinity:NaN:150:30:12:2:0:0.667:900:3"

    def test_paste_ratio_of_infinities(self, sample_session: dict[str, Any]) -> None:
        sample_session["pasteBuckets"] = [{"bucket": "501+", "count": 1e308}] * 2
        features = normalize(validate_session(sample_session))
        assert features.paste_count == math.inf
        assert math.isnan(features.paste_long_bucket_ratio)
        assert fingerprint_payload(features) == "200:222:150:30:12:Infinity:NaN:0.667:900:3"

    def test_integer_beyond_double_range(self, sample_session: dict[str, Any]) -> None:
        sample_session["keystrokes"] = [{"count": 10**400, "meanIntervalMs": 200}]
        sample_session["editOps"]["insert"] = -(10**400)
        features = normalize(validate_session(sample_session))
        assert features.insert_count == -math.inf
        assert fingerprint_payload(features) == "Infinity:NaN:-Infinity:30:12:2:0:0.667:900:3"

    def test_large_integer_renders_as_double(self, sample_session: dict[str, Any]) -> None:
        sample_session["keystrokes"] = [{"count": 2**60, "meanIntervalMs": 200}]
        features = normalize(validate_session(sample_session))
        assert features.mean_keystroke_interval == 200
        assert fingerprint_payload(features).startswith("1152921504606847000:200:")


class TestWeightedMeanInterval:
    def test_empty(self) -> None:
        assert weighted_mean_interval([]) == 0

    def test_zero_weight(self) -> None:
        assert weighted_mean_interval([KeystrokeSample(count=0, mean_interval_ms=300)]) == 0

    def test_half_rounds_up(self) -> None:
        samples = [
            KeystrokeSample(count=1, mean_interval_ms=100),
            KeystrokeSample(count=1, mean_interval_ms=101),
        ]
        assert weighted_mean_interval(samples) == 101

    def test_weights_by_count(self) -> None:
        samples = [
            KeystrokeSample(count=3, mean_interval_ms=100),
            KeystrokeSample(count=1, mean_interval_ms=500),
        ]
        assert weighted_mean_interval(samples) == 200


class TestLongPasteRatio:
    def test_no_pastes(self) -> None:
        assert long_paste_ratio([]) == (0, 0.0)

    def test_long_buckets_only_count(self) -> None:
        buckets = [
            PasteBucket(bucket="0-50", count=2),
            PasteBucket(bucket="51-200", count=1),
            PasteBucket(bucket="201-500", count=1),
            PasteBucket(bucket="501+", count=0),
        ]
        assert long_paste_ratio(buckets) == (4, 0.25)

    def test_unlabelled_bucket_counts_toward_total(self) -> None:
        buckets = [PasteBucket(bucket=None, count=1), PasteBucket(bucket="501+", count=1)]
        assert long_paste_ratio(buckets) == (2, 0.5)

    def test_exact_tie_rounds_up(self) -> None:
        buckets = [PasteBucket(bucket="0-50", count=15), PasteBucket(bucket="501+", count=1)]
        assert long_paste_ratio(buckets) == (16, 0.063)


class TestActiveRatio:
    @pytest.mark.parametrize(
        ("active", "idle", "expected"),
        [
            (600, 300, 0.667),
            (1, 2, 0.333),
            (10, 0, 1.0),
            (0, 10, 0.0),
            (0, 0, 0.0),
        ],
    )
    def test_values(self, active: int, idle: int, expected: float) -> None:
        summary = IdleActiveSummary(active_seconds=active, idle_seconds=idle)
        assert active_ratio(summary) == expected
