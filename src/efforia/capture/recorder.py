"""Editor-side session recorder: raw edit events -> :class:`SessionTelemetry`.

The recorder sees individual document changes but keeps only aggregate
counters and a bounded list of inter-key intervals.  Document identifiers
are salted and hashed on arrival and only ever counted; inserted text is
never received, only its length.

Classification of a single change:

* inserted length > 1 -> a paste (bucketed by length, counted as an insert)
* deleted > 0 and inserted > 0 -> a replace
* deleted > 0 -> a delete
* inserted == 1 -> a keystroke (also counted as an insert)

Time since the previous event counts as idle when it exceeds the idle
threshold, otherwise as active.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from pydantic import BaseModel, Field

from efforia.capture.buckets import bucket_mean_interval, paste_bucket, variance_bucket
from efforia.core.defaults import (
    CAPTURE_DOCUMENT_SALT,
    CAPTURE_IDLE_THRESHOLD_MS,
    CAPTURE_MAX_INTERVAL_MS,
    CAPTURE_MAX_INTERVALS,
    PASTE_BUCKET_LABELS,
)
from efforia.core.hashing import salted_hash
from efforia.core.numeric import round_half_up
from efforia.core.time import ms_to_iso
from efforia.core.types import (
    EditOpCounts,
    IdleActiveSummary,
    KeystrokeSample,
    PasteBucket,
    SessionTelemetry,
)

logger = logging.getLogger(__name__)


class EditEvent(BaseModel, frozen=True):
    """One document change as reported by the editor -- lengths only, no text."""

    timestamp_ms: int = Field(ge=0, description="Event time (epoch ms).")
    inserted_length: int = Field(default=0, ge=0, description="Characters inserted.")
    deleted_length: int = Field(default=0, ge=0, description="Characters removed.")
    document_key: str = Field(default="", description="Opaque document identifier; hashed on arrival.")


class SessionRecorder:
    """Accumulates :class:`EditEvent` objects and emits session telemetry.

    Usage::

        rec = SessionRecorder()
        rec.start(t0)
        rec.record(EditEvent(timestamp_ms=t0 + 180, inserted_length=1, document_key="file:///a"))
        session = rec.build_session(end_ms=t0 + 60_000)
    """

    def __init__(
        self,
        *,
        idle_threshold_ms: int = CAPTURE_IDLE_THRESHOLD_MS,
        salt: str = CAPTURE_DOCUMENT_SALT,
    ) -> None:
        self._idle_threshold_ms = idle_threshold_ms
        self._salt = salt
        self.reset()

    def reset(self) -> None:
        """Discard everything recorded and wait for a new session start."""
        self._start_ms: int | None = None
        self._last_event_ms: int | None = None
        self._keystrokes = 0
        self._intervals: list[int] = []
        self._insert = 0
        self._delete = 0
        self._replace = 0
        self._paste_counts: dict[str, int] = {label: 0 for label in PASTE_BUCKET_LABELS}
        self._active_ms = 0
        self._idle_ms = 0
        self._documents: set[str] = set()

    @property
    def started(self) -> bool:
        return self._start_ms is not None

    @property
    def total_activity(self) -> int:
        """Keystrokes plus edit operations recorded so far."""
        return self._keystrokes + self._insert + self._delete + self._replace

    def start(self, timestamp_ms: int) -> None:
        """Mark the session start; a no-op if already started."""
        if self._start_ms is None:
            self._start_ms = timestamp_ms
            self._last_event_ms = timestamp_ms

    def record(self, event: EditEvent) -> None:
        """Fold one edit event into the running aggregates."""
        now = event.timestamp_ms
        self.start(now)
        last = self._last_event_ms if self._last_event_ms is not None else now

        elapsed = now - last
        if elapsed > self._idle_threshold_ms:
            self._idle_ms += elapsed
        elif elapsed > 0:
            self._active_ms += elapsed

        if event.document_key:
            self._documents.add(salted_hash(event.document_key, self._salt))

        inserted, deleted = event.inserted_length, event.deleted_length
        if inserted > 1:
            self._paste_counts[paste_bucket(inserted)] += 1
            self._insert += 1
        elif deleted > 0 and inserted > 0:
            self._replace += 1
        elif deleted > 0:
            self._delete += 1
        elif inserted == 1:
            self._keystrokes += 1
            interval = now - last
            if len(self._intervals) < CAPTURE_MAX_INTERVALS and 0 <= interval <= CAPTURE_MAX_INTERVAL_MS:
                self._intervals.append(interval)
            self._insert += 1

        self._last_event_ms = now

    def build_session(self, end_ms: int) -> SessionTelemetry:
        """Snapshot the aggregates as :class:`SessionTelemetry`.

        Keystroke intervals are grouped by :func:`bucket_mean_interval`;
        each group becomes one :class:`KeystrokeSample`.

        Args:
            end_ms: Session end (epoch ms).  Also used as the start if no
                event was recorded.
        """
        groups: defaultdict[int, list[int]] = defaultdict(list)
        for ms in self._intervals:
            groups[bucket_mean_interval(ms)].append(ms)

        keystrokes = tuple(
            KeystrokeSample(
                count=len(values),
                mean_interval_ms=round_half_up(sum(values) / len(values)),
                variance_bucket=variance_bucket(values),
            )
            for _, values in sorted(groups.items())
        )

        start_ms = self._start_ms if self._start_ms is not None else end_ms
        session = SessionTelemetry(
            session_start=ms_to_iso(start_ms),
            session_end=ms_to_iso(end_ms),
            keystrokes=keystrokes,
            edit_ops=EditOpCounts(insert=self._insert, delete=self._delete, replace=self._replace),
            paste_buckets=tuple(
                PasteBucket(bucket=label, count=self._paste_counts[label])
                for label in PASTE_BUCKET_LABELS
            ),
            idle_active=IdleActiveSummary(
                active_seconds=round_half_up(self._active_ms / 1000),
                idle_seconds=round_half_up(self._idle_ms / 1000),
            ),
            file_change_count=len(self._documents),
        )
        logger.debug(
            "Built session: %d keystroke buckets, %d documents",
            len(keystrokes), len(self._documents),
        )
        return session
