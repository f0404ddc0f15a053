"""ISO-8601 timestamp parsing and session-duration arithmetic.

All arithmetic happens on integer epoch milliseconds in UTC.  Naive
timestamps (no offset) are interpreted as UTC so the result never depends
on the machine's local timezone.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from efforia.core.numeric import round_half_up

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def parse_iso_ms(text: str) -> int | None:
    """Parse an ISO-8601 string into epoch milliseconds.

    Sub-millisecond precision is truncated.  A trailing ``Z`` is accepted.

    Args:
        text: Timestamp such as ``"2025-02-07T10:00:00.000Z"``.

    Returns:
        Epoch milliseconds, or ``None`` if *text* is not a valid timestamp.
    """
    try:
        ts = datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return (ts - _EPOCH) // _ONE_MS


def session_duration_seconds(session_start: str, session_end: str) -> int:
    """Whole seconds between two ISO timestamps, clamped at zero.

    Negative spans (end before start) and unparseable timestamps both
    yield ``0`` -- this function never raises.
    """
    start = parse_iso_ms(session_start)
    end = parse_iso_ms(session_end)
    if start is None or end is None:
        return 0
    return max(0, round_half_up((end - start) / 1000))


def ms_to_iso(epoch_ms: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return format_iso(_EPOCH + timedelta(milliseconds=epoch_ms))


def format_iso(ts: datetime) -> str:
    """Format *ts* as UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    ts = ts.astimezone(UTC)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso(now: datetime | None = None) -> str:
    """Current wall-clock time (or *now*) as an ISO-8601 UTC string."""
    return format_iso(now or datetime.now(tz=UTC))
