"""Session telemetry validation: the canonical gate for untyped input.

:func:`validate_session` is a deliberately minimal gatekeeper.  It checks
only that the shapes later numeric code relies on are present, so that
normalization can never crash; it performs no range, bound, or cross-field
checks (negative counts pass, ``sessionEnd < sessionStart`` passes).

Checks run in a fixed order and stop at the first failure:

1. the input is an object (mapping);
2. ``sessionStart`` and ``sessionEnd`` are strings;
3. ``keystrokes`` is an array -- elements that are not objects are
   silently dropped, object elements must carry numeric ``count`` and
   ``meanIntervalMs``;
4. ``editOps`` is an object with numeric ``insert``, ``delete``, ``replace``;
5. ``pasteBuckets`` is an array (element shape unchecked);
6. ``idleActive`` is an object with numeric ``activeSeconds`` and
   ``idleSeconds``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from efforia.core.numeric import is_number
from efforia.core.types import (
    EditOpCounts,
    IdleActiveSummary,
    KeystrokeSample,
    PasteBucket,
    SessionTelemetry,
)

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """Raised when a session document does not have the telemetry shape.

    The message names the offending field and is meant to be shown to the
    user unmodified.
    """


def validate_session(raw: object) -> SessionTelemetry:
    """Validate *raw* and build an immutable :class:`SessionTelemetry`.

    Args:
        raw: Parsed JSON value (typically a ``dict``), or an existing
            ``SessionTelemetry`` which is returned unchanged.

    Returns:
        The validated telemetry.  Non-object keystroke elements and
        non-object paste elements are dropped; unknown keys are ignored.

    Raises:
        SchemaError: On the first shape violation, in the documented order.
    """
    if isinstance(raw, SessionTelemetry):
        return raw

    if not isinstance(raw, Mapping):
        raise SchemaError("Session must be a JSON object")

    session_start = raw.get("sessionStart")
    session_end = raw.get("sessionEnd")
    if not isinstance(session_start, str) or not isinstance(session_end, str):
        raise SchemaError("Session must have sessionStart and sessionEnd (ISO strings)")

    keystrokes = _check_keystrokes(raw.get("keystrokes"))
    edit_ops = _check_edit_ops(raw.get("editOps"))

    paste_raw = raw.get("pasteBuckets")
    if not isinstance(paste_raw, list):
        raise SchemaError("Session must have pasteBuckets (array)")

    idle_active = _check_idle_active(raw.get("idleActive"))

    file_changes = raw.get("fileChangeCount", 0)

    return SessionTelemetry(
        session_start=session_start,
        session_end=session_end,
        keystrokes=keystrokes,
        edit_ops=edit_ops,
        paste_buckets=_coerce_paste_buckets(paste_raw),
        idle_active=idle_active,
        file_change_count=file_changes if is_number(file_changes) else 0,
    )


def load_session(path: Path) -> SessionTelemetry:
    """Read a JSON session file and validate it.

    Raises:
        SchemaError: If the file is not UTF-8 JSON or fails validation.
        OSError: If the file cannot be read.
    """
    try:
        text = Path(path).read_text("utf-8")
    except UnicodeDecodeError as exc:
        raise SchemaError(f"Session file is not valid UTF-8: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Session file is not valid JSON: {exc}") from exc
    return validate_session(data)


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _check_keystrokes(value: object) -> tuple[KeystrokeSample, ...]:
    if not isinstance(value, list):
        raise SchemaError("Session must have keystrokes (array)")

    samples: list[KeystrokeSample] = []
    skipped = 0
    for element in value:
        if not isinstance(element, Mapping):
            skipped += 1
            continue
        count = element.get("count")
        interval = element.get("meanIntervalMs")
        if not is_number(count) or not is_number(interval):
            raise SchemaError(
                "Each keystroke sample must have count and meanIntervalMs (numbers)"
            )
        variance = element.get("varianceBucket")
        samples.append(KeystrokeSample(
            count=count,
            mean_interval_ms=interval,
            variance_bucket=variance if is_number(variance) else None,
        ))

    if skipped:
        logger.debug("Dropped %d malformed keystroke element(s)", skipped)
    return tuple(samples)


def _check_edit_ops(value: object) -> EditOpCounts:
    if not isinstance(value, Mapping):
        raise SchemaError("Session must have editOps (object with insert, delete, replace)")
    insert, delete, replace = value.get("insert"), value.get("delete"), value.get("replace")
    if not (is_number(insert) and is_number(delete) and is_number(replace)):
        raise SchemaError("editOps must have insert, delete, replace (numbers)")
    return EditOpCounts(insert=insert, delete=delete, replace=replace)


def _check_idle_active(value: object) -> IdleActiveSummary:
    if not isinstance(value, Mapping):
        raise SchemaError("Session must have idleActive (object with activeSeconds, idleSeconds)")
    active, idle = value.get("activeSeconds"), value.get("idleSeconds")
    if not (is_number(active) and is_number(idle)):
        raise SchemaError("idleActive must have activeSeconds and idleSeconds (numbers)")
    return IdleActiveSummary(active_seconds=active, idle_seconds=idle)


def _coerce_paste_buckets(elements: list[Any]) -> tuple[PasteBucket, ...]:
    """Build paste buckets leniently: shapes are not validated here."""
    buckets: list[PasteBucket] = []
    for element in elements:
        if not isinstance(element, Mapping):
            continue
        label = element.get("bucket")
        count = element.get("count")
        buckets.append(PasteBucket(
            bucket=label if isinstance(label, str) else None,
            count=count if is_number(count) else 0,
        ))
    return tuple(buckets)
