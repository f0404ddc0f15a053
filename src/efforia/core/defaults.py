"""Centralised default constants for efforia.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.

Scoring weights and thresholds are *not* here -- they belong to the
versioned :class:`~efforia.scoring.config.ScoringConfig`.
"""

from __future__ import annotations

from typing import Final

# ── Telemetry shape ──
PASTE_BUCKET_LABELS: Final[tuple[str, ...]] = ("0-50", "51-200", "201-500", "501+")
LONG_PASTE_BUCKETS: Final[frozenset[str]] = frozenset({"201-500", "501+"})

# ── Rounding ──
RATIO_DECIMALS: Final[int] = 3
SCORE_DECIMALS: Final[int] = 3

# ── Fingerprint ──
FINGERPRINT_DELIMITER: Final[str] = ":"
FINGERPRINT_HEX_LEN: Final[int] = 64

# ── Capture (editor-side aggregation) ──
CAPTURE_IDLE_THRESHOLD_MS: Final[int] = 2000
CAPTURE_MAX_INTERVALS: Final[int] = 500
CAPTURE_MAX_INTERVAL_MS: Final[int] = 60_000
CAPTURE_INTERVAL_BUCKETS_MS: Final[tuple[int, ...]] = (0, 100, 200, 500, 1000, 2000, 5000, 10000)
CAPTURE_VARIANCE_LOW_STD_MS: Final[float] = 100.0
CAPTURE_VARIANCE_MID_STD_MS: Final[float] = 400.0
CAPTURE_DOCUMENT_SALT: Final[str] = "efforia-document-salt"

# ── Privacy ──
# Field names that would carry document content.  Never logged, never exported.
CONTENT_KEYS: Final[frozenset[str]] = frozenset({
    "document_text",
    "document_content",
    "document_uri",
    "typed_text",
    "inserted_text",
    "clipboard_content",
    "raw_keystrokes",
    "raw_keys",
    "file_name",
    "file_path",
})

# ── Anchoring ──
ANCHOR_SCORE_SCALE: Final[int] = 1000
ANCHOR_KEY_HEX_LEN: Final[int] = 64

# ── Paths / file names ──
DEFAULT_DATA_DIR: Final[str] = ".efforia"
DEFAULT_SESSION_FILE: Final[str] = "efforia-session.json"
DEFAULT_CERTIFICATE_FILE: Final[str] = "efforia-certificate.json"
DEFAULT_LEDGER_FILE: Final[str] = ".efforia/ledger.jsonl"
DEFAULT_REPORT_DIR: Final[str] = "artifacts"

# ── Misc ──
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"
