"""Deterministic hashing: session fingerprints and salted key obfuscation."""

from __future__ import annotations

import hashlib
from typing import Callable, Final

from efforia.core.defaults import FINGERPRINT_DELIMITER
from efforia.core.numeric import format_number
from efforia.core.types import NormalizedFeatures

Digest = Callable[[bytes], str]
"""A 256-bit digest returning lowercase hex, e.g. :func:`sha256_hex`."""

# Payload field order.  Part of the fingerprint definition: reordering,
# adding, or removing a field changes every previously issued hash.
FINGERPRINT_FIELDS: Final[tuple[str, ...]] = (
    "total_keystrokes",
    "mean_keystroke_interval",
    "insert_count",
    "delete_count",
    "replace_count",
    "paste_count",
    "paste_long_bucket_ratio",
    "active_ratio",
    "session_duration_seconds",
    "file_change_count",
)


def sha256_hex(data: bytes) -> str:
    """SHA-256 of *data* as 64 lowercase hex characters."""
    return hashlib.sha256(data).hexdigest()


def fingerprint_payload(features: NormalizedFeatures) -> str:
    """Join the features, in :data:`FINGERPRINT_FIELDS` order, with ``:``.

    Each value is rendered by :func:`~efforia.core.numeric.format_number`,
    e.g. ``"200:222:150:30:12:2:0:0.667:900:3"``.
    """
    return FINGERPRINT_DELIMITER.join(
        format_number(getattr(features, name)) for name in FINGERPRINT_FIELDS
    )


def fingerprint_hash(features: NormalizedFeatures, digest: Digest = sha256_hex) -> str:
    """Deterministic, one-way fingerprint of *features*.

    Identical feature vectors always produce identical hashes; the digest
    cannot be inverted to recover the features or any document content.

    Args:
        features: Normalized feature vector.
        digest: 256-bit digest over the UTF-8 payload.  Defaults to SHA-256;
            injectable for cross-implementation parity tests.

    Returns:
        Lowercase hex digest (64 characters for the default digest).
    """
    payload = fingerprint_payload(features)
    return digest(payload.encode("utf-8")).lower()


def salted_hash(payload: str, salt: str) -> str:
    """Salted SHA-256 of *payload*.

    Used to keep opaque per-document keys during capture so that distinct
    documents can be counted without retaining their names.

    Args:
        payload: Arbitrary string to hash (e.g. a document URI).
        salt: A per-installation or per-session secret.

    Returns:
        64-character hex digest.
    """
    return sha256_hex((salt + payload).encode("utf-8"))
