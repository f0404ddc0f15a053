"""Local anchoring ledger: fixed-width keys, integer scores, duplicate rejection.

Mirrors the interface of the external anchoring contract so certificates can
be anchored and looked up without a network:

* keys are the fingerprint hash as a 32-byte value (``0x`` + 64 hex chars);
* scores are stored as integers in ``[0, 1000]`` (score x 1000);
* a key can be anchored only once.

Records live in an append-only JSONL file.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Final

from pydantic import BaseModel, Field

from efforia.core.defaults import ANCHOR_KEY_HEX_LEN, ANCHOR_SCORE_SCALE, DEFAULT_LEDGER_FILE
from efforia.core.numeric import is_number, round_half_up
from efforia.core.store import append_jsonl, read_jsonl
from efforia.core.types import Certificate

logger = logging.getLogger(__name__)

_HEX_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]*$")


class AnchorError(ValueError):
    """Raised when an anchor request is rejected."""


class AnchorRecord(BaseModel, frozen=True):
    """One anchored fingerprint."""

    key: str = Field(description="0x-prefixed 32-byte fingerprint key.")
    score: int = Field(ge=0, le=ANCHOR_SCORE_SCALE, description="Effort score x 1000.")
    timestamp: int = Field(ge=0, description="Anchor time (epoch seconds).")
    author: str = Field(description="Author key that anchored the record.")


def to_anchor_key(fingerprint_hash: str) -> str:
    """Convert a hex fingerprint into the ledger's fixed-width key.

    Strips an optional ``0x`` prefix, left-pads with zeros to 64 characters
    and keeps the last 64, so shorter and longer inputs still map to a
    32-byte key.

    Raises:
        AnchorError: If *fingerprint_hash* is empty or not hexadecimal.
    """
    h = fingerprint_hash[2:] if fingerprint_hash.lower().startswith("0x") else fingerprint_hash
    if not h or not _HEX_RE.match(h):
        raise AnchorError(f"Fingerprint must be a hex string, got {fingerprint_hash!r}")
    return "0x" + h.lower().rjust(ANCHOR_KEY_HEX_LEN, "0")[-ANCHOR_KEY_HEX_LEN:]


def to_anchor_score(score: float) -> int:
    """Scale a ``[0, 1]`` score to the ledger's ``[0, 1000]`` integer.

    Rounds half-up rather than truncating: a 3-decimal score times 1000
    can land just below the intended integer in binary floating point.

    Raises:
        AnchorError: If the scaled score falls outside ``[0, 1000]``.
    """
    if not is_number(score):
        raise AnchorError(f"Score must be a number, got {score!r}")
    scaled = round_half_up(score * ANCHOR_SCORE_SCALE)
    if scaled < 0 or scaled > ANCHOR_SCORE_SCALE:
        raise AnchorError(f"Score must be 0-{ANCHOR_SCORE_SCALE} after scaling, got {scaled}")
    return scaled


class AnchorLedger:
    """Append-only JSONL ledger of anchored fingerprints."""

    def __init__(self, path: str | Path = DEFAULT_LEDGER_FILE) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def records(self) -> list[AnchorRecord]:
        """All anchored records, oldest first."""
        return [AnchorRecord.model_validate(r) for r in read_jsonl(self._path)]

    def get_record(self, fingerprint_hash: str) -> AnchorRecord | None:
        """Look up the record for *fingerprint_hash* (any case, ``0x`` optional)."""
        key = to_anchor_key(fingerprint_hash)
        for record in self.records():
            if record.key == key:
                return record
        return None

    def verify(self, fingerprint_hash: str) -> bool:
        """``True`` if *fingerprint_hash* has been anchored."""
        return self.get_record(fingerprint_hash) is not None

    def anchor(
        self,
        fingerprint_hash: str,
        score: float,
        author: str,
        *,
        timestamp: int | None = None,
    ) -> AnchorRecord:
        """Anchor a fingerprint with its effort score.

        Args:
            fingerprint_hash: 64-char hex fingerprint.
            score: Effort score in ``[0, 1]``.
            author: Author key recorded with the anchor.
            timestamp: Override for the anchor time (epoch seconds).

        Returns:
            The stored :class:`AnchorRecord`.

        Raises:
            AnchorError: If the fingerprint is already anchored, the score
                is out of range, or the fingerprint is not hex.
        """
        key = to_anchor_key(fingerprint_hash)
        scaled = to_anchor_score(score)
        if self.get_record(key) is not None:
            raise AnchorError(f"Fingerprint {key} already anchored")

        record = AnchorRecord(
            key=key,
            score=scaled,
            timestamp=int(time.time()) if timestamp is None else timestamp,
            author=author,
        )
        append_jsonl(self._path, record.model_dump())
        logger.info("Anchored %s with score %d", key, scaled)
        return record

    def anchor_certificate(self, cert: Certificate, author: str | None = None) -> AnchorRecord:
        """Anchor *cert*, using its ``author_address`` unless *author* is given.

        Raises:
            AnchorError: As :meth:`anchor`, or if no author is available.
        """
        resolved = author or cert.author_address
        if not resolved:
            raise AnchorError("An author is required to anchor a certificate")
        return self.anchor(cert.fingerprint_hash, cert.human_effort_score, resolved)
