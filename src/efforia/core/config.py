"""Per-install settings kept as ``config.json`` in the data directory.

::

    .efforia/config.json
    {
      "user_id": "5d0c...",            # generated once, immutable
      "author_address": "0xabc...",    # optional; defaults to user_id
      "ledger_path": "anchors.jsonl",  # optional
      "scoring_config": "v1.yaml"      # optional scoring override
    }

``author_address`` is embedded in certificates and ledger records, so it is
the one value users are expected to edit (``efforia config set-author``).
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from efforia.core.defaults import DEFAULT_DATA_DIR, DEFAULT_LEDGER_FILE
from efforia.core.store import atomic_write_text

logger = logging.getLogger(__name__)

_CONFIG_FILENAME = "config.json"
_IMMUTABLE_KEYS = frozenset({"user_id"})


def _clean_author(value: object) -> str:
    author = str(value).strip()
    if not author:
        raise ValueError("author_address must not be empty")
    return author


class UserConfig:
    """Settings in ``<data_dir>/config.json``; every change is written through.

    A missing, unreadable, or non-object file is treated as empty and
    replaced on the next write.
    """

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR) -> None:
        self._path = Path(data_dir) / _CONFIG_FILENAME
        self._data = self._read()
        if "user_id" not in self._data:
            self._data["user_id"] = str(uuid.uuid4())
            self._write()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self._path)
            return {}
        return data

    def _write(self) -> None:
        atomic_write_text(self._path, json.dumps(self._data, indent=2) + "\n")

    @property
    def user_id(self) -> str:
        """Random install identifier; fixed after the first run."""
        return self._data["user_id"]

    @property
    def author_address(self) -> str:
        """Author key for certificates and anchors (``user_id`` until set)."""
        return self._data.get("author_address") or self.user_id

    @author_address.setter
    def author_address(self, value: str) -> None:
        self._data["author_address"] = _clean_author(value)
        self._write()

    @property
    def ledger_path(self) -> Path:
        return Path(self._data.get("ledger_path", DEFAULT_LEDGER_FILE))

    @property
    def scoring_config_path(self) -> Path | None:
        value = self._data.get("scoring_config")
        return Path(value) if value else None

    def as_dict(self) -> dict[str, Any]:
        """Stored values plus the effective ``author_address`` and ``ledger_path``."""
        return {
            **self._data,
            "author_address": self.author_address,
            "ledger_path": str(self.ledger_path),
        }

    def update(self, patch: dict[str, Any]) -> dict[str, Any]:
        """Merge *patch*, write it, and return :meth:`as_dict`.

        Immutable keys in *patch* are skipped.

        Raises:
            ValueError: If *patch* sets an empty ``author_address``; nothing
                is written in that case.
        """
        changes = {k: v for k, v in patch.items() if k not in _IMMUTABLE_KEYS}
        if "author_address" in changes:
            changes["author_address"] = _clean_author(changes["author_address"])
        self._data.update(changes)
        self._write()
        return self.as_dict()
