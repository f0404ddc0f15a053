"""Shared fixtures for the efforia test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture()
def sample_session() -> dict[str, Any]:
    """A 15-minute session with mixed edits and two short pastes."""
    return {
        "sessionStart": "2025-02-07T10:00:00.000Z",
        "sessionEnd": "2025-02-07T10:15:00.000Z",
        "keystrokes": [
            {"count": 80, "meanIntervalMs": 180, "varianceBucket": 1},
            {"count": 120, "meanIntervalMs": 250, "varianceBucket": 1},
        ],
        "editOps": {"insert": 150, "delete": 30, "replace": 12},
        "pasteBuckets": [
            {"bucket": "0-50", "count": 2},
            {"bucket": "51-200", "count": 0},
            {"bucket": "201-500", "count": 0},
            {"bucket": "501+", "count": 0},
        ],
        "idleActive": {"activeSeconds": 600, "idleSeconds": 300},
        "fileChangeCount": 3,
    }


@pytest.fixture()
def zero_session() -> dict[str, Any]:
    """A session with no recorded activity at all."""
    return {
        "sessionStart": "2025-02-07T10:00:00.000Z",
        "sessionEnd": "2025-02-07T10:00:00.000Z",
        "keystrokes": [],
        "editOps": {"insert": 0, "delete": 0, "replace": 0},
        "pasteBuckets": [],
        "idleActive": {"activeSeconds": 0, "idleSeconds": 0},
        "fileChangeCount": 0,
    }


@pytest.fixture()
def sample_session_file(tmp_path: Path, sample_session: dict[str, Any]) -> Path:
    path = tmp_path / "session.json"
    path.write_text(json.dumps(sample_session), "utf-8")
    return path
