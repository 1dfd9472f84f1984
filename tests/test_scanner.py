"""
Tests for the artifact scanner (STATE.json discovery).

Verifies:
1. Only top-level hidden dirs with a STATE.json carrying "skill" qualify
2. Malformed / kind-less / unrelated files are skipped silently
3. Archived run counting across both history dirs
4. Best-effort timestamp parsing
"""
import json
import os
import sys
from datetime import datetime, timezone

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from svk_mcp.scanner import (
    count_archived_runs,
    parse_timestamp,
    read_text,
    scan_workflow_states,
)


def write_state(root, dir_name, state):
    state_dir = root / dir_name
    state_dir.mkdir(parents=True, exist_ok=True)
    path = state_dir / "STATE.json"
    path.write_text(state if isinstance(state, str) else json.dumps(state), encoding="utf-8")
    return path


def test_missing_project_dir_returns_empty(tmp_path):
    assert scan_workflow_states(str(tmp_path / "nope")) == []
    assert count_archived_runs(str(tmp_path / "nope")) == 0


def test_discovers_state_with_skill_field(tmp_path):
    write_state(tmp_path, ".docs", {
        "skill": "grand-library",
        "updated": "2025-03-01T10:00:00Z",
        "phases": {"survey": {"status": "complete"}},
    })

    states = scan_workflow_states(str(tmp_path))

    assert len(states) == 1
    assert states[0].workflow_kind == "grand-library"
    assert states[0].directory.endswith(".docs")
    assert states[0].last_updated == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert states[0].phases == {"survey": {"status": "complete"}}


def test_skips_malformed_and_kindless_files(tmp_path):
    write_state(tmp_path, ".broken", "{not json")
    write_state(tmp_path, ".nokind", {"phases": {}})
    write_state(tmp_path, ".listy", [1, 2, 3])
    write_state(tmp_path, ".blank", {"skill": "   "})
    write_state(tmp_path, ".audit", {"skill": "stronghold-of-security"})

    states = scan_workflow_states(str(tmp_path))

    assert [s.workflow_kind for s in states] == ["stronghold-of-security"]


def test_ignores_visible_and_nested_dirs(tmp_path):
    write_state(tmp_path, "visible", {"skill": "grand-library"})
    write_state(tmp_path, ".outer/.inner", {"skill": "grand-library"})

    assert scan_workflow_states(str(tmp_path)) == []


def test_results_ordered_by_directory(tmp_path):
    write_state(tmp_path, ".zeta", {"skill": "b"})
    write_state(tmp_path, ".alpha", {"skill": "a"})

    assert [s.workflow_kind for s in scan_workflow_states(str(tmp_path))] == ["a", "b"]


def test_timestamp_field_fallback_order(tmp_path):
    write_state(tmp_path, ".bok", {"skill": "BOK", "updated": "garbage", "last_updated": "2025-01-02"})

    [state] = scan_workflow_states(str(tmp_path))

    assert state.last_updated.date().isoformat() == "2025-01-02"


def test_count_archived_runs_counts_only_dirs(tmp_path):
    (tmp_path / ".audit-history" / "2025-01-01").mkdir(parents=True)
    (tmp_path / ".audit-history" / "2025-02-01").mkdir()
    (tmp_path / ".audit-history" / "notes.md").write_text("x")
    (tmp_path / ".bulwark-history" / "run-1").mkdir(parents=True)

    assert count_archived_runs(str(tmp_path)) == 3


@pytest.mark.parametrize("value,expected", [
    ("2025-05-06T07:08:09Z", datetime(2025, 5, 6, 7, 8, 9, tzinfo=timezone.utc)),
    ("2025-05-06", datetime(2025, 5, 6, tzinfo=timezone.utc)),
    (0, datetime(1970, 1, 1, tzinfo=timezone.utc)),
    ("yesterday", None),
    ("", None),
    (None, None),
    (True, None),
    ({"nested": 1}, None),
])
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


def test_read_text_missing_file_is_none(tmp_path):
    assert read_text(str(tmp_path / "missing.md")) is None
