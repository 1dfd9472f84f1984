"""
Artifact Scanner
================
Convention-based discovery of workflow state files.

A state file is any `.*/STATE.json` under the project root whose JSON body
carries a "skill" field. Anything else (unrelated hidden dirs, half-written
files, hand-edited garbage) is treated as absent.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import (
    HISTORY_DIRS,
    STATE_FILE_NAME,
    TIMESTAMP_FIELDS,
    WORKFLOW_KIND_FIELD,
)

logger = logging.getLogger("SvkScanner")


@dataclass
class WorkflowStateDescriptor:
    workflow_kind: str
    file_path: str
    directory: str
    last_updated: Optional[datetime] = None
    raw_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def phases(self) -> Dict[str, Any]:
        phases = self.raw_fields.get("phases")
        return phases if isinstance(phases, dict) else {}


def load_json_file(file_path, default=None):
    """
    Load JSON file with error handling.

    Returns:
        Parsed JSON data, or default if the file is missing, unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return default


def parse_timestamp(value) -> Optional[datetime]:
    """Best-effort timestamp parse. Accepts ISO-8601 strings, dates and epoch seconds."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_last_updated(raw_fields: Dict[str, Any]) -> Optional[datetime]:
    for key in TIMESTAMP_FIELDS:
        if key in raw_fields:
            parsed = parse_timestamp(raw_fields[key])
            if parsed is not None:
                return parsed
    return None


def read_state_file(state_file: str) -> Optional[WorkflowStateDescriptor]:
    """Parse one candidate state file. Returns None if it does not qualify."""
    state = load_json_file(state_file)
    if not isinstance(state, dict):
        return None

    kind = state.get(WORKFLOW_KIND_FIELD)
    if not isinstance(kind, str) or not kind.strip():
        return None

    return WorkflowStateDescriptor(
        workflow_kind=kind.strip(),
        file_path=state_file,
        directory=os.path.dirname(state_file),
        last_updated=extract_last_updated(state),
        raw_fields=state,
    )


def scan_workflow_states(project_dir: str) -> List[WorkflowStateDescriptor]:
    """
    Scan a project directory for workflow state files.

    Only top-level hidden directories are considered. Results are ordered by
    directory name.
    """
    try:
        entries = sorted(os.listdir(project_dir))
    except OSError:
        return []

    results = []
    for name in entries:
        if not name.startswith("."):
            continue
        dir_path = os.path.join(project_dir, name)
        if not os.path.isdir(dir_path):
            continue

        state_file = os.path.join(dir_path, STATE_FILE_NAME)
        if not os.path.isfile(state_file):
            continue

        descriptor = read_state_file(state_file)
        if descriptor is None:
            logger.debug(f"Skipping {state_file}: not a workflow state file")
            continue
        results.append(descriptor)

    return results


def count_archived_runs(project_dir: str) -> int:
    """Count archived audit runs in .audit-history/ and .bulwark-history/."""
    count = 0
    for hist_name in HISTORY_DIRS:
        hist_dir = os.path.join(project_dir, hist_name)
        try:
            entries = os.listdir(hist_dir)
        except OSError:
            continue
        count += sum(1 for e in entries if os.path.isdir(os.path.join(hist_dir, e)))
    return count


def dir_exists(path: str) -> bool:
    return os.path.isdir(path)


def list_md_files(dir_path: str) -> Optional[List[str]]:
    """Sorted .md file names, or None if the directory is missing."""
    try:
        entries = os.listdir(dir_path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    return sorted(
        e for e in entries
        if e.endswith(".md") and os.path.isfile(os.path.join(dir_path, e))
    )


def read_text(file_path: str) -> Optional[str]:
    """
    Read a UTF-8 artifact. Missing or undecodable files read as None;
    any other OSError (permissions, disk) propagates to the caller.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError, UnicodeDecodeError):
        return None
