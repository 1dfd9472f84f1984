"""
Audit Artifact Accessor
=======================
Reads security-audit output: the final report, per-finding files, the
architecture write-up and the attack strategies. Two producers share the
layout: SOS (`.audit/`) and DB (`.bulwark/`), each with an archive dir.
"""

import os
from typing import Optional

from .constants import (
    AUDIT_DIRS,
    AUDIT_FILES,
    DEFAULT_AUDIT_SKILL,
    FINDINGS_DIR,
)
from .scanner import list_md_files, read_text
from .errors import InvalidArgumentError, PathTraversalError

AUDIT_TYPES = ["report", "findings", "architecture", "strategies"]


def is_within(root: str, candidate: str) -> bool:
    root_real = os.path.realpath(root)
    candidate_real = os.path.realpath(candidate)
    try:
        return os.path.commonpath([root_real, candidate_real]) == root_real
    except ValueError:
        # Different drives on Windows
        return False


def latest_archive(history_dir: str) -> Optional[str]:
    try:
        entries = os.listdir(history_dir)
    except OSError:
        return None
    subdirs = sorted(e for e in entries if os.path.isdir(os.path.join(history_dir, e)))
    if not subdirs:
        return None
    return os.path.join(history_dir, subdirs[-1])


def resolve_audit_dir(project_dir: str, audit: Optional[str], skill: str) -> Optional[str]:
    """
    Map the `audit` selector to a directory.

    "current" (default) -> live audit dir; "previous" -> newest archive;
    anything else is a project-relative path that must stay in the project.
    """
    dirs = AUDIT_DIRS.get(skill, AUDIT_DIRS[DEFAULT_AUDIT_SKILL])

    if not audit or audit == "current":
        path = os.path.join(project_dir, dirs["audit"])
        return path if os.path.isdir(path) else None

    if audit == "previous":
        return latest_archive(os.path.join(project_dir, dirs["history"]))

    if os.path.isabs(audit):
        raise PathTraversalError(f"Audit path must be relative to the project: {audit}")
    path = os.path.join(project_dir, audit)
    if not is_within(project_dir, path):
        raise PathTraversalError(f"Audit path escapes the project directory: {audit}")
    return path if os.path.isdir(path) else None


def _rel(project_dir: str, path: str) -> str:
    return os.path.relpath(path, project_dir).replace(os.sep, "/")


def get_findings(project_dir: str, audit_dir: str, subsystem: Optional[str] = None,
                 severity: Optional[str] = None) -> dict:
    findings_path = os.path.join(audit_dir, FINDINGS_DIR)
    files = list_md_files(findings_path)
    if files is None:
        return {"found": False, "message": "No findings directory found.", "count": 0, "findings": []}

    findings = []
    for file_name in files:
        content = read_text(os.path.join(findings_path, file_name))
        if content is None:
            continue
        findings.append({
            "file": file_name,
            "path": _rel(project_dir, os.path.join(findings_path, file_name)),
            "content": content,
        })

    if subsystem:
        sub = subsystem.lower()
        findings = [f for f in findings if sub in f["content"].lower()]

    if severity:
        sev = severity.upper()
        findings = [f for f in findings if sev in f["content"].upper()]

    return {"found": True, "type": "findings", "count": len(findings), "findings": findings}


def get_audit(project_dir: str, type: Optional[str] = None, subsystem: Optional[str] = None,
              severity: Optional[str] = None, audit: Optional[str] = None,
              skill: Optional[str] = None) -> dict:
    skill = skill or DEFAULT_AUDIT_SKILL
    if skill not in AUDIT_DIRS:
        raise InvalidArgumentError(
            f'Unknown audit skill "{skill}". Valid: {", ".join(AUDIT_DIRS)}.',
            valid=list(AUDIT_DIRS),
        )

    artifact_type = type or "report"
    if artifact_type not in AUDIT_TYPES:
        raise InvalidArgumentError(
            f'Unknown audit type "{artifact_type}". Valid: {", ".join(AUDIT_TYPES)}.',
            valid=AUDIT_TYPES,
        )

    audit_dir = resolve_audit_dir(project_dir, audit, skill)
    if audit_dir is None:
        scan_cmd = AUDIT_DIRS[skill]["scan_cmd"]
        return {
            "found": False,
            "message": f"No {skill} audit found. Run {scan_cmd} to start a security audit.",
        }

    if artifact_type == "findings":
        return get_findings(project_dir, audit_dir, subsystem, severity)

    file_path = os.path.join(audit_dir, AUDIT_FILES[artifact_type])
    content = read_text(file_path)
    if content is None:
        return {
            "found": False,
            "message": f"No {artifact_type} document found in {_rel(project_dir, audit_dir)}.",
        }

    return {
        "found": True,
        "type": artifact_type,
        "path": _rel(project_dir, file_path),
        "content": content,
    }
