"""
Tests for audit artifact retrieval (SOS + DB layouts, archive selection).
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from svk_mcp.audit import get_audit
from svk_mcp.errors import InvalidArgumentError, PathTraversalError


@pytest.fixture
def audit_project(tmp_path):
    audit = tmp_path / ".audit"
    (audit / "findings").mkdir(parents=True)
    (audit / "FINAL_REPORT.md").write_text("# Final Report\nCRITICAL: 1\n", encoding="utf-8")
    (audit / "ARCHITECTURE.md").write_text("# Architecture\n", encoding="utf-8")
    (audit / "findings" / "H001.md").write_text(
        "# H001\nSeverity: HIGH\nSubsystem: tax-program\n", encoding="utf-8")
    (audit / "findings" / "C001.md").write_text(
        "# C001\nSeverity: Critical\nSubsystem: staking\n", encoding="utf-8")

    history = tmp_path / ".audit-history"
    (history / "2025-01-01").mkdir(parents=True)
    (history / "2025-02-01").mkdir()
    (history / "2025-02-01" / "FINAL_REPORT.md").write_text("# Old Report\n", encoding="utf-8")
    return tmp_path


def test_default_is_current_report(audit_project):
    result = get_audit(str(audit_project))

    assert result["found"] is True
    assert result["type"] == "report"
    assert result["path"] == ".audit/FINAL_REPORT.md"
    assert "CRITICAL" in result["content"]


def test_findings_filters(audit_project):
    all_findings = get_audit(str(audit_project), type="findings")
    by_subsystem = get_audit(str(audit_project), type="findings", subsystem="TAX-PROGRAM")
    by_severity = get_audit(str(audit_project), type="findings", severity="critical")

    assert all_findings["count"] == 2
    assert [f["file"] for f in by_subsystem["findings"]] == ["H001.md"]
    assert [f["file"] for f in by_severity["findings"]] == ["C001.md"]


def test_previous_selects_newest_archive(audit_project):
    result = get_audit(str(audit_project), audit="previous")

    assert result["path"] == ".audit-history/2025-02-01/FINAL_REPORT.md"
    assert "Old Report" in result["content"]


def test_explicit_archive_path(audit_project):
    result = get_audit(str(audit_project), audit=".audit-history/2025-01-01")

    assert result["found"] is False
    assert "report" in result["message"]


def test_missing_document_is_not_found(audit_project):
    result = get_audit(str(audit_project), type="strategies")

    assert result["found"] is False


def test_no_audit_at_all(tmp_path):
    assert get_audit(str(tmp_path))["found"] is False
    assert "/DB:scan" in get_audit(str(tmp_path), skill="db")["message"]
    assert get_audit(str(tmp_path), audit="previous")["found"] is False


def test_db_layout(tmp_path):
    (tmp_path / ".bulwark").mkdir()
    (tmp_path / ".bulwark" / "STRATEGIES.md").write_text("# Strategies\n", encoding="utf-8")

    result = get_audit(str(tmp_path), type="strategies", skill="db")

    assert result["path"] == ".bulwark/STRATEGIES.md"


def test_invalid_arguments(audit_project):
    with pytest.raises(InvalidArgumentError):
        get_audit(str(audit_project), type="everything")
    with pytest.raises(InvalidArgumentError):
        get_audit(str(audit_project), skill="xyz")


def test_audit_path_cannot_escape_project(audit_project):
    with pytest.raises(PathTraversalError):
        get_audit(str(audit_project), audit="../elsewhere")
    with pytest.raises(PathTraversalError):
        get_audit(str(audit_project), audit=str(audit_project.parent))
