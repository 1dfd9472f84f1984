"""
Suggestion Engine
=================
Derives next actions from file-system facts.

Facts are gathered once per call, then every rule in RULES is evaluated in
order. Rules are independent of one another, so the output depends only on
the artifact tree.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .constants import (
    AUDIT_DIRS,
    AUDIT_FILES,
    CODE_DIRS,
    DEFAULT_AUDIT_SKILL,
    DOCS_DIR,
    PRIORITY_ORDER,
    TEST_DIRS,
    UNRESOLVED_PATTERN,
    get_stale_days,
)
from .scanner import count_archived_runs, dir_exists, read_text, scan_workflow_states

logger = logging.getLogger("SvkSuggest")


@dataclass
class Suggestion:
    message: str
    priority: str
    reason: str

    def to_dict(self) -> dict:
        return {"suggestion": self.message, "priority": self.priority, "reason": self.reason}


@dataclass
class ReportKeywords:
    critical_count: int
    high_count: int
    has_unresolved: bool


@dataclass
class ProjectFacts:
    workflow_updated: Dict[str, Optional[datetime]]
    archived_run_count: int
    has_code: bool
    has_docs: bool
    has_audit: bool
    has_tests: bool
    report: Optional[ReportKeywords]
    stale_days: int


def scan_report_keywords(content: str) -> ReportKeywords:
    """Keyword heuristic over free-text report content."""
    return ReportKeywords(
        critical_count=len(re.findall(r"CRITICAL", content, re.IGNORECASE)),
        high_count=len(re.findall(r"\bHIGH\b", content, re.IGNORECASE)),
        has_unresolved=re.search(UNRESOLVED_PATTERN, content, re.IGNORECASE) is not None,
    )


def gather_facts(project_dir: str) -> ProjectFacts:
    descriptors = scan_workflow_states(project_dir)

    def any_dir(names):
        return any(dir_exists(os.path.join(project_dir, n)) for n in names)

    audit_dir = os.path.join(project_dir, AUDIT_DIRS[DEFAULT_AUDIT_SKILL]["audit"])
    has_audit = dir_exists(audit_dir)

    report = None
    if has_audit:
        content = read_text(os.path.join(audit_dir, AUDIT_FILES["report"]))
        if content is not None:
            report = scan_report_keywords(content)

    return ProjectFacts(
        workflow_updated={d.workflow_kind: d.last_updated for d in descriptors},
        archived_run_count=count_archived_runs(project_dir),
        has_code=any_dir(CODE_DIRS),
        has_docs=dir_exists(os.path.join(project_dir, DOCS_DIR)),
        has_audit=has_audit,
        has_tests=any_dir(TEST_DIRS),
        report=report,
        stale_days=get_stale_days(),
    )


# =============================================================================
# RULES
# =============================================================================

@dataclass
class SuggestionRule:
    name: str
    predicate: Callable[[ProjectFacts], bool]
    build: Callable[[ProjectFacts], Suggestion]


def _docs_age_days(facts: ProjectFacts) -> Optional[float]:
    """Age of the GL docs measured against the newest workflow update in the tree."""
    if "grand-library" not in facts.workflow_updated:
        return None
    stamps = [t for t in facts.workflow_updated.values() if t is not None]
    if not stamps:
        return None
    # A GL state with no parseable timestamp counts as older than anything else
    updated = facts.workflow_updated["grand-library"] or datetime.fromtimestamp(0, tz=timezone.utc)
    return (max(stamps) - updated).total_seconds() / 86400


def _docs_stale(facts: ProjectFacts) -> bool:
    if not facts.has_docs:
        return False
    age = _docs_age_days(facts)
    return age is not None and age > facts.stale_days


def _stale_docs(facts: ProjectFacts) -> Suggestion:
    if facts.workflow_updated.get("grand-library") is None:
        age = "GL docs have no recorded update time."
    else:
        age = f"GL docs were last updated {int(_docs_age_days(facts))} days ago."
    return Suggestion(
        "Docs may be stale: consider /GL:update",
        "medium",
        f"{age} If significant code changes have been made, docs may be out of date.",
    )


def _unresolved_findings(facts: ProjectFacts) -> bool:
    report = facts.report
    return (
        facts.has_audit
        and report is not None
        and report.has_unresolved
        and (report.critical_count > 0 or report.high_count > 0)
    )


RULES: List[SuggestionRule] = [
    SuggestionRule(
        "code_without_docs",
        lambda f: f.has_code and not f.has_docs,
        lambda f: Suggestion(
            "Run /GL:survey: no architecture docs found",
            "high",
            "Code exists but no GL documentation has been generated. Architecture docs "
            "help all downstream tools (including security audits) work better.",
        ),
    ),
    SuggestionRule(
        "stale_docs",
        _docs_stale,
        _stale_docs,
    ),
    SuggestionRule(
        "code_without_audit",
        lambda f: f.has_code and not f.has_audit,
        lambda f: Suggestion(
            "Consider /SOS:scan before deployment",
            "high",
            "No security audit found. Running SOS before deployment catches vulnerabilities early.",
        ),
    ),
    SuggestionRule(
        "unresolved_findings",
        _unresolved_findings,
        lambda f: Suggestion(
            f"{f.report.critical_count} CRITICAL + {f.report.high_count} HIGH findings "
            "may be unresolved: fix before launch",
            "critical",
            "The audit report contains unresolved critical or high severity findings.",
        ),
    ),
    SuggestionRule(
        "archived_without_current",
        lambda f: f.archived_run_count > 0 and not f.has_audit and f.has_code,
        lambda f: Suggestion(
            "Codebase changed since last audit: /SOS:scan for delta audit",
            "medium",
            f"{f.archived_run_count} previous audit(s) archived, but no current audit exists. "
            "Code may have changed.",
        ),
    ),
    SuggestionRule(
        "audit_without_tests",
        lambda f: f.has_audit and f.has_code and not f.has_tests,
        lambda f: Suggestion(
            "Consider test generation for audited code",
            "medium",
            "Security audit exists but no test directory detected. Tests codify invariants "
            "the audit identified.",
        ),
    ),
]

NOTHING_TO_DO = Suggestion(
    "Project looks solid",
    "info",
    "All expected SVK artifacts are present and no immediate actions detected.",
)


def evaluate(facts: ProjectFacts, rules: Optional[List[SuggestionRule]] = None) -> List[Suggestion]:
    suggestions = []
    for rule in rules if rules is not None else RULES:
        if rule.predicate(facts):
            logger.debug(f"Rule fired: {rule.name}")
            suggestions.append(rule.build(facts))

    if not suggestions:
        suggestions.append(NOTHING_TO_DO)

    # sorted() is stable, so rule order breaks ties
    return sorted(suggestions, key=lambda s: PRIORITY_ORDER.get(s.priority, PRIORITY_ORDER["info"]))


def suggest_next_actions(project_dir: str) -> dict:
    facts = gather_facts(project_dir)
    return {"suggestions": [s.to_dict() for s in evaluate(facts)]}
