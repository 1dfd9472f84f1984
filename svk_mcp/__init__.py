"""
SVK MCP Package Init
====================
Read-only query layer over SVK skill artifacts (state files, GL docs,
decisions, audit reports, knowledge bases).

Modules:
- scanner: STATE.json discovery
- status: per-workflow phase resolution
- docs / audit: document, decision and audit retrieval
- search: full-text artifact search
- suggest: next-action heuristics
- knowledge: bundled knowledge bases

Usage:
    python -m svk_mcp.server
"""

from .scanner import scan_workflow_states, count_archived_runs
from .status import project_status, register_strategy
from .docs import get_document, get_decisions
from .audit import get_audit
from .search import search_artifacts
from .suggest import suggest_next_actions
from .knowledge import list_knowledge, read_knowledge

__all__ = [
    # Scanner
    "scan_workflow_states",
    "count_archived_runs",

    # Status
    "project_status",
    "register_strategy",

    # Documents
    "get_document",
    "get_decisions",
    "get_audit",

    # Query
    "search_artifacts",
    "suggest_next_actions",

    # Knowledge
    "list_knowledge",
    "read_knowledge",
]
