"""
SVK MCP - Shared Constants
Single Source of Truth for artifact layout, phase tables and config lookups.

Used by:
- scanner.py / status.py (state discovery + phase resolution)
- docs.py / audit.py / search.py (artifact locations)
- suggest.py (heuristic thresholds)
- knowledge.py (bundled knowledge root)
"""

import os

SERVER_NAME = "svk"
SERVER_VERSION = "1.3.0"

# =============================================================================
# ARTIFACT LAYOUT (Used by: scanner, docs, audit, search, suggest)
# =============================================================================

STATE_FILE_NAME = "STATE.json"
WORKFLOW_KIND_FIELD = "skill"

# Producers disagree on the timestamp key; first hit wins
TIMESTAMP_FIELDS = ["updated", "last_updated", "updated_at", "lastUpdated"]

DOCS_DIR = ".docs"
DECISIONS_DIR = os.path.join(DOCS_DIR, "DECISIONS")
SVK_DIR = ".svk"

AUDIT_DIRS = {
    "sos": {"audit": ".audit", "history": ".audit-history", "scan_cmd": "/SOS:scan"},
    "db": {"audit": ".bulwark", "history": ".bulwark-history", "scan_cmd": "/DB:scan"},
}
DEFAULT_AUDIT_SKILL = "sos"
HISTORY_DIRS = [dirs["history"] for dirs in AUDIT_DIRS.values()]

AUDIT_FILES = {
    "report": "FINAL_REPORT.md",
    "architecture": "ARCHITECTURE.md",
    "strategies": "STRATEGIES.md",
}
FINDINGS_DIR = "findings"

# =============================================================================
# PHASE TABLES (Used by: status)
# =============================================================================

PHASE_IN_PROGRESS = "in_progress"
PHASE_COMPLETE = "complete"
PHASE_PENDING = "pending"

NOT_STARTED = "not started"
INITIALIZING = "initializing"

AUDIT_PHASES = ["scan", "analyze", "strategize", "investigate", "report", "verify"]

KNOWN_PHASES = {
    "grand-library": ["survey", "interview", "draft", "reconcile"],
    "stronghold-of-security": AUDIT_PHASES,
    "dinhs-bulwark": AUDIT_PHASES,
    "book-of-knowledge": ["scan", "analyze", "confirm", "generate", "execute", "report"],
}
KNOWN_PHASES["BOK"] = KNOWN_PHASES["book-of-knowledge"]

# =============================================================================
# SEARCH (Used by: search)
# =============================================================================

SEARCH_SCOPES = {
    "documents": [DOCS_DIR],
    "audit": [".audit", ".audit-history", ".bulwark", ".bulwark-history"],
    "decisions": [DECISIONS_DIR],
}
SEARCH_SCOPES["all"] = SEARCH_SCOPES["documents"] + SEARCH_SCOPES["audit"] + [SVK_DIR]
SCOPE_ALIASES = {"docs": "documents"}

SEARCHABLE_EXTENSIONS = (".md", ".json")
SKIP_DIRS = {".git", "node_modules"}
CONTEXT_LINES = 2
MAX_EXCERPTS_PER_FILE = 3

# =============================================================================
# SUGGESTIONS (Used by: suggest)
# =============================================================================

CODE_DIRS = ["programs", "src", "contracts", "app", "lib"]
TEST_DIRS = ["tests", "test", "__tests__"]
DEFAULT_STALE_DAYS = 7

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "info": 3}

UNRESOLVED_PATTERN = r"unresolved|open|pending|not\s+fixed"

# =============================================================================
# CONFIG LOOKUPS (read at call time so tests and launchers can override env)
# =============================================================================

PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_project_dir() -> str:
    """Project root the tools report on (SVK_PROJECT_DIR, else cwd)."""
    return os.path.abspath(os.getenv("SVK_PROJECT_DIR") or os.getcwd())


def get_knowledge_root() -> str:
    """
    Root of the bundled knowledge bases (SVK_KNOWLEDGE_ROOT, else repo root).

    The fallback only holds in a source checkout. An installed package sits in
    site-packages next to no knowledge bases, so set SVK_KNOWLEDGE_ROOT (or pass
    --knowledge-root to tools/stdio_server.py) when running the `svk-mcp`
    console script.
    """
    return os.path.abspath(os.getenv("SVK_KNOWLEDGE_ROOT") or PACKAGE_ROOT)


def get_stale_days() -> int:
    raw = os.getenv("SVK_STALE_DAYS")
    if not raw:
        return DEFAULT_STALE_DAYS
    try:
        days = int(raw)
    except ValueError:
        return DEFAULT_STALE_DAYS
    return days if days > 0 else DEFAULT_STALE_DAYS


def get_log_level() -> str:
    return os.getenv("SVK_LOG_LEVEL", "INFO").upper()
