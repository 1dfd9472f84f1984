"""
Search Engine
=============
Full-text search across SVK artifacts.

Plain case-sensitive substring matching over whole files. No ranking, no
fuzziness: the artifact volume is small and results must be reproducible.
"""

import logging
import os
from typing import List, Optional

from .constants import (
    CONTEXT_LINES,
    MAX_EXCERPTS_PER_FILE,
    SCOPE_ALIASES,
    SEARCH_SCOPES,
    SEARCHABLE_EXTENSIONS,
    SKIP_DIRS,
)
from .errors import EmptyQueryError, UnknownScopeError

logger = logging.getLogger("SvkSearch")


def resolve_scope(scope: Optional[str]) -> str:
    scope = scope or "all"
    scope = SCOPE_ALIASES.get(scope, scope)
    if scope not in SEARCH_SCOPES:
        raise UnknownScopeError(
            f'Unknown scope "{scope}". Valid: {", ".join(SEARCH_SCOPES)}.',
            valid=list(SEARCH_SCOPES),
        )
    return scope


def collect_files(root: str) -> List[str]:
    """Recursively collect .md and .json files under root (missing root -> [])."""
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for name in sorted(filenames):
            if name.endswith(SEARCHABLE_EXTENSIONS):
                files.append(os.path.join(dirpath, name))
    return files


def search_content(content: str, query: str, max_excerpts: int = MAX_EXCERPTS_PER_FILE) -> List[dict]:
    """
    Return up to max_excerpts hits, each with the line and surrounding context.

    The query is matched against the whole content, so it may span lines.
    `line` is where the match starts; `text` covers every line it touches.
    """
    if query not in content:
        return []

    lines = content.split("\n")
    matches = []
    last_line = -1
    idx = content.find(query)

    while idx != -1 and len(matches) < max_excerpts:
        first = content.count("\n", 0, idx)
        last = first + query.count("\n")
        # One hit per starting line
        if first != last_line:
            start = max(0, first - CONTEXT_LINES)
            end = min(len(lines), last + CONTEXT_LINES + 1)
            matches.append({
                "line": first + 1,
                "text": "\n".join(lines[first:last + 1]),
                "excerpt": "\n".join(lines[start:end]),
            })
            last_line = first
        idx = content.find(query, idx + 1)

    return matches


def search_artifacts(project_dir: str, query: str, scope: Optional[str] = None) -> dict:
    """
    Search artifacts in scope for query.

    Args:
        query: Literal, case-sensitive search string (must be non-blank)
        scope: "documents" | "audit" | "decisions" | "all" (default)

    Returns:
        {"query", "scope", "files_searched", "total_files_matched", "results": [{"file", "matches"}]}
    """
    if query is None or not query.strip():
        raise EmptyQueryError("Search query is required.")

    scope = resolve_scope(scope)

    all_files = []
    seen = set()
    for rel_dir in SEARCH_SCOPES[scope]:
        for path in collect_files(os.path.join(project_dir, rel_dir)):
            if path not in seen:
                seen.add(path)
                all_files.append(path)
    all_files.sort()

    results = []
    for file_path in all_files:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except (FileNotFoundError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable artifact {file_path}: {e}")
            continue

        matches = search_content(content, query)
        if matches:
            results.append({
                "file": os.path.relpath(file_path, project_dir).replace(os.sep, "/"),
                "matches": matches,
            })

    return {
        "query": query,
        "scope": scope,
        "files_searched": len(all_files),
        "total_files_matched": len(results),
        "results": results,
    }
