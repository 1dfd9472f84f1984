#!/usr/bin/env python3
"""
SVK SessionStart hook.

Scans for active SVK skill state and prints a SessionStart hook payload
carrying the status summary as additionalContext. If no SVK state exists,
prints nothing (zero context cost).

Usage:
    python tools/session_start.py [--project-dir DIR]

Project dir defaults to CLAUDE_PROJECT_DIR, then SVK_PROJECT_DIR, then cwd.
"""

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from svk_mcp.status import project_status


def build_hook_payload(project_dir: str):
    """Returns the hook payload dict, or None when there is nothing to report."""
    status = project_status(project_dir)
    if not status["workflows"] and status["archived_run_count"] == 0:
        return None

    context = "SVK project state:\n" + status["summary"]
    context += "\n\nUse the svk_* MCP tools for details (svk_project_status, svk_suggest)."
    return {
        "hookSpecificOutput": {
            "hookEventName": "SessionStart",
            "additionalContext": context,
        }
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="SVK SessionStart hook")
    parser.add_argument("--project-dir", dest="project_dir")
    args = parser.parse_args(argv)

    project_dir = (
        args.project_dir
        or os.getenv("CLAUDE_PROJECT_DIR")
        or os.getenv("SVK_PROJECT_DIR")
        or os.getcwd()
    )

    payload = build_hook_payload(os.path.abspath(project_dir))
    if payload is not None:
        print(json.dumps(payload))
    return 0


if __name__ == "__main__":
    sys.exit(main())
