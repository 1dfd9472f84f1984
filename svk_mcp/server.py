"""
SVK MCP Server
==============
Exposes SVK artifacts as queryable MCP tools.
SVK provides knowledge, not control: every tool is read-only.

Tools:
- svk_project_status(): Status of every workflow with a state file
- svk_get_doc(): One GL document, or the catalog
- svk_get_decisions(): Architectural decision records
- svk_get_audit(): SOS / DB audit reports and findings
- svk_search(): Full-text search across artifacts
- svk_suggest(): What to run next
- svk_list_knowledge(): Knowledge base catalog
- svk_read_knowledge(): One knowledge file

Run: python -m svk_mcp.server
"""

import asyncio
import json
import logging
import time
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .audit import get_audit
from .constants import SERVER_NAME, SERVER_VERSION, get_log_level, get_project_dir
from .docs import get_decisions, get_document
from .errors import InvalidArgumentError
from .knowledge import list_knowledge, read_knowledge
from .search import search_artifacts
from .status import project_status
from .suggest import suggest_next_actions

# stderr only: stdout is reserved for the MCP protocol
logging.basicConfig(level=get_log_level(), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
server_logger = logging.getLogger("SvkServer")

mcp = FastMCP(SERVER_NAME)


def _respond(payload: dict) -> str:
    return json.dumps({"status": "OK", **payload}, indent=2)


async def _call(tool_name: str, handler, *args, **kwargs) -> str:
    """
    Run a blocking handler off the event loop and wrap its result.

    InvalidArgumentError -> {"status": "ERROR"} with details (caller mistake).
    Any other exception -> generic {"status": "ERROR"} after logging.
    """
    started = time.time()
    try:
        result = await asyncio.to_thread(handler, *args, **kwargs)
    except InvalidArgumentError as e:
        server_logger.warning(f"{tool_name} rejected: {e}")
        return json.dumps({"status": "ERROR", "error": str(e), **e.details}, indent=2)
    except Exception as e:
        server_logger.error(f"{tool_name} failed: {e}")
        return json.dumps({"status": "ERROR", "error": f"{type(e).__name__}: {e}"}, indent=2)

    server_logger.debug(f"{tool_name} completed in {time.time() - started:.3f}s")
    return _respond(result)


@mcp.tool()
async def svk_project_status() -> str:
    """
    Returns current state of all active SVK skills (audit progress, doc generation
    status, next steps). Use this to understand what SVK work has been done or is
    in progress.
    """
    return await _call("svk_project_status", project_status, get_project_dir())


@mcp.tool()
async def svk_get_doc(name: Optional[str] = None) -> str:
    """
    Retrieve a GL-generated document by name, or list all available docs.

    Args:
        name: Document name or partial match (e.g., 'architecture', 'data-model').
              Omit to list all.
    """
    return await _call("svk_get_doc", get_document, get_project_dir(), name)


@mcp.tool()
async def svk_get_decisions(topic: Optional[str] = None) -> str:
    """
    Retrieve architectural decisions captured during GL interview.

    Args:
        topic: Filter by topic (e.g., 'staking', 'auth', 'token'). Omit for all.
    """
    return await _call("svk_get_decisions", get_decisions, get_project_dir(), topic)


@mcp.tool()
async def svk_get_audit(
    type: Optional[str] = None,
    subsystem: Optional[str] = None,
    severity: Optional[str] = None,
    audit: Optional[str] = None,
    skill: Optional[str] = None,
) -> str:
    """
    Retrieve audit findings, reports, architecture docs, or strategies.

    Args:
        type: 'report' (default), 'findings', 'architecture' or 'strategies'
        subsystem: Filter findings by subsystem (e.g., 'tax-program', 'staking')
        severity: Filter findings by severity (e.g., 'critical', 'high')
        audit: 'current' (default), 'previous', or a project-relative archive path
        skill: 'sos' (default) or 'db'
    """
    return await _call(
        "svk_get_audit", get_audit, get_project_dir(),
        type=type, subsystem=subsystem, severity=severity, audit=audit, skill=skill,
    )


@mcp.tool()
async def svk_search(query: str, scope: Optional[str] = None) -> str:
    """
    Full-text search across SVK artifacts: docs, audit findings, decisions.
    Matching is a case-sensitive substring match.

    Args:
        query: Search string.
        scope: 'documents', 'audit', 'decisions' or 'all' (default).
    """
    return await _call("svk_search", search_artifacts, get_project_dir(), query, scope)


@mcp.tool()
async def svk_suggest() -> str:
    """
    Analyze current project state and suggest which SVK skills would be most
    valuable to run next.
    """
    return await _call("svk_suggest", suggest_next_actions, get_project_dir())


@mcp.tool()
async def svk_list_knowledge(skill: Optional[str] = None) -> str:
    """
    List available SVK knowledge bases. Returns metadata and structure, not file
    content.

    Args:
        skill: 'stronghold-of-security', 'grand-library', 'dinhs-bulwark' or 'svk'.
               Omit to see all.
    """
    return await _call("svk_list_knowledge", list_knowledge, skill)


@mcp.tool()
async def svk_read_knowledge(skill: str, path: Optional[str] = None) -> str:
    """
    Read a specific SVK knowledge file. Use svk_list_knowledge first to discover
    available files.

    Args:
        skill: Knowledge base to read from.
        path: Relative path within the knowledge base
              (e.g., 'patterns/cpi/EP-042-arbitrary-cpi-program-substitution.md').
              Omit to get the primary index.
    """
    return await _call("svk_read_knowledge", read_knowledge, skill, path)


def main():
    server_logger.info(f"SVK MCP server v{SERVER_VERSION} running on stdio (project: {get_project_dir()})")
    mcp.run()


if __name__ == "__main__":
    main()
