# ---------------------------------------------------------
# COMPONENT: TOOL SERVER (MCP stdio)
# FILE: tools/stdio_server.py
# PURPOSE: Expose svk_mcp tools over stdio for MCP clients (.mcp.json entries)
# ---------------------------------------------------------
import argparse
import os
import sys
import asyncio

# Add parent directory to path so we can import svk_mcp
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def apply_overrides(project_dir: str | None, knowledge_root: str | None):
    """CLI flags win over inherited SVK_* env vars."""
    if project_dir:
        os.environ["SVK_PROJECT_DIR"] = os.path.abspath(project_dir)
    if knowledge_root:
        os.environ["SVK_KNOWLEDGE_ROOT"] = os.path.abspath(knowledge_root)


def load_server():
    # Import after env is ready; importing registers every tool on the instance
    from svk_mcp import server
    return server.mcp


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="SVK MCP stdio tool server")
    parser.add_argument(
        "--project-dir",
        dest="project_dir",
        help="Project to inspect (defaults to SVK_PROJECT_DIR or the current directory)",
    )
    parser.add_argument(
        "--knowledge-root",
        dest="knowledge_root",
        help="Root of bundled knowledge bases (defaults to SVK_KNOWLEDGE_ROOT or the repo root; "
             "required when running from an installed package rather than a checkout)",
    )
    return parser.parse_args(argv)


async def run_server(argv=None):
    args = parse_args(argv)
    apply_overrides(args.project_dir, args.knowledge_root)

    server = load_server()
    await server.run_stdio_async()


def main():
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
