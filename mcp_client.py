# ---------------------------------------------------------
# COMPONENT: CLIENT (dev:svk_client)
# FILE: mcp_client.py
# MAPPING: MCP Protocol Bridge to svk_mcp.server
# EXPORTS: run_tool
# CONSUMES: svk_mcp.server (via stdio)
# ---------------------------------------------------------
import sys
import asyncio
import base64
import json
import os
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client


async def run_tool(tool_name, arguments):
    """Spawn the SVK server over stdio, call one tool, return its text payload."""
    # Pass current environment so SVK_PROJECT_DIR / SVK_KNOWLEDGE_ROOT are inherited
    server_params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "svk_mcp.server"],
        env=dict(os.environ),
    )

    async with stdio_client(server_params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            result = await session.call_tool(tool_name, arguments)

            if result.content:
                # Tools return a single JSON text block
                return result.content[0].text
            return ""


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python mcp_client.py <tool_name> [json_arguments] [--base64]")
        sys.exit(1)

    tool_name = sys.argv[1]
    arg_str = sys.argv[2] if len(sys.argv) > 2 else "{}"

    if len(sys.argv) > 3 and sys.argv[3] == "--base64":
        try:
            arg_str = base64.b64decode(arg_str).decode('utf-8')
        except Exception as e:
            print(f"Error decoding Base64: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        arguments = json.loads(arg_str)
    except json.JSONDecodeError:
        print(f"Error: Invalid JSON arguments: {arg_str}", file=sys.stderr)
        sys.exit(1)

    try:
        print(asyncio.run(run_tool(tool_name, arguments)))
    except Exception as e:
        # stderr so it doesn't pollute captured stdout
        print(f"Error running tool: {e}", file=sys.stderr)
        sys.exit(1)
