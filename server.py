from typing import List
import logging

from sanitize import sanitize_output
from mcp.server import Server, InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools_read import k8s_uninject
from gate import GateError

logger = logging.getLogger("mcp-k8s-uninject")

server = Server("mcp-k8s-uninject")


@server.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(
            name="k8s_uninject",
            description=(
                "Fetch one namespaced workload and return its manifest with the injected proxy "
                "sidecar, proxy-init container, identity volume and marker annotations/labels removed "
                "(read-only, nothing is applied)"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "namespace": {"type": "string"},
                    "name": {"type": "string"},
                    "group": {"type": "string"},
                    "version": {"type": "string"},
                    "plural": {"type": "string"},
                    "kind": {"type": "string"},
                },
                "required": ["namespace", "name", "group", "version", "plural"],
                "additionalProperties": False,
            },
        ),
    ]


async def _safe_call(coro):
    try:
        return await coro
    except GateError as e:
        return f"BLOCKED: {e}"
    except Exception as e:
        logger.exception("tool call failed")
        return f"ERROR: {type(e).__name__}: {e}"


@server.call_tool()
async def call_tool(name: str, arguments: dict):
    if name == "k8s_uninject":
        raw = await _safe_call(k8s_uninject(arguments))
    else:
        raise ValueError(f"Unknown tool: {name}")

    safe = sanitize_output(tool_name=name, raw=raw)
    return [TextContent(type="text", text=safe)]


if __name__ == "__main__":
    import asyncio
    from mcp.types import ServerCapabilities

    logging.basicConfig(level=logging.INFO)

    async def main():
        logger.info("mcp-k8s-uninject started | read-only uninject, sanitized outputs")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream=read_stream,
                write_stream=write_stream,
                initialization_options=InitializationOptions(
                    server_name="mcp-k8s-uninject",
                    server_version="0.1.0",
                    capabilities=ServerCapabilities(tools={}),
                ),
            )

    asyncio.run(main())
