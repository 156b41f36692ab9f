from __future__ import annotations

import argparse
import functools
from typing import Any

import anyio
from anyio import to_thread
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from .app import build_dispatcher
from .config import load_config
from .faults import ToolFault
from .log import log
from .normalize import drain_envelope
from .normalize import fault_from_exception
from .tools import ToolDispatcher


def _fault_result(fault: ToolFault) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=str(fault))],
        structuredContent=fault.to_dict(),
        isError=True,
    )


def _tools(dispatcher: ToolDispatcher) -> list[Tool]:
    return [
        Tool(name=item["name"], description=item.get("description"), inputSchema=item["inputSchema"])
        for item in dispatcher.list_tools()["tools"]
    ]


async def call_tool_result(dispatcher: ToolDispatcher, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
    # Blocking backend work runs in worker threads so other calls keep being served.
    try:
        envelope = await to_thread.run_sync(dispatcher.call_tool, name, arguments or {})
        content = await to_thread.run_sync(functools.partial(drain_envelope, envelope, operation=name))
    except ToolFault as fault:
        return _fault_result(fault)
    except Exception as exc:
        return _fault_result(fault_from_exception(exc, operation=name))
    return CallToolResult(content=[TextContent(type="text", text=block["text"]) for block in content])


def build_server(dispatcher: ToolDispatcher, *, name: str = "ollama-mcp") -> Server:
    server = Server(name)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return _tools(dispatcher)

    # The dispatcher validates arguments itself so failures keep their fault code.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        return await call_tool_result(dispatcher, name, arguments)

    return server


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Expose a local Ollama runtime as MCP tools over stdio.")
    parser.parse_args(argv)

    cfg = load_config()
    server = build_server(build_dispatcher(cfg))
    log(f"ollama-mcp running on stdio (OLLAMA_HOST={cfg.ollama_host})")
    try:
        anyio.run(serve_stdio, server)
    except KeyboardInterrupt:
        log("interrupted, stdio transport closed")


if __name__ == "__main__":
    main()
