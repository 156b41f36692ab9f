from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
import os

import uvicorn
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from .app import build_dispatcher
from .config import load_config
from .log import log
from .mcp_server import build_server
from .tools import ToolDispatcher


class _SessionEndpoint:
    # Route only treats non-function endpoints as raw ASGI apps.
    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


def build_app(
    dispatcher: ToolDispatcher,
    *,
    path: str = "/mcp",
    json_response: bool = False,
    stateless: bool = False,
) -> Starlette:
    manager = StreamableHTTPSessionManager(
        app=build_server(dispatcher, name="ollama-mcp (streamable HTTP)"),
        json_response=json_response,
        stateless=stateless,
    )

    @asynccontextmanager
    async def lifespan(_: Starlette):
        # the manager's task group hosts one MCP session per client (or per request when stateless)
        async with manager.run():
            log(f"streamable HTTP sessions open (stateless={stateless}, json_response={json_response})")
            yield
        log("streamable HTTP sessions closed")

    if not path.startswith("/"):
        path = "/" + path
    return Starlette(routes=[Route(path, _SessionEndpoint(manager))], lifespan=lifespan)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Expose a local Ollama runtime as MCP tools over streamable HTTP.")
    parser.add_argument("--host", default=os.environ.get("MCP_HTTP_HOST") or "127.0.0.1")
    parser.add_argument("--port", type=int, default=int(os.environ.get("MCP_HTTP_PORT") or "18080"))
    parser.add_argument("--path", default=os.environ.get("MCP_HTTP_PATH") or "/mcp")
    parser.add_argument("--json-response", action="store_true", help="Answer each POST with one JSON body, no SSE.")
    parser.add_argument("--stateless", action="store_true", help="Serve every request with a fresh MCP session.")
    args = parser.parse_args(argv)

    cfg = load_config()
    app = build_app(
        build_dispatcher(cfg),
        path=str(args.path),
        json_response=bool(args.json_response),
        stateless=bool(args.stateless),
    )
    log(f"ollama-mcp listening: http://{args.host}:{args.port}{args.path} (OLLAMA_HOST={cfg.ollama_host})")
    uvicorn.run(app, host=str(args.host), port=int(args.port), log_level="info")


if __name__ == "__main__":
    main()
