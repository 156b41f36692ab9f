from __future__ import annotations

import argparse
import json
import os
from http.server import BaseHTTPRequestHandler
from http.server import ThreadingHTTPServer
from typing import Any

from .faults import FaultCode
from .faults import ToolFault
from .faults import invalid_argument
from .log import log
from .normalize import drain_envelope
from .normalize import fault_from_exception
from .tools import ToolDispatcher


_FAULT_STATUS = {
    FaultCode.NOT_FOUND: 404,
    FaultCode.INVALID_ARGUMENT: 400,
    FaultCode.BACKEND_ERROR: 502,
    FaultCode.INTERNAL_ERROR: 500,
}


def _allowed_origins() -> set[str] | None:
    raw = os.environ.get("OLLAMA_MCP_CORS_ORIGINS", "*")
    parts = {p.strip() for p in raw.split(",") if p.strip()}
    if not parts or "*" in parts:
        return None
    return parts


class Handler(BaseHTTPRequestHandler):
    dispatcher: ToolDispatcher | None = None
    allowed_origins: set[str] | None = None

    _MAX_BODY_BYTES = 10 * 1024 * 1024

    def _set_cors_headers(self) -> None:
        origin = self.headers.get("Origin")
        if self.allowed_origins is None:
            self.send_header("Access-Control-Allow-Origin", "*")
        elif origin and origin in self.allowed_origins:
            self.send_header("Access-Control-Allow-Origin", origin)
            self.send_header("Vary", "Origin")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")

    def _json(self, code: int, payload: dict[str, Any]) -> None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(code)
        self._set_cors_headers()
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_json(self) -> dict[str, Any]:
        length_raw = self.headers.get("Content-Length") or "0"
        try:
            length = int(length_raw)
        except ValueError as exc:
            raise invalid_argument("Invalid Content-Length header") from exc
        if length < 0 or length > self._MAX_BODY_BYTES:
            raise invalid_argument("Invalid request body size")
        raw = self.rfile.read(length) if length else b"{}"
        try:
            data = json.loads(raw.decode("utf-8", errors="replace"))
        except ValueError as exc:
            raise invalid_argument(f"Malformed JSON body: {exc}") from exc
        if not isinstance(data, dict):
            raise invalid_argument("JSON body must be an object")
        return data

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        log(f"{self.address_string()} {format % args}")

    def do_OPTIONS(self) -> None:  # noqa: N802
        self.send_response(204)
        self._set_cors_headers()
        self.end_headers()

    def do_GET(self) -> None:  # noqa: N802
        if self.path.rstrip("/") == "/healthz":
            self._json(200, {"ok": True})
            return
        self._json(404, {"ok": False, "error": {"code": FaultCode.NOT_FOUND.value, "message": "not found"}})

    def do_POST(self) -> None:  # noqa: N802
        dispatcher = self.dispatcher
        if dispatcher is None:
            self._json(500, {"ok": False, "error": {"code": FaultCode.INTERNAL_ERROR.value, "message": "server not initialized"}})
            return

        route = self.path.rstrip("/")
        if route == "/tools/list":
            self._json(200, dispatcher.list_tools())
            return
        if route != "/tools/call":
            self._json(404, {"ok": False, "error": {"code": FaultCode.NOT_FOUND.value, "message": "not found"}})
            return

        name = ""
        try:
            body = self._read_json()
            name = body.get("name")
            arguments = body.get("arguments") or {}
            if not isinstance(name, str) or not isinstance(arguments, dict):
                raise invalid_argument("Expected {name: str, arguments: object}")
            envelope = dispatcher.call_tool(name, arguments)
            content = drain_envelope(envelope, operation=name)
        except Exception as exc:
            fault = exc if isinstance(exc, ToolFault) else fault_from_exception(exc, operation=str(name or "tools/call"))
            self.log_error("error handling %s: %s", self.path, fault)
            self._json(_FAULT_STATUS[fault.code], {"ok": False, "error": fault.to_dict()})
            return
        self._json(200, {"ok": True, "result": {"content": content}})


def make_server(dispatcher: ToolDispatcher, host: str, port: int) -> ThreadingHTTPServer:
    handler = type(
        "BoundHandler",
        (Handler,),
        {"dispatcher": dispatcher, "allowed_origins": _allowed_origins()},
    )
    return ThreadingHTTPServer((host, port), handler)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="JSON bridge: POST /tools/list and /tools/call.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    from .app import build_dispatcher

    httpd = make_server(build_dispatcher(), args.host, args.port)
    log(f"listening: http://{args.host}:{args.port}")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        log("interrupted, shutting down")
    finally:
        httpd.server_close()


if __name__ == "__main__":
    main()
