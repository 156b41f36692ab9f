from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Protocol

from .catalog import parse_arguments
from .catalog import tool_definitions
from .chat import ChatCompletionAdapter
from .faults import ToolFault
from .faults import internal_error
from .log import log
from .models import BackendResult
from .models import BufferedResult
from .models import ChatCompletionArgs
from .models import CommandRequest
from .models import CopyArgs
from .models import CreateArgs
from .models import Envelope
from .models import GenerateRequest
from .models import ListArgs
from .models import PullArgs
from .models import PushArgs
from .models import RemoveArgs
from .models import RunArgs
from .models import ServeArgs
from .models import ShowArgs
from .models import ToolArgs
from .normalize import fault_from_exception
from .normalize import to_envelope


class Backend(Protocol):
    def execute(self, request: Any) -> BackendResult: ...


def command_for(args: ToolArgs) -> CommandRequest | None:
    if isinstance(args, ServeArgs):
        return CommandRequest("serve")
    if isinstance(args, CreateArgs):
        return CommandRequest("create", (args.name, "-f", args.modelfile))
    if isinstance(args, ShowArgs):
        extra: list[str] = []
        if args.show_flag:
            extra.append(f"--{args.show_flag}")
        if args.verbose:
            extra.append("--verbose")
        return CommandRequest("show", (args.name, *extra))
    if isinstance(args, PullArgs):
        return CommandRequest("pull", (args.name,))
    if isinstance(args, PushArgs):
        return CommandRequest("push", (args.name,))
    if isinstance(args, ListArgs):
        return CommandRequest("list")
    if isinstance(args, CopyArgs):
        return CommandRequest("cp", (args.source, args.destination))
    if isinstance(args, RemoveArgs):
        return CommandRequest("rm", (args.name,))
    return None


def generate_request_for(args: RunArgs) -> GenerateRequest:
    return GenerateRequest(
        model=args.name,
        prompt=args.prompt,
        stream=args.stream,
        temperature=args.temperature,
        num_predict=args.num_predict,
        think=args.think,
        timeout_ms=args.timeout_ms,
    )


@dataclass(frozen=True)
class ToolDispatcher:
    cli: Backend
    http: Backend
    chat: ChatCompletionAdapter

    def list_tools(self) -> dict[str, Any]:
        return {"tools": tool_definitions()}

    def call_tool(self, name: str, arguments: dict[str, Any] | None) -> Envelope:
        try:
            args = parse_arguments(name, arguments)
            log(f"tool call: {name}")
            return to_envelope(self._execute(args))
        except ToolFault as fault:
            log(f"tool {name} failed: {fault}")
            raise
        except Exception as exc:
            fault = fault_from_exception(exc, operation=name)
            log(f"tool {name} failed: {fault}")
            raise fault from exc

    def _execute(self, args: ToolArgs) -> BackendResult:
        command = command_for(args)
        if command is not None:
            return self.cli.execute(command)
        if isinstance(args, RunArgs):
            return self.http.execute(generate_request_for(args))
        if isinstance(args, ChatCompletionArgs):
            completion = self.chat.complete(args)
            return BufferedResult(text=json.dumps(completion.to_dict(), ensure_ascii=False, indent=2))
        raise internal_error(f"No backend route for {type(args).__name__}")
