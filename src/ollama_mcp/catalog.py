"""Operation catalog: the tools advertised to clients and their closed input schemas.

Each schema is the same object advertised through ``tools/list`` and checked by
``parse_arguments``, which turns a raw argument bag into the typed dataclass the
dispatcher routes on.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from .faults import invalid_argument
from .faults import not_found
from .models import ChatCompletionArgs
from .models import ChatMessage
from .models import CopyArgs
from .models import CreateArgs
from .models import ListArgs
from .models import PullArgs
from .models import PushArgs
from .models import RemoveArgs
from .models import RunArgs
from .models import ServeArgs
from .models import ShowArgs
from .models import ToolArgs


# Registry-style names ("library/llama3:8b", "hf.co/org/repo:Q4_K_M"); never a flag.
MODEL_NAME_PATTERN = r"^[A-Za-z0-9_][A-Za-z0-9_.:/@+-]*$"
SHOW_FLAGS = ["license", "modelfile", "parameters", "system", "template"]
CHAT_ROLES = ["system", "user", "assistant"]


def _model_name(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description, "pattern": MODEL_NAME_PATTERN}


def _timeout() -> dict[str, Any]:
    return {"type": "number", "description": "Timeout in milliseconds (default: 60000)", "minimum": 1000}


def _temperature() -> dict[str, Any]:
    return {"type": "number", "description": "Sampling temperature (0-2)", "minimum": 0, "maximum": 2}


def _length_cap(description: str) -> dict[str, Any]:
    return {"type": "integer", "description": description, "minimum": -1}


def _object(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties, "additionalProperties": False}
    if required:
        schema["required"] = required
    return schema


def _opt_int(value: object | None) -> int | None:
    return int(value) if value is not None else None


def _opt_float(value: object | None) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    description: str
    input_schema: dict[str, Any]
    build: Callable[[dict[str, Any]], ToolArgs]

    def definition(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


def _build_chat(args: dict[str, Any]) -> ChatCompletionArgs:
    messages = tuple(ChatMessage(role=str(m["role"]), content=str(m["content"])) for m in args["messages"])
    return ChatCompletionArgs(
        model=args["model"],
        messages=messages,
        temperature=_opt_float(args.get("temperature")),
        timeout_ms=_opt_int(args.get("timeout")),
        max_tokens=_opt_int(args.get("max_tokens")),
    )


def _build_run(args: dict[str, Any]) -> RunArgs:
    return RunArgs(
        name=args["name"],
        prompt=args["prompt"],
        timeout_ms=_opt_int(args.get("timeout")),
        temperature=_opt_float(args.get("temperature")),
        num_predict=_opt_int(args.get("num_predict")),
        think=args.get("think"),
        stream=bool(args.get("stream", True)),
    )


OPERATIONS: tuple[OperationDescriptor, ...] = (
    OperationDescriptor(
        name="serve",
        description="Start Ollama server",
        input_schema=_object({}),
        build=lambda args: ServeArgs(),
    ),
    OperationDescriptor(
        name="create",
        description="Create a model from a Modelfile",
        input_schema=_object(
            {
                "name": _model_name("Name for the model"),
                "modelfile": {"type": "string", "description": "Path to Modelfile", "minLength": 1, "pattern": "^[^-]"},
            },
            ["name", "modelfile"],
        ),
        build=lambda args: CreateArgs(name=args["name"], modelfile=args["modelfile"]),
    ),
    OperationDescriptor(
        name="show",
        description="Show information for a model",
        input_schema=_object(
            {
                "name": _model_name("Name of the model"),
                "show_flag": {
                    "type": "string",
                    "description": "Flag to show specific information (license, modelfile, parameters, system, template)",
                    "enum": SHOW_FLAGS,
                },
                "verbose": {"type": "boolean", "description": "Show detailed model information"},
            },
            ["name"],
        ),
        build=lambda args: ShowArgs(
            name=args["name"],
            show_flag=args.get("show_flag"),
            verbose=bool(args.get("verbose", False)),
        ),
    ),
    OperationDescriptor(
        name="run",
        description="Run a model",
        input_schema=_object(
            {
                "name": _model_name("Name of the model"),
                "prompt": {"type": "string", "description": "Prompt to send to the model"},
                "timeout": _timeout(),
                "temperature": _temperature(),
                "num_predict": _length_cap("Maximum tokens to generate (-1 = until the context is exhausted)"),
                "think": {"type": "boolean", "description": "Enable thinking output for models that support it"},
                "stream": {"type": "boolean", "description": "Stream the response as it is generated (default: true)"},
            },
            ["name", "prompt"],
        ),
        build=_build_run,
    ),
    OperationDescriptor(
        name="pull",
        description="Pull a model from a registry",
        input_schema=_object({"name": _model_name("Name of the model to pull")}, ["name"]),
        build=lambda args: PullArgs(name=args["name"]),
    ),
    OperationDescriptor(
        name="push",
        description="Push a model to a registry",
        input_schema=_object({"name": _model_name("Name of the model to push")}, ["name"]),
        build=lambda args: PushArgs(name=args["name"]),
    ),
    OperationDescriptor(
        name="list",
        description="List models",
        input_schema=_object({}),
        build=lambda args: ListArgs(),
    ),
    OperationDescriptor(
        name="cp",
        description="Copy a model",
        input_schema=_object(
            {
                "source": _model_name("Source model name"),
                "destination": _model_name("Destination model name"),
            },
            ["source", "destination"],
        ),
        build=lambda args: CopyArgs(source=args["source"], destination=args["destination"]),
    ),
    OperationDescriptor(
        name="rm",
        description="Remove a model",
        input_schema=_object({"name": _model_name("Name of the model to remove")}, ["name"]),
        build=lambda args: RemoveArgs(name=args["name"]),
    ),
    OperationDescriptor(
        name="chat_completion",
        description="OpenAI-compatible chat completion API",
        input_schema=_object(
            {
                "model": _model_name("Name of the Ollama model to use"),
                "messages": {
                    "type": "array",
                    "items": _object(
                        {
                            "role": {"type": "string", "enum": CHAT_ROLES},
                            "content": {"type": "string"},
                        },
                        ["role", "content"],
                    ),
                    "description": "Array of messages in the conversation",
                },
                "temperature": _temperature(),
                "timeout": _timeout(),
                "max_tokens": _length_cap("Maximum tokens to generate (-1 = until the context is exhausted)"),
            },
            ["model", "messages"],
        ),
        build=_build_chat,
    ),
)

_BY_NAME: dict[str, OperationDescriptor] = {op.name: op for op in OPERATIONS}
_VALIDATORS: dict[str, Draft202012Validator] = {op.name: Draft202012Validator(op.input_schema) for op in OPERATIONS}


def tool_definitions() -> list[dict[str, Any]]:
    return [op.definition() for op in OPERATIONS]


def get_operation(name: str) -> OperationDescriptor:
    op = _BY_NAME.get(name)
    if op is None:
        raise not_found(f"Unknown tool: {name}")
    return op


def parse_arguments(name: str, arguments: object | None) -> ToolArgs:
    op = get_operation(name)
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise invalid_argument(f"Arguments for {name} must be an object")

    error = best_match(_VALIDATORS[name].iter_errors(arguments))
    if error is not None:
        where = ".".join(str(p) for p in error.absolute_path)
        prefix = f"{where}: " if where else ""
        raise invalid_argument(f"Invalid arguments for {name}: {prefix}{error.message}")
    return op.build(arguments)
