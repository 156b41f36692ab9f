from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union


# Typed arguments, one variant per operation.


@dataclass(frozen=True)
class ServeArgs:
    pass


@dataclass(frozen=True)
class CreateArgs:
    name: str
    modelfile: str


@dataclass(frozen=True)
class ShowArgs:
    name: str
    show_flag: str | None = None  # license | modelfile | parameters | system | template
    verbose: bool = False


@dataclass(frozen=True)
class RunArgs:
    name: str
    prompt: str
    timeout_ms: int | None = None
    temperature: float | None = None
    num_predict: int | None = None  # -1 = unbounded
    think: bool | None = None
    stream: bool = True


@dataclass(frozen=True)
class PullArgs:
    name: str


@dataclass(frozen=True)
class PushArgs:
    name: str


@dataclass(frozen=True)
class ListArgs:
    pass


@dataclass(frozen=True)
class CopyArgs:
    source: str
    destination: str


@dataclass(frozen=True)
class RemoveArgs:
    name: str


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class ChatCompletionArgs:
    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float | None = None
    timeout_ms: int | None = None
    max_tokens: int | None = None


ToolArgs = Union[
    ServeArgs,
    CreateArgs,
    ShowArgs,
    RunArgs,
    PullArgs,
    PushArgs,
    ListArgs,
    CopyArgs,
    RemoveArgs,
    ChatCompletionArgs,
]


# Backend requests.


@dataclass(frozen=True)
class CommandRequest:
    subcommand: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerateRequest:
    model: str
    prompt: str
    stream: bool = False
    raw: bool = False
    temperature: float | None = None
    num_predict: int | None = None
    think: bool | None = None
    timeout_ms: int | None = None


# Backend results.


@dataclass(frozen=True)
class BufferedResult:
    text: str


@dataclass(frozen=True)
class StreamedResult:
    """Lazy, single-pass text fragments. Iterating twice yields nothing new."""

    fragments: Iterator[str]


BackendResult = Union[BufferedResult, StreamedResult]


# Envelope.


@dataclass(frozen=True)
class TextBlock:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class StreamBlock:
    stream: Iterator[str]
    type: str = "stream"


ContentBlock = Union[TextBlock, StreamBlock]


@dataclass(frozen=True)
class Envelope:
    content: list[ContentBlock] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [b.text for b in self.content if isinstance(b, TextBlock)]


# Chat completion.


@dataclass(frozen=True)
class ChatCompletion:
    id: str
    created: int
    model: str
    content: str
    finish_reason: str = "stop"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": "chat.completion",
            "created": self.created,
            "model": self.model,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": self.content},
                    "finish_reason": self.finish_reason,
                }
            ],
        }
