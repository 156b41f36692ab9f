from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import threading
import time

from .clients.ollama_http import OllamaHTTPClient
from .faults import backend_error
from .models import BufferedResult
from .models import ChatCompletion
from .models import ChatCompletionArgs
from .models import ChatMessage
from .models import GenerateRequest


_ROLE_LABELS = {"system": "System", "user": "User", "assistant": "Assistant"}

_id_lock = threading.Lock()
_last_id_ms = 0


def next_completion_id() -> str:
    """``chatcmpl-<ms>``, strictly increasing within this process."""
    global _last_id_ms
    with _id_lock:
        now_ms = time.time_ns() // 1_000_000
        _last_id_ms = max(now_ms, _last_id_ms + 1)
        return f"chatcmpl-{_last_id_ms}"


def flatten_messages(messages: Iterable[ChatMessage]) -> str:
    parts: list[str] = []
    for msg in messages:
        label = _ROLE_LABELS.get(msg.role)
        if label is None:
            continue
        parts.append(f"{label}: {msg.content}\n")
    return "".join(parts)


@dataclass(frozen=True)
class ChatCompletionAdapter:
    http: OllamaHTTPClient

    def complete(self, args: ChatCompletionArgs) -> ChatCompletion:
        request = GenerateRequest(
            model=args.model,
            prompt=flatten_messages(args.messages),
            stream=False,
            raw=True,
            temperature=args.temperature,
            num_predict=args.max_tokens,
            timeout_ms=args.timeout_ms,
        )
        result = self.http.execute(request)
        if not isinstance(result, BufferedResult):
            raise backend_error("Ollama API returned a stream for a non-streaming request")

        # length-truncated completions are reported as "stop" too
        return ChatCompletion(
            id=next_completion_id(),
            created=int(time.time()),
            model=args.model,
            content=result.text,
            finish_reason="stop",
        )
