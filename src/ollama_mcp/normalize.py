from __future__ import annotations

import subprocess
from typing import Any

import jsonschema
import requests

from .faults import ToolFault
from .faults import backend_error
from .faults import internal_error
from .faults import invalid_argument
from .models import BackendResult
from .models import BufferedResult
from .models import Envelope
from .models import StreamBlock
from .models import StreamedResult
from .models import TextBlock


def to_envelope(result: BackendResult) -> Envelope:
    if isinstance(result, BufferedResult):
        return Envelope(content=[TextBlock(text=result.text)])
    if isinstance(result, StreamedResult):
        # the iterator is handed over as-is; whoever consumes the envelope drains it
        return Envelope(content=[StreamBlock(stream=result.fragments)])
    raise internal_error(f"Unsupported backend result: {type(result).__name__}")


def fault_from_exception(exc: BaseException, *, operation: str) -> ToolFault:
    if isinstance(exc, ToolFault):
        return exc
    if isinstance(exc, requests.Timeout):
        return backend_error(f"Ollama API request timed out: {exc}", reason="timeout")
    if isinstance(exc, requests.RequestException):
        return backend_error(f"Ollama API error: {exc}")
    if isinstance(exc, subprocess.SubprocessError):
        return backend_error(f"Failed to execute {operation}: {exc}")
    if isinstance(exc, OSError):
        return backend_error(f"Failed to execute {operation}: {exc}")
    if isinstance(exc, jsonschema.ValidationError):
        return invalid_argument(f"Invalid arguments for {operation}: {exc.message}")
    return internal_error(f"Error executing {operation}: {exc}")


def drain_envelope(envelope: Envelope, *, operation: str = "tool") -> list[dict[str, Any]]:
    """Render an envelope as MCP content dicts, consuming any stream blocks.

    Stream fragments are pulled one at a time and joined into a single text
    block. A failure while pulling surfaces as a ``ToolFault`` and nothing is
    returned, so callers never see a partially rendered envelope.
    """
    rendered: list[dict[str, Any]] = []
    for block in envelope.content:
        if isinstance(block, TextBlock):
            rendered.append({"type": "text", "text": block.text})
            continue
        parts: list[str] = []
        try:
            for fragment in block.stream:
                parts.append(fragment)
        except ToolFault:
            raise
        except Exception as exc:
            raise fault_from_exception(exc, operation=operation) from exc
        rendered.append({"type": "text", "text": "".join(parts)})
    return rendered
