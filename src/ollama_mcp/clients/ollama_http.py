from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import json
from typing import Any

import requests
from urllib3.exceptions import ReadTimeoutError

from ..config import DEFAULT_OLLAMA_HOST
from ..config import DEFAULT_TIMEOUT_MS
from ..faults import ToolFault
from ..faults import backend_error
from ..models import BackendResult
from ..models import BufferedResult
from ..models import GenerateRequest
from ..models import StreamedResult


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    text = (response.text or "").strip()
    return text[:2000] or f"HTTP {response.status_code} {response.reason or ''}".strip()


def _is_timeout(exc: requests.RequestException) -> bool:
    if isinstance(exc, requests.Timeout):
        return True
    # requests re-raises body read timeouts as ConnectionError(ReadTimeoutError)
    return isinstance(exc, requests.ConnectionError) and any(isinstance(arg, ReadTimeoutError) for arg in exc.args)


def request_fault(exc: requests.RequestException, *, url: str, timeout_ms: int) -> ToolFault:
    if _is_timeout(exc):
        return backend_error(
            f"Ollama API request timed out after {timeout_ms} ms (the model may still be loading): {exc}",
            reason="timeout",
        )
    if isinstance(exc, requests.ConnectionError):
        return backend_error(f"Ollama API unreachable at {url}: {exc}", reason="connection")
    return backend_error(f"Ollama API error: {exc}")


@dataclass(frozen=True)
class OllamaHTTPClient:
    base_url: str = DEFAULT_OLLAMA_HOST
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS

    @property
    def generate_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/generate"

    def payload(self, request: GenerateRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": bool(request.stream),
        }
        if request.raw:
            body["raw"] = True
        if request.think is not None:
            body["think"] = bool(request.think)

        options: dict[str, Any] = {}
        if request.temperature is not None:
            body["temperature"] = request.temperature
            options["temperature"] = request.temperature
        if request.num_predict is not None:
            body["num_predict"] = request.num_predict
            options["num_predict"] = request.num_predict
        if options:
            body["options"] = options
        return body

    def execute(self, request: GenerateRequest) -> BackendResult:
        timeout_ms = int(request.timeout_ms or self.default_timeout_ms)
        url = self.generate_url
        try:
            r = requests.post(
                url,
                json=self.payload(request),
                timeout=timeout_ms / 1000.0,
                stream=bool(request.stream),
            )
        except requests.RequestException as exc:
            raise request_fault(exc, url=url, timeout_ms=timeout_ms) from exc

        if not r.ok:
            try:
                detail = _error_detail(r)
            finally:
                r.close()
            raise backend_error(f"Ollama API error: {detail}")

        if request.stream:
            return StreamedResult(fragments=self._fragments(r, url=url, timeout_ms=timeout_ms))

        try:
            data = r.json()
        except ValueError as exc:
            raise backend_error(f"Ollama API returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise backend_error(f"Ollama API response missing 'response': {data!r}")
        return BufferedResult(text=data["response"])

    def _fragments(self, response: requests.Response, *, url: str, timeout_ms: int) -> Iterator[str]:
        # One NDJSON line is pulled from the socket per fragment yielded.
        try:
            for line in response.iter_lines():
                if not line or not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except ValueError as exc:
                    raise backend_error(f"Error processing stream: {exc}") from exc
                if not isinstance(data, dict):
                    raise backend_error(f"Error processing stream: unexpected fragment {data!r}")
                if data.get("error"):
                    raise backend_error(f"Ollama API error: {data['error']}")
                text = data.get("response")
                if text:
                    yield str(text)
                if data.get("done"):
                    return
            raise backend_error("Error processing stream: stream ended before done")
        except requests.RequestException as exc:
            raise request_fault(exc, url=url, timeout_ms=timeout_ms) from exc
        finally:
            response.close()
