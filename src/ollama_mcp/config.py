from __future__ import annotations

from dataclasses import dataclass
import os


DEFAULT_OLLAMA_HOST = "http://127.0.0.1:11434"
DEFAULT_TIMEOUT_MS = 60000


@dataclass(frozen=True)
class AppConfig:
    ollama_host: str = DEFAULT_OLLAMA_HOST
    cli_executable: str = "ollama"
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def normalize_host(raw: str) -> str:
    host = str(raw or "").strip() or DEFAULT_OLLAMA_HOST
    if "://" not in host:
        host = f"http://{host}"
    return host.rstrip("/")


def load_config() -> AppConfig:
    timeout_ms = _env_int("OLLAMA_MCP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
    if timeout_ms <= 0:
        timeout_ms = DEFAULT_TIMEOUT_MS

    return AppConfig(
        ollama_host=normalize_host(os.environ.get("OLLAMA_HOST", "")),
        cli_executable=os.environ.get("OLLAMA_MCP_CLI", "").strip() or "ollama",
        default_timeout_ms=timeout_ms,
    )
