from __future__ import annotations

from .chat import ChatCompletionAdapter
from .clients.ollama_cli import OllamaCLIClient
from .clients.ollama_http import OllamaHTTPClient
from .config import AppConfig
from .config import load_config
from .tools import ToolDispatcher


def build_dispatcher(cfg: AppConfig | None = None) -> ToolDispatcher:
    cfg = cfg or load_config()
    http = OllamaHTTPClient(base_url=cfg.ollama_host, default_timeout_ms=cfg.default_timeout_ms)
    return ToolDispatcher(
        cli=OllamaCLIClient(executable=cfg.cli_executable),
        http=http,
        chat=ChatCompletionAdapter(http=http),
    )
