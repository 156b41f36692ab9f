import os
import unittest
from unittest import mock

from ollama_mcp.app import build_dispatcher
from ollama_mcp.config import AppConfig
from ollama_mcp.config import load_config
from ollama_mcp.config import normalize_host


class TestConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        env = {k: v for k, v in os.environ.items() if not k.startswith("OLLAMA")}
        with mock.patch.dict(os.environ, env, clear=True):
            cfg = load_config()
        self.assertEqual(cfg, AppConfig(ollama_host="http://127.0.0.1:11434", cli_executable="ollama", default_timeout_ms=60000))

    def test_environment_overrides(self) -> None:
        env = {
            "OLLAMA_HOST": "gpu-box:11434/",
            "OLLAMA_MCP_CLI": "/opt/ollama/bin/ollama",
            "OLLAMA_MCP_TIMEOUT_MS": "120000",
        }
        with mock.patch.dict(os.environ, env):
            cfg = load_config()
        self.assertEqual(cfg.ollama_host, "http://gpu-box:11434")
        self.assertEqual(cfg.cli_executable, "/opt/ollama/bin/ollama")
        self.assertEqual(cfg.default_timeout_ms, 120000)

    def test_bad_timeout_falls_back(self) -> None:
        for raw in ("soon", "0", "-5"):
            with self.subTest(raw=raw), mock.patch.dict(os.environ, {"OLLAMA_MCP_TIMEOUT_MS": raw}):
                self.assertEqual(load_config().default_timeout_ms, 60000)

    def test_normalize_host(self) -> None:
        self.assertEqual(normalize_host(""), "http://127.0.0.1:11434")
        self.assertEqual(normalize_host("https://ollama.example.com/"), "https://ollama.example.com")

    def test_config_is_threaded_into_clients(self) -> None:
        cfg = AppConfig(ollama_host="http://10.0.0.5:11434", cli_executable="ollama-dev", default_timeout_ms=5000)
        dispatcher = build_dispatcher(cfg)
        self.assertEqual(dispatcher.http.generate_url, "http://10.0.0.5:11434/api/generate")
        self.assertEqual(dispatcher.http.default_timeout_ms, 5000)
        self.assertEqual(dispatcher.cli.executable, "ollama-dev")
        self.assertIs(dispatcher.chat.http, dispatcher.http)


if __name__ == "__main__":
    unittest.main()
