import unittest

from ollama_mcp.catalog import OPERATIONS
from ollama_mcp.catalog import parse_arguments
from ollama_mcp.catalog import tool_definitions
from ollama_mcp.faults import FaultCode
from ollama_mcp.faults import ToolFault
from ollama_mcp.models import ChatCompletionArgs
from ollama_mcp.models import ChatMessage
from ollama_mcp.models import ListArgs
from ollama_mcp.models import RunArgs
from ollama_mcp.models import ShowArgs


class TestCatalog(unittest.TestCase):
    def _invalid(self, name: str, arguments: object) -> ToolFault:
        with self.assertRaises(ToolFault) as ctx:
            parse_arguments(name, arguments)
        self.assertEqual(ctx.exception.code, FaultCode.INVALID_ARGUMENT)
        return ctx.exception

    def test_every_schema_is_closed(self) -> None:
        for tool in tool_definitions():
            with self.subTest(tool=tool["name"]):
                self.assertEqual(tool["inputSchema"]["type"], "object")
                self.assertIs(tool["inputSchema"]["additionalProperties"], False)
                self.assertTrue(tool["description"])

    def test_names_are_unique(self) -> None:
        names = [op.name for op in OPERATIONS]
        self.assertEqual(len(names), len(set(names)))

    def test_missing_required_field(self) -> None:
        fault = self._invalid("cp", {"source": "llama3"})
        self.assertIn("destination", fault.message)

    def test_unknown_field_rejected(self) -> None:
        fault = self._invalid("list", {"all": True})
        self.assertIn("all", fault.message)

    def test_enum_and_ranges(self) -> None:
        self._invalid("show", {"name": "llama3", "show_flag": "weights"})
        self._invalid("run", {"name": "llama3", "prompt": "x", "timeout": 10})
        self._invalid("run", {"name": "llama3", "prompt": "x", "temperature": 2.5})
        self._invalid("run", {"name": "llama3", "prompt": "x", "num_predict": -2})
        self._invalid("chat_completion", {"model": "llama3", "messages": [{"role": "tool", "content": "x"}]})
        self._invalid("chat_completion", {"model": "llama3", "messages": [{"role": "user"}]})

    def test_wrong_types(self) -> None:
        self._invalid("show", {"name": "llama3", "verbose": "yes"})
        self._invalid("pull", {"name": 42})
        self._invalid("pull", ["llama3"])

    def test_shell_metacharacters_and_flags_rejected(self) -> None:
        for bad in ("llama3; rm -rf ~", "$(whoami)", "a b", "`id`", "--help", "-rf", "x|y", ""):
            with self.subTest(name=bad):
                self._invalid("pull", {"name": bad})
        self._invalid("create", {"name": "mine", "modelfile": "--from=evil"})

    def test_registry_style_names_accepted(self) -> None:
        for good in ("llama3", "llama3:8b", "library/llama3:latest", "hf.co/bartowski/Llama-3.2-1B-Instruct-GGUF:Q4_K_M"):
            with self.subTest(name=good):
                parse_arguments("pull", {"name": good})

    def test_parses_typed_arguments(self) -> None:
        self.assertEqual(parse_arguments("list", None), ListArgs())
        self.assertEqual(
            parse_arguments("show", {"name": "llama3", "show_flag": "license"}),
            ShowArgs(name="llama3", show_flag="license", verbose=False),
        )
        self.assertEqual(
            parse_arguments("run", {"name": "llama3", "prompt": "hi", "timeout": 1500.0, "num_predict": -1}),
            RunArgs(name="llama3", prompt="hi", timeout_ms=1500, num_predict=-1, stream=True),
        )
        self.assertEqual(
            parse_arguments(
                "chat_completion",
                {"model": "llama3", "messages": [{"role": "user", "content": "hi"}], "temperature": 0},
            ),
            ChatCompletionArgs(model="llama3", messages=(ChatMessage(role="user", content="hi"),), temperature=0.0),
        )

    def test_unknown_operation(self) -> None:
        with self.assertRaises(ToolFault) as ctx:
            parse_arguments("nope", {})
        self.assertEqual(ctx.exception.code, FaultCode.NOT_FOUND)


if __name__ == "__main__":
    unittest.main()
