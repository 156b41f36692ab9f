import subprocess
import unittest

import jsonschema
import requests

from ollama_mcp.faults import FaultCode
from ollama_mcp.faults import ToolFault
from ollama_mcp.faults import backend_error
from ollama_mcp.faults import not_found
from ollama_mcp.models import BufferedResult
from ollama_mcp.models import Envelope
from ollama_mcp.models import StreamBlock
from ollama_mcp.models import StreamedResult
from ollama_mcp.models import TextBlock
from ollama_mcp.normalize import drain_envelope
from ollama_mcp.normalize import fault_from_exception
from ollama_mcp.normalize import to_envelope


class TestNormalize(unittest.TestCase):
    def test_buffered_becomes_text_block(self) -> None:
        self.assertEqual(to_envelope(BufferedResult(text="hi")), Envelope(content=[TextBlock(text="hi")]))

    def test_stream_is_wrapped_not_drained(self) -> None:
        pulled: list[str] = []

        def fragments():
            for part in ("a", "b"):
                pulled.append(part)
                yield part

        source = fragments()
        envelope = to_envelope(StreamedResult(fragments=source))
        self.assertEqual(pulled, [])
        block = envelope.content[0]
        self.assertIsInstance(block, StreamBlock)
        self.assertIs(block.stream, source)
        self.assertEqual(block.type, "stream")

        self.assertEqual(drain_envelope(envelope), [{"type": "text", "text": "ab"}])
        self.assertEqual(pulled, ["a", "b"])

    def test_drain_failure_is_a_fault(self) -> None:
        def fragments():
            yield "partial"
            raise backend_error("Error processing stream: bad fragment")

        envelope = Envelope(content=[StreamBlock(stream=fragments())])
        with self.assertRaises(ToolFault) as ctx:
            drain_envelope(envelope)
        self.assertEqual(ctx.exception.code, FaultCode.BACKEND_ERROR)

    def test_drain_wraps_foreign_exceptions(self) -> None:
        def fragments():
            yield "partial"
            raise requests.exceptions.ChunkedEncodingError("connection broken")

        with self.assertRaises(ToolFault) as ctx:
            drain_envelope(Envelope(content=[StreamBlock(stream=fragments())]), operation="run")
        self.assertEqual(ctx.exception.code, FaultCode.BACKEND_ERROR)

    def test_fault_mapping(self) -> None:
        existing = not_found("Unknown tool: x")
        self.assertIs(fault_from_exception(existing, operation="x"), existing)

        cases = [
            (requests.exceptions.ConnectTimeout("slow"), FaultCode.BACKEND_ERROR),
            (requests.exceptions.HTTPError("500"), FaultCode.BACKEND_ERROR),
            (subprocess.CalledProcessError(1, ["ollama"]), FaultCode.BACKEND_ERROR),
            (PermissionError("denied"), FaultCode.BACKEND_ERROR),
            (jsonschema.ValidationError("bad"), FaultCode.INVALID_ARGUMENT),
            (KeyError("name"), FaultCode.INTERNAL_ERROR),
        ]
        for exc, code in cases:
            with self.subTest(exc=type(exc).__name__):
                fault = fault_from_exception(exc, operation="show")
                self.assertEqual(fault.code, code)
                self.assertTrue(fault.message)

        self.assertTrue(fault_from_exception(requests.exceptions.ConnectTimeout("slow"), operation="run").timed_out)
        self.assertIn("Error executing show", fault_from_exception(KeyError("name"), operation="show").message)


if __name__ == "__main__":
    unittest.main()
