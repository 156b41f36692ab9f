from __future__ import annotations

from dataclasses import dataclass
import subprocess

from ..faults import backend_error
from ..models import BufferedResult
from ..models import CommandRequest


SUBCOMMANDS = {"serve", "create", "show", "pull", "push", "list", "cp", "rm"}


@dataclass(frozen=True)
class OllamaCLIClient:
    executable: str = "ollama"

    def argv(self, request: CommandRequest) -> list[str]:
        if request.subcommand not in SUBCOMMANDS:
            raise ValueError(f"Unsupported ollama subcommand: {request.subcommand!r}")
        return [self.executable, request.subcommand, *request.args]

    def execute(self, request: CommandRequest) -> BufferedResult:
        cmd = self.argv(request)
        # argv list, no shell; blocks until the process exits
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, encoding="utf-8", errors="replace")
        except OSError as exc:
            raise backend_error(f"Failed to start {self.executable!r}: {exc}") from exc

        stdout = proc.stdout or ""
        stderr = proc.stderr or ""
        if proc.returncode != 0:
            detail = (stderr.strip() or stdout.strip() or "no output")[-8000:]
            raise backend_error(
                f"`ollama {request.subcommand}` exited with code {proc.returncode}: {detail}"
            )
        return BufferedResult(text=stdout or stderr)
