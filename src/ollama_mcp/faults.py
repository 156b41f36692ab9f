from __future__ import annotations

from enum import Enum
from typing import Any


class FaultCode(str, Enum):
    NOT_FOUND = "not-found"
    INVALID_ARGUMENT = "invalid-argument"
    BACKEND_ERROR = "backend-error"
    INTERNAL_ERROR = "internal-error"


class ToolFault(Exception):
    """The single error shape that leaves the dispatcher."""

    def __init__(self, code: FaultCode, message: str, *, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = dict(data or {})

    @property
    def timed_out(self) -> bool:
        return self.data.get("reason") == "timeout"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, **self.data}

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


def not_found(message: str) -> ToolFault:
    return ToolFault(FaultCode.NOT_FOUND, message)


def invalid_argument(message: str) -> ToolFault:
    return ToolFault(FaultCode.INVALID_ARGUMENT, message)


def backend_error(message: str, *, reason: str | None = None) -> ToolFault:
    return ToolFault(FaultCode.BACKEND_ERROR, message, data={"reason": reason} if reason else None)


def internal_error(message: str) -> ToolFault:
    return ToolFault(FaultCode.INTERNAL_ERROR, message)
