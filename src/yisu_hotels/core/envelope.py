"""Uniform ``{code, message, data}`` result envelope."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

SUCCESS_CODE = 0
INTERNAL_ERROR_CODE = 500
INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of one platform operation.

    ``code`` is 0 on success; any other value identifies the error kind and
    ``data`` is then always ``None``.
    """

    code: int
    message: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS_CODE

    def to_dict(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message, "data": self.data}

    @classmethod
    def success(cls, data: Any = None, message: str = "success") -> "OperationResult":
        return cls(SUCCESS_CODE, message, data)

    @classmethod
    def failure(cls, message: str = "error", code: int = 1) -> "OperationResult":
        if code == SUCCESS_CODE:
            raise ValueError("Failure envelopes need a non-zero code")
        return cls(code, message, None)
