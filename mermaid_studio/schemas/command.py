"""Uniform result envelope returned by every command."""

from typing import Any, Optional

from pydantic import BaseModel


class CommandError(BaseModel):
    """Failure details.

    ``code`` identifies the operation that failed; ``kind`` is the
    underlying category (see ``exceptions.ErrorCode``).
    """
    message: str
    code: str
    kind: str


class CommandResponse(BaseModel):
    """``{success: true, data}`` or ``{success: false, error}``."""
    success: bool
    data: Optional[Any] = None
    error: Optional[CommandError] = None

    @classmethod
    def ok(cls, data: Any = None) -> "CommandResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, kind: str) -> "CommandResponse":
        return cls(success=False, error=CommandError(message=message, code=code, kind=kind))

    def to_payload(self) -> dict:
        """JSON-ready dict using the camelCase wire names of nested records."""
        return self.model_dump(mode="json", by_alias=True)
