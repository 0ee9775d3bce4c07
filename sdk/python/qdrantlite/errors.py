"""SDK exceptions."""

from __future__ import annotations

from typing import Any


class QdrantLiteError(RuntimeError):
    """Base class for every error raised by the SDK."""


class ChannelError(QdrantLiteError):
    """Raised when the gRPC channel to the service cannot be created."""


class TransportError(QdrantLiteError):
    """Raised when a remote call fails; carries the gRPC status verbatim."""

    def __init__(
        self, operation: str, code: Any = None, details: str | None = None
    ) -> None:
        self.operation = operation
        self.code = code
        self.details = details
        status = getattr(code, "name", code)
        super().__init__(f"{operation} failed: {status}: {details}")
